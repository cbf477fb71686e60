"""
Pytest fixtures for the payables test suite.

Provides:
- Structured logging configuration and log capture
- A deterministic clock
- Builders for the typed input records
"""

import json
import logging
from datetime import date, datetime, UTC
from decimal import Decimal
from io import StringIO

import pytest

from payables_kernel.domain.clock import DeterministicClock
from payables_kernel.domain.records import (
    CreditNote,
    Obligation,
    ObligationType,
    Payment,
    PaymentAllocation,
    Vendor,
    VendorRefund,
    VendorReturn,
)
from payables_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture payables_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            builder.build(vendor, deliveries)
            logs = captured_logs()
            assert any(r["message"] == "vendor_ledger_built" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payables_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Clock pinned to 2024-02-01 09:30 UTC."""
    return DeterministicClock(datetime(2024, 2, 1, 9, 30, tzinfo=UTC))


# =============================================================================
# Record builders
# =============================================================================


VENDOR_ID = "vendor000001"


@pytest.fixture
def vendor():
    return Vendor(
        id=VENDOR_ID,
        name="Shree Cement Traders",
        contact_person="Ravi Kumar",
        phone="+91 98450 00000",
        email="ravi@example.com",
        address="12 Market Road, Pune",
    )


def make_delivery(
    delivery_id: str,
    total: str,
    on: date | None,
    reference: str = "",
    vendor_id: str = VENDOR_ID,
    paid: str = "0",
    status: str = "pending",
) -> Obligation:
    return Obligation(
        id=delivery_id,
        vendor_id=vendor_id,
        obligation_type=ObligationType.DELIVERY,
        total_amount=Decimal(total),
        due_date=on,
        reference=reference,
        paid_amount=Decimal(paid),
        payment_status=status,
    )


def make_booking(
    booking_id: str,
    total: str,
    on: date | None,
    vendor_id: str = VENDOR_ID,
) -> Obligation:
    return Obligation(
        id=booking_id,
        vendor_id=vendor_id,
        obligation_type=ObligationType.SERVICE_BOOKING,
        total_amount=Decimal(total),
        due_date=on,
    )


def make_allocation(
    obligation: Obligation,
    amount: str,
    payment_id: str = "pay1",
) -> PaymentAllocation:
    return PaymentAllocation(
        id=f"alloc-{obligation.id}-{amount}",
        payment_id=payment_id,
        obligation_id=obligation.id,
        obligation_type=obligation.obligation_type,
        allocated_amount=Decimal(amount),
    )


def make_payment(
    payment_id: str,
    amount: str,
    on: date | None,
    reference: str = "",
    notes: str = "",
) -> Payment:
    return Payment(
        id=payment_id,
        vendor_id=VENDOR_ID,
        amount=Decimal(amount),
        payment_date=on,
        reference=reference,
        notes=notes,
    )


def make_credit_note(
    note_id: str,
    balance: str,
    credit_amount: str | None = None,
    on: date | None = None,
    reason: str = "",
    reference: str = "",
    vendor_id: str = VENDOR_ID,
) -> CreditNote:
    return CreditNote(
        id=note_id,
        vendor_id=vendor_id,
        balance=Decimal(balance),
        credit_amount=Decimal(credit_amount if credit_amount is not None else balance),
        issue_date=on,
        reference=reference,
        reason=reason,
    )


def make_return(
    return_id: str,
    amount: str,
    status: str = "completed",
    option: str | None = "credit_note",
    reason: str = "",
    returned_on: date | None = None,
    completed_on: date | None = None,
) -> VendorReturn:
    return VendorReturn(
        id=return_id,
        vendor_id=VENDOR_ID,
        status=status,
        total_return_amount=Decimal(amount),
        processing_option=option,
        reason=reason,
        return_date=returned_on,
        completion_date=completed_on,
    )


def make_refund(
    refund_id: str,
    amount: str,
    on: date | None,
    reference: str = "",
) -> VendorRefund:
    return VendorRefund(
        id=refund_id,
        vendor_id=VENDOR_ID,
        refund_amount=Decimal(amount),
        refund_date=on,
        reference=reference,
    )
