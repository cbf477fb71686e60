"""
Records -- Typed snapshots of the persistence collaborator's rows.

Responsibility:
    Frozen value objects for every input the engines consume: vendors,
    obligations (deliveries and service bookings), payment allocation
    records, payments, credit notes, vendor returns and vendor refunds.
    Each record can be built from the collaborator's snake_case mapping
    via ``from_mapping``.

Architecture position:
    Kernel > Domain -- pure data definitions, zero I/O.
    Imported by engines, modules and services.

Invariants enforced:
    - All monetary fields are ``Decimal`` (see ``values.to_decimal``).
    - Obligations are a tagged variant: ``obligation_type`` is always an
      ``ObligationType`` so allocation logic stays type-total.
    - Records are never mutated by the engines; derived state is produced
      as new objects.

Failure modes:
    - RecordParseError from ``from_mapping`` when a required key is missing
      or an amount is not numeric.
    - Dates are lenient: unparseable dates become ``None``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from payables_kernel.domain.values import ZERO, parse_date, to_decimal
from payables_kernel.exceptions import RecordParseError


class ObligationType(str, Enum):
    """Kind of obligation a payment can be allocated to."""

    DELIVERY = "delivery"
    SERVICE_BOOKING = "service_booking"


class PaymentStatus(str, Enum):
    """Derived payment status of an obligation."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class ReturnStatus(str, Enum):
    """Vendor return workflow states."""

    INITIATED = "initiated"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"
    REFUNDED = "refunded"


class ProcessingOption(str, Enum):
    """How a completed vendor return is settled."""

    CREDIT_NOTE = "credit_note"
    REFUND = "refund"


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def _require(data: Mapping[str, Any], key: str, record_type: str) -> Any:
    if key not in data or data[key] is None:
        raise RecordParseError(record_type, key, "missing required field")
    return data[key]


def _amount(
    data: Mapping[str, Any],
    key: str,
    record_type: str,
    required: bool = True,
) -> Decimal:
    raw = _require(data, key, record_type) if required else data.get(key)
    try:
        return to_decimal(raw)
    except ValueError as e:
        raise RecordParseError(record_type, key, str(e)) from e


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _obligation_type(value: Any, record_type: str) -> ObligationType:
    try:
        return ObligationType(value)
    except ValueError as e:
        raise RecordParseError(
            record_type, "obligation_type", f"unknown obligation type {value!r}"
        ) from e


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Vendor:
    """A supplier of deliveries or services for a site."""

    id: str
    name: str = ""
    contact_person: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""

    @property
    def display_name(self) -> str:
        """Name used on exports: contact person, then name."""
        return self.contact_person or self.name or "Unknown Vendor"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Vendor:
        return cls(
            id=str(_require(data, "id", "Vendor")),
            name=_text(data, "name"),
            contact_person=_text(data, "contact_person"),
            phone=_text(data, "phone"),
            email=_text(data, "email"),
            address=_text(data, "address"),
        )


@dataclass(frozen=True)
class Obligation:
    """
    A delivery or service booking owed to a vendor.

    Contract:
        ``due_date`` is the delivery date for deliveries and the start date
        for service bookings; it drives allocation order.
        ``paid_amount`` and ``payment_status`` are the collaborator's stored
        copy of the derived fields and may be stale.
    """

    id: str
    vendor_id: str
    obligation_type: ObligationType
    total_amount: Decimal
    due_date: date | None = None
    reference: str = ""
    paid_amount: Decimal = ZERO
    payment_status: str = PaymentStatus.PENDING.value

    @classmethod
    def from_mapping(
        cls,
        data: Mapping[str, Any],
        obligation_type: ObligationType | str | None = None,
    ) -> Obligation:
        """
        Build from a delivery or service booking row.

        ``obligation_type`` defaults to the row's ``obligation_type`` key;
        the due date is read from ``delivery_date`` for deliveries and
        ``start_date`` for bookings (``due_date`` wins when present).
        """
        kind = _obligation_type(
            obligation_type or data.get("obligation_type") or ObligationType.DELIVERY,
            "Obligation",
        )
        date_key = (
            "delivery_date" if kind is ObligationType.DELIVERY else "start_date"
        )
        raw_date = data.get("due_date") or data.get(date_key)
        reference_key = (
            "delivery_reference" if kind is ObligationType.DELIVERY else "reference"
        )
        return cls(
            id=str(_require(data, "id", "Obligation")),
            vendor_id=str(_require(data, "vendor", "Obligation")),
            obligation_type=kind,
            total_amount=_amount(data, "total_amount", "Obligation"),
            due_date=parse_date(raw_date),
            reference=_text(data, reference_key) or _text(data, "reference"),
            paid_amount=_amount(data, "paid_amount", "Obligation", required=False),
            payment_status=_text(data, "payment_status") or PaymentStatus.PENDING.value,
        )


@dataclass(frozen=True)
class PaymentAllocation:
    """Persisted link between part of a payment and one obligation."""

    id: str
    payment_id: str
    obligation_id: str
    obligation_type: ObligationType | None
    allocated_amount: Decimal

    def references(self, obligation: Obligation) -> bool:
        """
        True if this allocation funds ``obligation``.

        An untyped allocation matches on id alone.
        """
        if self.obligation_id != obligation.id:
            return False
        return (
            self.obligation_type is None
            or self.obligation_type == obligation.obligation_type
        )

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> PaymentAllocation:
        """
        Build from an allocation row.

        Accepts either explicit ``obligation_id``/``obligation_type`` keys or
        the collaborator's ``delivery``/``service_booking`` link fields.
        A bare ``obligation_id`` leaves the type as ``None``.
        """
        kind: ObligationType | None
        if data.get("obligation_id"):
            obligation_id = str(data["obligation_id"])
            raw_type = data.get("obligation_type")
            kind = (
                _obligation_type(raw_type, "PaymentAllocation") if raw_type else None
            )
        elif data.get("delivery"):
            obligation_id = str(data["delivery"])
            kind = ObligationType.DELIVERY
        elif data.get("service_booking"):
            obligation_id = str(data["service_booking"])
            kind = ObligationType.SERVICE_BOOKING
        else:
            raise RecordParseError(
                "PaymentAllocation", "obligation_id", "missing obligation link"
            )
        return cls(
            id=_text(data, "id"),
            payment_id=_text(data, "payment"),
            obligation_id=obligation_id,
            obligation_type=kind,
            allocated_amount=_amount(data, "allocated_amount", "PaymentAllocation"),
        )


@dataclass(frozen=True)
class CreditNote:
    """
    Vendor-side credit.

    ``balance`` is what remains usable against new payments;
    ``credit_amount`` is the originally issued amount shown on the ledger.
    """

    id: str
    vendor_id: str
    balance: Decimal
    credit_amount: Decimal = ZERO
    issue_date: date | None = None
    reference: str = ""
    reason: str = ""
    status: str = "active"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CreditNote:
        return cls(
            id=str(_require(data, "id", "CreditNote")),
            vendor_id=_text(data, "vendor"),
            balance=_amount(data, "balance", "CreditNote", required=False),
            credit_amount=_amount(data, "credit_amount", "CreditNote", required=False),
            issue_date=parse_date(data.get("issue_date")),
            reference=_text(data, "reference"),
            reason=_text(data, "reason"),
            status=_text(data, "status") or "active",
        )


@dataclass(frozen=True)
class CreditNoteUsage:
    """Part of a credit note's balance consumed by a payment."""

    id: str
    credit_note_id: str
    used_amount: Decimal
    used_date: date | None = None
    payment_id: str = ""
    vendor_id: str = ""
    description: str = ""
    credit_note_reference: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> CreditNoteUsage:
        """
        Build from a usage row.

        The credit note's reference is read from an expanded
        ``credit_note`` relation when the row carries one.
        """
        expanded = (data.get("expand") or {}).get("credit_note") or {}
        return cls(
            id=str(_require(data, "id", "CreditNoteUsage")),
            credit_note_id=str(_require(data, "credit_note", "CreditNoteUsage")),
            used_amount=_amount(data, "used_amount", "CreditNoteUsage"),
            used_date=parse_date(data.get("used_date")),
            payment_id=_text(data, "payment"),
            vendor_id=_text(data, "vendor"),
            description=_text(data, "description"),
            credit_note_reference=_text(expanded, "reference"),
        )


@dataclass(frozen=True)
class Payment:
    """A payment made to a vendor."""

    id: str
    vendor_id: str
    amount: Decimal
    payment_date: date | None = None
    reference: str = ""
    notes: str = ""
    account_id: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Payment:
        return cls(
            id=str(_require(data, "id", "Payment")),
            vendor_id=_text(data, "vendor"),
            amount=_amount(data, "amount", "Payment"),
            payment_date=parse_date(data.get("payment_date")),
            reference=_text(data, "reference"),
            notes=_text(data, "notes"),
            account_id=_text(data, "account"),
        )


@dataclass(frozen=True)
class VendorReturn:
    """Goods sent back to a vendor."""

    id: str
    vendor_id: str
    status: str
    total_return_amount: Decimal
    processing_option: str | None = None
    reason: str = ""
    return_date: date | None = None
    completion_date: date | None = None
    actual_refund_amount: Decimal = ZERO

    @property
    def is_settled(self) -> bool:
        """Completed or refunded returns affect the ledger."""
        return self.status in (ReturnStatus.COMPLETED, ReturnStatus.REFUNDED)

    @property
    def effective_date(self) -> date | None:
        return self.completion_date or self.return_date

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> VendorReturn:
        return cls(
            id=str(_require(data, "id", "VendorReturn")),
            vendor_id=_text(data, "vendor"),
            status=str(_require(data, "status", "VendorReturn")),
            total_return_amount=_amount(data, "total_return_amount", "VendorReturn"),
            processing_option=data.get("processing_option") or None,
            reason=_text(data, "reason"),
            return_date=parse_date(data.get("return_date")),
            completion_date=parse_date(data.get("completion_date")),
            actual_refund_amount=_amount(
                data, "actual_refund_amount", "VendorReturn", required=False
            ),
        )


@dataclass(frozen=True)
class VendorRefund:
    """Money received back from a vendor against a return."""

    id: str
    vendor_id: str
    refund_amount: Decimal
    refund_date: date | None = None
    vendor_return_id: str = ""
    reference: str = ""
    notes: str = ""

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> VendorRefund:
        return cls(
            id=str(_require(data, "id", "VendorRefund")),
            vendor_id=_text(data, "vendor"),
            refund_amount=_amount(data, "refund_amount", "VendorRefund"),
            refund_date=parse_date(data.get("refund_date")),
            vendor_return_id=_text(data, "vendor_return"),
            reference=_text(data, "reference"),
            notes=_text(data, "notes"),
        )
