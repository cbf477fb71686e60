"""
Tests for payables_kernel.logging_config.

Covers:
- The fixed set of payables context fields
- JSON rendering of Decimal, enum, date and tuple extras
- Lifting of structured exception attributes
- Session context around PaymentEntrySession calls
- Handler setup by level name, idempotency and reset
"""

import json
import logging
from datetime import date, datetime, UTC
from decimal import Decimal
from io import StringIO

import pytest

from payables_kernel.domain.records import ObligationType, Payment, PaymentStatus
from payables_kernel.exceptions import RecordParseError
from payables_kernel.logging_config import (
    LogContext,
    configure_logging,
    get_logger,
    reset_logging,
)
from payables_services.payment_entry import PaymentEntrySession
from tests.conftest import VENDOR_ID, make_delivery

logger = get_logger("tests.logging")


def _records_named(captured_logs, message):
    return [r for r in captured_logs() if r["message"] == message]


class TestContextFields:
    """LogContext accepts the payables identifiers and nothing else."""

    def test_fields_are_the_payables_identifiers(self):
        assert LogContext.FIELDS == (
            "correlation_id", "site_id", "vendor_id", "session_id", "actor_id", "trace_id",
        )

    @pytest.mark.parametrize("field", ["event_id", "customer_id", "producer"])
    def test_unknown_field_raises(self, field):
        with pytest.raises(TypeError, match=field):
            LogContext.set(**{field: "x"})
        with pytest.raises(TypeError, match=field):
            LogContext.bind(**{field: "x"})

    def test_rejected_bind_changes_nothing(self):
        LogContext.set(site_id="pune-01")
        with pytest.raises(TypeError):
            LogContext.bind(site_id="nashik-02", customer_id="c1")
        assert LogContext.get_all() == {"site_id": "pune-01"}

    def test_none_leaves_field_untouched(self):
        LogContext.set(site_id="pune-01")
        LogContext.set(site_id=None, actor_id="u7")
        assert LogContext.get_all() == {"site_id": "pune-01", "actor_id": "u7"}

    def test_values_stored_as_text(self):
        LogContext.set(site_id=42)
        assert LogContext.get_all() == {"site_id": "42"}

    def test_context_overrides_same_named_extra(self, captured_logs):
        with LogContext.bind(vendor_id="from-context"):
            logger.info("vendor_scoped", extra={"vendor_id": "from-extra"})
        assert _records_named(captured_logs, "vendor_scoped")[0]["vendor_id"] == "from-context"


class TestValueRendering:
    """Extras carrying payables values render as plain JSON."""

    def test_amounts_keep_their_digits(self, captured_logs):
        logger.info("amounts", extra={"allocated": Decimal("1500.50"), "tolerance": Decimal("0.01")})
        record = _records_named(captured_logs, "amounts")[0]
        assert record["allocated"] == "1500.50"
        assert record["tolerance"] == "0.01"

    def test_enums_render_as_values(self, captured_logs):
        logger.info("tags", extra={
            "status": PaymentStatus.PARTIAL,
            "obligation_type": ObligationType.SERVICE_BOOKING,
        })
        record = _records_named(captured_logs, "tags")[0]
        assert record["status"] == "partial"
        assert record["obligation_type"] == "service_booking"

    def test_dates_render_iso(self, captured_logs):
        logger.info("period", extra={
            "period_from": date(2024, 4, 1),
            "generated_at": datetime(2024, 4, 30, 18, 0, tzinfo=UTC),
        })
        record = _records_named(captured_logs, "period")[0]
        assert record["period_from"] == "2024-04-01"
        assert record["generated_at"] == "2024-04-30T18:00:00+00:00"

    def test_tuples_render_as_lists(self, captured_logs):
        logger.info("ids", extra={"credit_note_ids": ("cn1", "cn2")})
        assert _records_named(captured_logs, "ids")[0]["credit_note_ids"] == ["cn1", "cn2"]


class TestExceptionLifting:
    """Typed payables errors expose their attributes as exc_* fields."""

    def test_record_parse_error_from_row(self, captured_logs):
        try:
            Payment.from_mapping({"id": "p1", "vendor": "v1", "amount": "twelve"})
        except RecordParseError:
            logger.exception("payment_row_rejected")

        record = _records_named(captured_logs, "payment_row_rejected")[0]
        assert record["level"] == "ERROR"
        assert record["exc_type"] == "RecordParseError"
        assert record["exc_code"] == "RECORD_PARSE_ERROR"
        assert record["exc_record_type"] == "Payment"
        assert record["exc_field"] == "amount"
        assert record["exc_message"].startswith("Cannot parse Payment.amount")
        assert "Traceback" in record["traceback"]

    def test_plain_exception_has_no_code(self, captured_logs):
        try:
            Decimal("1") / Decimal("0")
        except ArithmeticError:
            logger.exception("division_failed")
        record = _records_named(captured_logs, "division_failed")[0]
        assert "exc_code" not in record
        assert record["exc_type"] == "DivisionByZero"


class TestSessionContext:
    """PaymentEntrySession scopes its engine calls to the session."""

    def test_engine_records_carry_session_and_vendor(self, captured_logs, deterministic_clock):
        session = PaymentEntrySession(vendor_id=VENDOR_ID, clock=deterministic_clock)
        session.load_obligations([make_delivery("d1", "100", date(2024, 1, 1))])

        built = _records_named(captured_logs, "allocation_lines_built")[0]
        assert built["session_id"] == session.session_id
        assert built["vendor_id"] == VENDOR_ID
        assert built["line_count"] == 1

    def test_context_restored_after_call(self, deterministic_clock):
        LogContext.set(site_id="pune-01", session_id="outer")
        session = PaymentEntrySession(vendor_id=VENDOR_ID, clock=deterministic_clock)
        session.load_obligations([])
        assert LogContext.get_all() == {"site_id": "pune-01", "session_id": "outer"}

    def test_site_context_reaches_session_records(self, captured_logs, deterministic_clock):
        with LogContext.bind(site_id="pune-01", actor_id="clerk-3"):
            session = PaymentEntrySession(vendor_id=VENDOR_ID, clock=deterministic_clock)
        opened = _records_named(captured_logs, "payment_entry_session_opened")[0]
        assert opened["site_id"] == "pune-01"
        assert opened["actor_id"] == "clerk-3"
        assert opened["session_id"] == session.session_id


class TestSetup:
    """configure_logging / reset_logging on the payables_kernel logger."""

    @pytest.fixture
    def stream(self):
        reset_logging()
        buffer = StringIO()
        yield buffer
        reset_logging()
        configure_logging(level=logging.DEBUG)

    def test_level_by_name(self, stream):
        configure_logging(level="warning", stream=stream)
        get_logger("ledger").info("dropped")
        get_logger("ledger").warning("kept")
        lines = [json.loads(line) for line in stream.getvalue().splitlines()]
        assert [r["message"] for r in lines] == ["kept"]
        assert lines[0]["logger"] == "payables_kernel.ledger"

    def test_second_configure_ignored(self, stream):
        configure_logging(stream=stream)
        configure_logging(stream=StringIO())
        assert len(logging.getLogger("payables_kernel").handlers) == 1

    def test_reset_allows_reconfigure(self, stream):
        configure_logging(stream=StringIO())
        reset_logging()
        assert logging.getLogger("payables_kernel").handlers == []
        configure_logging(stream=stream)
        get_logger("export").warning("after_reset")
        assert json.loads(stream.getvalue())["message"] == "after_reset"
