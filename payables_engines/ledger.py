"""
Module: payables_engines.ledger
Responsibility:
    Merge one vendor's deliveries, payments, vendor returns, credit notes,
    credit-note usages and refunds into a dated, running-balance ledger
    with totals.  The resulting ``VendorLedger`` is the single input of
    every exporter.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payables_kernel/domain.

Invariants enforced:
    - Debit increases the amount owed to the vendor, credit decreases it:
      running_balance[i] = running_balance[i-1] + debit[i] - credit[i],
      seeded with the opening balance (0 unless date-filtered).
    - Entries are non-decreasing by date.  The sort is stable, so entries
      sharing a date keep construction order:
      delivery -> return -> credit note -> credit-note usage -> payment
      -> refund.
    - final_balance = total_debits - total_credits over the listed entries;
      closing_balance = opening_balance + final_balance.
    - A standalone credit note is suppressed when a credit-note return with
      the same reason and amount exists (the same economic event recorded
      twice upstream).
    - Purity: no clock access, no I/O.

Failure modes:
    - None for missing optional fields (completion date falls back to
      return date, missing references fall back to id-derived labels).
    - Unparseable dates are coerced to ``None``, logged, and sort first.

Usage:
    from payables_engines.ledger import LedgerBuilder

    ledger = LedgerBuilder().build(
        vendor, deliveries, payments, returns, credit_notes,
    )
    ledger.entries[-1].running_balance == ledger.totals.final_balance
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from payables_engines.tracer import traced_engine
from payables_kernel.domain.records import (
    CreditNote,
    CreditNoteUsage,
    Obligation,
    Payment,
    ProcessingOption,
    Vendor,
    VendorRefund,
    VendorReturn,
)
from payables_kernel.domain.values import ZERO, parse_date, to_decimal
from payables_kernel.logging_config import get_logger

logger = get_logger("engines.ledger")


class EntryCategory(str, Enum):
    """Economic event behind a ledger entry."""

    DELIVERY = "delivery"
    PAYMENT = "payment"
    CREDIT_NOTE = "credit_note"
    CREDIT_NOTE_USAGE = "credit_note_usage"
    RETURN = "return"
    REFUND = "refund"


@dataclass(frozen=True)
class LedgerParticulars:
    """Wording used for entry particulars; overridable per locale."""

    invoice: str = "Invoice"
    delivery: str = "Delivery"
    unknown: str = "Unknown"
    payment_made: str = "Payment Made"
    payment: str = "Payment"
    credit_note_issued: str = "Credit Note Issued"
    credit_note_for_return: str = "Credit Note for Return"
    credit_note_used: str = "Credit Note Used"
    applied_to_payment: str = "Applied to payment"
    goods_returned: str = "Goods Returned"
    refund_received: str = "Refund Received"


@dataclass(frozen=True)
class LedgerEntry:
    """
    One dated, single-sided line of a vendor statement.

    Contract:
        Frozen; built fresh on every request and never persisted.
    Guarantees:
        - At most one of ``debit`` / ``credit`` is non-zero.
    """

    date: date | None
    particulars: str
    reference: str
    debit: Decimal
    credit: Decimal
    running_balance: Decimal
    category: EntryCategory
    source_id: str = ""
    details: str = ""

    @property
    def net(self) -> Decimal:
        """Effect on the balance: debit - credit."""
        return self.debit - self.credit


@dataclass(frozen=True)
class LedgerTotals:
    total_debits: Decimal
    total_credits: Decimal
    final_balance: Decimal


@dataclass(frozen=True)
class VendorLedger:
    """
    Complete ledger for one vendor.

    ``has_opening_balance`` is set for date-filtered views, whose opening
    balance carries everything before ``period_from``.
    """

    vendor: Vendor
    entries: tuple[LedgerEntry, ...]
    totals: LedgerTotals
    opening_balance: Decimal = ZERO
    has_opening_balance: bool = False
    period_from: date | None = None
    period_to: date | None = None

    @property
    def closing_balance(self) -> Decimal:
        return self.opening_balance + self.totals.final_balance

    @property
    def is_filtered(self) -> bool:
        return self.period_from is not None or self.period_to is not None


def _short_id(record_id: str) -> str:
    return record_id[-6:] if record_id else ""


def _sort_key(entry: LedgerEntry) -> tuple[bool, date]:
    # Undated entries sort first, like an epoch timestamp would.
    return (entry.date is not None, entry.date or date.min)


def _with_running_balances(
    entries: Iterable[LedgerEntry],
    opening_balance: Decimal,
) -> tuple[tuple[LedgerEntry, ...], LedgerTotals]:
    balance = opening_balance
    debits = ZERO
    credits = ZERO
    result: list[LedgerEntry] = []
    for entry in entries:
        balance += entry.debit - entry.credit
        debits += entry.debit
        credits += entry.credit
        result.append(replace(entry, running_balance=balance))
    totals = LedgerTotals(
        total_debits=debits,
        total_credits=credits,
        final_balance=debits - credits,
    )
    return tuple(result), totals


class LedgerBuilder:
    """
    Build vendor ledgers from collaborator records.

    Contract:
        Pure; the same records always yield the same ledger.
    Non-goals:
        - Does not filter records by vendor; callers pass one vendor's rows.
        - Does not validate date parseability beyond ``parse_date``.
    """

    def __init__(self, particulars: LedgerParticulars | None = None):
        self._labels = particulars or LedgerParticulars()

    @traced_engine("ledger", "1.0", fingerprint_fields=("opening_balance",))
    def build(
        self,
        vendor: Vendor,
        deliveries: Sequence[Obligation] = (),
        payments: Sequence[Payment] = (),
        returns: Sequence[VendorReturn] = (),
        credit_notes: Sequence[CreditNote] = (),
        refunds: Sequence[VendorRefund] = (),
        credit_note_usages: Sequence[CreditNoteUsage] = (),
        opening_balance: Decimal | int | str = ZERO,
    ) -> VendorLedger:
        """Merge all events, sort by date and accumulate balances."""
        opening = to_decimal(opening_balance)
        entries: list[LedgerEntry] = []
        entries.extend(self._delivery_entry(d) for d in deliveries or ())
        entries.extend(
            self._return_entry(r) for r in returns or () if self._return_posts(r)
        )
        entries.extend(
            self._credit_note_entry(cn)
            for cn in credit_notes or ()
            if cn.credit_amount > ZERO and not self._is_return_related(cn, returns or ())
        )
        entries.extend(
            self._usage_entry(u) for u in credit_note_usages or () if u.used_amount > ZERO
        )
        entries.extend(self._payment_entry(p) for p in payments or ())
        entries.extend(
            self._refund_entry(r) for r in refunds or () if r.refund_amount > ZERO
        )

        ordered, totals = _with_running_balances(sorted(entries, key=_sort_key), opening)

        logger.info("vendor_ledger_built", extra={
            "vendor_id": vendor.id,
            "entry_count": len(ordered),
            "total_debits": str(totals.total_debits),
            "total_credits": str(totals.total_credits),
            "final_balance": str(totals.final_balance),
        })
        return VendorLedger(
            vendor=vendor,
            entries=ordered,
            totals=totals,
            opening_balance=opening,
            has_opening_balance=opening != ZERO,
        )

    def filter(
        self,
        ledger: VendorLedger,
        from_date: Any = None,
        to_date: Any = None,
    ) -> VendorLedger:
        """
        Restrict a ledger to ``[from_date, to_date]``.

        Entries before ``from_date`` (and undated entries) fold into the
        opening balance; entries after ``to_date`` are dropped.  Running
        balances and totals are recomputed for the remaining entries.
        """
        start = parse_date(from_date)
        end = parse_date(to_date)
        if start is None and end is None:
            return ledger

        opening = ledger.opening_balance
        kept: list[LedgerEntry] = []
        for entry in ledger.entries:
            if start is not None and (entry.date is None or entry.date < start):
                opening += entry.net
                continue
            if end is not None and entry.date is not None and entry.date > end:
                continue
            kept.append(entry)

        ordered, totals = _with_running_balances(kept, opening)
        logger.info("vendor_ledger_filtered", extra={
            "vendor_id": ledger.vendor.id,
            "period_from": start,
            "period_to": end,
            "entry_count": len(ordered),
            "opening_balance": str(opening),
        })
        return VendorLedger(
            vendor=ledger.vendor,
            entries=ordered,
            totals=totals,
            opening_balance=opening,
            has_opening_balance=start is not None or ledger.has_opening_balance,
            period_from=start,
            period_to=end,
        )

    # ------------------------------------------------------------------
    # Entry construction
    # ------------------------------------------------------------------

    def _entry_date(self, value: Any, category: EntryCategory, source_id: str) -> date | None:
        parsed = parse_date(value)
        if parsed is None:
            logger.warning("ledger_entry_date_unparseable", extra={
                "category": category.value,
                "source_id": source_id,
                "raw_date": repr(value),
            })
        return parsed

    def _delivery_entry(self, delivery: Obligation) -> LedgerEntry:
        labels = self._labels
        if delivery.reference:
            particulars = f"{labels.invoice}: {delivery.reference}"
        else:
            particulars = f"{labels.delivery} #{_short_id(delivery.id) or labels.unknown}"
        return LedgerEntry(
            date=self._entry_date(delivery.due_date, EntryCategory.DELIVERY, delivery.id),
            particulars=particulars,
            reference=delivery.reference,
            debit=delivery.total_amount,
            credit=ZERO,
            running_balance=ZERO,
            category=EntryCategory.DELIVERY,
            source_id=delivery.id,
        )

    @staticmethod
    def _return_posts(vendor_return: VendorReturn) -> bool:
        return vendor_return.is_settled and vendor_return.processing_option in (
            ProcessingOption.CREDIT_NOTE,
            ProcessingOption.REFUND,
        )

    def _return_entry(self, vendor_return: VendorReturn) -> LedgerEntry:
        labels = self._labels
        short = _short_id(vendor_return.id)
        if vendor_return.processing_option == ProcessingOption.CREDIT_NOTE:
            particulars = f"{labels.credit_note_for_return} #{short}"
        else:
            particulars = f"{labels.goods_returned} #{short}"
        return LedgerEntry(
            date=self._entry_date(
                vendor_return.effective_date, EntryCategory.RETURN, vendor_return.id
            ),
            particulars=particulars,
            reference=f"RET-{short}",
            debit=ZERO,
            credit=vendor_return.total_return_amount,
            running_balance=ZERO,
            category=EntryCategory.RETURN,
            source_id=vendor_return.id,
            details=vendor_return.reason,
        )

    @staticmethod
    def _is_return_related(
        credit_note: CreditNote,
        returns: Iterable[VendorReturn],
    ) -> bool:
        return any(
            r.processing_option == ProcessingOption.CREDIT_NOTE
            and r.reason == credit_note.reason
            and r.total_return_amount == credit_note.credit_amount
            for r in returns
        )

    def _credit_note_entry(self, credit_note: CreditNote) -> LedgerEntry:
        return LedgerEntry(
            date=self._entry_date(
                credit_note.issue_date, EntryCategory.CREDIT_NOTE, credit_note.id
            ),
            particulars=f"{self._labels.credit_note_issued} - {credit_note.reason}",
            reference=credit_note.reference or f"CN-{_short_id(credit_note.id)}",
            debit=ZERO,
            credit=credit_note.credit_amount,
            running_balance=ZERO,
            category=EntryCategory.CREDIT_NOTE,
            source_id=credit_note.id,
            details=credit_note.reason,
        )

    def _usage_entry(self, usage: CreditNoteUsage) -> LedgerEntry:
        reference = usage.credit_note_reference or f"CN-{_short_id(usage.credit_note_id)}"
        return LedgerEntry(
            date=self._entry_date(
                usage.used_date, EntryCategory.CREDIT_NOTE_USAGE, usage.id
            ),
            particulars=self._labels.credit_note_used,
            reference=reference,
            debit=usage.used_amount,
            credit=ZERO,
            running_balance=ZERO,
            category=EntryCategory.CREDIT_NOTE_USAGE,
            source_id=usage.id,
            details=usage.description or self._labels.applied_to_payment,
        )

    def _payment_entry(self, payment: Payment) -> LedgerEntry:
        labels = self._labels
        return LedgerEntry(
            date=self._entry_date(payment.payment_date, EntryCategory.PAYMENT, payment.id),
            particulars=f"{labels.payment_made} - {payment.reference or labels.payment}",
            reference=payment.reference,
            debit=ZERO,
            credit=payment.amount,
            running_balance=ZERO,
            category=EntryCategory.PAYMENT,
            source_id=payment.id,
            details=payment.notes,
        )

    def _refund_entry(self, refund: VendorRefund) -> LedgerEntry:
        reference = refund.reference or f"REF-{_short_id(refund.id)}"
        return LedgerEntry(
            date=self._entry_date(refund.refund_date, EntryCategory.REFUND, refund.id),
            particulars=f"{self._labels.refund_received} - {reference}",
            reference=reference,
            debit=refund.refund_amount,
            credit=ZERO,
            running_balance=ZERO,
            category=EntryCategory.REFUND,
            source_id=refund.id,
            details=refund.notes,
        )


def build_ledger(
    vendor: Vendor,
    deliveries: Sequence[Obligation] = (),
    payments: Sequence[Payment] = (),
    returns: Sequence[VendorReturn] = (),
    credit_notes: Sequence[CreditNote] = (),
    refunds: Sequence[VendorRefund] = (),
    credit_note_usages: Sequence[CreditNoteUsage] = (),
    opening_balance: Decimal | int | str = ZERO,
    particulars: LedgerParticulars | None = None,
) -> VendorLedger:
    """Convenience wrapper around ``LedgerBuilder.build``."""
    return LedgerBuilder(particulars).build(
        vendor,
        deliveries,
        payments,
        returns,
        credit_notes,
        refunds,
        credit_note_usages=credit_note_usages,
        opening_balance=opening_balance,
    )


def filter_ledger(ledger: VendorLedger, from_date: Any = None, to_date: Any = None) -> VendorLedger:
    """Convenience wrapper around ``LedgerBuilder.filter``."""
    return LedgerBuilder().filter(ledger, from_date, to_date)
