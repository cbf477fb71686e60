"""
Module: payables_engines.distribution
Responsibility:
    Spread one payment across a vendor's outstanding obligations during a
    payment-entry session, honoring selected credit notes, and derive the
    tri-state (unchecked / partial / checked) status of every line.

    Two dual operations run over a fixed, date-ordered line tuple:
      * ``distribute``  -- amount-driven: payment amount -> line allocations
      * ``recompute``   -- selection-driven: line allocations -> amount
    The caller invokes whichever matches the control the user touched.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payables_kernel/domain.

Invariants enforced:
    - Greedy oldest-first: line[i] is saturated before line[i+1] receives
      anything; no balancing pass.
    - After ``distribute(a, lines, [])``:
      sum(allocated) == min(max(a, 0), sum(outstanding)).
    - Idempotence: every distribute call resets all lines first, so
      repeated calls with identical inputs yield identical lines.
    - state == checked  <=>  |allocated - outstanding| < 0.01
      state == unchecked <=> allocated == 0, otherwise partial.
    - Purity: lines are frozen; every operation returns a new tuple.

Failure modes:
    - None.  Negative, zero or non-numeric amounts take the "clear all"
      branch; unknown line ids leave the tuple unchanged.  Validation
      problems are returned as a list of messages, never raised.

Usage:
    from payables_engines.distribution import AllocationDistributor

    distributor = AllocationDistributor()
    lines = distributor.build_lines(obligations, vendor_id="v-1")
    lines = distributor.distribute(Decimal("200"), lines, credit_notes)
    errors = distributor.validate(Decimal("200"), lines)
    drafts = distributor.to_persistable(lines)
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from payables_engines.obligation_status import ObligationWithStatus
from payables_engines.tracer import traced_engine
from payables_kernel.domain.records import (
    CreditNote,
    Obligation,
    ObligationType,
    PaymentStatus,
)
from payables_kernel.domain.values import (
    ALLOCATION_TOLERANCE,
    ZERO,
    is_within_tolerance,
    to_decimal,
)
from payables_kernel.logging_config import get_logger

logger = get_logger("engines.distribution")

_HUNDRED = Decimal("100")
_HALF = Decimal("0.5")


class AllocationState(str, Enum):
    """Tri-state checkbox state of one allocation line."""

    UNCHECKED = "unchecked"
    PARTIAL = "partial"
    CHECKED = "checked"


def derive_state(allocated: Decimal, outstanding: Decimal) -> AllocationState:
    """State of a line holding ``allocated`` against ``outstanding``."""
    if allocated == ZERO:
        return AllocationState.UNCHECKED
    if is_within_tolerance(allocated, outstanding):
        return AllocationState.CHECKED
    return AllocationState.PARTIAL


@dataclass(frozen=True)
class AllocationLine:
    """
    Transient per-session view of one obligation.

    Contract:
        Frozen; lives for one payment-entry session only.
    Guarantees:
        - ``state`` always agrees with ``derive_state(allocated, outstanding)``
          when built through ``with_allocation``.
    Non-goals:
        - Not persisted; ``AllocationDistributor.to_persistable`` projects
          the funded lines into ``AllocationDraft`` records.
    """

    obligation_id: str
    obligation_type: ObligationType
    total_amount: Decimal
    outstanding_amount: Decimal
    paid_amount: Decimal = ZERO
    allocated_amount: Decimal = ZERO
    state: AllocationState = AllocationState.UNCHECKED
    due_date: date | None = None
    reference: str = ""

    def with_allocation(self, amount: Decimal) -> AllocationLine:
        """New line carrying ``amount`` with its state re-derived."""
        return replace(
            self,
            allocated_amount=amount,
            state=derive_state(amount, self.outstanding_amount),
        )

    def cleared(self) -> AllocationLine:
        return replace(self, allocated_amount=ZERO, state=AllocationState.UNCHECKED)

    def matches(self, obligation_id: str, obligation_type: ObligationType | None) -> bool:
        if self.obligation_id != obligation_id:
            return False
        return obligation_type is None or self.obligation_type == obligation_type


@dataclass(frozen=True)
class AllocationDraft:
    """A funded line, ready for the collaborator to persist."""

    obligation_id: str
    obligation_type: ObligationType
    allocated_amount: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "obligation_id": self.obligation_id,
            "type": self.obligation_type.value,
            "allocated_amount": self.allocated_amount,
        }


@dataclass(frozen=True)
class AllocationSummary:
    """Derived figures shown next to the allocation table."""

    amount: Decimal
    credit_note_amount: Decimal
    total_allocated: Decimal
    account_payment_amount: Decimal
    unallocated_amount: Decimal
    allocation_percentage: int
    is_fully_allocated: bool
    is_over_allocated: bool


def _coerce_amount(amount: Any) -> Decimal:
    try:
        return to_decimal(amount)
    except ValueError:
        logger.warning("distribution_amount_not_numeric", extra={
            "amount": repr(amount),
        })
        return ZERO


def _sort_key(line: AllocationLine) -> tuple[bool, date]:
    # Undated obligations go last.
    return (line.due_date is None, line.due_date or date.min)


class AllocationDistributor:
    """
    Allocate a payment across allocation lines, oldest obligation first.

    Contract:
        Pure functions over frozen line tuples.  No I/O.
    Guarantees:
        - Never raises for out-of-range input.
        - Every "fully allocated" comparison uses the 0.01 tolerance.
    Non-goals:
        - Does not decide which direction to run; the caller (see
          ``payables_services.payment_entry``) invokes ``distribute`` or
          ``recompute`` explicitly.
        - Does not persist anything.
    """

    # ------------------------------------------------------------------
    # Session setup
    # ------------------------------------------------------------------

    def build_lines(
        self,
        obligations: Iterable[Obligation | ObligationWithStatus],
        vendor_id: str,
    ) -> tuple[AllocationLine, ...]:
        """
        Create unchecked lines for the vendor's unpaid obligations.

        Obligations already marked paid, or with nothing outstanding, are
        skipped.  Lines are sorted by due date (delivery date or booking
        start date), ties keeping input order.
        """
        lines: list[AllocationLine] = []
        for item in obligations or ():
            if isinstance(item, ObligationWithStatus):
                obligation = item.obligation
                paid = item.paid_amount
                status = item.payment_status.value
            else:
                obligation = item
                paid = item.paid_amount
                status = item.payment_status

            if obligation.vendor_id != vendor_id or status == PaymentStatus.PAID:
                continue
            outstanding = obligation.total_amount - paid
            if outstanding <= ZERO:
                continue
            lines.append(
                AllocationLine(
                    obligation_id=obligation.id,
                    obligation_type=obligation.obligation_type,
                    total_amount=obligation.total_amount,
                    paid_amount=paid,
                    outstanding_amount=outstanding,
                    due_date=obligation.due_date,
                    reference=obligation.reference,
                )
            )

        lines.sort(key=_sort_key)
        logger.info("allocation_lines_built", extra={
            "vendor_id": vendor_id,
            "line_count": len(lines),
        })
        return tuple(lines)

    # ------------------------------------------------------------------
    # Amount-driven direction
    # ------------------------------------------------------------------

    @staticmethod
    def credit_note_amount(credit_notes: Iterable[CreditNote] | None) -> Decimal:
        """Sum of the balances of the selected credit notes."""
        return sum((cn.balance for cn in credit_notes or ()), ZERO)

    @traced_engine("distribution", "1.0", fingerprint_fields=("amount",))
    def distribute(
        self,
        amount: Decimal | int | str,
        lines: Sequence[AllocationLine],
        credit_notes: Iterable[CreditNote] | None = (),
    ) -> tuple[AllocationLine, ...]:
        """
        Spread ``amount`` (minus selected credit notes) over ``lines``.

        Steps:
            1. credit = sum of selected credit note balances
            2. remaining = max(0, amount - credit)
            3. reset every line to unchecked / 0
            4. walk lines in order, each taking min(remaining, outstanding)
        """
        total = _coerce_amount(amount)
        cleared = [line.cleared() for line in lines]
        if total <= ZERO:
            return tuple(cleared)

        remaining = max(ZERO, total - self.credit_note_amount(credit_notes))

        result: list[AllocationLine] = []
        for line in cleared:
            if remaining <= ZERO:
                result.append(line)
                continue
            take = min(remaining, line.outstanding_amount)
            if take > ZERO:
                line = line.with_allocation(take)
                remaining -= take
            result.append(line)

        logger.debug("distribution_completed", extra={
            "amount": str(total),
            "undistributed": str(remaining),
            "lines_funded": sum(1 for line in result if line.allocated_amount > ZERO),
            "line_count": len(result),
        })
        return tuple(result)

    def pay_all_outstanding(
        self,
        lines: Sequence[AllocationLine],
        credit_notes: Iterable[CreditNote] | None = (),
    ) -> tuple[tuple[AllocationLine, ...], Decimal]:
        """
        Check every line at its full outstanding amount.

        Returns:
            ``(lines, amount)`` with amount = sum(outstanding) + credit.
        """
        checked = tuple(
            replace(
                line,
                allocated_amount=line.outstanding_amount,
                state=AllocationState.CHECKED,
            )
            for line in lines
        )
        total_outstanding = sum((line.outstanding_amount for line in lines), ZERO)
        return checked, total_outstanding + self.credit_note_amount(credit_notes)

    # ------------------------------------------------------------------
    # Selection-driven direction
    # ------------------------------------------------------------------

    def recompute(
        self,
        lines: Sequence[AllocationLine],
        credit_notes: Iterable[CreditNote] | None = (),
    ) -> Decimal:
        """Payment amount implied by the current line selections."""
        return self.total_allocated(lines) + self.credit_note_amount(credit_notes)

    def set_line(
        self,
        lines: Sequence[AllocationLine],
        obligation_id: str,
        allocated_amount: Decimal | int | str,
        obligation_type: ObligationType | None = None,
    ) -> tuple[AllocationLine, ...]:
        """
        Set one line's allocation by hand; its state is re-derived.

        Negative input is treated as zero.  Amounts above the outstanding
        balance are kept so that ``validate`` can report them.
        """
        amount = max(ZERO, _coerce_amount(allocated_amount))
        return tuple(
            line.with_allocation(amount)
            if line.matches(obligation_id, obligation_type)
            else line
            for line in lines
        )

    def toggle_line(
        self,
        lines: Sequence[AllocationLine],
        obligation_id: str,
        allow_partial: bool = False,
        obligation_type: ObligationType | None = None,
    ) -> tuple[AllocationLine, ...]:
        """
        Advance one line's tri-state checkbox.

        unchecked -> checked (full outstanding)
        checked   -> partial (half outstanding) when ``allow_partial``,
                     otherwise unchecked
        partial   -> unchecked
        """
        result: list[AllocationLine] = []
        for line in lines:
            if not line.matches(obligation_id, obligation_type):
                result.append(line)
                continue
            state = derive_state(line.allocated_amount, line.outstanding_amount)
            if state is AllocationState.UNCHECKED:
                result.append(line.with_allocation(line.outstanding_amount))
            elif state is AllocationState.CHECKED and allow_partial:
                half = (line.outstanding_amount * _HALF).quantize(
                    Decimal("0.01"), rounding=ROUND_HALF_UP
                )
                result.append(line.with_allocation(half))
            else:
                result.append(line.cleared())
        return tuple(result)

    # ------------------------------------------------------------------
    # Derived figures, validation, projection
    # ------------------------------------------------------------------

    @staticmethod
    def total_allocated(lines: Sequence[AllocationLine]) -> Decimal:
        return sum((line.allocated_amount for line in lines), ZERO)

    def summarize(
        self,
        amount: Decimal | int | str,
        lines: Sequence[AllocationLine],
        credit_notes: Iterable[CreditNote] | None = (),
    ) -> AllocationSummary:
        total = _coerce_amount(amount)
        credit = self.credit_note_amount(credit_notes)
        allocated = self.total_allocated(lines)
        unallocated = max(ZERO, total - allocated)
        if total == ZERO:
            percentage = 0
        else:
            percentage = int(
                (allocated / total * _HUNDRED).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
            )
        return AllocationSummary(
            amount=total,
            credit_note_amount=credit,
            total_allocated=allocated,
            account_payment_amount=max(ZERO, total - credit),
            unallocated_amount=unallocated,
            allocation_percentage=percentage,
            is_fully_allocated=is_within_tolerance(unallocated, ZERO),
            is_over_allocated=allocated > total,
        )

    def validate(
        self,
        amount: Decimal | int | str,
        lines: Sequence[AllocationLine],
    ) -> list[str]:
        """
        Check a session before submission.

        All violated rules are reported together, in a stable order.
        """
        total = _coerce_amount(amount)
        allocated = self.total_allocated(lines)
        errors: list[str] = []

        if total <= ZERO:
            errors.append("Payment amount must be greater than 0")
        if allocated > total:
            errors.append("Total allocated amount exceeds payment amount")
        if allocated <= ZERO:
            errors.append(
                "Please allocate payment to at least one delivery or service booking"
            )
        for index, line in enumerate(lines, start=1):
            if line.allocated_amount - line.outstanding_amount >= ALLOCATION_TOLERANCE:
                errors.append(f"Allocation {index} exceeds outstanding amount")

        if errors:
            logger.info("allocation_validation_failed", extra={
                "amount": str(total),
                "total_allocated": str(allocated),
                "error_count": len(errors),
            })
        return errors

    def to_persistable(
        self,
        lines: Sequence[AllocationLine],
    ) -> tuple[AllocationDraft, ...]:
        """Project funded lines into allocation drafts."""
        return tuple(
            AllocationDraft(
                obligation_id=line.obligation_id,
                obligation_type=line.obligation_type,
                allocated_amount=line.allocated_amount,
            )
            for line in lines
            if line.allocated_amount > ZERO
        )
