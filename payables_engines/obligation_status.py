"""
Module: payables_engines.obligation_status
Responsibility:
    Derive paid amount, outstanding amount and payment status for a
    delivery or service booking from the append-only set of payment
    allocation records.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payables_kernel/domain.

Invariants enforced:
    - paid(o) = sum of allocated_amount over allocations referencing o.
      No clamping: negative allocations pass through arithmetically.
    - outstanding(o) = max(0, total(o) - paid(o)).
    - paid(o) >= total(o)  <=>  status == paid.  Overpayment is reported as
      "paid", never as an error.
    - Purity: no clock access, no I/O.

Failure modes:
    - None.  Missing or malformed allocation collections degrade to
      "no allocations" because these values feed read-only list views.

Usage:
    from payables_engines.obligation_status import ObligationStatusCalculator

    calc = ObligationStatusCalculator()
    status = calc.payment_status(delivery, allocations)
    rows = calc.enhance(deliveries, allocations)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from payables_engines.tracer import traced_engine
from payables_kernel.domain.records import Obligation, PaymentAllocation, PaymentStatus
from payables_kernel.domain.values import ZERO
from payables_kernel.logging_config import get_logger

logger = get_logger("engines.obligation_status")

_STATUS_CSS_CLASSES = {
    PaymentStatus.PENDING: "status-pending",
    PaymentStatus.PARTIAL: "status-partial",
    PaymentStatus.PAID: "status-paid",
}

_STATUS_LABEL_KEYS = {
    PaymentStatus.PENDING: "common.pending",
    PaymentStatus.PARTIAL: "common.partial",
    PaymentStatus.PAID: "common.paid",
}


@dataclass(frozen=True)
class ObligationWithStatus:
    """
    An obligation enriched with its derived payment fields.

    Contract:
        Frozen snapshot; recomputed on demand, never stored.
    Guarantees:
        - ``outstanding_amount == max(0, total - paid_amount)``.
    """

    obligation: Obligation
    payment_status: PaymentStatus
    paid_amount: Decimal
    outstanding_amount: Decimal

    @property
    def id(self) -> str:
        return self.obligation.id

    @property
    def total_amount(self) -> Decimal:
        return self.obligation.total_amount


def _as_allocations(allocations: Any) -> Sequence[PaymentAllocation]:
    """Normalize the collaborator's allocation collection."""
    if not isinstance(allocations, (list, tuple)):
        if allocations is not None:
            logger.warning("obligation_status_allocations_not_a_sequence", extra={
                "received_type": type(allocations).__name__,
            })
        return ()
    return allocations


class ObligationStatusCalculator:
    """
    Derive payment fields for obligations.

    Contract:
        Pure functions; safe to call on every render.
    Guarantees:
        - Never raises for any allocation collection.
        - Allocations that are not ``PaymentAllocation`` records are ignored.
    Non-goals:
        - Does not validate that allocations sum to at most the total;
          overpayment is a status, not an error.
    """

    def paid_amount(self, obligation: Obligation, allocations: Any) -> Decimal:
        """Sum of allocated amounts referencing ``obligation``."""
        total = ZERO
        for allocation in _as_allocations(allocations):
            if isinstance(allocation, PaymentAllocation) and allocation.references(obligation):
                total += allocation.allocated_amount
        return total

    def outstanding_amount(self, obligation: Obligation, allocations: Any) -> Decimal:
        """Clamped remaining amount: ``max(0, total - paid)``."""
        paid = self.paid_amount(obligation, allocations)
        return max(ZERO, obligation.total_amount - paid)

    def payment_status(self, obligation: Obligation, allocations: Any) -> PaymentStatus:
        """pending when nothing paid, paid when paid >= total, else partial."""
        paid = self.paid_amount(obligation, allocations)
        return self._status_for(paid, obligation.total_amount)

    @traced_engine("obligation_status", "1.0")
    def enhance(
        self,
        obligations: Any,
        allocations: Any,
    ) -> tuple[ObligationWithStatus, ...]:
        """
        Compute all three derived fields per obligation in one pass.

        Empty or non-sequence ``obligations`` yields an empty tuple.
        """
        if not isinstance(obligations, (list, tuple)) or not obligations:
            return ()

        allocation_list = _as_allocations(allocations)
        # Untyped allocations are keyed by id alone and fund any type.
        paid_by_key: dict[tuple[str | None, str], Decimal] = {}
        for allocation in allocation_list:
            if not isinstance(allocation, PaymentAllocation):
                continue
            kind = allocation.obligation_type
            key = (kind.value if kind is not None else None, allocation.obligation_id)
            paid_by_key[key] = paid_by_key.get(key, ZERO) + allocation.allocated_amount

        enhanced: list[ObligationWithStatus] = []
        for obligation in obligations:
            paid = paid_by_key.get(
                (obligation.obligation_type.value, obligation.id), ZERO
            ) + paid_by_key.get((None, obligation.id), ZERO)
            enhanced.append(
                ObligationWithStatus(
                    obligation=obligation,
                    payment_status=self._status_for(paid, obligation.total_amount),
                    paid_amount=paid,
                    outstanding_amount=max(ZERO, obligation.total_amount - paid),
                )
            )

        logger.debug("obligations_enhanced", extra={
            "obligation_count": len(enhanced),
            "allocation_count": len(allocation_list),
        })
        return tuple(enhanced)

    @staticmethod
    def _status_for(paid: Decimal, total: Decimal) -> PaymentStatus:
        if paid <= ZERO:
            return PaymentStatus.PENDING
        if paid >= total:
            return PaymentStatus.PAID
        return PaymentStatus.PARTIAL


def status_css_class(status: PaymentStatus | str) -> str:
    """CSS class used by list views for a payment status."""
    return _STATUS_CSS_CLASSES[PaymentStatus(status)]


def status_label_key(status: PaymentStatus | str) -> str:
    """i18n key for a payment status label."""
    return _STATUS_LABEL_KEYS[PaymentStatus(status)]


def enhance_obligations(obligations: Any, allocations: Any) -> tuple[ObligationWithStatus, ...]:
    """Module-level shortcut for ``ObligationStatusCalculator().enhance``."""
    return ObligationStatusCalculator().enhance(obligations, allocations)
