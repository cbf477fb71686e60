"""
payables_services.payment_entry -- Payment entry session.

Responsibility:
    Hold the transient state of one "record a payment" interaction: the
    vendor, the payment amount, the allocation lines over that vendor's
    unpaid obligations and the selected credit notes.  Every mutation goes
    through ``AllocationDistributor`` so the lines and amount stay
    consistent.

Architecture position:
    Services -- stateful orchestration over the pure distribution engine.
    Each session owns its own line tuple; nothing is shared between
    sessions and nothing is persisted here.

Invariants enforced:
    - Exactly one direction runs per operation, chosen by the operation the
      caller invokes:
        * ``distribute_from_amount``: the amount drives the lines.
        * ``recompute_from_selections`` (and the line edits that call it):
          the lines drive the amount.
    - Changing the credit-note selection re-runs whichever direction was
      used last, so the two never feed back into each other.
    - Selected credit notes always belong to the session's vendor and have
      a positive balance.

Failure modes:
    - None raised.  ``validate`` returns the list of problems; callers
      must check it before persisting ``to_payment_record()``.

Usage:
    session = PaymentEntrySession(vendor_id="v1", account_id="acc1")
    session.load_obligations(obligations_with_status)
    session.distribute_from_amount(Decimal("200"))
    if not session.validate():
        record = session.to_payment_record()
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import uuid4

from payables_engines.distribution import (
    AllocationDistributor,
    AllocationDraft,
    AllocationLine,
    AllocationSummary,
)
from payables_engines.obligation_status import ObligationWithStatus
from payables_kernel.domain.clock import Clock, SystemClock
from payables_kernel.domain.records import CreditNote, Obligation, ObligationType
from payables_kernel.domain.values import ZERO, to_decimal
from payables_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.payment_entry")


class EntryDirection(str, Enum):
    """Which side of the session was last edited by the user."""

    AMOUNT = "amount"
    SELECTION = "selection"


@dataclass(frozen=True)
class PaymentDraft:
    """
    Payment ready to hand to the persistence collaborator.

    ``amount`` is the full payment value; ``account_payment_amount`` is the
    part paid from the account after credit notes.
    """

    vendor_id: str
    account_id: str
    amount: Decimal
    account_payment_amount: Decimal
    payment_date: date
    reference: str
    notes: str
    credit_note_ids: tuple[str, ...]
    allocations: tuple[AllocationDraft, ...]

    @property
    def delivery_ids(self) -> tuple[str, ...]:
        return tuple(
            a.obligation_id for a in self.allocations
            if a.obligation_type is ObligationType.DELIVERY
        )

    @property
    def service_booking_ids(self) -> tuple[str, ...]:
        return tuple(
            a.obligation_id for a in self.allocations
            if a.obligation_type is ObligationType.SERVICE_BOOKING
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "vendor": self.vendor_id,
            "account": self.account_id,
            "amount": self.amount,
            "account_payment_amount": self.account_payment_amount,
            "payment_date": self.payment_date.isoformat(),
            "reference": self.reference,
            "notes": self.notes,
            "credit_notes": list(self.credit_note_ids),
            "deliveries": list(self.delivery_ids),
            "service_bookings": list(self.service_booking_ids),
            "allocations": [a.to_dict() for a in self.allocations],
        }


class PaymentEntrySession:
    """
    Explicit session context for entering one vendor payment.

    Contract:
        All state lives on the instance; operations return ``None`` and the
        caller reads ``amount``, ``lines`` and ``summary()`` afterwards.
    Non-goals:
        - Does not load obligations or credit notes itself.
        - Does not persist the payment.
    """

    def __init__(
        self,
        vendor_id: str,
        account_id: str = "",
        payment_date: date | None = None,
        reference: str = "",
        notes: str = "",
        distributor: AllocationDistributor | None = None,
        clock: Clock | None = None,
    ):
        self._distributor = distributor or AllocationDistributor()
        self._clock = clock or SystemClock()
        self.session_id = str(uuid4())
        self.account_id = account_id
        self.reference = reference
        self.notes = notes
        self._vendor_id = vendor_id
        self._payment_date = payment_date
        self._clear_state()

        logger.info("payment_entry_session_opened", extra={
            "session_id": self.session_id,
            "vendor_id": vendor_id,
        })

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def vendor_id(self) -> str:
        return self._vendor_id

    @property
    def amount(self) -> Decimal:
        return self._amount

    @property
    def lines(self) -> tuple[AllocationLine, ...]:
        return self._lines

    @property
    def direction(self) -> EntryDirection | None:
        return self._direction

    @property
    def payment_date(self) -> date:
        return self._payment_date or self._clock.today()

    @payment_date.setter
    def payment_date(self, value: date) -> None:
        self._payment_date = value

    @property
    def available_credit_notes(self) -> tuple[CreditNote, ...]:
        return self._available_credit_notes

    @property
    def selected_credit_notes(self) -> tuple[CreditNote, ...]:
        selected = set(self._selected_credit_note_ids)
        return tuple(cn for cn in self._available_credit_notes if cn.id in selected)

    def _clear_state(self) -> None:
        self._amount = ZERO
        self._lines: tuple[AllocationLine, ...] = ()
        self._available_credit_notes: tuple[CreditNote, ...] = ()
        self._selected_credit_note_ids: tuple[str, ...] = ()
        self._direction: EntryDirection | None = None

    def _context(self):
        return LogContext.bind(session_id=self.session_id, vendor_id=self._vendor_id)

    # ------------------------------------------------------------------
    # Inputs
    # ------------------------------------------------------------------

    def load_obligations(
        self,
        obligations: Iterable[Obligation | ObligationWithStatus],
    ) -> None:
        """Replace the lines with the vendor's unpaid obligations."""
        with self._context():
            self._lines = self._distributor.build_lines(obligations, self._vendor_id)
            self._rerun()

    def set_available_credit_notes(self, credit_notes: Iterable[CreditNote]) -> None:
        """
        Offer the vendor's usable credit notes.

        Notes of other vendors or without balance are ignored; selections
        that are no longer offered are dropped.
        """
        available = tuple(
            cn for cn in credit_notes or ()
            if cn.vendor_id == self._vendor_id and cn.balance > ZERO
        )
        offered = {cn.id for cn in available}
        self._available_credit_notes = available
        kept = tuple(i for i in self._selected_credit_note_ids if i in offered)
        if kept != self._selected_credit_note_ids:
            self._selected_credit_note_ids = kept
            with self._context():
                self._rerun()

    def select_credit_notes(self, credit_note_ids: Sequence[str]) -> None:
        """Select credit notes by id and re-run the last direction."""
        offered = {cn.id for cn in self._available_credit_notes}
        unknown = [i for i in credit_note_ids if i not in offered]
        if unknown:
            logger.warning("payment_entry_unknown_credit_notes_ignored", extra={
                "session_id": self.session_id,
                "credit_note_ids": unknown,
            })
        self._selected_credit_note_ids = tuple(
            dict.fromkeys(i for i in credit_note_ids if i in offered)
        )
        with self._context():
            self._rerun()

    # ------------------------------------------------------------------
    # Directions
    # ------------------------------------------------------------------

    def distribute_from_amount(self, amount: Decimal | int | str) -> None:
        """The user typed an amount: spread it over the lines."""
        try:
            self._amount = max(ZERO, to_decimal(amount))
        except ValueError:
            logger.warning("payment_entry_amount_not_numeric", extra={
                "session_id": self.session_id,
                "raw_amount": repr(amount),
            })
            self._amount = ZERO
        self._direction = EntryDirection.AMOUNT
        self._lines = self._distributor.distribute(
            self._amount, self._lines, self.selected_credit_notes
        )

    def recompute_from_selections(self) -> None:
        """The user edited the lines: derive the amount from them."""
        self._direction = EntryDirection.SELECTION
        self._amount = self._distributor.recompute(self._lines, self.selected_credit_notes)

    def set_line_amount(
        self,
        obligation_id: str,
        allocated_amount: Decimal | int | str,
        obligation_type: ObligationType | None = None,
    ) -> None:
        self._lines = self._distributor.set_line(
            self._lines, obligation_id, allocated_amount, obligation_type
        )
        self.recompute_from_selections()

    def toggle_line(
        self,
        obligation_id: str,
        allow_partial: bool = False,
        obligation_type: ObligationType | None = None,
    ) -> None:
        self._lines = self._distributor.toggle_line(
            self._lines, obligation_id, allow_partial, obligation_type
        )
        self.recompute_from_selections()

    def pay_all_outstanding(self) -> None:
        """Check every line in full; the amount follows."""
        self._lines, self._amount = self._distributor.pay_all_outstanding(
            self._lines, self.selected_credit_notes
        )
        self._direction = EntryDirection.SELECTION

    def _rerun(self) -> None:
        if self._direction is EntryDirection.AMOUNT:
            self.distribute_from_amount(self._amount)
        elif self._direction is EntryDirection.SELECTION:
            self.recompute_from_selections()

    # ------------------------------------------------------------------
    # Outputs
    # ------------------------------------------------------------------

    def summary(self) -> AllocationSummary:
        return self._distributor.summarize(
            self._amount, self._lines, self.selected_credit_notes
        )

    def validate(self) -> list[str]:
        return self._distributor.validate(self._amount, self._lines)

    def to_payment_record(self) -> PaymentDraft:
        """Project the session into a payment draft."""
        summary = self.summary()
        draft = PaymentDraft(
            vendor_id=self._vendor_id,
            account_id=self.account_id,
            amount=self._amount,
            account_payment_amount=summary.account_payment_amount,
            payment_date=self.payment_date,
            reference=self.reference,
            notes=self.notes,
            credit_note_ids=tuple(cn.id for cn in self.selected_credit_notes),
            allocations=self._distributor.to_persistable(self._lines),
        )
        logger.info("payment_entry_draft_created", extra={
            "session_id": self.session_id,
            "vendor_id": self._vendor_id,
            "amount": str(draft.amount),
            "allocation_count": len(draft.allocations),
            "credit_note_count": len(draft.credit_note_ids),
        })
        return draft

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def change_vendor(self, vendor_id: str) -> None:
        """Switch vendor; lines and credit notes belong to the old one."""
        if vendor_id == self._vendor_id:
            return
        logger.info("payment_entry_vendor_changed", extra={
            "session_id": self.session_id,
            "previous_vendor_id": self._vendor_id,
            "new_vendor_id": vendor_id,
        })
        self._vendor_id = vendor_id
        self._clear_state()

    def reset(self) -> None:
        """Back to a freshly opened session for the same vendor."""
        self.reference = ""
        self.notes = ""
        self._payment_date = None
        self._clear_state()
        logger.info("payment_entry_session_reset", extra={
            "session_id": self.session_id,
        })
