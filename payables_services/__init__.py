"""
payables_services -- Stateful orchestration over the pure engines.

Responsibility:
    Session objects that own transient, per-interaction state (such as a
    payment being entered) and drive the engines on each edit.

Architecture position:
    Services -- may import payables_engines and payables_kernel.
    Engines and kernel never import from this package.
"""

from payables_kernel.logging_config import get_logger

logger = get_logger("services")

from payables_services.payment_entry import (
    EntryDirection,
    PaymentDraft,
    PaymentEntrySession,
)

__all__ = [
    "EntryDirection",
    "PaymentDraft",
    "PaymentEntrySession",
]
