"""
Module: payables_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for higher
    layers (payables_services, payables_modules).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import payables_kernel (domain, logging) and sibling engines.
    MUST NOT import payables_services or payables_modules.

Invariants enforced:
    - Purity: engines NEVER read the clock.  Dates arrive as parameters.
    - Decimal-only arithmetic for every monetary amount.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entry points are wrapped by ``@traced_engine`` (see
    ``payables_engines.tracer``), emitting PAYABLES_ENGINE_TRACE records.

Usage:
    from payables_engines import AllocationDistributor, LedgerBuilder
    from payables_engines import ObligationStatusCalculator
"""

from payables_kernel.logging_config import get_logger

logger = get_logger("engines")

from payables_engines.distribution import (
    AllocationDistributor,
    AllocationDraft,
    AllocationLine,
    AllocationState,
    AllocationSummary,
    derive_state,
)
from payables_engines.ledger import (
    EntryCategory,
    LedgerBuilder,
    LedgerEntry,
    LedgerParticulars,
    LedgerTotals,
    VendorLedger,
    build_ledger,
    filter_ledger,
)
from payables_engines.obligation_status import (
    ObligationStatusCalculator,
    ObligationWithStatus,
    enhance_obligations,
    status_css_class,
    status_label_key,
)
from payables_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    # Distribution
    "AllocationDistributor",
    "AllocationDraft",
    "AllocationLine",
    "AllocationState",
    "AllocationSummary",
    "derive_state",
    # Ledger
    "EntryCategory",
    "LedgerBuilder",
    "LedgerEntry",
    "LedgerParticulars",
    "LedgerTotals",
    "VendorLedger",
    "build_ledger",
    "filter_ledger",
    # Obligation status
    "ObligationStatusCalculator",
    "ObligationWithStatus",
    "enhance_obligations",
    "status_css_class",
    "status_label_key",
    # Tracer
    "compute_input_fingerprint",
    "traced_engine",
]
