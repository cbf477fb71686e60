"""
Payables domain layer: pure value helpers, typed records, clock.

Nothing in this package performs I/O (``SystemClock`` excepted).
"""

from payables_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payables_kernel.domain.records import (
    CreditNote,
    CreditNoteUsage,
    Obligation,
    ObligationType,
    Payment,
    PaymentAllocation,
    PaymentStatus,
    ProcessingOption,
    ReturnStatus,
    Vendor,
    VendorRefund,
    VendorReturn,
)
from payables_kernel.domain.values import (
    ALLOCATION_TOLERANCE,
    ZERO,
    format_fixed,
    is_within_tolerance,
    parse_date,
    to_decimal,
)

__all__ = [
    # Clock
    "Clock",
    "DeterministicClock",
    "SystemClock",
    # Records
    "CreditNote",
    "CreditNoteUsage",
    "Obligation",
    "ObligationType",
    "Payment",
    "PaymentAllocation",
    "PaymentStatus",
    "ProcessingOption",
    "ReturnStatus",
    "Vendor",
    "VendorRefund",
    "VendorReturn",
    # Values
    "ALLOCATION_TOLERANCE",
    "ZERO",
    "format_fixed",
    "is_within_tolerance",
    "parse_date",
    "to_decimal",
]
