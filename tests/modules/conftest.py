"""
Fixtures for the vendor ledger export tests.
"""

from datetime import date

import pytest

from payables_engines.ledger import LedgerBuilder
from tests.conftest import make_delivery, make_payment

GENERATED_ON = date(2024, 2, 1)


@pytest.fixture
def sample_ledger(vendor):
    """5000 delivered on Jan 15, 3000 paid on Jan 20."""
    return LedgerBuilder().build(
        vendor,
        deliveries=[make_delivery("del000001", "5000", date(2024, 1, 15), "INV-1")],
        payments=[make_payment("pay000001", "3000", date(2024, 1, 20))],
    )


@pytest.fixture
def long_ledger(vendor):
    """Ledger with ``count`` dated deliveries; call with the wanted count."""

    def _build(count: int):
        deliveries = [
            make_delivery(f"del{i:06d}", "100", date(2024, 1, 1), f"INV-{i}")
            for i in range(count)
        ]
        return LedgerBuilder().build(vendor, deliveries=deliveries)

    return _build
