"""Shared text formatting for the ledger exporters."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from payables_config.schema import LedgerLabels
from payables_kernel.domain.values import ZERO, format_fixed


def format_balance(balance: Decimal, places: int = 2) -> str:
    """``X Cr`` when we owe the vendor (balance >= 0), ``X Dr`` otherwise."""
    side = "Cr" if balance >= ZERO else "Dr"
    return f"{format_fixed(abs(balance), places)} {side}"


def format_amount(amount: Decimal, places: int = 2, blank: str = "") -> str:
    """Positive amounts with fixed decimals; zero renders as ``blank``."""
    if amount > ZERO:
        return format_fixed(amount, places)
    return blank


def format_iso_date(value: date | None) -> str:
    return value.isoformat() if value is not None else ""


def format_period(
    from_date: date | None,
    to_date: date | None,
    labels: LedgerLabels,
) -> str:
    """``<from or Beginning> - <to or Today>``."""
    start = format_iso_date(from_date) or labels.beginning
    end = format_iso_date(to_date) or labels.today
    return f"{start} - {end}"


def final_balance_text(
    balance: Decimal,
    labels: LedgerLabels,
    currency_symbol: str,
    places: int = 2,
) -> str:
    """``₹X Cr (Outstanding)`` or ``₹X Dr (Credit Balance)``."""
    status = labels.outstanding if balance >= ZERO else labels.credit_balance
    return f"{currency_symbol}{format_balance(balance, places)} ({status})"


def balance_summary_text(
    balance: Decimal,
    labels: LedgerLabels,
    currency_symbol: str,
    places: int = 0,
) -> str:
    """``Total Outstanding: ₹X`` or ``Credit Balance: ₹X``."""
    label = labels.total_outstanding if balance >= ZERO else labels.credit_balance
    return f"{label}: {currency_symbol}{format_fixed(abs(balance), places)}"
