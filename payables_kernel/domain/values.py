"""
Values -- Decimal money helpers shared by every engine.

Responsibility:
    Normalize collaborator amounts and dates into ``Decimal`` and ``date``,
    and hold the one-minor-unit tolerance used for every "fully allocated"
    comparison.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - All monetary amounts are ``Decimal``; floats are converted through
      ``str()`` so that ``0.1`` becomes ``Decimal("0.1")`` and not its
      binary expansion.
    - Threshold comparisons use an absolute tolerance of 0.01, never
      exact equality, because amounts originate from user-typed decimals
      and running sums.

Failure modes:
    - ValueError from ``to_decimal`` on non-numeric input.
    - ``parse_date`` never raises; unparseable input yields ``None``.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")

# One currency minor unit.
ALLOCATION_TOLERANCE = Decimal("0.01")


def to_decimal(value: Any) -> Decimal:
    """
    Convert a collaborator amount to ``Decimal``.

    ``None`` and empty strings are treated as zero.

    Raises:
        ValueError: if ``value`` is not numeric (including NaN/Infinity).
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    return result


def is_within_tolerance(
    a: Decimal,
    b: Decimal,
    tolerance: Decimal = ALLOCATION_TOLERANCE,
) -> bool:
    """True when ``|a - b| < tolerance``."""
    return abs(a - b) < tolerance


def quantize_places(amount: Decimal, places: int) -> Decimal:
    """Round half-up to ``places`` decimal places."""
    exponent = Decimal(1).scaleb(-places)
    return amount.quantize(exponent, rounding=ROUND_HALF_UP)


def format_fixed(amount: Decimal, places: int = 2) -> str:
    """
    Format ``amount`` with exactly ``places`` decimals.

    A result that rounds to zero is always rendered unsigned.
    """
    rounded = quantize_places(amount, places)
    if rounded == ZERO:
        rounded = abs(rounded)
    return f"{rounded:.{places}f}"


def parse_date(value: Any) -> date | None:
    """
    Parse a collaborator date.

    Accepts ``date``, ``datetime`` (date part kept) and ISO-8601 strings,
    including PocketBase's ``"2024-01-15 10:30:00.000Z"`` form.

    Postconditions:
        Returns ``None`` for missing or unparseable input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None
