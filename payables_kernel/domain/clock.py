"""
Clock -- injectable time source.

Responsibility:
    Engines never read the time.  The export service (the "generated"
    stamp) and the payment entry session (default payment date) take a
    ``Clock`` so tests can pin both.

Architecture position:
    Kernel > Domain.  ``SystemClock`` is the only place that reads the
    system time.

Invariants enforced:
    - ``now()`` is timezone-aware.
    - ``today()`` is the calendar date of ``now()`` in the clock's site
      timezone, so a payment entered at 01:00 in Pune is dated that day
      even though it is still the previous day in UTC.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta, tzinfo


class Clock(ABC):
    """
    Time source with a site timezone.

    Contract:
        Receivers get a Clock via constructor injection and call ``now()``
        or ``today()``; they never call ``datetime.now()`` themselves.
    """

    def __init__(self, site_tz: tzinfo = UTC):
        self.site_tz = site_tz

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().astimezone(self.site_tz).date()


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Clock frozen at a given instant until moved with ``set_time``/``advance``.

    Naive datetimes are taken as UTC.
    """

    def __init__(self, fixed_time: datetime | None = None, site_tz: tzinfo = UTC):
        super().__init__(site_tz)
        self._time = self._aware(fixed_time or datetime(2024, 1, 1, 12, 0, tzinfo=UTC))

    @staticmethod
    def _aware(value: datetime) -> datetime:
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)

    def now(self) -> datetime:
        return self._time

    def set_time(self, time: datetime) -> None:
        self._time = self._aware(time)

    def advance(self, seconds: int = 1) -> None:
        self._time += timedelta(seconds=seconds)
