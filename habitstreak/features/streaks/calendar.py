"""
Day accounting for streaks.

Every user's "day" is the same interval: the calendar date in one fixed civil
timezone (``STREAK_TIMEZONE``). Day identifiers are ``YYYY-MM-DD`` strings, so
string comparison is chronological comparison.
"""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional, Protocol
from zoneinfo import ZoneInfo

from habitstreak.core.config import settings
from habitstreak.core.errors import ValidationError

DAY_FORMAT = "%Y-%m-%d"


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """Deterministic clock for tests; ``advance`` moves it forward."""

    def __init__(self, moment: datetime):
        self._moment = moment

    def now(self) -> datetime:
        return self._moment

    def set(self, moment: datetime) -> None:
        self._moment = moment

    def advance(self, **kwargs) -> None:
        self._moment = self._moment + timedelta(**kwargs)


def parse_day(value: str) -> str:
    """Validate a day identifier and return its canonical form."""
    if not isinstance(value, str) or len(value) != 10:
        raise ValidationError(f"Invalid day identifier: {value!r}")
    try:
        parsed = datetime.strptime(value, DAY_FORMAT).date()
    except ValueError:
        raise ValidationError(f"Invalid day identifier: {value!r}")
    return parsed.isoformat()


def canonical_days(values: Iterable[str]) -> List[str]:
    """Deduplicate and sort a completion set of day identifiers."""
    return sorted({parse_day(v) for v in values})


class LocalDayCalendar:
    def __init__(self, clock: Optional[Clock] = None, tz_name: Optional[str] = None):
        self.clock = clock or SystemClock()
        self.tz = ZoneInfo(tz_name or settings.STREAK_TIMEZONE)

    def day_of(self, moment: datetime) -> str:
        aware = moment if moment.tzinfo else moment.replace(tzinfo=timezone.utc)
        return aware.astimezone(self.tz).date().isoformat()

    def today(self) -> str:
        return self.day_of(self.clock.now())

    @staticmethod
    def previous_day(day: str) -> str:
        # Calendar arithmetic on the date, not 24h of wall time, so DST shifts are irrelevant
        return (date.fromisoformat(parse_day(day)) - timedelta(days=1)).isoformat()


# Shared calendar used by the services
day_calendar = LocalDayCalendar()
