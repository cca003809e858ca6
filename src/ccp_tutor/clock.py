"""Time sources for the progress engine.

Every "what time is it" question in the engine goes through a clock object so
that streaks, badges and review scheduling can be tested at fixed instants.
Day boundaries and badge hours use the clock's zone: device-local time unless a
zone is configured.
"""
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional, Protocol
from zoneinfo import ZoneInfo


class Clock(Protocol):
    def now(self) -> datetime: ...

    def today(self) -> date: ...

    def local_hour(self) -> int: ...


class SystemClock:
    """Wall clock, in the device zone or a named IANA zone."""

    def __init__(self, timezone: Optional[str] = None):
        self.tz: Optional[tzinfo] = ZoneInfo(timezone) if timezone else None

    def now(self) -> datetime:
        if self.tz is None:
            return datetime.now().astimezone()
        return datetime.now(self.tz)

    def today(self) -> date:
        return self.now().date()

    def local_hour(self) -> int:
        return self.now().hour


class FixedClock:
    """Clock frozen at a given aware instant; move it with ``advance``."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            raise ValueError("FixedClock needs a timezone-aware datetime")
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def today(self) -> date:
        return self.instant.date()

    def local_hour(self) -> int:
        return self.instant.hour

    def advance(self, **kwargs) -> datetime:
        """Move forward by ``timedelta(**kwargs)`` and return the new instant."""
        self.instant = self.instant + timedelta(**kwargs)
        return self.instant
