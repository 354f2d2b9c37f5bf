"""Domain Clock - source of "today" for date rules"""
from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone


class Clock(ABC):
    """Supplies the current calendar date and timestamp"""

    @abstractmethod
    def today(self) -> date:
        pass

    @abstractmethod
    def now(self) -> datetime:
        pass


class SystemClock(Clock):
    """Wall clock, in UTC"""

    def today(self) -> date:
        return datetime.now(timezone.utc).date()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock pinned to a given date, for tests and replays"""

    def __init__(self, fixed: date):
        if isinstance(fixed, datetime):
            fixed = fixed.date()
        self._today = fixed

    def today(self) -> date:
        return self._today

    def now(self) -> datetime:
        return datetime.combine(self._today, datetime.min.time(), tzinfo=timezone.utc)

    def advance(self, days: int = 1) -> None:
        self._today = self._today + timedelta(days=days)


_default_clock: Clock = SystemClock()


def get_clock() -> Clock:
    return _default_clock


def set_clock(clock: Clock) -> None:
    """Replace the process-wide default clock"""
    global _default_clock
    _default_clock = clock
