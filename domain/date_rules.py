"""Date rules for reservations

Pure functions validating and comparing check-in / check-out intervals.
Every value is reduced to a calendar date before comparison, so a time of
day never changes a night count or an overlap result. Intervals are
half-open: ``[check_in, check_out)``. A stay that ends on the day another
starts does not overlap it.
"""
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional, Union

from domain.clock import Clock, get_clock
from domain.exceptions import InvalidDateRange, PastCheckInDate

DateLike = Union[date, datetime, str]


def to_calendar_date(value: Optional[DateLike], field: str = "date") -> date:
    """Normalize ``value`` to a calendar date (midnight, UTC for aware datetimes)"""
    if value is None:
        raise InvalidDateRange(f"{_label(field)} is required", field=field)

    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return to_calendar_date(datetime.fromisoformat(text.replace("Z", "+00:00")), field)
        except ValueError:
            raise InvalidDateRange(f"{_label(field)} must be a valid date", field=field, value=value)

    raise InvalidDateRange(f"{_label(field)} must be a valid date", field=field, value=repr(value))


def _label(field: str) -> str:
    return field.replace("_", "-").capitalize()


def is_valid(check_in: Optional[DateLike], check_out: Optional[DateLike]) -> bool:
    """Check a stay interval; raises ``InvalidDateRange`` instead of returning False"""
    start = to_calendar_date(check_in, "check_in")
    end = to_calendar_date(check_out, "check_out")

    if end <= start:
        raise InvalidDateRange(
            "Check-out date must be after check-in date (minimum stay: 1 night)",
            check_in=start,
            check_out=end,
        )
    return True


def night_count(check_in: DateLike, check_out: DateLike) -> int:
    """Number of nights between the two calendar dates"""
    is_valid(check_in, check_out)
    return (to_calendar_date(check_out) - to_calendar_date(check_in)).days


def overlaps(range_a, range_b) -> bool:
    """Half-open interval intersection of two stays.

    Accepts anything with ``check_in`` / ``check_out`` attributes (a
    ``DateRange`` or a reservation's range). Both ranges must be valid.
    """
    is_valid(range_a.check_in, range_a.check_out)
    is_valid(range_b.check_in, range_b.check_out)

    a_in, a_out = to_calendar_date(range_a.check_in), to_calendar_date(range_a.check_out)
    b_in, b_out = to_calendar_date(range_b.check_in), to_calendar_date(range_b.check_out)
    return a_in < b_out and b_in < a_out


def is_in_future(value: DateLike, clock: Optional[Clock] = None) -> bool:
    """True if the date is strictly after today; today itself is not in the future"""
    today = (clock or get_clock()).today()
    return to_calendar_date(value) > today


def is_valid_check_in(value: DateLike, clock: Optional[Clock] = None) -> bool:
    today = (clock or get_clock()).today()
    check_in = to_calendar_date(value, "check_in")
    if check_in < today:
        raise PastCheckInDate(check_in, today)
    return True


def ensure_stay_limits(
    check_in: DateLike,
    check_out: DateLike,
    max_nights: int,
    max_advance_days: int,
    clock: Optional[Clock] = None,
) -> None:
    """Reject stays longer than ``max_nights`` or booked too far ahead"""
    nights = night_count(check_in, check_out)
    if nights > max_nights:
        raise InvalidDateRange(
            f"Maximum stay is {max_nights} nights",
            nights=nights,
            max_nights=max_nights,
        )

    today = (clock or get_clock()).today()
    start = to_calendar_date(check_in)
    if (start - today).days > max_advance_days:
        raise InvalidDateRange(
            f"Check-in date cannot be more than {max_advance_days} days ahead",
            check_in=start,
            max_advance_days=max_advance_days,
        )


def each_day(start: DateLike, end: DateLike) -> Iterator[date]:
    """Every calendar day from ``start`` to ``end``, both inclusive"""
    current = to_calendar_date(start, "start_date")
    last = to_calendar_date(end, "end_date")
    while current <= last:
        yield current
        current += timedelta(days=1)
