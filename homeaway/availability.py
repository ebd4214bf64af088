"""Booking calendar: blocked periods, disabled days and stay validation.

All values are read as UTC day boundaries. A ``date`` stands for midnight
UTC and a naive ``datetime`` is assumed to already be in UTC.
"""
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Iterator, Optional, Sequence

from .errors import INVALID_DATE_RANGE, ValidationError
from .models import BlockedPeriod, Booking, DateLike, DateRange

ONE_DAY = timedelta(days=1)
EPOCH = date(1970, 1, 1)

DEFAULT_SELECTED = DateRange(from_=None, to=None)


def as_utc_datetime(value: DateLike) -> datetime:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def as_utc_day(value: DateLike) -> date:
    return as_utc_datetime(value).date()


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def calculate_days_between(check_in: DateLike, check_out: DateLike) -> int:
    delta = as_utc_datetime(check_out) - as_utc_datetime(check_in)
    # ceiling division on timedeltas keeps partial days from being dropped
    return -(-delta // ONE_DAY)


def generate_blocked_periods(bookings: Sequence[Booking], today: DateLike) -> list[BlockedPeriod]:
    periods = [BlockedPeriod(from_=EPOCH, to=as_utc_day(today) - ONE_DAY)]
    periods.extend(BlockedPeriod(from_=booking.check_in, to=booking.check_out) for booking in bookings)
    return periods


def _iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += ONE_DAY


def generate_disabled_dates(
    blocked_periods: Iterable[BlockedPeriod],
    today: Optional[DateLike] = None,
) -> dict[str, bool]:
    """Map every blocked ISO day from ``today`` onwards to ``True``."""
    first_day = as_utc_day(today) if today is not None else utc_today()
    disabled: dict[str, bool] = {}
    for period in blocked_periods:
        start = max(as_utc_day(period.from_), first_day)
        for day in _iter_days(start, as_utc_day(period.to)):
            disabled[day.isoformat()] = True
    return disabled


def generate_date_range(date_range: Optional[DateRange]) -> list[str]:
    if date_range is None or date_range.from_ is None or date_range.to is None:
        return []
    return [day.isoformat() for day in _iter_days(as_utc_day(date_range.from_), as_utc_day(date_range.to))]


def overlaps(start_a: DateLike, end_a: DateLike, start_b: DateLike, end_b: DateLike) -> bool:
    return as_utc_datetime(start_a) < as_utc_datetime(end_b) and as_utc_datetime(start_b) < as_utc_datetime(end_a)


def validate_date_range(check_in: DateLike, check_out: DateLike) -> None:
    if as_utc_datetime(check_out) <= as_utc_datetime(check_in):
        raise ValidationError(INVALID_DATE_RANGE, field="check_out")


def ensure_available(bookings: Iterable[Booking], check_in: DateLike, check_out: DateLike) -> None:
    validate_date_range(check_in, check_out)
    for booking in bookings:
        if overlaps(booking.check_in, booking.check_out, check_in, check_out):
            raise ValidationError("Selected dates overlap an existing booking", field="check_in")
