from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import pytest

from homeaway.availability import (
    DEFAULT_SELECTED,
    EPOCH,
    calculate_days_between,
    ensure_available,
    generate_blocked_periods,
    generate_date_range,
    generate_disabled_dates,
    overlaps,
    validate_date_range,
)
from homeaway.errors import ErrorKind, ValidationError
from homeaway.models import BlockedPeriod, Booking, DateRange


def _booking(check_in: date, check_out: date) -> Booking:
    return Booking(
        id="booking_test",
        profile_id="guest",
        property_id="prop",
        check_in=check_in,
        check_out=check_out,
        total_nights=0,
        order_total=0,
    )


def test_default_selection_is_empty() -> None:
    assert DEFAULT_SELECTED.from_ is None
    assert DEFAULT_SELECTED.to is None


@pytest.mark.parametrize("nights", [0, 1, 3, 7, 400])
def test_days_between_counts_whole_days(nights: int) -> None:
    check_in = date(2024, 1, 1)
    assert calculate_days_between(check_in, check_in + timedelta(days=nights)) == nights


def test_days_between_rounds_partial_days_up() -> None:
    check_in = datetime(2024, 1, 1, tzinfo=timezone.utc)
    assert calculate_days_between(check_in, check_in + timedelta(days=2, hours=1)) == 3


def test_days_between_mixes_dates_and_datetimes() -> None:
    assert calculate_days_between(date(2024, 1, 1), datetime(2024, 1, 4)) == 3


def test_blocked_periods_start_with_past_block() -> None:
    today = date(2024, 1, 15)
    bookings = [
        _booking(date(2024, 1, 20), date(2024, 1, 25)),
        _booking(date(2024, 1, 30), date(2024, 2, 2)),
    ]

    periods = generate_blocked_periods(bookings, today)

    assert len(periods) == 3
    assert periods[0] == BlockedPeriod(from_=EPOCH, to=date(2024, 1, 14))
    assert periods[1] == BlockedPeriod(from_=date(2024, 1, 20), to=date(2024, 1, 25))
    assert periods[2] == BlockedPeriod(from_=date(2024, 1, 30), to=date(2024, 2, 2))


def test_blocked_periods_without_bookings() -> None:
    assert len(generate_blocked_periods([], date(2024, 1, 15))) == 1


def test_blocked_periods_keep_overlapping_bookings() -> None:
    bookings = [_booking(date(2024, 2, 1), date(2024, 2, 5)), _booking(date(2024, 2, 3), date(2024, 2, 6))]
    assert len(generate_blocked_periods(bookings, date(2024, 1, 1))) == 3


def test_disabled_dates_cover_periods_inclusively() -> None:
    today = date(2024, 1, 15)
    periods = [
        BlockedPeriod(from_=date(2024, 1, 20), to=date(2024, 1, 22)),
        BlockedPeriod(from_=date(2024, 1, 30), to=date(2024, 2, 1)),
    ]

    disabled = generate_disabled_dates(periods, today=today)

    assert disabled == {
        "2024-01-20": True,
        "2024-01-21": True,
        "2024-01-22": True,
        "2024-01-30": True,
        "2024-01-31": True,
        "2024-02-01": True,
    }


def test_disabled_dates_skip_days_before_today() -> None:
    today = date(2024, 1, 15)
    periods = generate_blocked_periods([_booking(date(2024, 1, 13), date(2024, 1, 17))], today)

    disabled = generate_disabled_dates(periods, today=today)

    assert sorted(disabled) == ["2024-01-15", "2024-01-16", "2024-01-17"]
    assert "2024-01-14" not in disabled


def test_disabled_dates_include_today_boundary() -> None:
    today = date(2024, 1, 15)
    disabled = generate_disabled_dates([BlockedPeriod(from_=date(2024, 1, 10), to=today)], today=today)
    assert disabled == {"2024-01-15": True}


def test_disabled_dates_default_to_current_day() -> None:
    today = datetime.now(timezone.utc).date()
    period = BlockedPeriod(from_=today - timedelta(days=3), to=today + timedelta(days=1))

    disabled = generate_disabled_dates([period])

    assert (today - timedelta(days=1)).isoformat() not in disabled
    assert disabled[today.isoformat()] is True
    assert disabled[(today + timedelta(days=1)).isoformat()] is True


def test_disabled_dates_empty_input() -> None:
    assert generate_disabled_dates([]) == {}


def test_date_range_lists_each_day() -> None:
    result = generate_date_range(DateRange(from_=date(2024, 1, 1), to=date(2024, 1, 3)))
    assert result == ["2024-01-01", "2024-01-02", "2024-01-03"]


def test_date_range_single_day() -> None:
    assert generate_date_range(DateRange(from_=date(2024, 1, 1), to=date(2024, 1, 1))) == ["2024-01-01"]


@pytest.mark.parametrize(
    "date_range",
    [None, DateRange(from_=date(2024, 1, 1)), DateRange(to=date(2024, 1, 3)), DEFAULT_SELECTED],
)
def test_date_range_incomplete_selection(date_range) -> None:
    assert generate_date_range(date_range) == []


def test_adjacent_stays_do_not_overlap() -> None:
    assert not overlaps(date(2026, 3, 10), date(2026, 3, 15), date(2026, 3, 15), date(2026, 3, 20))
    assert overlaps(date(2026, 3, 10), date(2026, 3, 15), date(2026, 3, 12), date(2026, 3, 18))
    assert overlaps(date(2026, 3, 1), date(2026, 3, 15), date(2026, 3, 5), date(2026, 3, 10))


@pytest.mark.parametrize("check_out", [date(2024, 1, 1), date(2023, 12, 30)])
def test_validate_date_range_rejects_non_positive_stays(check_out: date) -> None:
    with pytest.raises(ValidationError) as exc_info:
        validate_date_range(date(2024, 1, 1), check_out)
    assert exc_info.value.kind is ErrorKind.VALIDATION
    assert exc_info.value.message == "Check-out date must be after check-in date"


def test_ensure_available_rejects_overlap() -> None:
    existing = [_booking(date(2024, 5, 1), date(2024, 5, 4))]

    ensure_available(existing, date(2024, 5, 4), date(2024, 5, 6))
    with pytest.raises(ValidationError) as exc_info:
        ensure_available(existing, date(2024, 4, 28), date(2024, 5, 2))
    assert exc_info.value.status_code == 400
