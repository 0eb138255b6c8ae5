from datetime import date, datetime

import pytest

from app.core.exceptions import BookingValidationError
from app.services.availability.slots import (
    OperatingHours,
    format_time,
    generate_candidate_slots,
    parse_date,
    parse_time,
    salon_weekday,
)

OPEN = 10 * 60
CLOSE = 20 * 60


def test_forty_five_minute_service_last_slot_is_19_00():
    slots = [format_time(m) for m in generate_candidate_slots(45, OPEN, CLOSE, 30)]

    assert slots[0] == "10:00"
    assert slots[-1] == "19:00"
    assert "19:30" not in slots
    assert len(slots) == 19


def test_slot_ending_exactly_at_close_is_included():
    slots = generate_candidate_slots(30, OPEN, CLOSE, 30)

    assert slots[-1] == 19 * 60 + 30
    assert len(slots) == 20


def test_slots_are_ascending_grid_points_that_fit():
    for duration in (15, 30, 60, 75, 110, 120, 600):
        slots = generate_candidate_slots(duration, OPEN, CLOSE, 30)
        assert slots == sorted(slots)
        assert all((start - OPEN) % 30 == 0 for start in slots)
        assert all(start + duration <= CLOSE for start in slots)


def test_duration_longer_than_the_day_gives_no_slots():
    assert generate_candidate_slots(601, OPEN, CLOSE, 30) == []


@pytest.mark.parametrize("duration,step,open_minute,close_minute", [
    (0, 30, OPEN, CLOSE),
    (-15, 30, OPEN, CLOSE),
    (30, 0, OPEN, CLOSE),
    (30, 30, CLOSE, OPEN),
])
def test_invalid_generator_arguments_raise(duration, step, open_minute, close_minute):
    with pytest.raises(BookingValidationError):
        generate_candidate_slots(duration, open_minute, close_minute, step)


def test_parse_and_format_time():
    assert parse_time("10:00") == 600
    assert parse_time(" 19:30 ") == 1170
    assert format_time(1170) == "19:30"
    assert format_time(parse_time("09:05")) == "09:05"


@pytest.mark.parametrize("value", ["25:00", "10h30", "", None, 1000])
def test_parse_time_rejects_bad_input(value):
    with pytest.raises(BookingValidationError) as exc_info:
        parse_time(value, "booking_time")
    assert exc_info.value.field == "booking_time"


def test_parse_date_accepts_dates_datetimes_and_iso_strings():
    assert parse_date("2030-01-07") == date(2030, 1, 7)
    assert parse_date(date(2030, 1, 7)) == date(2030, 1, 7)
    assert parse_date(datetime(2030, 1, 7, 15, 30)) == date(2030, 1, 7)

    with pytest.raises(BookingValidationError):
        parse_date("07/01/2030")


def test_salon_weekday_starts_on_sunday():
    assert salon_weekday(date(2030, 1, 6)) == 0  # Sunday
    assert salon_weekday(date(2030, 1, 7)) == 1  # Monday
    assert salon_weekday(date(2030, 1, 12)) == 6  # Saturday


def test_operating_hours_closed_days():
    hours = OperatingHours(open_minute=OPEN, close_minute=CLOSE)

    assert not hours.is_open_on(date(2030, 1, 6))
    assert hours.is_open_on(date(2030, 1, 12))
    assert not hours.is_open_on(date(2030, 1, 12), staff_unavailable_days=[0, 6])


def test_operating_hours_fits():
    hours = OperatingHours(open_minute=OPEN, close_minute=CLOSE)

    assert hours.fits(19 * 60, 60)
    assert not hours.fits(19 * 60 + 30, 45)
    assert not hours.fits(9 * 60 + 30, 30)


def test_operating_hours_from_settings():
    class FakeSettings:
        SALON_OPEN_TIME = "09:00"
        SALON_CLOSE_TIME = "18:30"
        SLOT_STEP_MINUTES = 15
        SALON_CLOSED_WEEKDAYS = [0, 1]

    hours = OperatingHours.from_settings(FakeSettings)

    assert hours == OperatingHours(540, 1110, 15, frozenset({0, 1}))


def test_operating_hours_must_open_before_closing():
    with pytest.raises(BookingValidationError):
        OperatingHours(open_minute=CLOSE, close_minute=OPEN)
