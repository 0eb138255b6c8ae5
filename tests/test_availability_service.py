import pytest

from conftest import MONDAY, SALON_DAY, SATURDAY, SUNDAY, make_appointment
from app.core.exceptions import BookingValidationError
from app.models.staff import StaffMember
from app.services.appointment.appointment_service import AppointmentService
from app.services.availability.availability_service import AvailabilityService


def test_free_day_offers_every_grid_slot(db):
    slots = AvailabilityService.get_available_slots(db, "ana", MONDAY, 45)

    assert slots[0] == "10:00"
    assert slots[-1] == "19:00"
    assert len(slots) == 19


def test_existing_booking_blocks_overlapping_starts(db):
    # ana books 11:00 for 60 minutes
    make_appointment(db, staff_id="ana", booking_time="11:00", total_duration=60)

    slots = AvailabilityService.get_available_slots(db, "ana", MONDAY.isoformat(), 45)

    assert "10:00" in slots
    assert "10:30" not in slots  # 10:30-11:15 overlaps
    assert "11:00" not in slots
    assert "11:30" not in slots
    assert "12:00" in slots


def test_ninety_minute_slots_after_a_morning_booking(db):
    # 2025-03-10 is a Monday
    make_appointment(db, staff_id="ana", booking_date="2025-03-10", booking_time="10:00", total_duration=60)

    slots = AvailabilityService.get_available_slots(db, "ana", "2025-03-10", 90)

    assert slots[0] == "11:00"
    assert slots[-1] == "18:30"
    assert "10:30" not in slots


def test_bookings_of_other_staff_do_not_block(db):
    make_appointment(db, staff_id="lily", booking_time="11:00", total_duration=60)

    slots = AvailabilityService.get_available_slots(db, "ana", MONDAY, 45)

    assert "11:00" in slots


def test_cancelled_booking_frees_the_slot(db):
    appointment = make_appointment(db, booking_time="11:00", total_duration=60)
    AppointmentService.cancel_appointment(db, appointment.id, appointment.access_token)

    slots = AvailabilityService.get_available_slots(db, "ana", MONDAY, 60)

    assert "11:00" in slots


def test_sunday_is_closed_for_any_duration(db):
    for duration in (15, 45, 120):
        assert AvailabilityService.get_available_slots(db, "lily", SUNDAY, duration) == []


def test_staff_unavailable_weekday_gives_no_slots(db):
    # sofia does not work on Saturdays, ana does
    assert AvailabilityService.get_available_slots(db, "sofia", SATURDAY, 60) == []
    assert AvailabilityService.get_available_slots(db, "ana", SATURDAY, 60) != []


def test_each_weekday_matches_staff_schedule(db):
    for weekday, day in SALON_DAY.items():
        slots = AvailabilityService.get_available_slots(db, "sofia", day, 30)
        assert (slots == []) == (weekday in (0, 6))


def test_exclude_appointment_shows_its_own_slot(db):
    appointment = make_appointment(db, booking_time="11:00", total_duration=60)

    without = AvailabilityService.get_available_slots(db, "ana", MONDAY, 60)
    with_exclusion = AvailabilityService.get_available_slots(
        db, "ana", MONDAY, 60, exclude_appointment_id=appointment.id
    )

    assert "11:00" not in without
    assert "11:00" in with_exclusion


def test_unknown_or_inactive_staff_is_rejected(db):
    with pytest.raises(BookingValidationError) as exc_info:
        AvailabilityService.get_available_slots(db, "nobody", MONDAY, 45)
    assert exc_info.value.field == "staff_id"

    db.get(StaffMember, "ana").is_active = False
    db.commit()

    with pytest.raises(BookingValidationError):
        AvailabilityService.get_available_slots(db, "ana", MONDAY, 45)


@pytest.mark.parametrize("duration", [0, -45, "45"])
def test_duration_must_be_positive(db, duration):
    with pytest.raises(BookingValidationError) as exc_info:
        AvailabilityService.get_available_slots(db, "ana", MONDAY, duration)
    assert exc_info.value.field == "duration_minutes"


def test_day_intervals_skip_cancelled_and_are_ordered(db):
    late = make_appointment(db, booking_time="15:00", total_duration=30)
    make_appointment(db, booking_time="10:00", total_duration=45)
    cancelled = make_appointment(db, booking_time="12:00", total_duration=30)
    AppointmentService.cancel_appointment(db, cancelled.id, cancelled.access_token)

    intervals = AvailabilityService.get_day_intervals(db, "ana", MONDAY)

    assert intervals == [(600, 45), (900, 30)]
    assert AvailabilityService.get_day_intervals(db, "ana", MONDAY, exclude_appointment_id=late.id) == [(600, 45)]
