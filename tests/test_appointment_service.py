import uuid
from decimal import Decimal
from unittest.mock import call

import pytest
from sqlalchemy.exc import OperationalError

from conftest import MONDAY, SATURDAY, SUNDAY, TUESDAY, make_appointment
from app.core.exceptions import (
    BookingValidationError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    StoreUnavailableError,
)
from app.models.appointment import Appointment, AppointmentStatus
from app.services.appointment.appointment_service import AppointmentService
from app.services.notification.notification_service import NotificationService


# ----------------------------------------------------------------------
# create
# ----------------------------------------------------------------------

def test_create_persists_pending_appointment_with_token(db, dispatched):
    appointment = make_appointment(db)

    stored = db.get(Appointment, appointment.id)
    assert stored.status == AppointmentStatus.PENDING
    assert stored.staff_id == "ana"
    assert stored.appointment_date == MONDAY
    assert stored.start_time == "10:00"
    assert stored.duration_minutes == 45
    assert stored.client_email == "maria@example.com"
    assert stored.client_phone == "+529981234567"
    assert stored.total_price == Decimal("350.00")
    assert len(stored.access_token) >= 32
    dispatched.assert_called_once_with(appointment.id, "created")


def test_access_tokens_are_unique(db):
    first = make_appointment(db, booking_time="10:00")
    second = make_appointment(db, booking_time="12:00")

    assert first.access_token != second.access_token


def test_overlapping_create_conflicts_and_writes_nothing(db, dispatched):
    make_appointment(db, booking_time="11:00", total_duration=60)
    dispatched.reset_mock()

    with pytest.raises(ConflictError) as exc_info:
        make_appointment(db, booking_time="11:30", total_duration=45)

    assert exc_info.value.code == "BOOKING_CONFLICT"
    assert db.query(Appointment).count() == 1
    dispatched.assert_not_called()


def test_touching_appointments_are_allowed(db):
    make_appointment(db, booking_time="10:00", total_duration=45)
    # 10:45 is not on the 30-minute grid but only opening hours are enforced
    make_appointment(db, booking_time="10:45", total_duration=45)

    assert db.query(Appointment).count() == 2


def test_same_slot_for_different_staff_is_allowed(db):
    make_appointment(db, staff_id="ana")
    make_appointment(db, staff_id="lily")

    assert db.query(Appointment).count() == 2


def test_cancelled_appointment_does_not_block_new_booking(db):
    first = make_appointment(db)
    AppointmentService.cancel_appointment(db, first.id, first.access_token)

    second = make_appointment(db)

    assert second.status == AppointmentStatus.PENDING


@pytest.mark.parametrize("overrides,field", [
    ({"client_name": "A"}, "client_name"),
    ({"client_email": "not-an-email"}, "client_email"),
    ({"client_phone": "12345"}, "client_phone"),
    ({"service_ids": []}, "service_ids"),
    ({"total_duration": 0}, "total_duration"),
    ({"total_price": -10}, "total_price"),
    ({"booking_date": "2030/01/07"}, "booking_date"),
    ({"booking_time": "25:00"}, "booking_time"),
    ({"staff_id": "nobody"}, "staff_id"),
    ({"booking_date": SUNDAY.isoformat()}, "date"),
    ({"booking_time": "19:30", "total_duration": 45}, "time"),
    ({"booking_time": "09:30"}, "time"),
])
def test_invalid_input_is_rejected_without_writing(db, dispatched, overrides, field):
    with pytest.raises(BookingValidationError) as exc_info:
        make_appointment(db, **overrides)

    assert exc_info.value.field == field
    assert exc_info.value.code == "VALIDATION_ERROR"
    assert db.query(Appointment).count() == 0
    dispatched.assert_not_called()


def test_staff_unavailable_day_is_rejected(db):
    with pytest.raises(BookingValidationError) as exc_info:
        make_appointment(db, staff_id="sofia", booking_date=SATURDAY.isoformat())
    assert exc_info.value.field == "date"


def test_booking_survives_notification_failure(db, dispatched):
    dispatched.return_value = False

    appointment = make_appointment(db)

    assert db.get(Appointment, appointment.id) is not None


def test_store_failure_surfaces_as_store_unavailable(db, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(
        "app.services.appointment.appointment_service.AvailabilityService.get_day_intervals", broken
    )

    with pytest.raises(StoreUnavailableError) as exc_info:
        make_appointment(db)

    assert exc_info.value.status_code == 503
    assert db.query(Appointment).count() == 0


# ----------------------------------------------------------------------
# lookup
# ----------------------------------------------------------------------

def test_get_appointment_requires_matching_token(db):
    appointment = make_appointment(db)

    found = AppointmentService.get_appointment(db, str(appointment.id), appointment.access_token)
    assert found.id == appointment.id


@pytest.mark.parametrize("make_id,token", [
    (lambda appt: appt.id, "wrong-token"),
    (lambda appt: appt.id, None),
    (lambda appt: uuid.uuid4(), "any-token"),
    (lambda appt: "not-a-uuid", "any-token"),
])
def test_unknown_id_and_wrong_token_look_the_same(db, make_id, token):
    appointment = make_appointment(db)

    with pytest.raises(NotFoundError) as exc_info:
        AppointmentService.get_appointment(db, make_id(appointment), token)

    assert exc_info.value.message == "Booking not found or invalid token"
    assert exc_info.value.status_code == 404


# ----------------------------------------------------------------------
# cancel
# ----------------------------------------------------------------------

def test_cancel_twice_succeeds_and_notifies_once(db, dispatched):
    appointment = make_appointment(db)
    dispatched.reset_mock()

    first = AppointmentService.cancel_appointment(db, appointment.id, appointment.access_token, reason="sick")
    second = AppointmentService.cancel_appointment(db, appointment.id, appointment.access_token)

    assert first.status == AppointmentStatus.CANCELLED
    assert second.status == AppointmentStatus.CANCELLED
    assert second.cancellation_reason == "sick"
    assert second.cancelled_at is not None
    dispatched.assert_called_once_with(appointment.id, "cancelled")


def test_cancel_with_wrong_token_is_not_found(db):
    appointment = make_appointment(db)

    with pytest.raises(NotFoundError):
        AppointmentService.cancel_appointment(db, appointment.id, "guess")

    assert db.get(Appointment, appointment.id).status == AppointmentStatus.PENDING


def test_cancel_completed_is_invalid_state(db):
    appointment = make_appointment(db)
    AppointmentService.confirm_appointment(db, appointment.id)
    AppointmentService.complete_appointment(db, appointment.id)

    with pytest.raises(InvalidStateError):
        AppointmentService.cancel_appointment(db, appointment.id, appointment.access_token)


def test_privileged_cancel_skips_token(db):
    appointment = make_appointment(db)

    cancelled = AppointmentService.cancel_appointment(db, appointment.id, None, privileged=True)

    assert cancelled.status == AppointmentStatus.CANCELLED


# ----------------------------------------------------------------------
# reschedule
# ----------------------------------------------------------------------

def test_reschedule_moves_and_resets_to_pending(db, dispatched):
    appointment = make_appointment(db)
    AppointmentService.confirm_appointment(db, appointment.id)
    dispatched.reset_mock()

    moved = AppointmentService.reschedule_appointment(
        db, appointment.id, appointment.access_token, TUESDAY.isoformat(), "15:30"
    )

    assert moved.appointment_date == TUESDAY
    assert moved.start_time == "15:30"
    assert moved.status == AppointmentStatus.PENDING
    assert moved.confirmed_at is None
    dispatched.assert_called_once_with(appointment.id, "rescheduled")


def test_reschedule_onto_its_own_slot_succeeds(db):
    appointment = make_appointment(db, booking_time="11:00", total_duration=60)

    moved = AppointmentService.reschedule_appointment(
        db, appointment.id, appointment.access_token, MONDAY, "11:00"
    )

    assert moved.start_time == "11:00"


def test_reschedule_overlapping_itself_only_succeeds(db):
    appointment = make_appointment(db, booking_time="11:00", total_duration=60)

    moved = AppointmentService.reschedule_appointment(
        db, appointment.id, appointment.access_token, MONDAY, "11:30"
    )

    assert moved.start_time == "11:30"


def test_reschedule_into_taken_slot_conflicts_and_keeps_original(db):
    make_appointment(db, booking_time="14:00", total_duration=60, client_name="Carmen Ruiz")
    appointment = make_appointment(db, booking_time="10:00")

    with pytest.raises(ConflictError):
        AppointmentService.reschedule_appointment(
            db, appointment.id, appointment.access_token, MONDAY, "14:30"
        )

    stored = db.get(Appointment, appointment.id)
    assert stored.start_time == "10:00"
    assert stored.appointment_date == MONDAY


@pytest.mark.parametrize("terminal", ["cancel", "complete"])
def test_reschedule_terminal_appointment_is_invalid_state(db, terminal):
    appointment = make_appointment(db)
    if terminal == "cancel":
        AppointmentService.cancel_appointment(db, appointment.id, appointment.access_token)
    else:
        AppointmentService.confirm_appointment(db, appointment.id)
        AppointmentService.complete_appointment(db, appointment.id)

    with pytest.raises(InvalidStateError):
        AppointmentService.reschedule_appointment(
            db, appointment.id, appointment.access_token, TUESDAY, "12:00"
        )


def test_reschedule_to_closed_day_is_rejected(db):
    appointment = make_appointment(db)

    with pytest.raises(BookingValidationError) as exc_info:
        AppointmentService.reschedule_appointment(
            db, appointment.id, appointment.access_token, SUNDAY, "12:00"
        )
    assert exc_info.value.field == "date"


def test_reschedule_clears_reminder_flag(db):
    appointment = make_appointment(db)
    stored = db.get(Appointment, appointment.id)
    stored.reminder_sent_at = stored.created_at
    db.commit()

    moved = AppointmentService.reschedule_appointment(
        db, appointment.id, appointment.access_token, TUESDAY, "12:00"
    )

    assert moved.reminder_sent_at is None


# ----------------------------------------------------------------------
# confirm / complete
# ----------------------------------------------------------------------

def test_confirm_is_idempotent_and_keeps_payment_reference(db, dispatched):
    appointment = make_appointment(db)
    dispatched.reset_mock()

    AppointmentService.confirm_appointment(db, appointment.id, payment_reference="cs_test_123")
    again = AppointmentService.confirm_appointment(db, appointment.id, payment_reference="cs_other")

    assert again.status == AppointmentStatus.CONFIRMED
    assert again.payment_reference == "cs_test_123"
    assert dispatched.call_args_list == [call(appointment.id, "confirmed")]


def test_complete_requires_confirmation(db):
    appointment = make_appointment(db)

    with pytest.raises(InvalidStateError):
        AppointmentService.complete_appointment(db, appointment.id)

    AppointmentService.confirm_appointment(db, appointment.id)
    completed = AppointmentService.complete_appointment(db, appointment.id)

    assert completed.status == AppointmentStatus.COMPLETED
    assert completed.completed_at is not None


def test_confirm_cancelled_is_invalid_state(db):
    appointment = make_appointment(db)
    AppointmentService.cancel_appointment(db, appointment.id, appointment.access_token)

    with pytest.raises(InvalidStateError):
        AppointmentService.confirm_appointment(db, appointment.id)


# ----------------------------------------------------------------------
# modify
# ----------------------------------------------------------------------

def test_modify_dispatches_cancel_and_reschedule(db):
    appointment = make_appointment(db)

    moved = AppointmentService.modify_appointment(
        db, appointment.id, appointment.access_token, "reschedule", TUESDAY.isoformat(), "12:00"
    )
    assert moved.appointment_date == TUESDAY

    cancelled = AppointmentService.modify_appointment(db, appointment.id, appointment.access_token, "cancel")
    assert cancelled.status == AppointmentStatus.CANCELLED


def test_modify_unknown_action(db):
    appointment = make_appointment(db)

    with pytest.raises(BookingValidationError) as exc_info:
        AppointmentService.modify_appointment(db, appointment.id, appointment.access_token, "upgrade")
    assert exc_info.value.field == "action"


def test_modify_reschedule_requires_date_and_time(db):
    appointment = make_appointment(db)

    with pytest.raises(BookingValidationError):
        AppointmentService.modify_appointment(
            db, appointment.id, appointment.access_token, "reschedule", TUESDAY.isoformat(), None
        )


@pytest.mark.real_dispatch
def test_dispatch_failure_is_logged_not_raised(monkeypatch, caplog):
    from app.tasks import notification_tasks

    def broker_down(*args, **kwargs):
        raise ConnectionError("broker unreachable")

    monkeypatch.setattr(notification_tasks.send_booking_notification, "delay", broker_down)

    assert NotificationService.dispatch(uuid.uuid4(), "created") is False
    assert "Could not queue created notification" in caplog.text
