# ============================================================================
# app/services/appointment/appointment_service.py
# The booking write path. The only code that persists appointment state.
# ============================================================================
"""Service for creating, rescheduling, cancelling and confirming appointments"""
import hmac
import logging
import uuid
from contextlib import contextmanager
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config.database import begin_write
from app.core.exceptions import (
    BookingError,
    BookingValidationError,
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
)
from app.models.appointment import Appointment, AppointmentStatus, generate_access_token
from app.models.staff import StaffMember
from app.services.appointment.state_machine import transition
from app.services.availability.availability_service import AvailabilityService
from app.services.availability.conflicts import is_slot_free
from app.services.availability.slots import OperatingHours, parse_date, parse_time
from app.services.notification.notification_service import NotificationService
from app.utils import validators

logger = logging.getLogger(__name__)

MODIFY_ACTIONS = ("cancel", "reschedule")


@contextmanager
def booking_transaction(db: Session):
    """
    Run the block in a fresh write transaction and commit on success.

    Business errors roll back and propagate unchanged; store errors roll
    back and surface as StoreUnavailableError.
    """
    try:
        begin_write(db)
        yield
        db.commit()
    except BookingError:
        db.rollback()
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error(f"Booking store error: {exc}")
        raise StoreUnavailableError() from exc


class AppointmentService:
    """Handles appointment writes and enforces the no-double-booking rule"""

    # ------------------------------------------------------------------
    # Shared checks
    # ------------------------------------------------------------------

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _ensure_slot_bookable(
            db: Session,
            staff: StaffMember,
            day: date,
            start_minute: int,
            duration_minutes: int,
            hours: OperatingHours,
            exclude_appointment_id: Optional[uuid.UUID] = None
    ) -> None:
        """
        Fresh write-time check. Must run while the staff row is locked.

        Raises:
            BookingValidationError: closed day or slot outside opening hours
            ConflictError: slot overlaps a non-cancelled appointment
        """
        if not hours.is_open_on(day, staff.unavailable_days):
            raise BookingValidationError(
                f"{staff.display_name} does not work on {day.isoformat()}", field="date"
            )
        if not hours.fits(start_minute, duration_minutes):
            raise BookingValidationError(
                "The appointment must start and end within opening hours", field="time"
            )

        existing = AvailabilityService.get_day_intervals(db, staff.id, day, exclude_appointment_id)
        if not is_slot_free(start_minute, duration_minutes, existing):
            logger.info(
                f"Slot conflict for {staff.id} on {day.isoformat()} at minute {start_minute} "
                f"({duration_minutes} min)"
            )
            raise ConflictError()

    @staticmethod
    def _find_appointment(
            db: Session,
            appointment_id: Union[str, uuid.UUID],
            access_token: Optional[str],
            privileged: bool = False,
            for_update: bool = False
    ) -> Appointment:
        """
        Look up an appointment by id and capability token.

        Unknown ids, malformed ids and wrong tokens all raise the same
        NotFoundError. ``privileged`` skips the token check (admin context).
        """
        try:
            appointment_uuid = appointment_id if isinstance(appointment_id, uuid.UUID) else uuid.UUID(str(appointment_id))
        except (ValueError, AttributeError):
            raise NotFoundError()

        query = db.query(Appointment).filter(Appointment.id == appointment_uuid)
        if for_update:
            query = query.with_for_update()
        appointment = query.first()

        if not appointment:
            raise NotFoundError()

        if not privileged:
            if not isinstance(access_token, str) or not hmac.compare_digest(
                    appointment.access_token.encode("utf-8"), access_token.encode("utf-8")
            ):
                raise NotFoundError()

        return appointment

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def get_appointment(
            db: Session,
            appointment_id: Union[str, uuid.UUID],
            access_token: Optional[str],
            privileged: bool = False
    ) -> Appointment:
        """Guest lookup by (id, token)"""
        return AppointmentService._find_appointment(db, appointment_id, access_token, privileged)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    def create_appointment(
            db: Session,
            client_name: str,
            client_email: str,
            client_phone: str,
            staff_id: str,
            appointment_date: Union[date, str],
            start_time: str,
            service_ids: List[str],
            service_names: List[str],
            duration_minutes: int,
            total_price: Any,
            customizations: Optional[Dict[str, Any]] = None,
            hours: Optional[OperatingHours] = None
    ) -> Appointment:
        """
        Create a pending appointment if the slot is still free.

        Input is validated before the store is touched. The availability
        re-check and the insert share one transaction serialized on the
        staff member's row, so two concurrent bookings of overlapping slots
        cannot both succeed.

        Raises:
            BookingValidationError, ConflictError, StoreUnavailableError
        """
        client_name = validators.normalize_client_name(client_name)
        client_email = validators.normalize_email(client_email)
        client_phone = validators.normalize_phone(client_phone)
        service_ids = validators.normalize_service_list(service_ids, "service_ids")
        service_names = validators.normalize_service_list(service_names, "service_names")
        duration_minutes = validators.normalize_duration(duration_minutes)
        total_price = validators.normalize_price(total_price)
        customizations = validators.normalize_customizations(customizations)
        day = parse_date(appointment_date, "booking_date")
        start_minute = parse_time(start_time, "booking_time")
        hours = hours or AvailabilityService.get_operating_hours()

        with booking_transaction(db):
            staff = AvailabilityService.get_staff(db, staff_id, for_update=True)
            AppointmentService._ensure_slot_bookable(db, staff, day, start_minute, duration_minutes, hours)

            appointment = Appointment(
                id=uuid.uuid4(),
                access_token=generate_access_token(),
                staff_id=staff.id,
                client_name=client_name,
                client_email=client_email,
                client_phone=client_phone,
                appointment_date=day,
                start_minute=start_minute,
                duration_minutes=duration_minutes,
                service_ids=service_ids,
                service_names=service_names,
                total_price=total_price,
                customizations=customizations,
                status=AppointmentStatus.PENDING,
            )
            db.add(appointment)

        db.refresh(appointment)
        logger.info(
            f"Appointment {appointment.id} created for {staff_id} on {day.isoformat()} "
            f"at {appointment.start_time}"
        )

        NotificationService.dispatch(appointment.id, "created")
        return appointment

    @staticmethod
    def reschedule_appointment(
            db: Session,
            appointment_id: Union[str, uuid.UUID],
            access_token: Optional[str],
            new_date: Union[date, str],
            new_time: str,
            privileged: bool = False,
            hours: Optional[OperatingHours] = None
    ) -> Appointment:
        """
        Move an appointment to a new date/time and reset it to pending.

        The appointment itself is excluded from the conflict check, so moving
        it onto the slot it already occupies succeeds.

        Raises:
            NotFoundError, InvalidStateError, BookingValidationError,
            ConflictError, StoreUnavailableError
        """
        day = parse_date(new_date, "new_date")
        start_minute = parse_time(new_time, "new_time")
        hours = hours or AvailabilityService.get_operating_hours()

        with booking_transaction(db):
            appointment = AppointmentService._find_appointment(db, appointment_id, access_token, privileged)
            # Fail fast on terminal appointments before taking the staff lock
            transition(appointment.status, AppointmentStatus.PENDING)

            staff = AvailabilityService.get_staff(db, appointment.staff_id, for_update=True)
            db.refresh(appointment, with_for_update=True)
            new_status = transition(appointment.status, AppointmentStatus.PENDING)

            AppointmentService._ensure_slot_bookable(
                db, staff, day, start_minute, appointment.duration_minutes, hours,
                exclude_appointment_id=appointment.id,
            )

            appointment.appointment_date = day
            appointment.start_minute = start_minute
            appointment.status = new_status
            appointment.confirmed_at = None
            appointment.reminder_sent_at = None

        logger.info(
            f"Appointment {appointment.id} rescheduled to {day.isoformat()} at {appointment.start_time}"
        )
        NotificationService.dispatch(appointment.id, "rescheduled")
        return appointment

    @staticmethod
    def cancel_appointment(
            db: Session,
            appointment_id: Union[str, uuid.UUID],
            access_token: Optional[str],
            privileged: bool = False,
            reason: Optional[str] = None
    ) -> Appointment:
        """
        Cancel an appointment. Cancelling a cancelled appointment is a no-op.

        Raises:
            NotFoundError, InvalidStateError (completed appointments), StoreUnavailableError
        """
        with booking_transaction(db):
            appointment = AppointmentService._find_appointment(
                db, appointment_id, access_token, privileged, for_update=True
            )
            already_cancelled = appointment.status == AppointmentStatus.CANCELLED
            appointment.status = transition(appointment.status, AppointmentStatus.CANCELLED)
            if not already_cancelled:
                appointment.cancelled_at = AppointmentService._now()
                appointment.cancellation_reason = reason

        if already_cancelled:
            logger.info(f"Appointment {appointment.id} already cancelled")
        else:
            logger.info(f"Appointment {appointment.id} cancelled ({reason or 'no reason given'})")
            NotificationService.dispatch(appointment.id, "cancelled")
        return appointment

    @staticmethod
    def confirm_appointment(
            db: Session,
            appointment_id: Union[str, uuid.UUID],
            payment_reference: Optional[str] = None
    ) -> Appointment:
        """
        Mark an appointment confirmed (staff action or successful payment).
        Confirming an already confirmed appointment is a no-op.
        """
        with booking_transaction(db):
            appointment = AppointmentService._find_appointment(
                db, appointment_id, None, privileged=True, for_update=True
            )
            if appointment.status == AppointmentStatus.CONFIRMED:
                if payment_reference and not appointment.payment_reference:
                    appointment.payment_reference = payment_reference
                changed = False
            else:
                appointment.status = transition(appointment.status, AppointmentStatus.CONFIRMED)
                appointment.confirmed_at = AppointmentService._now()
                if payment_reference:
                    appointment.payment_reference = payment_reference
                changed = True

        if changed:
            logger.info(f"Appointment {appointment.id} confirmed")
            NotificationService.dispatch(appointment.id, "confirmed")
        return appointment

    @staticmethod
    def complete_appointment(db: Session, appointment_id: Union[str, uuid.UUID]) -> Appointment:
        """Mark a confirmed appointment completed"""
        with booking_transaction(db):
            appointment = AppointmentService._find_appointment(
                db, appointment_id, None, privileged=True, for_update=True
            )
            appointment.status = transition(appointment.status, AppointmentStatus.COMPLETED)
            appointment.completed_at = AppointmentService._now()

        logger.info(f"Appointment {appointment.id} completed")
        return appointment

    @staticmethod
    def modify_appointment(
            db: Session,
            appointment_id: Union[str, uuid.UUID],
            access_token: Optional[str],
            action: str,
            new_date: Optional[Union[date, str]] = None,
            new_time: Optional[str] = None,
            privileged: bool = False
    ) -> Appointment:
        """Self-service entry point: ``cancel`` or ``reschedule``"""
        if action == "cancel":
            return AppointmentService.cancel_appointment(db, appointment_id, access_token, privileged)

        if action == "reschedule":
            if not new_date or not new_time:
                raise BookingValidationError("new_date and new_time are required to reschedule", field="new_date")
            return AppointmentService.reschedule_appointment(
                db, appointment_id, access_token, new_date, new_time, privileged
            )

        raise BookingValidationError(
            f"action must be one of: {', '.join(MODIFY_ACTIONS)}", field="action"
        )
