from typing import List, Optional, Union
from datetime import date
from uuid import UUID
from sqlalchemy.orm import Session
from app.config.settings import get_settings
from app.core.exceptions import BookingValidationError
from app.models.appointment import Appointment, AppointmentStatus
from app.models.staff import StaffMember
from app.services.availability.conflicts import Interval, filter_available
from app.services.availability.slots import (
    OperatingHours,
    format_time,
    generate_candidate_slots,
    parse_date,
)
import logging

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Read path: which start times are still free for a staff member on a day"""

    @staticmethod
    def get_operating_hours() -> OperatingHours:
        return OperatingHours.from_settings(get_settings())

    @staticmethod
    def get_staff(db: Session, staff_id: str, for_update: bool = False) -> StaffMember:
        """Load an active staff member or fail validation"""
        if not staff_id or not isinstance(staff_id, str):
            raise BookingValidationError("staff_id is required", field="staff_id")

        query = db.query(StaffMember).filter(StaffMember.id == staff_id)
        if for_update:
            query = query.with_for_update()
        staff = query.first()

        if not staff or not staff.is_active:
            raise BookingValidationError(f"Unknown staff member: {staff_id}", field="staff_id")
        return staff

    @staticmethod
    def get_day_intervals(
            db: Session,
            staff_id: str,
            day: date,
            exclude_appointment_id: Optional[UUID] = None
    ) -> List[Interval]:
        """Occupied (start_minute, duration) pairs of non-cancelled appointments"""
        query = db.query(Appointment.start_minute, Appointment.duration_minutes).filter(
            Appointment.staff_id == staff_id,
            Appointment.appointment_date == day,
            Appointment.status != AppointmentStatus.CANCELLED,
        )
        if exclude_appointment_id is not None:
            query = query.filter(Appointment.id != exclude_appointment_id)

        return [(start, duration) for start, duration in query.order_by(Appointment.start_minute).all()]

    @staticmethod
    def get_available_slots(
            db: Session,
            staff_id: str,
            day: Union[date, str],
            duration_minutes: int,
            exclude_appointment_id: Optional[UUID] = None,
            hours: Optional[OperatingHours] = None
    ) -> List[str]:
        """
        Free "HH:MM" start times for a service of ``duration_minutes``.

        Returns an empty list when the salon or the staff member is closed that
        weekday. The result is for display only: the booking transaction
        re-checks the slot when it commits.
        """
        day = parse_date(day)
        if not isinstance(duration_minutes, int) or duration_minutes <= 0:
            raise BookingValidationError(
                "duration_minutes must be a positive number of minutes", field="duration_minutes"
            )

        hours = hours or AvailabilityService.get_operating_hours()
        staff = AvailabilityService.get_staff(db, staff_id)

        if not hours.is_open_on(day, staff.unavailable_days):
            logger.info(f"Staff {staff_id} not available on {day.isoformat()}")
            return []

        candidates = generate_candidate_slots(
            duration_minutes, hours.open_minute, hours.close_minute, hours.step_minutes
        )
        existing = AvailabilityService.get_day_intervals(db, staff_id, day, exclude_appointment_id)
        available = filter_available(candidates, existing, duration_minutes)

        logger.debug(
            f"{len(available)}/{len(candidates)} slots free for {staff_id} on {day.isoformat()} "
            f"({duration_minutes} min)"
        )
        return [format_time(start) for start in available]
