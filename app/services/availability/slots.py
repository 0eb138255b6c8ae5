# ===== app/services/availability/slots.py =====
"""
Slot generation and the time helpers shared by the read and write paths.

Times are minutes of the day in salon local time (10:00 -> 600). Weekdays use
the salon calendar's convention: 0=Sunday ... 6=Saturday.
"""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import FrozenSet, Iterable, List

from app.core.exceptions import BookingValidationError


def parse_time(value: str, field_name: str = "time") -> int:
    """Parse "HH:MM" into minutes of the day"""
    if not isinstance(value, str):
        raise BookingValidationError(f"{field_name} must be a string in HH:MM format", field=field_name)
    try:
        parsed = datetime.strptime(value.strip(), "%H:%M")
    except ValueError:
        raise BookingValidationError(f"{field_name} must be in HH:MM format", field=field_name)
    return parsed.hour * 60 + parsed.minute


def format_time(minute: int) -> str:
    """Format minutes of the day as "HH:MM" """
    return f"{minute // 60:02d}:{minute % 60:02d}"


def parse_date(value, field_name: str = "date") -> date:
    """Accept a date or a "YYYY-MM-DD" string"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise BookingValidationError(f"{field_name} must be a date in YYYY-MM-DD format", field=field_name)
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError:
        raise BookingValidationError(f"{field_name} must be in YYYY-MM-DD format", field=field_name)


def salon_weekday(day: date) -> int:
    """Weekday with Sunday as 0"""
    return day.isoweekday() % 7


@dataclass(frozen=True)
class OperatingHours:
    """Opening hours, slot grid and universally closed weekdays of the salon"""
    open_minute: int
    close_minute: int
    step_minutes: int = 30
    closed_weekdays: FrozenSet[int] = field(default_factory=lambda: frozenset({0}))

    def __post_init__(self):
        if self.open_minute >= self.close_minute:
            raise BookingValidationError("Opening time must be before closing time", field="operating_hours")
        if self.step_minutes <= 0:
            raise BookingValidationError("Slot step must be positive", field="step_minutes")

    @classmethod
    def from_settings(cls, settings) -> "OperatingHours":
        return cls(
            open_minute=parse_time(settings.SALON_OPEN_TIME, "SALON_OPEN_TIME"),
            close_minute=parse_time(settings.SALON_CLOSE_TIME, "SALON_CLOSE_TIME"),
            step_minutes=settings.SLOT_STEP_MINUTES,
            closed_weekdays=frozenset(settings.SALON_CLOSED_WEEKDAYS),
        )

    def is_open_on(self, day: date, staff_unavailable_days: Iterable[int] = ()) -> bool:
        weekday = salon_weekday(day)
        return weekday not in self.closed_weekdays and weekday not in set(staff_unavailable_days or ())

    def fits(self, start_minute: int, duration_minutes: int) -> bool:
        """True if the interval lies entirely inside opening hours"""
        return start_minute >= self.open_minute and start_minute + duration_minutes <= self.close_minute


def generate_candidate_slots(
        duration_minutes: int,
        open_minute: int,
        close_minute: int,
        step_minutes: int = 30
) -> List[int]:
    """
    Every grid start time at which an appointment of the given duration fits.

    Walks the grid from ``open_minute`` in ``step_minutes`` increments and keeps
    a start only if ``start + duration_minutes <= close_minute``. The result is
    ascending.
    """
    if duration_minutes <= 0:
        raise BookingValidationError("Duration must be a positive number of minutes", field="duration_minutes")
    if step_minutes <= 0:
        raise BookingValidationError("Slot step must be positive", field="step_minutes")
    if open_minute >= close_minute:
        raise BookingValidationError("Opening time must be before closing time", field="operating_hours")

    slots = []
    for start in range(open_minute, close_minute, step_minutes):
        if start + duration_minutes > close_minute:
            break
        slots.append(start)
    return slots
