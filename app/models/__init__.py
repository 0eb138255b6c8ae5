# app/models/__init__.py
from .base import Base
from .staff import StaffMember
from .service import Service
from .appointment import Appointment, AppointmentStatus

__all__ = [
    "Base",
    "StaffMember",
    "Service",
    "Appointment",
    "AppointmentStatus",
]
