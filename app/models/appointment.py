# ===== app/models/appointment.py =====
from sqlalchemy import (
    Column, String, Integer, Text, Date, DateTime, JSON, Numeric, ForeignKey, Index, Uuid,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .base import Base
import enum
import secrets
import uuid


class AppointmentStatus(str, enum.Enum):
    """Appointment lifecycle states. CANCELLED and COMPLETED are terminal."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


def generate_access_token() -> str:
    return secrets.token_urlsafe(32)


class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_staff_date", "staff_id", "appointment_date"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    access_token = Column(String(64), nullable=False, default=generate_access_token)

    # Assignment
    staff_id = Column(String(50), ForeignKey("staff_members.id"), nullable=False)

    # Customer info
    client_name = Column(String(100), nullable=False)
    client_email = Column(String(255), nullable=False)
    client_phone = Column(String(20), nullable=False)

    # Appointment details (salon local date, start as minute of day)
    appointment_date = Column(Date, nullable=False)
    start_minute = Column(Integer, nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    service_ids = Column(JSON, nullable=False, default=list)
    service_names = Column(JSON, nullable=False, default=list)
    total_price = Column(Numeric(10, 2), nullable=False, default=0)
    customizations = Column(JSON, nullable=True)

    # Status tracking
    status = Column(
        SQLEnum(
            AppointmentStatus,
            name="appointmentstatus",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    payment_reference = Column(String(255), nullable=True)

    # Reminders & notifications
    reminder_sent_at = Column(DateTime(timezone=True), nullable=True)
    confirmation_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)

    staff = relationship("StaffMember", back_populates="appointments")

    @property
    def start_time(self) -> str:
        return f"{self.start_minute // 60:02d}:{self.start_minute % 60:02d}"

    def __repr__(self):
        return (
            f"<Appointment(id={self.id}, staff={self.staff_id}, "
            f"date={self.appointment_date}, time={self.start_time}, status={self.status})>"
        )

    def to_dict(self):
        """Serialize for API responses. Never includes the access token."""
        return {
            "id": str(self.id),
            "staff_id": self.staff_id,
            "client_name": self.client_name,
            "client_email": self.client_email,
            "client_phone": self.client_phone,
            "date": self.appointment_date.isoformat(),
            "time": self.start_time,
            "duration_minutes": self.duration_minutes,
            "service_ids": list(self.service_ids or []),
            "service_names": list(self.service_names or []),
            "total_price": float(self.total_price) if self.total_price is not None else 0.0,
            "customizations": self.customizations,
            "status": AppointmentStatus(self.status).value,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
