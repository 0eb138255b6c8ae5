# app/models/staff.py
"""
Staff Model - salon professionals who take appointments
Every appointment is assigned to exactly one staff member.
"""
from sqlalchemy import Column, String, Boolean, DateTime, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.models.base import Base


class StaffMember(Base):
    __tablename__ = "staff_members"

    id = Column(String(50), primary_key=True)  # slug, e.g. "ana"
    display_name = Column(String(100), nullable=False)
    role = Column(String(100), nullable=True)
    specialty = Column(String(200), nullable=True)

    # Weekdays this person never works, 0=Sunday ... 6=Saturday
    unavailable_days = Column(JSON, default=list, nullable=False)

    is_active = Column(Boolean, default=True, nullable=False)

    appointments = relationship("Appointment", back_populates="staff")

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<StaffMember(id={self.id}, name={self.display_name})>"

    def to_dict(self):
        return {
            "id": self.id,
            "display_name": self.display_name,
            "role": self.role,
            "specialty": self.specialty,
            "unavailable_days": list(self.unavailable_days or []),
            "is_active": self.is_active,
        }
