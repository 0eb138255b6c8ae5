# app/models/service.py
"""
Service Model - salon service catalog
Source of truth for the duration and price used when quoting a booking.
"""
from sqlalchemy import Column, String, Numeric, Integer, Boolean, DateTime, Text
from sqlalchemy.sql import func
from app.models.base import Base


class Service(Base):
    """
    A bookable salon service. Customizable services (e.g. nail art) are priced
    and timed per unit; the client picks the quantity.
    """
    __tablename__ = "services"

    id = Column(String(50), primary_key=True)  # slug, e.g. "mani-gel"
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=True, index=True)

    # Base duration (minutes) and price
    duration = Column(Integer, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    # Per-unit pricing for customizable services
    is_customizable = Column(Boolean, default=False, nullable=False)
    duration_per_unit = Column(Integer, nullable=True)
    price_per_unit = Column(Numeric(10, 2), nullable=True)

    # Status and ordering
    is_active = Column(Boolean, default=True, index=True)
    display_order = Column(Integer, default=0)  # For UI sorting

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "duration": self.duration,
            "price": float(self.price) if self.price is not None else None,
            "is_customizable": self.is_customizable,
            "duration_per_unit": self.duration_per_unit,
            "price_per_unit": float(self.price_per_unit) if self.price_per_unit is not None else None,
            "is_active": self.is_active,
            "display_order": self.display_order,
        }
