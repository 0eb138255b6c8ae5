#!/usr/bin/env python3
"""
Load the salon's staff and service catalog
Usage: python -m app.scripts.seed_salon

Safe to run repeatedly: existing rows are updated in place.
"""
import sys
from decimal import Decimal
from sqlalchemy.orm import Session

from app.config.database import SessionLocal
from app.models.service import Service
from app.models.staff import StaffMember

# Weekdays use 0=Sunday ... 6=Saturday
STAFF_MEMBERS = [
    {
        "id": "lily",
        "display_name": "Lily",
        "role": "Nail Artist Principal",
        "specialty": "Especialista en Nail Art y Diseños 3D",
        "unavailable_days": [0],
    },
    {
        "id": "sofia",
        "display_name": "Sofía",
        "role": "Técnica en Uñas",
        "specialty": "Experta en Uñas Esculturales",
        "unavailable_days": [0, 6],
    },
    {
        "id": "ana",
        "display_name": "Ana",
        "role": "Manicurista",
        "specialty": "Manicura y Pedicura Spa",
        "unavailable_days": [0],
    },
]

SERVICES = [
    {
        "id": "mani-classic",
        "name": "Manicura Clásica",
        "description": "Manicura completa con limado, cutícula, masaje y esmaltado tradicional.",
        "category": "manicura",
        "duration": 45,
        "price": Decimal("350"),
    },
    {
        "id": "mani-gel",
        "name": "Manicura en Gel",
        "description": "Manicura con esmaltado semipermanente de larga duración (hasta 3 semanas).",
        "category": "manicura",
        "duration": 60,
        "price": Decimal("450"),
    },
    {
        "id": "pedi-spa",
        "name": "Pedicura Spa",
        "description": "Pedicura completa con exfoliación, masaje relajante y esmaltado.",
        "category": "pedicura",
        "duration": 75,
        "price": Decimal("500"),
    },
    {
        "id": "nail-art",
        "name": "Nail Art Personalizado",
        "description": "Diseños únicos y creativos adaptados a tu estilo personal.",
        "category": "nail-art",
        "duration": 30,
        "price": Decimal("150"),
        "is_customizable": True,
        "duration_per_unit": 10,
        "price_per_unit": Decimal("150"),
    },
    {
        "id": "acrylic",
        "name": "Uñas Acrílicas",
        "description": "Extensión de uñas con acrílico resistente y duradero.",
        "category": "esculturales",
        "duration": 120,
        "price": Decimal("800"),
    },
    {
        "id": "polygel",
        "name": "Uñas con Polygel",
        "description": "Extensión ligera y flexible para un acabado natural.",
        "category": "esculturales",
        "duration": 110,
        "price": Decimal("900"),
    },
    {
        "id": "removal",
        "name": "Retiro de Gel/Acrílico",
        "description": "Retiro profesional y cuidadoso de esmaltado o extensiones.",
        "category": "tratamientos",
        "duration": 30,
        "price": Decimal("200"),
    },
    {
        "id": "paraffin",
        "name": "Tratamiento de Parafina",
        "description": "Hidratación profunda para manos suaves y rejuvenecidas.",
        "category": "tratamientos",
        "duration": 30,
        "price": Decimal("250"),
    },
]


def _upsert(db: Session, model, data: dict):
    instance = db.get(model, data["id"])
    if instance is None:
        instance = model(**data)
        db.add(instance)
    else:
        for key, value in data.items():
            setattr(instance, key, value)
    return instance


def seed_salon(db: Session) -> dict:
    """Insert or update the staff and catalog, then commit"""
    for staff_data in STAFF_MEMBERS:
        _upsert(db, StaffMember, {**staff_data, "is_active": True})

    for order, service_data in enumerate(SERVICES):
        _upsert(db, Service, {
            "is_customizable": False,
            "duration_per_unit": None,
            "price_per_unit": None,
            **service_data,
            "is_active": True,
            "display_order": order,
        })

    db.commit()
    return {"staff": len(STAFF_MEMBERS), "services": len(SERVICES)}


def main():
    db: Session = SessionLocal()

    try:
        counts = seed_salon(db)
        print(f"✅ Seeded {counts['staff']} staff members and {counts['services']} services")
    except Exception as e:
        db.rollback()
        print(f"❌ Error seeding salon data: {e}")
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
