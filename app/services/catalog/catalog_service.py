# ============================================================================
# app/services/catalog/catalog_service.py
# Service catalog and booking quotes
# ============================================================================
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import BookingValidationError
from app.models.service import Service

logger = logging.getLogger(__name__)


class CatalogService:
    """Read access to the service catalog and quoting of a selection"""

    @staticmethod
    def list_services(db: Session, category: Optional[str] = None) -> List[Service]:
        query = db.query(Service).filter(Service.is_active.is_(True))
        if category:
            query = query.filter(Service.category == category)
        return query.order_by(Service.display_order.asc(), Service.name.asc()).all()

    @staticmethod
    def quote(
            db: Session,
            service_ids: List[str],
            quantities: Optional[Dict[str, int]] = None
    ) -> Dict[str, Any]:
        """
        Total duration and price of a selection of services.

        Customizable services with a quantity are charged and timed per unit;
        everything else uses its base duration and price.

        Raises:
            BookingValidationError: empty selection, unknown service, bad quantity
        """
        if not service_ids:
            raise BookingValidationError("Select at least one service", field="service_ids")
        quantities = quantities or {}

        services = {
            service.id: service
            for service in db.query(Service).filter(
                Service.id.in_(service_ids), Service.is_active.is_(True)
            ).all()
        }
        missing = [service_id for service_id in service_ids if service_id not in services]
        if missing:
            raise BookingValidationError(f"Unknown services: {', '.join(missing)}", field="service_ids")

        total_duration = 0
        total_price = Decimal("0")
        lines = []

        for service_id in service_ids:
            service = services[service_id]
            quantity = quantities.get(service_id)

            if service.is_customizable and quantity:
                if not isinstance(quantity, int) or quantity < 1:
                    raise BookingValidationError(
                        f"Quantity for {service.name} must be a positive integer", field="quantities"
                    )
                duration = (service.duration_per_unit or 0) * quantity
                price = Decimal(service.price_per_unit or 0) * quantity
            else:
                duration = service.duration
                price = Decimal(service.price)

            total_duration += duration
            total_price += price
            lines.append({
                "service_id": service.id,
                "name": service.name,
                "quantity": quantity if service.is_customizable and quantity else 1,
                "duration": duration,
                "price": float(price),
            })

        return {
            "service_ids": list(service_ids),
            "service_names": [services[service_id].name for service_id in service_ids],
            "total_duration": total_duration,
            "total_price": float(total_price),
            "lines": lines,
        }
