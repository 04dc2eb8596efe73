from sqlalchemy import select

from models import db
from models.service import Service, ServiceAvailability
from core.facilities import get_facility
from core.errors import NotFound
from utils.audit import log_event


def get_service(service_id: int) -> Service:
    service = db.session.get(Service, service_id)
    if not service:
        raise NotFound("Service not found", service_id=service_id)
    return service


def create_service(req, actor_id: str) -> Service:
    service = Service(
        name=req.name.strip(),
        description=req.description,
        category=req.category,
        base_price=req.base_price,
        unit=req.unit,
    )
    db.session.add(service)
    db.session.commit()
    log_event("SERVICE_CREATE", user_id=actor_id, entity="service", entity_id=service.id)
    return service


def set_availability(service_id: int, req, actor_id: str) -> ServiceAvailability:
    service = get_service(service_id)
    get_facility(req.facility_id)

    row = db.session.execute(
        select(ServiceAvailability).where(
            ServiceAvailability.service_id == service.id,
            ServiceAvailability.facility_id == req.facility_id,
        )
    ).scalar_one_or_none()
    if not row:
        row = ServiceAvailability(service_id=service.id, facility_id=req.facility_id)
        db.session.add(row)

    row.custom_price = req.custom_price
    row.is_active = req.is_active
    db.session.commit()

    log_event("SERVICE_AVAILABILITY_SET", user_id=actor_id, entity="service", entity_id=service.id,
              metadata={"facility_id": req.facility_id, "custom_price": req.custom_price, "is_active": req.is_active})
    return row


def price_at(service_id: int, facility_id: int) -> dict:
    service = get_service(service_id)
    get_facility(facility_id)
    return {
        "service_id": service.id,
        "facility_id": facility_id,
        "available": service.is_available_at(facility_id),
        "price": service.price_for(facility_id),
        "base_price": service.base_price,
        "unit": service.unit,
    }
