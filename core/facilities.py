from flask import current_app

from models import db
from models.facility import Facility
from core import capacity, slots
from core.errors import BookingError, NotFound
from utils.audit import log_event
from utils.notify import publish, capacity_topic


def get_facility(facility_id: int) -> Facility:
    facility = db.session.get(Facility, facility_id)
    if not facility or not facility.is_active:
        raise NotFound("Parking lot not found", facility_id=facility_id)
    return facility


def create_facility(owner_id: str, req) -> Facility:
    facility = Facility(
        name=req.name.strip(),
        description=req.description,
        city=req.city,
        owner_user_id=str(owner_id),
        total=req.total,
        available=req.total,
        reserved=0,
        occupancy_rate=0.0,
        hourly_rate=req.hourly_rate,
        currency=req.currency.upper(),
        vehicle_types=sorted(set(req.vehicle_types)),
    )
    db.session.add(facility)
    db.session.commit()

    log_event("FACILITY_CREATE", user_id=owner_id, entity="facility", entity_id=facility.id,
              metadata={"total": facility.total})
    return facility


def resize_capacity(facility_id: int, new_total: int, actor_id: str) -> dict:
    get_facility(facility_id)
    try:
        capacity.resize(facility_id, new_total)
        db.session.commit()
    except BookingError:
        db.session.rollback()
        raise

    snap = capacity.snapshot(facility_id)
    log_event("CAPACITY_RESIZE", user_id=actor_id, entity="facility", entity_id=facility_id,
              metadata={"total": new_total})
    publish(capacity_topic(facility_id), dict(snap, type="capacity-changed", reason="capacity-resized"))
    return snap


def generate_layout(facility_id: int, actor_id: str, levels=1, rows=5, cols=10, slot_type="car") -> list:
    get_facility(facility_id)
    try:
        created = slots.generate_layout(facility_id, levels, rows, cols, slot_type)
        db.session.commit()
    except BookingError:
        db.session.rollback()
        raise

    current_app.logger.info("Generated %s slots for facility %s", len(created), facility_id)
    log_event("SLOT_LAYOUT_GENERATE", user_id=actor_id, entity="facility", entity_id=facility_id,
              metadata={"levels": levels, "rows": rows, "cols": cols, "type": slot_type})
    return slots.list_slots(facility_id, include_all=True)


def set_slot_status(facility_id: int, code: str, status: str, actor_id: str):
    get_facility(facility_id)
    try:
        slots.set_status(facility_id, code, status)
        db.session.commit()
    except BookingError:
        db.session.rollback()
        raise

    log_event("SLOT_STATUS_SET", user_id=actor_id, entity="slot", entity_id=f"{facility_id}:{code}",
              metadata={"status": status})
