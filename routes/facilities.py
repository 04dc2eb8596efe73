from flask import Blueprint, request, jsonify, g

from core import facilities, lifecycle, slots
from core.capacity import snapshot
from models.booking import BOOKING_STATUSES
from schemas import parse
from schemas.facility import CreateFacilityRequest, ResizeCapacityRequest, GenerateLayoutRequest, SlotStatusRequest
from security.rbac import require_roles, can_manage_facility

facility_bp = Blueprint("facility", __name__, url_prefix="/facilities")


def _managed(facility_id: int):
    facility = facilities.get_facility(facility_id)
    if not can_manage_facility(g.actor, facility):
        return None
    return facility


@facility_bp.post("")
@require_roles("landowner")
def create_facility():
    req = parse(CreateFacilityRequest, request.get_json(silent=True))
    facility = facilities.create_facility(g.actor.id, req)
    return jsonify(id=facility.id, capacity=snapshot(facility.id)), 201


@facility_bp.get("/<int:facility_id>")
def get_facility(facility_id: int):
    facility = facilities.get_facility(facility_id)
    return jsonify(
        id=facility.id,
        name=facility.name,
        description=facility.description,
        city=facility.city,
        owner_id=facility.owner_user_id,
        hourly_rate=facility.hourly_rate,
        currency=facility.currency,
        vehicle_types=facility.vehicle_types,
        capacity_only=facility.is_capacity_only,
        capacity=snapshot(facility.id),
    ), 200


# ---------- OWNER/ADMIN: explicit capacity edit ----------
@facility_bp.put("/<int:facility_id>/capacity")
@require_roles("landowner")
def resize_capacity(facility_id: int):
    req = parse(ResizeCapacityRequest, request.get_json(silent=True))
    if not _managed(facility_id):
        return jsonify(error="Not authorized"), 403
    return jsonify(capacity=facilities.resize_capacity(facility_id, req.total, g.actor.id)), 200


# ---------- PUBLIC: slots (available only unless ?all=1) ----------
@facility_bp.get("/<int:facility_id>/slots")
def list_slots(facility_id: int):
    facilities.get_facility(facility_id)
    include_all = request.args.get("all", "").lower() in ("1", "true", "yes")
    rows = slots.list_slots(facility_id, include_all=include_all)
    return jsonify(
        slots=[s.to_dict() for s in rows],
        total=len(rows),
        available=sum(1 for s in rows if s.status == "available"),
    ), 200


@facility_bp.post("/<int:facility_id>/slots/layout")
@require_roles("landowner")
def generate_layout(facility_id: int):
    req = parse(GenerateLayoutRequest, request.get_json(silent=True))
    if not _managed(facility_id):
        return jsonify(error="Not authorized"), 403
    rows = facilities.generate_layout(facility_id, g.actor.id, req.levels, req.rows, req.cols, req.type)
    return jsonify(slots=[s.to_dict() for s in rows], total=len(rows)), 201


@facility_bp.put("/<int:facility_id>/slots/<code>/status")
@require_roles("landowner")
def set_slot_status(facility_id: int, code: str):
    req = parse(SlotStatusRequest, request.get_json(silent=True))
    if not _managed(facility_id):
        return jsonify(error="Not authorized"), 403
    facilities.set_slot_status(facility_id, code, req.status, g.actor.id)
    return jsonify(slot_code=code, status=req.status), 200


# ---------- OWNER/ADMIN: bookings at my lot ----------
@facility_bp.get("/<int:facility_id>/bookings")
@require_roles("landowner")
def facility_bookings(facility_id: int):
    if not _managed(facility_id):
        return jsonify(error="Not authorized"), 403
    status = request.args.get("status")
    if status and status not in BOOKING_STATUSES:
        return jsonify(error="Invalid status filter"), 400
    rows = lifecycle.list_for_facility(facility_id, status=status)
    return jsonify([b.to_dict() for b in rows]), 200
