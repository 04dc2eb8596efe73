from flask import Blueprint, request, jsonify, g

from core import catalog, facilities
from schemas import parse
from schemas.facility import CreateServiceRequest, ServiceAvailabilityRequest
from security.rbac import require_roles, can_manage_facility

service_bp = Blueprint("service", __name__, url_prefix="/services")


@service_bp.post("")
@require_roles("admin")
def create_service():
    req = parse(CreateServiceRequest, request.get_json(silent=True))
    service = catalog.create_service(req, g.actor.id)
    return jsonify(id=service.id, name=service.name, base_price=service.base_price), 201


@service_bp.post("/<int:service_id>/availability")
@require_roles("landowner")
def set_availability(service_id: int):
    req = parse(ServiceAvailabilityRequest, request.get_json(silent=True))
    facility = facilities.get_facility(req.facility_id)
    if not can_manage_facility(g.actor, facility):
        return jsonify(error="Not authorized"), 403

    row = catalog.set_availability(service_id, req, g.actor.id)
    return jsonify(
        service_id=row.service_id,
        facility_id=row.facility_id,
        custom_price=row.custom_price,
        is_active=row.is_active,
    ), 200


@service_bp.get("/<int:service_id>/pricing/<int:facility_id>")
def pricing(service_id: int, facility_id: int):
    return jsonify(catalog.price_at(service_id, facility_id)), 200
