from flask import Blueprint, request, jsonify, g

from core import lifecycle
from core.errors import NotFound
from models.booking import BOOKING_STATUSES
from schemas import parse
from schemas.booking import CreateBookingRequest, UpdateStatusRequest, CancelRequest, ExtendRequest
from security.rbac import can_access_booking
from utils.auth_context import login_required

booking_bp = Blueprint("booking", __name__, url_prefix="/bookings")


def _load_for_actor(booking_id: int):
    booking = lifecycle.get_booking(booking_id)
    if not can_access_booking(g.actor, booking):
        # Same answer as a missing booking so ids cannot be probed
        raise NotFound("Booking not found", booking_id=booking_id)
    return booking


# ---------- DRIVERS: book a spot (capacity-safe) ----------
@booking_bp.post("")
@login_required
def create_booking():
    req = parse(CreateBookingRequest, request.get_json(silent=True))
    booking = lifecycle.create_booking(g.actor.id, req)
    return jsonify(message="Booking created successfully", booking=booking.to_dict()), 201


# ---------- DRIVERS: view my bookings ----------
@booking_bp.get("/me")
@login_required
def my_bookings():
    status = request.args.get("status")
    if status and status not in BOOKING_STATUSES:
        return jsonify(error="Invalid status filter"), 400
    page = request.args.get("page", default=1, type=int)
    limit = request.args.get("limit", default=10, type=int)

    result = lifecycle.list_for_user(g.actor.id, status=status, page=page, limit=limit)
    return jsonify(
        bookings=[b.to_dict() for b in result["bookings"]],
        pagination=result["pagination"],
    ), 200


@booking_bp.get("/<int:booking_id>")
@login_required
def get_booking(booking_id: int):
    booking = _load_for_actor(booking_id)
    return jsonify(booking=booking.to_dict()), 200


# ---------- requester / lot owner / admin: move through the lifecycle ----------
@booking_bp.put("/<int:booking_id>/status")
@login_required
def update_status(booking_id: int):
    req = parse(UpdateStatusRequest, request.get_json(silent=True))
    _load_for_actor(booking_id)

    booking = lifecycle.transition(booking_id, req.status, g.actor.id, reason=req.reason)
    return jsonify(message=f"Booking {req.status} successfully", booking=booking.to_dict()), 200


# ---------- DRIVERS: cancel (refund per policy) ----------
@booking_bp.delete("/<int:booking_id>")
@login_required
def cancel_booking(booking_id: int):
    req = parse(CancelRequest, request.get_json(silent=True))
    booking = _load_for_actor(booking_id)
    if booking.user_id != g.actor.id and not g.actor.is_admin:
        return jsonify(error="Not authorized to cancel this booking"), 403

    booking = lifecycle.cancel_booking(booking_id, g.actor.id, reason=req.reason)
    return jsonify(
        message="Booking cancelled successfully",
        refund_amount=booking.cancel_refund_amount,
        booking=booking.to_dict(),
    ), 200


# ---------- DRIVERS: extend ----------
@booking_bp.put("/<int:booking_id>/extend")
@login_required
def extend_booking(booking_id: int):
    req = parse(ExtendRequest, request.get_json(silent=True))
    booking = _load_for_actor(booking_id)
    if booking.user_id != g.actor.id:
        return jsonify(error="Not authorized to extend this booking"), 403

    before = booking.total_amount
    booking = lifecycle.extend_booking(booking_id, req.additional_hours, g.actor.id)
    return jsonify(
        message="Booking extended successfully",
        additional_cost=booking.total_amount - before,
        new_end_time=booking.end_time.isoformat(),
        booking=booking.to_dict(),
    ), 200
