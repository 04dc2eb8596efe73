from flask import Blueprint, request, jsonify, g

from core import checkout, lifecycle
from schemas import parse
from schemas.booking import StartPaymentRequest
from utils.auth_context import login_required

payments_bp = Blueprint("payments", __name__, url_prefix="/payments")


@payments_bp.post("/start")
@login_required
def start_payment():
    req = parse(StartPaymentRequest, request.get_json(silent=True))
    booking = lifecycle.get_booking(req.booking_id)
    if booking.user_id != g.actor.id:
        return jsonify(error="Booking not found"), 404

    return jsonify(checkout.start_payment(booking.id, g.actor.id)), 200
