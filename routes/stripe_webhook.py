from flask import Blueprint, request, jsonify, current_app

from core import checkout
from core.errors import NotFound
from utils import payments

webhook_bp = Blueprint("webhook", __name__, url_prefix="/webhooks")


@webhook_bp.post("/stripe")
def stripe_webhook():
    if not current_app.config.get("STRIPE_WEBHOOK_SECRET"):
        return jsonify(error="Webhook secret not configured"), 500

    event = payments.verify_webhook(request.data, request.headers.get("Stripe-Signature"))
    if event is None:
        return jsonify(error="Invalid webhook signature"), 400

    event_type = event.get("type")
    if event_type in ("payment_intent.succeeded", "payment_intent.payment_failed"):
        intent = event["data"]["object"]
        intent_id = intent.get("id")
        meta = intent.get("metadata", {}) or {}

        try:
            if event_type == "payment_intent.succeeded":
                checkout.confirm_payment(intent_id, booking_id=meta.get("booking_id"))
            else:
                checkout.mark_payment_failed(intent_id, booking_id=meta.get("booking_id"))
        except NotFound:
            current_app.logger.warning("Webhook for unknown payment %s", intent_id)

    return jsonify(received=True), 200
