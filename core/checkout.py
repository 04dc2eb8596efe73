"""
Payment hand-off for bookings: starting a charge with the payment provider and
applying the provider's verdict once its webhook arrives.
"""
from datetime import datetime

from flask import current_app
from sqlalchemy import select

from models import db
from models.booking import Booking
from models.payment import Payment
from core.errors import InvalidTransition, NotFound
from core.lifecycle import get_booking, transition, refund_cancelled
from utils import payments
from utils.audit import log_event


def start_payment(booking_id: int, actor_id: str) -> dict:
    booking = get_booking(booking_id)
    if booking.status != "pending" or booking.payment_status not in ("pending", "failed"):
        raise InvalidTransition("Booking is not awaiting payment", current=booking.status)

    intent_id, client_secret = payments.authorize_or_charge(
        booking.total_amount,
        booking.currency,
        {"booking_id": booking.id, "reference": booking.reference, "user_id": booking.user_id},
    )

    booking.payment_reference = intent_id
    booking.payment_status = "pending"
    db.session.add(Payment(
        booking_id=booking.id,
        provider="STRIPE",
        kind="CHARGE",
        amount=booking.total_amount,
        currency=booking.currency,
        status="INIT",
        provider_reference=intent_id,
    ))
    db.session.commit()

    log_event("PAYMENT_INTENT_CREATED", user_id=actor_id, entity="booking", entity_id=booking.id,
              metadata={"payment_intent": intent_id})
    return {"booking_id": booking.id, "payment_intent": intent_id, "client_secret": client_secret,
            "amount": booking.total_amount, "currency": booking.currency}


def _payment_row(reference: str):
    return db.session.execute(
        select(Payment).where(Payment.provider_reference == reference)
    ).scalar_one_or_none()


def _booking_for(reference: str, booking_id=None) -> Booking:
    booking = None
    if booking_id:
        booking = db.session.get(Booking, int(booking_id))
    if not booking:
        booking = db.session.execute(
            select(Booking).where(Booking.payment_reference == reference)
        ).scalar_one_or_none()
    if not booking:
        raise NotFound("Booking not found for payment", payment_reference=reference)
    return booking


def confirm_payment(reference: str, booking_id=None, now: datetime = None) -> Booking:
    """
    Marks the payment captured and confirms a pending booking. A capture that
    lands after the booking was cancelled is refunded in full. Redelivery of
    the same webhook only finishes whatever step is still outstanding.
    """
    now = now or datetime.utcnow()
    booking = _booking_for(reference, booking_id)

    if booking.payment_status not in ("completed", "refunded"):
        booking.payment_status = "completed"
        booking.payment_reference = reference
        booking.paid_at = now
        row = _payment_row(reference)
        if row:
            row.status = "PAID"
            row.paid_at = now
        db.session.commit()
        log_event("PAYMENT_PAID", entity="booking", entity_id=booking.id, metadata={"payment_intent": reference})

    if booking.status == "pending":
        return transition(booking.id, "confirmed", actor_id="payment-provider", now=now)

    if booking.status == "cancelled" and booking.payment_status == "completed":
        current_app.logger.warning("Payment %s captured after booking %s was cancelled, refunding", reference, booking.id)
        refund_cancelled(booking, now, amount=booking.total_amount)
    return booking


def mark_payment_failed(reference: str, booking_id=None) -> Booking:
    booking = _booking_for(reference, booking_id)
    if booking.payment_status == "completed":
        return booking

    booking.payment_status = "failed"
    row = _payment_row(reference)
    if row:
        row.status = "FAILED"
    db.session.commit()
    log_event("PAYMENT_FAILED", entity="booking", entity_id=booking.id, metadata={"payment_intent": reference})
    return booking
