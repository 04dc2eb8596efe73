"""
Booking lifecycle: creation, status transitions and extensions.

Capacity and slot mutations for one request run inside a single database
transaction; any failure rolls the whole attempt back so no slot or unit of
capacity is left orphaned. Events and audit rows are written only after the
commit, so no lock is held while talking to collaborators.
"""
import secrets
import string
import time
from datetime import datetime, timedelta
from decimal import Decimal

from flask import current_app
from sqlalchemy import update, select, func
from sqlalchemy.exc import IntegrityError

from models import db
from models.booking import Booking, BookingService, BookingExtension, BOOKING_STATUSES
from models.facility import Facility
from models.service import Service
from models.payment import Payment
from core import capacity, slots, pricing
from core.errors import (
    BookingError, NotFound, NoCapacity, SlotNotAvailable, UnsupportedVehicleType,
    InvalidInterval, InvalidTransition, ConcurrentModification, ValidationFailed, PaymentFailed,
)
from core.refunds import RefundPolicy
from utils import payments
from utils.audit import log_event
from utils.notify import publish, capacity_topic, booking_topic

TRANSITIONS = {
    "pending": {"confirmed", "cancelled"},
    "confirmed": {"active", "cancelled"},
    "active": {"completed", "cancelled"},
    "completed": set(),
    "cancelled": set(),
}
EXTENDABLE_STATUSES = ("confirmed", "active")

_BASE36 = string.digits + string.ascii_uppercase


def _base36(n: int) -> str:
    out = ""
    while n:
        n, r = divmod(n, 36)
        out = _BASE36[r] + out
    return out or "0"


def generate_reference() -> str:
    random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"PB{_base36(int(time.time() * 1000))}{random_part}"


def _tax_rate() -> Decimal:
    return Decimal(str(current_app.config.get("TAX_RATE", "0.18")))


def get_booking(booking_id: int) -> Booking:
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise NotFound("Booking not found", booking_id=booking_id)
    return booking


def _announce_capacity(facility_id: int, reason: str, booking_id=None):
    event = {"type": "capacity-changed", "reason": reason, "booking_id": booking_id}
    event.update(capacity.snapshot(facility_id))
    publish(capacity_topic(facility_id), event)


def _announce_status(booking: Booking, now: datetime):
    publish(booking_topic(booking.id), {
        "type": "status-update",
        "booking_id": booking.id,
        "facility_id": booking.facility_id,
        "status": booking.status,
        "timestamp": now.isoformat(),
    })


def create_booking(user_id: str, req, now: datetime = None) -> Booking:
    """
    Reserves one unit of capacity (and the requested slot, if any), prices the
    request and persists it as ``pending``. With ``simulate_payment`` (only
    when ALLOW_SIMULATED_PAYMENT is on) the booking is stored ``confirmed``
    with payment already completed.
    """
    now = now or datetime.utcnow()
    cfg = current_app.config

    facility = db.session.get(Facility, req.facility_id)
    if not facility or not facility.is_active:
        raise NotFound("Parking lot not found", facility_id=req.facility_id)

    if req.simulate_payment and not cfg.get("ALLOW_SIMULATED_PAYMENT", False):
        raise ValidationFailed("Simulated payment is disabled")

    if facility.available <= 0:
        log_event("BOOKING_FAIL_NO_CAPACITY", user_id=user_id, entity="facility", entity_id=facility.id)
        raise NoCapacity("No parking spots available", facility_id=facility.id)

    try:
        if req.slot_code:
            slots.reserve_slot(facility.id, req.slot_code)

        if not facility.supports(req.vehicle.type):
            raise UnsupportedVehicleType(
                f"Vehicle type {req.vehicle.type} not supported at this location",
                vehicle_type=req.vehicle.type,
            )
        if req.start_time < now:
            raise InvalidInterval("Start time cannot be in the past")
        if req.end_time <= req.start_time:
            raise InvalidInterval("End time must be after start time")

        requested = []
        if req.services:
            requested = db.session.execute(
                select(Service).where(Service.id.in_(req.services))
            ).scalars().all()
        lines = pricing.select_services(requested, facility.id)
        quote = pricing.quote(req.start_time, req.end_time, facility.hourly_rate, lines, _tax_rate())

        capacity.reserve_one(facility.id)

        booking = Booking(
            reference=generate_reference(),
            user_id=str(user_id),
            facility_id=facility.id,
            slot_code=req.slot_code,
            vehicle_type=req.vehicle.type,
            license_plate=req.vehicle.license_plate,
            vehicle_model=req.vehicle.model,
            vehicle_color=req.vehicle.color,
            start_time=req.start_time,
            end_time=req.end_time,
            duration_hours=quote.hours,
            hourly_rate=quote.hourly_rate,
            base_price=quote.base_price,
            service_fees=quote.service_fees,
            taxes=quote.taxes,
            total_amount=quote.total_amount,
            currency=facility.currency,
            status="pending",
            payment_method=req.payment_method,
            payment_status="pending",
        )
        if req.simulate_payment:
            booking.status = "confirmed"
            booking.payment_status = "completed"
            booking.payment_reference = f"sim_{booking.reference.lower()}"
            booking.paid_at = now

        for line in quote.services:
            booking.services.append(BookingService(
                service_id=line.service_id, name=line.name, price=line.price, quantity=line.quantity,
            ))

        db.session.add(booking)
        db.session.commit()
    except BookingError as exc:
        db.session.rollback()
        if isinstance(exc, (NoCapacity, SlotNotAvailable)):
            log_event(
                "BOOKING_FAIL_SLOT_TAKEN" if isinstance(exc, SlotNotAvailable) else "BOOKING_FAIL_NO_CAPACITY",
                user_id=user_id, entity="facility", entity_id=req.facility_id,
                metadata={"slot_code": req.slot_code},
            )
        raise
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning("Booking insert conflicted: %s", exc)
        raise ConcurrentModification("Booking conflicted with a concurrent update, retry") from exc

    current_app.logger.info(
        "Booking %s created on facility %s (slot=%s, total=%s)",
        booking.reference, booking.facility_id, booking.slot_code, booking.total_amount,
    )
    log_event(
        "BOOKING_CREATE", user_id=user_id, entity="booking", entity_id=booking.id,
        metadata={"facility_id": booking.facility_id, "slot_code": booking.slot_code, "total": booking.total_amount},
    )
    _announce_capacity(booking.facility_id, "booking-created", booking.id)
    return booking


def _release_allocation(booking: Booking):
    capacity.release_one(booking.facility_id)
    if booking.slot_code:
        slots.release_slot(booking.facility_id, booking.slot_code)


def refund_cancelled(booking: Booking, now: datetime, amount: int = None):
    """
    Returns money for a cancelled booking whose payment was captured. Runs
    after the cancellation commit; a provider failure leaves the booking
    cancelled with payment still ``completed`` and is reported to the caller.
    ``amount`` defaults to the refund decided at cancellation time.
    """
    if amount is None:
        amount = booking.cancel_refund_amount or 0
    if booking.payment_status != "completed" or amount <= 0 or not booking.payment_reference:
        return

    try:
        refund_reference = payments.refund(booking.payment_reference, amount)
    except PaymentFailed as exc:
        log_event(
            "PAYMENT_REFUND_FAILED", entity="booking", entity_id=booking.id,
            metadata={"amount": amount, "error": exc.message},
        )
        raise PaymentFailed(
            f"Booking cancelled but refund failed: {exc.message}", booking_id=booking.id,
        ) from exc

    simulated = refund_reference.startswith(payments.SIMULATED_PREFIX)
    booking.payment_status = "refunded"
    booking.refund_amount = amount
    booking.refunded_at = now
    db.session.add(Payment(
        booking_id=booking.id,
        provider="SIMULATED" if simulated else "STRIPE",
        kind="REFUND",
        amount=amount,
        currency=booking.currency,
        status="REFUNDED",
        provider_reference=refund_reference,
        paid_at=now,
    ))
    db.session.commit()
    log_event(
        "PAYMENT_REFUNDED", entity="booking", entity_id=booking.id,
        metadata={"amount": amount, "refund_reference": refund_reference},
    )


def transition(booking_id: int, new_status: str, actor_id: str, reason: str = None, now: datetime = None) -> Booking:
    """
    Moves a booking along the transition table. Cancelling computes the
    refund and gives back the capacity unit and slot; completing records the
    exit and frees them as well.
    """
    now = now or datetime.utcnow()
    if new_status not in BOOKING_STATUSES:
        raise ValidationFailed(f"Unknown status {new_status}", status=new_status)

    booking = get_booking(booking_id)
    old_status = booking.status
    if new_status not in TRANSITIONS.get(old_status, set()):
        raise InvalidTransition(
            f"Cannot change status from {old_status} to {new_status}",
            current=old_status, requested=new_status,
        )

    try:
        # Guard against a concurrent transition of the same booking
        result = capacity.guarded_execute(
            update(Booking)
            .where(Booking.id == booking.id, Booking.status == old_status)
            .values(status=new_status, updated_at=now)
        )
        if result.rowcount != 1:
            raise ConcurrentModification("Booking was modified concurrently, reload and retry", booking_id=booking.id)
        booking.status = new_status

        releases_capacity = False
        if new_status == "active":
            booking.entry_time = now
            booking.entry_verified_by = str(actor_id)
            if booking.slot_code:
                slots.occupy_slot(booking.facility_id, booking.slot_code)
        elif new_status == "completed":
            booking.exit_time = now
            booking.exit_verified_by = str(actor_id)
            _release_allocation(booking)
            releases_capacity = True
        elif new_status == "cancelled":
            decision = RefundPolicy.from_config(current_app.config).compute(
                old_status, booking.total_amount, booking.start_time, now,
            )
            booking.cancel_reason = reason or "Cancelled by user"
            booking.cancelled_at = now
            booking.cancelled_by = str(actor_id)
            booking.refund_eligible = decision.eligible
            booking.cancel_refund_amount = decision.amount
            _release_allocation(booking)
            releases_capacity = True

        db.session.commit()
    except BookingError:
        db.session.rollback()
        raise

    current_app.logger.info("Booking %s: %s -> %s by %s", booking.id, old_status, new_status, actor_id)
    log_event(
        f"BOOKING_{new_status.upper()}", user_id=actor_id, entity="booking", entity_id=booking.id,
        metadata={"from": old_status, "reason": reason},
    )
    _announce_status(booking, now)
    if releases_capacity:
        _announce_capacity(booking.facility_id, f"booking-{new_status}", booking.id)

    if new_status == "cancelled":
        refund_cancelled(booking, now)
    return booking


def cancel_booking(booking_id: int, actor_id: str, reason: str = None, now: datetime = None) -> Booking:
    return transition(booking_id, "cancelled", actor_id, reason=reason, now=now)


def extend_booking(booking_id: int, additional_hours: int, actor_id: str, now: datetime = None) -> Booking:
    """
    Adds whole hours to the end time. The increment is charged at the hourly
    rate captured when the booking was made, plus tax on the increment only;
    service fees already charged are left as they are.
    """
    now = now or datetime.utcnow()
    max_hours = current_app.config.get("MAX_EXTENSION_HOURS", 12)
    if isinstance(additional_hours, bool) or not isinstance(additional_hours, int) \
            or not 1 <= additional_hours <= max_hours:
        raise ValidationFailed(f"Additional hours must be 1-{max_hours}", additional_hours=additional_hours)

    booking = get_booking(booking_id)
    if booking.status not in EXTENDABLE_STATUSES:
        raise InvalidTransition(
            f"Booking cannot be extended while {booking.status}",
            current=booking.status,
        )

    ext = pricing.quote_extension(additional_hours, booking.hourly_rate, _tax_rate())
    previous_end = booking.end_time
    new_end = previous_end + timedelta(hours=additional_hours)

    try:
        result = capacity.guarded_execute(
            update(Booking)
            .where(
                Booking.id == booking.id,
                Booking.status.in_(EXTENDABLE_STATUSES),
                Booking.end_time == previous_end,
            )
            .values(
                end_time=new_end,
                duration_hours=Booking.duration_hours + additional_hours,
                base_price=Booking.base_price + ext.additional_base,
                taxes=Booking.taxes + ext.additional_tax,
                total_amount=Booking.total_amount + ext.additional_total,
                updated_at=now,
            )
        )
        if result.rowcount != 1:
            raise ConcurrentModification("Booking was modified concurrently, reload and retry", booking_id=booking.id)

        db.session.add(BookingExtension(
            booking_id=booking.id,
            additional_hours=additional_hours,
            previous_end_time=previous_end,
            new_end_time=new_end,
            additional_base=ext.additional_base,
            additional_tax=ext.additional_tax,
            additional_total=ext.additional_total,
            created_by=str(actor_id),
            created_at=now,
        ))
        db.session.commit()
    except BookingError:
        db.session.rollback()
        raise

    booking = db.session.get(Booking, booking.id, populate_existing=True)
    log_event(
        "BOOKING_EXTEND", user_id=actor_id, entity="booking", entity_id=booking.id,
        metadata={"additional_hours": additional_hours, "additional_total": ext.additional_total},
    )
    publish(booking_topic(booking.id), {
        "type": "booking-extended",
        "booking_id": booking.id,
        "status": booking.status,
        "end_time": booking.end_time.isoformat(),
        "total_amount": booking.total_amount,
        "timestamp": now.isoformat(),
    })
    return booking


def list_for_user(user_id: str, status: str = None, page: int = 1, limit: int = 10) -> dict:
    page = max(1, int(page))
    limit = min(max(1, int(limit)), current_app.config.get("MAX_PAGE_SIZE", 50))

    q = select(Booking).where(Booking.user_id == str(user_id))
    count_q = select(func.count(Booking.id)).where(Booking.user_id == str(user_id))
    if status:
        q = q.where(Booking.status == status)
        count_q = count_q.where(Booking.status == status)

    total = db.session.execute(count_q).scalar_one()
    rows = db.session.execute(
        q.order_by(Booking.created_at.desc(), Booking.id.desc()).offset((page - 1) * limit).limit(limit)
    ).scalars().all()
    return {
        "bookings": rows,
        "pagination": {
            "current": page,
            "total": -(-total // limit),
            "total_bookings": total,
        },
    }


def list_for_facility(facility_id: int, status: str = None) -> list:
    q = select(Booking).where(Booking.facility_id == facility_id)
    if status:
        q = q.where(Booking.status == status)
    return db.session.execute(q.order_by(Booking.start_time.asc()).limit(200)).scalars().all()
