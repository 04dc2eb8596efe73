from datetime import datetime
from models.db import db

BOOKING_STATUSES = ("pending", "confirmed", "active", "completed", "cancelled")
PAYMENT_STATUSES = ("pending", "completed", "failed", "refunded")
PAYMENT_METHODS = ("card", "upi", "wallet", "cash", "razorpay", "stripe")


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    reference = db.Column(db.String(32), unique=True, nullable=False, index=True)

    user_id = db.Column(db.String(64), nullable=False, index=True)
    facility_id = db.Column(db.Integer, db.ForeignKey("facilities.id"), nullable=False, index=True)
    slot_code = db.Column(db.String(32), nullable=True)

    vehicle_type = db.Column(db.String(20), nullable=False)
    license_plate = db.Column(db.String(20), nullable=False)
    vehicle_model = db.Column(db.String(60), nullable=True)
    vehicle_color = db.Column(db.String(30), nullable=True)

    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False, index=True)
    duration_hours = db.Column(db.Integer, nullable=False)

    # Pricing is captured at booking time, all in smallest unit
    hourly_rate = db.Column(db.Integer, nullable=False)
    base_price = db.Column(db.Integer, nullable=False)
    service_fees = db.Column(db.Integer, nullable=False, default=0)
    taxes = db.Column(db.Integer, nullable=False, default=0)
    total_amount = db.Column(db.Integer, nullable=False)
    currency = db.Column(db.String(10), nullable=False, default="INR")

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    # status values: pending, confirmed, active, completed, cancelled

    payment_method = db.Column(db.String(20), nullable=False)
    payment_status = db.Column(db.String(20), nullable=False, default="pending")
    payment_reference = db.Column(db.String(255), nullable=True, index=True)
    paid_at = db.Column(db.DateTime, nullable=True)
    refund_amount = db.Column(db.Integer, nullable=True)
    refunded_at = db.Column(db.DateTime, nullable=True)

    entry_time = db.Column(db.DateTime, nullable=True)
    entry_verified_by = db.Column(db.String(64), nullable=True)
    exit_time = db.Column(db.DateTime, nullable=True)
    exit_verified_by = db.Column(db.String(64), nullable=True)

    cancel_reason = db.Column(db.String(500), nullable=True)
    cancelled_at = db.Column(db.DateTime, nullable=True)
    cancelled_by = db.Column(db.String(64), nullable=True)
    refund_eligible = db.Column(db.Boolean, nullable=True)
    cancel_refund_amount = db.Column(db.Integer, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    facility = db.relationship("Facility")
    services = db.relationship(
        "BookingService",
        back_populates="booking",
        order_by="BookingService.id",
        cascade="all, delete-orphan",
    )
    extensions = db.relationship(
        "BookingExtension",
        back_populates="booking",
        order_by="BookingExtension.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.CheckConstraint("end_time > start_time", name="ck_booking_interval"),
        db.CheckConstraint("base_price >= 0 AND service_fees >= 0 AND taxes >= 0", name="ck_booking_money_nonneg"),
        db.CheckConstraint("total_amount = base_price + service_fees + taxes", name="ck_booking_total"),
    )

    @property
    def cancellation(self):
        if self.status != "cancelled":
            return None
        return {
            "reason": self.cancel_reason,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "cancelled_by": self.cancelled_by,
            "refund_eligible": self.refund_eligible,
            "refund_amount": self.cancel_refund_amount,
        }

    def to_dict(self):
        return {
            "id": self.id,
            "reference": self.reference,
            "user_id": self.user_id,
            "facility_id": self.facility_id,
            "facility_owner_id": self.facility.owner_user_id if self.facility else None,
            "slot_code": self.slot_code,
            "vehicle": {
                "type": self.vehicle_type,
                "license_plate": self.license_plate,
                "model": self.vehicle_model,
                "color": self.vehicle_color,
            },
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "duration_hours": self.duration_hours,
            "pricing": {
                "hourly_rate": self.hourly_rate,
                "base_price": self.base_price,
                "service_fees": self.service_fees,
                "taxes": self.taxes,
                "total_amount": self.total_amount,
                "currency": self.currency,
            },
            "services": [
                {"service_id": s.service_id, "name": s.name, "price": s.price, "quantity": s.quantity}
                for s in self.services
            ],
            "status": self.status,
            "payment": {
                "method": self.payment_method,
                "status": self.payment_status,
                "reference": self.payment_reference,
                "paid_at": self.paid_at.isoformat() if self.paid_at else None,
                "refund_amount": self.refund_amount,
            },
            "entry_time": self.entry_time.isoformat() if self.entry_time else None,
            "exit_time": self.exit_time.isoformat() if self.exit_time else None,
            "cancellation": self.cancellation,
            "extensions": [e.to_dict() for e in self.extensions],
            "created_at": self.created_at.isoformat(),
        }


class BookingService(db.Model):
    __tablename__ = "booking_services"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=True)

    name = db.Column(db.String(100), nullable=False)
    price = db.Column(db.Integer, nullable=False)  # price at booking time
    quantity = db.Column(db.Integer, nullable=False, default=1)

    booking = db.relationship("Booking", back_populates="services")


class BookingExtension(db.Model):
    __tablename__ = "booking_extensions"

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.Integer, db.ForeignKey("bookings.id"), nullable=False, index=True)

    additional_hours = db.Column(db.Integer, nullable=False)
    previous_end_time = db.Column(db.DateTime, nullable=False)
    new_end_time = db.Column(db.DateTime, nullable=False)
    additional_base = db.Column(db.Integer, nullable=False)
    additional_tax = db.Column(db.Integer, nullable=False)
    additional_total = db.Column(db.Integer, nullable=False)

    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    booking = db.relationship("Booking", back_populates="extensions")

    def to_dict(self):
        return {
            "additional_hours": self.additional_hours,
            "previous_end_time": self.previous_end_time.isoformat(),
            "new_end_time": self.new_end_time.isoformat(),
            "additional_base": self.additional_base,
            "additional_tax": self.additional_tax,
            "additional_total": self.additional_total,
            "created_at": self.created_at.isoformat(),
        }
