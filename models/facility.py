from datetime import datetime
from models.db import db

VEHICLE_TYPES = ("car", "bike", "truck", "van", "bicycle")


class Facility(db.Model):
    __tablename__ = "facilities"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    owner_user_id = db.Column(db.String(64), nullable=False, index=True)

    # Counters are written only by core.capacity
    total = db.Column(db.Integer, nullable=False)
    available = db.Column(db.Integer, nullable=False)
    reserved = db.Column(db.Integer, nullable=False, default=0)
    occupancy_rate = db.Column(db.Float, nullable=False, default=0.0)
    last_updated = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    hourly_rate = db.Column(db.Integer, nullable=False, default=0)  # smallest unit
    currency = db.Column(db.String(10), nullable=False, default="INR")
    vehicle_types = db.Column(db.JSON, nullable=False, default=lambda: ["car"])

    status = db.Column(db.String(20), nullable=False, default="active")
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    slots = db.relationship(
        "Slot",
        back_populates="facility",
        order_by="Slot.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.CheckConstraint("total > 0", name="ck_facility_total_positive"),
        db.CheckConstraint("available >= 0", name="ck_facility_available_nonneg"),
        db.CheckConstraint("reserved >= 0", name="ck_facility_reserved_nonneg"),
        db.CheckConstraint("available + reserved <= total", name="ck_facility_capacity_bound"),
        db.CheckConstraint("hourly_rate >= 0", name="ck_facility_rate_nonneg"),
    )

    @property
    def is_capacity_only(self) -> bool:
        return not self.slots

    def supports(self, vehicle_type: str) -> bool:
        return vehicle_type in (self.vehicle_types or [])
