from datetime import datetime
from models.db import db

SERVICE_CATEGORIES = (
    "car-wash", "maintenance", "fuel", "food-beverage",
    "valet", "charging", "insurance", "emergency",
)
SERVICE_UNITS = ("per-service", "per-hour", "per-item")


class Service(db.Model):
    __tablename__ = "services"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    description = db.Column(db.String(500), nullable=True)
    category = db.Column(db.String(30), nullable=False)

    base_price = db.Column(db.Integer, nullable=False)  # smallest unit
    unit = db.Column(db.String(20), nullable=False, default="per-service")
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    availability = db.relationship(
        "ServiceAvailability",
        back_populates="service",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.CheckConstraint("base_price >= 0", name="ck_service_price_nonneg"),
    )

    def _availability_for(self, facility_id):
        for row in self.availability:
            if row.facility_id == facility_id:
                return row
        return None

    def is_available_at(self, facility_id) -> bool:
        if not self.is_active:
            return False
        row = self._availability_for(facility_id)
        return bool(row and row.is_active)

    def price_for(self, facility_id) -> int:
        row = self._availability_for(facility_id)
        if row and row.custom_price is not None:
            return row.custom_price
        return self.base_price


class ServiceAvailability(db.Model):
    __tablename__ = "service_availability"

    id = db.Column(db.Integer, primary_key=True)
    service_id = db.Column(db.Integer, db.ForeignKey("services.id"), nullable=False, index=True)
    facility_id = db.Column(db.Integer, db.ForeignKey("facilities.id"), nullable=False, index=True)

    custom_price = db.Column(db.Integer, nullable=True)  # overrides Service.base_price
    is_active = db.Column(db.Boolean, default=True, nullable=False)

    service = db.relationship("Service", back_populates="availability")

    __table_args__ = (
        db.UniqueConstraint("service_id", "facility_id", name="uq_service_facility"),
    )
