from models.db import db

SLOT_STATUSES = ("available", "reserved", "occupied", "maintenance")


class Slot(db.Model):
    __tablename__ = "slots"

    id = db.Column(db.Integer, primary_key=True)

    facility_id = db.Column(db.Integer, db.ForeignKey("facilities.id"), nullable=False, index=True)
    code = db.Column(db.String(32), nullable=False)  # e.g. L1-R01-C01
    type = db.Column(db.String(20), nullable=False, default="car")
    level = db.Column(db.Integer, nullable=False, default=1)
    status = db.Column(db.String(20), nullable=False, default="available")

    # 3D layout coordinates (arbitrary units)
    pos_x = db.Column(db.Integer, nullable=True)
    pos_y = db.Column(db.Integer, nullable=True)
    pos_z = db.Column(db.Integer, nullable=True)

    facility = db.relationship("Facility", back_populates="slots")

    __table_args__ = (
        # Slot codes are unique within one facility
        db.UniqueConstraint("facility_id", "code", name="uq_facility_slot_code"),
        db.Index("ix_slots_status", "status"),
    )

    def to_dict(self):
        return {
            "code": self.code,
            "type": self.type,
            "level": self.level,
            "status": self.status,
            "position": {"x": self.pos_x, "y": self.pos_y, "z": self.pos_z},
        }
