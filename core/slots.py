"""
Per-slot state for facilities that expose addressable spaces.

Status changes are compare-and-set UPDATEs on (facility, code, expected
status); exactly one of several racing callers sees rowcount == 1.
"""
from sqlalchemy import update, select, delete, func

from models import db
from models.facility import Facility, VEHICLE_TYPES
from models.slot import Slot, SLOT_STATUSES
from core.errors import SlotNotFound, SlotNotAvailable, NotFound, ValidationFailed
from core.capacity import guarded_execute

HELD_STATUSES = ("reserved", "occupied")
ADMIN_STATUSES = ("available", "maintenance")


def _slot_exists(facility_id: int, code: str) -> bool:
    return db.session.execute(
        select(Slot.id).where(Slot.facility_id == facility_id, Slot.code == code)
    ).first() is not None


def _compare_and_set(facility_id: int, code: str, expected, new_status: str) -> bool:
    result = guarded_execute(
        update(Slot)
        .where(Slot.facility_id == facility_id, Slot.code == code, Slot.status.in_(expected))
        .values(status=new_status)
    )
    return result.rowcount == 1


def reserve_slot(facility_id: int, code: str):
    if _compare_and_set(facility_id, code, ("available",), "reserved"):
        return
    if not _slot_exists(facility_id, code):
        raise SlotNotFound(f"Slot {code} not found", slot_code=code)
    raise SlotNotAvailable(f"Slot {code} is not available", slot_code=code)


def occupy_slot(facility_id: int, code: str) -> bool:
    return _compare_and_set(facility_id, code, ("reserved",), "occupied")


def release_slot(facility_id: int, code: str) -> bool:
    return _compare_and_set(facility_id, code, HELD_STATUSES, "available")


def set_status(facility_id: int, code: str, status: str):
    """
    Moves a slot between ``available`` and ``maintenance``. Slots held by a
    booking only change through the booking lifecycle.
    """
    if status not in SLOT_STATUSES:
        raise ValidationFailed(f"Unknown slot status {status}", status=status)
    if status not in ADMIN_STATUSES:
        raise ValidationFailed(f"Slots can only be set to {', '.join(ADMIN_STATUSES)}", status=status)

    if _compare_and_set(facility_id, code, ADMIN_STATUSES, status):
        return
    if not _slot_exists(facility_id, code):
        raise SlotNotFound(f"Slot {code} not found", slot_code=code)
    raise SlotNotAvailable(f"Slot {code} is held by a booking", slot_code=code)


def list_slots(facility_id: int, include_all: bool = False) -> list:
    q = select(Slot).where(Slot.facility_id == facility_id)
    if not include_all:
        q = q.where(Slot.status == "available")
    return list(db.session.execute(q.order_by(Slot.id)).scalars())


def generate_layout(facility_id: int, levels: int = 1, rows: int = 5, cols: int = 10, slot_type: str = "car") -> list:
    """
    Replaces the facility's slots with a levels x rows x cols grid coded
    ``L<level>-R<row>-C<col>``. Positions are arbitrary 3D units for rendering.
    """
    if min(levels, rows, cols) < 1:
        raise ValidationFailed("levels, rows and cols must be positive")
    if slot_type not in VEHICLE_TYPES:
        raise ValidationFailed(f"Unknown vehicle type {slot_type}", type=slot_type)

    facility = db.session.get(Facility, facility_id)
    if not facility:
        raise NotFound("Parking lot not found", facility_id=facility_id)

    held = db.session.execute(
        select(func.count(Slot.id)).where(Slot.facility_id == facility_id, Slot.status.in_(HELD_STATUSES))
    ).scalar_one()
    if held:
        raise SlotNotAvailable(f"{held} slots are held by bookings; layout cannot be replaced")

    db.session.execute(delete(Slot).where(Slot.facility_id == facility_id))
    db.session.expire(facility, ["slots"])

    slots = []
    for level in range(1, levels + 1):
        for row in range(1, rows + 1):
            for col in range(1, cols + 1):
                slots.append(Slot(
                    facility_id=facility_id,
                    code=f"L{level}-R{row:02d}-C{col:02d}",
                    type=slot_type,
                    level=level,
                    status="available",
                    pos_x=col * 2,
                    pos_y=(level - 1) * 5,
                    pos_z=row * 4,
                ))
    db.session.add_all(slots)
    db.session.flush()
    return slots
