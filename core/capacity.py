"""
Aggregate capacity counters for a facility.

This module is the only writer of ``Facility.total/available/reserved``.
Each mutation is a single conditional UPDATE so the database decides the
winner when callers race; nothing here reads a counter and writes it back.
The caller owns the surrounding transaction (commit or rollback).
"""
from datetime import datetime

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from models import db
from models.facility import Facility
from core.errors import NoCapacity, NotFound, ConcurrentModification


def guarded_execute(stmt):
    try:
        return db.session.execute(stmt.execution_options(synchronize_session=False))
    except OperationalError as exc:
        # Lock timeout / serialization failure: the whole attempt may be retried
        db.session.rollback()
        raise ConcurrentModification("Capacity is being updated by another request, retry") from exc


def _occupancy(in_use, total=Facility.total):
    # SET expressions see the row as it was before the UPDATE
    return {"occupancy_rate": in_use * 100.0 / total, "last_updated": datetime.utcnow()}


def _require_facility(facility_id: int) -> Facility:
    facility = db.session.get(Facility, facility_id)
    if not facility or not facility.is_active:
        raise NotFound("Parking lot not found", facility_id=facility_id)
    return facility


def reserve_one(facility_id: int):
    result = guarded_execute(
        update(Facility)
        .where(Facility.id == facility_id, Facility.available > 0)
        .values(
            available=Facility.available - 1,
            reserved=Facility.reserved + 1,
            **_occupancy(Facility.total - Facility.available + 1),
        )
    )
    if result.rowcount != 1:
        _require_facility(facility_id)
        raise NoCapacity("No parking spots available", facility_id=facility_id)


def release_one(facility_id: int):
    result = guarded_execute(
        update(Facility)
        .where(Facility.id == facility_id, Facility.reserved > 0)
        .values(
            available=Facility.available + 1,
            reserved=Facility.reserved - 1,
            **_occupancy(Facility.total - Facility.available - 1),
        )
    )
    if result.rowcount != 1:
        current_app.logger.warning("release_one on facility %s with nothing reserved", facility_id)


def resize(facility_id: int, new_total: int):
    """
    Admin edit of ``total``. Units currently reserved stay reserved; the
    rest become available.
    """
    if new_total < 1:
        raise NoCapacity("Capacity must be at least 1", facility_id=facility_id)

    result = guarded_execute(
        update(Facility)
        .where(Facility.id == facility_id, Facility.reserved <= new_total)
        .values(
            total=new_total,
            available=new_total - Facility.reserved,
            **_occupancy(Facility.reserved, new_total),
        )
    )
    if result.rowcount != 1:
        facility = _require_facility(facility_id)
        raise NoCapacity(
            f"Cannot shrink capacity below the {facility.reserved} spots currently reserved",
            facility_id=facility_id,
        )


def snapshot(facility_id: int) -> dict:
    facility = db.session.get(Facility, facility_id, populate_existing=True)
    if not facility:
        raise NotFound("Parking lot not found", facility_id=facility_id)
    return {
        "facility_id": facility.id,
        "total": facility.total,
        "available": facility.available,
        "reserved": facility.reserved,
        "occupancy_rate": round(facility.occupancy_rate or 0.0, 2),
        "last_updated": facility.last_updated.isoformat() if facility.last_updated else None,
    }
