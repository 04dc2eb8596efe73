import threading

import pytest

from core import capacity
from core.errors import NoCapacity, NotFound
from models import db, Facility


def _counters(facility_id):
    f = db.session.get(Facility, facility_id, populate_existing=True)
    return f.total, f.available, f.reserved


def test_reserve_one_moves_a_unit_from_available_to_reserved(make_facility):
    fid = make_facility(total=4)

    capacity.reserve_one(fid)
    db.session.commit()

    assert _counters(fid) == (4, 3, 1)
    snap = capacity.snapshot(fid)
    assert snap["occupancy_rate"] == 25.0
    assert snap["last_updated"] is not None


def test_reserve_one_fails_when_full(make_facility):
    fid = make_facility(total=1)
    capacity.reserve_one(fid)
    db.session.commit()

    with pytest.raises(NoCapacity):
        capacity.reserve_one(fid)
    db.session.rollback()

    assert _counters(fid) == (1, 0, 1)


def test_reserve_one_on_unknown_facility_is_not_found(app):
    with pytest.raises(NotFound):
        capacity.reserve_one(9999)


def test_release_one_is_clamped_at_zero_reserved(make_facility):
    fid = make_facility(total=2)

    capacity.release_one(fid)
    db.session.commit()
    assert _counters(fid) == (2, 2, 0)

    capacity.reserve_one(fid)
    capacity.release_one(fid)
    db.session.commit()
    assert _counters(fid) == (2, 2, 0)
    assert capacity.snapshot(fid)["occupancy_rate"] == 0.0


def test_resize_keeps_reserved_units(make_facility):
    fid = make_facility(total=3)
    capacity.reserve_one(fid)
    capacity.reserve_one(fid)
    db.session.commit()

    capacity.resize(fid, 10)
    db.session.commit()
    assert _counters(fid) == (10, 8, 2)
    assert capacity.snapshot(fid)["occupancy_rate"] == 20.0

    with pytest.raises(NoCapacity):
        capacity.resize(fid, 1)
    db.session.rollback()
    assert _counters(fid) == (10, 8, 2)


def test_concurrent_reservations_never_oversell(app, make_facility):
    fid = make_facility(total=3)
    attempts = 8
    outcomes = []
    lock = threading.Lock()
    barrier = threading.Barrier(attempts)

    def worker():
        with app.app_context():
            barrier.wait()
            try:
                capacity.reserve_one(fid)
                db.session.commit()
                outcome = "ok"
            except NoCapacity:
                db.session.rollback()
                outcome = "full"
            finally:
                db.session.remove()
            with lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert outcomes.count("ok") == 3
    assert outcomes.count("full") == attempts - 3

    total, available, reserved = _counters(fid)
    assert available == 0 and reserved == 3
    assert available + reserved <= total


def test_occupancy_moves_with_every_counter_update(make_facility):
    fid = make_facility(total=4)
    for _ in range(3):
        capacity.reserve_one(fid)
    db.session.commit()
    first = capacity.snapshot(fid)
    assert first["occupancy_rate"] == 75.0

    capacity.release_one(fid)
    db.session.commit()
    second = capacity.snapshot(fid)
    assert second["occupancy_rate"] == 50.0
    assert second["last_updated"] >= first["last_updated"]
