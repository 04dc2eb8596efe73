import threading

import pytest

from core import slots
from core.errors import SlotNotFound, SlotNotAvailable, ValidationFailed
from models import db, Slot


def _status(facility_id, code):
    db.session.expire_all()
    return db.session.query(Slot).filter_by(facility_id=facility_id, code=code).one().status


@pytest.fixture
def lot(make_facility):
    fid = make_facility(total=10)
    slots.generate_layout(fid, levels=1, rows=2, cols=3)
    db.session.commit()
    return fid


def test_layout_is_a_deterministic_grid(make_facility):
    fid = make_facility()
    created = slots.generate_layout(fid, levels=2, rows=2, cols=3, slot_type="bike")
    db.session.commit()

    assert len(created) == 12
    codes = [s.code for s in created]
    assert codes[0] == "L1-R01-C01"
    assert codes[-1] == "L2-R02-C03"
    assert len(set(codes)) == 12

    last = created[-1]
    assert (last.pos_x, last.pos_y, last.pos_z) == (6, 5, 8)
    assert {s.type for s in created} == {"bike"}


def test_layout_replaces_previous_slots(lot):
    slots.generate_layout(lot, levels=1, rows=1, cols=2)
    db.session.commit()
    assert [s.code for s in slots.list_slots(lot, include_all=True)] == ["L1-R01-C01", "L1-R01-C02"]


def test_layout_refused_while_slots_are_held(lot):
    slots.reserve_slot(lot, "L1-R01-C01")
    db.session.commit()

    with pytest.raises(SlotNotAvailable):
        slots.generate_layout(lot, rows=1, cols=1)
    db.session.rollback()
    assert len(slots.list_slots(lot, include_all=True)) == 6


def test_reserve_slot_is_compare_and_set(lot):
    slots.reserve_slot(lot, "L1-R01-C02")
    db.session.commit()
    assert _status(lot, "L1-R01-C02") == "reserved"

    with pytest.raises(SlotNotAvailable):
        slots.reserve_slot(lot, "L1-R01-C02")
    with pytest.raises(SlotNotFound):
        slots.reserve_slot(lot, "L9-R99-C99")


def test_release_and_occupy(lot):
    slots.reserve_slot(lot, "L1-R02-C01")
    assert slots.occupy_slot(lot, "L1-R02-C01")
    assert slots.release_slot(lot, "L1-R02-C01")
    db.session.commit()
    assert _status(lot, "L1-R02-C01") == "available"
    # Releasing an already free slot is a no-op
    assert not slots.release_slot(lot, "L1-R02-C01")


def test_maintenance_toggle_only_on_unheld_slots(lot):
    slots.set_status(lot, "L1-R01-C03", "maintenance")
    db.session.commit()
    assert _status(lot, "L1-R01-C03") == "maintenance"
    assert "L1-R01-C03" not in [s.code for s in slots.list_slots(lot)]

    with pytest.raises(SlotNotAvailable):
        slots.reserve_slot(lot, "L1-R01-C03")

    slots.reserve_slot(lot, "L1-R01-C01")
    with pytest.raises(SlotNotAvailable):
        slots.set_status(lot, "L1-R01-C01", "maintenance")
    with pytest.raises(ValidationFailed):
        slots.set_status(lot, "L1-R01-C02", "occupied")
    with pytest.raises(ValidationFailed):
        slots.set_status(lot, "L1-R01-C02", "broken")


def test_racing_for_one_slot_has_a_single_winner(app, lot):
    attempts = 6
    outcomes = []
    lock = threading.Lock()
    barrier = threading.Barrier(attempts)

    def worker():
        with app.app_context():
            barrier.wait()
            try:
                slots.reserve_slot(lot, "L1-R02-C03")
                db.session.commit()
                outcome = "won"
            except SlotNotAvailable:
                db.session.rollback()
                outcome = "lost"
            finally:
                db.session.remove()
            with lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=worker) for _ in range(attempts)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert outcomes.count("won") == 1
    assert outcomes.count("lost") == attempts - 1
    assert _status(lot, "L1-R02-C03") == "reserved"
