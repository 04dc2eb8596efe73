"""
Shared fixtures: an app bound to a throwaway SQLite file (file-backed so that
threads can race on real connections), plus small factories.
"""
import os
import sys
from datetime import datetime, timedelta

import pytest

# Flat layout: make the project root importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import create_app
from config import TestConfig
from models import db, Facility, Service, ServiceAvailability
from schemas.booking import CreateBookingRequest


@pytest.fixture
def app(tmp_path):
    class _Config(TestConfig):
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "parkslot-test.db")

    app = create_app(_Config)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_facility(app):
    def _make(total=5, hourly_rate=4000, vehicle_types=("car",), owner="owner-1"):
        facility = Facility(
            name="Central Plaza Parking",
            owner_user_id=owner,
            total=total,
            available=total,
            reserved=0,
            hourly_rate=hourly_rate,
            currency="INR",
            vehicle_types=list(vehicle_types),
        )
        db.session.add(facility)
        db.session.commit()
        return facility.id
    return _make


@pytest.fixture
def make_service(app):
    def _make(facility_id=None, base_price=6000, custom_price=None, active_here=True, name="Exterior wash"):
        service = Service(name=name, category="car-wash", base_price=base_price, unit="per-service")
        db.session.add(service)
        db.session.flush()
        if facility_id is not None:
            db.session.add(ServiceAvailability(
                service_id=service.id, facility_id=facility_id,
                custom_price=custom_price, is_active=active_here,
            ))
        db.session.commit()
        return service.id
    return _make


@pytest.fixture
def booking_request():
    def _make(facility_id, start=None, hours=2, **overrides):
        start = start or (datetime.utcnow() + timedelta(days=2)).replace(microsecond=0)
        data = {
            "facility_id": facility_id,
            "vehicle": {"type": "car", "license_plate": "ka01ab1234"},
            "start_time": start,
            "end_time": start + timedelta(hours=hours),
            "payment_method": "card",
        }
        data.update(overrides)
        return CreateBookingRequest(**data)
    return _make


def actor(actor_id, role="driver"):
    return {"X-Actor-Id": actor_id, "X-Actor-Role": role}
