from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from core import pricing
from models import db, Service

TAX = Decimal("0.18")
START = datetime(2030, 1, 1, 9, 0)


class _FakeService:
    def __init__(self, id, price, available=True):
        self.id = id
        self.name = f"service-{id}"
        self._price = price
        self._available = available

    def is_available_at(self, facility_id):
        return self._available

    def price_for(self, facility_id):
        return self._price


@pytest.mark.parametrize("minutes,expected", [
    (1, 1),
    (60, 1),
    (61, 2),
    (150, 3),
    (180, 3),
])
def test_partial_hours_bill_as_full_hours(minutes, expected):
    assert pricing.billable_hours(START, START + timedelta(minutes=minutes)) == expected


def test_documented_example_prices_exactly():
    lines = pricing.select_services([_FakeService(1, 5000)], facility_id=1)
    quote = pricing.quote(START, START + timedelta(hours=2, minutes=30), 4000, lines, TAX)

    assert quote.hours == 3
    assert quote.base_price == 12000
    assert quote.service_fees == 5000
    assert quote.taxes == 3060
    assert quote.total_amount == 20060


def test_unavailable_services_are_dropped_not_rejected():
    lines = pricing.select_services(
        [_FakeService(1, 5000), _FakeService(2, 9999, available=False), None], facility_id=1,
    )
    assert [line.service_id for line in lines] == [1]


def test_tax_rounds_half_up_to_one_minor_unit():
    # 0.18 * 25 = 4.5 -> 5
    assert pricing.tax_on(25, TAX) == 5
    assert pricing.tax_on(0, TAX) == 0


def test_extension_quote_charges_tax_on_increment_only():
    ext = pricing.quote_extension(2, 4000, TAX)
    assert ext.additional_base == 8000
    assert ext.additional_tax == 1440
    assert ext.additional_total == 9440


def test_negative_rate_is_rejected():
    with pytest.raises(ValueError):
        pricing.quote(START, START + timedelta(hours=1), -1, [], TAX)


def test_service_override_price_applies_only_at_that_facility(make_facility, make_service):
    here = make_facility()
    elsewhere = make_facility()
    service = db.session.get(Service, make_service(facility_id=here, base_price=6000, custom_price=5000))

    assert service.is_available_at(here)
    assert service.price_for(here) == 5000
    assert not service.is_available_at(elsewhere)
    assert service.price_for(elsewhere) == 6000


def test_inactive_service_is_not_available(make_facility, make_service):
    lot = make_facility()
    service = db.session.get(Service, make_service(facility_id=lot))
    service.is_active = False
    db.session.commit()

    assert not service.is_available_at(lot)


def test_zero_override_makes_service_free_at_that_facility(make_facility, make_service):
    lot = make_facility()
    service = db.session.get(Service, make_service(facility_id=lot, base_price=6000, custom_price=0))

    assert service.price_for(lot) == 0
    lines = pricing.select_services([service], lot)
    assert [line.price for line in lines] == [0]
