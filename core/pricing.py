"""
Booking price computation.

Everything here is pure: amounts are integers in the currency's smallest unit
and the tax rate is a ``Decimal``, so repeated extensions never drift.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP

ONE_HOUR = timedelta(hours=1)


@dataclass(frozen=True)
class ServiceLine:
    service_id: int
    name: str
    price: int
    quantity: int = 1


@dataclass(frozen=True)
class Quote:
    hours: int
    hourly_rate: int
    base_price: int
    service_fees: int
    taxes: int
    total_amount: int
    services: list = field(default_factory=list)


@dataclass(frozen=True)
class ExtensionQuote:
    additional_hours: int
    additional_base: int
    additional_tax: int
    additional_total: int


def billable_hours(start_time: datetime, end_time: datetime) -> int:
    # Any partial hour bills as a full hour
    hours = -((start_time - end_time) // ONE_HOUR)
    return max(1, hours)


def tax_on(amount: int, tax_rate: Decimal) -> int:
    taxed = (Decimal(amount) * Decimal(tax_rate)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(taxed)


def select_services(services, facility_id) -> list:
    """
    Keeps only the services offered at ``facility_id`` and captures the price
    that applies there. Unavailable services are dropped, not rejected.
    """
    lines = []
    for service in services:
        if service is None or not service.is_available_at(facility_id):
            continue
        lines.append(ServiceLine(service.id, service.name, service.price_for(facility_id)))
    return lines


def quote(start_time: datetime, end_time: datetime, hourly_rate: int, services, tax_rate: Decimal) -> Quote:
    if hourly_rate < 0:
        raise ValueError("hourly_rate must be non-negative")

    hours = billable_hours(start_time, end_time)
    base_price = hours * hourly_rate
    service_fees = sum(line.price * line.quantity for line in services)
    taxes = tax_on(base_price + service_fees, tax_rate)

    return Quote(
        hours=hours,
        hourly_rate=hourly_rate,
        base_price=base_price,
        service_fees=service_fees,
        taxes=taxes,
        total_amount=base_price + service_fees + taxes,
        services=list(services),
    )


def quote_extension(additional_hours: int, hourly_rate: int, tax_rate: Decimal) -> ExtensionQuote:
    additional_base = additional_hours * hourly_rate
    additional_tax = tax_on(additional_base, tax_rate)
    return ExtensionQuote(
        additional_hours=additional_hours,
        additional_base=additional_base,
        additional_tax=additional_tax,
        additional_total=additional_base + additional_tax,
    )
