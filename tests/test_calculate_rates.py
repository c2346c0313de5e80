"""Tests for the rate quoter."""

from decimal import Decimal

import pytest

from conftest import StubCarrier
from storefront.application.calculate_rates import CalculateRatesUseCase, default_rate
from storefront.domain.exceptions import CarrierServiceError
from storefront.domain.models import Parcel

PARCEL = Parcel(weight=1, length=12, width=8, height=6)


async def test_rates_are_mapped_in_aggregator_order(warehouse_address, napa_address):
    quotes = await CalculateRatesUseCase(StubCarrier())(warehouse_address, napa_address, PARCEL)

    assert [(q.carrier, q.service) for q in quotes] == [("USPS", "Priority"), ("UPS", "Ground")]
    assert quotes[0].rate == Decimal("7.25")
    assert quotes[0].estimated_days == 3
    assert all(q.tracking_available for q in quotes)


async def test_missing_delivery_days_defaults_to_zero(warehouse_address, napa_address):
    quotes = await CalculateRatesUseCase(StubCarrier())(warehouse_address, napa_address, PARCEL)
    assert quotes[1].estimated_days == 0


async def test_first_quote_is_default(warehouse_address, napa_address):
    quotes = await CalculateRatesUseCase(StubCarrier())(warehouse_address, napa_address, PARCEL)
    assert default_rate(quotes) == quotes[0]
    assert default_rate([]) is None


async def test_carrier_failure_fails_whole_request(warehouse_address, napa_address):
    carrier = StubCarrier(error=CarrierServiceError("Carrier service timed out"))

    with pytest.raises(CarrierServiceError, match="Failed to get shipping rates"):
        await CalculateRatesUseCase(carrier)(warehouse_address, napa_address, PARCEL)


async def test_one_malformed_rate_fails_whole_request(warehouse_address, napa_address):
    carrier = StubCarrier(rates=[
        {"carrier": "USPS", "service": "Priority", "rate": "7.25", "delivery_days": 3},
        {"carrier": "UPS", "service": "Ground", "rate": "n/a"},
    ])

    with pytest.raises(CarrierServiceError):
        await CalculateRatesUseCase(carrier)(warehouse_address, napa_address, PARCEL)
