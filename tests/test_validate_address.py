"""Tests for the address validator."""

from conftest import StubCarrier, StubGeocoder
from storefront.application.validate_address import ADDRESS_NOT_FOUND, ValidateAddressUseCase, geocode_query
from storefront.domain.exceptions import CarrierServiceError, GeocodingServiceError


async def test_geocode_miss_skips_carrier(napa_address):
    geocoder = StubGeocoder(candidates=[])
    carrier = StubCarrier()

    result = await ValidateAddressUseCase(geocoder, carrier)(napa_address)

    assert result.is_valid is False
    assert result.messages == [ADDRESS_NOT_FOUND]
    assert result.normalized_address is None
    assert carrier.verify_calls == 0


async def test_valid_address_is_normalized_by_carrier(napa_address):
    carrier = StubCarrier()

    result = await ValidateAddressUseCase(StubGeocoder(), carrier)(napa_address)

    assert result.is_valid is True
    assert carrier.verify_calls == 1
    assert result.normalized_address.city == "Napa"
    assert result.normalized_address.address1 == "1 MAIN ST"
    assert result.normalized_address.postal_code == "94559-1234"
    assert result.normalized_address.first_name == "A"
    assert result.messages == []
    # the submitted fields are echoed back untouched
    assert result.address1 == "1 Main St"


async def test_delivery_advisories_become_messages(napa_address):
    verified = {
        "id": "adr_2",
        "street1": "1 MAIN ST",
        "city": "NAPA",
        "state": "CA",
        "zip": "94559",
        "country": "US",
        "verifications": {"delivery": {"success": True, "errors": [
            {"code": "E.SECONDARY_INFORMATION.MISSING", "message": "Missing secondary information(Apt/Suite#)"}
        ]}},
    }

    result = await ValidateAddressUseCase(StubGeocoder(), StubCarrier(verified=verified))(napa_address)

    assert result.is_valid is True
    assert result.messages == ["Missing secondary information(Apt/Suite#)"]
    # carrier did not return a phone, the submitted one is kept
    assert result.normalized_address.phone == "7075551234"


async def test_carrier_failure_is_reported_not_raised(napa_address):
    carrier = StubCarrier(error=CarrierServiceError("Carrier service error 422: Unable to verify address."))

    result = await ValidateAddressUseCase(StubGeocoder(), carrier)(napa_address)

    assert result.is_valid is False
    assert result.messages == ["Carrier service error 422: Unable to verify address."]


async def test_geocoder_failure_is_reported_not_raised(napa_address):
    carrier = StubCarrier()
    geocoder = StubGeocoder(error=GeocodingServiceError("Geocoding service timed out"))

    result = await ValidateAddressUseCase(geocoder, carrier)(napa_address)

    assert result.is_valid is False
    assert result.messages == ["Geocoding service timed out"]
    assert carrier.verify_calls == 0
    assert len(geocoder.queries) == 1


def test_geocode_query_joins_all_parts(warehouse_address, napa_address):
    assert geocode_query(warehouse_address) == "500 Market St Suite 2, San Francisco, CA 94105, US"
    assert geocode_query(napa_address) == "1 Main St, Napa, CA 94559, US"


async def test_address_for_order_prefers_normalized(napa_address):
    validated = await ValidateAddressUseCase(StubGeocoder(), StubCarrier())(napa_address)
    assert validated.address_for_order().address1 == "1 MAIN ST"

    missed = await ValidateAddressUseCase(StubGeocoder(candidates=[]), StubCarrier())(napa_address)
    assert missed.address_for_order() == napa_address
