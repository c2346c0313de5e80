import logging

from storefront.application.interfaces import CarrierService, GeocodingService
from storefront.domain.models import ShippingAddress, ValidatedAddress

logger = logging.getLogger(__name__)

ADDRESS_NOT_FOUND = "Address could not be found"


def geocode_query(address: ShippingAddress) -> str:
    street = " ".join(part for part in (address.address1, address.address2) if part)
    return f"{street}, {address.city}, {address.state} {address.postal_code}, {address.country}"


def _advisories(verified: dict) -> list:
    delivery = (verified.get("verifications") or {}).get("delivery") or {}
    messages = []
    for entry in delivery.get("errors") or []:
        message = entry.get("message") if isinstance(entry, dict) else str(entry)
        if message:
            messages.append(message)
    return messages


class ValidateAddressUseCase:
    """Checks an address with the geocoder, then with the carrier.

    Never raises: every failure is reported through ``is_valid=False`` so
    checkout can ask the user to correct the address.
    """

    def __init__(self, geocoder: GeocodingService, carrier: CarrierService):
        self._geocoder = geocoder
        self._carrier = carrier

    async def __call__(self, address: ShippingAddress) -> ValidatedAddress:
        try:
            candidates = await self._geocoder.geocode(geocode_query(address))
            if not candidates:
                logger.info(f"No geocoding candidates for {address.postal_code}, {address.country}")
                return ValidatedAddress.from_address(
                    address, is_valid=False, messages=[ADDRESS_NOT_FOUND]
                )

            verified = await self._carrier.verify_address(address)
            normalized = ShippingAddress(
                first_name=address.first_name,
                last_name=address.last_name,
                address1=verified.get("street1") or address.address1,
                address2=verified.get("street2") or None,
                city=verified.get("city") or address.city,
                state=verified.get("state") or address.state,
                postal_code=verified.get("zip") or address.postal_code,
                country=verified.get("country") or address.country,
                phone=verified.get("phone") or address.phone,
            )
            return ValidatedAddress.from_address(
                address,
                is_valid=True,
                normalized_address=normalized,
                messages=_advisories(verified),
            )
        except Exception as e:
            logger.error(f"Address validation failed: {e}")
            return ValidatedAddress.from_address(
                address, is_valid=False, messages=[str(e) or "Address validation failed"]
            )
