import logging
from decimal import Decimal, InvalidOperation
from typing import List, Optional

from storefront.application.interfaces import CarrierService
from storefront.domain.exceptions import CarrierServiceError
from storefront.domain.models import Parcel, ShippingAddress, ShippingRateQuote

logger = logging.getLogger(__name__)


def default_rate(quotes: List[ShippingRateQuote]) -> Optional[ShippingRateQuote]:
    """The first quote is preselected unless the user picks another one"""
    return quotes[0] if quotes else None


def _to_quote(rate: dict) -> ShippingRateQuote:
    return ShippingRateQuote(
        carrier=rate["carrier"],
        service=rate["service"],
        rate=Decimal(str(rate["rate"])),
        estimated_days=rate.get("delivery_days") or 0,
        tracking_available=True,
    )


class CalculateRatesUseCase:
    def __init__(self, carrier: CarrierService):
        self._carrier = carrier

    async def __call__(self, from_address: ShippingAddress, to_address: ShippingAddress,
                       parcel: Parcel) -> List[ShippingRateQuote]:
        try:
            rates = await self._carrier.get_rates(from_address, to_address, parcel)
            quotes = [_to_quote(rate) for rate in rates]
        except (KeyError, TypeError, InvalidOperation) as e:
            logger.error(f"Malformed rate from carrier: {e!r}")
            raise CarrierServiceError(f"Failed to get shipping rates: malformed rate {e!r}") from e
        except Exception as e:
            logger.error(f"Rate request failed: {e}")
            raise CarrierServiceError(f"Failed to get shipping rates: {e}") from e

        logger.info(f"Got {len(quotes)} shipping rates to {to_address.postal_code}")
        return quotes
