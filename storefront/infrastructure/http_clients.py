import httpx
import logging
from typing import List, Type

from storefront.application.interfaces import CarrierService, GeocodingService, PaymentsService
from storefront.domain.exceptions import (
    CarrierServiceError,
    ExternalServiceError,
    GeocodingServiceError,
    PaymentServiceError,
)
from storefront.domain.models import Parcel, PaymentIntent, ShippingAddress

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("message") or str(error)
    return str(error) if error else response.text[:200]


async def _send(http: httpx.AsyncClient, error_cls: Type[ExternalServiceError], service: str,
                method: str, url: str, **kwargs) -> dict:
    """Performs the request; transport errors, timeouts, non-2xx and bad JSON raise error_cls"""
    try:
        response = await http.request(method, url, **kwargs)
    except httpx.TimeoutException as e:
        logger.error(f"{service} timed out: {method} {url}: {e!r}")
        raise error_cls(f"{service} timed out") from e
    except httpx.RequestError as e:
        logger.error(f"{service} connection error: {method} {url}: {e!r}")
        raise error_cls(f"{service} is unavailable: {e}") from e

    if not response.is_success:
        message = _error_message(response)
        logger.error(f"{service} error {response.status_code}: {message}")
        raise error_cls(f"{service} error {response.status_code}: {message}")

    try:
        return response.json()
    except ValueError as e:
        logger.error(f"{service} returned malformed JSON: {response.text[:200]}")
        raise error_cls(f"{service} returned a malformed response") from e


class GoogleGeocodingClient(GeocodingService):
    def __init__(self, http: httpx.AsyncClient, api_key: str, url: str):
        self._http = http
        self._api_key = api_key
        self._url = url

    async def geocode(self, query: str) -> List[dict]:
        data = await _send(
            self._http, GeocodingServiceError, "Geocoding service",
            "GET", self._url, params={"address": query, "key": self._api_key},
        )
        status = data.get("status")
        if status == "ZERO_RESULTS":
            return []
        if status != "OK":
            detail = data.get("error_message") or status
            logger.error(f"Geocoding service status {status}: {detail}")
            raise GeocodingServiceError(f"Geocoding failed: {detail}")
        return data.get("results") or []


def _easypost_address(address: ShippingAddress) -> dict:
    return {
        "street1": address.address1,
        "street2": address.address2,
        "city": address.city,
        "state": address.state,
        "zip": address.postal_code,
        "country": address.country,
        "name": address.full_name,
        "phone": address.phone,
    }


class EasyPostClient(CarrierService):
    """Carrier aggregator: address verification and shipment rates"""

    def __init__(self, http: httpx.AsyncClient, api_key: str, base_url: str):
        self._http = http
        self._auth = (api_key, "")
        self._base_url = base_url.rstrip("/")

    async def verify_address(self, address: ShippingAddress) -> dict:
        created = await _send(
            self._http, CarrierServiceError, "Carrier service",
            "POST", f"{self._base_url}/addresses",
            json={"address": _easypost_address(address)}, auth=self._auth,
        )
        address_id = created.get("id")
        if not address_id:
            raise CarrierServiceError("Carrier service returned an address without id")

        verified = await _send(
            self._http, CarrierServiceError, "Carrier service",
            "GET", f"{self._base_url}/addresses/{address_id}/verify", auth=self._auth,
        )
        return verified.get("address") or verified

    async def get_rates(self, from_address: ShippingAddress, to_address: ShippingAddress,
                        parcel: Parcel) -> List[dict]:
        shipment = await _send(
            self._http, CarrierServiceError, "Carrier service",
            "POST", f"{self._base_url}/shipments",
            json={
                "shipment": {
                    "from_address": _easypost_address(from_address),
                    "to_address": _easypost_address(to_address),
                    "parcel": parcel.model_dump(),
                }
            },
            auth=self._auth,
        )
        rates = shipment.get("rates")
        if rates is None:
            raise CarrierServiceError("Carrier service returned a shipment without rates")
        return rates


class StripePaymentsClient(PaymentsService):
    def __init__(self, http: httpx.AsyncClient, secret_key: str, base_url: str):
        self._http = http
        self._headers = {"Authorization": f"Bearer {secret_key}"}
        self._base_url = base_url.rstrip("/")

    def _to_intent(self, data: dict) -> PaymentIntent:
        try:
            return PaymentIntent(
                id=data["id"],
                client_secret=data.get("client_secret") or "",
                amount=data["amount"],
                currency=data["currency"],
                status=data["status"],
            )
        except KeyError as e:
            raise PaymentServiceError(f"Payment service returned an incomplete intent: missing {e}") from e

    async def create_payment_intent(self, amount: int, currency: str) -> PaymentIntent:
        data = await _send(
            self._http, PaymentServiceError, "Payment service",
            "POST", f"{self._base_url}/v1/payment_intents",
            data={
                "amount": str(amount),
                "currency": currency,
                "automatic_payment_methods[enabled]": "true",
            },
            headers=self._headers,
        )
        return self._to_intent(data)

    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntent:
        data = await _send(
            self._http, PaymentServiceError, "Payment service",
            "GET", f"{self._base_url}/v1/payment_intents/{payment_intent_id}",
            headers=self._headers,
        )
        return self._to_intent(data)

    async def cancel_payment_intent(self, payment_intent_id: str) -> None:
        await _send(
            self._http, PaymentServiceError, "Payment service",
            "POST", f"{self._base_url}/v1/payment_intents/{payment_intent_id}/cancel",
            headers=self._headers,
        )
