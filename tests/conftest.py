"""Pytest fixtures for storefront tests."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from storefront.application.interfaces import CarrierService, GeocodingService, PaymentsService
from storefront.database import create_session_factory, create_tables
from storefront.domain.exceptions import PaymentServiceError
from storefront.domain.models import (
    CartItem,
    PaymentConfirmation,
    PaymentIntent,
    Product,
    ShippingAddress,
    ShippingRateQuote,
)
from storefront.infrastructure.memory import MemoryState, MemoryUnitOfWork
from storefront.infrastructure.unit_of_work import UnitOfWork


class StubGeocoder(GeocodingService):
    def __init__(self, candidates=None, error=None):
        self.candidates = [{"formatted_address": "1 Main St, Napa, CA 94559, USA"}] if candidates is None else candidates
        self.error = error
        self.queries = []

    async def geocode(self, query):
        self.queries.append(query)
        if self.error:
            raise self.error
        return self.candidates


class StubCarrier(CarrierService):
    def __init__(self, verified=None, rates=None, error=None):
        self.verified = verified if verified is not None else {
            "id": "adr_1",
            "street1": "1 MAIN ST",
            "street2": None,
            "city": "Napa",
            "state": "CA",
            "zip": "94559-1234",
            "country": "US",
            "phone": "7075551234",
            "verifications": {"delivery": {"success": True, "errors": []}},
        }
        self.rates = rates if rates is not None else [
            {"carrier": "USPS", "service": "Priority", "rate": "7.25", "delivery_days": 3},
            {"carrier": "UPS", "service": "Ground", "rate": "9.10", "delivery_days": None},
        ]
        self.error = error
        self.verify_calls = 0
        self.rate_calls = 0

    async def verify_address(self, address):
        self.verify_calls += 1
        if self.error:
            raise self.error
        return self.verified

    async def get_rates(self, from_address, to_address, parcel):
        self.rate_calls += 1
        if self.error:
            raise self.error
        return self.rates


class StubPayments(PaymentsService):
    def __init__(self, error=None, cancel_error=None, retrieve_error=None):
        self.intents = {}
        self.error = error
        self.cancel_error = cancel_error
        self.retrieve_error = retrieve_error
        self.retrieved = []
        self.created = []
        self.cancelled = []

    async def create_payment_intent(self, amount, currency):
        if self.error:
            raise self.error
        intent_id = f"pi_{len(self.created) + 1}"
        intent = PaymentIntent(
            id=intent_id,
            client_secret=f"{intent_id}_secret",
            amount=amount,
            currency=currency,
            status="requires_payment_method",
        )
        self.intents[intent_id] = intent
        self.created.append(intent)
        return intent

    async def retrieve_payment_intent(self, payment_intent_id):
        self.retrieved.append(payment_intent_id)
        if self.retrieve_error:
            raise self.retrieve_error
        if payment_intent_id not in self.intents:
            raise PaymentServiceError(f"No such payment_intent: {payment_intent_id}")
        return self.intents[payment_intent_id]

    async def cancel_payment_intent(self, payment_intent_id):
        if self.cancel_error:
            raise self.cancel_error
        self.cancelled.append(payment_intent_id)

    def confirm(self, payment_intent_id):
        """Simulates the payer confirming in the browser"""
        intent = self.intents[payment_intent_id]
        self.intents[payment_intent_id] = intent.model_copy(update={"status": "succeeded"})


def make_product(product_id="prod_1", price="25.00", stock=10, category="apparel"):
    return Product(
        id=product_id,
        name=f"Product {product_id}",
        description="Event t-shirt",
        price=Decimal(price),
        image_url="https://example.com/shirt.png",
        category=category,
        stock=stock,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def napa_address():
    return ShippingAddress(
        first_name="A",
        last_name="B",
        address1="1 Main St",
        city="Napa",
        state="CA",
        postal_code="94559",
        country="US",
        phone="7075551234",
    )


@pytest.fixture
def warehouse_address():
    return ShippingAddress(
        first_name="Ship",
        last_name="Desk",
        address1="500 Market St",
        address2="Suite 2",
        city="San Francisco",
        state="CA",
        postal_code="94105",
        country="US",
        phone="4155550000",
    )


@pytest.fixture
def priority_rate():
    return ShippingRateQuote(carrier="USPS", service="Priority", rate=Decimal("7.25"), estimated_days=3)


@pytest.fixture
def memory_uow():
    state = MemoryState()
    for product in (make_product("prod_1", "25.00", 10), make_product("prod_2", "10.00", 5),
                    make_product("prod_3", "5.50", 3)):
        state.products[product.id] = product
    return MemoryUnitOfWork(state)


@pytest.fixture
async def sql_uow():
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    await create_tables(engine)
    uow = UnitOfWork(create_session_factory(engine))
    async with uow() as tx:
        for product in (make_product("prod_1", "25.00", 10), make_product("prod_2", "10.00", 5),
                        make_product("prod_3", "5.50", 3)):
            await tx.products.create(product)
        await tx.commit()
    yield uow
    await engine.dispose()


def confirmation(payment_intent_id="pi_1", amount=5725, status="succeeded"):
    return PaymentConfirmation(payment_intent_id=payment_intent_id, status=status, amount=amount)


def cart(*lines):
    return [CartItem(product_id=product_id, quantity=quantity) for product_id, quantity in lines]


@pytest.fixture
def payments():
    return StubPayments()


@pytest.fixture
def api_client(memory_uow, payments):
    """Test client over the in-memory store; the lifespan is not run"""
    from fastapi.testclient import TestClient

    from storefront.main import create_app
    from storefront.presentation.dependencies import get_carrier, get_geocoder, get_payments, get_unit_of_work

    app = create_app()
    app.dependency_overrides[get_unit_of_work] = lambda: memory_uow
    app.dependency_overrides[get_geocoder] = lambda: StubGeocoder()
    app.dependency_overrides[get_carrier] = lambda: StubCarrier()
    app.dependency_overrides[get_payments] = lambda: payments
    return TestClient(app)
