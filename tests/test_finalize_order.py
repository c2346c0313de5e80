"""Tests for order finalization against the in-memory store."""

from decimal import Decimal

import pytest

from conftest import cart, confirmation
from storefront.application.finalize_order import FinalizeOrderDTO, FinalizeOrderUseCase
from storefront.domain.exceptions import (
    InsufficientStockError,
    PaymentMismatchError,
    PaymentNotConfirmedError,
    ProductNotFoundError,
)
from storefront.domain.models import OrderStatus, ShippingRateQuote


@pytest.fixture
def finalize(memory_uow):
    return FinalizeOrderUseCase(memory_uow)


def make_dto(address, rate, items=None, **confirmation_kwargs):
    return FinalizeOrderDTO(
        user_id="u1",
        cart_items=items if items is not None else cart(("prod_1", 2)),
        shipping_address=address,
        selected_rate=rate,
        payment_confirmation=confirmation(**confirmation_kwargs),
    )


async def test_paid_order_is_recorded(finalize, memory_uow, napa_address, priority_rate):
    order = await finalize(make_dto(napa_address, priority_rate))

    assert order.status == OrderStatus.PAID
    assert order.total == Decimal("57.25")
    assert order.shipping_cost == Decimal("7.25")
    assert order.carrier == "USPS"
    assert order.service == "Priority"
    assert order.payment_intent_id == "pi_1"
    assert order.shipping_address == napa_address
    assert [(i.product_id, i.quantity, i.price) for i in order.items] == [("prod_1", 2, Decimal("25.00"))]

    stored = memory_uow.state.orders[order.id]
    assert stored.status == OrderStatus.PAID
    assert len(memory_uow.state.order_items) == 1


async def test_finalize_is_idempotent_per_payment(finalize, memory_uow, napa_address, priority_rate):
    first = await finalize(make_dto(napa_address, priority_rate))
    second = await finalize(make_dto(napa_address, priority_rate))

    assert second.id == first.id
    assert len(memory_uow.state.orders) == 1
    assert len(memory_uow.state.order_items) == 1
    # stock is only taken once
    assert memory_uow.state.products["prod_1"].stock == 8


async def test_price_is_snapshotted(finalize, memory_uow, napa_address, priority_rate):
    order = await finalize(make_dto(napa_address, priority_rate))

    product = memory_uow.state.products["prod_1"]
    memory_uow.state.products["prod_1"] = product.model_copy(update={"price": Decimal("99.00")})

    async with memory_uow() as uow:
        stored = await uow.orders.get_by_id(order.id)
    assert stored.items[0].price == Decimal("25.00")


async def test_unconfirmed_payment_writes_nothing(finalize, memory_uow, napa_address, priority_rate):
    with pytest.raises(PaymentNotConfirmedError):
        await finalize(make_dto(napa_address, priority_rate, status="requires_payment_method"))

    assert memory_uow.state.orders == {}


async def test_amount_mismatch_is_rejected(finalize, memory_uow, napa_address, priority_rate):
    with pytest.raises(PaymentMismatchError) as exc_info:
        await finalize(make_dto(napa_address, priority_rate, amount=5000))

    assert exc_info.value.expected == 5725
    assert exc_info.value.confirmed == 5000
    assert memory_uow.state.orders == {}


async def test_unknown_product(finalize, napa_address, priority_rate):
    with pytest.raises(ProductNotFoundError):
        await finalize(make_dto(napa_address, priority_rate, items=cart(("missing", 1))))


async def test_insufficient_stock_leaves_store_untouched(finalize, memory_uow, napa_address, priority_rate):
    # 2 x 25.00 + 4 x 5.50 + 7.25 shipping
    dto = make_dto(napa_address, priority_rate, items=cart(("prod_1", 2), ("prod_3", 4)), amount=7925)

    with pytest.raises(InsufficientStockError) as exc_info:
        await finalize(dto)

    assert exc_info.value.product_id == "prod_3"
    assert exc_info.value.available == 3
    assert memory_uow.state.orders == {}
    assert memory_uow.state.order_items == {}
    assert memory_uow.state.products["prod_1"].stock == 10
    assert memory_uow.state.products["prod_3"].stock == 3


async def test_multiple_lines_decrement_stock(finalize, memory_uow, napa_address, priority_rate):
    # 1 x 25.00 + 3 x 10.00 + 7.25 shipping
    dto = make_dto(napa_address, priority_rate, items=cart(("prod_1", 1), ("prod_2", 3)), amount=6225)

    order = await finalize(dto)

    assert order.total == Decimal("62.25")
    assert order.subtotal == Decimal("55.00")
    assert memory_uow.state.products["prod_1"].stock == 9
    assert memory_uow.state.products["prod_2"].stock == 2


async def test_paid_event_is_queued(finalize, memory_uow, napa_address, priority_rate):
    order = await finalize(make_dto(napa_address, priority_rate))

    events = list(memory_uow.state.outbox.values())
    assert len(events) == 1
    assert events[0]["event_type"] == "order.paid"
    assert events[0]["order_id"] == order.id
    assert events[0]["status"] == "pending"
    assert events[0]["event_data"]["items"] == [{"product_id": "prod_1", "quantity": 2}]


async def test_sub_cent_rate_is_charged_in_whole_cents(finalize, memory_uow, napa_address):
    rate = ShippingRateQuote(carrier="USPS", service="Priority", rate=Decimal("7.255"), estimated_days=3)

    order = await finalize(make_dto(napa_address, rate, amount=5726))

    assert order.shipping_cost == Decimal("7.26")
    assert order.total == Decimal("57.26")
    assert order.total == order.subtotal + order.shipping_cost
    stored = memory_uow.state.orders[order.id]
    assert stored.total == stored.shipping_cost + Decimal("50.00")


async def test_find_existing_by_payment(finalize, napa_address, priority_rate):
    assert await finalize.find_existing("pi_1") is None

    order = await finalize(make_dto(napa_address, priority_rate))

    assert (await finalize.find_existing("pi_1")).id == order.id
