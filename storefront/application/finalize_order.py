import logging
import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel

from storefront.application.create_payment_intent import to_minor_units
from storefront.application.order_total import compute_subtotal, compute_total, shipping_cost
from storefront.domain.exceptions import (
    DomainException,
    InsufficientStockError,
    PaymentMismatchError,
    PaymentNotConfirmedError,
    PersistenceError,
    ProductNotFoundError,
)
from storefront.domain.models import (
    CartItem,
    Order,
    OrderItem,
    OrderStatus,
    PaymentConfirmation,
    ShippingAddress,
    ShippingRateQuote,
)

logger = logging.getLogger(__name__)


class FinalizeOrderDTO(BaseModel):
    user_id: str
    cart_items: List[CartItem]
    shipping_address: ShippingAddress
    selected_rate: ShippingRateQuote
    payment_confirmation: PaymentConfirmation


class FinalizeOrderUseCase:
    """Records a paid order with its items in a single unit of work.

    The payment intent id is the dedup key: finalizing the same confirmation
    twice returns the order created the first time.
    """

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def find_existing(self, payment_intent_id: str) -> Optional[Order]:
        """Order already recorded for this payment, if any"""
        async with self._uow() as uow:
            return await uow.orders.get_by_payment_intent_id(payment_intent_id)

    async def __call__(self, dto: FinalizeOrderDTO) -> Order:
        confirmation = dto.payment_confirmation
        logger.info(f"Finalizing order for user {dto.user_id}, payment {confirmation.payment_intent_id}")

        if not confirmation.succeeded:
            raise PaymentNotConfirmedError(
                f"Payment {confirmation.payment_intent_id} is not confirmed (status: {confirmation.status})"
            )

        try:
            async with self._uow() as uow:
                existing = await uow.orders.get_by_payment_intent_id(confirmation.payment_intent_id)
                if existing:
                    logger.info(f"Order already exists: {existing.id}")
                    return existing

                order = await self._write_order(uow, dto)
                await uow.commit()
        except DomainException:
            raise
        except Exception as e:
            logger.error(f"Order write failed for payment {confirmation.payment_intent_id}: {e}")
            # A concurrent finalize for the same payment may have won the race
            async with self._uow() as uow:
                existing = await uow.orders.get_by_payment_intent_id(confirmation.payment_intent_id)
            if existing:
                logger.info(f"Order already exists: {existing.id}")
                return existing
            raise PersistenceError("Failed to save order") from e

        logger.info(f"Order created: {order.id}, total {order.total}")
        return order

    async def _write_order(self, uow, dto: FinalizeOrderDTO) -> Order:
        order_id = str(uuid.uuid4())
        lines = []
        for cart_item in dto.cart_items:
            product = await uow.products.get_by_id(cart_item.product_id)
            if not product:
                raise ProductNotFoundError(f"Product {cart_item.product_id} not found")
            lines.append(OrderItem(
                id=str(uuid.uuid4()),
                order_id=order_id,
                product_id=product.id,
                quantity=cart_item.quantity,
                price=product.price,
            ))

        subtotal = compute_subtotal((item.price, item.quantity) for item in lines)
        total = compute_total(subtotal, dto.selected_rate)
        expected = to_minor_units(total)
        if expected != dto.payment_confirmation.amount:
            raise PaymentMismatchError(expected, dto.payment_confirmation.amount)

        for item in lines:
            if not await uow.products.decrement_stock(item.product_id, item.quantity):
                product = await uow.products.get_by_id(item.product_id)
                raise InsufficientStockError(item.product_id, product.stock, item.quantity)

        now = datetime.now(timezone.utc)
        order = Order(
            id=order_id,
            user_id=dto.user_id,
            status=OrderStatus.PAID,
            total=total,
            shipping_address=dto.shipping_address,
            shipping_cost=shipping_cost(dto.selected_rate),
            carrier=dto.selected_rate.carrier,
            service=dto.selected_rate.service,
            payment_intent_id=dto.payment_confirmation.payment_intent_id,
            created_at=now,
            updated_at=now,
            items=lines,
        )
        await uow.orders.create(order)
        for item in lines:
            await uow.orders.add_item(item)

        await uow.outbox.create(
            event_type="order.paid",
            event_data={
                "order_id": order.id,
                "user_id": order.user_id,
                "carrier": order.carrier,
                "service": order.service,
                "shipping_address": order.shipping_address.model_dump(),
                "items": [
                    {"product_id": item.product_id, "quantity": item.quantity}
                    for item in lines
                ],
                "idempotency_key": f"order_paid_{order.id}",
            },
            order_id=order.id,
        )
        return order
