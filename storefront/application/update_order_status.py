import logging
from datetime import datetime, timezone
from typing import Optional

from storefront.domain.exceptions import OrderNotFoundError
from storefront.domain.models import Order, OrderStatus

logger = logging.getLogger(__name__)


class UpdateOrderStatusUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(
        self,
        order_id: str,
        status: OrderStatus,
        tracking_number: Optional[str] = None,
        estimated_delivery_date: Optional[datetime] = None,
    ) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Order {order_id} not found")

            updated = order.transition_to(status, datetime.now(timezone.utc))
            if status == OrderStatus.SHIPPED:
                updated = updated.model_copy(update={
                    "tracking_number": tracking_number or order.tracking_number,
                    "estimated_delivery_date": estimated_delivery_date or order.estimated_delivery_date,
                })

            await uow.orders.update_status(
                order_id,
                updated.status,
                updated.updated_at,
                tracking_number=updated.tracking_number,
                estimated_delivery_date=updated.estimated_delivery_date,
            )
            await uow.commit()

        logger.info(f"Order {order_id}: {order.status.value} -> {status.value}")
        return updated
