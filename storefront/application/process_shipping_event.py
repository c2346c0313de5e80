import logging
from datetime import datetime, timezone
from typing import Optional

from storefront.domain.models import OrderStatus

logger = logging.getLogger(__name__)

STATUS_BY_EVENT = {
    "order.shipped": OrderStatus.SHIPPED,
    "order.delivered": OrderStatus.DELIVERED,
}


def _parse_date(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


class ProcessShippingEventUseCase:
    """Applies carrier-side shipment events to orders.

    Each applied event is recorded in the inbox under ``{event_type}_{order_id}``,
    so a redelivered event is skipped. An event that arrives before the order
    can take it is left unrecorded and applies on a later delivery.
    """

    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, event_data: dict) -> bool:
        event_type = event_data.get("event_type")
        order_id = event_data.get("order_id")
        status = STATUS_BY_EVENT.get(event_type)
        if status is None or not order_id:
            logger.warning(f"Ignoring shipping event {event_type} for order {order_id}")
            return False

        idempotency_key = f"{event_type}_{order_id}"

        async with self._uow() as uow:
            if await uow.inbox.exists(idempotency_key):
                logger.info(f"Event {idempotency_key} already handled")
                return False

            order = await uow.orders.get_by_id(order_id)
            if not order:
                logger.error(f"Order {order_id} not found for {event_type}")
                await uow.inbox.create(event_type, event_data, order_id, idempotency_key, status="failed")
                await uow.commit()
                return False

            if not order.can_transition_to(status):
                # Not recorded, so a redelivery after the missing step still applies
                logger.warning(f"Order {order_id} cannot move to {status.value} (status: {order.status.value})")
                return False

            await uow.orders.update_status(
                order_id,
                status,
                datetime.now(timezone.utc),
                tracking_number=event_data.get("tracking_number") or order.tracking_number,
                estimated_delivery_date=(
                    _parse_date(event_data.get("estimated_delivery_date")) or order.estimated_delivery_date
                ),
            )
            await uow.inbox.create(event_type, event_data, order_id, idempotency_key, status="processed")
            await uow.commit()

        logger.info(f"Order {order_id} marked {status.value}")
        return True
