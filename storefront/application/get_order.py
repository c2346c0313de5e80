from typing import List, Optional

from storefront.domain.exceptions import OrderNotFoundError
from storefront.domain.models import Order


class GetOrderUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, order_id: str) -> Order:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Order {order_id} not found")
            return order


class ListOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, user_id: Optional[str] = None) -> List[Order]:
        async with self._uow() as uow:
            return await uow.orders.list(user_id=user_id)
