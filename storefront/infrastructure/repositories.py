import uuid
from collections import defaultdict
from datetime import datetime
from typing import List, Optional

from sqlalchemy import insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.application.interfaces import (
    EventRepository,
    InboxRepository,
    OrderRepository,
    OutboxRepository,
    ProductRepository,
    RegistrationRepository,
    UserRepository,
    WaitlistRepository,
)
from storefront.domain.models import (
    Event,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Registration,
    RegistrationStatus,
    ShippingAddress,
    User,
    WaitlistEntry,
)
from storefront.infrastructure.db_schema import (
    events_tbl,
    inbox_events_tbl,
    order_items_tbl,
    orders_tbl,
    outbox_events_tbl,
    products_tbl,
    registrations_tbl,
    users_tbl,
    waitlist_tbl,
)


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        return await self._with_items(row) if row else None

    async def get_by_payment_intent_id(self, payment_intent_id: str) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.payment_intent_id == payment_intent_id)
        )
        row = result.fetchone()
        return await self._with_items(row) if row else None

    async def list(self, user_id: Optional[str] = None) -> List[Order]:
        stmt = select(orders_tbl).order_by(orders_tbl.c.created_at.desc())
        if user_id is not None:
            stmt = stmt.where(orders_tbl.c.user_id == user_id)
        rows = (await self._session.execute(stmt)).fetchall()
        if not rows:
            return []

        items_result = await self._session.execute(
            select(order_items_tbl).where(order_items_tbl.c.order_id.in_([row.id for row in rows]))
        )
        items = defaultdict(list)
        for item_row in items_result.fetchall():
            items[item_row.order_id].append(self._item_to_domain(item_row))
        return [self._to_domain(row, items[row.id]) for row in rows]

    async def create(self, order: Order) -> None:
        stmt = insert(orders_tbl).values(
            id=order.id,
            user_id=order.user_id,
            status=order.status.value,
            total=order.total,
            shipping_address=order.shipping_address.model_dump(),
            shipping_cost=order.shipping_cost,
            carrier=order.carrier,
            service=order.service,
            payment_intent_id=order.payment_intent_id,
            tracking_number=order.tracking_number,
            estimated_delivery_date=order.estimated_delivery_date,
            created_at=order.created_at,
            updated_at=order.updated_at
        )
        await self._session.execute(stmt)

    async def add_item(self, item: OrderItem) -> None:
        stmt = insert(order_items_tbl).values(
            id=item.id,
            order_id=item.order_id,
            product_id=item.product_id,
            quantity=item.quantity,
            price=item.price,
        )
        await self._session.execute(stmt)

    async def update_status(self, order_id: str, status: OrderStatus, updated_at: datetime,
                            tracking_number: Optional[str] = None,
                            estimated_delivery_date: Optional[datetime] = None) -> None:
        values = {"status": status.value, "updated_at": updated_at}
        if tracking_number is not None:
            values["tracking_number"] = tracking_number
        if estimated_delivery_date is not None:
            values["estimated_delivery_date"] = estimated_delivery_date
        stmt = update(orders_tbl).where(orders_tbl.c.id == order_id).values(**values)
        await self._session.execute(stmt)

    async def _with_items(self, row) -> Order:
        result = await self._session.execute(
            select(order_items_tbl).where(order_items_tbl.c.order_id == row.id)
        )
        return self._to_domain(row, [self._item_to_domain(r) for r in result.fetchall()])

    def _item_to_domain(self, row) -> OrderItem:
        return OrderItem(
            id=row.id,
            order_id=row.order_id,
            product_id=row.product_id,
            quantity=row.quantity,
            price=row.price,
        )

    def _to_domain(self, row, items: List[OrderItem]) -> Order:
        """DB -> Domain"""
        return Order(
            id=row.id,
            user_id=row.user_id,
            status=OrderStatus(row.status),
            total=row.total,
            shipping_address=ShippingAddress(**row.shipping_address),
            shipping_cost=row.shipping_cost,
            carrier=row.carrier,
            service=row.service,
            payment_intent_id=row.payment_intent_id,
            tracking_number=row.tracking_number,
            estimated_delivery_date=row.estimated_delivery_date,
            created_at=row.created_at,
            updated_at=row.updated_at,
            items=items,
        )


class SQLAlchemyProductRepository(ProductRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        result = await self._session.execute(
            select(products_tbl).where(products_tbl.c.id == product_id)
        )
        row = result.fetchone()
        return Product(**row._mapping) if row else None

    async def list(self, category: Optional[str] = None) -> List[Product]:
        stmt = select(products_tbl).order_by(products_tbl.c.created_at)
        if category is not None:
            stmt = stmt.where(products_tbl.c.category == category)
        result = await self._session.execute(stmt)
        return [Product(**row._mapping) for row in result.fetchall()]

    async def create(self, product: Product) -> None:
        await self._session.execute(insert(products_tbl).values(**product.model_dump()))

    async def set_stock(self, product_id: str, stock: int) -> None:
        await self._session.execute(
            update(products_tbl).where(products_tbl.c.id == product_id).values(stock=stock)
        )

    async def decrement_stock(self, product_id: str, quantity: int) -> bool:
        result = await self._session.execute(
            update(products_tbl)
            .where(products_tbl.c.id == product_id, products_tbl.c.stock >= quantity)
            .values(stock=products_tbl.c.stock - quantity)
        )
        return result.rowcount == 1


class SQLAlchemyUserRepository(UserRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def _one(self, condition) -> Optional[User]:
        result = await self._session.execute(select(users_tbl).where(condition))
        row = result.fetchone()
        return User(**row._mapping) if row else None

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return await self._one(users_tbl.c.id == user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self._one(users_tbl.c.username == username)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self._one(users_tbl.c.email == email)

    async def list(self) -> List[User]:
        result = await self._session.execute(select(users_tbl).order_by(users_tbl.c.username))
        return [User(**row._mapping) for row in result.fetchall()]

    async def create(self, user: User) -> None:
        await self._session.execute(insert(users_tbl).values(**user.model_dump()))

    async def set_admin(self, user_id: str, is_admin: bool) -> None:
        await self._session.execute(
            update(users_tbl).where(users_tbl.c.id == user_id).values(is_admin=is_admin)
        )


class SQLAlchemyEventRepository(EventRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, event_id: str) -> Optional[Event]:
        result = await self._session.execute(select(events_tbl).where(events_tbl.c.id == event_id))
        row = result.fetchone()
        return Event(**row._mapping) if row else None

    async def list(self) -> List[Event]:
        result = await self._session.execute(select(events_tbl).order_by(events_tbl.c.date))
        return [Event(**row._mapping) for row in result.fetchall()]

    async def create(self, event: Event) -> None:
        await self._session.execute(insert(events_tbl).values(**event.model_dump()))


class SQLAlchemyRegistrationRepository(RegistrationRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    def _to_domain(self, row) -> Registration:
        return Registration(
            id=row.id,
            user_id=row.user_id,
            event_id=row.event_id,
            status=RegistrationStatus(row.status),
            created_at=row.created_at,
        )

    async def get_by_id(self, registration_id: str) -> Optional[Registration]:
        result = await self._session.execute(
            select(registrations_tbl).where(registrations_tbl.c.id == registration_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def list_for_event(self, event_id: str) -> List[Registration]:
        result = await self._session.execute(
            select(registrations_tbl).where(registrations_tbl.c.event_id == event_id)
        )
        return [self._to_domain(row) for row in result.fetchall()]

    async def create(self, registration: Registration) -> None:
        values = registration.model_dump()
        values["status"] = registration.status.value
        await self._session.execute(insert(registrations_tbl).values(**values))


class SQLAlchemyWaitlistRepository(WaitlistRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def contains(self, email: str) -> bool:
        result = await self._session.execute(select(waitlist_tbl.c.id).where(waitlist_tbl.c.email == email))
        return result.fetchone() is not None

    async def add(self, entry: WaitlistEntry) -> None:
        await self._session.execute(insert(waitlist_tbl).values(**entry.model_dump()))


class SQLAlchemyOutboxRepository(OutboxRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, event_type: str, event_data: dict, order_id: str) -> str:
        event_id = str(uuid.uuid4())
        stmt = insert(outbox_events_tbl).values(
            id=event_id,
            event_type=event_type,
            event_data=event_data,
            order_id=order_id,
            status="pending"
        )
        await self._session.execute(stmt)
        return event_id

    async def get_pending(self, limit: int = 10) -> List[dict]:
        result = await self._session.execute(
            select(outbox_events_tbl)
            .where(outbox_events_tbl.c.status == "pending")
            .order_by(outbox_events_tbl.c.created_at.asc())
            .limit(limit)
        )
        rows = result.fetchall()

        return [
            {
                "id": row.id,
                "event_type": row.event_type,
                "event_data": row.event_data,
                "order_id": row.order_id
            }
            for row in rows
        ]

    async def mark_as_published(self, event_id: str) -> None:
        stmt = (
            update(outbox_events_tbl)
            .where(outbox_events_tbl.c.id == event_id)
            .values(status="published")
        )
        await self._session.execute(stmt)


class SQLAlchemyInboxRepository(InboxRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def create(self, event_type: str, event_data: dict, order_id: str,
                     idempotency_key: str, status: str) -> str:
        event_id = str(uuid.uuid4())
        stmt = insert(inbox_events_tbl).values(
            id=event_id,
            event_type=event_type,
            event_data=event_data,
            order_id=order_id,
            idempotency_key=idempotency_key,
            status=status
        )
        await self._session.execute(stmt)
        return event_id

    async def exists(self, idempotency_key: str) -> bool:
        result = await self._session.execute(
            select(inbox_events_tbl.c.id).where(inbox_events_tbl.c.idempotency_key == idempotency_key)
        )
        return result.fetchone() is not None
