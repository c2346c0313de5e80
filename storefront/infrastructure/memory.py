"""In-memory store with the same repository interfaces as the SQLAlchemy one.

Each unit of work operates on a copy of the state; ``commit`` publishes the
copy, anything else discards it.
"""
import copy
import uuid
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

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
    User,
    WaitlistEntry,
)


@dataclass
class MemoryState:
    orders: Dict[str, Order] = field(default_factory=dict)
    order_items: Dict[str, OrderItem] = field(default_factory=dict)
    products: Dict[str, Product] = field(default_factory=dict)
    users: Dict[str, User] = field(default_factory=dict)
    events: Dict[str, Event] = field(default_factory=dict)
    registrations: Dict[str, Registration] = field(default_factory=dict)
    waitlist: Dict[str, WaitlistEntry] = field(default_factory=dict)
    outbox: Dict[str, dict] = field(default_factory=dict)
    inbox: Dict[str, dict] = field(default_factory=dict)


class MemoryOrderRepository(OrderRepository):
    def __init__(self, state: MemoryState):
        self._state = state

    def _with_items(self, order: Order) -> Order:
        items = [i for i in self._state.order_items.values() if i.order_id == order.id]
        return order.model_copy(update={"items": items})

    async def get_by_id(self, order_id: str) -> Optional[Order]:
        order = self._state.orders.get(order_id)
        return self._with_items(order) if order else None

    async def get_by_payment_intent_id(self, payment_intent_id: str) -> Optional[Order]:
        for order in self._state.orders.values():
            if order.payment_intent_id == payment_intent_id:
                return self._with_items(order)
        return None

    async def list(self, user_id: Optional[str] = None) -> List[Order]:
        orders = [o for o in self._state.orders.values() if user_id is None or o.user_id == user_id]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return [self._with_items(o) for o in orders]

    async def create(self, order: Order) -> None:
        if order.payment_intent_id and any(
            o.payment_intent_id == order.payment_intent_id for o in self._state.orders.values()
        ):
            raise ValueError(f"Duplicate payment_intent_id {order.payment_intent_id}")
        self._state.orders[order.id] = order.model_copy(update={"items": []})

    async def add_item(self, item: OrderItem) -> None:
        if item.order_id not in self._state.orders:
            raise ValueError(f"Order {item.order_id} does not exist")
        self._state.order_items[item.id] = item

    async def update_status(self, order_id: str, status: OrderStatus, updated_at: datetime,
                            tracking_number: Optional[str] = None,
                            estimated_delivery_date: Optional[datetime] = None) -> None:
        order = self._state.orders[order_id]
        values = {"status": status, "updated_at": updated_at}
        if tracking_number is not None:
            values["tracking_number"] = tracking_number
        if estimated_delivery_date is not None:
            values["estimated_delivery_date"] = estimated_delivery_date
        self._state.orders[order_id] = order.model_copy(update=values)


class MemoryProductRepository(ProductRepository):
    def __init__(self, state: MemoryState):
        self._state = state

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        return self._state.products.get(product_id)

    async def list(self, category: Optional[str] = None) -> List[Product]:
        return [p for p in self._state.products.values() if category is None or p.category == category]

    async def create(self, product: Product) -> None:
        self._state.products[product.id] = product

    async def set_stock(self, product_id: str, stock: int) -> None:
        product = self._state.products[product_id]
        self._state.products[product_id] = product.model_copy(update={"stock": stock})

    async def decrement_stock(self, product_id: str, quantity: int) -> bool:
        product = self._state.products.get(product_id)
        if product is None or product.stock < quantity:
            return False
        self._state.products[product_id] = product.model_copy(update={"stock": product.stock - quantity})
        return True


class MemoryUserRepository(UserRepository):
    def __init__(self, state: MemoryState):
        self._state = state

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return self._state.users.get(user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._state.users.values() if u.username == username), None)

    async def get_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._state.users.values() if u.email == email), None)

    async def list(self) -> List[User]:
        return sorted(self._state.users.values(), key=lambda u: u.username)

    async def create(self, user: User) -> None:
        self._state.users[user.id] = user

    async def set_admin(self, user_id: str, is_admin: bool) -> None:
        user = self._state.users[user_id]
        self._state.users[user_id] = user.model_copy(update={"is_admin": is_admin})


class MemoryEventRepository(EventRepository):
    def __init__(self, state: MemoryState):
        self._state = state

    async def get_by_id(self, event_id: str) -> Optional[Event]:
        return self._state.events.get(event_id)

    async def list(self) -> List[Event]:
        return sorted(self._state.events.values(), key=lambda e: e.date)

    async def create(self, event: Event) -> None:
        self._state.events[event.id] = event


class MemoryRegistrationRepository(RegistrationRepository):
    def __init__(self, state: MemoryState):
        self._state = state

    async def get_by_id(self, registration_id: str) -> Optional[Registration]:
        return self._state.registrations.get(registration_id)

    async def list_for_event(self, event_id: str) -> List[Registration]:
        return [r for r in self._state.registrations.values() if r.event_id == event_id]

    async def create(self, registration: Registration) -> None:
        self._state.registrations[registration.id] = registration


class MemoryWaitlistRepository(WaitlistRepository):
    def __init__(self, state: MemoryState):
        self._state = state

    async def contains(self, email: str) -> bool:
        return any(e.email == email for e in self._state.waitlist.values())

    async def add(self, entry: WaitlistEntry) -> None:
        self._state.waitlist[entry.id] = entry


class MemoryOutboxRepository(OutboxRepository):
    def __init__(self, state: MemoryState):
        self._state = state

    async def create(self, event_type: str, event_data: dict, order_id: str) -> str:
        event_id = str(uuid.uuid4())
        self._state.outbox[event_id] = {
            "id": event_id,
            "event_type": event_type,
            "event_data": event_data,
            "order_id": order_id,
            "status": "pending",
            "created_at": datetime.now(timezone.utc),
        }
        return event_id

    async def get_pending(self, limit: int = 10) -> List[dict]:
        pending = [e for e in self._state.outbox.values() if e["status"] == "pending"]
        pending.sort(key=lambda e: e["created_at"])
        return [dict(e) for e in pending[:limit]]

    async def mark_as_published(self, event_id: str) -> None:
        self._state.outbox[event_id]["status"] = "published"


class MemoryInboxRepository(InboxRepository):
    def __init__(self, state: MemoryState):
        self._state = state

    async def create(self, event_type: str, event_data: dict, order_id: str,
                     idempotency_key: str, status: str) -> str:
        if idempotency_key in self._state.inbox:
            raise ValueError(f"Duplicate inbox event {idempotency_key}")
        event_id = str(uuid.uuid4())
        self._state.inbox[idempotency_key] = {
            "id": event_id,
            "event_type": event_type,
            "event_data": event_data,
            "order_id": order_id,
            "status": status,
        }
        return event_id

    async def exists(self, idempotency_key: str) -> bool:
        return idempotency_key in self._state.inbox


class _MemoryUnitOfWorkImpl:
    def __init__(self, owner: "MemoryUnitOfWork", state: MemoryState):
        self._owner = owner
        self._state = state
        self.orders = MemoryOrderRepository(state)
        self.products = MemoryProductRepository(state)
        self.users = MemoryUserRepository(state)
        self.events = MemoryEventRepository(state)
        self.registrations = MemoryRegistrationRepository(state)
        self.waitlist = MemoryWaitlistRepository(state)
        self.outbox = MemoryOutboxRepository(state)
        self.inbox = MemoryInboxRepository(state)

    async def commit(self):
        self._owner.state = copy.deepcopy(self._state)

    async def rollback(self):
        pass


class MemoryUnitOfWork:
    def __init__(self, state: Optional[MemoryState] = None):
        self.state = state or MemoryState()

    @asynccontextmanager
    async def __call__(self):
        yield _MemoryUnitOfWorkImpl(self, copy.deepcopy(self.state))
