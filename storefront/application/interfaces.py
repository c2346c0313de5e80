from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from storefront.domain.models import (
    Event,
    Order,
    OrderItem,
    OrderStatus,
    Parcel,
    PaymentIntent,
    Product,
    Registration,
    ShippingAddress,
    User,
    WaitlistEntry,
)


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def get_by_payment_intent_id(self, payment_intent_id: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list(self, user_id: Optional[str] = None) -> List[Order]:
        pass

    @abstractmethod
    async def create(self, order: Order) -> None:
        pass

    @abstractmethod
    async def add_item(self, item: OrderItem) -> None:
        pass

    @abstractmethod
    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        updated_at: datetime,
        tracking_number: Optional[str] = None,
        estimated_delivery_date: Optional[datetime] = None,
    ) -> None:
        pass


class ProductRepository(ABC):
    @abstractmethod
    async def get_by_id(self, product_id: str) -> Optional[Product]:
        pass

    @abstractmethod
    async def list(self, category: Optional[str] = None) -> List[Product]:
        pass

    @abstractmethod
    async def create(self, product: Product) -> None:
        pass

    @abstractmethod
    async def set_stock(self, product_id: str, stock: int) -> None:
        pass

    @abstractmethod
    async def decrement_stock(self, product_id: str, quantity: int) -> bool:
        """Returns False when stock would go negative; nothing is changed then"""


class UserRepository(ABC):
    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def list(self) -> List[User]:
        pass

    @abstractmethod
    async def create(self, user: User) -> None:
        pass

    @abstractmethod
    async def set_admin(self, user_id: str, is_admin: bool) -> None:
        pass


class EventRepository(ABC):
    @abstractmethod
    async def get_by_id(self, event_id: str) -> Optional[Event]:
        pass

    @abstractmethod
    async def list(self) -> List[Event]:
        pass

    @abstractmethod
    async def create(self, event: Event) -> None:
        pass


class RegistrationRepository(ABC):
    @abstractmethod
    async def get_by_id(self, registration_id: str) -> Optional[Registration]:
        pass

    @abstractmethod
    async def list_for_event(self, event_id: str) -> List[Registration]:
        pass

    @abstractmethod
    async def create(self, registration: Registration) -> None:
        pass


class WaitlistRepository(ABC):
    @abstractmethod
    async def contains(self, email: str) -> bool:
        pass

    @abstractmethod
    async def add(self, entry: WaitlistEntry) -> None:
        pass


class OutboxRepository(ABC):
    @abstractmethod
    async def create(self, event_type: str, event_data: dict, order_id: str) -> str:
        pass

    @abstractmethod
    async def get_pending(self, limit: int = 10) -> List[dict]:
        pass

    @abstractmethod
    async def mark_as_published(self, event_id: str) -> None:
        pass


class InboxRepository(ABC):
    @abstractmethod
    async def create(self, event_type: str, event_data: dict, order_id: str,
                     idempotency_key: str, status: str) -> str:
        pass

    @abstractmethod
    async def exists(self, idempotency_key: str) -> bool:
        pass


class UnitOfWork(ABC):
    orders: OrderRepository
    products: ProductRepository
    users: UserRepository
    events: EventRepository
    registrations: RegistrationRepository
    waitlist: WaitlistRepository
    outbox: OutboxRepository
    inbox: InboxRepository

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass


class GeocodingService(ABC):
    @abstractmethod
    async def geocode(self, query: str) -> List[dict]:
        """Returns zero or more location candidates"""


class CarrierService(ABC):
    @abstractmethod
    async def verify_address(self, address: ShippingAddress) -> dict:
        """Creates the address on the carrier side, verifies it and returns
        the verified record (street1, city, zip, verifications, ...)"""

    @abstractmethod
    async def get_rates(self, from_address: ShippingAddress, to_address: ShippingAddress,
                        parcel: Parcel) -> List[dict]:
        pass


class PaymentsService(ABC):
    @abstractmethod
    async def create_payment_intent(self, amount: int, currency: str) -> PaymentIntent:
        pass

    @abstractmethod
    async def retrieve_payment_intent(self, payment_intent_id: str) -> PaymentIntent:
        pass

    @abstractmethod
    async def cancel_payment_intent(self, payment_intent_id: str) -> None:
        pass


class EventPublisher(ABC):
    @abstractmethod
    async def publish(self, event_type: str, key: str, event_data: dict) -> bool:
        pass
