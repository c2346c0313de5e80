from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from storefront.domain.exceptions import InvalidTransitionError


class ShippingAddress(BaseModel):
    """Value Object: shipping address"""
    model_config = ConfigDict(frozen=True)

    first_name: str
    last_name: str
    address1: str
    address2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str
    phone: str

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class ValidatedAddress(ShippingAddress):
    is_valid: bool
    normalized_address: Optional[ShippingAddress] = None
    messages: List[str] = Field(default_factory=list)

    @classmethod
    def from_address(cls, address: ShippingAddress, **kwargs) -> "ValidatedAddress":
        return cls(**address.model_dump(), **kwargs)

    def address_for_order(self) -> ShippingAddress:
        """Normalized form when the carrier provided one, else the original"""
        if self.normalized_address is not None:
            return self.normalized_address
        return ShippingAddress(**self.model_dump(include=set(ShippingAddress.model_fields)))


class Parcel(BaseModel):
    weight: float
    length: float
    width: float
    height: float


class ShippingRateQuote(BaseModel):
    carrier: str
    service: str
    rate: Decimal
    estimated_days: int = 0
    tracking_available: bool = True


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


class OrderItem(BaseModel):
    """Order line; price is captured at purchase time"""
    id: str
    order_id: str
    product_id: str
    quantity: int = Field(gt=0)
    price: Decimal


class Order(BaseModel):
    """Domain Entity: order"""
    id: str
    user_id: str
    status: OrderStatus
    total: Decimal
    shipping_address: ShippingAddress
    shipping_cost: Optional[Decimal] = None
    carrier: Optional[str] = None
    service: Optional[str] = None
    payment_intent_id: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItem] = Field(default_factory=list)

    @property
    def subtotal(self) -> Decimal:
        return sum((item.price * item.quantity for item in self.items), Decimal("0"))

    def can_transition_to(self, status: OrderStatus) -> bool:
        return status in ALLOWED_TRANSITIONS[self.status]

    def can_be_cancelled(self) -> bool:
        """Business rule: only pending or paid orders can be cancelled"""
        return self.can_transition_to(OrderStatus.CANCELLED)

    def transition_to(self, status: OrderStatus, now: datetime) -> "Order":
        if not self.can_transition_to(status):
            raise InvalidTransitionError(self.status.value, status.value)
        return self.model_copy(update={"status": status, "updated_at": now})


class CartItem(BaseModel):
    product_id: str
    quantity: int = Field(gt=0)


class Product(BaseModel):
    id: str
    name: str
    description: str
    price: Decimal
    image_url: str
    category: str
    stock: int = Field(ge=0)
    created_at: datetime


class PaymentIntent(BaseModel):
    """Processor-side authorization; amount is in minor units"""
    id: str
    client_secret: str
    amount: int
    currency: str
    status: str


class PaymentConfirmation(BaseModel):
    payment_intent_id: str
    status: str
    amount: int

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded"


class User(BaseModel):
    id: str
    username: str
    email: str
    password_hash: str
    is_admin: bool = False
    is_verified: bool = False


class Event(BaseModel):
    id: str
    title: str
    description: str
    location: str
    date: datetime
    capacity: int = Field(gt=0)
    price: int = Field(ge=0)
    image_url: str


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Registration(BaseModel):
    id: str
    user_id: str
    event_id: str
    status: RegistrationStatus
    created_at: datetime


class WaitlistEntry(BaseModel):
    id: str
    email: str
    created_at: datetime
