from datetime import datetime
from decimal import Decimal
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, PlainSerializer
from pydantic.alias_generators import to_camel

from storefront.domain.models import (
    Event,
    Order,
    OrderStatus,
    PaymentIntent,
    Product,
    Registration,
    RegistrationStatus,
    ShippingAddress,
    ShippingRateQuote,
    User,
    ValidatedAddress,
    WaitlistEntry,
)

# Money travels as a JSON number
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShippingAddressPayload(CamelModel):
    """Presence and format are checked by validate_shipping_address"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    phone: Optional[str] = None


class AddressResponse(CamelModel):
    first_name: str
    last_name: str
    address1: str
    address2: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str
    phone: str

    @classmethod
    def from_domain(cls, address: ShippingAddress):
        return cls(**address.model_dump(include=set(cls.model_fields)))


class ValidatedAddressResponse(AddressResponse):
    is_valid: bool
    normalized_address: Optional[AddressResponse] = None
    messages: List[str] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, validated: ValidatedAddress):
        normalized = validated.normalized_address
        return cls(
            **validated.model_dump(include=set(AddressResponse.model_fields)),
            is_valid=validated.is_valid,
            normalized_address=AddressResponse.from_domain(normalized) if normalized else None,
            messages=validated.messages,
        )


class ParcelPayload(CamelModel):
    weight: Optional[float] = None
    length: Optional[float] = None
    width: Optional[float] = None
    height: Optional[float] = None


class CalculateRatesRequest(CamelModel):
    from_address: ShippingAddressPayload
    to_address: ShippingAddressPayload
    parcel_details: ParcelPayload


class ShippingRateSchema(CamelModel):
    carrier: str
    service: str
    rate: Money = Field(ge=0)
    estimated_days: int = Field(default=0, ge=0)
    tracking_available: bool = True

    @classmethod
    def from_domain(cls, quote: ShippingRateQuote):
        return cls(**quote.model_dump())


class CreatePaymentIntentRequest(CamelModel):
    amount: Decimal
    previous_payment_intent_id: Optional[str] = None


class PaymentIntentResponse(CamelModel):
    client_secret: str
    payment_intent_id: str
    amount: int

    @classmethod
    def from_domain(cls, intent: PaymentIntent):
        return cls(client_secret=intent.client_secret, payment_intent_id=intent.id, amount=intent.amount)


class CartItemPayload(CamelModel):
    product_id: Optional[str] = None
    quantity: Optional[int] = None


class FinalizeOrderRequest(CamelModel):
    user_id: str
    payment_intent_id: str
    items: List[CartItemPayload]
    shipping_address: ShippingAddressPayload
    selected_rate: ShippingRateSchema


class OrderItemResponse(CamelModel):
    id: str
    product_id: str
    quantity: int
    price: Money


class OrderResponse(CamelModel):
    id: str
    user_id: str
    status: OrderStatus
    total: Money
    shipping_address: AddressResponse
    shipping_cost: Optional[Money] = None
    carrier: Optional[str] = None
    service: Optional[str] = None
    payment_intent_id: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    items: List[OrderItemResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, order: Order):
        return cls(
            **order.model_dump(exclude={"shipping_address", "items"}),
            shipping_address=AddressResponse.from_domain(order.shipping_address),
            items=[OrderItemResponse(**item.model_dump()) for item in order.items],
        )


class UpdateOrderStatusRequest(CamelModel):
    status: OrderStatus
    tracking_number: Optional[str] = None
    estimated_delivery_date: Optional[datetime] = None


class ErrorResponse(BaseModel):
    detail: str


class CreateUserRequest(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    email: EmailStr


class LoginRequest(CamelModel):
    username: str
    password: str


class UserResponse(CamelModel):
    id: str
    username: str
    email: str
    is_admin: bool
    is_verified: bool

    @classmethod
    def from_domain(cls, user: User):
        return cls(**user.model_dump(exclude={"password_hash"}))


class UpdateRoleRequest(CamelModel):
    is_admin: bool


class CreateEventRequest(CamelModel):
    title: str
    description: str
    location: str
    date: datetime
    capacity: int = Field(gt=0)
    price: int = Field(ge=0)
    image_url: str


class EventResponse(CamelModel):
    id: str
    title: str
    description: str
    location: str
    date: datetime
    capacity: int
    price: int
    image_url: str

    @classmethod
    def from_domain(cls, event: Event):
        return cls(**event.model_dump())


class CreateRegistrationRequest(CamelModel):
    user_id: str
    event_id: str
    status: RegistrationStatus = RegistrationStatus.PENDING


class RegistrationResponse(CamelModel):
    id: str
    user_id: str
    event_id: str
    status: RegistrationStatus
    created_at: datetime

    @classmethod
    def from_domain(cls, registration: Registration):
        return cls(**registration.model_dump())


class WaitlistRequest(CamelModel):
    email: EmailStr


class WaitlistResponse(CamelModel):
    id: str
    email: str
    created_at: datetime

    @classmethod
    def from_domain(cls, entry: WaitlistEntry):
        return cls(**entry.model_dump())


class CreateProductRequest(CamelModel):
    name: str
    description: str
    price: Decimal = Field(ge=0)
    image_url: str
    category: str
    stock: int = Field(ge=0)


class ProductResponse(CamelModel):
    id: str
    name: str
    description: str
    price: Money
    image_url: str
    category: str
    stock: int
    created_at: datetime

    @classmethod
    def from_domain(cls, product: Product):
        return cls(**product.model_dump())


class UpdateStockRequest(CamelModel):
    stock: int
