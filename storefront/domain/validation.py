"""Explicit input validation.

Each function checks raw request data field by field and returns a
ValidationResult instead of raising, so the caller decides how to report
the errors.
"""
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Generic, List, Mapping, Optional, Sequence, TypeVar

from storefront.domain.exceptions import FieldError, ValidationError
from storefront.domain.models import CartItem, Parcel, ShippingAddress, ShippingRateQuote

T = TypeVar("T")

MIN_POSTAL_CODE_LENGTH = 5
MIN_PHONE_DIGITS = 10
CENTS = Decimal("0.01")


@dataclass
class ValidationResult(Generic[T]):
    value: Optional[T] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self, message: str = "Invalid request data") -> T:
        if self.errors:
            raise ValidationError(self.errors, message)
        return self.value


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    return str(value).strip()


def validate_shipping_address(data: Mapping[str, Any], prefix: str = "") -> ValidationResult[ShippingAddress]:
    errors = []
    required = {
        "first_name": "First name is required",
        "last_name": "Last name is required",
        "address1": "Address is required",
        "city": "City is required",
        "state": "State is required",
        "country": "Country is required",
    }
    for key, message in required.items():
        if not _text(data, key):
            errors.append(FieldError(prefix + key, message))

    if len(_text(data, "postal_code")) < MIN_POSTAL_CODE_LENGTH:
        errors.append(FieldError(prefix + "postal_code", "Valid postal code is required"))

    digits = [c for c in _text(data, "phone") if c.isdigit()]
    if len(digits) < MIN_PHONE_DIGITS:
        errors.append(FieldError(prefix + "phone", "Valid phone number is required"))

    if errors:
        return ValidationResult(errors=errors)

    address = ShippingAddress(
        first_name=_text(data, "first_name"),
        last_name=_text(data, "last_name"),
        address1=_text(data, "address1"),
        address2=_text(data, "address2") or None,
        city=_text(data, "city"),
        state=_text(data, "state"),
        postal_code=_text(data, "postal_code"),
        country=_text(data, "country"),
        phone=_text(data, "phone"),
    )
    return ValidationResult(value=address)


def validate_parcel(data: Mapping[str, Any], prefix: str = "") -> ValidationResult[Parcel]:
    errors = []
    values = {}
    for key in ("weight", "length", "width", "height"):
        raw = data.get(key)
        try:
            number = float(raw)
        except (TypeError, ValueError):
            errors.append(FieldError(prefix + key, f"{key.capitalize()} must be a number"))
            continue
        if number <= 0:
            errors.append(FieldError(prefix + key, f"{key.capitalize()} must be greater than zero"))
            continue
        values[key] = number

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=Parcel(**values))


def validate_cart(items: Sequence[Mapping[str, Any]]) -> ValidationResult[List[CartItem]]:
    if not items:
        return ValidationResult(errors=[FieldError("items", "Cart is empty")])

    errors = []
    cart = []
    seen = set()
    for index, item in enumerate(items):
        product_id = _text(item, "product_id")
        quantity = item.get("quantity")
        if not product_id:
            errors.append(FieldError(f"items[{index}].product_id", "Product is required"))
        elif product_id in seen:
            errors.append(FieldError(f"items[{index}].product_id", "Duplicate product in cart"))
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity <= 0:
            errors.append(FieldError(f"items[{index}].quantity", "Quantity must be a positive integer"))
        if product_id:
            seen.add(product_id)
        if not errors:
            cart.append(CartItem(product_id=product_id, quantity=quantity))

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=cart)


def validate_rate(data: Mapping[str, Any], prefix: str = "") -> ValidationResult[ShippingRateQuote]:
    """A selected shipping option; the rate is money and may not carry fractions of a cent"""
    errors = []
    for key, message in (("carrier", "Carrier is required"), ("service", "Service is required")):
        if not _text(data, key):
            errors.append(FieldError(prefix + key, message))

    try:
        rate = Decimal(str(data.get("rate")))
    except InvalidOperation:
        rate = None
    if rate is None or not rate.is_finite() or rate < 0:
        errors.append(FieldError(prefix + "rate", "Rate must be a non-negative amount"))
    elif rate.as_tuple().exponent < -2 and rate != rate.quantize(CENTS):
        errors.append(FieldError(prefix + "rate", "Rate cannot have more than 2 decimal places"))

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(value=ShippingRateQuote(
        carrier=_text(data, "carrier"),
        service=_text(data, "service"),
        rate=rate,
        estimated_days=data.get("estimated_days") or 0,
        tracking_available=data.get("tracking_available", True),
    ))
