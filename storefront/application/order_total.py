from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Tuple

from storefront.domain.models import ShippingRateQuote

CENTS = Decimal("0.01")


def to_cents(amount) -> Decimal:
    return Decimal(str(amount)).quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_subtotal(lines: Iterable[Tuple[Decimal, int]]) -> Decimal:
    """Sum of price * quantity over (price, quantity) pairs"""
    return to_cents(sum((Decimal(price) * quantity for price, quantity in lines), Decimal("0")))


def shipping_cost(selected_rate: Optional[ShippingRateQuote]) -> Decimal:
    """The rate as charged: rounded to cents once, used for both the total and the stored cost"""
    return to_cents(selected_rate.rate) if selected_rate is not None else Decimal("0.00")


def compute_total(cart_subtotal: Decimal, selected_rate: Optional[ShippingRateQuote]) -> Decimal:
    return to_cents(Decimal(cart_subtotal) + shipping_cost(selected_rate))
