import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from storefront.application.interfaces import PaymentsService
from storefront.domain.exceptions import InvalidAmountError, PaymentServiceError
from storefront.domain.models import PaymentIntent

logger = logging.getLogger(__name__)


def to_minor_units(amount: Union[Decimal, float, int, str]) -> int:
    """Major -> minor currency units, half-up to the nearest integer (1.005 -> 101)"""
    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class CreatePaymentIntentUseCase:
    def __init__(self, payments_service: PaymentsService, currency: str = "usd"):
        self._payments = payments_service
        self._currency = currency

    async def __call__(self, amount: Union[Decimal, float, int],
                       previous_intent_id: Optional[str] = None) -> PaymentIntent:
        if amount is None or Decimal(str(amount)) <= 0:
            raise InvalidAmountError(amount)

        minor = to_minor_units(amount)
        if minor <= 0:
            raise InvalidAmountError(amount)

        # A new intent per call; the client must only present the latest token
        intent = await self._payments.create_payment_intent(amount=minor, currency=self._currency)
        logger.info(f"Payment intent {intent.id} created for {minor} {self._currency}")

        if previous_intent_id and previous_intent_id != intent.id:
            await self._cancel_superseded(previous_intent_id)

        return intent

    async def _cancel_superseded(self, payment_intent_id: str) -> None:
        try:
            await self._payments.cancel_payment_intent(payment_intent_id)
            logger.info(f"Superseded payment intent {payment_intent_id} cancelled")
        except PaymentServiceError as e:
            # The processor expires abandoned intents on its own
            logger.warning(f"Could not cancel superseded payment intent {payment_intent_id}: {e}")
