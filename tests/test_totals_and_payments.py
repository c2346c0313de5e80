"""Tests for order totals and payment intents."""

from decimal import Decimal

import pytest

from conftest import StubPayments
from storefront.application.create_payment_intent import CreatePaymentIntentUseCase, to_minor_units
from storefront.application.order_total import compute_subtotal, compute_total, shipping_cost
from storefront.domain.exceptions import InvalidAmountError, PaymentServiceError
from storefront.domain.models import ShippingRateQuote


class TestComputeTotal:
    def test_adds_selected_rate(self, priority_rate):
        assert compute_total(Decimal("50.00"), priority_rate) == Decimal("57.25")

    def test_without_rate(self):
        assert compute_total(Decimal("50.00"), None) == Decimal("50.00")

    def test_subtotal(self):
        assert compute_subtotal([(Decimal("25.00"), 2), (Decimal("5.50"), 3)]) == Decimal("66.50")
        assert compute_subtotal([]) == Decimal("0.00")


class TestMinorUnits:
    @pytest.mark.parametrize("amount,expected", [
        (Decimal("57.25"), 5725),
        (Decimal("1.005"), 101),
        (1.005, 101),
        ("0.005", 1),
        (Decimal("0.004"), 0),
        (10, 1000),
    ])
    def test_rounds_half_up(self, amount, expected):
        assert to_minor_units(amount) == expected


class TestCreatePaymentIntent:
    async def test_creates_intent_in_cents(self):
        payments = StubPayments()

        intent = await CreatePaymentIntentUseCase(payments, "usd")(Decimal("57.25"))

        assert intent.client_secret == "pi_1_secret"
        assert payments.created[0].amount == 5725
        assert payments.created[0].currency == "usd"

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("0.004")])
    async def test_non_positive_amount_rejected(self, amount):
        payments = StubPayments()

        with pytest.raises(InvalidAmountError):
            await CreatePaymentIntentUseCase(payments)(amount)
        assert payments.created == []

    async def test_every_call_creates_new_intent(self):
        payments = StubPayments()
        use_case = CreatePaymentIntentUseCase(payments)

        first = await use_case(Decimal("57.25"))
        second = await use_case(Decimal("59.10"))

        assert first.id != second.id
        assert first.client_secret != second.client_secret

    async def test_superseded_intent_is_cancelled(self):
        payments = StubPayments()
        use_case = CreatePaymentIntentUseCase(payments)

        first = await use_case(Decimal("57.25"))
        second = await use_case(Decimal("59.10"), previous_intent_id=first.id)

        assert payments.cancelled == [first.id]
        assert second.amount == 5910

    async def test_cancel_failure_does_not_fail_new_intent(self):
        payments = StubPayments(cancel_error=PaymentServiceError("Payment service error 400"))

        intent = await CreatePaymentIntentUseCase(payments)(Decimal("59.10"), previous_intent_id="pi_old")

        assert intent.id == "pi_1"
        assert payments.cancelled == []

    async def test_processor_failure_propagates(self):
        payments = StubPayments(error=PaymentServiceError("Payment service timed out"))

        with pytest.raises(PaymentServiceError):
            await CreatePaymentIntentUseCase(payments)(Decimal("10"))


class TestShippingCost:
    def test_rounded_half_up_to_cents(self):
        rate = ShippingRateQuote(carrier="USPS", service="Priority", rate=Decimal("7.255"))
        assert shipping_cost(rate) == Decimal("7.26")
        assert compute_total(Decimal("50.00"), rate) == Decimal("50.00") + shipping_cost(rate)

    def test_no_rate(self):
        assert shipping_cost(None) == Decimal("0.00")
