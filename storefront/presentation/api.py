import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic.alias_generators import to_camel

from storefront.application.calculate_rates import CalculateRatesUseCase
from storefront.application.create_payment_intent import CreatePaymentIntentUseCase
from storefront.application.finalize_order import FinalizeOrderDTO, FinalizeOrderUseCase
from storefront.application.get_order import GetOrderUseCase, ListOrdersUseCase
from storefront.application.interfaces import PaymentsService
from storefront.application.update_order_status import UpdateOrderStatusUseCase
from storefront.application.validate_address import ValidateAddressUseCase
from storefront.domain.exceptions import (
    CarrierServiceError,
    InsufficientStockError,
    InvalidAmountError,
    InvalidTransitionError,
    OrderNotFoundError,
    PaymentMismatchError,
    PaymentNotConfirmedError,
    PaymentServiceError,
    PersistenceError,
    ProductNotFoundError,
    ValidationError,
)
from storefront.domain.models import PaymentConfirmation
from storefront.domain.validation import validate_cart, validate_parcel, validate_rate, validate_shipping_address
from storefront.presentation.dependencies import (
    get_calculate_rates_use_case,
    get_create_payment_intent_use_case,
    get_finalize_order_use_case,
    get_get_order_use_case,
    get_list_orders_use_case,
    get_payments,
    get_update_order_status_use_case,
    get_validate_address_use_case,
)
from storefront.presentation.schemas import (
    CalculateRatesRequest,
    CreatePaymentIntentRequest,
    ErrorResponse,
    FinalizeOrderRequest,
    OrderResponse,
    PaymentIntentResponse,
    ShippingAddressPayload,
    ShippingRateSchema,
    UpdateOrderStatusRequest,
    ValidatedAddressResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _wire_field(name: str) -> str:
    return ".".join(to_camel(part) for part in name.split("."))


def validation_failed(e: ValidationError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={
            "message": str(e),
            "errors": [{"field": _wire_field(err.field), "message": err.message} for err in e.errors],
        },
    )


@router.post(
    "/shipping/validate-address",
    response_model=ValidatedAddressResponse,
    responses={400: {"description": "Invalid shipping address"}},
)
async def validate_address(
    payload: ShippingAddressPayload,
    use_case: ValidateAddressUseCase = Depends(get_validate_address_use_case)
):
    """Validate and normalize a shipping address"""
    try:
        address = validate_shipping_address(payload.model_dump()).unwrap("Invalid shipping address")
    except ValidationError as e:
        raise validation_failed(e)

    validated = await use_case(address)
    return ValidatedAddressResponse.from_domain(validated)


@router.post(
    "/shipping/calculate-rates",
    response_model=List[ShippingRateSchema],
    responses={400: {"description": "Invalid request"}, 500: {"model": ErrorResponse}},
)
async def calculate_rates(
    request: CalculateRatesRequest,
    use_case: CalculateRatesUseCase = Depends(get_calculate_rates_use_case)
):
    """Quote shipping options between two validated addresses"""
    from_result = validate_shipping_address(request.from_address.model_dump(), prefix="from_address.")
    to_result = validate_shipping_address(request.to_address.model_dump(), prefix="to_address.")
    parcel_result = validate_parcel(request.parcel_details.model_dump(), prefix="parcel_details.")
    errors = from_result.errors + to_result.errors + parcel_result.errors
    if errors:
        raise validation_failed(ValidationError(errors, "Invalid shipping rate request"))

    try:
        quotes = await use_case(from_result.value, to_result.value, parcel_result.value)
    except CarrierServiceError as e:
        logger.error(f"Rate calculation failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to calculate shipping rates")

    return [ShippingRateSchema.from_domain(quote) for quote in quotes]


@router.post(
    "/create-payment-intent",
    response_model=PaymentIntentResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_payment_intent(
    request: CreatePaymentIntentRequest,
    use_case: CreatePaymentIntentUseCase = Depends(get_create_payment_intent_use_case)
):
    """Create a new payment intent for the current total"""
    try:
        intent = await use_case(request.amount, previous_intent_id=request.previous_payment_intent_id)
    except InvalidAmountError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PaymentServiceError as e:
        logger.error(f"Payment intent creation failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to create payment intent")

    return PaymentIntentResponse.from_domain(intent)


@router.post(
    "/orders",
    response_model=OrderResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def finalize_order(
    request: FinalizeOrderRequest,
    payments: PaymentsService = Depends(get_payments),
    use_case: FinalizeOrderUseCase = Depends(get_finalize_order_use_case)
):
    """Record the order once the payment is confirmed. Idempotent per payment intent."""
    address_result = validate_shipping_address(request.shipping_address.model_dump(), prefix="shipping_address.")
    cart_result = validate_cart([item.model_dump() for item in request.items])
    rate_result = validate_rate(request.selected_rate.model_dump(), prefix="selected_rate.")
    errors = address_result.errors + cart_result.errors + rate_result.errors
    if errors:
        raise validation_failed(ValidationError(errors, "Invalid order data"))

    # A replay is answered from the store, without the processor
    existing = await use_case.find_existing(request.payment_intent_id)
    if existing:
        logger.info(f"Order for payment {request.payment_intent_id} already recorded: {existing.id}")
        return OrderResponse.from_domain(existing)

    try:
        intent = await payments.retrieve_payment_intent(request.payment_intent_id)
    except PaymentServiceError as e:
        logger.error(f"Could not retrieve payment intent {request.payment_intent_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to verify payment")

    dto = FinalizeOrderDTO(
        user_id=request.user_id,
        cart_items=cart_result.value,
        shipping_address=address_result.value,
        selected_rate=rate_result.value,
        payment_confirmation=PaymentConfirmation(
            payment_intent_id=intent.id, status=intent.status, amount=intent.amount
        ),
    )
    try:
        order = await use_case(dto)
    except (PaymentNotConfirmedError, PaymentMismatchError, InsufficientStockError, ProductNotFoundError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        logger.error(f"Order persistence failed: {e!r}")
        raise HTTPException(status_code=500, detail="Failed to create order")

    return OrderResponse.from_domain(order)


@router.get(
    "/orders",
    response_model=List[OrderResponse],
)
async def list_orders(
    user_id: Optional[str] = Query(default=None, alias="userId"),
    use_case: ListOrdersUseCase = Depends(get_list_orders_use_case)
):
    """All orders, or the orders of one user"""
    orders = await use_case(user_id=user_id)
    return [OrderResponse.from_domain(order) for order in orders]


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_order(
    order_id: str,
    use_case: GetOrderUseCase = Depends(get_get_order_use_case)
):
    """Get an order by id"""
    try:
        order = await use_case(order_id)
        return OrderResponse.from_domain(order)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")


@router.patch(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}}
)
async def update_order_status(
    order_id: str,
    request: UpdateOrderStatusRequest,
    use_case: UpdateOrderStatusUseCase = Depends(get_update_order_status_use_case)
):
    """Move an order along pending -> paid -> shipped -> delivered, or cancel it"""
    try:
        order = await use_case(
            order_id,
            request.status,
            tracking_number=request.tracking_number,
            estimated_delivery_date=request.estimated_delivery_date,
        )
        return OrderResponse.from_domain(order)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
