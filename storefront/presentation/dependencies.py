from fastapi import Depends, Request

from storefront.application.accounts import UsersService
from storefront.application.calculate_rates import CalculateRatesUseCase
from storefront.application.create_payment_intent import CreatePaymentIntentUseCase
from storefront.application.events import EventsService
from storefront.application.finalize_order import FinalizeOrderUseCase
from storefront.application.get_order import GetOrderUseCase, ListOrdersUseCase
from storefront.application.interfaces import CarrierService, GeocodingService, PaymentsService
from storefront.application.products import ProductsService
from storefront.application.update_order_status import UpdateOrderStatusUseCase
from storefront.application.validate_address import ValidateAddressUseCase


# Handles are created in the lifespan and stored on app.state
def get_unit_of_work(request: Request):
    return request.app.state.unit_of_work


def get_geocoder(request: Request) -> GeocodingService:
    return request.app.state.geocoder


def get_carrier(request: Request) -> CarrierService:
    return request.app.state.carrier


def get_payments(request: Request) -> PaymentsService:
    return request.app.state.payments


def get_currency(request: Request) -> str:
    return request.app.state.settings.PAYMENT_CURRENCY


def get_validate_address_use_case(
    geocoder: GeocodingService = Depends(get_geocoder),
    carrier: CarrierService = Depends(get_carrier),
):
    return ValidateAddressUseCase(geocoder, carrier)


def get_calculate_rates_use_case(carrier: CarrierService = Depends(get_carrier)):
    return CalculateRatesUseCase(carrier)


def get_create_payment_intent_use_case(
    payments: PaymentsService = Depends(get_payments),
    currency: str = Depends(get_currency),
):
    return CreatePaymentIntentUseCase(payments, currency)


def get_finalize_order_use_case(uow=Depends(get_unit_of_work)):
    return FinalizeOrderUseCase(uow)


def get_get_order_use_case(uow=Depends(get_unit_of_work)):
    return GetOrderUseCase(uow)


def get_list_orders_use_case(uow=Depends(get_unit_of_work)):
    return ListOrdersUseCase(uow)


def get_update_order_status_use_case(uow=Depends(get_unit_of_work)):
    return UpdateOrderStatusUseCase(uow)


def get_users_service(uow=Depends(get_unit_of_work)):
    return UsersService(uow)


def get_events_service(uow=Depends(get_unit_of_work)):
    return EventsService(uow)


def get_products_service(uow=Depends(get_unit_of_work)):
    return ProductsService(uow)
