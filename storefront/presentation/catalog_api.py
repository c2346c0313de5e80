import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from storefront.application.accounts import CreateUserDTO, UsersService
from storefront.application.events import CreateEventDTO, EventsService
from storefront.application.products import CreateProductDTO, ProductsService
from storefront.domain.exceptions import ConflictError, NotFoundError, ValidationError
from storefront.presentation.api import validation_failed
from storefront.presentation.dependencies import (
    get_events_service,
    get_products_service,
    get_users_service,
)
from storefront.presentation.schemas import (
    CreateEventRequest,
    CreateProductRequest,
    CreateRegistrationRequest,
    CreateUserRequest,
    ErrorResponse,
    EventResponse,
    LoginRequest,
    ProductResponse,
    RegistrationResponse,
    UpdateRoleRequest,
    UpdateStockRequest,
    UserResponse,
    WaitlistRequest,
    WaitlistResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/users",
    response_model=UserResponse,
    responses={400: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def create_user(request: CreateUserRequest, service: UsersService = Depends(get_users_service)):
    try:
        user = await service.create(CreateUserDTO(**request.model_dump()))
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UserResponse.from_domain(user)


@router.get("/users", response_model=List[UserResponse])
async def list_users(service: UsersService = Depends(get_users_service)):
    return [UserResponse.from_domain(user) for user in await service.list()]


@router.patch(
    "/users/{user_id}/role",
    response_model=UserResponse,
    responses={404: {"model": ErrorResponse}}
)
async def update_user_role(user_id: str, request: UpdateRoleRequest,
                           service: UsersService = Depends(get_users_service)):
    try:
        user = await service.set_admin(user_id, request.is_admin)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.from_domain(user)


@router.post(
    "/auth/login",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}}
)
async def login(request: LoginRequest, service: UsersService = Depends(get_users_service)):
    """Check credentials; session handling lives outside this service"""
    user = await service.authenticate(request.username, request.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return UserResponse.from_domain(user)


@router.get("/events", response_model=List[EventResponse])
async def list_events(service: EventsService = Depends(get_events_service)):
    return [EventResponse.from_domain(event) for event in await service.list_events()]


@router.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(request: CreateEventRequest, service: EventsService = Depends(get_events_service)):
    event = await service.create_event(CreateEventDTO(**request.model_dump()))
    return EventResponse.from_domain(event)


@router.get(
    "/events/{event_id}",
    response_model=EventResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_event(event_id: str, service: EventsService = Depends(get_events_service)):
    try:
        return EventResponse.from_domain(await service.get_event(event_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Event not found")


@router.get("/events/{event_id}/registrations", response_model=List[RegistrationResponse])
async def list_registrations(event_id: str, service: EventsService = Depends(get_events_service)):
    return [RegistrationResponse.from_domain(r) for r in await service.list_registrations(event_id)]


@router.post(
    "/registrations",
    response_model=RegistrationResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def create_registration(request: CreateRegistrationRequest,
                              service: EventsService = Depends(get_events_service)):
    try:
        registration = await service.register(request.user_id, request.event_id, request.status)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Event not found")
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return RegistrationResponse.from_domain(registration)


@router.get(
    "/registrations/{registration_id}",
    response_model=RegistrationResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_registration(registration_id: str, service: EventsService = Depends(get_events_service)):
    try:
        return RegistrationResponse.from_domain(await service.get_registration(registration_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Registration not found")


@router.post(
    "/waitlist",
    response_model=WaitlistResponse,
    responses={400: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def join_waitlist(request: WaitlistRequest, service: EventsService = Depends(get_events_service)):
    try:
        entry = await service.join_waitlist(request.email)
    except ConflictError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return WaitlistResponse.from_domain(entry)


@router.get("/products", response_model=List[ProductResponse])
async def list_products(
    category: Optional[str] = Query(default=None),
    service: ProductsService = Depends(get_products_service)
):
    return [ProductResponse.from_domain(p) for p in await service.list(category=category)]


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(request: CreateProductRequest, service: ProductsService = Depends(get_products_service)):
    product = await service.create(CreateProductDTO(**request.model_dump()))
    return ProductResponse.from_domain(product)


@router.get(
    "/products/{product_id}",
    response_model=ProductResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_product(product_id: str, service: ProductsService = Depends(get_products_service)):
    try:
        return ProductResponse.from_domain(await service.get(product_id))
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")


@router.patch(
    "/products/{product_id}/stock",
    response_model=ProductResponse,
    responses={400: {"description": "Invalid stock"}, 404: {"model": ErrorResponse}}
)
async def update_product_stock(product_id: str, request: UpdateStockRequest,
                               service: ProductsService = Depends(get_products_service)):
    try:
        product = await service.update_stock(product_id, request.stock)
    except ValidationError as e:
        raise validation_failed(e)
    except NotFoundError:
        raise HTTPException(status_code=404, detail="Product not found")
    return ProductResponse.from_domain(product)
