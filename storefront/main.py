import logging
import sys
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from storefront.config import Settings, settings as default_settings
from storefront.database import create_engine, create_session_factory, create_tables
from storefront.infrastructure.http_clients import EasyPostClient, GoogleGeocodingClient, StripePaymentsClient
from storefront.infrastructure.memory import MemoryUnitOfWork
from storefront.infrastructure.unit_of_work import UnitOfWork
from storefront.presentation import api, catalog_api

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[logging.StreamHandler(sys.stdout)]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: outbound clients and the database engine"""
    settings: Settings = app.state.settings
    # Missing keys stop the startup
    settings.validate()

    engine = None
    if settings.STORAGE_BACKEND == "memory":
        logger.warning("Using the in-memory store; nothing survives a restart")
        app.state.unit_of_work = MemoryUnitOfWork()
    else:
        engine = create_engine(settings.DATABASE_URL)
        await create_tables(engine)
        logger.info("Tables ready")
        app.state.unit_of_work = UnitOfWork(create_session_factory(engine))

    http = httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT_SECONDS)
    app.state.geocoder = GoogleGeocodingClient(http, settings.GOOGLE_MAPS_API_KEY, settings.GOOGLE_GEOCODE_URL)
    app.state.carrier = EasyPostClient(http, settings.EASYPOST_API_KEY, settings.EASYPOST_BASE_URL)
    app.state.payments = StripePaymentsClient(http, settings.STRIPE_SECRET_KEY, settings.STRIPE_BASE_URL)

    yield

    logger.info("Application shutting down...")
    await http.aclose()
    if engine is not None:
        await engine.dispose()


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in err["loc"] if part != "body"), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": {"message": "Invalid request data", "errors": errors}},
    )


def create_app(settings: Settings = default_settings) -> FastAPI:
    app = FastAPI(
        title="Storefront Service",
        description="Events, catalog and checkout with shipping",
        version="1.0.0",
        lifespan=lifespan
    )
    app.state.settings = settings
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.include_router(api.router, prefix="/api")
    app.include_router(catalog_api.router, prefix="/api")

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app


app = create_app()
