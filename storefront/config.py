import os
from dotenv import load_dotenv

from storefront.domain.exceptions import ConfigurationError

load_dotenv()


class Settings:
    # Database; "memory" keeps everything in process and skips Postgres
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "postgres")
    POSTGRES_CONNECTION_STRING: str = os.getenv("POSTGRES_CONNECTION_STRING", "")

    # Payment processor
    STRIPE_SECRET_KEY: str = os.getenv("STRIPE_SECRET_KEY", "")
    STRIPE_BASE_URL: str = os.getenv("STRIPE_BASE_URL", "https://api.stripe.com")
    PAYMENT_CURRENCY: str = os.getenv("PAYMENT_CURRENCY", "usd")

    # Geocoder
    GOOGLE_MAPS_API_KEY: str = os.getenv("GOOGLE_MAPS_API_KEY", "")
    GOOGLE_GEOCODE_URL: str = os.getenv(
        "GOOGLE_GEOCODE_URL", "https://maps.googleapis.com/maps/api/geocode/json"
    )

    # Carrier aggregator
    EASYPOST_API_KEY: str = os.getenv("EASYPOST_API_KEY", "")
    EASYPOST_BASE_URL: str = os.getenv("EASYPOST_BASE_URL", "https://api.easypost.com/v2")

    # Applies to every outbound call
    HTTP_TIMEOUT_SECONDS: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

    # Kafka
    KAFKA_BOOTSTRAP_SERVERS: str = os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092")
    ORDER_EVENTS_TOPIC: str = os.getenv("ORDER_EVENTS_TOPIC", "storefront.order.events")
    SHIPMENT_EVENTS_TOPIC: str = os.getenv("SHIPMENT_EVENTS_TOPIC", "storefront.shipment.events")

    REQUIRED = ("STRIPE_SECRET_KEY", "GOOGLE_MAPS_API_KEY", "EASYPOST_API_KEY")

    @property
    def DATABASE_URL(self) -> str:
        """Async URL for the application"""
        return self.POSTGRES_CONNECTION_STRING.replace("postgres://", "postgresql+asyncpg://", 1)

    def validate(self) -> None:
        missing = [name for name in self.REQUIRED if not getattr(self, name)]
        if self.STORAGE_BACKEND not in ("postgres", "memory"):
            raise ConfigurationError(f"Unknown STORAGE_BACKEND: {self.STORAGE_BACKEND}")
        if self.STORAGE_BACKEND == "postgres" and not self.POSTGRES_CONNECTION_STRING:
            missing.append("POSTGRES_CONNECTION_STRING")
        if missing:
            raise ConfigurationError(f"Missing required settings: {', '.join(missing)}")


settings = Settings()
