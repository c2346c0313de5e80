from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
)
from sqlalchemy.sql import func

metadata = MetaData()

MONEY = Numeric(12, 2)


users_tbl = Table(
    "users",
    metadata,
    Column("id", String, primary_key=True),
    Column("username", String, nullable=False, unique=True),
    Column("password_hash", String, nullable=False),
    Column("email", String, nullable=False, unique=True),
    Column("is_admin", Boolean, nullable=False, default=False),
    Column("is_verified", Boolean, nullable=False, default=False),
)


events_tbl = Table(
    "events",
    metadata,
    Column("id", String, primary_key=True),
    Column("title", String, nullable=False),
    Column("description", Text, nullable=False),
    Column("location", String, nullable=False),
    Column("date", DateTime(timezone=True), nullable=False),
    Column("capacity", Integer, nullable=False),
    Column("price", Integer, nullable=False),
    Column("image_url", String, nullable=False),
)


registrations_tbl = Table(
    "registrations",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, ForeignKey("users.id"), nullable=False),
    Column("event_id", String, ForeignKey("events.id"), nullable=False, index=True),
    Column("status", String, nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


waitlist_tbl = Table(
    "waitlist",
    metadata,
    Column("id", String, primary_key=True),
    Column("email", String, nullable=False, unique=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


products_tbl = Table(
    "products",
    metadata,
    Column("id", String, primary_key=True),
    Column("name", String, nullable=False),
    Column("description", Text, nullable=False),
    Column("price", MONEY, nullable=False),
    Column("image_url", String, nullable=False),
    Column("category", String, nullable=False, index=True),
    Column("stock", Integer, nullable=False),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", String, primary_key=True),
    Column("user_id", String, nullable=False, index=True),
    Column("status", String, nullable=False),
    Column("total", MONEY, nullable=False),
    Column("shipping_address", JSON, nullable=False),
    Column("shipping_cost", MONEY, nullable=True),
    Column("carrier", String, nullable=True),
    Column("service", String, nullable=True),
    Column("payment_intent_id", String, unique=True, index=True),
    Column("tracking_number", String, nullable=True),
    Column("estimated_delivery_date", DateTime(timezone=True), nullable=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)


order_items_tbl = Table(
    "order_items",
    metadata,
    Column("id", String, primary_key=True),
    Column("order_id", String, ForeignKey("orders.id"), nullable=False, index=True),
    Column("product_id", String, ForeignKey("products.id"), nullable=False),
    Column("quantity", Integer, nullable=False),
    Column("price", MONEY, nullable=False),
)


outbox_events_tbl = Table(
    "outbox_events",
    metadata,
    Column("id", String, primary_key=True),
    Column("event_type", String, nullable=False),
    Column("event_data", JSON, nullable=False),
    Column("order_id", String, nullable=False),
    Column("status", String, default="pending"),
    Column("created_at", DateTime(timezone=True), server_default=func.now())
)


inbox_events_tbl = Table(
    "inbox_events",
    metadata,
    Column("id", String, primary_key=True),
    Column("event_type", String, nullable=False),
    Column("event_data", JSON, nullable=False),
    Column("order_id", String, nullable=False),
    Column("idempotency_key", String, unique=True, nullable=False),
    Column("status", String, default="processed"),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
)
