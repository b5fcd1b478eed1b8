from sqlalchemy import JSON, Boolean, Column, DateTime, Integer, MetaData, Numeric, String, Table, Text

metadata = MetaData()

bookings = Table(
    "bookings",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("order_id", String(64), nullable=False, unique=True),  # payment.transaction_id
    Column("user_id", String(64), nullable=False, index=True),
    Column("booking_type", String(16), nullable=False),
    Column("booking_status", String(16), nullable=False),
    Column("details", JSON, nullable=False),
    Column("payment_method", String(32), nullable=False),
    Column("payment_status", String(16), nullable=False),
    Column("amount", Numeric(18, 8), nullable=False),
    Column("currency", String(10), nullable=False),
    Column("gateway_order_id", String(128)),
    Column("gateway_payment_id", String(128)),
    Column("commit_started_at", DateTime(timezone=True)),
    Column("failure_reason", String(500)),
    Column("version", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True), nullable=False, index=True),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

notifications = Table(
    "notifications",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("user_id", String(64), nullable=False, index=True),
    Column("title", String(255), nullable=False),
    Column("message", Text, nullable=False),
    Column("category", String(32), nullable=False),
    Column("read", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

# Owned by the user service; read here for email and greeting name
users = Table(
    "users",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("email", String(255)),
    Column("first_name", String(100)),
)
