from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Index,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
)

metadata = MetaData()

cars = Table(
    "cars",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("name", String(255), nullable=False),
    Column("category", String(32), nullable=False, default="normal"),
    Column("registration_number", String(32)),
    Column("tier_prices", JSON),  # {"12": "1200.00", "24": "2000.00", ...}
    Column("hourly_rate", Numeric(12, 2)),
    Column("security_deposit", Numeric(12, 2), nullable=False, default=0),
    Column("driver_available", Boolean, nullable=False, default=False),
    Column("driver_charge_per_day", Numeric(12, 2), nullable=False, default=0),
    Column("available", Boolean, nullable=False, default=True),
    Column("lock_version", Integer, nullable=False, default=0),
)

bookings = Table(
    "bookings",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("customer_id", String(64), nullable=False, index=True),
    Column("car_id", String(64), nullable=False),
    Column("start_time", DateTime(timezone=True), nullable=False),
    Column("duration_hours", Integer, nullable=False),
    Column("end_time", DateTime(timezone=True), nullable=False),
    Column("verification", JSON, nullable=False),
    Column("documents", JSON, nullable=False),
    Column("deposit_method", String(16), nullable=False),
    Column("deposit_details", String(500)),
    Column("deposit_amount", Numeric(12, 2), nullable=False),
    Column("deposit_status", String(16), nullable=False),
    Column("with_driver", Boolean, nullable=False, default=False),
    Column("home_delivery", Boolean, nullable=False, default=False),
    Column("delivery_address", String(500)),
    Column("delivery_distance_km", Numeric(8, 2), nullable=False, default=0),
    Column("base_price", Numeric(12, 2), nullable=False),
    Column("driver_charge", Numeric(12, 2), nullable=False),
    Column("delivery_fee", Numeric(12, 2), nullable=False),
    Column("late_return_fee", Numeric(12, 2), nullable=False, default=0),
    Column("late_hours", Integer, nullable=False, default=0),
    Column("total_price", Numeric(12, 2), nullable=False),
    Column("status", String(32), nullable=False),
    Column("admin_notes", Text),
    Column("payment_status", String(32), nullable=False),
    Column("payment_provider", String(32)),
    Column("payment_order_id", String(128), unique=True),
    Column("payment_transaction_id", String(128)),
    Column("paid_amount", Numeric(12, 2), nullable=False, default=0),
    Column("refunded_amount", Numeric(12, 2), nullable=False, default=0),
    Column("paid_at", DateTime(timezone=True)),
    Column("vehicle_name", String(255)),
    Column("vehicle_number", String(32)),
    Column("start_odometer", Integer),
    Column("end_odometer", Integer),
    Column("actual_return_time", DateTime(timezone=True)),
    Column("lock_version", Integer, nullable=False, default=0),
    Column("created_at", DateTime(timezone=True)),
    Column("updated_at", DateTime(timezone=True)),
    Index("ix_bookings_car_window", "car_id", "start_time", "end_time"),
)

notifications = Table(
    "notifications",
    metadata,
    Column("id", String(64), primary_key=True),
    Column("user_id", String(64), nullable=False, index=True),
    Column("booking_id", String(64)),
    Column("message", Text, nullable=False),
    Column("category", String(32), nullable=False),
    Column("read", Boolean, nullable=False, default=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)
