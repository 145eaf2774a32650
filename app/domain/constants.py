"""Constantes del dominio de reservas de autos."""

# === Estados de la reserva ===

BOOKING_STATUS_PENDING = "pending"
BOOKING_STATUS_ACCEPTED = "accepted"
BOOKING_STATUS_DECLINED = "declined"
BOOKING_STATUS_PAYMENT_PENDING = "payment_pending"
BOOKING_STATUS_PAID = "paid"
BOOKING_STATUS_ACTIVE = "active"
BOOKING_STATUS_COMPLETED = "completed"
BOOKING_STATUS_CANCELLED = "cancelled"

# Reservas que todavía reclaman el auto (cuentan como conflicto de agenda)
CLAIMING_STATUSES = frozenset(
    {
        BOOKING_STATUS_PENDING,
        BOOKING_STATUS_ACCEPTED,
        BOOKING_STATUS_PAYMENT_PENDING,
        BOOKING_STATUS_PAID,
        BOOKING_STATUS_ACTIVE,
    }
)

# Subconjunto que ya comprometió el auto con un cliente
COMMITTED_STATUSES = frozenset(
    {
        BOOKING_STATUS_ACCEPTED,
        BOOKING_STATUS_PAYMENT_PENDING,
        BOOKING_STATUS_PAID,
        BOOKING_STATUS_ACTIVE,
    }
)

TERMINAL_STATUSES = frozenset(
    {
        BOOKING_STATUS_COMPLETED,
        BOOKING_STATUS_DECLINED,
        BOOKING_STATUS_CANCELLED,
    }
)

# Estados en los que el pago ya fue aplicado
PAID_OR_LATER_STATUSES = frozenset(
    {
        BOOKING_STATUS_PAID,
        BOOKING_STATUS_ACTIVE,
        BOOKING_STATUS_COMPLETED,
    }
)

# === Estados de pago ===

PAYMENT_STATUS_PENDING = "pending"
PAYMENT_STATUS_COMPLETED = "completed"
PAYMENT_STATUS_FAILED = "failed"
PAYMENT_STATUS_REFUNDED = "refunded"

# === Depósito ===

DEPOSIT_STATUS_PENDING = "pending"
DEPOSIT_STATUS_RECEIVED = "received"
DEPOSIT_STATUS_REFUNDED = "refunded"

DEPOSIT_METHOD_BIKE = "bike"
DEPOSIT_METHOD_CASH = "cash"
DEPOSIT_METHOD_ONLINE = "online"

DEPOSIT_METHODS = frozenset({DEPOSIT_METHOD_BIKE, DEPOSIT_METHOD_CASH, DEPOSIT_METHOD_ONLINE})

# === Notificaciones ===

NOTIFICATION_BOOKING_UPDATE = "booking_update"
NOTIFICATION_PAYMENT = "payment"
NOTIFICATION_GENERAL = "general"

# === Tarifas ===

PRICING_TIERS_HOURS = (12, 24, 36, 48, 60, 72)
DAY_HOURS = 24

# === Proveedores de pago ===

PAYMENT_PROVIDER_RAZORPAY = "razorpay"
PAYMENT_PROVIDER_STRIPE = "stripe"
PAYMENT_PROVIDER_STUB = "stub"

# === Roles ===

ROLE_CUSTOMER = "customer"
ROLE_ADMIN = "admin"
