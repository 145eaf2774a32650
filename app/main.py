import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.dependencies import init_runtime
from app.api.deps import engine
from app.api.routers.admin import router as admin_router
from app.api.routers.bookings import router as bookings_router
from app.api.routers.cars import router as cars_router
from app.api.routers.health import router as health_router
from app.api.routers.notifications import router as notifications_router
from app.api.routers.payments import router as payments_router
from app.config import get_settings
from app.domain.errors import (
    AccessDeniedError,
    BookingNotFoundError,
    CarNotFoundError,
    CarUnavailableError,
    ConcurrentBookingConflictError,
    DomainError,
    InvalidTransitionError,
    NotificationNotFoundError,
    PaymentGatewayError,
    PaymentVerificationFailedError,
    RefundNotAllowedError,
    ValidationError,
)
from app.infrastructure.db.tables import metadata

settings = get_settings()

# Configure structured logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Orden de más específico a más general (CarUnavailableError hereda de ValidationError)
DOMAIN_ERROR_STATUS = (
    (CarUnavailableError, 409),
    (ValidationError, 400),
    (RefundNotAllowedError, 400),
    (AccessDeniedError, 403),
    (CarNotFoundError, 404),
    (BookingNotFoundError, 404),
    (NotificationNotFoundError, 404),
    (InvalidTransitionError, 409),
    (ConcurrentBookingConflictError, 409),
    (PaymentVerificationFailedError, 402),
    (PaymentGatewayError, 502),
)


def status_for(exc: DomainError) -> int:
    for error_type, status_code in DOMAIN_ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Initialize DB tables (for dev/demo purposes)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    await init_runtime(settings)
    yield
    # Cleanup
    await engine.dispose()

app = FastAPI(
    title="Car Rental Bookings API",
    version="0.1.0",
    lifespan=lifespan
)


@app.exception_handler(DomainError)
async def domain_exception_handler(request: Request, exc: DomainError):
    status_code = status_for(exc)
    log = logger.error if status_code >= 500 else logger.info
    log(
        "Domain error",
        extra={
            "code": exc.code,
            "status_code": status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )
    return JSONResponse(status_code=status_code, content={"detail": exc.message, "code": exc.code})


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Global exception handler to prevent stack trace exposure to clients.
    All unhandled exceptions are logged internally and return a generic error message.
    """
    error_id = str(uuid.uuid4())

    # Log the full error with context for internal debugging
    logger.error(
        "Unhandled exception occurred",
        exc_info=exc,
        extra={
            "error_id": error_id,
            "path": request.url.path,
            "method": request.method,
            "client_host": request.client.host if request.client else None,
        }
    )

    # Return a generic error to the client without exposing internal details
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Internal server error",
            "error_id": error_id,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists."
        }
    )


app.include_router(health_router, tags=["Health"])
app.include_router(bookings_router, prefix="/api/v1", tags=["Bookings"])
app.include_router(cars_router, prefix="/api/v1", tags=["Cars"])
app.include_router(payments_router, prefix="/api/v1", tags=["Payments"])
app.include_router(notifications_router, prefix="/api/v1", tags=["Notifications"])
app.include_router(admin_router, prefix="/api/v1", tags=["Admin"])
