import asyncio
import logging
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.dependencies import get_container
from app.api.deps import get_engine
from app.api.error_handlers import register_exception_handlers
from app.api.routers.bookings import router as bookings_router
from app.api.routers.health import router as health_router
from app.api.routers.payments import router as payments_router
from app.api.routers.worker import router as worker_router
from app.config import get_settings
from app.infrastructure.circuit_breaker import reset_breakers
from app.infrastructure.db.engine import create_tables
from app.infrastructure.messaging.payment_sweeper_worker import PaymentSweeperWorker

# Configure structured logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    # Refuse to start with an enabled gateway that cannot sign or verify
    settings.validate_gateways()
    if not settings.use_in_memory:
        await create_tables(get_engine())
    reset_breakers()

    sweeper = None
    sweeper_task = None
    if settings.sweeper_enabled:
        sweeper = PaymentSweeperWorker(
            get_container()["use_cases"]["sweep_pending_payments"],
            interval_seconds=settings.sweeper_interval_seconds,
        )
        sweeper_task = asyncio.create_task(sweeper.start())

    logger.info(
        "Application started",
        extra={
            "gateways": ",".join(settings.enabled_gateways),
            "in_memory": settings.use_in_memory,
            "sweeper_enabled": settings.sweeper_enabled,
        },
    )
    yield

    # Cleanup
    if sweeper and sweeper_task:
        await sweeper.stop()
        await sweeper_task
    if not settings.use_in_memory:
        await get_engine().dispose()


app = FastAPI(
    title="Bookings & Crypto Payments API",
    version="0.1.0",
    lifespan=lifespan
)

register_exception_handlers(app)


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Last-resort handler: logs the full error under an error_id and returns a
    generic body so no stack trace reaches the client.
    """
    error_id = str(uuid.uuid4())

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

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "message": "An unexpected error occurred. Please contact support with the error_id if the issue persists.",
            "error_id": error_id,
        }
    )


app.include_router(health_router, prefix="/api/v1", tags=["Health"])
app.include_router(payments_router, prefix="/api/v1", tags=["Payments"])
app.include_router(bookings_router, prefix="/api/v1", tags=["Bookings"])
app.include_router(worker_router, prefix="/api/v1", tags=["Worker"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
