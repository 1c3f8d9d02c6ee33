"""
FastAPI application factory.

* Registers routes for the booking wizard, reservations and admin.
* Maps domain errors to HTTP responses.
* Applies rate-limiting middleware.
* Disposes the database engine and the Redis pool on shutdown.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shuttle.api.errors import register_error_handlers
from shuttle.api.middleware import limiter
from shuttle.api.routes import admin, bookings, reservations
from shuttle.config import settings
from shuttle.infrastructure.database import engine
from shuttle.infrastructure.redis_client import close_redis

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Transfer booking API starting (%s)", settings.airport_name)
    yield
    await engine.dispose()
    await close_redis()
    logger.info("Transfer booking API stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Airport Transfer Booking API",
        description=(
            "Books airport <-> hotel transfers through a five-step wizard, "
            "prices them per vehicle and add-on, and tracks each trip from "
            "dispatch to settlement."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    register_error_handlers(app)

    # Routers
    app.include_router(bookings.router, prefix="/api/v1")
    app.include_router(reservations.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
