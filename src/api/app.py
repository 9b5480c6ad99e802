"""
FastAPI application factory.

* Registers routes for orders, restaurant settings and admin.
* Starts / stops the background urgency monitor via lifespan events.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import limiter
from src.api.routes import admin, orders, restaurants
from src.domain.enums import UnknownEnumValue
from src.workers import urgency_monitor as _monitor

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the urgency monitor on startup; stop on shutdown."""
    await _monitor.start_urgency_monitor()
    yield
    await _monitor.stop_urgency_monitor()


async def _unknown_enum_handler(request: Request, exc: UnknownEnumValue) -> JSONResponse:
    # A stored row holds a value outside the closed enumerations.
    logger.error("Contract violation on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Restaurant Operations API",
        description=(
            "Role-scoped order lifecycle for kitchen, delivery and manager "
            "screens, plus delivery fee rules and pricing."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(UnknownEnumValue, _unknown_enum_handler)

    # Routers
    app.include_router(orders.router, prefix="/api/v1")
    app.include_router(restaurants.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
