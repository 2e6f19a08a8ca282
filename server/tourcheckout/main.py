"""FastAPI application initialization and configuration."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import __version__
from .core.config import settings
from .core.database import close_db, engine, get_db, init_db
from .core.dependencies import create_http_client
from .core.exceptions import (
    ProblemDetailsException,
    generic_exception_handler,
    http_exception_handler,
    problem_details_handler,
    request_validation_handler,
)
from .core.middleware import setup_middleware
from .core.observability import (
    SERVICE_NAME,
    instrument_fastapi,
    instrument_sqlalchemy,
    setup_structured_logging,
    setup_tracing,
)
from .routers import metrics, reservations

setup_structured_logging()

# stdlib loggers carry the `extra=` fields used across the services
logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Open the bookings database and the outbound HTTP client for the app's lifetime."""
    logger.info("Starting checkout service", extra={"environment": settings.environment})

    try:
        setup_tracing(SERVICE_NAME)
        instrument_sqlalchemy(engine)
        await init_db()
        app.state.http_client = create_http_client()
    except Exception as e:
        logger.error("Checkout service failed to start", extra={"error": str(e)})
        raise

    logger.info("Checkout service ready", extra={"currency": settings.currency})

    yield

    try:
        await app.state.http_client.aclose()
        await close_db()
    except Exception as e:
        logger.error("Checkout service shutdown incomplete", extra={"error": str(e)})
    else:
        logger.info("Checkout service stopped")


def register_exception_handlers(app: FastAPI) -> None:
    """Render every error as RFC 9457 Problem Details."""
    app.add_exception_handler(ProblemDetailsException, problem_details_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)


def create_app() -> FastAPI:
    """Build the checkout application with its middleware, error handlers and routes."""
    app = FastAPI(
        title="Tour Checkout API",
        description="Server-side checkout confirmation for tour bookings: re-validates price and capacity, "
                    "records the order, charges the card and notifies customer and operator",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Checkout-Warnings"],
    )

    setup_middleware(app, enable_logging=True)
    instrument_fastapi(app)
    register_exception_handlers(app)

    @app.get(
        "/health",
        status_code=status.HTTP_200_OK,
        tags=["Health"],
        summary="Health Check",
        response_model=dict,
    )
    async def health_check():
        """Liveness probe; does not touch dependencies."""
        return {
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": __version__,
            "environment": settings.environment,
        }

    @app.get(
        "/ready",
        tags=["Health"],
        summary="Readiness Check",
        response_model=dict,
    )
    async def readiness_check(db: AsyncSession = Depends(get_db)):
        """Readiness probe; verifies the bookings database answers."""
        try:
            await db.execute(text("SELECT 1"))
        except Exception as e:
            logger.warning("Readiness check failed", extra={"error": str(e)})
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unavailable", "service": SERVICE_NAME, "checks": {"database": "error"}},
            )
        return {"status": "ready", "service": SERVICE_NAME, "checks": {"database": "ok"}}

    @app.get(
        "/info",
        status_code=status.HTTP_200_OK,
        tags=["Info"],
        summary="Service Information",
        response_model=dict,
    )
    async def service_info():
        return {
            "service": SERVICE_NAME,
            "version": __version__,
            "environment": settings.environment,
            "currency": settings.currency,
            "features": {
                "problem_details": True,
                "tracing": bool(settings.otlp_endpoint),
                "customer_email_requires_address": settings.require_contact_email,
            },
            "endpoints": {
                "checkout": "/reservations/checkout",
                "confirmation": "/reservations/confirmation",
                "health": "/health",
                "readiness": "/ready",
                "metrics": "/metrics",
            },
        }

    app.include_router(reservations.router)
    app.include_router(metrics.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "tourcheckout.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
