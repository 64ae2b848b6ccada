"""
FastAPI Application Factory.
Creates and configures the FastAPI application with all routers, middleware, and DI.

Endpoints:
- /conversations...  the ten-question flow (presentation/api/conversations.py)
- /ping, /deep-ping  health (presentation/api/health.py)
- /metrics           Prometheus (presentation/api/metrics.py)
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from dishka import AsyncContainer
from dishka.integrations.fastapi import setup_dishka
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.ext.asyncio import AsyncEngine
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from tenq.config.commands import CommandCatalog
from tenq.config.logging_config import (
    NO_CORRELATION_ID,
    correlation_id_var,
    setup_logging,
)
from tenq.config.settings import Config
from tenq.infrastructure.persistence import init_schema
from tenq.observability.metrics import (
    AdmissionRejection,
    increment_admission_rejection,
    observe_request_latency,
)
from tenq.presentation.api import conversations_router, health_router, metrics_router
from tenq.presentation.dependencies.admission import ConcurrencyLimiter, limiter
from tenq.setup.ioc import create_container

# Setup logging
setup_logging(Config.LOG_LEVEL, Config.LOG_PATH)

logger = logging.getLogger(__name__)


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Middleware to extract and set correlation ID from request headers."""

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get("X-Correlation-ID", NO_CORRELATION_ID)

        # Set in contextvars (propagates to async tasks and logging)
        token = correlation_id_var.set(correlation_id)
        try:
            response = await call_next(request)
        finally:
            correlation_id_var.reset(token)

        response.headers["X-Correlation-ID"] = correlation_id
        return response


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    """Records request latency per route template (not per concrete path)."""

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            route = request.scope.get("route")
            observe_request_latency(
                request.method,
                getattr(route, "path", "unmatched"),
                status_code,
                time.perf_counter() - start,
            )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager.

    - Startup: load the command catalog (a broken catalog aborts startup) and
      create missing tables
    - Shutdown: close the DI container (disposes the engine and the OpenAI client)
    """
    container: AsyncContainer = app.state.dishka_container
    catalog = await container.get(CommandCatalog)
    engine = await container.get(AsyncEngine)
    await init_schema(engine)
    logger.info("Application started: %d commands loaded, schema ready", len(catalog))
    yield
    await container.close()
    logger.info("Application shutdown: DI container closed")


def create_fastapi_app(container: Optional[AsyncContainer] = None) -> FastAPI:
    """
    Application factory for creating FastAPI app.

    Args:
        container: DI container to use; a default one is built from Config when omitted

    Returns:
        FastAPI application instance
    """
    app = FastAPI(
        title="tenq API",
        description="Guided ten-question self-reflection service",
        version="1.0.0",
        lifespan=lifespan,
    )

    # Setup Dishka BEFORE app starts (must add middleware before startup)
    setup_dishka(container or create_container(), app)

    # Admission control state
    app.state.limiter = limiter
    app.state.concurrency_limiter = ConcurrencyLimiter(Config.RESPONSE_CONCURRENCY_MAX)

    app.add_middleware(RequestMetricsMiddleware)
    # Correlation ID middleware (must be added before CORS)
    app.add_middleware(CorrelationIdMiddleware)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        increment_admission_rejection(AdmissionRejection.RATE_LIMITED)
        logger.warning(
            "Rate limit exceeded on %s for %s",
            request.url.path,
            getattr(request.state, "user_id", None) or "anonymous",
        )
        return JSONResponse(status_code=429, content={"error": "Too many requests"})

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = jsonable_encoder(exc.errors())
        logger.info("Validation error on %s: %s", request.url.path, errors)
        return JSONResponse(
            status_code=400,
            content={"error": "Validation error", "details": errors},
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    # Anything unhandled: full traceback to the log, nothing internal to the caller
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception(
            "Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error"},
        )

    # Register routers
    app.include_router(health_router)  # GET /ping, GET /deep-ping
    app.include_router(metrics_router)  # GET /metrics
    app.include_router(conversations_router)

    return app


# Create the app instance
app = create_fastapi_app()
