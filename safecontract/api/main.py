"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from safecontract import __version__
from safecontract.api.errors import register_error_handlers
from safecontract.api.middleware.metrics import PrometheusMiddleware, setup_metrics_route
from safecontract.api.middleware.request import RequestIDMiddleware, RequestSizeLimitMiddleware
from safecontract.api.routes import health, verify
from safecontract.core.config import get_settings
from safecontract.core.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup and shutdown events."""
    settings = get_settings()
    setup_logging(env=settings.app_env, log_level="DEBUG" if settings.debug else settings.log_level)
    logger.info("Starting %s in %s mode", settings.app_name, settings.app_env)
    yield
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="SafeContract API",
        description=(
            "Heuristic verification-condition scanner for Solidity smart contracts.\n\n"
            "Results come from syntactic pattern matching, not a sound analysis."
        ),
        version=__version__,
        lifespan=lifespan,
        docs_url=None if settings.app_env == "production" else "/api/docs",
        redoc_url=None if settings.app_env == "production" else "/api/redoc",
        openapi_url=None if settings.app_env == "production" else "/api/openapi.json",
        openapi_tags=[
            {"name": "health", "description": "Liveness probe"},
            {"name": "smart-contract", "description": "Verification of Solidity source"},
        ],
        license_info={"name": "MIT", "url": "https://opensource.org/licenses/MIT"},
    )

    # ── CORS — configurable origins ──────────────────────────────────
    allowed_origins = [o.strip() for o in settings.cors_allowed_origins.split(",") if o.strip()]

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID", "Accept"],
        expose_headers=["X-Request-ID"],
    )

    # ── Middleware (outermost first) ─────────────────────────────────
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.max_request_bytes)
    app.add_middleware(PrometheusMiddleware)

    # ── Security headers ─────────────────────────────────────────────
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        if settings.app_env == "production":
            response.headers["Strict-Transport-Security"] = "max-age=63072000; includeSubDomains; preload"
        return response

    # ── Prometheus metrics endpoint ──────────────────────────────────
    setup_metrics_route(app)

    # ── Access logging middleware ────────────────────────────────────
    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s → %d (%.1fms)",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
            extra={"method": request.method, "path": request.url.path,
                   "status_code": response.status_code, "duration_ms": round(elapsed, 1),
                   "request_id": getattr(request.state, "request_id", None)},
        )
        return response

    # ── Routes ───────────────────────────────────────────────────────
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(verify.router, prefix="/api/v1/smart-contract", tags=["smart-contract"])

    # ── Structured error handlers ────────────────────────────────────
    register_error_handlers(app)

    return app


app = create_app()
