"""
StorePilot Backend Application.

FastAPI application with structured logging, error handling,
rate limiting and security middleware.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from storepilot import __version__
from storepilot.api import auth_router, health_router, profile_router, stores_router
from storepilot.auth.bootstrap import ensure_demo_user
from storepilot.auth.lockout import LoginLockoutTracker
from storepilot.auth.tokens import TokenService
from storepilot.config import get_settings
from storepilot.core import (
    RequestContextMiddleware,
    SecurityHeadersMiddleware,
    UnhandledErrorMiddleware,
    get_logger,
    setup_exception_handlers,
    setup_logging,
)
from storepilot.core.limits.factory import get_store_from_settings
from storepilot.core.limits.limiter import RateLimiter
from storepilot.core.startup_checks import run_startup_validations
from storepilot.core.time import Clock, system_clock
from storepilot.db import dispose_engine, init_db, verify_database_connection

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    settings = _app.state.settings

    # Startup
    setup_logging(
        level=settings.log_level,
        json_output=not settings.debug,
        log_file=settings.log_file or None,
    )

    logger.info(
        "Starting StorePilot backend",
        data={
            "host": settings.host,
            "port": settings.port,
            "debug": settings.debug,
            "cors_origins": settings.cors_origins_list,
            "limits_backend": settings.limits_backend,
        },
    )

    run_startup_validations(settings)

    if verify_database_connection():
        init_db()
        logger.info("Database connection verified")
        try:
            ensure_demo_user(settings)
        except Exception as exc:
            logger.error("Demo user seeding failed", data={"error": str(exc)})
    else:
        logger.warning("Database connection failed; API calls needing storage will error")

    _app.state.start_time = datetime.now(UTC)

    yield

    # Shutdown
    logger.info("Shutting down StorePilot backend")
    await _app.state.rate_limiter.aclose()
    dispose_engine()


def create_app(clock: Clock = system_clock) -> FastAPI:
    """Create and configure the FastAPI application.

    Rate-limit and lockout tables belong to the returned app, so each app
    instance starts with empty tables. ``clock`` drives window, lockout and
    token expiry arithmetic.
    """
    settings = get_settings()

    app = FastAPI(
        title="StorePilot",
        description="Auth and rate-limit core of the Shopify store automation API",
        version=__version__,
        lifespan=lifespan,
        docs_url=settings.docs_url,
        openapi_url=settings.openapi_url,
    )

    app.state.settings = settings
    app.state.clock = clock
    app.state.rate_limiter = RateLimiter(get_store_from_settings(settings, clock=clock))
    app.state.lockout_tracker = LoginLockoutTracker(
        max_attempts=settings.login_max_attempts,
        window_seconds=settings.login_window_seconds,
        lockout_seconds=settings.login_lockout_seconds,
        clock=clock,
    )
    app.state.token_service = TokenService.from_settings(settings, clock=clock)

    # Setup exception handlers (must be before middleware)
    setup_exception_handlers(app)

    # Add middleware (order matters - last added = first executed)
    # 1. Unhandled errors -> opaque 500 (innermost, so headers below still apply)
    app.add_middleware(UnhandledErrorMiddleware)

    # 2. Security headers on every response
    app.add_middleware(SecurityHeadersMiddleware)

    # 3. Request context (inject request ID, log requests)
    app.add_middleware(RequestContextMiddleware)

    # 4. CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID", "X-RateLimit-Remaining", "X-RateLimit-Reset", "Retry-After"],
    )

    # Register routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(profile_router)
    app.include_router(stores_router)

    return app


# Create application instance
app = create_app()
