"""
Event Registration API - Main Application Entry Point

A small event registration backend demonstrating:
- An in-memory registration store with mirrored user/event indexes
- Lazy, clock-driven event status with a sticky cancelled state
- Capacity checks performed atomically with the registration insert
- Structured logging with request correlation
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from eventhub.core.clock import Clock
from eventhub.core.config import Settings, get_settings
from eventhub.core.logging import setup_logging, get_logger
from eventhub.core.metrics import metrics_endpoint, record_store_stats
from eventhub.core.rate_limit import build_limiter, rate_limit_exceeded_handler
from eventhub.api.router import api_router
from eventhub.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from eventhub.db.session import get_store
from eventhub.db.store import RegistrationStore
from eventhub.services.interfaces.notifier import Notifier
from eventhub.services.notifier_factory import build_notifier


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle: startup and shutdown hooks."""
    setup_logging(app.state.settings)
    logger = get_logger(__name__)
    settings = app.state.settings

    logger.info(
        "application_starting",
        app=settings.APP_NAME,
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        email_backend=settings.EMAIL_BACKEND,
    )

    yield

    # In-memory data does not survive shutdown
    logger.info("application_shutdown", **app.state.store.stats())


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RegistrationStore] = None,
    clock: Optional[Clock] = None,
    notifier: Optional[Notifier] = None,
) -> FastAPI:
    """
    Build the application with its own store, clock and notifier.
    Each call yields an isolated instance; tests pass their own collaborators.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Event registration API with in-memory storage",
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.settings = settings
    app.state.store = store or RegistrationStore()
    app.state.clock = clock or Clock()
    app.state.notifier = notifier or build_notifier(settings)
    app.state.limiter = limiter = build_limiter(settings)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # Middleware runs in reverse order of registration: logging wraps everything
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(api_router)

    @app.get("/health", tags=["Health"])
    @limiter.exempt
    async def health_check(store: RegistrationStore = Depends(get_store)):
        """Health check endpoint for Docker and load balancers."""
        stats = store.stats()
        record_store_stats(stats)
        return {
            "status": "healthy",
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "store": stats,
        }

    @app.get("/metrics", tags=["Health"], include_in_schema=False)
    @limiter.exempt
    def metrics():
        record_store_stats(app.state.store.stats())
        return metrics_endpoint()

    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to {settings.APP_NAME}",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "endpoints": {
                "users": "/api/users",
                "events": "/api/events",
            },
        }

    return app


app = create_app()
