"""
Per-client rate limiting with slowapi.

All routes share one budget per client IP (200 requests per 15
minutes unless configured); health checks are exempt. Counters live in
process memory, one limiter per app instance.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from eventhub.core.config import Settings
from eventhub.core.logging import get_logger
from eventhub.core.metrics import rate_limited_requests

logger = get_logger(__name__)


def build_limiter(settings: Settings) -> Limiter:
    return Limiter(
        key_func=get_remote_address,
        application_limits=[f"{settings.RATE_LIMIT_REQUESTS}/{settings.RATE_LIMIT_WINDOW_SECONDS} seconds"],
        enabled=settings.RATE_LIMIT_ENABLED,
        headers_enabled=True,
        storage_uri="memory://",
    )


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same {"detail": ...} shape as every other error."""
    rate_limited_requests.inc()
    logger.warning("rate_limit_exceeded", client=get_remote_address(request), limit=str(exc.detail))
    response = JSONResponse(
        status_code=429,
        content={"detail": "Too many requests from this IP, please try again later."},
    )
    # Private slowapi API, the same call its bundled _rate_limit_exceeded_handler makes
    # to add Retry-After and X-RateLimit-* to the 429
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)
