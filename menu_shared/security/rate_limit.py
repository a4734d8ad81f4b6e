"""
Rate limiting using slowapi.

A global per-IP limit applies to every route through SlowAPIMiddleware; the
login route adds a stricter limit with ``@limiter.limit(LOGIN_RATE_LIMIT)``.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from menu_shared.config.settings import settings
from menu_shared.config.logging import get_logger
from menu_shared.utils.responses import error_response

logger = get_logger(__name__)

LOGIN_RATE_LIMIT = settings.login_rate_limit
GLOBAL_RATE_LIMIT = settings.global_rate_limit

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[GLOBAL_RATE_LIMIT],
    enabled=settings.rate_limit_enabled,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Render slowapi rejections as the error envelope."""
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        client=get_remote_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content=error_response("Muitas tentativas. Tente novamente em 15 minutos."),
    )
