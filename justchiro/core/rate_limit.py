"""
Rate limiting

SlowAPI with in-memory storage. Every route shares the general budget
(RATE_LIMIT_DEFAULT); login carries its own, much smaller one
(RATE_LIMIT_AUTH). Both are keyed on the caller's IP.
"""
import logging

from limits import parse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from justchiro.core.config import settings
from justchiro.core.utils import client_ip

logger = logging.getLogger(__name__)

GENERAL_MESSAGE = "Too many requests, please try again later."
LOGIN_MESSAGE = "Too many login attempts, please try again later."


def rate_limit_key(request: Request) -> str:
    return client_ip(request, settings.TRUSTED_PROXIES) or "unknown"


limiter = Limiter(
    key_func=rate_limit_key,
    enabled=settings.RATE_LIMIT_ENABLED,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
)


def retry_after_seconds(limit_string: str) -> int:
    """Length of the limit's window, e.g. "5/15 minutes" -> 900."""
    return parse(limit_string).get_expiry()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    is_login = request.url.path.endswith("/auth/login")
    limit_string = settings.RATE_LIMIT_AUTH if is_login else settings.RATE_LIMIT_DEFAULT

    logger.warning(f"Rate limit hit by {rate_limit_key(request)} on {request.url.path}")
    return JSONResponse(
        status_code=429,
        content={
            "success": False,
            "error": {
                "kind": "RateLimited",
                "code": "RATE_LIMITED",
                "message": LOGIN_MESSAGE if is_login else GENERAL_MESSAGE,
                "details": {"limit": limit_string},
            },
        },
        headers={"Retry-After": str(retry_after_seconds(limit_string))},
    )
