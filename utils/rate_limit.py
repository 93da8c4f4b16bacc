"""
Rate Limiting

Per-client limits for the HTTP surface (slowapi, in-memory storage). The
completion-backed endpoints get the tighter RATE_LIMIT_AI budget.

Usage:
    from utils.rate_limit import limiter, limit_ai

    @router.post("/chat")
    @limit_ai
    async def chat(request: Request, ...):
        ...
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from config.settings import settings
from utils.logging import get_logger

logger = get_logger(__name__)

RETRY_AFTER_SECONDS = 60


def get_client_ip(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or get_remote_address(request)


limiter = Limiter(
    key_func=get_client_ip,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    storage_uri="memory://",
)


def limit_ai(func):
    """Decorator for endpoints that may call the completion backend."""
    return limiter.limit(settings.RATE_LIMIT_AI)(func)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning(f"Rate limit hit by {get_client_ip(request)} on {request.url.path} ({exc.detail})")
    return JSONResponse(
        status_code=429,
        content={
            "error": "RateLimitExceeded",
            "message": f"Too many requests. Limit: {exc.detail}",
            "retry_after": RETRY_AFTER_SECONDS,
        },
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
