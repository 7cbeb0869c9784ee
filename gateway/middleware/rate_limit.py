### Description ###
# CRM Gateway - Multi-tenant External API
# - Rate Limiting -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Rate Limiting

Per-API-key fixed-window limiting using slowapi.
Each key gets its own rate_limit_per_minute, carried in the limiter key
so the limit provider can read it without another lookup.

Limits are checked after authentication; unauthenticated requests are
rejected before they reach the limiter.
"""

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from gateway.config import get_api_settings
from gateway.errors import RateLimitError
from gateway.schemas.responses import ErrorResponse

settings = get_api_settings()

RETRY_AFTER_SECONDS = 60


def get_api_key_identifier(request: Request) -> str:
    """
    Rate limit identifier for the current request.

    "key:<api_key_id>:<per_minute>" for authenticated callers, falling back
    to the client address.
    """
    context = getattr(request.state, "tenant_context", None)
    if context is not None:
        return f"key:{context.api_key_id}:{context.rate_limit_per_minute}"
    return f"ip:{get_remote_address(request)}"


def get_key_rate_limit(key: str) -> str:
    """
    Limit string for an identifier produced by get_api_key_identifier.
    Returns a rate limit string like "60/minute".
    """
    if key.startswith("key:"):
        per_minute = key.rsplit(":", 1)[1]
        if per_minute.isdigit() and int(per_minute) > 0:
            return f"{per_minute}/minute"
    return f"{settings.default_rate_limit_per_minute}/minute"


# Create limiter instance
limiter = Limiter(
    key_func=get_api_key_identifier,
    strategy="fixed-window",
    storage_uri="memory://",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Custom handler for rate limit exceeded errors"""
    error = RateLimitError()
    return JSONResponse(
        status_code=error.status_code,
        content=ErrorResponse(error=error.message, message=f"Limit: {exc.detail}").model_dump(exclude_none=True),
        headers={"Retry-After": str(RETRY_AFTER_SECONDS)},
    )
