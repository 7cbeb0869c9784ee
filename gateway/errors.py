### Description ###
# CRM Gateway - Multi-tenant External API
# - Gateway Errors -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Gateway Errors

Exception taxonomy for the external API. Each error carries the HTTP
status it maps to; the handlers in main.py render them as
{"error": ..., "details"?: ...}.
"""

from typing import Any, Optional


class GatewayError(Exception):
    """Base class for errors that map directly to an HTTP response"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None, details: Optional[list[dict[str, Any]]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class AuthError(GatewayError):
    """Missing, unknown, inactive or expired API key.

    The message is always the same so callers cannot tell the cases apart.
    """

    status_code = 401
    default_message = "Unauthorized"

    def __init__(self):
        super().__init__(self.default_message)


class ValidationError(GatewayError):
    """Malformed body, filter or include"""

    status_code = 400
    default_message = "Bad request"


class NotFoundError(GatewayError):
    """Missing resource, unknown resource name, or another tenant's row"""

    status_code = 404
    default_message = "Not found"


class MethodNotAllowedError(GatewayError):
    status_code = 405
    default_message = "Method not allowed"


class RateLimitError(GatewayError):
    status_code = 429
    default_message = "Rate limit exceeded"


class UpstreamError(GatewayError):
    """Storage or network failure not caused by the caller"""

    status_code = 500
    default_message = "Internal server error"
