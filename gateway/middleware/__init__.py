### Description ###
# CRM Gateway - Multi-tenant External API
# - Middleware Package -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Middleware Package

Contains request processing:
- auth: API key and dashboard token authentication
- logging: Request logging to api_request_logs
- rate_limit: Per-key rate limiting
"""

from .auth import (
    Authenticator,
    DashboardUser,
    TenantContext,
    get_dashboard_user,
    get_tenant_context,
)
from .logging import RequestLoggingMiddleware
from .rate_limit import limiter, rate_limit_exceeded_handler

__all__ = [
    "Authenticator",
    "DashboardUser",
    "RequestLoggingMiddleware",
    "TenantContext",
    "get_dashboard_user",
    "get_tenant_context",
    "limiter",
    "rate_limit_exceeded_handler",
]
