### Description ###
# CRM Gateway - Multi-tenant External API
# - Authentication -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Authentication

Two credential types:
- API key (x-api-key header) for the /v1 gateway, resolved to a tenant
- Bearer JWT for the /dashboard surface, issued by the identity system

Every API key failure yields the same 401 so callers cannot tell a
missing key from a revoked, expired or unknown one.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import jwt
from fastapi import BackgroundTasks, HTTPException, Request, Security, status
from fastapi.security import APIKeyHeader, HTTPAuthorizationCredentials, HTTPBearer

from gateway.config import get_api_settings
from gateway.errors import AuthError
from gateway.services.key_store import KeyStore
from gateway.services.resources import TenantScope
from gateway.utils import utcnow

logger = logging.getLogger(__name__)

settings = get_api_settings()

# API Key header definition
api_key_header = APIKeyHeader(
    name=settings.api_key_header,
    auto_error=False,
    description="Tenant API key",
)

# Bearer token for dashboard users
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class TenantContext(TenantScope):
    """Identity of an authenticated /v1 caller"""

    api_key_id: str
    rate_limit_per_minute: int = 60


class Authenticator:
    """Turns a presented API key into a TenantContext or raises AuthError"""

    def __init__(self, key_store: KeyStore):
        self.key_store = key_store

    def authenticate(self, presented_key: Optional[str]) -> TenantContext:
        if not presented_key:
            raise AuthError()

        record = self.key_store.verify(presented_key)
        if record is None:
            logger.info("Rejected API key %s...", presented_key[:16])
            raise AuthError()

        if not record.is_valid(utcnow()):
            logger.info("Rejected inactive or expired API key %s...", record.key_prefix)
            raise AuthError()

        return TenantContext(
            tenant_id=record.tenant_id,
            api_key_id=record.id,
            rate_limit_per_minute=record.rate_limit_per_minute,
        )


def get_tenant_context(
    request: Request,
    background_tasks: BackgroundTasks,
    api_key: str | None = Security(api_key_header),
) -> TenantContext:
    """
    Authenticate a /v1 request.

    Stores the context on request.state for the rate limiter and request
    logging, and schedules the last_used_at update after the response.

    Raises:
        AuthError: On any authentication failure
    """
    authenticator: Authenticator = request.app.state.authenticator
    context = authenticator.authenticate(api_key)

    request.state.tenant_context = context
    background_tasks.add_task(authenticator.key_store.touch, context.api_key_id)
    return context


# ========================================
# Dashboard
# ========================================

@dataclass(frozen=True)
class DashboardUser:
    user_id: str
    tenant_id: str


def _verify_jwt_token(token: str) -> dict | None:
    """Verify a JWT token and return the payload if valid"""
    try:
        return jwt.decode(
            token,
            settings.dashboard_jwt_secret,
            algorithms=[settings.dashboard_jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        return None
    except jwt.InvalidTokenError:
        return None


async def get_dashboard_user(
    bearer: HTTPAuthorizationCredentials | None = Security(bearer_scheme),
) -> DashboardUser:
    """
    Validate the dashboard bearer token.

    Raises:
        HTTPException: 401 for a missing/invalid token, 403 when the
            token carries no tenant
    """
    payload = _verify_jwt_token(bearer.credentials) if bearer and bearer.credentials else None
    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )

    tenant_id = payload.get("tenant_id")
    if not tenant_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No tenant found")

    return DashboardUser(user_id=str(payload.get("sub", "")), tenant_id=str(tenant_id))
