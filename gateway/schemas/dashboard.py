### Description ###
# CRM Gateway - Multi-tenant External API
# - Dashboard Schemas -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Dashboard Schemas

Pydantic models for the API key, webhook and log endpoints used by the
human-facing CRM app.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from gateway.schemas.resources import UtcDatetime

# ========================================
# API Key Schemas
# ========================================

class ApiKeyCreate(BaseModel):
    """Create a new API key for the caller's tenant"""
    name: str = Field(..., min_length=1, max_length=100, description="Key name (e.g., 'Zapier')")
    rate_limit_per_minute: int | None = Field(None, ge=1, le=10000, description="Requests per minute")
    expires_at: UtcDatetime | None = Field(None, description="Optional expiration date (UTC)")


class ApiKeyUpdate(BaseModel):
    """Update API key fields (cannot change the key itself)"""
    name: str | None = Field(None, min_length=1, max_length=100)
    is_active: bool | None = None
    rate_limit_per_minute: int | None = Field(None, ge=1, le=10000)
    expires_at: UtcDatetime | None = None


class ApiKeyResponse(BaseModel):
    """API key response (without the actual key or its hash)"""
    id: str
    tenant_id: str
    name: str
    key_prefix: str  # "sk_live_xxxxxxxx" for identification
    is_active: bool
    rate_limit_per_minute: int
    last_used_at: datetime | None = None
    created_at: datetime
    expires_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ApiKeyCreatedResponse(ApiKeyResponse):
    """
    Response when creating a new API key.

    IMPORTANT: The 'api_key' field contains the plaintext API key.
    This is the ONLY time the key will be shown - it cannot be retrieved later.
    """
    api_key: str = Field(..., description="The API key (shown only once - store securely!)")


# ========================================
# Webhook Schemas
# ========================================

class WebhookCreate(BaseModel):
    """Subscribe a URL to a set of events"""
    url: HttpUrl
    events: list[str] = Field(..., min_length=1, description="e.g. ['contact.created']")
    is_active: bool = True


class WebhookUpdate(BaseModel):
    url: HttpUrl | None = None
    events: list[str] | None = Field(None, min_length=1)
    is_active: bool | None = None


class WebhookResponse(BaseModel):
    """Webhook response, including the signing secret the tenant verifies with"""
    id: str
    tenant_id: str
    url: str
    events: list[str]
    is_active: bool
    secret: str
    created_at: datetime
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class WebhookDeliveryResponse(BaseModel):
    id: str
    webhook_id: str
    event_type: str
    payload: Any
    signature: str
    attempt: int
    response_status: int
    response_body: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ========================================
# Request Log Schemas
# ========================================

class RequestLogResponse(BaseModel):
    """Request log entry response"""
    id: str
    request_id: str | None = None
    api_key_id: str | None = None
    method: str
    path: str
    status_code: int
    response_time_ms: float | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
