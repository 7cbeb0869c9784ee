### Description ###
# CRM Gateway - Multi-tenant External API
# - Dashboard Router -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Dashboard API Endpoints

Used by the human-facing CRM app (Bearer JWT from the identity system):
- API Keys: Create, list, update, revoke
- Webhooks: Create, list, update, delete, delivery history
- Request Logs: Recent /v1 traffic

Everything is scoped to the tenant in the token. Another tenant's ids
behave exactly like missing ids (404).
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from gateway.config import get_api_settings
from gateway.database import get_db
from gateway.dependencies import get_key_store, get_registry
from gateway.middleware.auth import DashboardUser, get_dashboard_user
from gateway.models import ApiKey, ApiRequestLog, Webhook, WebhookDeliveryLog
from gateway.schemas.dashboard import (
    ApiKeyCreate,
    ApiKeyCreatedResponse,
    ApiKeyResponse,
    ApiKeyUpdate,
    RequestLogResponse,
    WebhookCreate,
    WebhookDeliveryResponse,
    WebhookResponse,
    WebhookUpdate,
)
from gateway.schemas.responses import Envelope
from gateway.services.key_store import KeyStore
from gateway.services.resources import ResourceRegistry

router = APIRouter()

settings = get_api_settings()


def _check_events(events: list[str], registry: ResourceRegistry) -> list[str]:
    """Reject unknown event names, keep order, drop duplicates"""
    known = set(registry.event_types())
    unknown = [event for event in events if event not in known]
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown event type(s): {', '.join(unknown)}",
        )
    return list(dict.fromkeys(events))


def _get_tenant_key(db: Session, user: DashboardUser, key_id: str) -> ApiKey:
    key = db.query(ApiKey).filter(ApiKey.id == key_id, ApiKey.tenant_id == user.tenant_id).first()
    if not key:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"API key {key_id} not found",
        )
    return key


def _get_tenant_webhook(db: Session, user: DashboardUser, webhook_id: str) -> Webhook:
    webhook = db.query(Webhook).filter(Webhook.id == webhook_id, Webhook.tenant_id == user.tenant_id).first()
    if not webhook:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Webhook {webhook_id} not found",
        )
    return webhook


# ========================================
# API Key Endpoints
# ========================================

@router.post(
    "/api-keys",
    response_model=Envelope[ApiKeyCreatedResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create API key",
    description="Create a new API key. The key will only be shown once!",
)
async def create_api_key(
    data: ApiKeyCreate,
    user: DashboardUser = Depends(get_dashboard_user),
    db: Session = Depends(get_db),
    key_store: KeyStore = Depends(get_key_store),
) -> Envelope[ApiKeyCreatedResponse]:
    """
    Create a new API key.

    **IMPORTANT**: The returned `api_key` value is the only time the full key
    will be shown. Store it securely - it cannot be retrieved later!
    """
    new_key, plaintext_key = key_store.issue(
        db,
        tenant_id=user.tenant_id,
        name=data.name,
        rate_limit_per_minute=data.rate_limit_per_minute or settings.default_rate_limit_per_minute,
        expires_at=data.expires_at,
    )

    response = ApiKeyCreatedResponse(
        **ApiKeyResponse.model_validate(new_key).model_dump(),
        api_key=plaintext_key,  # Only shown once!
    )
    return Envelope(data=response)


@router.get(
    "/api-keys",
    response_model=Envelope[list[ApiKeyResponse]],
    summary="List API keys",
    description="List the tenant's API keys, newest first",
)
async def list_api_keys(
    user: DashboardUser = Depends(get_dashboard_user),
    db: Session = Depends(get_db),
    active_only: bool = Query(False, description="Only show active keys"),
) -> Envelope[list[ApiKeyResponse]]:
    """List API keys"""
    query = db.query(ApiKey).filter(ApiKey.tenant_id == user.tenant_id)
    if active_only:
        query = query.filter(ApiKey.is_active.is_(True))

    keys = query.order_by(ApiKey.created_at.desc()).all()
    return Envelope(data=[ApiKeyResponse.model_validate(key) for key in keys])


@router.patch(
    "/api-keys/{key_id}",
    response_model=Envelope[ApiKeyResponse],
    summary="Update API key",
    description="Rename, deactivate, change rate limit or expiry (cannot change the key value)",
)
async def update_api_key(
    key_id: str,
    data: ApiKeyUpdate,
    user: DashboardUser = Depends(get_dashboard_user),
    db: Session = Depends(get_db),
) -> Envelope[ApiKeyResponse]:
    """Update API key"""
    key = _get_tenant_key(db, user, key_id)

    update_data = data.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(key, field, value)

    db.commit()
    db.refresh(key)

    return Envelope(data=ApiKeyResponse.model_validate(key))


@router.delete(
    "/api-keys/{key_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete API key",
    description="Permanently revoke an API key",
)
async def delete_api_key(
    key_id: str,
    user: DashboardUser = Depends(get_dashboard_user),
    db: Session = Depends(get_db),
):
    """Delete API key"""
    key = _get_tenant_key(db, user, key_id)
    db.delete(key)
    db.commit()


# ========================================
# Webhook Endpoints
# ========================================

@router.get(
    "/webhooks",
    response_model=Envelope[list[WebhookResponse]],
    summary="List webhooks",
)
async def list_webhooks(
    user: DashboardUser = Depends(get_dashboard_user),
    db: Session = Depends(get_db),
) -> Envelope[list[WebhookResponse]]:
    webhooks = (
        db.query(Webhook)
        .filter(Webhook.tenant_id == user.tenant_id)
        .order_by(Webhook.created_at.desc())
        .all()
    )
    return Envelope(data=[WebhookResponse.model_validate(webhook) for webhook in webhooks])


@router.post(
    "/webhooks",
    response_model=Envelope[WebhookResponse],
    status_code=status.HTTP_201_CREATED,
    summary="Create webhook",
    description="Subscribe a URL to events such as contact.created. The signing secret is generated server-side.",
)
async def create_webhook(
    data: WebhookCreate,
    user: DashboardUser = Depends(get_dashboard_user),
    db: Session = Depends(get_db),
    registry: ResourceRegistry = Depends(get_registry),
) -> Envelope[WebhookResponse]:
    """Create webhook"""
    webhook = Webhook(
        tenant_id=user.tenant_id,
        url=str(data.url),
        events=_check_events(data.events, registry),
        is_active=data.is_active,
    )
    db.add(webhook)
    db.commit()
    db.refresh(webhook)

    return Envelope(data=WebhookResponse.model_validate(webhook))


@router.patch(
    "/webhooks/{webhook_id}",
    response_model=Envelope[WebhookResponse],
    summary="Update webhook",
)
async def update_webhook(
    webhook_id: str,
    data: WebhookUpdate,
    user: DashboardUser = Depends(get_dashboard_user),
    db: Session = Depends(get_db),
    registry: ResourceRegistry = Depends(get_registry),
) -> Envelope[WebhookResponse]:
    """Update webhook"""
    webhook = _get_tenant_webhook(db, user, webhook_id)

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("url") is not None:
        update_data["url"] = str(update_data["url"])
    if update_data.get("events") is not None:
        update_data["events"] = _check_events(update_data["events"], registry)

    for field, value in update_data.items():
        if value is not None:
            setattr(webhook, field, value)

    db.commit()
    db.refresh(webhook)

    return Envelope(data=WebhookResponse.model_validate(webhook))


@router.delete(
    "/webhooks/{webhook_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete webhook",
    description="Delete a webhook and its delivery history",
)
async def delete_webhook(
    webhook_id: str,
    user: DashboardUser = Depends(get_dashboard_user),
    db: Session = Depends(get_db),
):
    """Delete webhook (cascades to delivery logs)"""
    webhook = _get_tenant_webhook(db, user, webhook_id)
    db.delete(webhook)
    db.commit()


@router.get(
    "/webhooks/{webhook_id}/deliveries",
    response_model=Envelope[list[WebhookDeliveryResponse]],
    summary="Webhook deliveries",
    description="Delivery attempts for a webhook, newest first",
)
async def list_webhook_deliveries(
    webhook_id: str,
    user: DashboardUser = Depends(get_dashboard_user),
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=500),
) -> Envelope[list[WebhookDeliveryResponse]]:
    webhook = _get_tenant_webhook(db, user, webhook_id)

    deliveries = (
        db.query(WebhookDeliveryLog)
        .filter(WebhookDeliveryLog.webhook_id == webhook.id)
        .order_by(WebhookDeliveryLog.created_at.desc())
        .limit(limit)
        .all()
    )
    return Envelope(data=[WebhookDeliveryResponse.model_validate(delivery) for delivery in deliveries])


# ========================================
# Request Log Endpoints
# ========================================

@router.get(
    "/request-logs",
    response_model=Envelope[list[RequestLogResponse]],
    summary="Request logs",
    description="Recent /v1 requests made with the tenant's keys",
)
async def list_request_logs(
    user: DashboardUser = Depends(get_dashboard_user),
    db: Session = Depends(get_db),
    limit: int = Query(100, ge=1, le=500),
    api_key_id: str | None = Query(None, description="Only requests made with this key"),
    status_code: int | None = Query(None, description="Only requests with this status"),
) -> Envelope[list[RequestLogResponse]]:
    """List request logs"""
    query = db.query(ApiRequestLog).filter(ApiRequestLog.tenant_id == user.tenant_id)
    if api_key_id:
        query = query.filter(ApiRequestLog.api_key_id == api_key_id)
    if status_code is not None:
        query = query.filter(ApiRequestLog.status_code == status_code)

    logs = query.order_by(ApiRequestLog.created_at.desc()).limit(limit).all()
    return Envelope(data=[RequestLogResponse.model_validate(log) for log in logs])
