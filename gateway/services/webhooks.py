### Description ###
# CRM Gateway - Multi-tenant External API
# - Webhook Dispatcher -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Webhook Dispatcher

Delivers "<entity>.<action>" events to a tenant's subscribed webhooks.

Each delivery is a signed POST of the canonical JSON payload:
- Content-Type: application/json
- X-Webhook-Signature: hex digest of the body (see sign_payload)
- X-Event-Type: the event name

Every attempt is recorded in webhook_delivery_logs. A network failure or
timeout is recorded with response_status 0. Dispatch never raises; it runs
after the response has been sent.
"""

import asyncio
import hashlib
import hmac
import json
import logging
from typing import Any, Optional

import httpx
from fastapi.encoders import jsonable_encoder
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from gateway.models import Webhook, WebhookDeliveryLog

logger = logging.getLogger(__name__)

SIGNATURE_HEADER = "X-Webhook-Signature"
EVENT_HEADER = "X-Event-Type"

# sha256(secret + body) is what existing receivers verify against
SIGNATURE_SCHEMES = ("sha256", "hmac-sha256")


def canonical_json(payload: Any) -> str:
    """Stable serialization - the exact bytes that get signed and sent"""
    return json.dumps(jsonable_encoder(payload), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def sign_payload(secret: str, body: str, scheme: str = "sha256") -> str:
    """
    Sign a serialized payload.

    Args:
        secret: The webhook's shared secret
        body: Serialized payload (canonical_json output)
        scheme: "sha256" for sha256(secret + body), "hmac-sha256" for HMAC

    Returns:
        Lowercase hex digest
    """
    if scheme == "sha256":
        return hashlib.sha256((secret + body).encode("utf-8")).hexdigest()
    if scheme == "hmac-sha256":
        return hmac.new(secret.encode("utf-8"), body.encode("utf-8"), hashlib.sha256).hexdigest()
    raise ValueError(f"Unknown signature scheme: {scheme}")


def verify_signature(secret: str, body: str, signature: str, scheme: str = "sha256") -> bool:
    """Receiver-side check, constant time"""
    return hmac.compare_digest(sign_payload(secret, body, scheme), signature)


class WebhookDispatcher:
    """
    Fan-out of events to webhook subscribers.

    Args:
        session_factory: Storage client for subscriptions and delivery logs
        timeout: Seconds before a delivery attempt is abandoned
        max_attempts: Attempts per webhook; retries happen only on status 0 or 5xx
        signature_scheme: One of SIGNATURE_SCHEMES
        response_body_limit: Characters of the receiver's response kept in the log
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        timeout: float = 5.0,
        max_attempts: int = 1,
        signature_scheme: str = "sha256",
        response_body_limit: int = 4096,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if signature_scheme not in SIGNATURE_SCHEMES:
            raise ValueError(f"Unknown signature scheme: {signature_scheme}")
        self.session_factory = session_factory
        self.timeout = timeout
        self.max_attempts = max(1, max_attempts)
        self.signature_scheme = signature_scheme
        self.response_body_limit = response_body_limit
        self.transport = transport

    def find_subscribers(self, tenant_id: str, event_type: str) -> list[Webhook]:
        """Active webhooks of the tenant subscribed to event_type"""
        with self.session_factory() as session:
            webhooks = (
                session.query(Webhook)
                .filter(Webhook.tenant_id == tenant_id, Webhook.is_active.is_(True))
                .all()
            )
        return [webhook for webhook in webhooks if webhook.subscribes_to(event_type)]

    async def dispatch(self, tenant_id: str, event_type: str, payload: Any) -> int:
        """
        Deliver an event to every subscriber.

        Returns:
            Number of webhooks the event was sent to
        """
        try:
            webhooks = await run_in_threadpool(self.find_subscribers, tenant_id, event_type)
            if not webhooks:
                return 0

            body = canonical_json(payload)
            stored_payload = json.loads(body)

            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                await asyncio.gather(
                    *(self._deliver(client, webhook, event_type, body, stored_payload) for webhook in webhooks)
                )

            logger.info("Dispatched %s to %d webhook(s) for tenant %s", event_type, len(webhooks), tenant_id)
            return len(webhooks)
        except Exception:
            logger.exception("Webhook dispatch failed for %s (tenant %s)", event_type, tenant_id)
            return 0

    async def _deliver(
        self,
        client: httpx.AsyncClient,
        webhook: Webhook,
        event_type: str,
        body: str,
        stored_payload: Any,
    ) -> None:
        signature = sign_payload(webhook.secret, body, self.signature_scheme)
        headers = {
            "Content-Type": "application/json",
            SIGNATURE_HEADER: signature,
            EVENT_HEADER: event_type,
        }

        for attempt in range(1, self.max_attempts + 1):
            status, response_body = await self._post(client, webhook.url, body, headers)
            await run_in_threadpool(
                self._record,
                webhook.id,
                event_type,
                stored_payload,
                signature,
                attempt,
                status,
                response_body,
            )
            if status != 0 and status < 500:
                break

    async def _post(self, client: httpx.AsyncClient, url: str, body: str, headers: dict) -> tuple[int, str]:
        try:
            response = await client.post(url, content=body.encode("utf-8"), headers=headers)
        except httpx.TimeoutException:
            logger.warning("Webhook %s timed out after %ss", url, self.timeout)
            return 0, f"Timeout after {self.timeout}s"
        except httpx.HTTPError as e:
            logger.warning("Webhook %s failed: %s", url, e)
            return 0, str(e) or type(e).__name__

        if response.status_code >= 400:
            logger.warning("Webhook %s responded %d", url, response.status_code)
        return response.status_code, response.text[: self.response_body_limit]

    def _record(
        self,
        webhook_id: str,
        event_type: str,
        payload: Any,
        signature: str,
        attempt: int,
        status: int,
        response_body: str,
    ) -> None:
        try:
            with self.session_factory() as session:
                session.add(
                    WebhookDeliveryLog(
                        webhook_id=webhook_id,
                        event_type=event_type,
                        payload=payload,
                        signature=signature,
                        attempt=attempt,
                        response_status=status,
                        response_body=response_body,
                    )
                )
                session.commit()
        except SQLAlchemyError:
            logger.exception("Failed to record delivery for webhook %s", webhook_id)
