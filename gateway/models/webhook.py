### Description ###
# CRM Gateway - Multi-tenant External API
# - Webhook Models -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Webhook Models

- Webhook: tenant-configured endpoint subscribed to a set of events
- WebhookDeliveryLog: append-only record of each delivery attempt
"""

import secrets

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from gateway.database import Base
from gateway.models.tenant import new_id
from gateway.utils import utcnow


def generate_webhook_secret() -> str:
    """Random signing secret, generated server-side"""
    return secrets.token_hex(32)


class Webhook(Base):
    """
    Webhook model - receives signed event notifications.

    events holds event names such as "contact.created".
    """

    __tablename__ = "webhooks"

    id = Column(String(36), primary_key=True, default=new_id)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    url = Column(String(2000), nullable=False)
    events = Column(JSON, default=list, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    secret = Column(String(128), nullable=False, default=generate_webhook_secret)

    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    tenant = relationship("Tenant", back_populates="webhooks")
    deliveries = relationship("WebhookDeliveryLog", back_populates="webhook", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Webhook(id={self.id}, url='{self.url}', events={self.events})>"

    def subscribes_to(self, event_type: str) -> bool:
        """True when the webhook is active and its events contain event_type"""
        return bool(self.is_active) and event_type in (self.events or [])


class WebhookDeliveryLog(Base):
    """
    Delivery log model - one row per delivery attempt, never updated.

    response_status is 0 when the request itself failed (network error,
    timeout); response_body then holds the local error description.
    """

    __tablename__ = "webhook_delivery_logs"

    id = Column(String(36), primary_key=True, default=new_id)
    webhook_id = Column(String(36), ForeignKey("webhooks.id", ondelete="CASCADE"), nullable=False)
    event_type = Column(String(100), nullable=False)
    payload = Column(JSON, nullable=False)
    signature = Column(String(128), nullable=False)
    attempt = Column(Integer, default=1, nullable=False)

    response_status = Column(Integer, nullable=False)
    response_body = Column(Text, nullable=True)

    created_at = Column(DateTime, default=utcnow, nullable=False)

    webhook = relationship("Webhook", back_populates="deliveries")

    __table_args__ = (
        Index("ix_webhook_delivery_logs_webhook_created", "webhook_id", "created_at"),
    )

    def __repr__(self):
        return f"<WebhookDeliveryLog(id={self.id}, event='{self.event_type}', status={self.response_status})>"

    @property
    def succeeded(self) -> bool:
        return 200 <= self.response_status < 300
