### Description ###
# CRM Gateway - Multi-tenant External API
# - Models Package -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Models Package

Contains SQLAlchemy models for the gateway database:
- Tenant: Isolated CRM account that owns everything else
- ApiKey: Programmatic credential for the /v1 surface
- Webhook / WebhookDeliveryLog: Event subscriptions and delivery history
- ApiRequestLog: Request audit log
- Contact, Product, Card, Appointment, Task: Tenant-scoped CRM resources
"""

from gateway.models.tenant import Tenant, new_id
from gateway.models.api_key import ApiKey, generate_api_key
from gateway.models.request_log import ApiRequestLog
from gateway.models.webhook import Webhook, WebhookDeliveryLog, generate_webhook_secret
from gateway.models.resources import Appointment, Card, Contact, Product, Task

__all__ = [
    "ApiKey",
    "ApiRequestLog",
    "Appointment",
    "Card",
    "Contact",
    "Product",
    "Task",
    "Tenant",
    "Webhook",
    "WebhookDeliveryLog",
    "generate_api_key",
    "generate_webhook_secret",
    "new_id",
]
