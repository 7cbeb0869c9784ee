### Description ###
# CRM Gateway - Multi-tenant External API
# - Services Package -
# Date: 10/17/2026
# Python: 3.11
####################

"""
Services Package

Contains the gateway's business logic:
- key_store: API key issuance and verification
- query: Query string translation (filters, pagination, includes)
- resources: Generic tenant-scoped resource handler and registry
- webhooks: Signed webhook delivery
"""

from .key_store import KeyStore
from .query import TranslatedQuery, parse_query
from .resources import ResourceHandler, ResourceRegistry, build_registry
from .webhooks import WebhookDispatcher, sign_payload, verify_signature

__all__ = [
    "KeyStore",
    "ResourceHandler",
    "ResourceRegistry",
    "TranslatedQuery",
    "WebhookDispatcher",
    "build_registry",
    "parse_query",
    "sign_payload",
    "verify_signature",
]
