"""
Test fixtures and factories for CRM Gateway tests.
"""

from tests.fixtures.factories import (
    TEST_BCRYPT_ROUNDS,
    create_api_key,
    create_contact,
    create_dashboard_token,
    create_expired_api_key,
    create_product,
    create_tenant,
    create_webhook,
)

__all__ = [
    "TEST_BCRYPT_ROUNDS",
    "create_api_key",
    "create_contact",
    "create_dashboard_token",
    "create_expired_api_key",
    "create_product",
    "create_tenant",
    "create_webhook",
]
