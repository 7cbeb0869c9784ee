"""
Mock implementations for testing.

Provides mocks for external dependencies:
- WebhookReceiver: tenant webhook endpoint behind httpx.MockTransport
"""

from tests.mocks.webhook_receiver import WebhookReceiver

__all__ = ["WebhookReceiver"]
