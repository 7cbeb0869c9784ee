"""
Shared pytest fixtures for CRM Gateway tests.

Provides:
- Isolated SQLite database per test
- FastAPI TestClient wired to that database
- Authentication fixtures (tenants, API keys, dashboard tokens)
- Mock webhook receiver
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from gateway.database import create_session_factory, drop_db, init_db
from gateway.main import app, configure_gateway
from gateway.models import ApiKey, Tenant
from tests.fixtures.factories import (
    TEST_BCRYPT_ROUNDS,
    create_api_key,
    create_dashboard_token,
    create_tenant,
)
from tests.mocks.webhook_receiver import WebhookReceiver

# ============================================
# Database Fixtures
# ============================================


@pytest.fixture(scope="function")
def test_engine(tmp_path):
    """
    Create an isolated SQLite database engine for each test.

    Uses a file-based database in tmp_path to avoid connection isolation
    issues with in-memory SQLite.
    """
    db_path = tmp_path / "test.db"
    engine = create_engine(
        f"sqlite:///{db_path}",
        connect_args={"check_same_thread": False},
    )
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine) -> Generator[sessionmaker, None, None]:
    """Create all tables and provide a session factory bound to them."""
    init_db(test_engine)
    yield create_session_factory(test_engine)
    drop_db(test_engine)


@pytest.fixture(scope="function")
def test_db(session_factory) -> Generator[Session, None, None]:
    """
    Provide a session isolated to this test.

    Rows written here are visible to the app under test (same database).
    """
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


# ============================================
# Application Fixtures
# ============================================


@pytest.fixture
def webhook_receiver() -> WebhookReceiver:
    """Mock endpoint answering every webhook delivery with 200."""
    return WebhookReceiver()


@pytest.fixture(scope="function")
def client(session_factory, webhook_receiver) -> Generator[TestClient, None, None]:
    """
    FastAPI TestClient using the test database.

    Webhook deliveries go to webhook_receiver instead of the network.
    """
    configure_gateway(
        app,
        session_factory,
        webhook_transport=webhook_receiver.transport,
        bcrypt_rounds=TEST_BCRYPT_ROUNDS,
    )

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    app.state.session_factory = None


# ============================================
# Authentication Fixtures
# ============================================


@pytest.fixture
def tenant_a(test_db: Session) -> Tenant:
    return create_tenant(db=test_db, name="Tenant A")


@pytest.fixture
def tenant_b(test_db: Session) -> Tenant:
    return create_tenant(db=test_db, name="Tenant B")


@pytest.fixture
def key_a(test_db: Session, tenant_a: Tenant) -> tuple[ApiKey, str]:
    """
    API key for tenant A.

    Returns:
        Tuple of (ApiKey model, plaintext key string)
    """
    return create_api_key(db=test_db, tenant=tenant_a, name="Tenant A key")


@pytest.fixture
def key_b(test_db: Session, tenant_b: Tenant) -> tuple[ApiKey, str]:
    """API key for tenant B."""
    return create_api_key(db=test_db, tenant=tenant_b, name="Tenant B key")


@pytest.fixture
def headers_a(key_a: tuple[ApiKey, str]) -> dict[str, str]:
    """
    HTTP headers with tenant A's API key.

    Usage:
        def test_endpoint(client, headers_a):
            response = client.get("/v1/contacts", headers=headers_a)
    """
    _, plaintext_key = key_a
    return {"x-api-key": plaintext_key}


@pytest.fixture
def headers_b(key_b: tuple[ApiKey, str]) -> dict[str, str]:
    _, plaintext_key = key_b
    return {"x-api-key": plaintext_key}


@pytest.fixture
def dashboard_headers(tenant_a: Tenant) -> dict[str, str]:
    """Bearer token of a tenant A dashboard user."""
    return {"Authorization": f"Bearer {create_dashboard_token(tenant_a.id)}"}


@pytest.fixture
def dashboard_headers_b(tenant_b: Tenant) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_dashboard_token(tenant_b.id)}"}
