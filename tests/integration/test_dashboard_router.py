"""
Integration tests for the dashboard router.

Tests API key, webhook and request log management at /dashboard.
"""

from datetime import timedelta

from gateway.models import ApiKey, Webhook
from tests.fixtures.factories import (
    create_api_key,
    create_dashboard_token,
    create_webhook,
)


class TestDashboardAuth:
    """Test bearer token handling."""

    def test_requires_token(self, client):
        response = client.get("/dashboard/api-keys")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_api_key_is_not_a_dashboard_credential(self, client, headers_a):
        assert client.get("/dashboard/api-keys", headers=headers_a).status_code == 401

    def test_expired_token(self, client, tenant_a):
        token = create_dashboard_token(tenant_a.id, expires_in=timedelta(minutes=-1))

        response = client.get("/dashboard/api-keys", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401

    def test_token_without_tenant(self, client):
        token = create_dashboard_token(None)

        response = client.get("/dashboard/api-keys", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 403
        assert response.json() == {"error": "No tenant found"}


class TestApiKeys:
    """Test /dashboard/api-keys."""

    def test_create_returns_plaintext_once(self, client, dashboard_headers, tenant_a):
        response = client.post(
            "/dashboard/api-keys",
            headers=dashboard_headers,
            json={"name": "Zapier", "rate_limit_per_minute": 30},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["api_key"].startswith("sk_live_")
        assert data["key_prefix"] == data["api_key"][:16]
        assert data["tenant_id"] == tenant_a.id
        assert data["rate_limit_per_minute"] == 30
        assert "key_hash" not in data

        listed = client.get("/dashboard/api-keys", headers=dashboard_headers).json()["data"]
        assert "api_key" not in listed[0]

    def test_created_key_works_on_gateway(self, client, dashboard_headers):
        plaintext = client.post(
            "/dashboard/api-keys", headers=dashboard_headers, json={"name": "ERP"}
        ).json()["data"]["api_key"]

        assert client.get("/v1/contacts", headers={"x-api-key": plaintext}).status_code == 200

    def test_default_rate_limit(self, client, dashboard_headers):
        data = client.post("/dashboard/api-keys", headers=dashboard_headers, json={"name": "ERP"}).json()["data"]

        assert data["rate_limit_per_minute"] == 60

    def test_list_only_own_keys(self, client, dashboard_headers, key_a, key_b):
        listed = client.get("/dashboard/api-keys", headers=dashboard_headers).json()["data"]

        assert [key["id"] for key in listed] == [key_a[0].id]

    def test_deactivate_key(self, client, dashboard_headers, key_a, headers_a):
        api_key, _ = key_a

        response = client.patch(
            f"/dashboard/api-keys/{api_key.id}",
            headers=dashboard_headers,
            json={"is_active": False},
        )

        assert response.status_code == 200
        assert response.json()["data"]["is_active"] is False
        assert client.get("/v1/contacts", headers=headers_a).status_code == 401

    def test_delete_key(self, client, dashboard_headers, key_a, test_db):
        key_id = key_a[0].id

        response = client.delete(f"/dashboard/api-keys/{key_id}", headers=dashboard_headers)

        assert response.status_code == 204
        test_db.expire_all()
        assert test_db.get(ApiKey, key_id) is None

    def test_other_tenants_key_is_404(self, client, dashboard_headers, key_b):
        api_key, _ = key_b

        assert client.patch(
            f"/dashboard/api-keys/{api_key.id}", headers=dashboard_headers, json={"name": "mine"}
        ).status_code == 404
        assert client.delete(f"/dashboard/api-keys/{api_key.id}", headers=dashboard_headers).status_code == 404

    def test_invalid_body(self, client, dashboard_headers):
        response = client.post("/dashboard/api-keys", headers=dashboard_headers, json={"name": ""})

        assert response.status_code == 400


class TestWebhooks:
    """Test /dashboard/webhooks."""

    def test_create_generates_secret(self, client, dashboard_headers, tenant_a):
        response = client.post(
            "/dashboard/webhooks",
            headers=dashboard_headers,
            json={"url": "https://hooks.example.com/crm", "events": ["contact.created", "card.updated"]},
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["tenant_id"] == tenant_a.id
        assert data["events"] == ["contact.created", "card.updated"]
        assert len(data["secret"]) == 64
        assert data["is_active"] is True

    def test_unknown_event_rejected(self, client, dashboard_headers):
        response = client.post(
            "/dashboard/webhooks",
            headers=dashboard_headers,
            json={"url": "https://hooks.example.com/crm", "events": ["invoice.paid"]},
        )

        assert response.status_code == 400
        assert "invoice.paid" in response.json()["error"]

    def test_invalid_url_rejected(self, client, dashboard_headers):
        response = client.post(
            "/dashboard/webhooks",
            headers=dashboard_headers,
            json={"url": "not a url", "events": ["contact.created"]},
        )

        assert response.status_code == 400

    def test_update_and_list(self, client, dashboard_headers, tenant_a, test_db):
        webhook = create_webhook(test_db, tenant_a)

        response = client.patch(
            f"/dashboard/webhooks/{webhook.id}",
            headers=dashboard_headers,
            json={"events": ["task.created"], "is_active": False},
        )

        assert response.status_code == 200
        listed = client.get("/dashboard/webhooks", headers=dashboard_headers).json()["data"]
        assert listed[0]["events"] == ["task.created"]
        assert listed[0]["is_active"] is False

    def test_delete(self, client, dashboard_headers, tenant_a, test_db):
        webhook_id = create_webhook(test_db, tenant_a).id

        assert client.delete(f"/dashboard/webhooks/{webhook_id}", headers=dashboard_headers).status_code == 204
        test_db.expire_all()
        assert test_db.get(Webhook, webhook_id) is None

    def test_other_tenants_webhook_is_404(self, client, dashboard_headers, tenant_b, test_db):
        webhook = create_webhook(test_db, tenant_b)

        assert client.get(
            f"/dashboard/webhooks/{webhook.id}/deliveries", headers=dashboard_headers
        ).status_code == 404
        assert client.delete(f"/dashboard/webhooks/{webhook.id}", headers=dashboard_headers).status_code == 404

    def test_deliveries(self, client, dashboard_headers, headers_a, tenant_a, test_db):
        webhook = create_webhook(test_db, tenant_a)
        client.post("/v1/contacts", headers=headers_a, json={"name": "Ana"})

        response = client.get(f"/dashboard/webhooks/{webhook.id}/deliveries", headers=dashboard_headers)

        assert response.status_code == 200
        [delivery] = response.json()["data"]
        assert delivery["event_type"] == "contact.created"
        assert delivery["response_status"] == 200
        assert delivery["payload"]["name"] == "Ana"


class TestRequestLogs:
    """Test /dashboard/request-logs."""

    def test_lists_own_tenant_traffic(self, client, dashboard_headers, headers_a, headers_b, key_a):
        client.get("/v1/contacts", headers=headers_a)
        client.get("/v1/products", headers=headers_b)

        logs = client.get("/dashboard/request-logs", headers=dashboard_headers).json()["data"]

        assert [log["path"] for log in logs] == ["/v1/contacts"]
        assert logs[0]["api_key_id"] == key_a[0].id

    def test_filter_by_status(self, client, dashboard_headers, headers_a):
        client.get("/v1/contacts", headers=headers_a)
        client.get("/v1/invoices", headers=headers_a)

        logs = client.get(
            "/dashboard/request-logs", headers=dashboard_headers, params={"status_code": 404}
        ).json()["data"]

        assert [log["path"] for log in logs] == ["/v1/invoices"]

    def test_filter_by_key(self, client, dashboard_headers, headers_a, tenant_a, test_db):
        other_key, other_plain = create_api_key(test_db, tenant_a, name="other")
        client.get("/v1/contacts", headers=headers_a)
        client.get("/v1/tasks", headers={"x-api-key": other_plain})

        logs = client.get(
            "/dashboard/request-logs", headers=dashboard_headers, params={"api_key_id": other_key.id}
        ).json()["data"]

        assert [log["path"] for log in logs] == ["/v1/tasks"]
