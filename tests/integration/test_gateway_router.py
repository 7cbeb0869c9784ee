"""
Integration tests for the /v1 gateway router.

Tests CRUD, tenant isolation, pagination, filters, and includes over HTTP.
"""

from datetime import datetime, timedelta

import pytest

from gateway.models import Contact
from tests.fixtures.factories import create_contact, create_product


class TestAuthentication:
    """Test API key handling on /v1."""

    def test_missing_key(self, client):
        response = client.get("/v1/contacts")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_invalid_key(self, client, tenant_a):
        response = client.get("/v1/contacts", headers={"x-api-key": "sk_live_" + "f" * 64})

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized"}

    def test_header_is_case_insensitive(self, client, key_a):
        _, plaintext = key_a
        response = client.get("/v1/contacts", headers={"X-API-Key": plaintext})

        assert response.status_code == 200

    def test_auth_precedes_routing(self, client):
        """Unknown resources still require a key."""
        assert client.get("/v1/invoices").status_code == 401

    def test_last_used_at_updated(self, client, headers_a, key_a, test_db):
        api_key, _ = key_a

        client.get("/v1/contacts", headers=headers_a)

        test_db.expire_all()
        test_db.refresh(api_key)
        assert api_key.last_used_at is not None


class TestRouting:
    """Test path and method handling."""

    def test_unknown_resource(self, client, headers_a):
        response = client.get("/v1/invoices", headers=headers_a)

        assert response.status_code == 404
        assert response.json()["error"] == "Resource not found"

    def test_too_many_segments(self, client, headers_a):
        assert client.get("/v1/contacts/abc/extra", headers=headers_a).status_code == 404

    def test_empty_resource(self, client, headers_a):
        assert client.get("/v1/", headers=headers_a).status_code == 404

    @pytest.mark.parametrize(
        "method,path",
        [
            ("POST", "/v1/contacts/some-id"),
            ("PUT", "/v1/contacts"),
            ("PATCH", "/v1/contacts"),
            ("DELETE", "/v1/contacts"),
        ],
    )
    def test_method_not_allowed(self, client, headers_a, method, path):
        response = client.request(method, path, headers=headers_a, json={"name": "x"})

        assert response.status_code == 405

    def test_cors_preflight(self, client):
        """Preflight needs no key."""
        response = client.options(
            "/v1/contacts",
            headers={
                "Origin": "https://app.example.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "x-api-key,content-type",
            },
        )

        assert response.status_code == 200
        assert "access-control-allow-origin" in response.headers


class TestCrud:
    """Test the create/read/update/delete cycle."""

    def test_create_returns_201_envelope(self, client, headers_a, tenant_a):
        response = client.post(
            "/v1/contacts",
            headers=headers_a,
            json={"name": "Ana", "email": "ana@example.com", "custom_fields": {"cargo": "Gerente"}},
        )

        assert response.status_code == 201
        body = response.json()
        assert body["data"]["name"] == "Ana"
        assert body["data"]["tenant_id"] == tenant_a.id
        assert body["data"]["custom_fields"] == {"cargo": "Gerente"}
        assert "timestamp" in body["meta"]
        assert "pagination" not in body["meta"]

    def test_create_ignores_body_tenant(self, client, headers_a, tenant_a, tenant_b):
        """A body tenant_id never overrides the key's tenant."""
        response = client.post(
            "/v1/contacts",
            headers=headers_a,
            json={"name": "Sneaky", "tenant_id": tenant_b.id},
        )

        assert response.status_code == 201
        assert response.json()["data"]["tenant_id"] == tenant_a.id

    def test_get_one(self, client, headers_a, tenant_a, test_db):
        contact = create_contact(test_db, tenant_a, name="Ana")

        response = client.get(f"/v1/contacts/{contact.id}", headers=headers_a)

        assert response.status_code == 200
        assert response.json()["data"]["id"] == contact.id

    def test_put_and_patch_are_partial(self, client, headers_a, tenant_a, test_db):
        contact = create_contact(test_db, tenant_a, name="Ana", email="ana@example.com")

        put = client.put(f"/v1/contacts/{contact.id}", headers=headers_a, json={"phone": "555-0100"})
        patch = client.patch(f"/v1/contacts/{contact.id}", headers=headers_a, json={"company": "Acme"})

        assert put.status_code == 200
        assert patch.status_code == 200
        data = patch.json()["data"]
        assert data["phone"] == "555-0100"
        assert data["company"] == "Acme"
        assert data["email"] == "ana@example.com"

    def test_delete_returns_204(self, client, headers_a, tenant_a, test_db):
        contact = create_contact(test_db, tenant_a)

        response = client.delete(f"/v1/contacts/{contact.id}", headers=headers_a)

        assert response.status_code == 204
        assert response.content == b""
        assert client.get(f"/v1/contacts/{contact.id}", headers=headers_a).status_code == 404

    def test_get_missing(self, client, headers_a):
        response = client.get("/v1/tasks/does-not-exist", headers=headers_a)

        assert response.status_code == 404
        assert response.json()["error"] == "Task not found"

    def test_malformed_json(self, client, headers_a):
        response = client.post(
            "/v1/contacts",
            headers={**headers_a, "Content-Type": "application/json"},
            content=b"{not json",
        )

        assert response.status_code == 400

    def test_unknown_field(self, client, headers_a):
        response = client.post("/v1/contacts", headers=headers_a, json={"name": "Ana", "shoe_size": 42})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "shoe_size"

    def test_every_resource_is_served(self, client, headers_a):
        """One create per resource type."""
        bodies = {
            "contacts": {"name": "Ana"},
            "products": {"name": "Widget", "price": 9.9},
            "cards": {"title": "Deal", "value": 1000},
            "appointments": {
                "title": "Demo",
                "start_time": "2026-03-01T14:00:00Z",
                "end_time": "2026-03-01T15:00:00Z",
            },
            "tasks": {"title": "Call back"},
        }

        for resource, body in bodies.items():
            response = client.post(f"/v1/{resource}", headers=headers_a, json=body)
            assert response.status_code == 201, resource

    def test_appointment_time_range(self, client, headers_a):
        response = client.post(
            "/v1/appointments",
            headers=headers_a,
            json={
                "title": "Backwards",
                "start_time": "2026-03-01T15:00:00Z",
                "end_time": "2026-03-01T14:00:00Z",
            },
        )

        assert response.status_code == 400


class TestTenantIsolation:
    """Another tenant's rows behave exactly like missing rows."""

    def test_list_only_own_rows(self, client, headers_a, headers_b, tenant_a, tenant_b, test_db):
        create_contact(test_db, tenant_a, name="Mine")
        create_contact(test_db, tenant_b, name="Theirs")

        response = client.get("/v1/contacts", headers=headers_a)

        assert [row["name"] for row in response.json()["data"]] == ["Mine"]

    @pytest.mark.parametrize("method", ["GET", "PUT", "PATCH", "DELETE"])
    def test_foreign_id_is_404(self, client, headers_a, tenant_b, test_db, method):
        foreign = create_contact(test_db, tenant_b, name="Theirs")

        response = client.request(method, f"/v1/contacts/{foreign.id}", headers=headers_a, json={"name": "Mine"})

        assert response.status_code == 404
        test_db.expire_all()
        assert test_db.get(Contact, foreign.id).name == "Theirs"

    def test_foreign_filter_value_leaks_nothing(self, client, headers_a, tenant_b, test_db):
        foreign = create_contact(test_db, tenant_b, name="Theirs")

        response = client.get("/v1/contacts", headers=headers_a, params={"id": foreign.id})

        assert response.json()["data"] == []
        assert response.json()["meta"]["pagination"]["total"] == 0


class TestListing:
    """Test pagination, filters, and includes."""

    def test_pagination_round_trip(self, client, headers_a, tenant_a, test_db):
        """Following next_cursor visits every row exactly once."""
        base = datetime(2026, 1, 1, 8, 0, 0)
        for i in range(7):
            create_contact(test_db, tenant_a, name=f"c{i}", created_at=base + timedelta(minutes=i))

        seen = []
        params = {"limit": "3"}
        while True:
            body = client.get("/v1/contacts", headers=headers_a, params=params).json()
            seen.extend(row["name"] for row in body["data"])
            cursor = body["meta"]["pagination"]["next_cursor"]
            if cursor is None:
                break
            params = {"limit": "3", "cursor": cursor}

        assert seen == [f"c{i}" for i in reversed(range(7))]

    def test_pagination_meta(self, client, headers_a, tenant_a, test_db):
        for i in range(3):
            create_contact(test_db, tenant_a, name=f"c{i}")

        body = client.get("/v1/contacts", headers=headers_a, params={"limit": "2"}).json()

        assert body["meta"]["pagination"]["total"] == 3
        assert body["meta"]["pagination"]["limit"] == 2
        assert body["meta"]["pagination"]["next_cursor"] is not None

    @pytest.mark.parametrize("raw,expected", [("500", 100), ("0", 50), ("abc", 50)])
    def test_limit_clamped(self, client, headers_a, raw, expected):
        body = client.get("/v1/contacts", headers=headers_a, params={"limit": raw}).json()

        assert body["meta"]["pagination"]["limit"] == expected

    def test_low_stock_filter(self, client, headers_a, tenant_a, test_db):
        create_product(test_db, tenant_a, name="Almost gone", stock_quantity=3)
        create_product(test_db, tenant_a, name="Plenty", stock_quantity=300)

        body = client.get("/v1/products", headers=headers_a, params={"stock_quantity_lte": "10"}).json()

        assert [row["name"] for row in body["data"]] == ["Almost gone"]

    def test_custom_field_filter(self, client, headers_a, tenant_a, test_db):
        create_contact(test_db, tenant_a, name="Boss", custom_fields={"cargo": "Gerente"})
        create_contact(test_db, tenant_a, name="Dev", custom_fields={"cargo": "Dev"})

        body = client.get("/v1/contacts", headers=headers_a, params={"custom_fields.cargo": "Gerente"}).json()

        assert [row["name"] for row in body["data"]] == ["Boss"]

    def test_unknown_filter_column(self, client, headers_a):
        response = client.get("/v1/contacts", headers=headers_a, params={"shoe_size": "42"})

        assert response.status_code == 400

    def test_include_on_list_and_get(self, client, headers_a):
        contact = client.post("/v1/contacts", headers=headers_a, json={"name": "Ana"}).json()["data"]
        client.post("/v1/cards", headers=headers_a, json={"title": "Deal", "contact_id": contact["id"]})
        client.post("/v1/tasks", headers=headers_a, json={"title": "Call", "contact_id": contact["id"]})

        listed = client.get("/v1/contacts", headers=headers_a, params={"include": "cards,tasks"}).json()
        single = client.get(f"/v1/contacts/{contact['id']}", headers=headers_a, params={"include": "cards"}).json()

        row = listed["data"][0]
        assert [card["title"] for card in row["cards"]] == ["Deal"]
        assert [task["title"] for task in row["tasks"]] == ["Call"]
        assert [card["title"] for card in single["data"]["cards"]] == ["Deal"]

    def test_unknown_include(self, client, headers_a):
        response = client.get("/v1/products", headers=headers_a, params={"include": "cards"})

        assert response.status_code == 400

    def test_cross_tenant_reference_rejected(self, client, headers_a, tenant_b, test_db):
        foreign = create_contact(test_db, tenant_b)

        response = client.post("/v1/cards", headers=headers_a, json={"title": "Deal", "contact_id": foreign.id})

        assert response.status_code == 400

    def test_last_page_reports_null_next_cursor(self, client, headers_a, tenant_a, test_db):
        """next_cursor is present on every list page, null once the rows run out."""
        for i in range(3):
            create_contact(test_db, tenant_a, name=f"c{i}", created_at=datetime(2026, 1, 1) + timedelta(minutes=i))

        first = client.get("/v1/contacts", headers=headers_a, params={"limit": "2"}).json()
        cursor = first["meta"]["pagination"]["next_cursor"]
        last = client.get("/v1/contacts", headers=headers_a, params={"limit": "2", "cursor": cursor}).json()

        assert last["meta"]["pagination"] == {"total": 3, "limit": 2, "next_cursor": None}

    def test_empty_list_pagination(self, client, headers_a):
        body = client.get("/v1/tasks", headers=headers_a).json()

        assert body["data"] == []
        assert body["meta"]["pagination"] == {"total": 0, "limit": 50, "next_cursor": None}
