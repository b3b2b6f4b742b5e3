"""
Tests for API Endpoints

Tests the FastAPI endpoints using TestClient.
"""

import asyncio
from datetime import datetime

import pytest
from fastapi.testclient import TestClient

# The clock is pinned to 2024-06-01 for every request
NOW = datetime(2024, 6, 1, 12, 0)


class TestHealthEndpoint:
    """Test health check endpoint"""

    def test_health_check(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "connected"
        assert data["instances"] == 0


class TestDashboardPage:
    """Test web dashboard endpoint"""

    def test_dashboard_loads(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "VPSight" in response.text


class TestAdminSession:
    """Test cookie-gated admin access"""

    def test_admin_routes_require_login(self, client):
        assert client.get("/api/admin/instances").status_code == 401
        assert client.get("/api/admin/dashboard").status_code == 401
        assert client.get("/api/admin/session").status_code == 401

    def test_wrong_password(self, client):
        response = client.post("/api/admin/login", json={"username": "admin", "password": "nope"})

        assert response.status_code == 401
        assert "admin-session" not in response.cookies

    def test_login_and_logout(self, client):
        response = client.post("/api/admin/login", json={"username": "admin", "password": "s3cret"})
        assert response.status_code == 200
        assert response.json()["success"] is True

        session = client.get("/api/admin/session")
        assert session.status_code == 200
        assert session.json()["authenticated"] is True

        client.post("/api/admin/logout")
        assert client.get("/api/admin/session").status_code == 401

    def test_forged_cookie_rejected(self, client):
        client.cookies.set("admin-session", "true")
        assert client.get("/api/admin/instances").status_code == 401


class TestInstanceEndpoints:
    """Test admin record management"""

    def test_create_instance(self, admin):
        response = admin.post("/api/admin/instances", json={
            "name": "Tokyo 1",
            "type": "Ubuntu 22.04",
            "country_region": "JP",
            "note_billing_end_date": "2024-06-20",
            "note_billing_cycle": "Monthly",
            "note_billing_amount": "$5.00/mo",
            "note_plan_traffic_type": 1
        })

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Tokyo 1"
        assert data["note_billing_end_date"] == "2024-06-20"
        assert data["note_plan_traffic_type"] == 1
        assert len(data["secret"]) == 32
        assert data["install_command"] == (
            f"curl -sSL https://vps.example.com/install_agent.sh | sudo bash -s {data['secret']}"
        )

    def test_blank_fields_are_stored_as_null(self, admin):
        data = create(admin, note_billing_end_date="", note_billing_cycle="  ")

        assert data["note_billing_end_date"] is None
        assert data["note_billing_cycle"] is None
        assert data["note_plan_traffic_type"] == 0

    @pytest.mark.parametrize("payload", [
        {"name": ""},
        {"name": "   "},
        {"name": "x", "note_billing_end_date": "next tuesday"},
        {"name": "x", "note_plan_traffic_type": 3},
    ])
    def test_validation_errors(self, admin, payload):
        response = admin.post("/api/admin/instances", json=payload)
        assert response.status_code == 422

    def test_list_get_update_delete(self, admin):
        first = create(admin, name="first")
        second = create(admin, name="second")

        listing = admin.get("/api/admin/instances").json()
        assert {i["id"] for i in listing} == {first["id"], second["id"]}

        fetched = admin.get(f"/api/admin/instances/{first['id']}")
        assert fetched.status_code == 200
        assert fetched.json()["name"] == "first"

        updated = admin.put(f"/api/admin/instances/{first['id']}", json={
            "note_billing_cycle": "Annually",
            "note_billing_end_date": "2024-12-31"
        })
        assert updated.status_code == 200
        assert updated.json()["note_billing_cycle"] == "Annually"
        assert updated.json()["name"] == "first"

        deleted = admin.delete(f"/api/admin/instances/{first['id']}")
        assert deleted.status_code == 200
        assert admin.get(f"/api/admin/instances/{first['id']}").status_code == 404

    def test_missing_instance(self, admin):
        assert admin.get("/api/admin/instances/999").status_code == 404
        assert admin.put("/api/admin/instances/999", json={"name": "x"}).status_code == 404
        assert admin.delete("/api/admin/instances/999").status_code == 404


class TestRenewEndpoint:
    """Test manual renewal"""

    def test_renew(self, admin):
        record = create(admin, note_billing_end_date="2024-01-31", note_billing_cycle="Monthly")

        response = admin.post(f"/api/admin/instances/{record['id']}/renew")

        assert response.status_code == 200
        assert response.json()["new_end_date"] == "2024-02-29"
        stored = admin.get(f"/api/admin/instances/{record['id']}").json()
        assert stored["note_billing_end_date"] == "2024-02-29"

    def test_renew_without_cycle(self, admin):
        record = create(admin, note_billing_end_date="2024-01-01")

        response = admin.post(f"/api/admin/instances/{record['id']}/renew")

        assert response.status_code == 409
        stored = admin.get(f"/api/admin/instances/{record['id']}").json()
        assert stored["note_billing_end_date"] == "2024-01-01"

    def test_renew_unsupported_cycle(self, admin):
        record = create(admin, note_billing_end_date="2024-01-01", note_billing_cycle="weekly")
        assert admin.post(f"/api/admin/instances/{record['id']}/renew").status_code == 422

    def test_renew_missing(self, admin):
        assert admin.post("/api/admin/instances/999/renew").status_code == 404


class TestVpsFeed:
    """Test the public dashboard feed"""

    def test_list_empty(self, client):
        response = client.get("/api/vps-list")

        assert response.status_code == 200
        assert response.json() == []

    def test_rows_carry_billing_and_placeholders(self, admin):
        create(admin, name="edge", note_billing_end_date="2024-06-06",
               note_billing_cycle="Monthly", note_billing_amount="$3/mo")
        create(admin, name="no-billing")

        rows = {r["name"]: r for r in admin.get("/api/vps-list").json()}

        edge = rows["edge"]
        assert edge["status"] == "offline"
        assert edge["system"] == "Unknown OS"
        assert edge["price"] == "$3/mo"
        assert edge["plan_traffic_type"] == "Both"
        assert edge["cpu"]["usage"] == 0
        assert edge["billing"]["days_remaining"] == 5
        assert edge["billing"]["total_days_in_cycle"] == 31  # start 2024-05-06, May has 31 days
        assert edge["billing"]["severity"] == "critical"
        assert edge["billing"]["color"] == "red"

        empty = rows["no-billing"]
        assert empty["billing"]["days_remaining"] == "N/A"
        assert empty["billing"]["percentage"] == 0

    def test_billing_endpoint(self, admin):
        record = create(admin, note_billing_end_date="2024-05-31", note_billing_cycle="30 days")

        response = admin.get(f"/api/vps/{record['id']}/billing")

        assert response.status_code == 200
        data = response.json()
        assert data["days_remaining"] == -1
        assert data["days_remaining_label"] == "Expired"
        assert data["severity"] == "expired"
        assert admin.get("/api/vps/999/billing").status_code == 404

    def test_feed_reads_the_admin_store(self):
        from vpsight.routes import instances, vps

        assert vps.vps_store is instances.vps_store


class TestAcknowledgmentFlow:
    """Test the admin dashboard with acknowledged automatic renewal"""

    def test_acknowledged_record_renews_on_refresh(self, admin):
        record = create(admin, note_billing_end_date="2024-06-01", note_billing_cycle="30 days")
        base = f"/api/admin/dashboard/{record['id']}/acknowledge"

        view = admin.get("/api/admin/dashboard").json()
        assert view["rows"][0]["acknowledgment"] == "unacknowledged"
        assert view["rows"][0]["billing"]["days_remaining"] == 0

        # Single-step confirmation is refused
        assert admin.post(f"{base}/confirm").status_code == 409

        requested = admin.post(f"{base}/request")
        assert requested.status_code == 200
        assert requested.json()["confirmation_pending"] is True

        confirmed = admin.post(f"{base}/confirm")
        assert confirmed.status_code == 200
        assert confirmed.json()["state"] == "acknowledged"

        view = admin.get("/api/admin/dashboard").json()
        assert view["renewals_attempted"] == 1
        row = view["rows"][0]
        assert row["renewal"]["new_end_date"] == "2024-07-01"
        assert row["billing"]["days_remaining"] == 30
        assert row["acknowledgment"] == "unacknowledged"

        # A fresh acknowledgment is needed for the next cycle
        view = admin.get("/api/admin/dashboard").json()
        assert view["renewals_attempted"] == 0

    def test_revoke_and_cancel(self, admin):
        record = create(admin, note_billing_end_date="2024-06-30", note_billing_cycle="Monthly")
        base = f"/api/admin/dashboard/{record['id']}/acknowledge"
        admin.get("/api/admin/dashboard")

        admin.post(f"{base}/request")
        assert admin.post(f"{base}/cancel").json()["confirmation_pending"] is False
        assert admin.post(f"{base}/revoke").status_code == 409

        admin.post(f"{base}/request")
        admin.post(f"{base}/confirm")
        revoked = admin.post(f"{base}/revoke")
        assert revoked.status_code == 200
        assert revoked.json()["state"] == "unacknowledged"

    def test_record_must_be_on_dashboard(self, admin):
        record = create(admin, note_billing_end_date="2024-06-30", note_billing_cycle="Monthly")

        response = admin.post(f"/api/admin/dashboard/{record['id']}/acknowledge/request")

        assert response.status_code == 404

    def test_acknowledgment_kept_when_newer_record_is_added(self, admin):
        record = create(admin, name="old", note_billing_end_date="2024-06-01", note_billing_cycle="30 days")
        base = f"/api/admin/dashboard/{record['id']}/acknowledge"
        admin.get("/api/admin/dashboard")
        admin.post(f"{base}/request")
        admin.post(f"{base}/confirm")

        create(admin, name="new", note_billing_end_date="2024-09-01", note_billing_cycle="Monthly")

        view = admin.get("/api/admin/dashboard").json()
        assert [r["instance"]["name"] for r in view["rows"]] == ["new", "old"]
        assert view["renewals_attempted"] == 1
        assert view["rows"][1]["renewal"]["new_end_date"] == "2024-07-01"
        assert view["rows"][0]["renewal"] is None


def create(admin, **fields):
    payload = {"name": "vps"}
    payload.update(fields)
    response = admin.post("/api/admin/instances", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


# Pytest fixtures
@pytest.fixture
def client():
    """Create a test client with a fresh database and a pinned clock"""
    from vpsight.main import app
    from vpsight.models.database import engine, Base
    from vpsight.routes.deps import get_now

    async def setup_db():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
            await conn.run_sync(Base.metadata.create_all)

    asyncio.run(setup_db())
    app.dependency_overrides[get_now] = lambda: NOW

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def admin(client):
    """Test client holding a valid admin session cookie"""
    response = client.post("/api/admin/login", json={"username": "admin", "password": "s3cret"})
    assert response.status_code == 200
    return client
