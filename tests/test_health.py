"""
Tests for the health endpoint and app-level error envelope.
"""
from fastapi.testclient import TestClient

from languaro.core.config import Settings
from languaro.main import create_app


def test_health_reports_integrations_without_values(client, settings):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["integrations"] == {
        "stripe": True,
        "store": True,
        "licensing_store": True,
        "telemetry": True,
        "admin": True,
        "dashboard": True,
    }
    assert settings.stripe_secret_key not in response.text
    assert settings.supabase_service_role_key not in response.text


def test_health_with_nothing_configured():
    app = create_app(Settings(_env_file=None))
    body = TestClient(app).get("/health").json()

    assert body["integrations"]["admin"] is False
    assert body["integrations"]["dashboard"] is False


def test_unknown_route_uses_error_envelope(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"ok": False, "error": "Not Found"}


def test_static_script_is_served(client):
    response = client.get("/static/script.js")

    assert response.status_code == 200
    assert "/api/waitlist" in response.text
