"""
Tests for the Basic-auth protected dashboard.
"""
import base64

from fastapi.testclient import TestClient

from languaro.main import create_app

URL = "/api/dash"


def test_missing_credentials_are_challenged(client):
    response = client.get(URL)

    assert response.status_code == 401
    assert response.text == "Authentication required"
    assert response.headers["www-authenticate"] == 'Basic realm="Languaro Dashboard"'
    assert "no-store" in response.headers["cache-control"]


def test_non_basic_scheme_is_challenged(client):
    response = client.get(URL, headers={"Authorization": "Bearer abc"})

    assert response.status_code == 401
    assert response.text == "Authentication required"


def test_wrong_credentials(client):
    response = client.get(URL, auth=("hq", "wrong"))

    assert response.status_code == 401
    assert response.text == "Invalid credentials"
    assert response.headers["www-authenticate"] == 'Basic realm="Languaro Dashboard"'


def test_valid_credentials_serve_private_page(client):
    response = client.get(URL, auth=("hq", "hq-pass"))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert response.headers["cache-control"] == "no-store, no-cache, must-revalidate, proxy-revalidate"
    assert response.headers["pragma"] == "no-cache"
    assert response.headers["expires"] == "0"
    assert response.headers["x-robots-tag"] == "noindex, nofollow, noarchive"
    assert "/api/metrics" in response.text
    assert "60000" in response.text
    assert "30000" in response.text


def test_unconfigured_credentials_reject_everything(settings):
    app = create_app(settings.model_copy(update={"hq_user": None, "hq_pass": None}))
    client = TestClient(app)

    for auth in (("admin", "languaro2025"), ("", ""), ("hq", "hq-pass")):
        response = client.get(URL, auth=auth)
        assert response.status_code == 401


def test_malformed_basic_header_gets_the_same_challenge(client):
    response = client.get(URL, headers={"Authorization": "Basic !!!notbase64"})

    assert response.status_code == 401
    assert response.text == "Authentication required"
    assert response.headers["www-authenticate"] == 'Basic realm="Languaro Dashboard"'
    assert "no-store" in response.headers["cache-control"]


def test_basic_header_without_separator_is_challenged(client):
    token = base64.b64encode(b"hq-only").decode("ascii")

    response = client.get(URL, headers={"Authorization": f"Basic {token}"})

    assert response.status_code == 401
    assert response.text == "Authentication required"


def test_non_ascii_password_can_log_in(settings):
    app = create_app(settings.model_copy(update={"hq_pass": "pässwort"}))
    token = base64.b64encode("hq:pässwort".encode("utf-8")).decode("ascii")

    response = TestClient(app).get(URL, headers={"Authorization": f"Basic {token}"})

    assert response.status_code == 200
    assert response.headers["x-robots-tag"] == "noindex, nofollow, noarchive"
