"""
Shared fixtures: settings, a recording fake store and a fake Stripe gateway.

The fakes are installed through app.dependency_overrides so routes run their
real validation and response logic without touching the network.
"""
import json
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from languaro.core.config import Settings
from languaro.core.dependencies import (
    get_gateway,
    get_licensing_store,
    get_optional_gateway,
    get_store,
)
from languaro.main import create_app
from languaro.services.store_client import StoreResponse
from languaro.services.stripe_service import PaymentProviderError, WebhookSignatureError


class FakeStore:
    """Records upserts instead of calling Supabase."""

    def __init__(self, status_code: int = 201, data: Any = None):
        self.status_code = status_code
        self.data = data
        self.upserts: List[Dict[str, Any]] = []

    async def upsert(self, table, record, conflict_key="email", return_representation=True):
        self.upserts.append({
            "table": table,
            "record": record,
            "conflict_key": conflict_key,
            "return_representation": return_representation,
        })
        data = self.data if self.data is not None else [record]
        return StoreResponse(status_code=self.status_code, data=data)


class FakeGateway:
    """Stands in for StripeGateway with canned sessions and customers."""

    def __init__(self, secret_key: str = "sk_test_fake", webhook_secret: Optional[str] = None):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.sessions: Dict[str, Dict[str, Any]] = {}
        self.subscriptions: Dict[str, Dict[str, Any]] = {}
        self.customers: Dict[str, Dict[str, Any]] = {}
        self.created: List[Dict[str, Any]] = []
        self.verified: List[bytes] = []
        self.subscription_error: Optional[PaymentProviderError] = None

    def create_checkout_session(self, price_id, plan, origin, customer_email=None):
        self.created.append({
            "price_id": price_id,
            "plan": plan,
            "origin": origin,
            "customer_email": customer_email,
        })
        return {"id": "cs_test_123", "url": "https://checkout.stripe.com/c/pay/cs_test_123"}

    def retrieve_session(self, session_id):
        if session_id not in self.sessions:
            raise PaymentProviderError(f"No such checkout.session: '{session_id}'", not_found=True)
        return self.sessions[session_id]

    def retrieve_subscription(self, subscription_id):
        if self.subscription_error is not None:
            raise self.subscription_error
        return self.subscriptions.get(subscription_id)

    def retrieve_customer(self, customer_id):
        return self.customers.get(customer_id)

    def customer_email(self, customer_id):
        if not customer_id:
            return None
        return (self.customers.get(customer_id) or {}).get("email")

    def verify_webhook(self, request_body, signature):
        self.verified.append(request_body)
        if signature != "valid":
            raise WebhookSignatureError("Invalid signature")
        return json.loads(request_body)


@pytest.fixture
def settings():
    return Settings(
        SUPABASE_URL="https://store.example.supabase.co",
        SUPABASE_SERVICE_ROLE_KEY="service-role-key",
        STRIPE_SECRET_KEY="sk_test_fake",
        ADMIN_SECRET="admin-secret",
        HQ_USER="hq",
        HQ_PASS="hq-pass",
        TELEMETRY_BACKEND_URL="https://telemetry.example.com",
        TELEMETRY_READ_TOKEN="read-token",
        SITE_URL="https://languaro.com",
        _env_file=None,
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def app(settings, store, gateway):
    app = create_app(settings)
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_licensing_store] = lambda: store
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_optional_gateway] = lambda: gateway
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)
