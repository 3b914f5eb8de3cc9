"""
Integration tests for POST /api/purchase-webhook.
"""
import json
from datetime import datetime, timedelta, timezone

import pytest

from languaro.core.dependencies import get_optional_gateway
from languaro.services.billing_service import WebhookContext
from languaro.services.webhook_service import EVENT_HANDLERS, EventKind, process_webhook
from tests.conftest import FakeGateway, FakeStore

WEBHOOK_URL = "/api/purchase-webhook"


def stripe_event(event_type, obj):
    return {"id": "evt_test", "type": event_type, "data": {"object": obj}}


def test_dispatch_table_covers_every_event_kind():
    assert set(EVENT_HANDLERS) == set(EventKind)


def test_unknown_type_maps_to_unhandled():
    assert EventKind.from_type("charge.refunded") is EventKind.UNHANDLED
    assert EventKind.from_type("unhandled") is EventKind.UNHANDLED
    assert EventKind.from_type(None) is EventKind.UNHANDLED
    assert EventKind.from_type("checkout.session.completed") is EventKind.CHECKOUT_SESSION_COMPLETED


def test_checkout_completed_activates_for_thirty_days(client, store):
    event = stripe_event("checkout.session.completed", {
        "id": "cs_test_1",
        "amount_total": 4900,
        "payment_status": "paid",
        "customer_details": {"email": "Buyer@Example.com"},
    })

    before = datetime.now(timezone.utc)
    response = client.post(WEBHOOK_URL, json=event)
    after = datetime.now(timezone.utc)

    assert response.status_code == 200
    assert response.json() == {"ok": True, "message": "Subscription activated"}

    assert len(store.upserts) == 1
    write = store.upserts[0]
    assert write["table"] == "users"
    record = write["record"]
    assert record["email"] == "buyer@example.com"
    assert record["is_pro"] is True
    assert record["plan"] == "lifetime"
    assert record["purchase_data"] == {"source": "stripe", "session_id": "cs_test_1", "amount": 4900}

    expires_at = datetime.fromisoformat(record["subscription_expires_at"].replace("Z", "+00:00"))
    assert before + timedelta(days=30) - timedelta(seconds=1) <= expires_at
    assert expires_at <= after + timedelta(days=30) + timedelta(seconds=1)


def test_checkout_completed_with_invalid_email_writes_nothing(client, store):
    event = stripe_event("checkout.session.completed", {
        "id": "cs_test_2",
        "customer_details": {"email": "not-an-email"},
    })

    response = client.post(WEBHOOK_URL, json=event)

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Invalid email"}
    assert store.upserts == []


def test_invoice_succeeded_falls_back_to_customer_lookup(client, store, gateway):
    gateway.customers["cus_1"] = {"id": "cus_1", "email": "renew@example.com"}
    event = stripe_event("invoice.payment_succeeded", {"id": "in_1", "customer": "cus_1"})

    response = client.post(WEBHOOK_URL, json=event)

    assert response.status_code == 200
    assert response.json()["message"] == "Subscription extended"
    record = store.upserts[0]["record"]
    assert record["email"] == "renew@example.com"
    assert record["is_pro"] is True
    assert "subscription_expires_at" in record
    assert "plan" not in record


def test_subscription_deleted_revokes(client, store, gateway):
    gateway.customers["cus_2"] = {"id": "cus_2", "email": "gone@example.com"}
    event = stripe_event("customer.subscription.deleted", {"id": "sub_1", "customer": "cus_2"})

    response = client.post(WEBHOOK_URL, json=event)

    assert response.status_code == 200
    assert response.json()["message"] == "Subscription cancelled"
    assert store.upserts[0]["record"] == {"email": "gone@example.com", "is_pro": False}


@pytest.mark.parametrize("event_type", ["payment_intent.succeeded", "invoice.payment_failed"])
def test_informational_events_are_logged_only(client, store, event_type):
    response = client.post(WEBHOOK_URL, json=stripe_event(event_type, {"id": "obj_1"}))

    assert response.status_code == 200
    assert response.json() == {"ok": True, "message": "Event logged"}
    assert store.upserts == []


def test_unhandled_event_is_acknowledged_without_store_call(client, store):
    response = client.post(WEBHOOK_URL, json=stripe_event("charge.refunded", {"id": "ch_1"}))

    assert response.status_code == 200
    assert response.json() == {"ok": True, "message": "Event received"}
    assert store.upserts == []


def test_legacy_purchase_is_tagged_gumroad(client, store):
    body = {"purchaser": {"email": "old@example.com"}, "product_name": "Languaro Lifetime", "price": "4900", "sale_id": "s1"}

    response = client.post(WEBHOOK_URL, json=body)

    assert response.status_code == 200
    assert response.json() == {
        "ok": True,
        "message": "Purchase processed successfully",
        "email": "old@example.com",
        "plan": "lifetime",
    }
    record = store.upserts[0]["record"]
    assert record["purchase_data"] == {"source": "gumroad", "sale_id": "s1", "product_name": "Languaro Lifetime"}


def test_legacy_purchase_without_email(client, store):
    response = client.post(WEBHOOK_URL, json={"product_name": "Languaro"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid webhook payload"
    assert store.upserts == []


def test_legacy_purchase_with_bad_email(client, store):
    response = client.post(WEBHOOK_URL, json={"email": "nope"})

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid email format"
    assert store.upserts == []


def test_signature_checked_when_secret_configured(app, client, store):
    signed_gateway = FakeGateway(webhook_secret="whsec_test")
    app.dependency_overrides[get_optional_gateway] = lambda: signed_gateway
    event = stripe_event("charge.refunded", {"id": "ch_1"})

    rejected = client.post(WEBHOOK_URL, content=json.dumps(event), headers={"Stripe-Signature": "forged"})
    accepted = client.post(WEBHOOK_URL, content=json.dumps(event), headers={"Stripe-Signature": "valid"})

    assert rejected.status_code == 400
    assert rejected.json() == {"ok": False, "error": "Invalid signature"}
    assert accepted.status_code == 200
    assert len(signed_gateway.verified) == 2


@pytest.fixture
def signed_gateway(app):
    gateway = FakeGateway(webhook_secret="whsec_test")
    app.dependency_overrides[get_optional_gateway] = lambda: gateway
    return gateway


@pytest.mark.parametrize("body", [
    {"email": "attacker@example.com", "product_name": "Lifetime"},
    {"type": "checkout.session.completed", "data": {"object": "x"}, "email": "attacker@example.com"},
])
def test_unsigned_bodies_rejected_when_secret_configured(client, store, signed_gateway, body):
    response = client.post(WEBHOOK_URL, json=body)

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Invalid signature"}
    assert store.upserts == []


def test_signed_legacy_body_rejected_when_secret_configured(client, store, signed_gateway):
    body = {"email": "buyer@example.com", "product_name": "Lifetime"}

    response = client.post(WEBHOOK_URL, content=json.dumps(body), headers={"Stripe-Signature": "valid"})

    assert response.status_code == 400
    assert response.json() == {"ok": False, "error": "Invalid webhook payload"}
    assert store.upserts == []


def test_get_is_method_not_allowed(client):
    response = client.get(WEBHOOK_URL)

    assert response.status_code == 405
    assert "POST" in response.headers["allow"]
    assert response.json() == {"ok": False, "error": "Method Not Allowed"}


@pytest.mark.asyncio
async def test_process_webhook_with_fixed_clock():
    store = FakeStore()
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)
    ctx = WebhookContext(store=store, gateway=FakeGateway(), now=now)
    event = stripe_event("invoice.payment_succeeded", {"customer_email": "fixed@example.com"})

    result = await process_webhook(event, ctx)

    assert result.message == "Subscription extended"
    assert store.upserts[0]["record"]["subscription_expires_at"] == "2025-01-31T00:00:00Z"
