"""
Billing service for Stripe and legacy Gumroad purchases.

Turns provider payloads into normalized user records and writes them to the
store: checkout completion, subscription cancellation, legacy sales, and the
polling-based checkout confirmation used when webhooks are not wired up.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from starlette.concurrency import run_in_threadpool

from languaro.core.config import USERS_TABLE
from languaro.core.plans import (
    amount_of,
    classify_legacy_plan,
    classify_plan,
    classify_stripe_object,
    recurrence_interval,
)
from languaro.core.validation import is_valid_email, normalize_email
from languaro.schemas.records import UserRecord
from languaro.services.store_client import StoreClient
from languaro.services.stripe_service import PaymentProviderError, StripeGateway

logger = logging.getLogger(__name__)

SUBSCRIPTION_PERIOD = timedelta(days=30)


class BillingError(ValueError):
    """A payload or session could not be turned into a user record."""
    status_code = 400


class InvalidEmailError(BillingError):
    pass


class InvalidPayloadError(BillingError):
    pass


class PaymentIncompleteError(BillingError):
    pass


class SessionNotFoundError(BillingError):
    status_code = 404


@dataclass
class WebhookContext:
    """Collaborators a webhook handler may use."""
    store: StoreClient
    gateway: Optional[StripeGateway] = None
    now: Optional[datetime] = None

    def __post_init__(self):
        if self.now is None:
            self.now = datetime.now(timezone.utc)

    def require_gateway(self) -> StripeGateway:
        if self.gateway is None or not self.gateway.secret_key:
            raise PaymentProviderError("Stripe not configured")
        return self.gateway


@dataclass
class WebhookResult:
    message: str
    email: Optional[str] = None
    plan: Optional[str] = None


def subscription_expiry(now: datetime) -> datetime:
    return now + SUBSCRIPTION_PERIOD


def require_valid_email(email: Any, message: str = "Invalid email") -> str:
    """Normalize an email or raise InvalidEmailError."""
    normalized = normalize_email(email)
    if not normalized or not is_valid_email(normalized):
        logger.error(f"Invalid email in billing payload: {email!r}")
        raise InvalidEmailError(message)
    return normalized


def session_email(session: Dict[str, Any]) -> Optional[str]:
    details = session.get("customer_details") or {}
    return details.get("email") or session.get("customer_email")


async def handle_checkout_session_completed(event_data: Dict, ctx: WebhookContext) -> WebhookResult:
    """
    Handle checkout.session.completed webhook event.

    Activates pro access for 30 days with a plan derived from the session.
    """
    session = event_data.get("object", {})
    email = require_valid_email(session_email(session))
    plan = classify_stripe_object(session)

    record = UserRecord(
        email=email,
        is_pro=True,
        plan=plan,
        activated_at=ctx.now,
        subscription_expires_at=subscription_expiry(ctx.now),
        purchase_data={
            "source": "stripe",
            "session_id": session.get("id"),
            "amount": session.get("amount_total"),
        },
    )
    await ctx.store.upsert(USERS_TABLE, record.to_row())

    logger.info(f"Subscription activated: email={email}, plan={plan}, session_id={session.get('id')}")
    return WebhookResult(message="Subscription activated")


async def handle_subscription_deleted(event_data: Dict, ctx: WebhookContext) -> WebhookResult:
    """
    Handle customer.subscription.deleted webhook event.
    Revokes pro access for the subscription's customer.
    """
    subscription = event_data.get("object", {})
    email = await run_in_threadpool(ctx.require_gateway().customer_email, subscription.get("customer"))
    email = require_valid_email(email)

    record = UserRecord(email=email, is_pro=False)
    await ctx.store.upsert(USERS_TABLE, record.to_row())

    logger.info(f"Subscription cancelled: email={email}, subscription_id={subscription.get('id')}")
    return WebhookResult(message="Subscription cancelled")


async def handle_informational_event(event_data: Dict, ctx: WebhookContext) -> WebhookResult:
    obj = event_data.get("object", {})
    logger.info(f"Informational event received for {obj.get('object', 'object')} {obj.get('id')} (no action needed)")
    return WebhookResult(message="Event logged")


async def handle_unhandled_event(event_data: Dict, ctx: WebhookContext) -> WebhookResult:
    return WebhookResult(message="Event received")


async def process_legacy_purchase(body: Dict[str, Any], ctx: WebhookContext) -> WebhookResult:
    """
    Handle a legacy (Gumroad-style) purchase notification.

    The payload is flat: email or purchaser.email, product_name, price, sale_id.
    """
    purchaser = body.get("purchaser") if isinstance(body.get("purchaser"), dict) else {}
    raw_email = body.get("email") or purchaser.get("email")
    if not raw_email:
        logger.error("Could not extract email from legacy webhook")
        raise InvalidPayloadError("Invalid webhook payload")

    email = require_valid_email(raw_email, message="Invalid email format")
    plan = classify_legacy_plan(body.get("product_name"), body.get("price"))

    record = UserRecord(
        email=email,
        is_pro=True,
        plan=plan,
        activated_at=ctx.now,
        purchase_data={
            "source": "gumroad",
            "sale_id": body.get("sale_id"),
            "product_name": body.get("product_name"),
        },
    )
    await ctx.store.upsert(USERS_TABLE, record.to_row())

    logger.info(f"Legacy purchase processed: email={email}, plan={plan}")
    return WebhookResult(message="Purchase processed successfully", email=email, plan=plan)


def _period_end(subscription: Dict[str, Any]) -> Optional[datetime]:
    timestamp = subscription.get("current_period_end")
    if not timestamp:
        # Newer API versions report the period per subscription item
        items = subscription.get("items")
        items = (items.get("data") or []) if isinstance(items, dict) else []
        if items and isinstance(items[0], dict):
            timestamp = items[0].get("current_period_end")
    if not timestamp:
        return None
    return datetime.fromtimestamp(int(timestamp), tz=timezone.utc)


async def confirm_checkout_session(
    session_id: str,
    store: StoreClient,
    gateway: StripeGateway,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Confirm a Checkout session by polling Stripe and upsert the paid user.

    Safety net for when webhook delivery is not configured.

    Args:
        session_id: Stripe Checkout session ID
        store: Store client for the licensing project
        gateway: Stripe gateway
        now: Clock override (tests)

    Returns:
        Dictionary with the normalized 'email' and the store 'result'

    Raises:
        SessionNotFoundError: If Stripe has no such session
        InvalidEmailError: If the session has no usable email
        PaymentIncompleteError: If the session is not paid/complete
        PaymentProviderError: If the session lookup fails
        StoreError: If the store rejects the write
    """
    now = now or datetime.now(timezone.utc)

    try:
        session = await run_in_threadpool(gateway.retrieve_session, session_id)
    except PaymentProviderError as e:
        if e.not_found:
            raise SessionNotFoundError("Session not found")
        raise
    if not session:
        raise SessionNotFoundError("Session not found")

    email = require_valid_email(session_email(session), message="Could not determine email from session")

    if session.get("payment_status") != "paid" and session.get("status") != "complete":
        logger.info(f"Checkout session not paid yet: session_id={session_id}, status={session.get('status')}")
        raise PaymentIncompleteError("Payment not completed")

    expires_at = None
    plan = None
    subscription_id = session.get("subscription")
    if session.get("mode") == "subscription" and subscription_id:
        try:
            subscription = await run_in_threadpool(gateway.retrieve_subscription, subscription_id) or {}
            expires_at = _period_end(subscription)
            interval = recurrence_interval(subscription)
            if interval:
                plan = classify_plan(amount_of(session), interval)
        except PaymentProviderError as e:
            logger.warning(f"Failed to retrieve subscription from Stripe: {e}")

    record = UserRecord(
        email=email,
        is_pro=True,
        plan=plan or classify_stripe_object(session),
        activated_at=now,
        subscription_expires_at=expires_at or subscription_expiry(now),
        purchase_data={
            "source": "stripe",
            "session_id": session.get("id"),
            "amount": session.get("amount_total"),
        },
    )
    response = await store.upsert(USERS_TABLE, record.to_row())

    logger.info(f"Checkout confirmed: email={email}, session_id={session_id}")
    return {"email": email, "result": response.data if response.data is not None else {}}
