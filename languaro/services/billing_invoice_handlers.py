"""
Invoice event handlers for Stripe webhooks.

Handles invoice.payment_succeeded and invoice.payment_failed events.
"""
import logging
from typing import Dict

from starlette.concurrency import run_in_threadpool

from languaro.core.config import USERS_TABLE
from languaro.schemas.records import UserRecord
from languaro.services.billing_service import (
    WebhookContext,
    WebhookResult,
    require_valid_email,
    subscription_expiry,
)

logger = logging.getLogger(__name__)


async def handle_invoice_payment_succeeded(event_data: Dict, ctx: WebhookContext) -> WebhookResult:
    """
    Handle invoice.payment_succeeded webhook event.

    Recurring payment went through: keep the user pro and push the
    expiration 30 days out. Falls back to the customer's email when the
    invoice carries none.
    """
    invoice_data = event_data.get("object", {})
    email = invoice_data.get("customer_email")

    if not email:
        customer_id = invoice_data.get("customer")
        email = await run_in_threadpool(ctx.require_gateway().customer_email, customer_id)

    email = require_valid_email(email)

    record = UserRecord(
        email=email,
        is_pro=True,
        subscription_expires_at=subscription_expiry(ctx.now),
    )
    await ctx.store.upsert(USERS_TABLE, record.to_row())

    logger.info(f"Invoice payment succeeded, subscription extended: email={email}")
    return WebhookResult(message="Subscription extended")


async def handle_invoice_payment_failed(event_data: Dict, ctx: WebhookContext) -> WebhookResult:
    """
    Handle invoice.payment_failed webhook event.

    Logged only; access is revoked when Stripe deletes the subscription.
    """
    invoice_data = event_data.get("object", {})
    logger.warning(
        f"Invoice payment failed: customer={invoice_data.get('customer')}, "
        f"subscription_id={invoice_data.get('subscription')} (no action needed)"
    )
    return WebhookResult(message="Event logged")

