"""
Webhook event dispatch.

Known Stripe event types form a closed enum; anything else maps to
UNHANDLED and is acknowledged without side effects.
"""
import logging
from enum import Enum
from typing import Any, Awaitable, Callable, Dict

from languaro.services.billing_invoice_handlers import (
    handle_invoice_payment_failed,
    handle_invoice_payment_succeeded,
)
from languaro.services.billing_service import (
    WebhookContext,
    WebhookResult,
    handle_checkout_session_completed,
    handle_informational_event,
    handle_subscription_deleted,
    handle_unhandled_event,
    process_legacy_purchase,
)

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    CHECKOUT_SESSION_COMPLETED = "checkout.session.completed"
    INVOICE_PAYMENT_SUCCEEDED = "invoice.payment_succeeded"
    SUBSCRIPTION_DELETED = "customer.subscription.deleted"
    PAYMENT_INTENT_SUCCEEDED = "payment_intent.succeeded"
    INVOICE_PAYMENT_FAILED = "invoice.payment_failed"
    UNHANDLED = "unhandled"

    @classmethod
    def from_type(cls, event_type: Any) -> "EventKind":
        for kind in cls:
            if kind is not cls.UNHANDLED and kind.value == event_type:
                return kind
        return cls.UNHANDLED


EventHandler = Callable[[Dict, WebhookContext], Awaitable[WebhookResult]]

EVENT_HANDLERS: Dict[EventKind, EventHandler] = {
    EventKind.CHECKOUT_SESSION_COMPLETED: handle_checkout_session_completed,
    EventKind.INVOICE_PAYMENT_SUCCEEDED: handle_invoice_payment_succeeded,
    EventKind.SUBSCRIPTION_DELETED: handle_subscription_deleted,
    EventKind.PAYMENT_INTENT_SUCCEEDED: handle_informational_event,
    EventKind.INVOICE_PAYMENT_FAILED: handle_invoice_payment_failed,
    EventKind.UNHANDLED: handle_unhandled_event,
}


def is_stripe_event(body: Dict[str, Any]) -> bool:
    """True when the body is a Stripe event envelope (type + data.object)."""
    data = body.get("data")
    return bool(body.get("type")) and isinstance(data, dict) and isinstance(data.get("object"), dict)


async def process_webhook(body: Dict[str, Any], ctx: WebhookContext) -> WebhookResult:
    """
    Route a webhook body to the matching handler.

    Stripe envelopes are dispatched by event type; anything else is treated
    as a legacy purchase notification.
    """
    if not is_stripe_event(body):
        logger.info("Legacy webhook received")
        return await process_legacy_purchase(body, ctx)

    event_type = body["type"]
    kind = EventKind.from_type(event_type)
    if kind is EventKind.UNHANDLED:
        logger.warning(f"Unhandled event type: {event_type}")
    else:
        logger.info(f"Stripe webhook received: {event_type}")

    return await EVENT_HANDLERS[kind](body["data"], ctx)
