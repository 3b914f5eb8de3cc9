"""
Stripe service for checkout sessions, lookups, and webhook verification.

Every call passes the configured secret key explicitly; Stripe objects are
returned as plain dictionaries so callers never depend on SDK object types.
"""
import logging
from typing import Any, Dict, Optional

import stripe

logger = logging.getLogger(__name__)


class PaymentProviderError(Exception):
    """A Stripe call failed."""

    def __init__(self, message: str, not_found: bool = False):
        super().__init__(message)
        self.message = message
        self.not_found = not_found


class WebhookSignatureError(ValueError):
    """The Stripe-Signature header did not verify against the webhook secret."""


def _to_dict(stripe_object: Any) -> Optional[Dict[str, Any]]:
    if stripe_object is None:
        return None
    if isinstance(stripe_object, stripe.StripeObject):
        return stripe_object.to_dict()
    return dict(stripe_object)


def _provider_error(e: stripe.StripeError, action: str) -> PaymentProviderError:
    message = getattr(e, "user_message", None) or str(e) or f"Stripe error during {action}"
    not_found = isinstance(e, stripe.InvalidRequestError) and getattr(e, "code", None) == "resource_missing"
    return PaymentProviderError(message, not_found=not_found)


class StripeGateway:
    """
    Thin wrapper around the Stripe SDK.

    Args:
        secret_key: STRIPE_SECRET_KEY
        webhook_secret: STRIPE_WEBHOOK_SECRET (optional)
    """

    def __init__(self, secret_key: str, webhook_secret: Optional[str] = None):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret

    def create_checkout_session(
        self,
        price_id: str,
        plan: Optional[str],
        origin: str,
        customer_email: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Create a Checkout session for a single price.

        Args:
            price_id: Stripe price ID
            plan: Plan label; 'monthly' creates a subscription, anything else a one-time payment
            origin: Site origin used for the success and cancel redirects
            customer_email: Optional email to pre-fill

        Returns:
            Session dictionary (has 'id' and 'url')
        """
        params: Dict[str, Any] = {
            "line_items": [{
                "price": price_id,
                "quantity": 1,
            }],
            "mode": "subscription" if plan == "monthly" else "payment",
            "success_url": f"{origin}/success?session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": f"{origin}/#pricing",
            "allow_promotion_codes": True,
            "billing_address_collection": "auto",
            "metadata": {
                "plan": plan or "unknown",
            },
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = stripe.checkout.Session.create(api_key=self.secret_key, **params)
        except stripe.StripeError as e:
            logger.error(f"Stripe error creating checkout session: {e}")
            raise _provider_error(e, "checkout session creation")

        created = _to_dict(session)
        logger.info(f"Created checkout session: session_id={created.get('id')}, plan={plan}")
        return created

    def retrieve_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        try:
            session = stripe.checkout.Session.retrieve(session_id, api_key=self.secret_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe error retrieving session {session_id}: {e}")
            raise _provider_error(e, "session lookup")
        return _to_dict(session)

    def retrieve_subscription(self, subscription_id: str) -> Optional[Dict[str, Any]]:
        try:
            subscription = stripe.Subscription.retrieve(subscription_id, api_key=self.secret_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe error retrieving subscription {subscription_id}: {e}")
            raise _provider_error(e, "subscription lookup")
        return _to_dict(subscription)

    def retrieve_customer(self, customer_id: str) -> Optional[Dict[str, Any]]:
        try:
            customer = stripe.Customer.retrieve(customer_id, api_key=self.secret_key)
        except stripe.StripeError as e:
            logger.error(f"Stripe error retrieving customer {customer_id}: {e}")
            raise _provider_error(e, "customer lookup")
        return _to_dict(customer)

    def customer_email(self, customer_id: Optional[str]) -> Optional[str]:
        """Email on a Stripe customer, or None when there is no customer id."""
        if not customer_id:
            return None
        customer = self.retrieve_customer(customer_id) or {}
        return customer.get("email")

    def verify_webhook(self, request_body: bytes, signature: Optional[str]) -> Dict[str, Any]:
        """
        Verify and parse a Stripe webhook event.

        Args:
            request_body: Raw request body bytes
            signature: Stripe-Signature header value

        Returns:
            Parsed event dictionary

        Raises:
            WebhookSignatureError: If the signature is missing or invalid
        """
        if not self.webhook_secret:
            raise WebhookSignatureError("STRIPE_WEBHOOK_SECRET not configured")
        if not signature:
            raise WebhookSignatureError("Missing Stripe-Signature header")

        try:
            event = stripe.Webhook.construct_event(request_body, signature, self.webhook_secret)
        except ValueError as e:
            logger.error(f"Invalid webhook payload: {e}")
            raise WebhookSignatureError(f"Invalid webhook payload: {e}")
        except stripe.SignatureVerificationError as e:
            logger.error(f"Webhook signature verification failed: {e}")
            raise WebhookSignatureError(f"Invalid signature: {e}")

        logger.info(f"Verified webhook event: {event['type']}, id={event['id']}")
        return _to_dict(event)
