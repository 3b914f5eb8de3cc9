import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from languaro.core.dependencies import get_optional_gateway, get_store
from languaro.core.request_body import parse_body
from languaro.schemas.billing import WebhookResponse
from languaro.services.billing_service import BillingError, WebhookContext
from languaro.services.store_client import StoreClient, StoreError
from languaro.services.stripe_service import PaymentProviderError, StripeGateway, WebhookSignatureError
from languaro.services.webhook_service import is_stripe_event, process_webhook

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Billing Webhook"])


@router.post("/purchase-webhook", response_model=WebhookResponse, response_model_exclude_none=True)
async def purchase_webhook(
    request: Request,
    store: StoreClient = Depends(get_store),
    gateway: Optional[StripeGateway] = Depends(get_optional_gateway),
    stripe_signature: Optional[str] = Header(None),
):
    """
    Receive Stripe events (or legacy Gumroad sale pings) and update the user.

    Every event that parses is acknowledged with 200, including types we
    ignore, so the provider does not keep retrying them.

    With STRIPE_WEBHOOK_SECRET set, every body must carry a valid Stripe
    signature and be a Stripe event; unsigned legacy pings are only accepted
    when no secret is configured.
    """
    payload = await request.body()

    if gateway is not None and gateway.webhook_secret:
        try:
            body = await run_in_threadpool(gateway.verify_webhook, payload, stripe_signature)
        except WebhookSignatureError:
            raise HTTPException(status_code=400, detail="Invalid signature")
        if not is_stripe_event(body):
            logger.error("Signed webhook body is not a Stripe event envelope")
            raise HTTPException(status_code=400, detail="Invalid webhook payload")
    else:
        body = parse_body(payload)
        logger.warning("STRIPE_WEBHOOK_SECRET not set - processing unverified webhook")

    ctx = WebhookContext(store=store, gateway=gateway)
    try:
        result = await process_webhook(body, ctx)
    except BillingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except (StoreError, PaymentProviderError) as e:
        logger.error(f"Webhook processing error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=e.message or "Server error")

    return WebhookResponse(message=result.message, email=result.email, plan=result.plan)
