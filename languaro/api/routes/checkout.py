import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from languaro.core.config import Settings, settings_dependency
from languaro.core.dependencies import get_gateway, get_licensing_store
from languaro.core.request_body import load_payload, read_request_body
from languaro.core.validation import is_valid_email, normalize_email
from languaro.schemas.billing import ConfirmCheckoutResponse, CreateCheckoutRequest, CreateCheckoutResponse
from languaro.services.billing_service import BillingError, confirm_checkout_session
from languaro.services.store_client import StoreClient, StoreError
from languaro.services.stripe_service import PaymentProviderError, StripeGateway

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Billing"])


@router.post("/create-checkout", response_model=CreateCheckoutResponse)
async def create_checkout(
    request: Request,
    gateway: StripeGateway = Depends(get_gateway),
    settings: Settings = Depends(settings_dependency),
):
    """
    Create a Stripe Checkout session and return its redirect URL.

    'monthly' plans check out as subscriptions, everything else as a one-time
    payment. Redirects go back to the calling origin.
    """
    payload = load_payload(CreateCheckoutRequest, await read_request_body(request))

    if not payload.price_id:
        raise HTTPException(status_code=400, detail="Price ID required")

    email = None
    if payload.email:
        email = normalize_email(payload.email)
        if not is_valid_email(email):
            raise HTTPException(status_code=400, detail="Invalid email format")

    origin = (request.headers.get("origin") or settings.default_origin).rstrip("/")

    try:
        session = await run_in_threadpool(
            gateway.create_checkout_session,
            payload.price_id,
            payload.plan,
            origin,
            email,
        )
    except PaymentProviderError as e:
        logger.error(f"Stripe checkout error: {e}")
        raise HTTPException(status_code=500, detail=e.message or "Failed to create checkout session")

    return CreateCheckoutResponse(url=session.get("url"), session_id=session.get("id"))


@router.get("/confirm-checkout", response_model=ConfirmCheckoutResponse)
async def confirm_checkout(
    request: Request,
    gateway: StripeGateway = Depends(get_gateway),
    store: StoreClient = Depends(get_licensing_store),
):
    """Confirm a paid Checkout session by polling Stripe (webhook fallback)."""
    session_id = request.query_params.get("session_id") or request.query_params.get("sessionId")
    if not session_id:
        raise HTTPException(status_code=400, detail="Missing session_id")

    try:
        confirmed = await confirm_checkout_session(session_id, store, gateway)
    except BillingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    except (PaymentProviderError, StoreError) as e:
        logger.error(f"Confirm checkout error: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=e.message or "Server error")

    return ConfirmCheckoutResponse(email=confirmed["email"], result=confirmed["result"])
