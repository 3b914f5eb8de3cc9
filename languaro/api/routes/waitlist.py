"""
Waitlist and support endpoints.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request

from languaro.core.config import Settings, settings_dependency
from languaro.core.dependencies import get_store
from languaro.core.request_body import load_payload, read_request_body
from languaro.core.responses import success_response
from languaro.core.validation import is_valid_email, normalize_email
from languaro.schemas.records import SupportRecord, WaitlistRecord
from languaro.schemas.waitlist import SubscribeRequest, SupportRequest
from languaro.services.store_client import StoreClient, StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Waitlist"])

MAX_PAGE_URL_LENGTH = 2048
MAX_USER_AGENT_LENGTH = 512


def _require_email(value) -> str:
    email = normalize_email(value)
    if not email:
        raise HTTPException(status_code=400, detail="Email is required")
    if not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email format")
    return email


@router.post("/subscribe")
@router.post("/waitlist")
async def subscribe(
    request: Request,
    store: StoreClient = Depends(get_store),
    settings: Settings = Depends(settings_dependency),
):
    payload = load_payload(SubscribeRequest, await read_request_body(request))
    email = _require_email(payload.email)

    record = WaitlistRecord(email=email, created_at=datetime.now(timezone.utc))
    try:
        response = await store.upsert(
            settings.supabase_subscriptions_table,
            record.to_row(),
            return_representation=False,
        )
    except StoreError as e:
        logger.error(f"Subscription error: {e}")
        raise HTTPException(status_code=500, detail=e.message or "Failed to store subscription")

    # 201 when the row is new; a merged duplicate comes back with another 2xx
    return success_response(message="Subscribed" if response.created else "Already subscribed")


@router.post("/support")
async def support(
    request: Request,
    store: StoreClient = Depends(get_store),
    settings: Settings = Depends(settings_dependency),
):
    payload = load_payload(SupportRequest, await read_request_body(request))
    email = _require_email(payload.email)

    message = (payload.message or "").strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")

    record = SupportRecord(
        email=email,
        support_message=message,
        last_support_at=datetime.now(timezone.utc),
        page_url=(payload.page_url or "")[:MAX_PAGE_URL_LENGTH] or None,
        user_agent=(payload.user_agent or "")[:MAX_USER_AGENT_LENGTH] or None,
    )
    try:
        await store.upsert(settings.supabase_waitlist_table, record.to_row(), return_representation=False)
    except StoreError as e:
        logger.error(f"Support submission error: {e}")
        raise HTTPException(status_code=500, detail=e.message or "Failed to submit support request")

    logger.info(f"Support request stored for {email}")
    return success_response(message="Support request sent")
