"""
Manual pro-user provisioning, for customers who bought before webhooks were live.
"""
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request

from languaro.core.config import USERS_TABLE, Settings, settings_dependency
from languaro.core.dependencies import get_store
from languaro.core.logging_config import sanitize_log_data
from languaro.core.plans import PLAN_PRO, PLANS
from languaro.core.request_body import load_payload, read_request_body
from languaro.core.responses import success_response
from languaro.core.security import verify_admin_secret
from languaro.core.validation import is_valid_email, normalize_email
from languaro.schemas.admin import AddProUserRequest
from languaro.schemas.records import UserRecord
from languaro.services.store_client import StoreClient, StoreError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Admin"])


@router.post("/add-pro-user")
async def add_pro_user(
    request: Request,
    store: StoreClient = Depends(get_store),
    settings: Settings = Depends(settings_dependency),
):
    """Grant pro access by hand. Requires the ADMIN_SECRET shared secret."""
    body = await read_request_body(request)

    if not verify_admin_secret(body.get("secret"), settings.admin_secret):
        logger.error(f"Unauthorized add-pro-user attempt: {sanitize_log_data(body)}")
        raise HTTPException(status_code=401, detail="Unauthorized")

    payload = load_payload(AddProUserRequest, body)

    email = normalize_email(payload.email)
    if not email or not is_valid_email(email):
        raise HTTPException(status_code=400, detail="Invalid email format")

    plan = payload.plan or PLAN_PRO
    if plan not in PLANS:
        raise HTTPException(status_code=400, detail="Invalid plan")

    logger.info(f"Manually adding pro user: email={email}, plan={plan}")

    record = UserRecord(
        email=email,
        is_pro=True,
        plan=plan,
        activated_at=datetime.now(timezone.utc),
        purchase_data={
            "source": "manual",
            "added_by": "admin",
        },
    )
    try:
        response = await store.upsert(USERS_TABLE, record.to_row())
    except StoreError as e:
        logger.error(f"Error adding pro user: {e}")
        raise HTTPException(status_code=500, detail=e.message or "Failed to add user")

    logger.info(f"Pro user added: email={email}")
    return success_response(message="Pro user added successfully", user=response.data)
