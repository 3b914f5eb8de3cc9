"""
FastAPI dependencies that build collaborators from the app's settings.

A missing configuration value surfaces as a 500 before the handler runs.
"""
import logging
from typing import Optional

from fastapi import Depends, HTTPException

from languaro.core.config import Settings, settings_dependency
from languaro.core.responses import NO_CACHE_HEADERS
from languaro.services.store_client import StoreClient
from languaro.services.stripe_service import StripeGateway
from languaro.services.telemetry_service import TelemetryClient

logger = logging.getLogger(__name__)


def get_store(settings: Settings = Depends(settings_dependency)) -> StoreClient:
    """Store client for the main Supabase project."""
    if not settings.store_configured:
        logger.error("Supabase environment variables not configured")
        raise HTTPException(status_code=500, detail="Server configuration error")
    return StoreClient(settings.supabase_url, settings.supabase_service_role_key)


def get_licensing_store(settings: Settings = Depends(settings_dependency)) -> StoreClient:
    """Store client for the licensing project (falls back to the main project)."""
    url = settings.licensing_store_url
    key = settings.licensing_store_key
    if not url or not key:
        logger.error("Supabase licensing environment variables not configured")
        raise HTTPException(status_code=500, detail="Supabase not configured")
    return StoreClient(url, key)


def get_gateway(settings: Settings = Depends(settings_dependency)) -> StripeGateway:
    if not settings.stripe_secret_key:
        logger.error("STRIPE_SECRET_KEY not configured")
        raise HTTPException(status_code=500, detail="Stripe not configured")
    return StripeGateway(settings.stripe_secret_key, settings.stripe_webhook_secret)


def get_optional_gateway(settings: Settings = Depends(settings_dependency)) -> Optional[StripeGateway]:
    """Gateway for the webhook, which can still acknowledge events without Stripe access."""
    if not settings.stripe_secret_key and not settings.stripe_webhook_secret:
        return None
    return StripeGateway(settings.stripe_secret_key or "", settings.stripe_webhook_secret)


def get_telemetry_client(settings: Settings = Depends(settings_dependency)) -> TelemetryClient:
    if not settings.telemetry_backend_url:
        logger.error("TELEMETRY_BACKEND_URL not configured")
        raise HTTPException(
            status_code=500,
            detail="TELEMETRY_BACKEND_URL environment variable not configured",
            headers=NO_CACHE_HEADERS,
        )
    return TelemetryClient(settings.telemetry_backend_url, settings.telemetry_read_token)
