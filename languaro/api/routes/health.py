"""
Health check endpoint for deployment monitoring.
"""
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from languaro.core.config import Settings, settings_dependency

router = APIRouter(prefix="/health", tags=["Health"])


@router.get("")
def health_check(settings: Settings = Depends(settings_dependency)):
    """
    Health check endpoint for deployment monitoring.

    Reports which integrations are configured (never their values).
    """
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "integrations": {
            "stripe": bool(settings.stripe_secret_key),
            "store": settings.store_configured,
            "licensing_store": bool(settings.licensing_store_url and settings.licensing_store_key),
            "telemetry": bool(settings.telemetry_backend_url),
            "admin": bool(settings.admin_secret),
            "dashboard": bool(settings.hq_user and settings.hq_pass),
        },
    }
