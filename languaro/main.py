import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from languaro.api.routes import admin, billing_webhook, checkout, dashboard, health, metrics, waitlist
from languaro.core.config import Settings, get_settings
from languaro.core.logging_config import setup_logging
from languaro.core.responses import error_response

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"


def warn_missing_configuration(settings: Settings):
    """Log (never raise) for integrations that will answer 500 until configured."""
    if not settings.store_configured:
        logger.warning("SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY not set - store endpoints disabled")
    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY not set - checkout endpoints disabled")
    if not settings.stripe_webhook_secret:
        logger.warning("STRIPE_WEBHOOK_SECRET not set - webhook signatures will not be verified")
    if not settings.admin_secret:
        logger.warning("ADMIN_SECRET not set - add-pro-user rejects every request")
    if not settings.hq_user or not settings.hq_pass:
        logger.warning("HQ_USER / HQ_PASS not set - dashboard rejects every request")
    if not settings.telemetry_backend_url:
        logger.warning("TELEMETRY_BACKEND_URL not set - metrics proxy disabled")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = app.state.settings
    setup_logging(settings.log_level, settings.log_file)
    warn_missing_configuration(settings)
    logger.info("Languaro site backend started")
    yield


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    # ============================================
    # ✅ FASTAPI APP INIT
    # ============================================

    app = FastAPI(title="Languaro", lifespan=lifespan)
    app.state.settings = settings or get_settings()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app.state.settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type", "Stripe-Signature"],
    )

    # ============================================
    # ✅ ERROR ENVELOPE
    # ============================================

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return error_response(str(exc.detail), status=exc.status_code, headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return error_response("Invalid request", status=400)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
        return error_response("Server error", status=500)

    # ============================================
    # ✅ REGISTER ALL ROUTERS
    # ============================================

    app.include_router(checkout.router)
    app.include_router(billing_webhook.router)
    app.include_router(waitlist.router)
    app.include_router(admin.router)
    app.include_router(metrics.router)
    app.include_router(dashboard.router)
    app.include_router(health.router)
    app.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    return app


app = create_app()
