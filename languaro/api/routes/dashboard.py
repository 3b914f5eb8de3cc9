"""
Private metrics dashboard behind HTTP Basic authentication.
"""
import base64
import logging
from functools import lru_cache
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse
from fastapi.security import HTTPBasicCredentials
from fastapi.security.utils import get_authorization_scheme_param

from languaro.core.config import Settings, settings_dependency
from languaro.core.security import verify_dashboard_credentials

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Dashboard"])

REALM = "Languaro Dashboard"
TEMPLATE_PATH = Path(__file__).resolve().parents[2] / "templates" / "dashboard.html"


def basic_credentials(request: Request) -> Optional[HTTPBasicCredentials]:
    """
    Decode a Basic Authorization header as UTF-8.

    Returns None for a missing, non-Basic or undecodable header so every
    rejection is answered with the same challenge.
    """
    scheme, param = get_authorization_scheme_param(request.headers.get("Authorization"))
    if scheme.lower() != "basic" or not param:
        return None
    try:
        decoded = base64.b64decode(param, validate=True).decode("utf-8")
    except ValueError:
        return None
    username, separator, password = decoded.partition(":")
    if not separator:
        return None
    return HTTPBasicCredentials(username=username, password=password)


CHALLENGE_HEADERS = {
    "WWW-Authenticate": f'Basic realm="{REALM}"',
    "Cache-Control": "no-store, no-cache, must-revalidate",
}

PAGE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
    "X-Robots-Tag": "noindex, nofollow, noarchive",
}


@lru_cache()
def load_dashboard_page() -> str:
    return TEMPLATE_PATH.read_text(encoding="utf-8")


@router.get("/dash", response_class=HTMLResponse)
async def dashboard(
    credentials: Optional[HTTPBasicCredentials] = Depends(basic_credentials),
    settings: Settings = Depends(settings_dependency),
):
    if credentials is None:
        return PlainTextResponse("Authentication required", status_code=401, headers=CHALLENGE_HEADERS)

    if not verify_dashboard_credentials(credentials, settings.hq_user, settings.hq_pass):
        logger.warning("Dashboard login failed")
        return PlainTextResponse("Invalid credentials", status_code=401, headers=CHALLENGE_HEADERS)

    return HTMLResponse(load_dashboard_page(), headers=PAGE_HEADERS)
