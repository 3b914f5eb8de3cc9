"""
Shared-secret and HTTP Basic credential checks.

Both checks fail closed: when nothing is configured, nothing is accepted.
"""
import logging
import secrets
from typing import Optional

from fastapi.security import HTTPBasicCredentials

logger = logging.getLogger(__name__)


def _matches(supplied: Optional[str], expected: Optional[str]) -> bool:
    if not expected or not isinstance(supplied, str):
        return False
    return secrets.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def verify_admin_secret(supplied: Optional[str], admin_secret: Optional[str]) -> bool:
    """
    Check a request's shared secret against the configured admin secret.

    Args:
        supplied: Secret sent by the caller (may be missing)
        admin_secret: Configured ADMIN_SECRET (None when unset)

    Returns:
        True only when a secret is configured and the supplied one matches it
    """
    if not admin_secret:
        logger.warning("ADMIN_SECRET not configured - admin endpoints are locked")
        return False
    return _matches(supplied, admin_secret)


def verify_dashboard_credentials(
    credentials: HTTPBasicCredentials,
    username: Optional[str],
    password: Optional[str],
) -> bool:
    """Check HTTP Basic credentials against HQ_USER/HQ_PASS."""
    if not username or not password:
        logger.warning("HQ_USER/HQ_PASS not configured - dashboard is locked")
        return False
    # Both comparisons always run
    user_ok = _matches(credentials.username, username)
    pass_ok = _matches(credentials.password, password)
    return user_ok and pass_ok
