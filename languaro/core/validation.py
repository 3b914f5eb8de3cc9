"""
Email shape checks shared by every handler that accepts an email.
"""
import re
from typing import Any

EMAIL_REGEX = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: Any) -> bool:
    """Return True iff value looks like local@domain.tld."""
    if not isinstance(value, str):
        return False
    return EMAIL_REGEX.fullmatch(value) is not None


def normalize_email(value: Any) -> str:
    """Trim and lowercase an email; anything that isn't a string becomes ''."""
    if not isinstance(value, str):
        return ""
    return value.strip().lower()
