"""
Input validation and sanitization utilities.
Strips markup and script triggers from free text and checks contact-form field formats.
"""

import re
from datetime import date, datetime
from typing import Any, Optional


MAX_TEXT_LENGTH = 5000
MAX_EMAIL_LENGTH = 254
MIN_FULL_NAME_LENGTH = 2
MAX_FULL_NAME_LENGTH = 100
MAX_MESSAGE_LENGTH = 2000
MIN_GUEST_COUNT = 1
MAX_GUEST_COUNT = 10000

EARLIEST_EVENT_DATE = date(1900, 1, 1)
LATEST_EVENT_DATE = date(2100, 1, 1)  # exclusive

EVENT_TYPES = ("wedding", "birthday", "corporate", "anniversary", "other")

_ANGLE_BRACKETS = re.compile(r"[<>]")
_JAVASCRIPT_SCHEME = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER = re.compile(r"on\w+\s*=", re.IGNORECASE)

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_PHONE_RE = re.compile(r"^[0-9+\-\s()]{7,20}$")
_DIGITS_RE = re.compile(r"^\d+$")


def sanitize_text(text: Any, max_length: Optional[int] = MAX_TEXT_LENGTH) -> str:
    """
    Remove markup and script triggers from untrusted text.

    Angle brackets, the javascript: scheme and inline event handlers (onclick= and
    friends) are removed, whitespace is trimmed and the result is truncated. Removal
    repeats until the text stops changing, so sanitize_text(sanitize_text(x)) equals
    sanitize_text(x). Never raises; non-string input yields an empty string.

    Args:
        text: Untrusted input
        max_length: Maximum allowed length (None for no limit)

    Returns:
        Sanitized text
    """
    if not isinstance(text, str):
        return ""

    previous = None
    while text != previous:
        previous = text
        text = _ANGLE_BRACKETS.sub("", text)
        text = _JAVASCRIPT_SCHEME.sub("", text)
        text = _EVENT_HANDLER.sub("", text)
        text = text.strip()
        if max_length and len(text) > max_length:
            text = text[:max_length]

    return text


def validate_email(email: str) -> bool:
    """Check email format and length."""
    if not isinstance(email, str):
        return False
    return len(email) <= MAX_EMAIL_LENGTH and bool(_EMAIL_RE.match(email))


def validate_phone(phone: str) -> bool:
    if not isinstance(phone, str):
        return False
    return bool(_PHONE_RE.match(phone))


def parse_event_date(value: str) -> Optional[date]:
    """
    Parse an ISO date (2025-06-14) or datetime (2025-06-14T18:00:00Z).

    Returns:
        The calendar date, or None if the value is unparseable or outside
        [1900-01-01, 2100-01-01)
    """
    if not isinstance(value, str) or not value.strip():
        return None

    value = value.strip()
    try:
        parsed = date.fromisoformat(value)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        except ValueError:
            return None

    if not EARLIEST_EVENT_DATE <= parsed < LATEST_EVENT_DATE:
        return None
    return parsed


def validate_date(value: str) -> bool:
    return parse_event_date(value) is not None


def guest_count_provided(value: Any) -> bool:
    """Empty string and None mean the visitor left the guest count blank."""
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    return True


def validate_guest_count(value: Any) -> bool:
    """Check that a guest count is a whole number between 1 and 10,000."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        count = value
    elif isinstance(value, str) and _DIGITS_RE.match(value.strip()):
        count = int(value.strip())
    else:
        return False
    return MIN_GUEST_COUNT <= count <= MAX_GUEST_COUNT


def validate_event_type(event_type: str) -> bool:
    if not isinstance(event_type, str):
        return False
    return event_type.strip().lower() in EVENT_TYPES
