"""Validation utilities for short links.

All predicates are pure and never raise; they return ``(is_valid, reason)``
so the form layer can show the reason next to the offending field.
"""

import re
from urllib.parse import urlparse
from typing import Any, Tuple

SHORT_CODE_MIN_LENGTH = 3
SHORT_CODE_MAX_LENGTH = 20
SHORT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9]{3,20}$")

ALLOWED_SCHEMES = ("http", "https")

# 100 years
MAX_VALIDITY_MINUTES = 60 * 24 * 365 * 100


def is_valid_url(url: Any) -> Tuple[bool, str]:
    """Validate a URL.

    Args:
        url: The URL to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not url or not isinstance(url, str) or not url.strip():
        return False, "URL is required"

    try:
        result = urlparse(url.strip())
        # Accessing .port validates the port range
        result.port
    except ValueError as e:
        return False, f"Invalid URL format: {e}"

    if not result.scheme:
        return False, "Please enter a valid URL"

    if result.scheme.lower() not in ALLOWED_SCHEMES:
        return False, "URL must start with http:// or https://"

    if not result.hostname:
        return False, "URL must have a valid domain"

    if any(ch.isspace() or not ch.isprintable() for ch in result.netloc):
        return False, "Domain must not contain spaces or control characters"

    return True, ""


def is_valid_short_code(short_code: Any) -> Tuple[bool, str]:
    """Validate a custom short code against ``^[A-Za-z0-9]{3,20}$``.

    Args:
        short_code: The short code to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not short_code or not isinstance(short_code, str):
        return False, "Short code is required"

    if len(short_code) < SHORT_CODE_MIN_LENGTH:
        return False, f"Short code must be at least {SHORT_CODE_MIN_LENGTH} characters"

    if len(short_code) > SHORT_CODE_MAX_LENGTH:
        return False, f"Short code must be at most {SHORT_CODE_MAX_LENGTH} characters"

    if not SHORT_CODE_PATTERN.fullmatch(short_code):
        return False, "Short code can only contain letters and numbers"

    return True, ""


def is_valid_validity_minutes(value: Any) -> Tuple[bool, str]:
    """Validate a validity window in minutes.

    Args:
        value: Number of minutes the link should stay redirectable

    Returns:
        Tuple of (is_valid, error_message)
    """
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, int):
        return False, "Validity must be a whole number of minutes"

    if value <= 0:
        return False, "Validity must be a positive number"

    if value > MAX_VALIDITY_MINUTES:
        return False, f"Validity must be at most {MAX_VALIDITY_MINUTES} minutes"

    return True, ""
