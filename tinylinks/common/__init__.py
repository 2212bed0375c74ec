"""Common utilities for tinylinks."""

from .validators import is_valid_url, is_valid_short_code, is_valid_validity_minutes
from .headers import extract_forwarded_headers, build_base_url, get_referrer
from .logging_config import setup_logging
from .timeutil import utc_now, to_iso, parse_iso

__all__ = [
    "is_valid_url",
    "is_valid_short_code",
    "is_valid_validity_minutes",
    "extract_forwarded_headers",
    "build_base_url",
    "get_referrer",
    "setup_logging",
    "utc_now",
    "to_iso",
    "parse_iso",
]
