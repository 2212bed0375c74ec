"""Header parsing utilities."""

from typing import Dict, Mapping, Optional


def _lower(headers: Mapping[str, str]) -> Dict[str, str]:
    return {k.lower(): v for k, v in headers.items()}


def extract_forwarded_headers(headers: Mapping[str, str]) -> Dict[str, Optional[str]]:
    """Extract X-Forwarded-* headers from request.

    Args:
        headers: Request headers dictionary

    Returns:
        Dictionary with forwarded_proto, forwarded_host, forwarded_for
    """
    headers_lower = _lower(headers)

    return {
        "forwarded_proto": headers_lower.get("x-forwarded-proto"),
        "forwarded_host": headers_lower.get("x-forwarded-host"),
        "forwarded_for": headers_lower.get("x-forwarded-for"),
    }


def build_base_url(
    headers: Mapping[str, str],
    fallback_base_url: str,
    request_scheme: Optional[str] = None,
    request_host: Optional[str] = None,
) -> str:
    """Build base URL from headers or fallback.

    Priority:
    1. X-Forwarded-Proto + X-Forwarded-Host
    2. Request scheme + host
    3. Fallback base URL from config

    Returns:
        Base URL (e.g., https://example.com)
    """
    forwarded = extract_forwarded_headers(headers)

    if forwarded["forwarded_proto"] and forwarded["forwarded_host"]:
        return f"{forwarded['forwarded_proto']}://{forwarded['forwarded_host']}"

    if request_scheme and request_host:
        return f"{request_scheme}://{request_host}"

    return fallback_base_url.rstrip("/")


def get_forwarded_path_prefix(headers: Mapping[str, str]) -> str:
    """Path prefix from X-Forwarded-Prefix, normalized to '/prefix' or ''."""
    value = _lower(headers).get("x-forwarded-prefix")
    if not value:
        return ""
    p = value.strip().strip("/")
    return "/" + p if p else ""


def get_referrer(headers: Mapping[str, str]) -> Optional[str]:
    """Referring page from Referer (or the Referrer misspelling), None when absent."""
    headers_lower = _lower(headers)
    value = headers_lower.get("referer") or headers_lower.get("referrer") or ""
    return value.strip() or None
