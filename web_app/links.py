"""Request helpers shared by the API and web routes."""

from fastapi import Request

from tinylinks.common.headers import build_base_url, get_forwarded_path_prefix


def join_short_url(base_url: str, path_prefix: str, short_code: str) -> str:
    """``base_url`` + optional ``path_prefix`` + ``short_code``, with single slashes between them."""
    parts = [base_url.rstrip("/"), path_prefix.strip("/"), short_code]
    return "/".join(part for part in parts if part)


def path_prefix_from_request(request: Request) -> str:
    """Path prefix from X-Forwarded-Prefix or config. Normalized: leading slash, no trailing."""
    prefix = get_forwarded_path_prefix(dict(request.headers))
    if prefix:
        return prefix
    p = (getattr(request.app.state.config, "path_prefix", "") or "").strip().strip("/")
    return "/" + p if p else ""


def short_url_for(request: Request, short_code: str) -> str:
    """Complete short URL for ``short_code`` as seen by the requesting client."""
    base_url = build_base_url(
        headers=dict(request.headers),
        fallback_base_url=request.app.state.config.base_url,
        request_scheme=request.url.scheme,
        request_host=request.headers.get("host"),
    )
    return join_short_url(base_url, path_prefix_from_request(request), short_code)
