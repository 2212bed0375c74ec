"""Web interface routes implementation."""

import os
from typing import Dict, List, Optional, Tuple

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from tinylinks.common.headers import get_referrer
from tinylinks.common.validators import is_valid_short_code, is_valid_url, is_valid_validity_minutes
from tinylinks.errors import ShortLinkError
from tinylinks.models import ResolveStatus, ShortenRequest
from tinylinks.statistics import SortKey, StatusFilter, build_report

from ..errors import status_for_error
from ..links import path_prefix_from_request, short_url_for

router = APIRouter()

template_dir = os.path.join(os.path.dirname(__file__), "..", "..", "ux", "web")
templates = Jinja2Templates(directory=template_dir)

_ERROR_FIELDS = {"original_url": "url", "custom_short_code": "code", "validity_minutes": "validity"}


def _blank_entries(count: int) -> List[Dict]:
    return [{"url": "", "validity": "", "code": "", "errors": {}} for _ in range(count)]


def _render(request: Request, name: str, context: Dict, status_code: int = 200) -> HTMLResponse:
    context = {"prefix": path_prefix_from_request(request), **context}
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def _render_form(
    request: Request,
    entries: List[Dict],
    error: Optional[str] = None,
    status_code: int = 200,
) -> HTMLResponse:
    config = request.app.state.config
    return _render(
        request,
        "index.html",
        {
            "entries": entries,
            "error": error,
            "max_urls": config.max_urls_per_submission,
            "default_validity": config.default_validity_minutes,
        },
        status_code=status_code,
    )


def _validate_entry(entry: Dict) -> Tuple[Optional[ShortenRequest], Dict[str, str]]:
    """Per-field checks for one form entry, before anything is allocated."""
    errors: Dict[str, str] = {}

    is_valid, reason = is_valid_url(entry["url"])
    if not is_valid:
        errors["url"] = reason

    validity: Optional[int] = None
    if entry["validity"]:
        try:
            validity = int(entry["validity"])
        except ValueError:
            errors["validity"] = "Validity must be a whole number of minutes"
        else:
            is_valid, reason = is_valid_validity_minutes(validity)
            if not is_valid:
                errors["validity"] = reason

    if entry["code"]:
        is_valid, reason = is_valid_short_code(entry["code"])
        if not is_valid:
            errors["code"] = "Short code must be 3-20 alphanumeric characters"

    if errors:
        return None, errors
    return ShortenRequest(
        original_url=entry["url"],
        validity_minutes=validity,
        custom_short_code=entry["code"] or None,
    ), errors


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def homepage(request: Request):
    """Serve the creation form."""
    return _render_form(request, _blank_entries(request.app.state.config.max_urls_per_submission))


@router.post("/create", response_class=HTMLResponse, include_in_schema=False)
async def create_short_urls_web(request: Request):
    """Handle form submission to create short URLs."""
    registry = request.app.state.registry
    config = request.app.state.config
    telemetry = request.app.state.telemetry
    form = await request.form()

    entries = []
    for i in range(config.max_urls_per_submission):
        entries.append({
            "url": str(form.get(f"url_{i}", "")).strip(),
            "validity": str(form.get(f"validity_{i}", "")).strip(),
            "code": str(form.get(f"code_{i}", "")).strip(),
            "errors": {},
        })

    telemetry.user_action("Submit URL shortener form", f"{len(entries)} forms")

    # Rows without a URL are ignored
    filled = [entry for entry in entries if entry["url"]]
    if not filled:
        telemetry.log("warn", "component", "No valid URLs to shorten")
        return _render_form(request, entries, error="Enter at least one URL to shorten", status_code=400)

    requests = []
    for entry in filled:
        shorten_request, errors = _validate_entry(entry)
        entry["errors"] = errors
        for field, reason in errors.items():
            telemetry.validation(field, False, reason)
        requests.append(shorten_request)

    if any(r is None for r in requests):
        telemetry.log("warn", "component", "Form validation failed")
        return _render_form(request, entries, error="Please fix the highlighted fields", status_code=400)

    try:
        records = await registry.create(requests)
    except ShortLinkError as e:
        if e.index is not None:
            field = _ERROR_FIELDS.get(e.field or "", "url")
            filled[e.index]["errors"][field] = e.message
        return _render_form(request, entries, error=e.message, status_code=status_for_error(e))

    now = registry.clock()
    links = [
        {"record": record, "short_url": short_url_for(request, record.short_code), "expired": record.is_expired(now)}
        for record in records
    ]
    return _render(request, "result.html", {"links": links})


@router.get("/stats", response_class=HTMLResponse, include_in_schema=False)
async def statistics_page(
    request: Request,
    sort: str = Query("created"),
    status_filter: str = Query("all", alias="status"),
):
    """Statistics over every short URL. No pagination."""
    registry = request.app.state.registry

    try:
        sort_key = SortKey(sort)
        status_value = StatusFilter(status_filter)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    now = registry.clock()
    report = build_report(registry.records, now, sort=sort_key, status=status_value)
    rows = [
        {"record": record, "short_url": short_url_for(request, record.short_code), "expired": record.is_expired(now)}
        for record in report["records"]
    ]
    return _render(
        request,
        "stats.html",
        {
            "summary": report["summary"],
            "rows": rows,
            "sort": sort_key.value,
            "status": status_value.value,
            "sort_options": [key.value for key in SortKey],
            "status_options": [value.value for value in StatusFilter],
        },
    )


@router.get("/health", include_in_schema=False)
async def health_check_web(request: Request):
    """Health check endpoint (simple version for load balancers)."""
    if await request.app.state.store.health_check():
        return {"status": "healthy"}
    raise HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Record store unavailable",
    )


@router.get("/{short_code}", response_class=HTMLResponse, include_in_schema=False)
async def redirect_page(request: Request, short_code: str):
    """Resolve a short code and show the countdown page before navigating."""
    resolver = request.app.state.resolver
    config = request.app.state.config

    result = await resolver.resolve(short_code, referrer=get_referrer(request.headers))

    if result.status is ResolveStatus.NOT_FOUND:
        return _render(
            request,
            "error.html",
            {
                "title": "Link Not Found",
                "short_code": short_code,
                "error_message": "This short URL does not exist or has been removed.",
            },
            status_code=status.HTTP_404_NOT_FOUND,
        )

    if result.status is ResolveStatus.EXPIRED:
        expires_at = result.expires_at
        return _render(
            request,
            "error.html",
            {
                "title": "Link Expired",
                "short_code": short_code,
                "error_message": (
                    f"This short URL expired on {expires_at:%Y-%m-%d} at {expires_at:%H:%M:%S} UTC."
                ),
                "expires_at": expires_at,
            },
            status_code=status.HTTP_410_GONE,
        )

    return _render(
        request,
        "redirect.html",
        {
            "short_code": short_code,
            "url": result.url,
            "countdown": config.redirect_countdown_seconds,
        },
    )
