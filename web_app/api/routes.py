"""API routes implementation."""

from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from tinylinks.common.headers import get_referrer
from tinylinks.errors import ShortLinkError
from tinylinks.models import ResolveStatus, ShortenRequest as CreateRequest
from tinylinks.statistics import SortKey, StatusFilter, build_report

from ..errors import status_for_error
from ..links import short_url_for
from .schemas import (
    ClickResponse,
    ErrorResponse,
    HealthResponse,
    ResolveResponse,
    ShortenRequest,
    ShortenResponse,
    ShortLinkResponse,
    StatisticsResponse,
    StatisticsSummary,
    URLInfoResponse,
)

router = APIRouter()


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid URL or short code"},
        409: {"model": ErrorResponse, "description": "Short code already exists"},
        500: {"model": ErrorResponse, "description": "Could not generate a short code"},
    },
    summary="Create short URLs",
    description="Shorten up to five URLs at once. Either every URL is created or none is.",
)
async def shorten_urls(request: Request, body: ShortenRequest):
    """Create shortened URLs."""
    registry = request.app.state.registry
    config = request.app.state.config
    telemetry = request.app.state.telemetry

    if len(body.urls) > config.max_urls_per_submission:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(
                error=f"At most {config.max_urls_per_submission} URLs can be shortened at once",
                code="too_many_urls",
                field="urls",
            ).model_dump(),
        )

    telemetry.user_action("Create short URLs", f"{len(body.urls)} URLs")
    try:
        records = await registry.create(
            [
                CreateRequest(
                    original_url=item.url,
                    validity_minutes=item.validity_minutes,
                    custom_short_code=item.custom_code,
                )
                for item in body.urls
            ]
        )
    except ShortLinkError as e:
        return JSONResponse(status_code=status_for_error(e), content=e.to_dict())

    now = registry.clock()
    return ShortenResponse(
        links=[
            ShortLinkResponse.from_record(record, short_url_for(request, record.short_code), now)
            for record in records
        ]
    )


@router.get(
    "/resolve/{short_code}",
    response_model=ResolveResponse,
    responses={
        404: {"model": ResolveResponse, "description": "Short code not found"},
        410: {"model": ResolveResponse, "description": "Short link expired"},
    },
    summary="Resolve a short code",
    description="Resolve a short code and record a click if it is still valid.",
)
async def resolve_short_code(request: Request, short_code: str):
    """Resolve a short code to its destination."""
    resolver = request.app.state.resolver
    config = request.app.state.config

    result = await resolver.resolve(short_code, referrer=get_referrer(request.headers))
    body = ResolveResponse(
        status=result.status.value,
        short_code=short_code,
        url=result.url,
        expires_at=result.expires_at,
        click_count=result.record.click_count if result.record else None,
        countdown_seconds=config.redirect_countdown_seconds if result.is_redirect else None,
    )

    if result.status is ResolveStatus.NOT_FOUND:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=body.model_dump(mode="json"))
    if result.status is ResolveStatus.EXPIRED:
        return JSONResponse(status_code=status.HTTP_410_GONE, content=body.model_dump(mode="json"))
    return body


@router.get(
    "/urls",
    response_model=StatisticsResponse,
    summary="List short URLs",
    description="Totals over every short URL plus a sorted, filtered listing.",
)
async def list_urls(
    request: Request,
    sort: SortKey = Query(SortKey.CREATED, description="created, clicks or expires"),
    status_filter: StatusFilter = Query(StatusFilter.ALL, alias="status", description="all, active or expired"),
):
    """List short URLs with statistics."""
    registry = request.app.state.registry
    now = registry.clock()

    report = build_report(registry.records, now, sort=sort, status=status_filter)
    return StatisticsResponse(
        summary=StatisticsSummary(**report["summary"]),
        sort=sort.value,
        status=status_filter.value,
        links=[
            ShortLinkResponse.from_record(record, short_url_for(request, record.short_code), now)
            for record in report["records"]
        ],
    )


@router.get(
    "/urls/{short_code}",
    response_model=URLInfoResponse,
    responses={
        404: {"model": ErrorResponse, "description": "Short code not found"},
    },
    summary="Get URL information",
    description="Get a short URL with every recorded click. Does not count as a click.",
)
async def get_url_info(request: Request, short_code: str):
    """Get information about a shortened URL."""
    registry = request.app.state.registry

    record = registry.find_by_code(short_code)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Short code '{short_code}' not found",
        )

    link = ShortLinkResponse.from_record(record, short_url_for(request, short_code), registry.clock())
    return URLInfoResponse(
        **link.model_dump(),
        clicks=[ClickResponse.from_click(click) for click in record.clicks],
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service and its record store are healthy.",
)
async def health_check(request: Request):
    """Health check endpoint."""
    store = request.app.state.store
    registry = request.app.state.registry

    store_healthy = await store.health_check()

    return HealthResponse(
        status="healthy" if store_healthy else "degraded",
        store="healthy" if store_healthy else "unhealthy",
        records=len(registry),
        timestamp=datetime.now(timezone.utc),
    )
