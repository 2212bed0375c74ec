"""Pydantic schemas for API requests and responses."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from tinylinks.common.validators import MAX_VALIDITY_MINUTES
from tinylinks.models import ClickEvent, URLRecord


class ShortenItem(BaseModel):
    """One URL to shorten."""

    url: str = Field(..., description="The URL to shorten", min_length=1)
    validity_minutes: Optional[int] = Field(
        None,
        gt=0,
        le=MAX_VALIDITY_MINUTES,
        description="Minutes the short link stays valid (default 30)",
    )
    custom_code: Optional[str] = Field(None, description="Optional custom short code")


class ShortenRequest(BaseModel):
    """Request to shorten one or more URLs."""

    urls: List[ShortenItem] = Field(..., min_length=1, description="URLs to shorten")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"urls": [{"url": "https://example.com/very/long/path/to/resource"}]},
                {
                    "urls": [
                        {"url": "https://github.com/user/repo", "custom_code": "myrepo"},
                        {"url": "https://example.com/a", "validity_minutes": 120},
                    ]
                },
            ]
        }
    }


class ClickResponse(BaseModel):
    """One recorded click."""

    timestamp: datetime
    source: str
    location: str

    @classmethod
    def from_click(cls, click: ClickEvent) -> "ClickResponse":
        return cls(timestamp=click.timestamp, source=click.source, location=click.location)


class ShortLinkResponse(BaseModel):
    """A short link without its click history."""

    id: str
    short_code: str = Field(..., description="The short code")
    short_url: str = Field(..., description="The complete short URL")
    original_url: str = Field(..., description="The original long URL")
    created_at: datetime = Field(..., description="Creation timestamp")
    expires_at: datetime = Field(..., description="Expiry timestamp")
    validity_minutes: int
    click_count: int
    expired: bool

    @classmethod
    def from_record(cls, record: URLRecord, short_url: str, now: datetime) -> "ShortLinkResponse":
        return cls(
            id=record.id,
            short_code=record.short_code,
            short_url=short_url,
            original_url=record.original_url,
            created_at=record.created_at,
            expires_at=record.expires_at,
            validity_minutes=record.validity_minutes,
            click_count=record.click_count,
            expired=record.is_expired(now),
        )


class ShortenResponse(BaseModel):
    """Response after shortening URLs."""

    links: List[ShortLinkResponse]


class URLInfoResponse(ShortLinkResponse):
    """A short link with every recorded click."""

    clicks: List[ClickResponse]


class ResolveResponse(BaseModel):
    """Outcome of resolving a short code."""

    status: str = Field(..., description="redirect, not_found or expired")
    short_code: str
    url: Optional[str] = None
    expires_at: Optional[datetime] = None
    click_count: Optional[int] = None
    countdown_seconds: Optional[int] = None


class StatisticsSummary(BaseModel):
    total_urls: int
    active_urls: int
    expired_urls: int
    total_clicks: int


class StatisticsResponse(BaseModel):
    """Totals plus the sorted, filtered link listing."""

    summary: StatisticsSummary
    sort: str
    status: str
    links: List[ShortLinkResponse]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    store: str = Field(..., description="Record store status")
    records: int = Field(..., description="Records held in memory")
    timestamp: datetime = Field(..., description="Check timestamp")


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(..., description="Error message")
    code: Optional[str] = Field(None, description="Machine-readable error kind")
    index: Optional[int] = Field(None, description="Position of the failing URL in the request")
    field: Optional[str] = Field(None, description="Field the error applies to")
