"""Data models for short links."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from .common.timeutil import parse_iso, to_iso

DIRECT_SOURCE = "direct"
UNKNOWN_LOCATION = "unknown"


@dataclass(frozen=True)
class ClickEvent:
    """A single resolution of a short code."""

    timestamp: datetime
    source: str = DIRECT_SOURCE
    location: str = UNKNOWN_LOCATION

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "timestamp": to_iso(self.timestamp),
            "source": self.source,
            "location": self.location,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClickEvent":
        """Create from dictionary."""
        return cls(
            timestamp=parse_iso(data["timestamp"]),
            source=data.get("source") or DIRECT_SOURCE,
            location=data.get("location") or UNKNOWN_LOCATION,
        )


@dataclass(frozen=True)
class URLRecord:
    """A short code mapped to its original URL, with click analytics.

    Records are immutable; recording a click produces a replacement record
    via :meth:`with_click`.
    """

    id: str
    original_url: str
    short_code: str
    created_at: datetime
    expires_at: datetime
    validity_minutes: int
    click_count: int = 0
    clicks: Tuple[ClickEvent, ...] = field(default_factory=tuple)

    def is_expired(self, now: datetime) -> bool:
        """A record stops redirecting strictly after ``expires_at``."""
        return now > self.expires_at

    def is_active(self, now: datetime) -> bool:
        return not self.is_expired(now)

    def with_click(self, click: ClickEvent) -> "URLRecord":
        """Return a copy with ``click`` appended and the counter bumped."""
        return replace(
            self,
            click_count=self.click_count + 1,
            clicks=self.clicks + (click,),
        )

    @property
    def last_clicked_at(self) -> Optional[datetime]:
        return self.clicks[-1].timestamp if self.clicks else None

    def to_dict(self) -> dict:
        """Convert to the persisted (camelCase) shape."""
        return {
            "id": self.id,
            "originalUrl": self.original_url,
            "shortCode": self.short_code,
            "createdAt": to_iso(self.created_at),
            "expiresAt": to_iso(self.expires_at),
            "validityMinutes": self.validity_minutes,
            "clickCount": self.click_count,
            "clicks": [click.to_dict() for click in self.clicks],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "URLRecord":
        """Create from the persisted shape.

        Raises:
            KeyError: If a required field is missing
            ValueError: If a field has the wrong type or the click counter
                disagrees with the click list
        """
        clicks = tuple(ClickEvent.from_dict(c) for c in data.get("clicks") or [])
        click_count = int(data.get("clickCount", len(clicks)))
        if click_count != len(clicks):
            raise ValueError(
                f"Record {data.get('shortCode')!r} has clickCount={click_count} "
                f"but {len(clicks)} click events"
            )
        return cls(
            id=str(data["id"]),
            original_url=str(data["originalUrl"]),
            short_code=str(data["shortCode"]),
            created_at=parse_iso(data["createdAt"]),
            expires_at=parse_iso(data["expiresAt"]),
            validity_minutes=int(data["validityMinutes"]),
            click_count=click_count,
            clicks=clicks,
        )


@dataclass(frozen=True)
class ShortenRequest:
    """One entry of a creation submission."""

    original_url: str
    validity_minutes: Optional[int] = None
    custom_short_code: Optional[str] = None


class ResolveStatus(str, Enum):
    REDIRECT = "redirect"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"


@dataclass(frozen=True)
class ResolveResult:
    """Outcome of resolving a short code. Not-found and expired are values, not errors."""

    status: ResolveStatus
    short_code: str
    url: Optional[str] = None
    expires_at: Optional[datetime] = None
    record: Optional[URLRecord] = None

    @classmethod
    def redirect(cls, record: URLRecord) -> "ResolveResult":
        return cls(
            status=ResolveStatus.REDIRECT,
            short_code=record.short_code,
            url=record.original_url,
            expires_at=record.expires_at,
            record=record,
        )

    @classmethod
    def not_found(cls, short_code: str) -> "ResolveResult":
        return cls(status=ResolveStatus.NOT_FOUND, short_code=short_code)

    @classmethod
    def expired(cls, record: URLRecord) -> "ResolveResult":
        return cls(
            status=ResolveStatus.EXPIRED,
            short_code=record.short_code,
            expires_at=record.expires_at,
            record=record,
        )

    @property
    def is_redirect(self) -> bool:
        return self.status is ResolveStatus.REDIRECT
