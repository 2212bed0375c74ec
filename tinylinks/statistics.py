"""Sorting, filtering and totals over the record collection."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Sequence, Union

from .models import URLRecord


class SortKey(str, Enum):
    CREATED = "created"  # newest first
    CLICKS = "clicks"  # most clicked first
    EXPIRES = "expires"  # soonest expiry first


class StatusFilter(str, Enum):
    ALL = "all"
    ACTIVE = "active"
    EXPIRED = "expired"


def summarize(records: Sequence[URLRecord], now: datetime) -> Dict[str, int]:
    """Totals shown above the statistics table."""
    active = sum(1 for record in records if record.is_active(now))
    return {
        "total_urls": len(records),
        "active_urls": active,
        "expired_urls": len(records) - active,
        "total_clicks": sum(record.click_count for record in records),
    }


def filter_records(
    records: Sequence[URLRecord],
    status: Union[StatusFilter, str],
    now: datetime,
) -> List[URLRecord]:
    status = StatusFilter(status)
    if status is StatusFilter.ACTIVE:
        return [record for record in records if record.is_active(now)]
    if status is StatusFilter.EXPIRED:
        return [record for record in records if record.is_expired(now)]
    return list(records)


def sort_records(records: Sequence[URLRecord], key: Union[SortKey, str]) -> List[URLRecord]:
    key = SortKey(key)
    if key is SortKey.CLICKS:
        return sorted(records, key=lambda record: record.click_count, reverse=True)
    if key is SortKey.EXPIRES:
        return sorted(records, key=lambda record: record.expires_at)
    return sorted(records, key=lambda record: record.created_at, reverse=True)


def build_report(
    records: Sequence[URLRecord],
    now: datetime,
    sort: Union[SortKey, str] = SortKey.CREATED,
    status: Union[StatusFilter, str] = StatusFilter.ALL,
) -> Dict[str, object]:
    """Summary over all records plus the filtered, sorted listing.

    Raises:
        ValueError: If ``sort`` or ``status`` is not a known option
    """
    return {
        "summary": summarize(records, now),
        "records": sort_records(filter_records(records, status, now), sort),
    }
