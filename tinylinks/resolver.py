"""Turn short codes into redirect decisions and record clicks."""

import logging
from datetime import datetime
from typing import Callable, Optional

from .common.timeutil import utc_now
from .errors import StaleRecordError
from .geolocation import GeolocationProvider, locate
from .models import DIRECT_SOURCE, ClickEvent, ResolveResult
from .registry import URLRegistry
from .telemetry import NullTelemetry, Telemetry


class URLResolver:
    """Resolve short codes against a registry."""

    def __init__(
        self,
        registry: URLRegistry,
        geolocation: Optional[GeolocationProvider] = None,
        telemetry: Optional[Telemetry] = None,
        logger: Optional[logging.Logger] = None,
        clock: Callable[[], datetime] = utc_now,
        geolocation_timeout_seconds: float = 2.0,
        max_update_attempts: int = 3,
    ):
        """Initialize resolver.

        Args:
            registry: Registry that owns the records
            geolocation: Location source for click events
            telemetry: Telemetry sink
            logger: Optional logger
            clock: Source of the current time
            geolocation_timeout_seconds: Upper bound for one location lookup
            max_update_attempts: Compare-and-swap retries before giving up
        """
        self.registry = registry
        self.geolocation = geolocation
        self.telemetry = telemetry or NullTelemetry()
        self.logger = logger or logging.getLogger(__name__)
        self.clock = clock
        self.geolocation_timeout_seconds = geolocation_timeout_seconds
        self.max_update_attempts = max_update_attempts

    async def resolve(self, code: str, referrer: Optional[str] = None) -> ResolveResult:
        """Resolve ``code`` and record a click when it is still valid.

        An expired hit records nothing. The location is looked up once, before
        the record is read for the update.

        Args:
            code: Short code to resolve
            referrer: Referring page, ``"direct"`` when absent

        Returns:
            Redirect, not-found or expired result

        Raises:
            StaleRecordError: If the record kept changing underneath every attempt
        """
        self.logger.info(f"Handling redirect for shortCode: {code}")
        self.telemetry.user_action("Attempt redirect", code)
        source = (referrer or "").strip() or DIRECT_SOURCE

        result = self._check(code, self.clock())
        if result is not None:
            return result

        location = await locate(
            self.geolocation,
            timeout_seconds=self.geolocation_timeout_seconds,
            logger=self.logger,
        )

        for attempt in range(self.max_update_attempts):
            now = self.clock()
            result = self._check(code, now)
            if result is not None:
                return result

            record = self.registry.find_by_code(code)
            updated = record.with_click(ClickEvent(timestamp=now, source=source, location=location))

            try:
                await self.registry.update(updated, expected=record)
            except StaleRecordError:
                self.logger.debug(f"Record {code} changed during resolve, retrying ({attempt + 1})")
                continue

            self.logger.info(f"Recorded click for {code}, total clicks: {updated.click_count}")
            self.telemetry.user_action("Successful redirect", f"{code} -> {updated.original_url}")
            return ResolveResult.redirect(updated)

        raise StaleRecordError(
            f"Could not record click for {code} after {self.max_update_attempts} attempts"
        )

    def _check(self, code: str, now: datetime) -> Optional[ResolveResult]:
        """Not-found or expired result for ``code``, None when it can be followed."""
        record = self.registry.find_by_code(code)
        if record is None:
            self.logger.warning(f"Short URL not found: {code}")
            self.telemetry.log("warn", "api", f"Short URL not found: {code}")
            return ResolveResult.not_found(code)

        if record.is_expired(now):
            message = f"Short URL expired: {code} (expired at {record.expires_at.isoformat()})"
            self.logger.warning(message)
            self.telemetry.log("warn", "api", message)
            return ResolveResult.expired(record)

        return None
