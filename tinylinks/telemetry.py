"""Fire-and-forget telemetry sink.

``emit`` never raises and never blocks the caller: remote delivery runs as a
background task bounded by a timeout, and any failure falls back to a local
log line.
"""

import asyncio
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional, Set, Union

import aiohttp
from aiohttp import ClientTimeout

from .common.timeutil import to_iso, utc_now

LOG_LEVELS = ("debug", "info", "warn", "error", "fatal")
LOG_PACKAGES = (
    "api",
    "component",
    "hook",
    "page",
    "state",
    "style",
    "auth",
    "config",
    "middleware",
    "utils",
)

_LOGGING_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
}


class Telemetry(ABC):
    """Telemetry collaborator with a no-throw contract."""

    def __init__(self, stack: str = "backend", logger: Optional[logging.Logger] = None):
        self.stack = stack
        self.logger = logger or logging.getLogger(__name__)

    @abstractmethod
    def emit(self, stack: str, level: str, category: str, message: str) -> None:
        """Record one event. Must return promptly and must not raise."""

    async def aclose(self) -> None:
        """Flush and release resources."""

    def log(self, level: str, category: str, message: str) -> None:
        self.emit(self.stack, level, category, message)

    def user_action(self, action: str, details: Optional[str] = None) -> None:
        suffix = f" - {details}" if details else ""
        self.log("info", "page", f"User action: {action}{suffix}")

    def error(self, error: Union[BaseException, str], context: str) -> None:
        self.log("error", "api", f"Error in {context}: {error}")

    def validation(self, field: str, is_valid: bool, reason: Optional[str] = None) -> None:
        level = "debug" if is_valid else "warn"
        outcome = "passed" if is_valid else "failed"
        suffix = f": {reason}" if reason else ""
        self.log(level, "utils", f"Validation {outcome} for {field}{suffix}")

    def _local(self, level: str, category: str, message: str) -> None:
        self.logger.log(
            _LOGGING_LEVELS.get(level, logging.INFO),
            f"[{level.upper()}] {category}: {message}",
        )


class NullTelemetry(Telemetry):
    """Discards every event."""

    def emit(self, stack: str, level: str, category: str, message: str) -> None:
        return None


class RemoteTelemetry(Telemetry):
    """POST events as JSON to a remote log endpoint."""

    def __init__(
        self,
        endpoint: str,
        token: Optional[str] = None,
        stack: str = "backend",
        timeout_seconds: float = 5.0,
        logger: Optional[logging.Logger] = None,
        session_id: Optional[str] = None,
    ):
        """Initialize remote telemetry.

        Args:
            endpoint: URL that accepts log events
            token: Optional bearer token
            stack: Stack name sent with every event
            timeout_seconds: Upper bound for one delivery
            logger: Logger used for the local fallback
            session_id: Identifier shared by all events of this process
        """
        super().__init__(stack=stack, logger=logger)
        self.endpoint = endpoint
        self.token = token
        self.timeout_seconds = timeout_seconds
        self.session_id = session_id or str(uuid.uuid4())
        self._session: Optional[aiohttp.ClientSession] = None
        self._pending: Set[asyncio.Task] = set()

    def emit(self, stack: str, level: str, category: str, message: str) -> None:
        if level not in LOG_LEVELS or category not in LOG_PACKAGES:
            self.logger.warning(f"Dropping telemetry event with level={level!r} package={category!r}")
            self._local(level, category, message)
            return

        payload = {
            "stack": stack,
            "level": level,
            "package": category,
            "message": message,
            "timestamp": to_iso(utc_now()),
            "sessionId": self.session_id,
        }

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No event loop to deliver on
            self._local(level, category, message)
            return

        task = loop.create_task(self._send(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {"Accept": "application/json"}
            if self.token:
                headers["Authorization"] = f"Bearer {self.token}"
            self._session = aiohttp.ClientSession(
                timeout=ClientTimeout(total=self.timeout_seconds),
                headers=headers,
            )
        return self._session

    async def _send(self, payload: dict) -> None:
        level, category, message = payload["level"], payload["package"], payload["message"]
        try:
            session = await self._get_session()
            async with session.post(self.endpoint, json=payload) as response:
                if response.status >= 400:
                    self.logger.warning(f"Logging API returned {response.status}: {response.reason}")
                    self._local(level, category, message)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.logger.debug(f"Logging API unavailable, using local fallback: {e}")
            self._local(level, category, message)
        except Exception as e:
            self.logger.debug(f"Unexpected telemetry failure: {e}")
            self._local(level, category, message)

    async def aclose(self) -> None:
        """Give in-flight events a bounded grace period, then close the session."""
        if self._pending:
            await asyncio.wait(set(self._pending), timeout=self.timeout_seconds)
        leftover = list(self._pending)
        for task in leftover:
            task.cancel()
        if leftover:
            await asyncio.gather(*leftover, return_exceptions=True)
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
