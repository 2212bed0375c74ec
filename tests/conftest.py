"""Pytest configuration and fixtures."""

import random
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, List, Tuple

import pytest
from httpx import ASGITransport, AsyncClient

from config import Config
from tinylinks.common.logging_config import setup_logging
from tinylinks.geolocation import MockGeolocation
from tinylinks.registry import WEB_RESERVED_CODES, URLRegistry
from tinylinks.resolver import URLResolver
from tinylinks.shortcode import ShortCodeAllocator, ShortCodeGenerator
from tinylinks.store import JsonFileRecordStore
from tinylinks.telemetry import Telemetry
from web_app import create_app

T0 = datetime(2026, 1, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class RecordingTelemetry(Telemetry):
    """Keeps every event in memory."""

    def __init__(self):
        super().__init__(stack="backend")
        self.events: List[Tuple[str, str, str, str]] = []

    def emit(self, stack: str, level: str, category: str, message: str) -> None:
        self.events.append((stack, level, category, message))

    def messages(self, level: str = None) -> List[str]:
        return [message for _, lvl, _, message in self.events if level is None or lvl == level]


@pytest.fixture
def logger():
    """Create test logger."""
    return setup_logging(level="DEBUG")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def telemetry():
    return RecordingTelemetry()


@pytest.fixture
def allocator():
    """Allocator with a seeded random source."""
    return ShortCodeAllocator(generator=ShortCodeGenerator(rng=random.Random(1234)))


@pytest.fixture
def store_path(tmp_path):
    return tmp_path / "data" / "shortened_urls.json"


@pytest.fixture
def store(store_path, logger):
    return JsonFileRecordStore(store_path, logger=logger)


@pytest.fixture
def registry(allocator, telemetry, logger, clock, store) -> URLRegistry:
    """Registry mirrored to the temp-file store."""
    registry = URLRegistry(
        allocator=allocator,
        telemetry=telemetry,
        logger=logger,
        clock=clock,
    )
    registry.subscribe(store.save)
    return registry


@pytest.fixture
def geolocation():
    return MockGeolocation(rng=random.Random(7))


@pytest.fixture
def resolver(registry, geolocation, telemetry, logger, clock) -> URLResolver:
    return URLResolver(
        registry,
        geolocation=geolocation,
        telemetry=telemetry,
        logger=logger,
        clock=clock,
    )


@pytest.fixture
def sample_urls():
    """Sample URLs for testing."""
    return [
        "https://example.com/test",
        "https://github.com/user/repo",
        "https://stackoverflow.com/questions/123456",
    ]


@pytest.fixture
def config(store_path):
    return Config(
        base_url="http://testserver",
        store_path=str(store_path),
        telemetry_url=None,
    )


@pytest.fixture
def app(config, allocator, telemetry, logger, clock, store, geolocation):
    """Create test FastAPI app with the web reserved words applied."""
    registry = URLRegistry(
        allocator=allocator,
        telemetry=telemetry,
        logger=logger,
        clock=clock,
        reserved_codes=WEB_RESERVED_CODES,
    )
    registry.subscribe(store.save)
    resolver = URLResolver(
        registry,
        geolocation=geolocation,
        telemetry=telemetry,
        logger=logger,
        clock=clock,
    )
    return create_app(
        registry=registry,
        resolver=resolver,
        store=store,
        telemetry=telemetry,
        config=config,
    )


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
