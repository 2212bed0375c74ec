"""Tests for short code resolution."""

import asyncio
from datetime import timedelta

import pytest

from tinylinks.errors import StaleRecordError
from tinylinks.geolocation import GeolocationProvider, MockGeolocation, locate
from tinylinks.models import ResolveStatus, ShortenRequest
from tinylinks.resolver import URLResolver


class _SlowGeolocation(GeolocationProvider):
    async def current_location(self) -> str:
        await asyncio.sleep(10)
        return "never"


class _BrokenGeolocation(GeolocationProvider):
    async def current_location(self) -> str:
        raise ConnectionError("lookup service down")


class _YieldingGeolocation(GeolocationProvider):
    """Yields to the loop a few times so concurrent resolves interleave."""

    async def current_location(self) -> str:
        for _ in range(3):
            await asyncio.sleep(0)
        return "Tokyo, JP"


class TestResolve:
    """Test resolve outcomes."""

    async def test_create_resolve_expire(self, registry, resolver, clock):
        start = clock()
        record = (await registry.create([ShortenRequest("https://example.com/a", validity_minutes=1)]))[0]
        assert record.expires_at == start + timedelta(seconds=60)

        clock.advance(seconds=30)
        result = await resolver.resolve(record.short_code)

        assert result.status is ResolveStatus.REDIRECT
        assert result.url == "https://example.com/a"
        assert result.record.click_count == 1

        clock.advance(seconds=60)
        result = await resolver.resolve(record.short_code)

        assert result.status is ResolveStatus.EXPIRED
        assert result.expires_at == start + timedelta(seconds=60)
        assert result.url is None

    async def test_expired_does_not_mutate(self, registry, resolver, clock):
        record = (await registry.create([ShortenRequest("https://x.com", validity_minutes=1)]))[0]
        clock.advance(minutes=2)

        await resolver.resolve(record.short_code)
        await resolver.resolve(record.short_code)

        assert registry.find_by_code(record.short_code) is record
        assert record.click_count == 0

    async def test_expiry_boundary_is_inclusive(self, registry, resolver, clock):
        record = (await registry.create([ShortenRequest("https://x.com", validity_minutes=1)]))[0]

        clock.now = record.expires_at
        assert (await resolver.resolve(record.short_code)).is_redirect

        clock.advance(microseconds=1)
        assert (await resolver.resolve(record.short_code)).status is ResolveStatus.EXPIRED

    async def test_not_found(self, resolver, registry):
        result = await resolver.resolve("nothere")

        assert result.status is ResolveStatus.NOT_FOUND
        assert result.short_code == "nothere"
        assert len(registry) == 0

    async def test_click_details(self, registry, resolver, clock):
        await registry.create([ShortenRequest("https://x.com", custom_short_code="clk1")])
        clock.advance(seconds=5)

        await resolver.resolve("clk1", referrer="https://news.ycombinator.com/")
        await resolver.resolve("clk1")
        await resolver.resolve("clk1", referrer="   ")

        record = registry.find_by_code("clk1")
        assert record.click_count == 3
        assert [click.source for click in record.clicks] == [
            "https://news.ycombinator.com/",
            "direct",
            "direct",
        ]
        assert all(click.timestamp == clock() for click in record.clicks)
        assert all(click.location in MockGeolocation.MOCK_LOCATIONS for click in record.clicks)
        assert record.last_clicked_at == clock()

    async def test_lookup_does_not_count(self, registry, resolver):
        await registry.create([ShortenRequest("https://x.com", custom_short_code="look2")])

        registry.find_by_code("look2")
        await resolver.resolve("look2")

        assert registry.find_by_code("look2").click_count == 1


class TestGeolocationFallback:
    """Location failures never fail a resolve."""

    async def test_timeout_gives_unknown(self, registry, clock):
        resolver = URLResolver(registry, geolocation=_SlowGeolocation(), clock=clock, geolocation_timeout_seconds=0.01)
        await registry.create([ShortenRequest("https://x.com", custom_short_code="slow1")])

        result = await resolver.resolve("slow1")

        assert result.is_redirect
        assert result.record.clicks[-1].location == "unknown"

    async def test_failure_gives_unknown(self, registry, clock):
        resolver = URLResolver(registry, geolocation=_BrokenGeolocation(), clock=clock)
        await registry.create([ShortenRequest("https://x.com", custom_short_code="brk1")])

        result = await resolver.resolve("brk1")

        assert result.is_redirect
        assert result.record.clicks[-1].location == "unknown"

    async def test_no_provider(self):
        assert await locate(None) == "unknown"


class TestConcurrency:
    """Interleaved resolves of the same code."""

    async def test_concurrent_resolves_keep_every_click(self, registry, clock):
        resolver = URLResolver(registry, geolocation=_YieldingGeolocation(), clock=clock)
        await registry.create([ShortenRequest("https://x.com", custom_short_code="busy1")])

        results = await asyncio.gather(*(resolver.resolve("busy1") for _ in range(25)))

        assert all(result.is_redirect for result in results)
        record = registry.find_by_code("busy1")
        assert record.click_count == 25
        assert len(record.clicks) == 25

    async def test_concurrent_resolves_are_persisted(self, registry, resolver, store):
        await registry.create([ShortenRequest("https://x.com", custom_short_code="busy2")])

        await asyncio.gather(*(resolver.resolve("busy2") for _ in range(10)))

        stored = {record.short_code: record for record in await store.load()}
        assert stored["busy2"].click_count == 10

    async def test_gives_up_when_always_stale(self, registry, clock):
        await registry.create([ShortenRequest("https://x.com", custom_short_code="race1")])

        async def always_stale(record, expected=None):
            raise StaleRecordError("changed")

        registry.update = always_stale
        resolver = URLResolver(registry, clock=clock, max_update_attempts=3)

        with pytest.raises(StaleRecordError):
            await resolver.resolve("race1")
