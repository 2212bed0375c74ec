"""Tests for the redirect countdown."""

import asyncio

import pytest

from tinylinks.countdown import RedirectCountdown


class TestRedirectCountdown:
    """Test countdown completion and cancellation."""

    async def test_completes(self):
        ticks = []
        countdown = RedirectCountdown(seconds=3, interval=0.01)

        assert await countdown.run(ticks.append)
        assert ticks == [3, 2, 1]

    async def test_zero_seconds_completes_immediately(self):
        assert await RedirectCountdown(seconds=0).run()

    async def test_cancel_midway(self):
        ticks = []
        countdown = RedirectCountdown(seconds=3, interval=0.1)

        task = asyncio.create_task(countdown.run(ticks.append))
        await asyncio.sleep(0.15)
        countdown.cancel()

        assert await task is False
        assert countdown.cancelled
        assert ticks == [3, 2]

    async def test_cancel_before_start(self):
        ticks = []
        countdown = RedirectCountdown(seconds=3, interval=0.01)
        countdown.cancel()

        assert await countdown.run(ticks.append) is False
        assert ticks == []

    def test_negative_seconds(self):
        with pytest.raises(ValueError):
            RedirectCountdown(seconds=-1)
