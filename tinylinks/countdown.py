"""Cancelable countdown before an automatic redirect."""

import asyncio
from typing import Callable, Optional


class RedirectCountdown:
    """Count down from ``seconds`` to zero unless cancelled first.

    ``run`` calls ``on_tick(remaining)`` once per interval and returns True
    when the countdown completes, False when :meth:`cancel` stopped it.
    """

    def __init__(self, seconds: int = 3, interval: float = 1.0):
        if seconds < 0:
            raise ValueError("seconds must not be negative")
        self.seconds = seconds
        self.interval = interval
        self._cancelled = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()

    async def run(self, on_tick: Optional[Callable[[int], None]] = None) -> bool:
        for remaining in range(self.seconds, 0, -1):
            if self.cancelled:
                return False
            if on_tick:
                on_tick(remaining)
            try:
                await asyncio.wait_for(self._cancelled.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue
            return False
        return not self.cancelled
