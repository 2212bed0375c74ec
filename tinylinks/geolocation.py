"""Coarse location lookup for click events."""

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from typing import Optional, Sequence

from .models import UNKNOWN_LOCATION


class GeolocationProvider(ABC):
    """Source of a coarse location label."""

    @abstractmethod
    async def current_location(self) -> str:
        """Return a label such as ``"Berlin, DE"``."""


class MockGeolocation(GeolocationProvider):
    """Picks a random city. Stands in for a real lookup service."""

    MOCK_LOCATIONS = (
        "New York, US",
        "London, UK",
        "Tokyo, JP",
        "Sydney, AU",
        "Berlin, DE",
        "Toronto, CA",
        "Mumbai, IN",
        "São Paulo, BR",
    )

    def __init__(
        self,
        locations: Optional[Sequence[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        self.locations = tuple(locations or self.MOCK_LOCATIONS)
        self.rng = rng or random.Random()

    async def current_location(self) -> str:
        return self.rng.choice(self.locations)


async def locate(
    provider: Optional[GeolocationProvider],
    timeout_seconds: float = 2.0,
    logger: Optional[logging.Logger] = None,
) -> str:
    """Ask ``provider`` for a location, falling back to ``"unknown"``.

    Never raises and never waits longer than ``timeout_seconds``.
    """
    if provider is None:
        return UNKNOWN_LOCATION

    logger = logger or logging.getLogger(__name__)
    try:
        location = await asyncio.wait_for(provider.current_location(), timeout=timeout_seconds)
    except asyncio.TimeoutError:
        logger.warning(f"Geolocation timed out after {timeout_seconds}s")
        return UNKNOWN_LOCATION
    except Exception as e:
        logger.warning(f"Geolocation failed: {e}")
        return UNKNOWN_LOCATION

    return location or UNKNOWN_LOCATION
