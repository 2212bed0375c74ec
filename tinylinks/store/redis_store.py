"""Redis record store."""

import asyncio
import logging
from typing import List, Optional, Sequence

import redis.asyncio as redis

from ..models import URLRecord
from .base import RecordStoreBase, decode_records, encode_records

DEFAULT_STORAGE_KEY = "shortenedUrls"


class RedisRecordStore(RecordStoreBase):
    """Keeps the record array under a single Redis key."""

    def __init__(
        self,
        redis_url: str,
        key: str = DEFAULT_STORAGE_KEY,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis store.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            key: Key the record array is stored under
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.key = key
        self.logger = logger or logging.getLogger(__name__)
        self.client: Optional[redis.Redis] = None
        # Writes land in the order save() was called
        self._write_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Connect to Redis. A failed connection leaves the store unusable, not fatal."""
        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except Exception as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self.client = None

    async def load(self) -> List[URLRecord]:
        if not self.client:
            self.logger.warning("Redis store not connected; starting empty")
            return []

        try:
            raw = await self.client.get(self.key)
        except Exception as e:
            self.logger.error(f"Redis get error: {e}")
            return []

        if not raw:
            return []

        try:
            records = decode_records(raw)
        except ValueError as e:
            self.logger.error(f"Ignoring corrupt records under {self.key!r}: {e}")
            return []

        self.logger.info(f"Loaded {len(records)} records from Redis key {self.key!r}")
        return records

    async def save(self, records: Sequence[URLRecord]) -> None:
        if not self.client:
            self.logger.warning("Redis store not connected; records kept in memory only")
            return

        payload = encode_records(records)
        try:
            async with self._write_lock:
                await self.client.set(self.key, payload)
            self.logger.debug(f"Saved {len(records)} records to Redis key {self.key!r}")
        except Exception as e:
            self.logger.error(f"Redis set error: {e}")

    async def health_check(self) -> bool:
        if not self.client:
            return False
        try:
            await self.client.ping()
            return True
        except Exception:
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.client = None
            self.logger.info("Redis connection closed")
