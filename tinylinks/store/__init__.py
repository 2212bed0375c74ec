"""Durable record stores."""

import logging
from typing import Optional

from .base import RecordStoreBase, decode_records, encode_records
from .json_file import JsonFileRecordStore, StoreLockedError
from .redis_store import DEFAULT_STORAGE_KEY, RedisRecordStore

__all__ = [
    "RecordStoreBase",
    "JsonFileRecordStore",
    "StoreLockedError",
    "RedisRecordStore",
    "encode_records",
    "decode_records",
    "get_record_store",
]


def get_record_store(
    backend: str,
    path: Optional[str] = None,
    redis_url: Optional[str] = None,
    key: str = DEFAULT_STORAGE_KEY,
    logger: Optional[logging.Logger] = None,
) -> RecordStoreBase:
    """Build the store for ``backend`` (``file`` or ``redis``).

    A Redis store still has to be connected with ``await store.connect()``.
    """
    backend_lower = backend.lower()
    if backend_lower == "file":
        if not path:
            raise ValueError("A file path is required for the file store")
        return JsonFileRecordStore(path, logger=logger)
    elif backend_lower == "redis":
        if not redis_url:
            raise ValueError("A Redis URL is required for the redis store")
        return RedisRecordStore(redis_url, key=key, logger=logger)
    raise ValueError(f"Unsupported store backend: {backend}")
