"""JSON file record store."""

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..models import URLRecord
from .base import RecordStoreBase, decode_records, encode_records


class StoreLockedError(RuntimeError):
    """The record file is claimed by another live store."""


def _is_running(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class JsonFileRecordStore(RecordStoreBase):
    """Keeps all records in one JSON file, rewritten atomically on save.

    Every save rewrites the whole array from one process's memory, so a
    writer must ``acquire`` the store first. The claim is a ``.lock`` file
    beside the records holding the owner's pid; a second store, in this or
    any other process, is refused until the owner closes or dies.
    """

    def __init__(
        self,
        path: Union[str, Path],
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize file store.

        Args:
            path: JSON file to read and write (parent directories are created)
            logger: Optional logger instance
        """
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self.logger = logger or logging.getLogger(__name__)
        # Writes land in the order save() was called
        self._write_lock = asyncio.Lock()
        self._owns_lock = False

    async def acquire(self) -> None:
        """Claim the record file for this store.

        Raises:
            StoreLockedError: If a live process already holds the claim
        """
        await asyncio.to_thread(self._acquire_sync)
        self.logger.info(f"Acquired {self.lock_path}")

    def _acquire_sync(self) -> None:
        if self._owns_lock:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        for _ in range(2):
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
            except FileExistsError:
                owner = self._lock_owner()
                if owner is not None and _is_running(owner):
                    raise StoreLockedError(f"{self.path} is in use by process {owner}")
                self.logger.warning(f"Removing stale lock {self.lock_path} (owner {owner})")
                try:
                    os.unlink(self.lock_path)
                except FileNotFoundError:
                    pass
                continue

            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(str(os.getpid()))
            self._owns_lock = True
            return

        raise StoreLockedError(f"Could not claim {self.path}")

    def _lock_owner(self) -> Optional[int]:
        try:
            return int(self.lock_path.read_text(encoding="utf-8").strip())
        except (OSError, ValueError):
            return None

    def _release_sync(self) -> None:
        if not self._owns_lock:
            return
        self._owns_lock = False
        try:
            os.unlink(self.lock_path)
        except FileNotFoundError:
            self.logger.warning(f"Lock {self.lock_path} was already removed")

    async def load(self) -> List[URLRecord]:
        return await asyncio.to_thread(self._load_sync)

    def _load_sync(self) -> List[URLRecord]:
        if not self.path.exists():
            self.logger.info(f"No stored records at {self.path}")
            return []

        try:
            raw = self.path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Failed to read {self.path}: {e}")
            return []

        if not raw.strip():
            return []

        try:
            records = decode_records(raw)
        except ValueError as e:
            self.logger.error(f"Ignoring corrupt record file {self.path}: {e}")
            return []

        self.logger.info(f"Loaded {len(records)} records from {self.path}")
        return records

    async def save(self, records: Sequence[URLRecord]) -> None:
        payload = encode_records(records)
        async with self._write_lock:
            await asyncio.to_thread(self._write_sync, payload)
        self.logger.debug(f"Saved {len(records)} records to {self.path}")

    def _write_sync(self, payload: str) -> None:
        if not self._owns_lock:
            owner = self._lock_owner()
            if owner is not None and _is_running(owner):
                raise StoreLockedError(f"{self.path} is in use by process {owner}; not overwriting it")

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    async def health_check(self) -> bool:
        directory = self.path.parent if str(self.path.parent) else Path(".")
        if directory.exists():
            return os.access(directory, os.W_OK)
        return True

    async def close(self) -> None:
        """Release the claim on the record file, if held."""
        await asyncio.to_thread(self._release_sync)
