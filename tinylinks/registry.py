"""Registry of short links: creation, lookup and click updates."""

import logging
import uuid
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Set

from .common.timeutil import utc_now
from .common.validators import is_valid_short_code, is_valid_url, is_valid_validity_minutes
from .errors import (
    InvalidShortCodeError,
    InvalidUrlError,
    InvalidValidityError,
    ShortCodeTakenError,
    ShortLinkError,
    StaleRecordError,
)
from .models import ShortenRequest, URLRecord
from .shortcode import ShortCodeAllocator
from .store.base import RecordStoreBase
from .telemetry import NullTelemetry, Telemetry

DEFAULT_VALIDITY_MINUTES = 30

# Paths the web app serves ahead of /{code}; every writer to a served store reserves them
WEB_RESERVED_CODES = ("api", "create", "health", "static", "stats")

ChangeListener = Callable[[List[URLRecord]], Awaitable[None]]

_IMMUTABLE_FIELDS = (
    "short_code",
    "original_url",
    "created_at",
    "expires_at",
    "validity_minutes",
)


class URLRegistry:
    """Owner of every URL record and of short code uniqueness.

    The registry is the only writer of its collection. It changes state
    through three named transitions (``apply_load``, ``apply_create`` and
    ``apply_update``) and notifies subscribed listeners after each one; the
    persistence collaborator subscribes its ``save`` that way.
    """

    def __init__(
        self,
        allocator: Optional[ShortCodeAllocator] = None,
        telemetry: Optional[Telemetry] = None,
        logger: Optional[logging.Logger] = None,
        default_validity_minutes: int = DEFAULT_VALIDITY_MINUTES,
        reserved_codes: Iterable[str] = (),
        clock: Callable[[], datetime] = utc_now,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ):
        """Initialize the registry.

        Args:
            allocator: Random code allocation policy
            telemetry: Telemetry sink for notable events
            logger: Optional logger
            default_validity_minutes: Validity used when a request gives none
            reserved_codes: Codes that may never be assigned (compared case-insensitively)
            clock: Source of the current time
            id_factory: Source of record ids
        """
        if default_validity_minutes <= 0:
            raise ValueError("default_validity_minutes must be positive")

        self.allocator = allocator or ShortCodeAllocator()
        self.telemetry = telemetry or NullTelemetry()
        self.logger = logger or logging.getLogger(__name__)
        self.default_validity_minutes = default_validity_minutes
        self.reserved_codes = frozenset(code.lower() for code in reserved_codes)
        self.clock = clock
        self.id_factory = id_factory

        self._records: List[URLRecord] = []
        self._by_code: Dict[str, int] = {}
        self._by_id: Dict[str, int] = {}
        self._listeners: List[ChangeListener] = []

    @property
    def records(self) -> List[URLRecord]:
        """Snapshot of all records in creation order."""
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def subscribe(self, listener: ChangeListener) -> None:
        """Call ``listener(records)`` after every change to the collection."""
        self._listeners.append(listener)

    async def rehydrate(self, store: RecordStoreBase) -> int:
        """Replace the in-memory collection with what ``store`` holds.

        Returns:
            Number of records loaded
        """
        try:
            records = await store.load()
        except Exception as e:
            self.logger.error(f"Failed to load records, starting empty: {e}")
            self.telemetry.log("error", "state", "Failed to load stored URLs")
            records = []

        self.apply_load(records)
        self.logger.info(f"Rehydrated {len(self._records)} records")
        self.telemetry.log("info", "state", f"Loaded {len(self._records)} URLs from storage")
        return len(self._records)

    async def create(self, requests: Sequence[ShortenRequest]) -> List[URLRecord]:
        """Validate and allocate every request, then commit the whole batch.

        Requests are handled in order and each one sees the codes allocated
        for the requests before it. If any request fails, nothing from the
        batch is inserted.

        Args:
            requests: Creation requests in submission order

        Returns:
            The new records, in request order

        Raises:
            InvalidUrlError: If an original URL is malformed
            InvalidShortCodeError: If a custom code has the wrong format
            ShortCodeTakenError: If a custom code is already in use
            CodeGenerationExhaustedError: If no free random code was found
        """
        self.logger.info(f"Creating {len(requests)} short URLs")
        taken: Set[str] = set(self._by_code)
        pending: List[URLRecord] = []

        try:
            for index, request in enumerate(requests):
                self.logger.debug(f"Processing URL {index + 1}/{len(requests)}")
                record = self._build_record(index, request, taken)
                taken.add(record.short_code)
                pending.append(record)
        except ShortLinkError as e:
            self.logger.warning(f"Rejected creation batch at request {e.index}: {e}")
            self.telemetry.error(e, "create")
            raise

        self.apply_create(pending)
        for record in pending:
            self.logger.info(f"Created short URL: {record.short_code} -> {record.original_url}")
        self.telemetry.log("info", "state", f"Successfully created {len(pending)} short URLs")

        await self._notify()
        return pending

    def find_by_code(self, code: str) -> Optional[URLRecord]:
        """Look a record up by its exact short code. Never mutates."""
        position = self._by_code.get(code)
        if position is None:
            return None
        return self._records[position]

    def find_by_id(self, record_id: str) -> Optional[URLRecord]:
        position = self._by_id.get(record_id)
        if position is None:
            return None
        return self._records[position]

    def is_code_available(self, code: str) -> bool:
        """True if ``code`` is neither stored nor reserved.

        Expired records keep their codes.
        """
        return code not in self._by_code and code.lower() not in self.reserved_codes

    async def update(self, record: URLRecord, expected: Optional[URLRecord] = None) -> None:
        """Replace the stored record that has the same id as ``record``.

        Args:
            record: Replacement record
            expected: When given, the update only succeeds if the stored
                record is still this exact object

        Raises:
            KeyError: If no record has that id
            StaleRecordError: If ``expected`` is no longer the stored record
            ValueError: If an immutable field changed or the click counter
                disagrees with the click list
        """
        self.apply_update(record, expected)
        await self._notify()

    def apply_load(self, records: Sequence[URLRecord]) -> None:
        """Transition: replace the whole collection with ``records``."""
        loaded: List[URLRecord] = []
        by_code: Dict[str, int] = {}
        by_id: Dict[str, int] = {}
        for record in records:
            if record.short_code in by_code or record.id in by_id:
                self.logger.warning(
                    f"Skipping duplicate stored record {record.id} ({record.short_code})"
                )
                continue
            by_code[record.short_code] = len(loaded)
            by_id[record.id] = len(loaded)
            loaded.append(record)

        self._records = loaded
        self._by_code = by_code
        self._by_id = by_id

    def apply_create(self, records: Sequence[URLRecord]) -> None:
        """Transition: append new records. All or none are added.

        Raises:
            ShortCodeTakenError: If a code is already stored or repeated
            ValueError: If an id is already stored or repeated
        """
        codes: Set[str] = set()
        ids: Set[str] = set()
        for index, record in enumerate(records):
            if record.short_code in self._by_code or record.short_code in codes:
                raise ShortCodeTakenError(
                    f"Short code already exists: {record.short_code}", index=index
                )
            if record.id in self._by_id or record.id in ids:
                raise ValueError(f"Record id already exists: {record.id}")
            codes.add(record.short_code)
            ids.add(record.id)

        for record in records:
            self._by_code[record.short_code] = len(self._records)
            self._by_id[record.id] = len(self._records)
            self._records.append(record)

    def apply_update(self, record: URLRecord, expected: Optional[URLRecord] = None) -> None:
        """Transition: swap in a new version of an existing record."""
        position = self._by_id.get(record.id)
        if position is None:
            raise KeyError(f"No record with id {record.id}")

        current = self._records[position]
        if expected is not None and current is not expected:
            raise StaleRecordError(f"Record {record.short_code} changed since it was read")

        for name in _IMMUTABLE_FIELDS:
            if getattr(record, name) != getattr(current, name):
                raise ValueError(f"Field {name} of record {record.id} is immutable")

        if record.click_count != len(record.clicks):
            raise ValueError(
                f"Record {record.short_code} has click_count={record.click_count} "
                f"but {len(record.clicks)} clicks"
            )
        if record.clicks[: len(current.clicks)] != current.clicks:
            raise ValueError(f"Clicks of record {record.short_code} are append-only")

        self._records[position] = record

    def _build_record(self, index: int, request: ShortenRequest, taken: Set[str]) -> URLRecord:
        original_url = (request.original_url or "").strip()
        is_valid, reason = is_valid_url(original_url)
        self.telemetry.validation("URL format", is_valid, reason or original_url)
        if not is_valid:
            raise InvalidUrlError(f"Invalid URL format: {request.original_url!r} ({reason})", index=index)

        validity_minutes = request.validity_minutes
        if not validity_minutes or validity_minutes <= 0:
            validity_minutes = self.default_validity_minutes
        is_valid, reason = is_valid_validity_minutes(validity_minutes)
        if not is_valid:
            raise InvalidValidityError(f"Invalid validity: {request.validity_minutes!r} ({reason})", index=index)

        custom_code = (request.custom_short_code or "").strip()
        if custom_code:
            short_code = self._check_custom_code(index, custom_code, taken)
        else:
            try:
                short_code = self.allocator.allocate(_Unavailable(taken, self.reserved_codes))
            except ShortLinkError as e:
                e.index = index
                raise
            self.logger.debug(f"Generated shortcode: {short_code}")

        created_at = self.clock()
        try:
            expires_at = created_at + timedelta(minutes=validity_minutes)
        except OverflowError:
            raise InvalidValidityError(
                f"Validity of {validity_minutes} minutes ends past the last representable date",
                index=index,
            ) from None
        return URLRecord(
            id=self.id_factory(),
            original_url=original_url,
            short_code=short_code,
            created_at=created_at,
            expires_at=expires_at,
            validity_minutes=validity_minutes,
        )

    def _check_custom_code(self, index: int, code: str, taken: Set[str]) -> str:
        is_valid, reason = is_valid_short_code(code)
        self.telemetry.validation("shortcode format", is_valid, reason or code)
        if not is_valid:
            raise InvalidShortCodeError(f"Invalid short code format: {code} ({reason})", index=index)

        if code.lower() in self.reserved_codes:
            raise InvalidShortCodeError(f"'{code}' is a reserved word and cannot be used", index=index)

        is_unique = code not in taken
        self.telemetry.validation("shortcode uniqueness", is_unique, code)
        if not is_unique:
            raise ShortCodeTakenError(f"Short code already exists: {code}", index=index)

        return code

    async def _notify(self) -> None:
        snapshot = self.records
        for listener in self._listeners:
            try:
                await listener(snapshot)
            except Exception as e:
                self.logger.error(f"Failed to persist records: {e}")
                self.telemetry.log("error", "state", "Failed to save URLs to storage")


class _Unavailable:
    """Membership view over taken and reserved codes for the allocator."""

    def __init__(self, taken: Set[str], reserved: frozenset):
        self.taken = taken
        self.reserved = reserved

    def __contains__(self, code: object) -> bool:
        return code in self.taken or (isinstance(code, str) and code.lower() in self.reserved)
