"""Abstract base class for record stores."""

import json
from abc import ABC, abstractmethod
from typing import List, Sequence

from ..models import URLRecord


def encode_records(records: Sequence[URLRecord]) -> str:
    """Serialize records to the persisted JSON array."""
    return json.dumps([record.to_dict() for record in records], ensure_ascii=False)


def decode_records(raw: str) -> List[URLRecord]:
    """Parse the persisted JSON array.

    Raises:
        ValueError: If the payload is not a list of valid records
    """
    data = json.loads(raw)
    if not isinstance(data, list):
        raise ValueError(f"Expected a JSON array of records, got {type(data).__name__}")
    try:
        return [URLRecord.from_dict(item) for item in data]
    except (KeyError, TypeError, AttributeError) as e:
        raise ValueError(f"Malformed record: {e!r}") from e


class RecordStoreBase(ABC):
    """Durable store the registry is mirrored to.

    ``load`` is called once at startup; ``save`` after every change to the
    collection.
    """

    @abstractmethod
    async def load(self) -> List[URLRecord]:
        """Load all records.

        Returns:
            Records in stored order; an empty list when nothing is stored or
            the stored data cannot be read
        """
        pass

    @abstractmethod
    async def save(self, records: Sequence[URLRecord]) -> None:
        """Replace the stored records with ``records``."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close store connections."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Check if the store is usable.

        Returns:
            True if healthy, False otherwise
        """
        pass
