"""
Funding Request Store Module

Reads and writes funding request records and sequence counters against a
versioned key-value store.
"""

import json
import logging
from typing import Callable

from ..exceptions import DuplicateRequestError, StoreUnavailable
from ..storage.kv_store import KeyValueStore
from .models import FundingRequest

logger = logging.getLogger(__name__)


def sequence_key(local_part: str, date_str: str) -> str:
    """Store key of the per-requester, per-day sequence counter."""
    return f"sequence-{local_part}-{date_str}"


class FundingRequestStore:
    """Store adapter for funding request records."""

    def __init__(self, kv: KeyValueStore, max_update_attempts: int = 5):
        """Initialize the store adapter.

        Args:
            kv: Underlying key-value store
            max_update_attempts: Version conflicts tolerated by update()
        """
        self.kv = kv
        self.max_update_attempts = max_update_attempts

    def create(self, record: FundingRequest) -> FundingRequest:
        """Persist a new record.

        Raises:
            DuplicateRequestError: If a record with the same id exists
        """
        if not self.kv.put_if_absent(record.id, self._serialize(record)):
            raise DuplicateRequestError(record.id)
        logger.info(f"Stored request: {record.id}")
        return record

    def get(self, request_id: str) -> FundingRequest | None:
        """Load a record, or None if it does not exist."""
        stored = self.kv.get(request_id)
        if stored is None:
            return None
        return self._deserialize(request_id, stored.value)

    def update(
        self,
        request_id: str,
        mutator: Callable[[FundingRequest | None], FundingRequest],
    ) -> FundingRequest:
        """Apply a read-modify-write to a record.

        The mutator receives the current record (None if absent) and returns
        the replacement. Its exceptions propagate unchanged. When another
        writer commits first, the record is re-read and the mutator applied
        again to the fresh copy.

        Args:
            request_id: Record id
            mutator: Function computing the new record from the current one

        Returns:
            The record as committed

        Raises:
            StoreUnavailable: If the write keeps losing to concurrent writers
        """
        for attempt in range(1, self.max_update_attempts + 1):
            stored = self.kv.get(request_id)
            current = self._deserialize(request_id, stored.value) if stored else None

            updated = mutator(current)
            if current is None:
                # The mutator accepted a missing record; nothing to swap against
                raise StoreUnavailable(f"Cannot update missing record {request_id}")

            if self.kv.compare_and_set(request_id, stored.version, self._serialize(updated)):
                return updated

            logger.info(f"Concurrent update on {request_id}, retrying (attempt {attempt})")

        raise StoreUnavailable(f"Could not update {request_id} after {self.max_update_attempts} attempts")

    def next_sequence(self, local_part: str, date_str: str) -> int:
        """Atomically increment and return the requester's daily counter."""
        return self.kv.increment(sequence_key(local_part, date_str))

    def _serialize(self, record: FundingRequest) -> str:
        return json.dumps(record.to_dict())

    def _deserialize(self, key: str, value: str) -> FundingRequest | None:
        # Counters share the keyspace; anything but a record reads as absent
        try:
            data = json.loads(value)
        except ValueError:
            data = None
        if not isinstance(data, dict) or "decisionToken" not in data:
            logger.warning(f"Key {key} does not hold a funding request")
            return None
        return FundingRequest.from_dict(data)
