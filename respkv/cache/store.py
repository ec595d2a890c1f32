"""
Key-Value Store Module

This module implements the connection-local key-value storage.

Expiration is passive: an expired entry is only removed when it is read.
There is no background sweep.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from ..protocol.values import NULL_BULK, Value
from ..rdb.models import Snapshot
from .expiration import (
    NO_EXPIRATION,
    AbsoluteDeadline,
    DurableValue,
    RelativeDeadline,
)

logger = logging.getLogger(__name__)


def wall_clock_ms() -> float:
    """Current wall-clock time in Unix milliseconds."""
    return time.time() * 1000


class KVStore:
    """
    In-memory key-value store with per-key expiration.

    Each connection owns one store, seeded from the shared snapshot
    when the connection opens. Writes are never visible to other
    connections.

    Internal Storage:
        Plain dict: key -> DurableValue

    Attributes:
        wall_clock: Returns wall-clock time in milliseconds
        monotonic_clock: Returns monotonic time in seconds
    """

    def __init__(
            self,
            snapshot: Optional[Snapshot] = None,
            wall_clock: Callable[[], float] = wall_clock_ms,
            monotonic_clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the store.

        Args:
            snapshot: Decoded snapshot to copy the initial dataset from
            wall_clock: Source of wall-clock milliseconds
            monotonic_clock: Source of monotonic seconds
        """
        self.wall_clock = wall_clock
        self.monotonic_clock = monotonic_clock
        self._store: Dict[str, DurableValue] = {}

        if snapshot is not None:
            self.seed(snapshot)

    def seed(self, snapshot: Snapshot) -> int:
        """
        Copy every snapshot record into the store.

        Records from later databases overwrite earlier ones with the
        same key. Snapshot expirations become absolute deadlines.

        Returns:
            Number of records copied
        """
        count = 0
        for entry in snapshot.entries():
            if entry.expiration_ms is not None:
                expiration = AbsoluteDeadline(entry.expiration_ms)
            else:
                expiration = NO_EXPIRATION
            self._store[str(entry.key)] = DurableValue(entry.value.to_wire(), expiration)
            count += 1
        logger.debug(f"Seeded store with {count} snapshot records")
        return count

    def set(self, key: str, value: Value, expiry_ms: Optional[int] = None) -> bool:
        """
        Insert or overwrite a key.

        Args:
            key: The key to store
            value: The wire value to associate with the key
            expiry_ms: Lifetime in milliseconds from now (None = no expiration)

        Returns:
            True on success
        """
        if expiry_ms is not None:
            expiration = RelativeDeadline(
                duration_ms=expiry_ms,
                inserted_at=self.monotonic_clock(),
            )
        else:
            expiration = NO_EXPIRATION

        self._store[key] = DurableValue(value, expiration)
        return True

    def get(self, key: str) -> Value:
        """
        Retrieve the value for a key.

        Returns:
            The stored value, or a Null bulk string if the key is absent
            or expired. Expired keys are removed on the way out.
        """
        entry = self._store.get(key)
        if entry is None:
            return NULL_BULK

        if self._is_expired(entry):
            # Lazy expiration
            self._store.pop(key, None)
            return NULL_BULK

        return entry.value

    def delete(self, key: str) -> bool:
        """Remove a key, returning whether it was present."""
        return self._store.pop(key, None) is not None

    def keys(self) -> List[str]:
        """
        Return every stored key.

        Expired entries that have not been read yet are included.
        """
        return list(self._store)

    def size(self) -> int:
        """
        Get the current number of keys in the store.

        Note: This may include expired keys that haven't been read yet.
        """
        return len(self._store)

    def clear(self) -> None:
        """Remove all keys from the store."""
        self._store.clear()

    def cleanup_expired(self) -> int:
        """
        Remove all expired keys from the store.

        Nothing calls this on a schedule; it exists for explicit sweeps.

        Returns:
            Number of keys removed
        """
        to_delete = [k for k, entry in self._store.items() if self._is_expired(entry)]
        for key in to_delete:
            self._store.pop(key, None)
        return len(to_delete)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the store.

        Returns:
            Dictionary containing:
            - total_keys: Total keys in store
            - expired_keys: Count of expired (but not yet removed) keys
            - active_keys: Count of non-expired keys
        """
        total = len(self._store)
        expired = sum(1 for entry in self._store.values() if self._is_expired(entry))

        return {
            "total_keys": total,
            "expired_keys": expired,
            "active_keys": total - expired,
        }

    def _is_expired(self, entry: DurableValue) -> bool:
        return entry.is_expired(self.wall_clock(), self.monotonic_clock())
