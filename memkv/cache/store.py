"""
Key-Value Store Module

This module implements the core in-process key-value store.

- Every entry may carry an absolute expiration time
- Reads treat expired entries as absent (lazy expiration) without
  removing them
- A background sweeper physically reclaims expired entries
- The whole table can be saved to and restored from a JSON snapshot

One reader/writer lock guards the table. Reads take it in shared mode,
anything that mutates the table takes it exclusively.
"""

import logging
import weakref
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..config.settings import settings
from . import snapshot
from .entry import (
    NANOS_PER_SECOND,
    Duration,
    Entry,
    Value,
    expiration_for,
    now_ns,
    to_nanoseconds,
)
from .errors import KeyNotFoundError, NotAnIntegerError
from .rwlock import RWLock
from .sweeper import Sweeper

logger = logging.getLogger(__name__)


class KVStore:
    """
    Thread-safe in-memory key-value store with TTL expiration.

    Features:
    - TTL (Time-To-Live): per-write TTL, falling back to a store default
    - Background sweeper: removes expired keys every sweep_interval seconds
    - Snapshots: save_to_file() / load_from_file()

    Internal Storage:
        Plain dict of key -> Entry. Entries are immutable; every write
        swaps in a new Entry.

    Usage:
        with KVStore(default_ttl=0, sweep_interval=1) as store:
            store.set("a", 5)
            store.increment("a", 3)  # 8

    Attributes:
        default_ttl: Seconds applied when a write passes ttl=0
        sweep_interval: Seconds between sweeps (<= 0 disables the sweeper)
    """

    def __init__(
            self,
            default_ttl: Optional[Duration] = None,
            sweep_interval: Optional[Duration] = None,
    ):
        """
        Initialize the store and start the sweeper if enabled.

        Args:
            default_ttl: Default TTL (default from settings.DEFAULT_TTL)
            sweep_interval: Sweep period (default from settings.SWEEP_INTERVAL)

        Raises:
            TypeError: If either duration is not a number or timedelta
        """
        default_ttl = settings.DEFAULT_TTL if default_ttl is None else default_ttl
        sweep_interval = settings.SWEEP_INTERVAL if sweep_interval is None else sweep_interval

        self._default_ttl_ns = to_nanoseconds(default_ttl)
        self._sweep_interval_ns = to_nanoseconds(sweep_interval)
        self.default_ttl = self._default_ttl_ns / NANOS_PER_SECOND
        self.sweep_interval = self._sweep_interval_ns / NANOS_PER_SECOND

        self._entries: Dict[str, Entry] = {}
        self._lock = RWLock()

        self._sweeper: Optional[Sweeper] = None
        if self._sweep_interval_ns > 0:
            self._sweeper = Sweeper(self, self.sweep_interval)
            self._sweeper.start()
            # Stop the thread if the store is dropped without close()
            self._finalizer = weakref.finalize(self, self._sweeper.stop, 0)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, ttl: Duration = 0) -> None:
        """
        Insert or replace a key.

        Args:
            key: The key to store
            value: Any payload; ints support increment/decrement
            ttl: TTL for this write; 0 uses default_ttl, and a
                 non-positive effective TTL means no expiration
        """
        now = now_ns()
        entry = Entry(
            value=Value.of(value),
            created=now,
            expiration=expiration_for(to_nanoseconds(ttl), self._default_ttl_ns, now),
        )
        with self._lock.write():
            self._entries[key] = entry

    def delete(self, key: str) -> None:
        """
        Remove a key.

        Raises:
            KeyNotFoundError: If the key is not stored
        """
        with self._lock.write():
            if key not in self._entries:
                raise KeyNotFoundError(key)
            del self._entries[key]

    def rename(self, old_key: str, new_key: str) -> None:
        """
        Move an entry to a new key, keeping its value and expiration.

        An existing entry under new_key is overwritten.

        Raises:
            KeyNotFoundError: If old_key is not stored
        """
        with self._lock.write():
            entry = self._entries.pop(old_key, None)
            if entry is None:
                raise KeyNotFoundError(old_key)
            self._entries[new_key] = entry

    def copy(self, key: str) -> str:
        """
        Duplicate an entry under key + settings.COPY_SUFFIX.

        The copy keeps the source expiration and gets a fresh creation
        time. An existing entry under the copy key is overwritten.

        Returns:
            The key of the copy

        Raises:
            KeyNotFoundError: If key is not stored
        """
        new_key = key + settings.COPY_SUFFIX
        with self._lock.write():
            entry = self._entries.get(key)
            if entry is None:
                raise KeyNotFoundError(key)
            self._entries[new_key] = entry.touched(now_ns())
        return new_key

    def increment(self, key: str, delta: int = 1) -> int:
        """
        Add delta to an integer value, keeping its expiration.

        Returns:
            The new value

        Raises:
            KeyNotFoundError: If key is not stored
            NotAnIntegerError: If the stored value is not an integer
            TypeError: If delta is not an int
        """
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise TypeError(f"delta must be an int, got {type(delta).__name__}")

        with self._lock.write():
            entry = self._entries.get(key)
            if entry is None:
                raise KeyNotFoundError(key)
            if not entry.value.is_integer:
                raise NotAnIntegerError(key)
            new_value = entry.value.payload + delta
            self._entries[key] = entry.with_value(Value.of(new_value), now_ns())
        return new_value

    def decrement(self, key: str, delta: int = 1) -> int:
        """Subtract delta from an integer value. See increment()."""
        if isinstance(delta, bool) or not isinstance(delta, int):
            raise TypeError(f"delta must be an int, got {type(delta).__name__}")
        return self.increment(key, -delta)

    def flush_all(self) -> None:
        """Remove all keys from the store."""
        with self._lock.write():
            self._entries.clear()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, key: str) -> Tuple[Any, bool]:
        """
        Retrieve the value for a key.

        Expired entries read as absent but are left in place for the
        sweeper to reclaim.

        Returns:
            (value, True) if found and live, (None, False) otherwise
        """
        with self._lock.read():
            entry = self._entries.get(key)
        if entry is None or entry.expired(now_ns()):
            return None, False
        return entry.value.payload, True

    def exist(self, value: Any) -> bool:
        """
        Check whether any stored entry holds a value equal to value.

        Linear scan over every stored entry, including expired ones
        that have not been swept yet. Payloads only match when their
        types agree, so 1, 1.0 and True are distinct.
        """
        value_type = type(value)
        with self._lock.read():
            for entry in self._entries.values():
                payload = entry.value.payload
                if type(payload) is value_type and payload == value:
                    return True
        return False

    def expire(self, key: str) -> bool:
        """True if a get() on key would currently miss."""
        with self._lock.read():
            entry = self._entries.get(key)
        return entry is None or entry.expired(now_ns())

    def ttl(self, key: str) -> Optional[float]:
        """
        Get the remaining lifetime of a key in seconds.

        Returns:
            Seconds left, or None if the key never expires

        Raises:
            KeyNotFoundError: If key is absent or expired
        """
        with self._lock.read():
            entry = self._entries.get(key)
        now = now_ns()
        if entry is None or entry.expired(now):
            raise KeyNotFoundError(key)
        if not entry.expiration:
            return None
        return max(entry.expiration - now, 0) / NANOS_PER_SECOND

    def count(self) -> int:
        """
        Get the number of stored keys.

        Note: This includes expired keys that haven't been swept yet.
        """
        with self._lock.read():
            return len(self._entries)

    def keys(self) -> List[str]:
        """Get all stored keys, including expired ones not yet swept."""
        with self._lock.read():
            return list(self._entries)

    def __len__(self) -> int:
        return self.count()

    # ------------------------------------------------------------------
    # Expiration
    # ------------------------------------------------------------------

    def delete_expired(self) -> int:
        """
        Remove all expired keys from the store (active expiration).

        Expired keys are collected under the read lock and removed under
        the write lock. Each key is checked again before removal so an
        entry rewritten in between is kept.

        Returns:
            Number of keys removed
        """
        now = now_ns()
        with self._lock.read():
            candidates = [k for k, entry in self._entries.items() if entry.expired(now)]
        if not candidates:
            return 0

        removed = 0
        with self._lock.write():
            for key in candidates:
                entry = self._entries.get(key)
                if entry is not None and entry.expired(now):
                    del self._entries[key]
                    removed += 1
        return removed

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_to_file(self, path: Union[str, Path]) -> None:
        """
        Write a point-in-time snapshot of every entry to path.

        The read lock is held for the whole encode and write.

        Raises:
            SnapshotEncodingError: If a value is not JSON serializable
            OSError: If the file cannot be written
        """
        with self._lock.read():
            snapshot.write(path, self._entries)

    def load_from_file(self, path: Union[str, Path]) -> None:
        """
        Replace the whole table with the snapshot stored at path.

        The file is decoded before the lock is taken; on any failure
        the current contents are left untouched.

        Raises:
            SnapshotDecodingError: If the file is malformed
            OSError: If the file cannot be read
        """
        entries = snapshot.read(path)
        with self._lock.write():
            self._entries = entries
        logger.debug(f"Replaced store contents with {len(entries)} keys")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop the background sweeper. Safe to call more than once."""
        if self._sweeper is not None:
            self._sweeper.stop()
            logger.debug("Store closed")

    def __enter__(self) -> "KVStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def get_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the store.

        Returns:
            Dictionary containing:
            - total_keys: Total keys in store
            - expired_keys: Count of expired (but not yet swept) keys
            - active_keys: Count of non-expired keys
            - default_ttl: Default TTL in seconds
            - sweep_interval: Sweep period in seconds
            - sweeper_running: Whether the background sweeper is alive
        """
        now = now_ns()
        with self._lock.read():
            total = len(self._entries)
            expired = sum(1 for entry in self._entries.values() if entry.expired(now))

        return {
            "total_keys": total,
            "expired_keys": expired,
            "active_keys": total - expired,
            "default_ttl": self.default_ttl,
            "sweep_interval": self.sweep_interval,
            "sweeper_running": self._sweeper is not None and self._sweeper.is_running(),
        }
