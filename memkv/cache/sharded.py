"""
Sharded Store Module

Partitions keys over N independent KVStore shards, each with its own
lock, so writers to different shards do not contend.

Keys are assigned with SHA-256 so the same key always maps to the same
shard, across processes and across snapshot round trips.

Operations that span shards (cross-shard rename/copy, save, load)
take the shard locks in ascending shard order.
"""

import hashlib
import logging
import weakref
from contextlib import ExitStack
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from ..config.settings import settings
from . import snapshot
from .entry import NANOS_PER_SECOND, Duration, Entry, now_ns, to_nanoseconds
from .errors import KeyNotFoundError
from .store import KVStore
from .sweeper import Sweeper

logger = logging.getLogger(__name__)


def shard_for_key(key: str, num_shards: int) -> int:
    """
    Calculate which shard owns a given key.

    Args:
        key: The key to hash
        num_shards: Number of shards

    Returns:
        Shard index in [0, num_shards)
    """
    hash_digest = hashlib.sha256(key.encode('utf-8')).digest()
    # Convert first 8 bytes to int
    hash_int = int.from_bytes(hash_digest[:8], byteorder='big')
    return hash_int % num_shards


class ShardedKVStore:
    """
    KVStore-compatible store split into independently locked shards.

    A single sweeper thread sweeps every shard in turn.

    Attributes:
        num_shards: Number of partitions
        default_ttl: Seconds applied when a write passes ttl=0
        sweep_interval: Seconds between sweeps (<= 0 disables the sweeper)
    """

    def __init__(
            self,
            num_shards: Optional[int] = None,
            default_ttl: Optional[Duration] = None,
            sweep_interval: Optional[Duration] = None,
    ):
        """
        Initialize the shards and start the shared sweeper if enabled.

        Raises:
            ValueError: If num_shards is not positive
        """
        self.num_shards = settings.NUM_SHARDS if num_shards is None else num_shards
        if self.num_shards <= 0:
            raise ValueError("num_shards must be positive")

        self._shards: List[KVStore] = [
            KVStore(default_ttl=default_ttl, sweep_interval=0)
            for _ in range(self.num_shards)
        ]
        self.default_ttl = self._shards[0].default_ttl

        sweep_interval = settings.SWEEP_INTERVAL if sweep_interval is None else sweep_interval
        self.sweep_interval = to_nanoseconds(sweep_interval) / NANOS_PER_SECOND

        self._sweeper: Optional[Sweeper] = None
        if self.sweep_interval > 0:
            self._sweeper = Sweeper(self, self.sweep_interval)
            self._sweeper.start()
            self._finalizer = weakref.finalize(self, self._sweeper.stop, 0)

    def _shard(self, key: str) -> KVStore:
        return self._shards[shard_for_key(key, self.num_shards)]

    def _locked_pair(self, first: int, second: int) -> ExitStack:
        stack = ExitStack()
        for index in sorted({first, second}):
            stack.enter_context(self._shards[index]._lock.write())
        return stack

    # ------------------------------------------------------------------
    # Single-shard operations
    # ------------------------------------------------------------------

    def set(self, key: str, value: Any, ttl: Duration = 0) -> None:
        self._shard(key).set(key, value, ttl)

    def get(self, key: str) -> Tuple[Any, bool]:
        return self._shard(key).get(key)

    def delete(self, key: str) -> None:
        self._shard(key).delete(key)

    def increment(self, key: str, delta: int = 1) -> int:
        return self._shard(key).increment(key, delta)

    def decrement(self, key: str, delta: int = 1) -> int:
        return self._shard(key).decrement(key, delta)

    def expire(self, key: str) -> bool:
        return self._shard(key).expire(key)

    def ttl(self, key: str) -> Optional[float]:
        return self._shard(key).ttl(key)

    # ------------------------------------------------------------------
    # Cross-shard operations
    # ------------------------------------------------------------------

    def rename(self, old_key: str, new_key: str) -> None:
        """Move an entry to new_key, overwriting any existing entry there."""
        src = shard_for_key(old_key, self.num_shards)
        dst = shard_for_key(new_key, self.num_shards)
        with self._locked_pair(src, dst):
            entry = self._shards[src]._entries.pop(old_key, None)
            if entry is None:
                raise KeyNotFoundError(old_key)
            self._shards[dst]._entries[new_key] = entry

    def copy(self, key: str) -> str:
        """Duplicate an entry under key + settings.COPY_SUFFIX."""
        new_key = key + settings.COPY_SUFFIX
        src = shard_for_key(key, self.num_shards)
        dst = shard_for_key(new_key, self.num_shards)
        with self._locked_pair(src, dst):
            entry = self._shards[src]._entries.get(key)
            if entry is None:
                raise KeyNotFoundError(key)
            self._shards[dst]._entries[new_key] = entry.touched(now_ns())
        return new_key

    def exist(self, value: Any) -> bool:
        return any(shard.exist(value) for shard in self._shards)

    def count(self) -> int:
        """Total keys over all shards, including expired ones not yet swept."""
        return sum(shard.count() for shard in self._shards)

    def keys(self) -> List[str]:
        return [key for shard in self._shards for key in shard.keys()]

    def __len__(self) -> int:
        return self.count()

    def flush_all(self) -> None:
        for shard in self._shards:
            shard.flush_all()

    def delete_expired(self) -> int:
        """Sweep every shard; returns the total number of keys removed."""
        return sum(shard.delete_expired() for shard in self._shards)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save_to_file(self, path: Union[str, Path]) -> None:
        """Write one merged snapshot, holding every shard's read lock."""
        with ExitStack() as stack:
            merged: Dict[str, Entry] = {}
            for shard in self._shards:
                stack.enter_context(shard._lock.read())
                merged.update(shard._entries)
            snapshot.write(path, merged)

    def load_from_file(self, path: Union[str, Path]) -> None:
        """Replace every shard's contents with the snapshot at path."""
        entries = snapshot.read(path)
        partitions: List[Dict[str, Entry]] = [{} for _ in self._shards]
        for key, entry in entries.items():
            partitions[shard_for_key(key, self.num_shards)][key] = entry

        with ExitStack() as stack:
            for shard in self._shards:
                stack.enter_context(shard._lock.write())
            for shard, partition in zip(self._shards, partitions):
                shard._entries = partition
        logger.debug(f"Loaded {len(entries)} keys into {self.num_shards} shards")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Stop the shared sweeper. Safe to call more than once."""
        if self._sweeper is not None:
            self._sweeper.stop()

    def __enter__(self) -> "ShardedKVStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def get_stats(self) -> Dict[str, Any]:
        """Aggregate get_stats() over all shards."""
        per_shard = [shard.get_stats() for shard in self._shards]
        return {
            "num_shards": self.num_shards,
            "total_keys": sum(s["total_keys"] for s in per_shard),
            "expired_keys": sum(s["expired_keys"] for s in per_shard),
            "active_keys": sum(s["active_keys"] for s in per_shard),
            "default_ttl": self.default_ttl,
            "sweep_interval": self.sweep_interval,
            "sweeper_running": self._sweeper is not None and self._sweeper.is_running(),
        }
