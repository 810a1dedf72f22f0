"""Cache module for memkv."""

from .entry import Entry, Value, ValueKind
from .errors import (
    KeyNotFoundError,
    KVStoreError,
    NotAnIntegerError,
    SnapshotDecodingError,
    SnapshotEncodingError,
    SnapshotError,
)
from .rwlock import RWLock
from .sharded import ShardedKVStore, shard_for_key
from .store import KVStore
from .sweeper import AsyncSweeper, Sweeper

__all__ = [
    "AsyncSweeper",
    "Entry",
    "KVStore",
    "KVStoreError",
    "KeyNotFoundError",
    "NotAnIntegerError",
    "RWLock",
    "ShardedKVStore",
    "SnapshotDecodingError",
    "SnapshotEncodingError",
    "SnapshotError",
    "Sweeper",
    "Value",
    "ValueKind",
    "shard_for_key",
]
