"""
memkv: In-Process Key-Value Store

A thread-safe, in-memory key-value store with per-entry TTL expiration,
a background sweeper and JSON snapshot persistence.
"""

from .cache import (
    AsyncSweeper,
    KeyNotFoundError,
    KVStore,
    KVStoreError,
    NotAnIntegerError,
    ShardedKVStore,
    SnapshotDecodingError,
    SnapshotEncodingError,
    SnapshotError,
    Sweeper,
)

__version__ = "1.0.0"

__all__ = [
    "AsyncSweeper",
    "KVStore",
    "KVStoreError",
    "KeyNotFoundError",
    "NotAnIntegerError",
    "ShardedKVStore",
    "SnapshotDecodingError",
    "SnapshotEncodingError",
    "SnapshotError",
    "Sweeper",
]
