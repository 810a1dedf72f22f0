"""
Store Errors

All errors raised by memkv stores derive from KVStoreError. Each also
derives from the closest builtin so callers can catch either.
"""


class KVStoreError(Exception):
    """Base class for memkv errors."""


class KeyNotFoundError(KVStoreError, KeyError):
    """Raised when an operation targets a key that is not stored."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"key not found: {self.key!r}"


class NotAnIntegerError(KVStoreError, TypeError):
    """Raised when increment/decrement targets a non-integer value."""

    def __init__(self, key: str):
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"value is not an integer: {self.key!r}"


class SnapshotError(KVStoreError):
    """Base class for snapshot encode/decode failures."""


class SnapshotEncodingError(SnapshotError, ValueError):
    """The store contents could not be serialized."""


class SnapshotDecodingError(SnapshotError, ValueError):
    """A snapshot file is malformed."""
