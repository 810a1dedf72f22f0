"""
Snapshot Module

Encodes and decodes the full entry table as a JSON document:

    {
      "<key>": {
        "value": <payload>,
        "created": "2026-01-02T03:04:05.123456+00:00",
        "expiration": 1767323045123456789
      },
      ...
    }

"expiration" is an absolute time in nanoseconds, 0 meaning never.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Union

from .entry import NANOS_PER_SECOND, NEVER, Entry, Value
from .errors import SnapshotDecodingError, SnapshotEncodingError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

_FIELDS = ("value", "created", "expiration")


def format_created(created: int) -> str:
    """Render a nanosecond timestamp as an RFC 3339 UTC string."""
    seconds, nanos = divmod(created, NANOS_PER_SECOND)
    moment = datetime.fromtimestamp(seconds, tz=timezone.utc)
    return moment.replace(microsecond=nanos // 1_000).isoformat()


def parse_created(text: str) -> int:
    """Parse an RFC 3339 timestamp back into nanoseconds."""
    moment = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    whole = int(moment.replace(microsecond=0).timestamp())
    return whole * NANOS_PER_SECOND + moment.microsecond * 1_000


def encode(entries: Dict[str, Entry]) -> str:
    """
    Serialize an entry table to JSON text.

    Raises:
        SnapshotEncodingError: If a payload is not JSON serializable
    """
    document = {
        key: {
            "value": entry.value.payload,
            "created": format_created(entry.created),
            "expiration": entry.expiration,
        }
        for key, entry in entries.items()
    }
    try:
        return json.dumps(document)
    except (TypeError, ValueError) as exc:
        raise SnapshotEncodingError(f"cannot encode snapshot: {exc}") from exc


def decode(text: str) -> Dict[str, Entry]:
    """
    Parse JSON text into a fresh entry table.

    Raises:
        SnapshotDecodingError: On malformed JSON or malformed records
    """
    try:
        document = json.loads(text)
    except ValueError as exc:
        raise SnapshotDecodingError(f"malformed snapshot: {exc}") from exc

    if not isinstance(document, dict):
        raise SnapshotDecodingError("snapshot root must be an object")

    entries: Dict[str, Entry] = {}
    for key, record in document.items():
        entries[key] = _decode_record(key, record)
    return entries


def _decode_record(key: str, record: Any) -> Entry:
    if not isinstance(record, dict) or any(field not in record for field in _FIELDS):
        raise SnapshotDecodingError(f"malformed record for key {key!r}")

    expiration = record["expiration"]
    if isinstance(expiration, bool) or not isinstance(expiration, int):
        raise SnapshotDecodingError(f"expiration for key {key!r} must be an integer")

    created = record["created"]
    if not isinstance(created, str):
        raise SnapshotDecodingError(f"created for key {key!r} must be a timestamp string")
    try:
        created_ns = parse_created(created)
    except ValueError as exc:
        raise SnapshotDecodingError(f"bad created timestamp for key {key!r}: {exc}") from exc

    return Entry(
        value=Value.of(record["value"]),
        created=created_ns,
        expiration=expiration if expiration > 0 else NEVER,
    )


def write(path: PathLike, entries: Dict[str, Entry]) -> None:
    """Encode entries and write them to path, truncating any existing file."""
    text = encode(entries)
    with open(path, "w", encoding="utf-8") as fh:
        fh.write(text)
    logger.info(f"Saved snapshot of {len(entries)} keys to {path}")


def read(path: PathLike) -> Dict[str, Entry]:
    """Read and decode the snapshot stored at path."""
    with open(path, "r", encoding="utf-8") as fh:
        text = fh.read()
    entries = decode(text)
    logger.info(f"Loaded snapshot of {len(entries)} keys from {path}")
    return entries
