"""Snapshot models used by the change detection engine."""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import NamedTuple, Union

from pydantic import BaseModel, ConfigDict, Field

Timestamp = Union[datetime, float, int]


def to_utc(value: datetime | float) -> datetime:
    """Normalize a datetime or POSIX timestamp in seconds into an aware UTC datetime.

    Naive datetimes are interpreted as UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    return datetime.fromtimestamp(value, tz=timezone.utc)


def modified_at(stat: os.stat_result) -> datetime:
    """Return the modification time recorded in ``stat`` as aware UTC."""
    return datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)


def modified_differs(stat: os.stat_result, known: Timestamp) -> bool:
    """Return True when ``stat`` disagrees with a recorded modification time.

    Integers are nanoseconds since the epoch and compare exactly against
    ``st_mtime_ns``. Floats are POSIX seconds and compare against
    ``st_mtime``. Datetimes carry microsecond precision only.
    """
    if isinstance(known, datetime):
        return modified_at(stat) != to_utc(known)
    if isinstance(known, int):
        return stat.st_mtime_ns != known
    return stat.st_mtime != known


class FileMetadata(BaseModel):
    """Immutable snapshot of the identity signals for a single file.

    Attributes:
        path: Canonical cache key for the file.
        size: Byte length at snapshot time.
        last_modified: Filesystem modification time at snapshot time.
        last_modified_ns: The same modification time in nanoseconds since the epoch.
        hash: Uppercase hex digest, empty when not yet computed.
        last_checked: When this record was last validated or written.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str
    size: int = Field(ge=0)
    last_modified: datetime
    last_modified_ns: int = Field(ge=0)
    hash: str = ""
    last_checked: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_stat(cls, path: str, stat: os.stat_result, *, hash: str = "") -> "FileMetadata":
        """Build a snapshot from an ``os.stat_result``."""
        return cls(
            path=path,
            size=stat.st_size,
            last_modified=modified_at(stat),
            last_modified_ns=stat.st_mtime_ns,
            hash=hash,
            last_checked=datetime.now(timezone.utc),
        )

    def matches_stat(self, stat: os.stat_result) -> bool:
        """Return True when size and nanosecond modification time agree with ``stat``."""
        return self.size == stat.st_size and self.last_modified_ns == stat.st_mtime_ns


class CacheStats(NamedTuple):
    """Point-in-time counters for the metadata cache."""

    count: int
    total_bytes: int


__all__ = [
    "FileMetadata",
    "CacheStats",
    "Timestamp",
    "to_utc",
    "modified_at",
    "modified_differs",
]
