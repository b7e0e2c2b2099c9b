"""Thread-safe in-memory metadata cache."""

from __future__ import annotations

import threading
from typing import Dict, Optional

from .models import CacheStats, FileMetadata


class MetadataCache:
    """Map file paths to their last observed snapshot.

    Every operation takes the lock for a single dictionary access; entries
    are immutable so readers never see a partially updated record.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, FileMetadata] = {}
        self._lock = threading.Lock()

    def get(self, path: str) -> Optional[FileMetadata]:
        """Return the cached snapshot for ``path`` if present."""
        with self._lock:
            return self._entries.get(path)

    def set(self, path: str, metadata: FileMetadata) -> None:
        """Replace the snapshot stored for ``path``."""
        with self._lock:
            self._entries[path] = metadata

    def clear(self) -> None:
        """Remove every cached snapshot."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> CacheStats:
        """Return the entry count and the summed size of cached files."""
        with self._lock:
            return CacheStats(
                count=len(self._entries),
                total_bytes=sum(entry.size for entry in self._entries.values()),
            )

    def __len__(self) -> int:
        """Return the number of cached paths."""
        with self._lock:
            return len(self._entries)

    def __contains__(self, path: object) -> bool:
        """Return True when ``path`` has a cached snapshot."""
        with self._lock:
            return path in self._entries


__all__ = ["MetadataCache"]
