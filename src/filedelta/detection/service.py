"""Staged change detection backed by a shared metadata cache.

``ChangeDetectionService`` answers one question per file: must the caller
treat the file as changed since a recorded snapshot? Checks run from the
cheapest signal to the most expensive and stop at the first conclusive
answer:

1. existence
2. modification time against the caller's baseline
3. cached size/modification time and cached digest
4. a freshly computed digest
5. no baseline at all

Anything that cannot be verified, including I/O failures, is reported as
changed.
"""

from __future__ import annotations

import logging
import os
import re
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, Mapping, Optional

from .cache import MetadataCache
from .diagnostics import DiagnosticSink
from .hashing import HashComputer, PathLike
from .models import CacheStats, FileMetadata, Timestamp, modified_differs

if TYPE_CHECKING:  # pragma: no cover - typing only
    from filedelta.config import FiledeltaConfig

LOGGER = logging.getLogger(__name__)
_HEX_DIGEST = re.compile(r"^[0-9A-Fa-f]+$")


def normalize_hash(value: object) -> Optional[str]:
    """Return ``value`` as an uppercase digest, or None when unusable.

    Empty, whitespace-only, non-string, and non-hexadecimal values all count
    as "no known hash".
    """
    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate or not _HEX_DIGEST.match(candidate):
        return None
    return candidate.upper()


class ChangeDetectionService:
    """Decide whether files changed since a recorded snapshot."""

    def __init__(
        self,
        *,
        hasher: HashComputer | None = None,
        cache: MetadataCache | None = None,
        logger: logging.Logger | None = None,
        max_workers: int | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            hasher: Digest implementation; defaults to a 64 KiB chunked MD5.
            cache: Metadata cache; a fresh empty cache is created when omitted.
            logger: Diagnostic logger; defaults to this module's ``LOGGER``.
            max_workers: Thread count for ``batch_check``; None lets the
                executor pick.
        """
        self._hasher = hasher or HashComputer()
        self._cache = cache if cache is not None else MetadataCache()
        self._diagnostics = DiagnosticSink(logger or LOGGER)
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be at least 1.")
        self._max_workers = max_workers

    @classmethod
    def from_config(
        cls, config: "FiledeltaConfig", *, logger: logging.Logger | None = None
    ) -> "ChangeDetectionService":
        """Build a service from loaded configuration."""
        detection = config.detection
        return cls(
            hasher=HashComputer(chunk_size=detection.chunk_size_bytes),
            logger=logger,
            max_workers=detection.max_workers,
        )

    @property
    def max_workers(self) -> int | None:
        return self._max_workers

    # ------------------------------------------------------------------ #
    # Single-file decision                                               #
    # ------------------------------------------------------------------ #

    def has_changed(
        self,
        path: PathLike,
        known_hash: str | None = None,
        known_modified: Timestamp | None = None,
    ) -> bool:
        """Return True unless the file is positively known to be unchanged.

        Args:
            path: File to check.
            known_hash: Digest recorded at the previous snapshot.
            known_modified: Modification time recorded at the previous
                snapshot: a datetime, POSIX seconds as a float, or
                nanoseconds since the epoch as an int.

        Returns:
            bool: False only when equivalence with the snapshot is
            established; True otherwise, including on any failure.
        """
        key = os.fspath(path)
        try:
            return self._decide(key, normalize_hash(known_hash), known_modified)
        except Exception as exc:  # noqa: BLE001 - unknown means changed
            self._diagnostics.error("Error checking if file has changed: %s", key, exc=exc)
            return True

    def _decide(
        self,
        key: str,
        known_hash: Optional[str],
        known_modified: Timestamp | None,
    ) -> bool:
        if not Path(key).is_file():
            self._diagnostics.warning("File not found for change detection: %s", key)
            return True

        stat = os.stat(key)

        if known_modified is not None and modified_differs(stat, known_modified):
            self._diagnostics.debug("File modification time changed: %s", key)
            return True

        cached = self._cache.get(key)
        if cached is not None:
            if not cached.matches_stat(stat):
                self._diagnostics.debug("File metadata changed (cached): %s", key)
                return True
            if known_hash is not None and cached.hash.upper() == known_hash:
                self._diagnostics.debug("File unchanged (cached hash match): %s", key)
                return False

        if known_hash is not None:
            current_hash = self._hasher.compute(key)
            self._cache.set(key, FileMetadata.from_stat(key, stat, hash=current_hash))
            changed = current_hash.upper() != known_hash
            self._diagnostics.debug("File hash comparison for %s: changed=%s", key, changed)
            return changed

        self._diagnostics.debug("No known hash provided for %s, assuming changed", key)
        return True

    # ------------------------------------------------------------------ #
    # Hashing and snapshots                                              #
    # ------------------------------------------------------------------ #

    def compute_hash(self, path: PathLike) -> str:
        """Return the content digest of ``path``.

        Raises:
            OSError: If the file cannot be opened or read.
        """
        key = os.fspath(path)
        try:
            return self._hasher.compute(key)
        except OSError as exc:
            self._diagnostics.error("Error computing file hash: %s", key, exc=exc)
            raise

    def get_file_metadata(self, path: PathLike) -> FileMetadata:
        """Return a stat-only snapshot of ``path`` with an empty hash.

        Raises:
            OSError: If the file cannot be stat'ed.
        """
        key = os.fspath(path)
        try:
            stat = os.stat(key)
        except OSError as exc:
            self._diagnostics.error("Error getting file metadata: %s", key, exc=exc)
            raise
        return FileMetadata.from_stat(key, stat)

    def snapshot(self, path: PathLike) -> FileMetadata:
        """Stat and hash ``path``, cache the result, and return it.

        The returned record is suitable as a baseline for later checks.

        Raises:
            OSError: If the file cannot be stat'ed or read.
        """
        key = os.fspath(path)
        metadata = self.get_file_metadata(key)
        digest = self.compute_hash(key)
        metadata = metadata.model_copy(update={"hash": digest})
        self._cache.set(key, metadata)
        return metadata

    # ------------------------------------------------------------------ #
    # Batch mode                                                         #
    # ------------------------------------------------------------------ #

    def batch_check(
        self,
        paths: Iterable[PathLike],
        known_metadata: Mapping[str, FileMetadata] | None = None,
    ) -> Dict[str, bool]:
        """Check many files concurrently.

        Args:
            paths: Files to check; duplicates collapse to a single result.
            known_metadata: Optional baseline keyed by path. Paths without an
                entry are checked with no baseline.

        Returns:
            Dict[str, bool]: One changed/unchanged verdict per distinct path,
            identical to calling ``has_changed`` for each path in turn.
        """
        keys = list(dict.fromkeys(os.fspath(path) for path in paths))
        if not keys:
            return {}

        baseline = known_metadata or {}
        results: Dict[str, bool] = {}
        with ThreadPoolExecutor(
            max_workers=self._max_workers, thread_name_prefix="filedelta"
        ) as executor:
            futures = {}
            for key in keys:
                known = baseline.get(key)
                futures[key] = executor.submit(
                    self.has_changed,
                    key,
                    known.hash if known is not None else None,
                    known.last_modified_ns if known is not None else None,
                )
            for key, future in futures.items():
                results[key] = future.result()

        changed = sum(1 for value in results.values() if value)
        self._diagnostics.info(
            "Batch checked %d files: %d changed, %d unchanged",
            len(results),
            changed,
            len(results) - changed,
        )
        return results

    # ------------------------------------------------------------------ #
    # Cache introspection                                                #
    # ------------------------------------------------------------------ #

    def clear_cache(self) -> None:
        """Drop every cached snapshot."""
        self._cache.clear()
        self._diagnostics.info("File metadata cache cleared")

    def cache_stats(self) -> CacheStats:
        """Return the number of cached files and their total size in bytes."""
        return self._cache.stats()


__all__ = ["ChangeDetectionService", "normalize_hash"]
