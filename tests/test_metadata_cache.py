"""Tests for the thread-safe metadata cache."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from filedelta.detection import CacheStats, FileMetadata, MetadataCache


def _record(path: str, size: int = 10) -> FileMetadata:
    """Return a snapshot record with fixed timestamps."""
    stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return FileMetadata(
        path=path,
        size=size,
        last_modified=stamp,
        last_modified_ns=int(stamp.timestamp()) * 1_000_000_000,
        hash="ABC",
        last_checked=stamp,
    )


def test_get_set_and_clear() -> None:
    cache = MetadataCache()

    assert cache.get("a") is None

    cache.set("a", _record("a", size=3))
    cache.set("b", _record("b", size=4))

    assert cache.get("a") == _record("a", size=3)
    assert "b" in cache
    assert len(cache) == 2
    assert cache.stats() == CacheStats(count=2, total_bytes=7)

    cache.clear()

    assert cache.stats() == CacheStats(count=0, total_bytes=0)
    assert cache.get("a") is None


def test_set_replaces_existing_entry() -> None:
    cache = MetadataCache()
    cache.set("a", _record("a", size=3))
    cache.set("a", _record("a", size=9))

    assert cache.stats() == CacheStats(count=1, total_bytes=9)


def test_file_metadata_is_immutable() -> None:
    record = _record("a")

    with pytest.raises(ValidationError):
        record.size = 99  # type: ignore[misc]

    updated = record.model_copy(update={"hash": "DEF"})
    assert record.hash == "ABC"
    assert updated.hash == "DEF"


def test_file_metadata_rejects_negative_size() -> None:
    with pytest.raises(ValidationError):
        _record("a", size=-1)


def test_stats_never_observe_torn_state() -> None:
    cache = MetadataCache()
    stop = threading.Event()
    observed: list[CacheStats] = []

    def writer(offset: int) -> None:
        for index in range(500):
            key = f"{offset}-{index}"
            cache.set(key, _record(key, size=10))
            if index % 50 == 0:
                cache.clear()

    def reader() -> None:
        while not stop.is_set():
            observed.append(cache.stats())

    readers = [threading.Thread(target=reader) for _ in range(2)]
    writers = [threading.Thread(target=writer, args=(offset,)) for offset in range(4)]
    for thread in readers + writers:
        thread.start()
    for thread in writers:
        thread.join()
    stop.set()
    for thread in readers:
        thread.join()

    assert observed
    assert all(stats.total_bytes == stats.count * 10 for stats in observed)
