"""Tests for the staged change detection decision."""

from __future__ import annotations

import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest import mock

import pytest

from filedelta.detection import ChangeDetectionService, HashComputer, normalize_hash


def _write(path: Path, content: str) -> Path:
    path.write_text(content, encoding="utf-8")
    return path


def _mtime(path: Path) -> datetime:
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def _bump_mtime(path: Path, seconds: int = 10) -> None:
    """Move the modification time forward so the change is observable."""
    stat = path.stat()
    os.utime(path, ns=(stat.st_atime_ns, stat.st_mtime_ns + seconds * 1_000_000_000))


def _spy_service() -> tuple[ChangeDetectionService, mock.Mock]:
    hasher = mock.Mock(wraps=HashComputer())
    return ChangeDetectionService(hasher=hasher), hasher


def test_missing_file_is_changed(tmp_path: Path) -> None:
    service = ChangeDetectionService()

    assert service.has_changed(tmp_path / "no-such-file", "ABC", datetime.now(timezone.utc))
    assert service.has_changed("/no/such/file")


def test_directory_is_treated_as_missing(tmp_path: Path) -> None:
    service = ChangeDetectionService()

    assert service.has_changed(tmp_path, "ABC")


def test_unchanged_round_trip(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "content C")
    service = ChangeDetectionService()

    digest = service.compute_hash(target)
    modified = _mtime(target)

    assert service.has_changed(target, digest, modified) is False


def test_posix_timestamp_baseline_is_accepted(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "content C")
    service = ChangeDetectionService()

    digest = service.compute_hash(target)

    assert service.has_changed(target, digest, target.stat().st_mtime) is False


def test_naive_datetime_is_interpreted_as_utc(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "content C")
    service = ChangeDetectionService()

    digest = service.compute_hash(target)
    naive = _mtime(target).replace(tzinfo=None)

    assert service.has_changed(target, digest, naive) is False


def test_content_change_detected(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "content C")
    service = ChangeDetectionService()
    digest = service.compute_hash(target)
    modified = _mtime(target)
    assert service.has_changed(target, digest, modified) is False

    _write(target, "different content C-prime")
    _bump_mtime(target)

    assert service.has_changed(target, digest, modified) is True
    assert service.has_changed(target, digest, None) is True


def test_hash_fallback_detects_change_without_cache(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "original")
    service, hasher = _spy_service()
    digest = HashComputer().compute(target)

    _write(target, "rewritten")

    assert service.has_changed(target, digest) is True
    assert hasher.compute.call_count == 1


def test_case_insensitive_hash_comparison(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "case")
    service = ChangeDetectionService()
    digest = service.compute_hash(target)

    assert service.has_changed(target, digest.lower()) is False
    assert service.has_changed(target, f"  {digest.lower()}  ") is False


def test_mtime_mismatch_short_circuits_hashing(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "content")
    service, hasher = _spy_service()
    stale = _mtime(target) - timedelta(seconds=30)

    assert service.has_changed(target, None, stale) is True
    assert service.has_changed(target, "5EB63BBBE01EEED093CB22BB8F5ACDC3", stale) is True
    hasher.compute.assert_not_called()
    assert service.cache_stats().count == 0


def test_no_baseline_is_always_changed(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "content")
    service, hasher = _spy_service()

    assert service.has_changed(target, None, None) is True
    assert service.has_changed(target, None, _mtime(target)) is True
    hasher.compute.assert_not_called()


@pytest.mark.parametrize("known_hash", ["", "   ", "not-a-digest", "XYZ123"])
def test_malformed_known_hash_is_treated_as_absent(tmp_path: Path, known_hash: str) -> None:
    target = _write(tmp_path / "doc.txt", "content")
    service, hasher = _spy_service()

    assert service.has_changed(target, known_hash, _mtime(target)) is True
    hasher.compute.assert_not_called()


def test_normalize_hash() -> None:
    assert normalize_hash(" abc123 ") == "ABC123"
    assert normalize_hash("") is None
    assert normalize_hash("g00d") is None
    assert normalize_hash(None) is None
    assert normalize_hash(123) is None


def test_cache_hit_skips_hashing(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "cached")
    service, hasher = _spy_service()
    digest = HashComputer().compute(target)

    assert service.has_changed(target, digest) is False
    assert service.has_changed(target, digest) is False
    assert service.has_changed(target, digest, _mtime(target)) is False

    assert hasher.compute.call_count == 1


def test_stale_cache_entry_reports_change(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "cached")
    service, hasher = _spy_service()
    digest = HashComputer().compute(target)
    assert service.has_changed(target, digest) is False

    _bump_mtime(target)

    assert service.has_changed(target, digest) is True
    assert hasher.compute.call_count == 1


def test_cache_with_different_known_hash_rehashes(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "cached")
    service, hasher = _spy_service()
    digest = HashComputer().compute(target)
    assert service.has_changed(target, digest) is False

    assert service.has_changed(target, "0" * 32) is True
    assert hasher.compute.call_count == 2


def test_io_failure_during_hashing_is_changed(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "content")
    hasher = mock.Mock(spec=HashComputer)
    hasher.compute.side_effect = PermissionError("denied")
    service = ChangeDetectionService(hasher=hasher)

    assert service.has_changed(target, "ABC") is True
    assert service.cache_stats().count == 0


def test_failure_is_logged(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    target = _write(tmp_path / "doc.txt", "content")
    hasher = mock.Mock(spec=HashComputer)
    hasher.compute.side_effect = OSError("disk error")
    service = ChangeDetectionService(hasher=hasher)

    with caplog.at_level(logging.ERROR, logger="filedelta.detection"):
        assert service.has_changed(target, "ABC") is True

    errors = [r for r in caplog.records if "Error checking if file has changed" in r.getMessage()]
    assert errors
    assert errors[0].name == "filedelta.detection.service"


def test_broken_logger_does_not_change_verdicts(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "content")
    logger = mock.Mock(spec=logging.Logger)
    logger.log.side_effect = RuntimeError("sink unavailable")
    service = ChangeDetectionService(logger=logger)
    digest = HashComputer().compute(target)

    assert service.has_changed(tmp_path / "missing.txt", digest) is True
    assert service.has_changed(target, digest, _mtime(target)) is False
    assert service.batch_check([target], None) == {str(target): True}
    service.clear_cache()
    assert logger.log.called


def test_cache_consistency(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "twelve bytes")
    service = ChangeDetectionService()
    digest = service.compute_hash(target)

    service.has_changed(target, digest)
    stats = service.cache_stats()

    assert stats.count >= 1
    assert stats.total_bytes >= target.stat().st_size

    service.clear_cache()

    assert service.cache_stats().count == 0


def test_get_file_metadata(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "metadata")
    service = ChangeDetectionService()

    metadata = service.get_file_metadata(target)

    assert metadata.path == str(target)
    assert metadata.size == target.stat().st_size
    assert metadata.last_modified == _mtime(target)
    assert metadata.hash == ""


def test_get_file_metadata_missing_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        ChangeDetectionService().get_file_metadata(tmp_path / "missing.txt")


def test_snapshot_records_baseline_and_populates_cache(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "snapshot me")
    service, hasher = _spy_service()

    record = service.snapshot(target)

    assert record.hash == HashComputer().compute(target)
    assert service.cache_stats().count == 1
    assert service.has_changed(target, record.hash, record.last_modified) is False
    assert hasher.compute.call_count == 1


def test_max_workers_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ChangeDetectionService(max_workers=0)


def test_nanosecond_baseline_is_compared_exactly(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "content C")
    service, hasher = _spy_service()
    stamp = 1_700_000_000_123_456_789
    os.utime(target, ns=(stamp, stamp))
    digest = HashComputer().compute(target)

    assert service.has_changed(target, digest, stamp) is False
    assert service.has_changed(target, digest, stamp + 1) is True
    assert hasher.compute.call_count == 1


def test_sub_microsecond_rewrite_is_detected(tmp_path: Path) -> None:
    target = _write(tmp_path / "doc.txt", "AAAA")
    stamp = 1_700_000_000_123_456_000
    os.utime(target, ns=(stamp, stamp))
    service, hasher = _spy_service()
    record = service.snapshot(target)

    _write(target, "BBBB")
    os.utime(target, ns=(stamp + 1, stamp + 1))

    assert record.last_modified_ns == stamp
    assert service.has_changed(target, record.hash, record.last_modified_ns) is True
    assert hasher.compute.call_count == 1
    # The microsecond datetime cannot see the move; the cached stat must.
    assert service.has_changed(target, record.hash, record.last_modified) is True
    assert service.has_changed(target, record.hash) is True
