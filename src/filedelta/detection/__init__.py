"""Staged file change detection with a shared metadata cache."""

from .cache import MetadataCache
from .diagnostics import DiagnosticSink
from .hashing import DEFAULT_CHUNK_SIZE, HashComputer
from .models import CacheStats, FileMetadata
from .service import ChangeDetectionService, normalize_hash

__all__ = [
    "CacheStats",
    "ChangeDetectionService",
    "DEFAULT_CHUNK_SIZE",
    "DiagnosticSink",
    "FileMetadata",
    "HashComputer",
    "MetadataCache",
    "normalize_hash",
]
