"""Top-level package for filedelta."""

from importlib import metadata as _metadata

from filedelta.detection import (
    CacheStats,
    ChangeDetectionService,
    FileMetadata,
    HashComputer,
    MetadataCache,
)

__all__ = [
    "__version__",
    "CacheStats",
    "ChangeDetectionService",
    "FileMetadata",
    "HashComputer",
    "MetadataCache",
]


def __getattr__(name: str):
    if name == "__version__":
        return _metadata.version("filedelta")
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def __dir__():
    return sorted(list(globals().keys()) + ["__version__"])
