"""Configuration models describing filedelta settings."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from filedelta.detection.hashing import DEFAULT_CHUNK_SIZE


class FiledeltaBaseModel(BaseModel):
    """Shared configuration for filedelta settings models."""

    model_config = ConfigDict(extra="forbid")


class DetectionSettings(FiledeltaBaseModel):
    """Options for the change detection engine.

    Attributes:
        chunk_size_bytes: Read size used while streaming file contents into the digest.
        max_workers: Thread count for batch checks; None defers to the executor default.
    """

    chunk_size_bytes: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)
    max_workers: Optional[int] = Field(default=None, ge=1)


class LoggingSettings(FiledeltaBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level applied by the CLI.
    """

    level: str = "WARNING"


class FiledeltaConfig(FiledeltaBaseModel):
    """Top-level configuration struct for filedelta.

    Attributes:
        detection: Change detection engine settings.
        logging: Logging configuration.
    """

    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


__all__ = [
    "FiledeltaBaseModel",
    "DetectionSettings",
    "LoggingSettings",
    "FiledeltaConfig",
]
