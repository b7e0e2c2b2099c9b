"""Serialized baseline models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Literal

from pydantic import BaseModel, Field

from filedelta.detection.models import FileMetadata

BASELINE_VERSION = 1


class Baseline(BaseModel):
    """Known metadata for a set of files, keyed by path."""

    version: Literal[1] = BASELINE_VERSION
    files: Dict[str, FileMetadata] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


__all__ = ["Baseline", "BASELINE_VERSION"]
