"""Read and write caller-supplied baselines of known file metadata."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable

from pydantic import ValidationError

from filedelta.detection.models import FileMetadata

from .errors import BaselineError
from .models import BASELINE_VERSION, Baseline


class BaselineRepository:
    """Persist baselines as JSON documents."""

    def load(self, path: Path) -> Baseline:
        """Load a baseline from ``path``.

        Args:
            path: JSON baseline file.

        Returns:
            Baseline: Parsed baseline with one record per path.

        Raises:
            BaselineError: If the file is missing, unreadable, or malformed.
        """
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise BaselineError(f"Unable to read baseline {path}: {exc}") from exc
        return self.loads(text)

    def loads(self, text: str) -> Baseline:
        """Parse a baseline from JSON text.

        Raises:
            BaselineError: If the payload is not a valid baseline document.
        """
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise BaselineError(f"Invalid baseline data: {exc}") from exc
        try:
            return Baseline.model_validate(data)
        except ValidationError as exc:
            raise BaselineError(f"Invalid baseline data: {exc}") from exc

    def save(self, path: Path, baseline: Baseline) -> None:
        """Write ``baseline`` to ``path`` as indented JSON."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.dumps(baseline), encoding="utf-8")

    def dumps(self, baseline: Baseline) -> str:
        """Return the JSON representation of ``baseline``."""
        return json.dumps(baseline.model_dump(mode="json"), indent=2)

    @staticmethod
    def build(records: Iterable[FileMetadata]) -> Baseline:
        """Assemble a baseline from snapshot records."""
        return Baseline(files={record.path: record for record in records})


__all__ = [
    "Baseline",
    "BaselineError",
    "BaselineRepository",
    "BASELINE_VERSION",
]
