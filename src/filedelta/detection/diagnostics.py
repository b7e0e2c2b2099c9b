"""Best-effort diagnostic logging for the detection engine."""

from __future__ import annotations

import logging
from typing import Any, Optional

LOGGER = logging.getLogger(__name__)


class DiagnosticSink:
    """Forward diagnostics to a logger without ever raising.

    The engine reports every stage decision and failure through this sink.
    Errors raised by the wrapped logger or its handlers are dropped so a
    broken log configuration cannot alter a change verdict.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger if logger is not None else LOGGER

    @property
    def logger(self) -> logging.Logger:
        """Return the wrapped logger."""
        return self._logger

    def debug(self, message: str, *args: Any) -> None:
        """Log ``message`` at DEBUG."""
        self._emit(logging.DEBUG, message, args)

    def info(self, message: str, *args: Any) -> None:
        """Log ``message`` at INFO."""
        self._emit(logging.INFO, message, args)

    def warning(self, message: str, *args: Any) -> None:
        """Log ``message`` at WARNING."""
        self._emit(logging.WARNING, message, args)

    def error(self, message: str, *args: Any, exc: BaseException | None = None) -> None:
        """Log ``message`` at ERROR, attaching ``exc`` as exception info."""
        self._emit(logging.ERROR, message, args, exc=exc)

    def _emit(
        self,
        level: int,
        message: str,
        args: tuple[Any, ...],
        *,
        exc: BaseException | None = None,
    ) -> None:
        try:
            self._logger.log(level, message, *args, exc_info=exc)
        except Exception:  # noqa: BLE001 - diagnostics must stay inert
            pass


__all__ = ["DiagnosticSink", "LOGGER"]
