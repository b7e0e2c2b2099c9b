"""Baseline file errors."""


class BaselineError(Exception):
    """Raised when a baseline file cannot be read or parsed."""
