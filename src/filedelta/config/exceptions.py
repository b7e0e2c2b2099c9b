"""Custom exceptions for configuration loading."""


class ConfigError(Exception):
    """Raised when configuration data cannot be parsed or validated."""
