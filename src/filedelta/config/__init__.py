"""Configuration loading for filedelta."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import DetectionSettings, FiledeltaConfig, LoggingSettings
from .resolver import ENV_PREFIX, parse_assignments, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.filedelta/config.yaml")


class ConfigManager:
    """Load configuration data, applying precedence rules.

    The manager only reads; a missing configuration file means defaults.
    """

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
        env_overrides: Mapping[str, str] | None = None,
    ) -> FiledeltaConfig:
        """Load configuration from disk, environment, and CLI overrides."""
        env_data: Mapping[str, str] | None = None
        if include_env:
            env_data = env_overrides if env_overrides is not None else self._env

        return resolve_with_precedence(
            defaults=FiledeltaConfig(),
            file_overrides=self._read_file(),
            env_overrides=self._extract_env(env_data) if env_data else None,
            cli_overrides=cli_overrides,
        )

    # Internal helpers -------------------------------------------------

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        except OSError as exc:
            raise ConfigError(f"Unable to read configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")

        return raw

    def _extract_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key, raw_value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__") if segment]
            if not path:
                continue
            try:
                parsed_value: Any = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                parsed_value = raw_value
            self._assign_nested(overrides, path, parsed_value)
        return overrides

    def _assign_nested(self, target: dict[str, Any], path: list[str], value: Any) -> None:
        current = target
        for segment in path[:-1]:
            existing = current.get(segment)
            if not isinstance(existing, dict):
                existing = {}
                current[segment] = existing
            current = existing
        current[path[-1]] = value


__all__ = [
    "ConfigManager",
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "DetectionSettings",
    "FiledeltaConfig",
    "LoggingSettings",
    "parse_assignments",
    "resolve_with_precedence",
]
