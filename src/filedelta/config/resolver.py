"""Configuration resolution helpers."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Iterable, Mapping

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import FiledeltaConfig

ENV_PREFIX = "FILEDELTA__"


def resolve_with_precedence(
    *,
    defaults: FiledeltaConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> FiledeltaConfig:
    """Merge configuration sources: defaults < file < environment < CLI.

    Override keys may be nested mappings or dotted paths such as
    ``detection.max_workers``.

    Raises:
        ConfigError: If an override is malformed or the merged result fails
            validation.
    """
    merged = deepcopy(defaults.model_dump(mode="python"))
    for name, source in (
        ("file", file_overrides),
        ("environment", env_overrides),
        ("cli", cli_overrides),
    ):
        if source is None:
            continue
        merged = _deep_merge(merged, _normalize_mapping(source, source_name=name))

    try:
        return FiledeltaConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def parse_assignments(assignments: Iterable[str]) -> dict[str, Any]:
    """Parse ``KEY=VALUE`` strings into dotted-path CLI overrides.

    Values are read as YAML scalars, so ``8`` becomes an int and ``null``
    becomes None. Later assignments to the same key win.

    Raises:
        ConfigError: If an assignment lacks ``=`` or names an empty key.
    """
    overrides: dict[str, Any] = {}
    for assignment in assignments:
        key, sep, raw = assignment.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigError(f"Expected KEY=VALUE, got {assignment!r}.")
        try:
            overrides[key] = yaml.safe_load(raw) if raw.strip() else raw
        except yaml.YAMLError as exc:
            raise ConfigError(f"Unable to parse value for {key}: {exc}") from exc
    return overrides


def _normalize_mapping(source: Mapping[str, Any], *, source_name: str) -> dict[str, Any]:
    label = source_name.capitalize()
    if not isinstance(source, MappingABC):
        raise ConfigError(f"{label} overrides must be a mapping.")

    result: dict[str, Any] = {}
    for key, value in dict(source).items():
        if not isinstance(key, str):
            raise ConfigError(f"{label} override keys must be strings.")
        path = key.split(".")
        if not all(path):
            raise ConfigError(f"{label} override key {key!r} has an empty segment.")
        _assign(result, path, value, source_name=source_name)
    return result


def _assign(target: dict[str, Any], path: list[str], value: Any, *, source_name: str) -> None:
    node = target
    for segment in path[:-1]:
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise ConfigError(
                f"{source_name.capitalize()} override for {'.'.join(path)} "
                "conflicts with existing value."
            )
        node = child
    leaf = path[-1]
    if isinstance(value, MappingABC):
        current = node.get(leaf)
        nested = _normalize_mapping(value, source_name=source_name)
        node[leaf] = _deep_merge(current if isinstance(current, MappingABC) else {}, nested)
    else:
        node[leaf] = value


def _deep_merge(base: Mapping[str, Any], overrides: Mapping[str, Any]) -> dict[str, Any]:
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(value, MappingABC) and isinstance(current, MappingABC):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = deepcopy(value)
    return merged


__all__ = ["resolve_with_precedence", "parse_assignments", "ENV_PREFIX"]
