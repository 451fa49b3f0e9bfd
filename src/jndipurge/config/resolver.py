"""Layering of settings from the config file, environment and command line."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import ConfigError
from .models import PurgeConfig

ENV_PREFIX = "JNDIPURGE__"


def apply_override(settings: dict[str, Any], key: str, value: Any) -> None:
    """Set a dotted key such as `backup.suffix` inside a nested settings dict.

    Raises:
        ConfigError: If the key is empty or a section along it is not a mapping.
    """
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise ConfigError("KEY must specify a dotted path such as 'backup.suffix'.")
    section = settings
    for depth, segment in enumerate(segments[:-1], start=1):
        child = section.setdefault(segment, {})
        if not isinstance(child, dict):
            joined = ".".join(segments[:depth])
            raise ConfigError(f"Cannot set {key}: '{joined}' is not a section.")
        section = child
    section[segments[-1]] = value


def env_settings(env: Mapping[str, str]) -> dict[str, Any]:
    """Collect `JNDIPURGE__SECTION__KEY` variables as nested settings.

    Values are parsed as YAML scalars, so `true`, `off` and `3` keep their types.
    """
    settings: dict[str, Any] = {}
    for name, raw in env.items():
        if not name.startswith(ENV_PREFIX):
            continue
        key = ".".join(part.lower() for part in name[len(ENV_PREFIX) :].split("__") if part)
        if not key:
            continue
        try:
            value: Any = yaml.safe_load(raw)
        except yaml.YAMLError:
            value = raw
        apply_override(settings, key, value)
    return settings


def build_config(*layers: Mapping[str, Any]) -> PurgeConfig:
    """Validate settings layered in order; later layers win key by key.

    Layers may nest sections or use dotted keys (`{"logging.file": "x.txt"}`).

    Raises:
        ConfigError: If a layer is malformed or the result fails validation.
    """
    merged: dict[str, Any] = {}
    for layer in layers:
        if not isinstance(layer, Mapping):
            raise ConfigError("Settings must be a mapping of sections.")
        for key, value in _leaves(layer):
            apply_override(merged, key, value)
    try:
        return PurgeConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def _leaves(layer: Mapping[str, Any], prefix: str = "") -> Iterator[tuple[str, Any]]:
    for key, value in layer.items():
        dotted = f"{prefix}{key}"
        if isinstance(value, Mapping):
            yield from _leaves(value, f"{dotted}.")
        else:
            yield dotted, value


__all__ = ["ENV_PREFIX", "apply_override", "build_config", "env_settings"]
