"""Settings file handling for jndipurge."""

from __future__ import annotations

import copy
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError
from .models import PurgeConfig
from .resolver import ENV_PREFIX, apply_override, build_config, env_settings

DEFAULT_CONFIG_PATH = Path("~/.jndipurge/config.yaml")
_HEADER = "# jndipurge settings; change values with `jndipurge config set KEY --value VALUE`.\n"


class ConfigManager:
    """Read and write `~/.jndipurge/config.yaml` and resolve effective settings.

    Effective settings layer built-in defaults, then the file, then
    `JNDIPURGE__SECTION__KEY` environment variables, then command-line flags.
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
        """Return the resolved settings file path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
    ) -> PurgeConfig:
        """Return the effective settings, creating the file on first use.

        Args:
            cli_overrides: Dotted keys set from command-line flags.
            include_env: Whether environment variables take part.

        Raises:
            ConfigError: If the file or an override holds an invalid value.
        """
        self.ensure_exists()
        layers: list[Mapping[str, Any]] = [self.read_settings()]
        if include_env:
            layers.append(env_settings(self._env))
        if cli_overrides:
            layers.append(cli_overrides)
        return build_config(*layers)

    def read_settings(self) -> dict[str, Any]:
        """Return the settings stored in the file, or an empty dict if there is none.

        Raises:
            ConfigError: If the file is not a YAML mapping.
        """
        if not self._config_path.exists():
            return {}
        try:
            data = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")
        return data

    def set_value(self, key: str, value: Any) -> bool:
        """Store one dotted key in the file after validating the result.

        Returns:
            bool: False when the file already held that value.

        Raises:
            ConfigError: If the key or value is invalid.
        """
        settings = self.read_settings()
        previous = copy.deepcopy(settings)
        apply_override(settings, key, value)
        build_config(settings)
        if settings == previous:
            return False
        self.save(settings)
        return True

    def save(self, settings: PurgeConfig | Mapping[str, Any]) -> None:
        """Write settings to the file under a header and an update stamp."""
        if isinstance(settings, PurgeConfig):
            settings = settings.model_dump(mode="python")
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(dict(settings), sort_keys=False)
        self._config_path.write_text(
            f"{_HEADER}# Last updated: {stamp}\n{body}", encoding="utf-8"
        )

    def ensure_exists(self) -> Path:
        """Write the default settings if no file exists yet."""
        if not self._config_path.exists():
            self.save(PurgeConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the raw file contents, or an empty string if there is no file."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ENV_PREFIX",
    "PurgeConfig",
    "build_config",
]
