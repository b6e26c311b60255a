"""Configuration management for hashpress.

The YAML file at ``~/.hashpress/config.yaml`` holds user overrides. Values are
resolved as defaults < file < ``HASHPRESS__SECTION__KEY`` environment
variables < command-line overrides.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .exceptions import ConfigError
from .models import HashpressConfig
from .resolver import overrides_from_env, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.hashpress/config.yaml")
_HEADER = (
    "# hashpress configuration file\n"
    "# Manage with `hashpress config set` / `hashpress config edit`, or edit by hand.\n"
)
_STAMP_PREFIX = "# Last updated: "


class ConfigManager:
    """Read, resolve and write the hashpress configuration file."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        *,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Initialize the manager.

        Args:
            config_path: Configuration file; defaults to ``~/.hashpress/config.yaml``.
            env: Environment consulted for overrides; defaults to ``os.environ``.
        """
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = os.environ if env is None else env

    @property
    def config_path(self) -> Path:
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Optional[Mapping[str, Any]] = None,
        include_env: bool = True,
        ensure_file: bool = True,
        env_overrides: Optional[Mapping[str, str]] = None,
    ) -> HashpressConfig:
        """Return the effective configuration.

        Args:
            cli_overrides: Dotted-key overrides from the command line.
            include_env: Apply ``HASHPRESS__`` environment variables.
            ensure_file: Create the file with defaults when it is missing.
            env_overrides: Environment mapping used instead of the manager's.

        Returns:
            HashpressConfig: Validated configuration.

        Raises:
            ConfigError: If the file or any override is invalid.
        """
        if ensure_file:
            self.ensure_exists()

        from_env: Optional[dict[str, Any]] = None
        if include_env:
            from_env = overrides_from_env(env_overrides if env_overrides is not None else self._env)

        return resolve_with_precedence(
            defaults=HashpressConfig(),
            file_overrides=self.load_file_overrides(),
            env_overrides=from_env or None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return the raw mapping stored in the configuration file.

        Raises:
            ConfigError: If the file is not valid YAML or not a mapping.
        """
        text = self.read_text()
        try:
            data = yaml.safe_load(text) if text else None
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {self._config_path}: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"{self._config_path} must contain a mapping at the top level.")
        return data

    def save(self, config: HashpressConfig | Mapping[str, Any]) -> None:
        """Write ``config`` to the file under a fresh timestamp header."""
        if isinstance(config, HashpressConfig):
            data = config.model_dump(mode="python")
        else:
            data = dict(config)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        body = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(f"{_HEADER}{_STAMP_PREFIX}{stamp}\n{body}", encoding="utf-8")

    def ensure_exists(self) -> Path:
        """Write the default configuration when no file exists yet."""
        if not self._config_path.exists():
            self.save(HashpressConfig())
        return self._config_path

    def read_text(self) -> str:
        """Return the file contents, or an empty string when it is missing."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")


__all__ = [
    "ConfigError",
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "HashpressConfig",
    "resolve_with_precedence",
]
