"""Configuration resolver with 5-level priority.

Priority (highest to lowest):
1. CLI arguments
2. Environment variables (ENVREFRESH_*)
3. User config file (~/.config/envrefresh/config.yaml)
4. System config file (/etc/envrefresh/config.yaml)
5. Defaults
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from envrefresh.core.errors import ConfigError

ALLOWED_LOGGING_LEVELS = frozenset({"quiet", "normal", "verbose", "debug"})
DEFAULT_LOGGING_LEVEL = "normal"

ENV_PREFIX = "ENVREFRESH_"

_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})
_FALSE_STRINGS = frozenset({"0", "false", "no", "off"})


@dataclass
class ConfigSource:
    """Represents where a config value came from."""

    value: Any
    source: str  # 'cli' | 'env' | 'user_config' | 'system_config' | 'default'


@dataclass(frozen=True)
class RefreshSettings:
    """Resolved, validated inputs of one refresh run."""

    project_dir: Path
    direnv_command: str = "direnv"
    reload_env_var: str = "_nix_direnv_force_reload"
    reload_env_value: str = "1"
    payload: tuple[str, ...] = ("true",)
    envrc_name: str = ".envrc"
    cache_dir_name: str = ".direnv"
    cache_glob: str = "*.rc"

    @property
    def envrc_path(self) -> Path:
        return self.project_dir / self.envrc_name

    @property
    def cache_dir(self) -> Path:
        return self.project_dir / self.cache_dir_name


class ConfigResolver:
    """Resolve configuration with strict priority.

    Example:
        resolver = ConfigResolver(
            cli_args={'project_dir': '/src/app'},
            user_config_path=Path('~/.config/envrefresh/config.yaml')
        )

        project_dir, source = resolver.resolve('project_dir')
        # project_dir = '/src/app', source = 'cli'
    """

    def __init__(
        self,
        cli_args: dict[str, Any] | None = None,
        user_config_path: Path | None = None,
        system_config_path: Path | None = None,
        defaults: dict[str, Any] | None = None,
    ) -> None:
        """Initialize config resolver.

        Args:
            cli_args: Arguments from CLI (highest priority); None values are ignored
            user_config_path: Path to user config file
            system_config_path: Path to system config file
            defaults: Default values (lowest priority)
        """
        self.cli_args = {k: v for k, v in (cli_args or {}).items() if v is not None}
        self.user_config_path = user_config_path or Path.home() / ".config/envrefresh/config.yaml"
        self.system_config_path = system_config_path or Path("/etc/envrefresh/config.yaml")
        self.defaults = defaults if defaults is not None else self._default_config()

        self._user_config: dict[str, Any] | None = None
        self._system_config: dict[str, Any] | None = None

    def resolve(self, key: str) -> tuple[Any, str]:
        """Resolve config value with priority.

        Args:
            key: Config key (supports dot notation: 'logging.level')

        Returns:
            (value, source) tuple

        Raises:
            ConfigError: If key not found in any source
        """
        value = self._get_nested(self.cli_args, key)
        if value is not None:
            return value, "cli"

        value = self._from_env(key)
        if value is not None:
            return value, "env"

        value = self._get_nested(self._get_user_config(), key)
        if value is not None:
            return value, "user_config"

        value = self._get_nested(self._get_system_config(), key)
        if value is not None:
            return value, "system_config"

        value = self._get_nested(self.defaults, key)
        if value is not None:
            return value, "default"

        raise ConfigError(f"Config key '{key}' not found in any source")

    def resolve_all(self) -> dict[str, ConfigSource]:
        """Resolve every key known from defaults, CLI and config files."""
        keys: set[str] = set()
        for data in (
            self.cli_args,
            self.defaults,
            self._get_user_config(),
            self._get_system_config(),
        ):
            keys.update(k for k, _v in _flatten_items(data))

        result: dict[str, ConfigSource] = {}
        for key in sorted(keys):
            try:
                value, source = self.resolve(key)
            except ConfigError:
                continue
            result[key] = ConfigSource(value=value, source=source)
        return result

    def resolve_logging_level(self) -> str:
        """Resolve and validate logging.level.

        Returns DEFAULT_LOGGING_LEVEL when no source provides the key.

        Raises:
            ConfigError: If the resolved value is invalid.
        """
        key = "logging.level"
        try:
            value, _src = self.resolve(key)
        except ConfigError:
            return DEFAULT_LOGGING_LEVEL

        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        norm = value.strip().lower()
        if norm not in ALLOWED_LOGGING_LEVELS:
            allowed = ", ".join(sorted(ALLOWED_LOGGING_LEVELS))
            raise ConfigError(f"Invalid '{key}': {value!r}. Allowed values: {allowed}")
        return norm

    def resolve_color(self) -> bool:
        try:
            value, _src = self.resolve("logging.color")
        except ConfigError:
            return True
        return _as_bool("logging.color", value)

    def resolve_settings(self) -> RefreshSettings:
        """Build validated RefreshSettings from all sources.

        Raises:
            ConfigError: If a value is missing, empty or of the wrong type.
        """
        project_dir = Path(self._require_str("project_dir")).expanduser()
        return RefreshSettings(
            project_dir=project_dir,
            direnv_command=self._require_str("direnv_command"),
            reload_env_var=self._require_str("reload_env_var"),
            reload_env_value=self._require_str("reload_env_value"),
            payload=self._resolve_payload(),
            envrc_name=self._require_str("envrc_name"),
            cache_dir_name=self._require_str("cache_dir"),
            cache_glob=self._require_str("cache_glob"),
        )

    def _require_str(self, key: str) -> str:
        value, _src = self.resolve(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            raise ConfigError(f"Config key '{key}' must be a string, got {type(value).__name__}")
        if value.strip() == "":
            raise ConfigError(f"Config key '{key}' must not be empty")
        return value

    def _resolve_payload(self) -> tuple[str, ...]:
        key = "payload"
        value, _src = self.resolve(key)
        if isinstance(value, str):
            try:
                parts = shlex.split(value)
            except ValueError as e:
                raise ConfigError(f"Invalid '{key}': {value!r}: {e}") from e
        elif isinstance(value, list):
            parts = [str(x) for x in value]
        else:
            raise ConfigError(f"Config key '{key}' must be a list or a string")
        if not parts:
            raise ConfigError(
                f"Config key '{key}' must not be empty",
                "Use 'true' as a no-op payload",
            )
        return tuple(parts)

    def _from_env(self, key: str) -> Any | None:
        """Get value from environment variables.

        Example: logging.level -> ENVREFRESH_LOGGING_LEVEL
        """
        env_key = f"{ENV_PREFIX}{key.upper().replace('.', '_')}"
        return os.environ.get(env_key)

    def _get_user_config(self) -> dict[str, Any]:
        if self._user_config is None:
            self._user_config = self._load_yaml(self.user_config_path)
        return self._user_config

    def _get_system_config(self) -> dict[str, Any]:
        if self._system_config is None:
            self._system_config = self._load_yaml(self.system_config_path)
        return self._system_config

    def _load_yaml(self, path: Path) -> dict[str, Any]:
        """Load YAML file; a missing file is an empty config."""
        if not path.exists():
            return {}

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    def _get_nested(self, data: dict[str, Any], key: str) -> Any | None:
        """Get nested value using dot notation.

        Example:
            data = {'logging': {'level': 'debug'}}
            _get_nested(data, 'logging.level') -> 'debug'
        """
        current: Any = data
        for part in key.split("."):
            if not isinstance(current, dict):
                return None
            current = current.get(part)
            if current is None:
                return None
        return current

    @staticmethod
    def _default_config() -> dict[str, Any]:
        return {
            "project_dir": str(Path.home() / ".dotfiles"),
            "direnv_command": "direnv",
            "reload_env_var": "_nix_direnv_force_reload",
            "reload_env_value": "1",
            "payload": ["true"],
            "envrc_name": ".envrc",
            "cache_dir": ".direnv",
            "cache_glob": "*.rc",
            "logging": {
                "level": DEFAULT_LOGGING_LEVEL,
                "color": True,
            },
        }


def _flatten_items(data: dict[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    """Flatten nested dicts to dot-notation key paths."""
    items: list[tuple[str, Any]] = []
    for key, value in data.items():
        key_path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            items.extend(_flatten_items(value, key_path))
        else:
            items.append((key_path, value))
    return items


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        norm = value.strip().lower()
        if norm in _TRUE_STRINGS:
            return True
        if norm in _FALSE_STRINGS:
            return False
    raise ConfigError(f"Config key '{key}' must be a bool, got {value!r}")
