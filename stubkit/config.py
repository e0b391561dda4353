"""
Configuration system for stubkit.

This module defines the runtime options that shape the library's ambient
behaviour: how verbosely stubs log their lifecycle and interceptions, where
log files go, and whether active stubs are restored at interpreter exit.
Stubbing semantics themselves are never configurable.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class StubConfig:
    """
    Runtime options for stubkit.

    All options default to a silent library: warnings go to stderr through
    the standard logging machinery and nothing is written to disk.
    """

    log_level: str = "WARNING"

    # Emit a DEBUG record for every intercepted call
    log_calls: bool = False

    # JSON lines for file logs
    json_logs: bool = False

    # Directory for rotating log files; None disables file logging
    log_dir: Optional[str] = None

    # Register restore_all() with atexit
    restore_at_exit: bool = False

    def __post_init__(self):
        """Validate configuration parameters."""
        if not isinstance(self.log_level, str) or self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}, got {self.log_level!r}"
            )
        self.log_level = self.log_level.upper()

        for name in ("log_calls", "json_logs", "restore_at_exit"):
            if not isinstance(getattr(self, name), bool):
                raise ValueError(f"{name} must be a boolean, got {getattr(self, name)!r}")

        if self.log_dir is not None and not isinstance(self.log_dir, (str, Path)):
            raise ValueError(f"log_dir must be a path or None, got {self.log_dir!r}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "log_level": self.log_level,
            "log_calls": self.log_calls,
            "json_logs": self.json_logs,
            "log_dir": str(self.log_dir) if self.log_dir is not None else None,
            "restore_at_exit": self.restore_at_exit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StubConfig":
        """Create from dictionary representation."""
        return cls(
            log_level=data.get("log_level", "WARNING"),
            log_calls=data.get("log_calls", False),
            json_logs=data.get("json_logs", False),
            log_dir=data.get("log_dir"),
            restore_at_exit=data.get("restore_at_exit", False),
        )

    def save_to_file(self, file_path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        file_path = Path(file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    @classmethod
    def load_from_file(cls, file_path: Union[str, Path]) -> "StubConfig":
        """Load configuration from YAML file."""
        file_path = Path(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(file_path, "r") as f:
            data = yaml.safe_load(f)

        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Configuration file must contain a mapping: {file_path}")

        return cls.from_dict(data or {})

    @classmethod
    def get_default_config_path(cls) -> Path:
        """Get the default configuration file path."""
        current_dir_config = Path(".stubkit.yml")
        if current_dir_config.exists():
            return current_dir_config

        return Path.home() / ".stubkit.yml"

    @classmethod
    def load_or_default(
        cls, config_path: Optional[Union[str, Path]] = None
    ) -> "StubConfig":
        """
        Load configuration from file or return default if not found.

        Args:
            config_path: Optional path to configuration file

        Returns:
            StubConfig instance
        """
        if config_path:
            config_path = Path(config_path)
            if config_path.exists():
                return cls.load_from_file(config_path)
        else:
            default_path = cls.get_default_config_path()
            if default_path.exists():
                return cls.load_from_file(default_path)

        return cls()


def _parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ValueError(f"not a boolean: {value!r}")


class ConfigManager:
    """
    Manager for stubkit configuration.

    Resolves the active configuration from an explicit path, the
    ``STUBKIT_CONFIG`` environment variable or the default locations, then
    applies ``STUBKIT_*`` environment overrides on top.
    """

    ENV_MAPPINGS = {
        "STUBKIT_LOG_LEVEL": ("log_level", str),
        "STUBKIT_LOG_CALLS": ("log_calls", _parse_bool),
        "STUBKIT_JSON_LOGS": ("json_logs", _parse_bool),
        "STUBKIT_LOG_DIR": ("log_dir", str),
        "STUBKIT_RESTORE_AT_EXIT": ("restore_at_exit", _parse_bool),
    }

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        self.config_path = Path(config_path) if config_path else None
        self._config: Optional[StubConfig] = None

    @property
    def config(self) -> StubConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.apply_environment_overrides(self.load_config())
        return self._config

    def load_config(self) -> StubConfig:
        """Load configuration from file or environment."""
        env_config_path = os.getenv("STUBKIT_CONFIG")
        if env_config_path:
            config_path = Path(env_config_path)
            if config_path.exists():
                return StubConfig.load_from_file(config_path)

        if self.config_path and self.config_path.exists():
            return StubConfig.load_from_file(self.config_path)

        return StubConfig.load_or_default()

    def save_config(
        self, config: StubConfig, path: Optional[Union[str, Path]] = None
    ) -> None:
        """Save configuration to file."""
        save_path = (
            Path(path)
            if path
            else (self.config_path or StubConfig.get_default_config_path())
        )
        config.save_to_file(save_path)
        self._config = config

    def get_environment_overrides(self) -> Dict[str, Any]:
        """Get configuration overrides from environment variables."""
        overrides = {}

        for env_var, (config_key, config_type) in self.ENV_MAPPINGS.items():
            env_value = os.getenv(env_var)
            if env_value is not None:
                try:
                    overrides[config_key] = config_type(env_value)
                except ValueError as e:
                    raise ValueError(
                        f"Invalid environment variable {env_var}={env_value}: {e}"
                    )

        return overrides

    def apply_environment_overrides(self, config: StubConfig) -> StubConfig:
        """Apply environment variable overrides to configuration."""
        overrides = self.get_environment_overrides()

        if not overrides:
            return config

        config_dict = config.to_dict()
        config_dict.update(overrides)
        return StubConfig.from_dict(config_dict)

    def validate_config(self, config: StubConfig) -> List[str]:
        """Validate configuration and return list of issues."""
        issues = []

        try:
            config.__post_init__()
        except ValueError as e:
            issues.append(str(e))

        if config.json_logs and config.log_dir is None:
            issues.append("json_logs has no effect without log_dir")

        if config.log_calls and config.log_level != "DEBUG":
            issues.append("log_calls records are emitted at DEBUG and hidden at level "
                          f"{config.log_level}")

        return issues


_manager = ConfigManager()


def get_config() -> StubConfig:
    """Return the process-wide configuration."""
    return _manager.config


def set_config(config: StubConfig) -> None:
    """Replace the process-wide configuration without touching disk."""
    _manager._config = config


def reload_config() -> StubConfig:
    """Drop the cached configuration and resolve it again."""
    _manager._config = None
    return _manager.config
