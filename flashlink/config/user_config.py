"""
User configuration management for FlashLink.

This module handles user-specific configuration settings with multiple sources:
1. Environment variables (highest precedence)
2. Command-line provided config file
3. Config file in current directory
4. User's XDG config directory
5. Default values (lowest precedence)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from flashlink.config.models import RemoteFlasherConfig, UserConfigData
from flashlink.core.errors import ConfigError
from flashlink.core.structlog_logger import get_struct_logger
from flashlink.utils.xdg import get_xdg_config_dir


logger = get_struct_logger(__name__)

ENV_PREFIX = "FLASHLINK_"


class UserConfig:
    """
    Manages user-specific configuration for FlashLink using Pydantic Settings.

    The configuration is loaded from multiple sources with the following precedence:
    1. Environment variables (highest precedence) - handled by Pydantic Settings
    2. YAML config file - first existing file from the search paths
    3. Default values (lowest precedence) - defined in model
    """

    def __init__(self, cli_config_path: str | Path | None = None):
        """
        Initialize the user configuration handler.

        Args:
            cli_config_path: Optional config file path provided via CLI
        """
        self._config_sources: dict[str, str] = {}
        self._main_config_path: Path | None = None
        self._cli_config_path = (
            Path(cli_config_path).expanduser().resolve() if cli_config_path else None
        )
        self._config_paths = self._generate_config_paths(cli_config_path)
        self._load_config()

    @property
    def config(self) -> UserConfigData:
        """The resolved configuration."""
        return self._config

    @property
    def config_path(self) -> Path | None:
        """File that ``save()`` writes to."""
        return self._main_config_path

    def _generate_config_paths(self, cli_config_path: str | Path | None) -> list[Path]:
        """Generate a list of config paths to search in order of precedence."""
        config_paths = []

        if cli_config_path:
            config_paths.append(Path(cli_config_path).expanduser().resolve())

        config_paths.extend(
            [Path.cwd() / "flashlink.yaml", Path.cwd() / ".flashlink.yml"]
        )

        xdg_dir = get_xdg_config_dir()
        config_paths.extend([xdg_dir / "config.yaml", xdg_dir / "config.yml"])

        return config_paths

    def _read_yaml(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read configuration file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration file {path} must contain a mapping")
        return data

    def _load_config(self) -> None:
        """Load configuration from the first config file found plus environment."""
        logger.debug(
            "config_search_started", paths=[str(p) for p in self._config_paths]
        )

        config_data: dict[str, Any] = {}
        found_path: Path | None = None
        for path in self._config_paths:
            if path.is_file():
                config_data = self._read_yaml(path)
                found_path = path
                break

        try:
            self._config = UserConfigData(**config_data)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        if found_path:
            logger.debug("config_loaded", path=str(found_path))
            self._main_config_path = found_path
            self._track_file_sources(config_data, found_path.name)
        else:
            logger.debug("config_defaults_used")
            # Without an existing file, save to the CLI path or the XDG location
            self._main_config_path = self._cli_config_path or self._config_paths[-2]

        self._track_env_var_sources()

    def _track_file_sources(
        self, data: dict[str, Any], filename: str, prefix: str = ""
    ) -> None:
        """Recursively track sources for file-based configuration values."""
        for key, value in data.items():
            current_key = f"{prefix}.{key}" if prefix else key
            if isinstance(value, dict):
                self._track_file_sources(value, filename, current_key)
            else:
                self._config_sources[current_key] = f"file:{filename}"

    def _track_env_var_sources(self) -> None:
        """Track which configuration values came from environment variables."""
        for env_name in os.environ:
            if not env_name.upper().startswith(ENV_PREFIX):
                continue
            config_key = env_name[len(ENV_PREFIX) :].lower().replace("__", ".")
            self._config_sources[config_key] = "environment"

    def get_source(self, key: str) -> str:
        """Where a value came from: environment, file:<name>, runtime or default."""
        return self._config_sources.get(key, "default")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key."""
        current: Any = self._config
        for part in key.split("."):
            if not hasattr(current, part):
                return default
            current = getattr(current, part)
        return current

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by dotted key.

        Raises:
            ValueError: If the key is unknown or the value is invalid
        """
        keys = key.split(".")
        current: Any = self._config
        for k in keys[:-1]:
            if not hasattr(current, k):
                logger.warning("invalid_config_path", key=key)
                raise ValueError(f"Invalid configuration path: {key}")
            current = getattr(current, k)

        final_key = keys[-1]
        if final_key not in type(current).model_fields:
            logger.warning("unknown_config_key", key=key)
            raise ValueError(f"Unknown configuration key: {key}")

        try:
            setattr(current, final_key, value)
        except ValidationError as e:
            logger.warning("invalid_config_value", key=key, error=str(e))
            raise ValueError(f"Invalid value for {key}: {e}") from e
        self._config_sources[key] = "runtime"

    def get_remote_flasher(self) -> RemoteFlasherConfig:
        """The remote flasher section (enabled flag and server URL)."""
        return self._config.remote_flasher

    def set_remote_flasher(self, enabled: bool, server_url: str | None = None) -> None:
        """Update the remote flasher section and persist it."""
        if server_url is not None:
            self.set("remote_flasher.server_url", server_url)
        self.set("remote_flasher.enabled", enabled)
        self.save()

    def save(self) -> None:
        """
        Save the current configuration to the main config file.
        Creates parent directories if they don't exist.
        """
        if not self._main_config_path:
            logger.warning("config_save_skipped", reason="no config path")
            return

        data = self._config.model_dump(mode="json")
        try:
            self._main_config_path.parent.mkdir(parents=True, exist_ok=True)
            with self._main_config_path.open("w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, sort_keys=False)
        except OSError as e:
            raise ConfigError(
                f"Failed to save configuration to {self._main_config_path}: {e}"
            ) from e
        logger.debug("config_saved", path=str(self._main_config_path))


def create_user_config(cli_config_path: str | Path | None = None) -> UserConfig:
    """
    Create a UserConfig instance.

    Args:
        cli_config_path: Optional config file path provided via CLI

    Returns:
        Configured UserConfig instance
    """
    return UserConfig(cli_config_path=cli_config_path)
