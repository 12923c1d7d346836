# SPDX-License-Identifier: MIT
"""Configuration management for edge-replica."""

import copy
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_API_BASE_URL,
    DEFAULT_API_TIMEOUT,
    DEFAULT_BOOTSTRAP_PREFIX_LENGTH,
    DEFAULT_COALESCE_DELAY,
    DEFAULT_FLUSH_BACKOFF_BASE,
    DEFAULT_FLUSH_INITIAL_BACKOFF,
    DEFAULT_FLUSH_MAX_ATTEMPTS,
    DEFAULT_FLUSH_MAX_BACKOFF,
    DEFAULT_GROUP,
    DEFAULT_URL_SCHEME,
    ENV_API_TOKEN,
    ENV_ORGANIZATION,
)
from .exceptions import ConfigurationError
from .retry_utils import RetryBackoff


class PlatformConfig(BaseModel):
    """Configuration for the control-plane API."""

    organization: str | None = Field(None, description="Organization slug")
    api_token: str | None = Field(None, description="Platform API token")
    base_url: str = Field(DEFAULT_API_BASE_URL, description="Platform API base URL")
    timeout: int = Field(DEFAULT_API_TIMEOUT, ge=1, description="Request timeout (s)")
    default_group: str = Field(
        DEFAULT_GROUP, description="Group for databases created on first use"
    )
    url_scheme: str = Field(
        DEFAULT_URL_SCHEME, description="Scheme of replica sync URLs"
    )


class ReplicaConfig(BaseModel):
    """Configuration for local replicas."""

    scratch_dir: Path | None = Field(
        None, description="Directory for local replica files (system temp if unset)"
    )
    partial_sync: bool = Field(
        False, description="Default partial-sync mode for new replicas"
    )
    bootstrap_prefix_length: int = Field(
        DEFAULT_BOOTSTRAP_PREFIX_LENGTH,
        gt=0,
        description="Bytes hydrated by the default prefix bootstrap",
    )


class FlushConfig(BaseModel):
    """Configuration for background flushing."""

    coalesce_delay: float = Field(
        DEFAULT_COALESCE_DELAY,
        ge=0.0,
        description="Seconds a scheduled cycle waits before snapshotting",
    )
    max_attempts: int = Field(
        DEFAULT_FLUSH_MAX_ATTEMPTS,
        ge=1,
        description="Consecutive push failures before a replica is abandoned",
    )
    initial_backoff: float = Field(DEFAULT_FLUSH_INITIAL_BACKOFF, ge=0.0)
    max_backoff: float = Field(DEFAULT_FLUSH_MAX_BACKOFF, ge=0.0)
    backoff_base: float = Field(DEFAULT_FLUSH_BACKOFF_BASE, ge=1.0)

    def retry_backoff(self) -> RetryBackoff:
        """Backoff policy described by this section."""
        return RetryBackoff(
            max_attempts=self.max_attempts,
            initial_delay=self.initial_backoff,
            max_delay=self.max_backoff,
            exponential_base=self.backoff_base,
        )


class AppConfig(BaseModel):
    """Main application configuration."""

    platform: PlatformConfig = PlatformConfig()
    replica: ReplicaConfig = ReplicaConfig()
    flush: FlushConfig = FlushConfig()


class ConfigManager:
    """Manages application configuration from files and environment."""

    # Environment variable -> (section, key)
    ENV_OVERRIDES: dict[str, tuple[str, str]] = {
        ENV_ORGANIZATION: ("platform", "organization"),
        ENV_API_TOKEN: ("platform", "api_token"),
        "TURSO_API_URL": ("platform", "base_url"),
        "EDGE_REPLICA_SCRATCH_DIR": ("replica", "scratch_dir"),
        "EDGE_REPLICA_DEFAULT_GROUP": ("platform", "default_group"),
    }

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or self._find_config_file()
        self._config: AppConfig | None = None

    def _find_config_file(self) -> Path | None:
        """Find configuration file in standard locations."""
        search_paths = [
            Path.cwd() / ".edge-replica" / "config.yaml",
            Path.cwd() / "config" / "config.yaml",
            Path.cwd() / "config.yaml",
            Path.home() / ".config" / "edge-replica" / "config.yaml",
            Path("/etc/edge-replica/config.yaml"),
        ]

        for path in search_paths:
            if path.exists():
                return path

        return None

    def load_config(self) -> AppConfig:
        """Load configuration from file or create default."""
        if self._config is not None:
            return self._config

        default_config = self.get_default_config()

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Invalid YAML in {self.config_path}: {e}"
                ) from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(
                    f"Expected a mapping at the top of {self.config_path}"
                )

            config_data = self._deep_merge_configs(default_config, file_config)
        else:
            config_data = default_config

        config_data = self._apply_env_overrides(config_data)

        self._config = AppConfig(**config_data)
        return self._config

    def _deep_merge_configs(
        self, default_config: dict[str, Any], override_config: dict[str, Any]
    ) -> dict[str, Any]:
        """Merge override sections into the defaults one level deep.

        Args:
            default_config: Base configuration with all defaults
            override_config: User-provided overrides

        Returns:
            Merged configuration

        Example:
            Default: {"flush": {"max_attempts": 5, "max_backoff": 60.0}}
            Override: {"flush": {"max_attempts": 2}}
            Result: {"flush": {"max_attempts": 2, "max_backoff": 60.0}}
        """
        result = copy.deepcopy(default_config)

        for key, value in override_config.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key].update(value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config_data: dict[str, Any]) -> dict[str, Any]:
        """Apply environment variable overrides to config."""
        for env_name, (section, key) in self.ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if value:
                config_data.setdefault(section, {})[key] = value

        return config_data

    def get_platform_identity(self) -> tuple[str, str]:
        """Return the organization and API token for the control plane.

        The environment is consulted on every call so a changed organization
        is picked up without reloading the rest of the configuration.

        Raises:
            ConfigurationError: If either value is missing
        """
        platform = self.load_config().platform
        organization = os.environ.get(ENV_ORGANIZATION) or platform.organization
        if not organization:
            raise ConfigurationError(
                f"{ENV_ORGANIZATION} environment variable is required"
            )
        api_token = os.environ.get(ENV_API_TOKEN) or platform.api_token
        if not api_token:
            raise ConfigurationError(
                f"{ENV_API_TOKEN} environment variable is required"
            )
        return organization, api_token

    def get_complete_config_dict(self) -> dict[str, Any]:
        """Get the complete configuration as a dictionary for display.

        The API token is masked.
        """
        config = self.load_config()
        data = config.model_dump(mode="json")
        if data["platform"].get("api_token"):
            data["platform"]["api_token"] = "***"
        return data

    def show_config(self) -> str:
        """Show the complete configuration in YAML format.

        Returns:
            YAML formatted configuration string
        """
        config_dict = self.get_complete_config_dict()
        return yaml.dump(config_dict, default_flow_style=False, sort_keys=False)

    def get_default_config(self) -> dict[str, Any]:
        """Get default configuration as a plain dictionary."""
        return AppConfig().model_dump()


# Global config manager instance with factory pattern
_config_manager_instance: ConfigManager | None = None


def get_config_manager(config_path: Path | None = None) -> ConfigManager:
    """Get or create the global config manager instance.

    Args:
        config_path: Optional path to config file (only used on first call)

    Returns:
        The global ConfigManager instance
    """
    global _config_manager_instance
    if _config_manager_instance is None:
        _config_manager_instance = ConfigManager(config_path)
    return _config_manager_instance


def set_config_manager(manager: ConfigManager) -> None:
    """Set the config manager instance (primarily for testing).

    Args:
        manager: ConfigManager instance to use globally
    """
    global _config_manager_instance
    _config_manager_instance = manager


def reset_config_manager() -> None:
    """Reset the config manager instance (primarily for testing)."""
    global _config_manager_instance
    _config_manager_instance = None
