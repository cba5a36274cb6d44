"""
PlugSync configuration management.

Provides centralized configuration with validation using Pydantic.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_CONFIG_PATH = Path.home() / ".plugsync" / "config.json"


class LoggingConfig(BaseModel):
    """Configuration for structured logging."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    file_enabled: bool = True
    console_enabled: bool = True
    json_format: bool = False
    log_directory: Path = Field(default_factory=lambda: Path.home() / ".plugsync" / "logs")

    @field_validator("log_directory", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()


class PathsConfig(BaseModel):
    """Where the host application keeps its plugin sources."""

    app_root: Path = Field(default_factory=Path.cwd)
    sources_dir: Path = Path("Plugins") / "Source"
    manager_folder: str = "PluginManager"

    @field_validator("app_root", mode="before")
    @classmethod
    def expand_root(cls, v: str | Path) -> Path:
        return Path(v).expanduser().resolve()

    @field_validator("sources_dir", mode="before")
    @classmethod
    def relative_sources(cls, v: str | Path) -> Path:
        path = Path(v)
        if path.is_absolute():
            raise ValueError("sources_dir must be relative to app_root")
        return path

    @property
    def sources_root(self) -> Path:
        return self.app_root / self.sources_dir

    def relative_plugin_path(self, folder_name: str) -> Path:
        """Path of a plugin folder relative to the application root."""
        return self.sources_dir / folder_name


class NetworkConfig(BaseModel):
    """Remote catalog and git transport settings.

    Timeouts default to ``None``, which leaves the transport's own default
    in place.
    """

    catalog_url: str | None = None
    catalog_timeout_seconds: float | None = Field(default=None, gt=0)
    git_timeout_seconds: float | None = Field(default=None, gt=0)
    git_executable: str = "git"


class StatusConfig(BaseModel):
    """Configuration for ephemeral status messages."""

    message_duration_seconds: float = Field(default=3.0, gt=0)


class PlugSyncConfig(BaseModel):
    """Main PlugSync configuration."""

    # on by default; the CLI is its own host
    enabled: bool = True
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    status: StatusConfig = Field(default_factory=StatusConfig)

    @classmethod
    def load(cls, config_path: Path | None = None) -> PlugSyncConfig:
        """Load configuration from file or create default."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        if config_path.exists():
            with open(config_path) as f:
                data = json.load(f)
            return cls.model_validate(data)

        return cls()

    def save(self, config_path: Path | None = None) -> None:
        """Save configuration to file."""
        if config_path is None:
            config_path = DEFAULT_CONFIG_PATH

        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            json.dump(self.model_dump(mode="json"), f, indent=2, default=str)

    def ensure_directories(self) -> None:
        """Create all required directories."""
        if self.logging.file_enabled:
            self.logging.log_directory.mkdir(parents=True, exist_ok=True)


def get_default_config() -> PlugSyncConfig:
    """Get the default configuration."""
    return PlugSyncConfig()


def load_config(config_path: Path | None = None) -> PlugSyncConfig:
    """Load or create configuration."""
    config = PlugSyncConfig.load(config_path)
    config.ensure_directories()
    return config
