"""
Tests for plugsync.core.config module.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from plugsync.core.config import (
    LoggingConfig,
    NetworkConfig,
    PathsConfig,
    PlugSyncConfig,
    StatusConfig,
    get_default_config,
    load_config,
)


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_default_values(self) -> None:
        config = LoggingConfig()
        assert config.level == "INFO"
        assert config.file_enabled is True
        assert config.console_enabled is True
        assert config.json_format is False

    def test_path_expansion(self) -> None:
        config = LoggingConfig(log_directory="~/logs")
        assert "~" not in str(config.log_directory)

    def test_invalid_level(self) -> None:
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")


class TestPathsConfig:
    """Tests for PathsConfig."""

    def test_default_values(self) -> None:
        config = PathsConfig()
        assert config.sources_dir == Path("Plugins") / "Source"
        assert config.manager_folder == "PluginManager"
        assert config.app_root.is_absolute()

    def test_sources_root(self, temp_dir: Path) -> None:
        config = PathsConfig(app_root=temp_dir)
        assert config.sources_root == temp_dir.resolve() / "Plugins" / "Source"

    def test_relative_plugin_path(self) -> None:
        config = PathsConfig()
        assert config.relative_plugin_path("Widget") == Path("Plugins/Source/Widget")

    def test_absolute_sources_dir_rejected(self, temp_dir: Path) -> None:
        with pytest.raises(ValidationError):
            PathsConfig(sources_dir=temp_dir)

    def test_custom_sources_dir(self) -> None:
        config = PathsConfig(sources_dir="addons")
        assert config.relative_plugin_path("x") == Path("addons/x")


class TestNetworkConfig:
    """Tests for NetworkConfig."""

    def test_default_values(self) -> None:
        config = NetworkConfig()
        assert config.catalog_url is None
        assert config.catalog_timeout_seconds is None
        assert config.git_timeout_seconds is None
        assert config.git_executable == "git"

    def test_timeouts_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            NetworkConfig(git_timeout_seconds=0)
        with pytest.raises(ValidationError):
            NetworkConfig(catalog_timeout_seconds=-1)


class TestStatusConfig:
    """Tests for StatusConfig."""

    def test_default_duration(self) -> None:
        assert StatusConfig().message_duration_seconds == 3.0

    def test_duration_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            StatusConfig(message_duration_seconds=0)


class TestPlugSyncConfig:
    """Tests for the main configuration."""

    def test_default_config(self) -> None:
        config = get_default_config()
        assert config.enabled is True
        assert isinstance(config.paths, PathsConfig)
        assert isinstance(config.network, NetworkConfig)

    def test_save_and_load(self, temp_dir: Path) -> None:
        path = temp_dir / "config.json"
        config = PlugSyncConfig(enabled=False)
        config.paths.app_root = temp_dir
        config.network.catalog_url = "https://catalog.example.invalid/plugins.json"
        config.status.message_duration_seconds = 5.0
        config.save(path)

        loaded = PlugSyncConfig.load(path)
        assert loaded.enabled is False
        assert loaded.paths.app_root == temp_dir.resolve()
        assert loaded.network.catalog_url == "https://catalog.example.invalid/plugins.json"
        assert loaded.status.message_duration_seconds == 5.0

    def test_load_missing_file_gives_defaults(self, temp_dir: Path) -> None:
        config = PlugSyncConfig.load(temp_dir / "missing.json")
        assert config.enabled is True
        assert config.network.catalog_url is None

    def test_load_config_creates_log_directory(self, temp_dir: Path) -> None:
        path = temp_dir / "config.json"
        config = PlugSyncConfig()
        config.logging.log_directory = temp_dir / "logs"
        config.save(path)

        loaded = load_config(path)
        assert loaded.logging.log_directory.is_dir()
