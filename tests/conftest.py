"""
Pytest configuration and fixtures for PlugSync tests.
"""

import sys
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Generator
from unittest.mock import Mock

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class ScheduledCall:
    """A deferred callback that only runs when the test fires it."""

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        if not self.cancelled and not self.fired:
            self.fired = True
            self.callback()


class ManualScheduler:
    """Scheduler for StatusBoard that never fires on its own."""

    def __init__(self) -> None:
        self.scheduled: list[ScheduledCall] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> ScheduledCall:
        call = ScheduledCall(delay, callback)
        self.scheduled.append(call)
        return call

    def fire_all(self) -> None:
        for call in list(self.scheduled):
            call.fire()


def make_plugin(sources_root: Path, name: str, repo: bool = True) -> Path:
    """Create a plugin folder, optionally with git metadata."""
    folder = sources_root / name
    folder.mkdir(parents=True, exist_ok=True)
    (folder / "plugin.py").write_text(f"NAME = {name!r}\n")
    if repo:
        (folder / ".git").mkdir(exist_ok=True)
    return folder


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config(temp_dir: Path) -> "PlugSyncConfig":
    """Create a sample configuration rooted in a temporary directory."""
    from plugsync.core.config import PlugSyncConfig

    config = PlugSyncConfig()
    config.paths.app_root = temp_dir / "app"
    config.logging.log_directory = temp_dir / "logs"
    config.logging.file_enabled = False
    config.logging.console_enabled = False
    config.paths.app_root.mkdir(parents=True)
    return config


@pytest.fixture
def sources_root(sample_config: "PlugSyncConfig") -> Path:
    """The plugin sources directory of the sample configuration."""
    root = sample_config.paths.sources_root
    root.mkdir(parents=True, exist_ok=True)
    return root


@pytest.fixture
def plugin_factory(sources_root: Path) -> Callable[..., Path]:
    """Create plugin folders under the sources root."""

    def factory(name: str, repo: bool = True) -> Path:
        return make_plugin(sources_root, name, repo)

    return factory


@pytest.fixture
def mock_git() -> Mock:
    """Create a mock git client whose checkouts are all up to date."""
    from plugsync.platform.git import GitClient

    git = Mock(spec=GitClient)
    git.is_repository.side_effect = lambda path: (path / ".git").exists()
    git.remote_url.return_value = None
    git.current_branch.return_value = "main"
    git.default_branch.return_value = "main"
    git.remote_branch.return_value = "0123abcd"
    git.divergence.return_value = (0, 0)

    def clone(url: str, target: Path, checkout: bool = False) -> None:
        (target / ".git").mkdir(parents=True)
        (target / "plugin.py").write_text("NAME = 'cloned'\n")

    git.clone.side_effect = clone
    return git


@pytest.fixture
def mock_catalog_source() -> Mock:
    """Create a mock catalog source with no entries."""
    from plugsync.plugins.catalog import CatalogSource

    source = Mock(spec=CatalogSource)
    source.url = "https://catalog.example.invalid/plugins.json"
    source.fetch.return_value = ()
    source.try_fetch.return_value = ()
    return source


@pytest.fixture
def manual_scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def runtime(sample_config: "PlugSyncConfig") -> "InMemoryRuntime":
    from plugsync.plugins.base import InMemoryRuntime

    return InMemoryRuntime(sample_config.paths.app_root)


@pytest.fixture
def session(
    sample_config: "PlugSyncConfig",
    runtime: "InMemoryRuntime",
    mock_git: Mock,
    mock_catalog_source: Mock,
    manual_scheduler: ManualScheduler,
) -> Generator["Session", None, None]:
    """Create a session wired to a mock git client and an in-memory runtime."""
    from plugsync.core.session import Session

    with Session(
        config=sample_config,
        runtime=runtime,
        git=mock_git,
        catalog_source=mock_catalog_source,
        status_scheduler=manual_scheduler,
        session_id="test-session-id",
    ) as session:
        yield session


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow running tests")
