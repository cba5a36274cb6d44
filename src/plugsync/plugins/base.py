"""
PlugSync Runtime Bridge.

The host application owns the set of loaded plugins. PlugSync only talks
to it through the RuntimeBridge interface defined here.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from plugsync.core.errors import RuntimeBridgeError
from plugsync.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(eq=False)
class LoadedPlugin:
    """Handle to a plugin instance owned by the runtime.

    Handles compare by identity; a reload produces a new handle.
    """

    directory_name: str
    path: Path
    loaded_at: datetime = field(default_factory=datetime.now)
    closed: bool = False

    def close(self) -> None:
        self.closed = True


class RuntimeBridge(ABC):
    """Interface to the host's registry of loaded plugins."""

    @abstractmethod
    def list_loaded(self) -> list[LoadedPlugin]:
        """Currently loaded plugin handles."""

    @abstractmethod
    def unload(self, handle: LoadedPlugin) -> None:
        """Stop the plugin and release its code."""

    @abstractmethod
    def load_from_path(self, relative_path: Path) -> LoadedPlugin:
        """
        Load a plugin from ``<sources_dir>/<folder_name>`` relative to the
        application root. Raises RuntimeBridgeError when the runtime refuses.
        """

    @abstractmethod
    def remove_from_loaded(self, handle: LoadedPlugin) -> None:
        """Forget a handle previously returned by list_loaded or load_from_path."""

    def find_loaded(self, directory_name: str) -> LoadedPlugin | None:
        for handle in self.list_loaded():
            if handle.directory_name == directory_name:
                return handle
        return None


class InMemoryRuntime(RuntimeBridge):
    """
    In-process runtime that tracks which plugin folders are loaded.

    Stands in for the host when PlugSync runs on its own (the CLI) and in
    tests. ``on_load``/``on_unload`` let an embedding application attach
    its own loading logic.
    """

    def __init__(
        self,
        app_root: Path,
        on_load: Callable[[LoadedPlugin], None] | None = None,
        on_unload: Callable[[LoadedPlugin], None] | None = None,
    ) -> None:
        self.app_root = app_root
        self._on_load = on_load
        self._on_unload = on_unload
        self._loaded: dict[str, LoadedPlugin] = {}
        self._lock = threading.Lock()

    def list_loaded(self) -> list[LoadedPlugin]:
        with self._lock:
            return list(self._loaded.values())

    def unload(self, handle: LoadedPlugin) -> None:
        if handle.closed:
            return
        if self._on_unload is not None:
            self._on_unload(handle)
        handle.close()
        logger.info("Plugin unloaded", plugin=handle.directory_name)

    def load_from_path(self, relative_path: Path) -> LoadedPlugin:
        path = self.app_root / relative_path
        if not path.is_dir():
            raise RuntimeBridgeError(f"Plugin folder not found: {relative_path}")

        handle = LoadedPlugin(directory_name=path.name, path=path)
        if self._on_load is not None:
            try:
                self._on_load(handle)
            except Exception as e:
                raise RuntimeBridgeError(f"Failed to load {path.name}: {e}") from e

        with self._lock:
            previous = self._loaded.get(handle.directory_name)
            self._loaded[handle.directory_name] = handle
        if previous is not None and not previous.closed:
            logger.warning("Replaced a plugin that was still loaded", plugin=handle.directory_name)
            previous.close()

        logger.info("Plugin loaded", plugin=handle.directory_name, path=str(relative_path))
        return handle

    def remove_from_loaded(self, handle: LoadedPlugin) -> None:
        with self._lock:
            if self._loaded.get(handle.directory_name) is handle:
                del self._loaded[handle.directory_name]

    def load_all(self, sources_dir: Path, exclude: str | None = None) -> int:
        """
        Load every folder under ``sources_dir``, the way a host does at
        startup. Returns the number of plugins loaded.
        """
        root = self.app_root / sources_dir
        if not root.is_dir():
            return 0

        loaded = 0
        for folder in sorted(root.iterdir()):
            if not folder.is_dir():
                continue
            if exclude is not None and folder.name.casefold() == exclude.casefold():
                continue
            try:
                self.load_from_path(sources_dir / folder.name)
                loaded += 1
            except RuntimeBridgeError as e:
                logger.error("Failed to load plugin", plugin=folder.name, error=str(e))
        return loaded
