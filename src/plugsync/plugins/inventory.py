"""
PlugSync Plugin Inventory.

Scans the sources root and publishes an immutable snapshot with one
record per plugin folder.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from pathlib import Path

from plugsync.core.logging import get_logger
from plugsync.core.models import (
    CatalogEntry,
    InventorySnapshot,
    PluginRecord,
    RemoteIdentity,
)
from plugsync.platform.file_ops import list_subdirectories
from plugsync.plugins.base import LoadedPlugin, RuntimeBridge
from plugsync.plugins.probe import RepositoryProbe

logger = get_logger(__name__)


class PluginInventory:
    """
    Builds and publishes inventory snapshots.

    ``rebuild`` assembles a complete new snapshot before swapping it in,
    so ``snapshot`` always returns either the previous or the new one.
    """

    def __init__(
        self,
        sources_root: Path,
        manager_folder: str,
        probe: RepositoryProbe,
        runtime: RuntimeBridge,
    ) -> None:
        self.sources_root = sources_root
        self.manager_folder = manager_folder
        self.probe = probe
        self.runtime = runtime
        self._snapshot = InventorySnapshot()
        self._lock = threading.Lock()

    @property
    def snapshot(self) -> InventorySnapshot:
        with self._lock:
            return self._snapshot

    def is_manager_folder(self, folder_name: str) -> bool:
        return folder_name.casefold() == self.manager_folder.casefold()

    def rebuild(self, catalog: Iterable[CatalogEntry] = ()) -> InventorySnapshot:
        catalog = tuple(catalog)
        folders = [
            folder
            for folder in list_subdirectories(self.sources_root)
            if not self.is_manager_folder(folder.name)
        ]
        if not self.sources_root.is_dir():
            logger.debug("Sources root does not exist", path=str(self.sources_root))

        loaded = {handle.directory_name: handle for handle in self.runtime.list_loaded()}
        records = tuple(
            self._build_record(folder, loaded.get(folder.name), catalog) for folder in folders
        )
        snapshot = InventorySnapshot(records=records)

        with self._lock:
            self._snapshot = snapshot

        logger.info(
            "Inventory rebuilt",
            plugins=len(records),
            loaded=sum(1 for r in records if r.is_loaded),
            repositories=sum(1 for r in records if r.is_version_controlled),
        )
        return snapshot

    def _build_record(
        self,
        folder: Path,
        handle: LoadedPlugin | None,
        catalog: tuple[CatalogEntry, ...],
    ) -> PluginRecord:
        result = self.probe.probe(folder)

        identity = RemoteIdentity.from_url(result.remote_url) if result.is_repo else None
        if result.is_repo and result.remote_url and identity is None:
            logger.debug("Remote URL has no owner/repo identity", plugin=folder.name, url=result.remote_url)

        entry = next((e for e in catalog if e.matches(identity)), None)

        return PluginRecord(
            folder_name=folder.name,
            folder_path=folder,
            loaded_handle=handle,
            is_version_controlled=result.is_repo,
            is_up_to_date=bool(result.is_repo and result.is_up_to_date),
            has_tracking_branch=result.has_tracking_branch,
            remote_url=result.remote_url,
            remote_identity=identity,
            branch=result.branch,
            ahead=result.ahead,
            behind=result.behind,
            catalog_entry=entry,
        )
