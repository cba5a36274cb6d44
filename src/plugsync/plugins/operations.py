"""
PlugSync Lifecycle Operations.

Provides the install, update, delete, refresh and catalog jobs. Each
mutating job finishes by rebuilding the inventory so the published
snapshot reflects what is on disk and what the runtime has loaded.
"""

from __future__ import annotations

import re
from pathlib import Path

from plugsync.core.errors import (
    FilesystemError,
    InvalidArgument,
    PlugSyncError,
    PreconditionError,
    RuntimeBridgeError,
    SyncError,
)
from plugsync.core.job import Job, JobContext
from plugsync.core.logging import OperationLogger, get_logger
from plugsync.core.models import CatalogEntry, InventorySnapshot, PluginRecord
from plugsync.core.safety import ExecutionPlan, OperationType
from plugsync.platform.file_ops import path_present, remove_tree

logger = get_logger(__name__)

REMOTE = "origin"


def repo_name_from_url(git_url: str) -> str:
    """
    Folder name for a clone of ``git_url``: the last path segment with a
    trailing ``.git`` removed.
    """
    url = (git_url or "").strip()
    if not url:
        raise InvalidArgument("Git URL cannot be empty")

    segment = re.split(r"[/\\:]", url.rstrip("/\\"))[-1]
    if segment.endswith(".git"):
        segment = segment[: -len(".git")]
    if not segment or segment in (".", ".."):
        raise InvalidArgument(f"Cannot derive a repository name from {git_url!r}")
    return segment


class LifecycleJob(Job[PluginRecord | None]):
    """Common plumbing for jobs that mutate a plugin folder."""

    def _rebuild(self, context: JobContext) -> InventorySnapshot | None:
        context.update_progress(stage="refresh", message="Refreshing plugin list...")
        try:
            return self.session.rebuild_inventory()
        except OSError as e:
            logger.error("Inventory rebuild failed", job_name=self.name, error=str(e))
            context.add_warning(f"Plugin list could not be refreshed: {e}")
            return None

    def _load(self, context: JobContext, folder_name: str) -> None:
        relative = self.session.config.paths.relative_plugin_path(folder_name)
        context.update_progress(stage="load", message=f"Loading {folder_name}...")
        try:
            self.session.runtime.load_from_path(relative)
        except RuntimeBridgeError as e:
            logger.warning("Plugin load failed", plugin=folder_name, error=str(e))
            context.add_warning(f"{folder_name} is on disk but failed to load: {e}")

    def _unload(self, record: PluginRecord) -> None:
        handle = record.loaded_handle
        if handle is None:
            return
        runtime = self.session.runtime
        runtime.unload(handle)
        runtime.remove_from_loaded(handle)


class InstallJob(LifecycleJob):
    """Clone a plugin repository into the sources root and load it."""

    operation_type = OperationType.INSTALL

    def __init__(self, git_url: str) -> None:
        super().__init__(name="install", description=f"install plugin from {git_url}")
        self.git_url = (git_url or "").strip()

    def validate(self) -> list[str]:
        try:
            name = repo_name_from_url(self.git_url)
        except InvalidArgument as e:
            return [str(e)]
        if self._session is not None and self.session.inventory.is_manager_folder(name):
            return [f"Refusing to install over the manager's own folder '{name}'"]
        return []

    def target_path(self) -> Path:
        return self.session.config.paths.sources_root / repo_name_from_url(self.git_url)

    def execute(self, context: JobContext) -> PluginRecord | None:
        session = self.session
        name = repo_name_from_url(self.git_url)
        target = self.target_path()

        with OperationLogger("install", logger, plugin=name, url=self.git_url) as op:
            try:
                try:
                    if path_present(target):
                        context.update_progress(stage="clean", message=f"Removing existing {name}...")
                        remove_tree(target)
                    session.config.paths.sources_root.mkdir(parents=True, exist_ok=True)

                    context.update_progress(stage="clone", message=f"Cloning {self.git_url}...")
                    session.git.clone(self.git_url, target)

                    branch = session.git.default_branch(target)
                    op.update(branch=branch)
                    context.update_progress(stage="checkout", message=f"Checking out {branch}...")
                    session.git.checkout(target, branch)
                except OSError as e:
                    self._discard(target)
                    raise FilesystemError(f"Could not write {target}: {e}") from e
                except PlugSyncError:
                    self._discard(target)
                    raise

                self._load(context, name)
            finally:
                snapshot = self._rebuild(context)

        context.update_progress(current=100, message=f"Installed {name}")
        return snapshot.get(name) if snapshot else None

    def _discard(self, target: Path) -> None:
        if not path_present(target):
            return
        try:
            remove_tree(target)
        except FilesystemError as e:
            logger.error("Could not remove partial clone", path=str(target), error=str(e))

    def get_plan(self) -> ExecutionPlan:
        name = repo_name_from_url(self.git_url)
        warnings = []
        if path_present(self.target_path()):
            warnings.append(
                f"Folder '{name}' already exists and will be deleted; local changes are lost"
            )
        return ExecutionPlan(
            operation_type=self.operation_type,
            description="Install plugin",
            target=self.git_url,
            steps=[
                f"Clone {self.git_url} into {self.target_path()} without checkout",
                "Check out the default branch",
                f"Load {self.session.config.paths.relative_plugin_path(name)}",
                "Refresh the plugin list",
            ],
            warnings=warnings,
        )

    def success_message(self) -> str:
        return f"Successfully installed plugin from {self.git_url}"

    def failure_message(self, error: str | None) -> str:
        return f"Failed to install plugin: {error}"


class UpdateJob(LifecycleJob):
    """Hard-reset a loaded plugin to its remote tip and reload it."""

    operation_type = OperationType.UPDATE

    def __init__(self, record: PluginRecord) -> None:
        super().__init__(name="update", description=f"update {record.folder_name}")
        self.record = record

    def execute(self, context: JobContext) -> PluginRecord | None:
        record = self.record
        if record.loaded_handle is None:
            raise PreconditionError(
                f"{record.folder_name} is not loaded; delete and reinstall it instead"
            )
        if not record.is_version_controlled:
            raise PreconditionError(f"{record.folder_name} is not a git checkout")

        session = self.session
        path = record.folder_path

        with OperationLogger("update", logger, plugin=record.folder_name) as op:
            try:
                context.update_progress(stage="unload", message=f"Unloading {record.folder_name}...")
                self._unload(record)

                context.update_progress(stage="fetch", message=f"Fetching {REMOTE}...")
                session.git.fetch(path, REMOTE)
                branch = session.git.current_branch(path)
                if branch is None or session.git.remote_branch(path, branch, REMOTE) is None:
                    raise SyncError(
                        f"No tracking branch {REMOTE}/{branch or 'HEAD'} for {record.folder_name}"
                    )
                op.update(branch=branch)

                context.update_progress(stage="reset", message=f"Resetting to {REMOTE}/{branch}...")
                session.git.reset_hard(path, f"{REMOTE}/{branch}")

                self._load(context, record.folder_name)
            finally:
                snapshot = self._rebuild(context)

        context.update_progress(current=100, message=f"Updated {record.folder_name}")
        return snapshot.get(record.folder_name) if snapshot else None

    def get_plan(self) -> ExecutionPlan:
        record = self.record
        return ExecutionPlan(
            operation_type=self.operation_type,
            description="Update plugin",
            target=record.folder_name,
            steps=[
                "Unload the plugin",
                f"Fetch from {REMOTE}",
                f"Hard reset to {REMOTE}/{record.branch or '<current branch>'}",
                "Reload the plugin",
                "Refresh the plugin list",
            ],
            warnings=["Local modifications and unpushed commits are discarded"],
        )

    def success_message(self) -> str:
        return f"Successfully updated {self.record.folder_name}"

    def failure_message(self, error: str | None) -> str:
        return f"Failed to update {self.record.folder_name}: {error}"


class DeleteJob(LifecycleJob):
    """Unload a plugin and remove its folder."""

    operation_type = OperationType.DELETE

    def __init__(self, record: PluginRecord) -> None:
        super().__init__(name="delete", description=f"delete {record.folder_name}")
        self.record = record

    def validate(self) -> list[str]:
        if self._session is not None and self.session.inventory.is_manager_folder(
            self.record.folder_name
        ):
            return ["The manager's own folder cannot be deleted"]
        return []

    def execute(self, context: JobContext) -> PluginRecord | None:
        record = self.record

        with OperationLogger("delete", logger, plugin=record.folder_name):
            try:
                context.update_progress(stage="unload", message=f"Unloading {record.folder_name}...")
                self._unload(record)

                context.update_progress(stage="remove", message=f"Removing {record.folder_path}...")
                if path_present(record.folder_path):
                    remove_tree(record.folder_path)
                else:
                    context.add_warning(f"{record.folder_path} was already gone")
            finally:
                self._rebuild(context)

        context.update_progress(current=100, message=f"Deleted {record.folder_name}")
        return None

    def get_plan(self) -> ExecutionPlan:
        record = self.record
        steps = ["Unload the plugin"] if record.is_loaded else []
        steps += [f"Remove {record.folder_path} recursively", "Refresh the plugin list"]
        return ExecutionPlan(
            operation_type=self.operation_type,
            description="Delete plugin",
            target=record.folder_name,
            steps=steps,
            warnings=["All files in the plugin folder are permanently deleted"],
        )

    def success_message(self) -> str:
        return f"Successfully deleted {self.record.folder_name}"

    def failure_message(self, error: str | None) -> str:
        return f"Failed to delete {self.record.folder_name}: {error}"


class RefreshJob(Job[InventorySnapshot]):
    """Rebuild the inventory, optionally fetching the catalog first."""

    operation_type = OperationType.REFRESH

    def __init__(self, with_catalog: bool = False) -> None:
        super().__init__(name="refresh", description="refresh plugin list")
        self.with_catalog = with_catalog

    def execute(self, context: JobContext) -> InventorySnapshot:
        session = self.session
        if self.with_catalog:
            context.update_progress(stage="catalog", message="Fetching catalog...")
            entries = session.catalog_source.try_fetch()
            if entries is None:
                context.add_warning("Plugin catalog is unavailable")
            else:
                session.publish_catalog(entries)

        context.update_progress(stage="scan", message="Scanning plugin folders...")
        snapshot = session.rebuild_inventory()
        context.update_progress(current=100, message=f"Found {len(snapshot)} plugins")
        return snapshot

    def get_plan(self) -> ExecutionPlan:
        steps = ["Fetch the plugin catalog"] if self.with_catalog else []
        steps += [
            f"Scan {self.session.config.paths.sources_root}",
            f"Fetch from {REMOTE} for every git checkout",
        ]
        return ExecutionPlan(
            operation_type=self.operation_type,
            description="Refresh plugin list",
            target=str(self.session.config.paths.sources_root),
            steps=steps,
        )

    def success_message(self) -> str:
        return "Successfully refreshed plugin list"

    def failure_message(self, error: str | None) -> str:
        return f"Failed to refresh plugins: {error}"


class FetchCatalogJob(Job[tuple[CatalogEntry, ...]]):
    """Download the remote catalog and publish it."""

    operation_type = OperationType.READ_ONLY

    def __init__(self) -> None:
        super().__init__(name="fetch_catalog", description="fetch plugin catalog")

    def execute(self, context: JobContext) -> tuple[CatalogEntry, ...]:
        context.update_progress(message="Fetching catalog...")
        entries = self.session.catalog_source.fetch()
        self.session.publish_catalog(entries)
        context.update_progress(current=100, message=f"Fetched {len(entries)} catalog entries")
        return entries

    def get_plan(self) -> ExecutionPlan:
        return ExecutionPlan(
            operation_type=self.operation_type,
            description="Fetch plugin catalog",
            target=self.session.catalog_source.url or "(not configured)",
            steps=["Download the catalog document", "Replace the cached catalog"],
        )

    def success_message(self) -> str:
        return "Successfully fetched plugin catalog"

    def failure_message(self, error: str | None) -> str:
        return f"Failed to fetch plugin catalog: {error}"
