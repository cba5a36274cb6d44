"""
PlugSync Session Management.

The session wires configuration, logging, the runtime bridge, git, the
catalog and the inventory together, and is the single entry point for
every plugin operation.
"""

from __future__ import annotations

import threading
import uuid
from datetime import datetime
from typing import Any

from plugsync.core.config import PlugSyncConfig, load_config
from plugsync.core.errors import InvalidArgument
from plugsync.core.job import Job, JobResult, JobRunner, JobStatus
from plugsync.core.logging import get_logger, setup_logging
from plugsync.core.models import (
    CatalogEntry,
    CatalogListing,
    InventorySnapshot,
    PluginRecord,
)
from plugsync.core.safety import ExecutionPlan, OperationGate
from plugsync.core.status import Scheduler, StatusBoard
from plugsync.platform.git import GitClient
from plugsync.plugins.base import InMemoryRuntime, RuntimeBridge
from plugsync.plugins.catalog import CatalogSource
from plugsync.plugins.inventory import PluginInventory
from plugsync.plugins.operations import (
    DeleteJob,
    FetchCatalogJob,
    InstallJob,
    RefreshJob,
    UpdateJob,
)
from plugsync.plugins.probe import RepositoryProbe

logger = get_logger(__name__)


class Session:
    """
    Manages a PlugSync session: the published inventory and catalog, the
    processing gate and the jobs that mutate plugin folders.

    Operation triggers made while another mutating operation is running
    are ignored and return None.
    """

    def __init__(
        self,
        config: PlugSyncConfig | None = None,
        runtime: RuntimeBridge | None = None,
        git: GitClient | None = None,
        catalog_source: CatalogSource | None = None,
        status_scheduler: Scheduler | None = None,
        session_id: str | None = None,
    ) -> None:
        self.id = session_id or str(uuid.uuid4())
        self.config = config or load_config()
        self.started_at = datetime.now()

        setup_logging(self.config.logging)

        paths = self.config.paths
        network = self.config.network

        self.gate = OperationGate()
        self.job_runner = JobRunner()
        self.job_runner.add_status_callback(self._on_job_status)
        self.status = StatusBoard(
            self.config.status.message_duration_seconds,
            scheduler=status_scheduler,
        )

        self.git = git or GitClient(network.git_executable, timeout=network.git_timeout_seconds)
        self.runtime = runtime or InMemoryRuntime(paths.app_root)
        self.catalog_source = catalog_source or CatalogSource(
            network.catalog_url,
            timeout=network.catalog_timeout_seconds,
        )
        self.probe = RepositoryProbe(self.git)
        self.inventory = PluginInventory(
            paths.sources_root,
            paths.manager_folder,
            self.probe,
            self.runtime,
        )

        self._catalog: tuple[CatalogEntry, ...] = ()
        self._catalog_lock = threading.Lock()
        self._gated_jobs: set[str] = set()

        logger.info(
            "Session started",
            session_id=self.id,
            sources_root=str(paths.sources_root),
            enabled=self.config.enabled,
        )

    # ==================== Published state ====================

    @property
    def inventory_snapshot(self) -> InventorySnapshot:
        return self.inventory.snapshot

    @property
    def catalog(self) -> tuple[CatalogEntry, ...]:
        with self._catalog_lock:
            return self._catalog

    @property
    def is_processing(self) -> bool:
        return self.gate.busy

    def publish_catalog(self, entries: tuple[CatalogEntry, ...]) -> None:
        """Replace the cached catalog as a whole."""
        with self._catalog_lock:
            self._catalog = tuple(entries)

    def rebuild_inventory(self) -> InventorySnapshot:
        return self.inventory.rebuild(self.catalog)

    def catalog_listing(self) -> list[CatalogListing]:
        snapshot = self.inventory_snapshot
        return [
            CatalogListing(entry=entry, installed=snapshot.find_by_identity(entry.identity))
            for entry in self.catalog
        ]

    def find(self, folder_name: str) -> PluginRecord:
        """Look a plugin up in the latest snapshot."""
        record = self.inventory_snapshot.get(folder_name)
        if record is None:
            raise InvalidArgument(f"No plugin named '{folder_name}'")
        return record

    # ==================== Operations ====================

    def refresh(self, with_catalog: bool = False, background: bool = False) -> Any:
        return self._dispatch(RefreshJob(with_catalog=with_catalog), background)

    def fetch_catalog(self, background: bool = False) -> Any:
        return self._dispatch(FetchCatalogJob(), background)

    def install(self, git_url: str, background: bool = False) -> Any:
        return self._dispatch(InstallJob(git_url), background)

    def update(self, folder_name: str, background: bool = False) -> Any:
        return self._dispatch(UpdateJob(self.find(folder_name)), background)

    def delete(self, folder_name: str, background: bool = False) -> Any:
        return self._dispatch(DeleteJob(self.find(folder_name)), background)

    def plan(self, job: Job[Any]) -> ExecutionPlan:
        """Execution plan for a job without running it."""
        job.set_session(self)
        return job.get_plan()

    def run(self, job: Job[Any]) -> JobResult[Any] | None:
        """Run a job on the calling thread. None if the trigger was ignored."""
        if not self._begin(job):
            return None
        return self.job_runner.run_sync(job)

    def submit(self, job: Job[Any]) -> str | None:
        """Run a job on a worker thread. None if the trigger was ignored."""
        if not self._begin(job):
            return None
        job_id = self.job_runner.submit(job)
        self.job_runner.start(job_id)
        return job_id

    def wait(self, job_id: str, timeout: float | None = None) -> JobResult[Any] | None:
        return self.job_runner.wait(job_id, timeout)

    def get_job_status(self, job_id: str) -> JobStatus | None:
        return self.job_runner.get_status(job_id)

    def _dispatch(self, job: Job[Any], background: bool) -> Any:
        return self.submit(job) if background else self.run(job)

    def _begin(self, job: Job[Any]) -> bool:
        if not self.config.enabled:
            logger.info("PlugSync is disabled, ignoring operation", job_name=job.name)
            return False

        job.set_session(self)
        if job.operation_type.is_gated:
            if not self.gate.try_acquire(job.description):
                return False
            self._gated_jobs.add(job.id)
        return True

    def _on_job_status(self, job: Job[Any], status: JobStatus) -> None:
        if not status.is_terminal:
            return

        try:
            result = job.result
            if result is not None and result.success:
                text = job.success_message()
                if result.warnings:
                    text = f"{text} ({'; '.join(result.warnings)})"
                self.status.show(text, is_error=bool(result.warnings))
            else:
                self.status.show(
                    job.failure_message(result.error if result else None),
                    is_error=True,
                )
        finally:
            if job.id in self._gated_jobs:
                self._gated_jobs.discard(job.id)
                self.gate.release()

    # ==================== Lifecycle ====================

    def close(self) -> None:
        """Wait for running jobs and drop pending status expiries."""
        for job in self.job_runner.list_jobs(JobStatus.RUNNING):
            self.job_runner.wait(job.id)
        self.status.clear()
        logger.info(
            "Session closed",
            session_id=self.id,
            duration_seconds=(datetime.now() - self.started_at).total_seconds(),
        )

    def __enter__(self) -> Session:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
