"""
Tests for plugsync.core.session module.
"""

import threading
from unittest.mock import Mock

import pytest

from plugsync.core.errors import InvalidArgument
from plugsync.core.job import Job, JobContext, JobStatus
from plugsync.core.models import CatalogEntry
from plugsync.core.safety import ExecutionPlan, OperationType
from plugsync.core.session import Session


class BlockingJob(Job[str]):
    """Gated job that runs until released."""

    operation_type = OperationType.REFRESH

    def __init__(self) -> None:
        super().__init__(name="blocking", description="block")
        self.started = threading.Event()
        self.release = threading.Event()

    def execute(self, context: JobContext) -> str:
        self.started.set()
        self.release.wait(timeout=5)
        return "done"

    def get_plan(self) -> ExecutionPlan:
        return ExecutionPlan(self.operation_type, "Block", "nothing", ["Wait"])


class TestSession:
    """Tests for Session."""

    def test_initial_state(self, session: Session) -> None:
        assert session.id == "test-session-id"
        assert session.is_processing is False
        assert len(session.inventory_snapshot) == 0
        assert session.catalog == ()
        assert session.status.text == ""

    def test_find_unknown_plugin(self, session: Session) -> None:
        with pytest.raises(InvalidArgument):
            session.find("Missing")

    def test_trigger_ignored_while_busy(self, session: Session, mock_git: Mock) -> None:
        assert session.gate.try_acquire("someone else")

        assert session.install("https://github.com/alice/widget") is None
        assert session.refresh() is None
        mock_git.clone.assert_not_called()

        session.gate.release()
        assert session.refresh().success is True

    def test_background_job_holds_gate(self, session: Session) -> None:
        job = BlockingJob()
        job_id = session.submit(job)
        assert job_id is not None
        assert job.started.wait(timeout=5)

        assert session.is_processing is True
        assert session.submit(BlockingJob()) is None
        assert session.refresh(background=True) is None

        job.release.set()
        result = session.wait(job_id, timeout=5)
        assert result.success is True
        assert session.get_job_status(job_id) == JobStatus.COMPLETED
        assert session.is_processing is False

    def test_gate_released_after_failure(self, session: Session, mock_git: Mock, plugin_factory) -> None:
        plugin_factory("Widget")
        session.rebuild_inventory()

        assert session.update("Widget").success is False
        assert session.is_processing is False

    def test_read_only_job_not_gated(self, session: Session, mock_catalog_source: Mock) -> None:
        entries = (CatalogEntry(name="Widget", author="alice"),)
        mock_catalog_source.fetch.return_value = entries
        assert session.gate.try_acquire("someone else")

        result = session.fetch_catalog()
        assert result.success is True
        assert session.catalog == entries
        session.gate.release()

    def test_disabled_session_ignores_triggers(self, session: Session, mock_catalog_source: Mock) -> None:
        session.config.enabled = False
        assert session.refresh() is None
        assert session.fetch_catalog() is None
        mock_catalog_source.fetch.assert_not_called()

    def test_status_expires(self, session: Session, manual_scheduler) -> None:
        session.refresh()
        assert session.status.text == "Successfully refreshed plugin list"

        manual_scheduler.fire_all()
        assert session.status.text == ""

    def test_newer_status_survives_older_expiry(self, session: Session, manual_scheduler) -> None:
        session.refresh()
        session.status.show("Failed to delete Widget: boom", is_error=True)

        manual_scheduler.scheduled[0].fire()
        assert session.status.text == "Failed to delete Widget: boom"

    def test_catalog_listing(self, session: Session, mock_git: Mock, plugin_factory) -> None:
        plugin_factory("widget-fork")
        plugin_factory("Local", repo=False)
        mock_git.remote_url.return_value = "https://github.com/Alice/Widget.git"
        session.publish_catalog(
            (
                CatalogEntry(name="widget", author="alice", description="Adds a widget"),
                CatalogEntry(name="Gadget", author="carol"),
            )
        )
        session.rebuild_inventory()

        listing = {item.entry.name: item for item in session.catalog_listing()}
        assert listing["widget"].installed.folder_name == "widget-fork"
        assert listing["Gadget"].is_installed is False
        assert session.find("widget-fork").catalog_entry.description == "Adds a widget"

    def test_refresh_with_catalog_publishes(self, session: Session, mock_catalog_source: Mock) -> None:
        entries = (CatalogEntry(name="Widget", author="alice"),)
        mock_catalog_source.try_fetch.return_value = entries

        assert session.refresh(with_catalog=True).success is True
        assert session.catalog == entries

    def test_close_clears_status(self, session: Session, manual_scheduler) -> None:
        session.refresh()
        session.close()
        assert session.status.text == ""
        assert all(call.cancelled for call in manual_scheduler.scheduled)
