"""
PlugSync Job Runner.

Runs lifecycle operations either inline or on a worker thread, records
their results and notifies listeners when a job changes state. Jobs are
not cancellable once started.
"""

from __future__ import annotations

import threading
import traceback
import uuid
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from plugsync.core.errors import InvalidArgument
from plugsync.core.logging import get_logger
from plugsync.core.safety import ExecutionPlan, OperationType

if TYPE_CHECKING:
    from plugsync.core.session import Session

T = TypeVar("T")
logger = get_logger(__name__)


class JobStatus(Enum):
    """Status of a job execution."""

    PENDING = auto()
    RUNNING = auto()
    COMPLETED = auto()
    FAILED = auto()

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class JobProgress:
    """Progress information for a running job."""

    current: int = 0
    total: int = 100
    message: str = ""
    stage: str = ""

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return min(100.0, (self.current / self.total) * 100)


@dataclass
class JobResult(Generic[T]):
    """Result of a completed job."""

    success: bool
    data: T | None = None
    error: str | None = None
    error_type: str | None = None
    error_traceback: str | None = None
    warnings: list[str] = field(default_factory=list)
    start_time: datetime | None = None
    end_time: datetime | None = None

    @property
    def duration_seconds(self) -> float | None:
        if self.start_time and self.end_time:
            return (self.end_time - self.start_time).total_seconds()
        return None


class JobContext:
    """Context passed to job execution for progress and warnings."""

    def __init__(self) -> None:
        self._progress = JobProgress()
        self._progress_callbacks: list[Callable[[JobProgress], None]] = []
        self._lock = threading.Lock()
        self._warnings: list[str] = []

    def update_progress(
        self,
        current: int | None = None,
        total: int | None = None,
        message: str | None = None,
        stage: str | None = None,
    ) -> None:
        """Update progress information."""
        with self._lock:
            if current is not None:
                self._progress.current = current
            if total is not None:
                self._progress.total = total
            if message is not None:
                self._progress.message = message
            if stage is not None:
                self._progress.stage = stage
            progress_copy = JobProgress(
                current=self._progress.current,
                total=self._progress.total,
                message=self._progress.message,
                stage=self._progress.stage,
            )

        # Notify callbacks outside lock
        for callback in self._progress_callbacks:
            try:
                callback(progress_copy)
            except Exception as e:
                logger.warning("Progress callback error", error=str(e))

    def add_progress_callback(self, callback: Callable[[JobProgress], None]) -> None:
        """Add a callback to be notified of progress updates."""
        self._progress_callbacks.append(callback)

    def get_progress(self) -> JobProgress:
        """Get current progress snapshot."""
        with self._lock:
            return JobProgress(
                current=self._progress.current,
                total=self._progress.total,
                message=self._progress.message,
                stage=self._progress.stage,
            )

    def add_warning(self, warning: str) -> None:
        """Add a warning to the job result."""
        with self._lock:
            self._warnings.append(warning)

    def get_warnings(self) -> list[str]:
        """Get all warnings."""
        with self._lock:
            return self._warnings.copy()


class Job(ABC, Generic[T]):
    """Base class for all PlugSync jobs."""

    operation_type: OperationType = OperationType.READ_ONLY

    def __init__(self, name: str, description: str) -> None:
        self.id = str(uuid.uuid4())
        self.name = name
        self.description = description
        self.status = JobStatus.PENDING
        self.context = JobContext()
        self.result: JobResult[T] | None = None
        self.created_at = datetime.now()
        self.started_at: datetime | None = None
        self.completed_at: datetime | None = None
        self._session: Session | None = None

    def set_session(self, session: Session) -> None:
        """Set the session that provides inventory, git and runtime access."""
        self._session = session

    @property
    def session(self) -> Session:
        if self._session is None:
            raise RuntimeError("Session not set")
        return self._session

    @abstractmethod
    def execute(self, context: JobContext) -> T:
        """Execute the job. Subclasses must implement this."""

    @abstractmethod
    def get_plan(self) -> ExecutionPlan:
        """Return the execution plan for review before running."""

    def validate(self) -> list[str]:
        """
        Validate job parameters before execution.
        Returns a list of validation errors (empty if valid).
        """
        return []

    def success_message(self) -> str:
        return f"Successfully completed {self.description}"

    def failure_message(self, error: str | None) -> str:
        return f"Failed to {self.description}: {error}"


class JobRunner:
    """Executes jobs with proper lifecycle management."""

    def __init__(self) -> None:
        self._jobs: dict[str, Job[Any]] = {}
        self._running_threads: dict[str, threading.Thread] = {}
        self._lock = threading.Lock()
        self._status_callbacks: list[Callable[[Job[Any], JobStatus], None]] = []

    def submit(self, job: Job[T]) -> str:
        """Register a job. Returns job ID."""
        with self._lock:
            self._jobs[job.id] = job

        logger.info("Job submitted", job_id=job.id, job_name=job.name)
        return job.id

    def start(self, job_id: str) -> None:
        """Start executing a submitted job on a worker thread."""
        job = self._get_job(job_id)

        thread = threading.Thread(
            target=self._execute_job,
            args=(job,),
            name=f"job-{job_id[:8]}",
            daemon=True,
        )

        with self._lock:
            self._running_threads[job_id] = thread

        thread.start()

    def run_sync(self, job: Job[T]) -> JobResult[T]:
        """Run a job on the calling thread and return its result."""
        self.submit(job)
        self._execute_job(job)
        return job.result  # type: ignore[return-value]

    def _execute_job(self, job: Job[Any]) -> None:
        """Internal job execution."""
        job.status = JobStatus.RUNNING
        job.started_at = datetime.now()
        self._notify_status(job, JobStatus.RUNNING)

        logger.info("Job started", job_id=job.id, job_name=job.name)

        try:
            errors = job.validate()
            if errors:
                raise InvalidArgument("Validation failed: " + "; ".join(errors))

            result_data = job.execute(job.context)
            job.status = JobStatus.COMPLETED
            job.result = JobResult(
                success=True,
                data=result_data,
                warnings=job.context.get_warnings(),
                start_time=job.started_at,
                end_time=datetime.now(),
            )
            logger.info(
                "Job completed",
                job_id=job.id,
                job_name=job.name,
                duration_seconds=job.result.duration_seconds,
            )

        except Exception as e:
            job.status = JobStatus.FAILED
            job.result = JobResult(
                success=False,
                error=str(e),
                error_type=type(e).__name__,
                error_traceback=traceback.format_exc(),
                warnings=job.context.get_warnings(),
                start_time=job.started_at,
                end_time=datetime.now(),
            )
            logger.error(
                "Job failed",
                job_id=job.id,
                job_name=job.name,
                error_type=type(e).__name__,
                error=str(e),
            )

        finally:
            job.completed_at = datetime.now()
            self._notify_status(job, job.status)
            with self._lock:
                self._running_threads.pop(job.id, None)

    def get_job(self, job_id: str) -> Job[Any] | None:
        """Get a job by ID."""
        return self._jobs.get(job_id)

    def get_status(self, job_id: str) -> JobStatus | None:
        """Get the status of a job."""
        job = self._jobs.get(job_id)
        return job.status if job else None

    def wait(self, job_id: str, timeout: float | None = None) -> JobResult[Any] | None:
        """Wait for a job to complete."""
        with self._lock:
            thread = self._running_threads.get(job_id)
        if thread:
            thread.join(timeout)

        job = self._jobs.get(job_id)
        return job.result if job else None

    def list_jobs(self, status: JobStatus | None = None) -> list[Job[Any]]:
        """List all jobs, optionally filtered by status."""
        with self._lock:
            jobs = list(self._jobs.values())

        if status is not None:
            jobs = [j for j in jobs if j.status == status]

        return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    def add_status_callback(self, callback: Callable[[Job[Any], JobStatus], None]) -> None:
        """Add a callback to be notified of job status changes."""
        self._status_callbacks.append(callback)

    def _get_job(self, job_id: str) -> Job[Any]:
        """Get a job or raise KeyError."""
        job = self._jobs.get(job_id)
        if job is None:
            raise KeyError(f"Job not found: {job_id}")
        return job

    def _notify_status(self, job: Job[Any], status: JobStatus) -> None:
        """Notify all status callbacks."""
        for callback in self._status_callbacks:
            try:
                callback(job, status)
            except Exception as e:
                logger.warning("Status callback error", job_id=job.id, error=str(e))
