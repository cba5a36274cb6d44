"""
PlugSync Core - Reconciler service layer.

Contains configuration, logging, the job runner, the processing gate,
status messages and session management.
"""

from plugsync.core.config import PlugSyncConfig
from plugsync.core.job import Job, JobResult, JobRunner, JobStatus
from plugsync.core.logging import get_logger, setup_logging
from plugsync.core.safety import OperationGate, OperationType
from plugsync.core.session import Session
from plugsync.core.status import StatusBoard

__all__ = [
    "PlugSyncConfig",
    "Job",
    "JobRunner",
    "JobStatus",
    "JobResult",
    "Session",
    "get_logger",
    "setup_logging",
    "OperationGate",
    "OperationType",
    "StatusBoard",
]
