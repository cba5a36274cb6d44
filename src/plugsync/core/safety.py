"""
PlugSync Operation Safety.

Implements the single system-wide processing gate that serializes every
mutating operation, and the execution plans shown before one runs.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum, auto

from plugsync.core.logging import get_logger

logger = get_logger(__name__)


class OperationType(Enum):
    """Types of operations; everything but READ_ONLY takes the gate."""

    READ_ONLY = auto()  # Catalog fetch, listing
    REFRESH = auto()  # Inventory rebuild
    INSTALL = auto()  # Clone into the sources root
    UPDATE = auto()  # Hard reset to the remote tip
    DELETE = auto()  # Remove a plugin folder

    @property
    def is_gated(self) -> bool:
        return self is not OperationType.READ_ONLY


@dataclass
class ExecutionPlan:
    """Human-readable execution plan for an operation."""

    operation_type: OperationType
    description: str
    target: str
    steps: list[str]
    warnings: list[str] = field(default_factory=list)

    def get_plan_text(self) -> str:
        """Get human-readable plan text."""
        lines = ["=" * 60]
        lines.append(f"OPERATION: {self.description}")
        lines.append(f"TARGET: {self.target}")
        lines.append(f"TYPE: {self.operation_type.name}")
        lines.append("=" * 60)

        if self.warnings:
            lines.append("")
            lines.append("WARNINGS:")
            for warning in self.warnings:
                lines.append(f"   • {warning}")

        lines.append("")
        lines.append("EXECUTION STEPS:")
        for i, step in enumerate(self.steps, 1):
            lines.append(f"   {i}. {step}")

        return "\n".join(lines)


class OperationGate:
    """
    Try-acquire gate of capacity one.

    A trigger that finds the gate held is rejected, not queued.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._holder: str | None = None
        self._acquired_at: datetime | None = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def holder(self) -> str | None:
        """Description of the operation currently holding the gate."""
        with self._state_lock:
            return self._holder

    def try_acquire(self, operation: str) -> bool:
        if not self._lock.acquire(blocking=False):
            logger.debug(
                "Operation rejected, another operation is in progress",
                operation=operation,
                holder=self.holder,
            )
            return False

        with self._state_lock:
            self._holder = operation
            self._acquired_at = datetime.now()
        return True

    def release(self) -> None:
        with self._state_lock:
            if self._holder is None:
                raise RuntimeError("Operation gate released while not held")
            held_for = (
                (datetime.now() - self._acquired_at).total_seconds()
                if self._acquired_at
                else 0.0
            )
            operation = self._holder
            self._holder = None
            self._acquired_at = None
        self._lock.release()
        logger.debug("Operation gate released", operation=operation, held_seconds=held_for)
