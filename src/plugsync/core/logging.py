"""
PlugSync structured logging.

Every event carries the logger name, an ISO timestamp and the level.
Lifecycle operations log through ``OperationLogger``, which binds the
operation and the plugin folder it acts on, so a single ``grep
plugin=Widget`` over the log file shows everything that happened to
that plugin.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from plugsync.core.config import LoggingConfig


_configured = False

LOG_FILE_PREFIX = "plugsync"


def log_file_path(config: LoggingConfig, day: datetime | None = None) -> Path:
    """Daily log file inside the configured log directory."""
    day = day or datetime.now()
    return config.log_directory / f"{LOG_FILE_PREFIX}_{day.strftime('%Y%m%d')}.log"


def setup_logging(config: LoggingConfig) -> None:
    """Configure structlog once per process; later calls are ignored."""
    global _configured

    if _configured:
        return

    handlers: list[logging.Handler] = []

    if config.console_enabled:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(getattr(logging, config.level))
        handlers.append(console_handler)

    if config.file_enabled:
        config.log_directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file_path(config), encoding="utf-8")
        # git output and probe failures only show at debug level
        file_handler.setLevel(logging.DEBUG)
        handlers.append(file_handler)

    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(level=logging.DEBUG, handlers=handlers, format="%(message)s")

    processors: list[structlog.types.Processor] = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if config.json_format:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _configured = True


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name or "plugsync")


class OperationLogger:
    """
    Logs the start and the outcome of one lifecycle operation.

    The operation name and the keyword context (typically ``plugin`` and,
    for installs, ``url``) are bound to the logger, so the start, outcome
    and anything logged through ``op.logger`` in between share them.
    ``update`` binds values discovered mid-operation, such as the branch.
    """

    def __init__(
        self,
        operation: str,
        logger: structlog.stdlib.BoundLogger | None = None,
        **context: Any,
    ):
        self.operation = operation
        self.logger = (logger or get_logger()).bind(operation=operation, **context)
        self.start_time: datetime | None = None

    def __enter__(self) -> OperationLogger:
        self.start_time = datetime.now()
        self.logger.info(f"Starting {self.operation}")
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        duration = (datetime.now() - self.start_time).total_seconds() if self.start_time else 0

        if exc_type is not None:
            self.logger.error(
                f"Failed {self.operation}",
                duration_seconds=duration,
                error_type=exc_type.__name__,
                error=str(exc_val),
            )
        else:
            self.logger.info(f"Completed {self.operation}", duration_seconds=duration)

    def update(self, **additional_context: Any) -> None:
        """Bind more context for the rest of the operation."""
        self.logger = self.logger.bind(**additional_context)
