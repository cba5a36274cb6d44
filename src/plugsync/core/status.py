"""
PlugSync status messages.

A status message is ephemeral: it expires a fixed time after it was shown
unless a newer message replaced it first. Each message carries a token and
its expiry only clears the board while that token is still current.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from plugsync.core.logging import get_logger

logger = get_logger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


Scheduler = Callable[[float, Callable[[], None]], Cancellable]


def thread_scheduler(delay: float, callback: Callable[[], None]) -> Cancellable:
    """Run ``callback`` after ``delay`` seconds on a daemon timer thread."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


@dataclass(frozen=True)
class StatusMessage:
    text: str
    token: int
    shown_at: float
    is_error: bool = False


class StatusBoard:
    """Holds the single user-visible status message."""

    def __init__(
        self,
        duration_seconds: float = 3.0,
        scheduler: Scheduler | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.duration_seconds = duration_seconds
        self._scheduler = scheduler or thread_scheduler
        self._clock = clock
        self._lock = threading.Lock()
        self._message: StatusMessage | None = None
        self._next_token = 0
        self._pending: dict[int, Cancellable] = {}

    def show(self, text: str, is_error: bool = False) -> StatusMessage:
        """Publish a message and schedule its expiry."""
        with self._lock:
            self._next_token += 1
            message = StatusMessage(
                text=text,
                token=self._next_token,
                shown_at=self._clock(),
                is_error=is_error,
            )
            self._message = message

        handle = self._scheduler(self.duration_seconds, lambda: self._expire(message.token))
        with self._lock:
            # The expiry may already have fired with a zero-length delay
            if self._message is not None and self._message.token == message.token:
                self._pending[message.token] = handle

        logger.debug("Status message shown", text=text, token=message.token)
        return message

    def current(self) -> StatusMessage | None:
        """The visible message, or None once it has aged out."""
        with self._lock:
            message = self._message
        if message is None:
            return None
        if self._clock() - message.shown_at >= self.duration_seconds:
            return None
        return message

    @property
    def text(self) -> str:
        message = self.current()
        return message.text if message else ""

    def clear(self) -> None:
        """Drop the current message and every pending expiry."""
        with self._lock:
            self._message = None
            pending = list(self._pending.values())
            self._pending.clear()
        for handle in pending:
            handle.cancel()

    def _expire(self, token: int) -> None:
        with self._lock:
            self._pending.pop(token, None)
            if self._message is None or self._message.token != token:
                return
            self._message = None
        logger.debug("Status message expired", token=token)
