"""
PlugSync error taxonomy.

Lifecycle operations raise these; the probe and the catalog's non-raising
boundary convert them into "unavailable" results instead.
"""

from __future__ import annotations


class PlugSyncError(Exception):
    """Base class for all PlugSync errors."""


class NotARepository(PlugSyncError):
    """A plugin folder carries no version-control metadata."""


class NetworkError(PlugSyncError):
    """A fetch, clone or catalog download failed."""


class ParseError(PlugSyncError):
    """The remote catalog document is malformed."""


class SyncError(PlugSyncError):
    """The remote tracking branch could not be resolved during an update."""


class InvalidArgument(PlugSyncError, ValueError):
    """An operation was given an unusable argument."""


class PreconditionError(PlugSyncError):
    """An operation was requested on a target in the wrong state."""


class FilesystemError(PlugSyncError):
    """A permission or I/O failure while writing or removing plugin files."""


class RuntimeBridgeError(PlugSyncError):
    """The plugin runtime refused to load or unload a plugin."""


class GitCommandError(PlugSyncError):
    """A local git command exited unsuccessfully."""

    def __init__(self, message: str, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr
