"""
PlugSync - Plugin source manager for a host application.

Discovers plugin checkouts on disk, tracks how each relates to its git
remote and keeps installs, updates and deletes consistent with the set
of plugins the host has loaded.
"""

__version__ = "1.0.0"
__author__ = "PlugSync Team"

from plugsync.core.config import PlugSyncConfig
from plugsync.core.session import Session

__all__ = ["PlugSyncConfig", "Session", "__version__"]
