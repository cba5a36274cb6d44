"""
PlugSync Platform Layer.

Runs external tools (git) and performs filesystem work on plugin folders.
"""

from plugsync.platform.base import CommandResult, run_command
from plugsync.platform.file_ops import remove_tree
from plugsync.platform.git import GitClient

__all__ = ["CommandResult", "GitClient", "remove_tree", "run_command"]
