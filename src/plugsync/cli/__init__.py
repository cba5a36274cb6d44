"""
PlugSync CLI Module.

Provides command-line interface for PlugSync operations.
"""

from plugsync.cli.main import main, cli

__all__ = ["main", "cli"]
