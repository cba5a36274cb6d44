"""
PlugSync Repository Probe.

Read-only inspection of a plugin folder as a git checkout.
"""

from __future__ import annotations

from pathlib import Path

from plugsync.core.errors import PlugSyncError
from plugsync.core.logging import get_logger
from plugsync.core.models import ProbeResult
from plugsync.platform.git import GitClient

logger = get_logger(__name__)


class RepositoryProbe:
    """Determines whether a folder is a checkout and how it relates to origin."""

    remote = "origin"

    def __init__(self, git: GitClient) -> None:
        self.git = git

    def probe(self, path: Path) -> ProbeResult:
        """
        Inspect ``path``. Never raises: a plain folder is a valid outcome,
        and any git, network or filesystem failure (including undecodable
        git output) is reported as "not a repository".

        ``is_up_to_date`` stays None when the current branch has no
        same-named branch on origin. Commits ahead of origin do not make a
        checkout out of date; only commits behind do.
        """
        try:
            if not self.git.is_repository(path):
                return ProbeResult.not_a_repository()
            return self._inspect(path)
        except (PlugSyncError, OSError, ValueError) as e:
            logger.warning(
                "Error checking git status",
                plugin=path.name,
                error_type=type(e).__name__,
                error=str(e),
            )
            return ProbeResult.failed()

    def _inspect(self, path: Path) -> ProbeResult:
        self.git.fetch(path, self.remote)

        remote_url = self.git.remote_url(path, self.remote)
        branch = self.git.current_branch(path)
        if branch is None:
            return ProbeResult(is_repo=True, remote_url=remote_url)

        if self.git.remote_branch(path, branch, self.remote) is None:
            logger.debug("No tracking branch", plugin=path.name, branch=branch)
            return ProbeResult(is_repo=True, remote_url=remote_url, branch=branch)

        ahead, behind = self.git.divergence(path, "HEAD", f"{self.remote}/{branch}")
        return ProbeResult(
            is_repo=True,
            remote_url=remote_url,
            is_up_to_date=behind == 0,
            branch=branch,
            ahead=ahead,
            behind=behind,
        )
