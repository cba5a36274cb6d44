"""
PlugSync git client.

Thin wrapper over the ``git`` executable. Network-facing commands raise
NetworkError; local commands raise GitCommandError.
"""

from __future__ import annotations

from pathlib import Path

from plugsync.core.errors import GitCommandError, NetworkError
from plugsync.core.logging import get_logger
from plugsync.platform.base import CommandResult, run_command

logger = get_logger(__name__)

# Never block on a credential prompt from a background job
GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


class GitClient:
    """Runs git commands against plugin checkouts."""

    def __init__(self, executable: str = "git", timeout: float | None = None) -> None:
        self.executable = executable
        self.timeout = timeout

    def run(self, args: list[str], cwd: Path | None = None) -> CommandResult:
        command = [self.executable]
        if cwd is not None:
            command += ["-C", str(cwd)]
        command += args
        return run_command(command, timeout=self.timeout, env=GIT_ENV)

    def _checked(self, args: list[str], cwd: Path | None = None) -> CommandResult:
        result = self.run(args, cwd)
        if not result.success:
            raise GitCommandError(
                f"git {' '.join(args)} failed: {result.error_text}",
                stderr=result.stderr,
            )
        return result

    def is_repository(self, path: Path) -> bool:
        """Whether ``path`` is the root of a checkout (not merely inside one)."""
        return (path / ".git").exists()

    def fetch(self, path: Path, remote: str = "origin") -> None:
        result = self.run(["fetch", remote], cwd=path)
        if not result.success:
            raise NetworkError(f"Fetch from {remote} failed: {result.error_text}")

    def clone(self, url: str, target: Path, checkout: bool = False) -> None:
        args = ["clone"]
        if not checkout:
            args.append("--no-checkout")
        args += [url, str(target)]
        result = self.run(args)
        if not result.success:
            raise NetworkError(f"Clone of {url} failed: {result.error_text}")

    def remote_url(self, path: Path, remote: str = "origin") -> str | None:
        result = self.run(["config", "--get", f"remote.{remote}.url"], cwd=path)
        return (result.output or None) if result.success else None

    def current_branch(self, path: Path) -> str | None:
        """Name of the checked-out branch, None when HEAD is detached."""
        branch = self._checked(["rev-parse", "--abbrev-ref", "HEAD"], cwd=path).output
        return None if branch == "HEAD" else branch

    def default_branch(self, path: Path) -> str:
        """Branch HEAD points at, valid even before the first checkout."""
        return self._checked(["symbolic-ref", "--short", "HEAD"], cwd=path).output

    def resolve_ref(self, path: Path, ref: str) -> str | None:
        """Commit id for ``ref``, or None when it does not exist."""
        result = self.run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], cwd=path)
        return (result.output or None) if result.success else None

    def remote_branch(self, path: Path, branch: str, remote: str = "origin") -> str | None:
        """Commit id of ``<remote>/<branch>``, or None when there is no such branch."""
        return self.resolve_ref(path, f"refs/remotes/{remote}/{branch}")

    def divergence(self, path: Path, local: str, upstream: str) -> tuple[int, int]:
        """Return (ahead, behind) of ``local`` relative to ``upstream``."""
        output = self._checked(
            ["rev-list", "--left-right", "--count", f"{local}...{upstream}"],
            cwd=path,
        ).output
        try:
            ahead, behind = (int(part) for part in output.split())
        except ValueError as e:
            raise GitCommandError(f"Unexpected rev-list output: {output!r}") from e
        return ahead, behind

    def checkout(self, path: Path, branch: str) -> None:
        self._checked(["checkout", "-f", branch], cwd=path)

    def reset_hard(self, path: Path, ref: str) -> None:
        self._checked(["reset", "--hard", ref], cwd=path)
        logger.debug("Reset working tree", path=str(path), ref=ref)
