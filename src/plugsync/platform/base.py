"""
PlugSync command execution.

Runs external tools and captures their output in a uniform result.
"""

from __future__ import annotations

import os
import subprocess
import time
from collections.abc import Mapping
from pathlib import Path

from plugsync.core.logging import get_logger

logger = get_logger(__name__)


class CommandResult:
    """Result of a command execution."""

    def __init__(
        self,
        returncode: int,
        stdout: str,
        stderr: str,
        command: str | list[str],
        duration_seconds: float = 0.0,
    ) -> None:
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.command = command
        self.duration_seconds = duration_seconds

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def output(self) -> str:
        return self.stdout.strip()

    @property
    def error_text(self) -> str:
        return self.stderr.strip() or self.stdout.strip() or f"exit code {self.returncode}"

    def __repr__(self) -> str:
        cmd = self.command if isinstance(self.command, str) else " ".join(self.command)
        return f"CommandResult(rc={self.returncode}, cmd='{cmd[:50]}...')"


def run_command(
    command: list[str],
    cwd: Path | None = None,
    timeout: float | None = None,
    env: Mapping[str, str] | None = None,
) -> CommandResult:
    """Run a command; failures to start or timeouts come back as rc -1."""
    logger.debug("Running command", command=command, cwd=str(cwd) if cwd else None)
    start_time = time.time()

    full_env = None
    if env:
        full_env = os.environ.copy()
        full_env.update(env)

    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            env=full_env,
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            returncode=-1,
            stdout="",
            stderr=f"Command timed out after {timeout}s",
            command=command,
            duration_seconds=time.time() - start_time,
        )
    except OSError as e:
        return CommandResult(
            returncode=-1,
            stdout="",
            stderr=str(e),
            command=command,
            duration_seconds=time.time() - start_time,
        )

    cmd_result = CommandResult(
        returncode=result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
        command=command,
        duration_seconds=time.time() - start_time,
    )

    if not cmd_result.success:
        logger.debug(
            "Command failed",
            command=command,
            returncode=result.returncode,
            stderr=result.stderr[:500] if result.stderr else "",
        )

    return cmd_result
