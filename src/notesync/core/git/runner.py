"""
Async runner for git subprocesses.

Every git invocation in notesync goes through :func:`run_git`. It spawns one
process per call, captures both output streams as text, and raises
:class:`~notesync.core.exceptions.CommandFailed` on a non-zero exit. There is
no retry; callers decide what a failure means.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from pydantic import BaseModel

from notesync.core.exceptions import CommandFailed

logger = logging.getLogger(__name__)

GIT = "git"


class CommandOutput(BaseModel):
    """Captured output of a successful git command."""

    stdout: str
    """Standard output from the process."""

    stderr: str
    """Standard error from the process."""


async def run_git(
    args: list[str],
    cwd: Path | str,
    *,
    timeout: float | None = None,
) -> CommandOutput:
    """
    Run ``git <args>`` in ``cwd``.

    Args:
        args: Git arguments, without the leading "git"
        cwd: Working directory for the command
        timeout: Optional timeout in seconds. None means no timeout.

    Returns:
        CommandOutput with decoded stdout and stderr.

    Raises:
        CommandFailed: On non-zero exit, missing git, or timeout.

    Example:
        >>> out = await run_git(["status", "--porcelain"], "/path/to/notes")
        >>> bool(out.stdout.strip())
        False
    """
    command = [GIT, *args]
    cwd_str = str(cwd)
    logger.debug("Running git command in %s: %s", cwd_str, " ".join(command))

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=cwd_str,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as e:
        raise CommandFailed(
            command, cwd=cwd_str, message="git not found in PATH"
        ) from e

    try:
        if timeout is not None:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        else:
            stdout_bytes, stderr_bytes = await process.communicate()
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise CommandFailed(
            command,
            cwd=cwd_str,
            message=f"Git command timed out after {timeout}s: {' '.join(command)}",
        ) from e

    stdout = stdout_bytes.decode("utf-8", errors="replace") if stdout_bytes else ""
    stderr = stderr_bytes.decode("utf-8", errors="replace") if stderr_bytes else ""

    if process.returncode != 0:
        logger.debug(
            "Git command exited %s in %s: %s", process.returncode, cwd_str, stderr.strip()
        )
        raise CommandFailed(
            command,
            returncode=process.returncode,
            stdout=stdout,
            stderr=stderr,
            cwd=cwd_str,
        )

    return CommandOutput(stdout=stdout, stderr=stderr)
