"""
Exceptions for notesync.

This module defines the error taxonomy shared by the git layer, the sync
coordinator and the remote provisioner.

Exception Hierarchy:
    NotesyncError (base)
    ├── CommandFailed (git subprocess exited non-zero)
    │   ├── NothingToCommit (commit found a clean index)
    │   ├── PullConflict (fast-forward pull impossible)
    │   └── PushRejected (push refused or remote unreachable)
    ├── GitHubApiError (unexpected hosted-service response)
    │   └── AuthFailure (missing token or rejected credentials)
    └── ProvisioningError (remote bootstrap could not complete)
        └── ProvisioningCancelled (operator declined)

A missing upstream is not an error: it is reported through
``DivergenceResult.has_upstream``.

Example:
    >>> from notesync.core.exceptions import CommandFailed
    >>> try:
    ...     raise CommandFailed(["git", "push"], returncode=1, stderr="rejected")
    ... except CommandFailed as e:
    ...     print(e.command_line, e.stderr)
    git push rejected
"""

from __future__ import annotations


class NotesyncError(Exception):
    """
    Base exception for all notesync errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class CommandFailed(NotesyncError):
    """
    A version-control subprocess failed.

    Raised for a non-zero exit, a missing ``git`` binary, or a timeout. In the
    last two cases ``returncode`` is None.

    Attributes:
        command: Full argument vector, including the executable
        returncode: Exit status, or None if the process never completed
        stdout: Captured standard output
        stderr: Captured standard error
        cwd: Working directory the command ran in
    """

    def __init__(
        self,
        command: list[str],
        *,
        returncode: int | None = None,
        stdout: str = "",
        stderr: str = "",
        cwd: str | None = None,
        message: str | None = None,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.cwd = cwd
        if message is None:
            message = f"Command failed ({returncode}): {' '.join(command)}"
        super().__init__(message, command=self.command, returncode=returncode, cwd=cwd)

    @property
    def command_line(self) -> str:
        """The command as a single shell-like string."""
        return " ".join(self.command)

    @property
    def output(self) -> str:
        """Best available diagnostic text: stderr, then stdout, then the message."""
        return (self.stderr or self.stdout or self.message).strip()

    @classmethod
    def wrap(cls, error: CommandFailed) -> CommandFailed:
        """Re-type a generic failure as this subclass, keeping captured output."""
        return cls(
            error.command,
            returncode=error.returncode,
            stdout=error.stdout,
            stderr=error.stderr,
            cwd=error.cwd,
            message=error.message,
        )


class NothingToCommit(CommandFailed):
    """``git commit`` found nothing staged. Benign: callers treat it as a no-op."""


class PullConflict(CommandFailed):
    """A ``--ff-only`` pull could not fast-forward. Needs manual resolution."""


class PushRejected(CommandFailed):
    """A push failed (rejected, offline, or unauthenticated). Local commits are kept."""


class GitHubApiError(NotesyncError):
    """
    Unexpected response from the GitHub REST API.

    Attributes:
        status_code: HTTP status, or None for transport errors
    """

    def __init__(self, message: str, status_code: int | None = None, **context: object) -> None:
        super().__init__(message, status_code=status_code, **context)
        self.status_code = status_code


class AuthFailure(GitHubApiError):
    """No usable GitHub credentials. Provisioning stops before changing anything."""


class ProvisioningError(NotesyncError):
    """The remote repository could not be provisioned or wired."""


class ProvisioningCancelled(ProvisioningError):
    """The operator declined to choose a remote repository."""
