"""
Standardized error handling and exit codes for the notesync CLI.

This module provides consistent error messaging with actionable guidance
and standardized exit codes across all CLI commands.
"""

from enum import IntEnum
from pathlib import Path

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for notesync CLI operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error or a sync/provisioning step that failed."""

    USER_ERROR = 2
    """User configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Notes folder is not a git repository",
        ...     reason="Automatic sync needs a git working copy",
        ...     solution="notesync init",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_notes_folder_error() -> None:
    """Print error when no notes folder is configured or inferable."""
    print_error(
        "Notes folder is not set",
        reason="No notes_folder in config and no HOME/USERPROFILE/OneDrive to infer one from",
        solution="export NOTESYNC_NOTES_FOLDER=~/notes  # or set notes_folder in .notesync.json",
    )


def print_not_git_repo_error(notes_folder: Path) -> None:
    """Print error when the notes folder is not inside a git repository."""
    print_error(
        f"Notes folder is not inside a git repository: {notes_folder}",
        reason="Sync needs a git working copy with a remote",
        solution="notesync init",
    )


def print_auth_error(detail: str) -> None:
    """Print error when GitHub credentials are missing or rejected."""
    print_error(
        "GitHub authentication failed",
        reason=detail,
        solution="gh auth login  # or export GITHUB_TOKEN=<token with repo scope>",
    )
