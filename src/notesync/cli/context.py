"""
Shared setup for CLI commands: configuration, notes folder, repository root.
"""

import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import typer

from notesync.cli.errors import ExitCode, print_not_git_repo_error, print_notes_folder_error
from notesync.core.config import NotesyncConfig, load_config, resolve_notes_folder
from notesync.core.git.locator import find_git_root


def setup_logging(debug: bool = False, level: int = logging.WARNING) -> None:
    """
    Configure logging for notesync commands.

    Args:
        debug: If True, enable DEBUG level logging
        level: Level to use when debug is off
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
        force=True,
    )


@dataclass
class NotesContext:
    """Resolved configuration and locations for a command."""

    config: NotesyncConfig
    notes_folder: Path
    repo_root: Path | None

    def require_repo_root(self) -> Path:
        if self.repo_root is None:
            print_not_git_repo_error(self.notes_folder)
            raise typer.Exit(ExitCode.USER_ERROR)
        return self.repo_root


def load_notes_context(*, require_repo: bool = True) -> NotesContext:
    """
    Load config and locate the notes folder and its repository.

    Exits with USER_ERROR when the folder cannot be determined, or when a
    repository is required and none is found.
    """
    config = load_config()
    notes_folder = resolve_notes_folder(config)
    if notes_folder is None:
        print_notes_folder_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    repo_root = find_git_root(notes_folder) if notes_folder.exists() else None
    if require_repo and repo_root is None:
        print_not_git_repo_error(notes_folder)
        raise typer.Exit(ExitCode.USER_ERROR)

    return NotesContext(config=config, notes_folder=notes_folder, repo_root=repo_root)
