"""
notesync CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import typer
from rich.console import Console

from notesync import __version__
from notesync.cli import init_cmd, status, sync, watch
from notesync.cli.context import load_notes_context
from notesync.core.config.env import load_layered_env
from notesync.core.notes import ensure_daily_note

# Help panel names for command grouping
PANEL_SETUP = "Set Up"
PANEL_SYNC = "Sync Your Notes"
PANEL_NOTES = "Write Notes"

app = typer.Typer(
    name="notesync",
    help="Keep a notes folder committed and pushed to GitHub",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    notesync - Git sync for a personal notes folder.

    Quick Start:
        1. notesync init     # Create/reuse a private GitHub repo and wire origin
        2. notesync watch    # Commit and push automatically while you write

    Other Commands:
        notesync sync        # Commit and push right now
        notesync status      # Local changes and ahead/behind counts
        notesync today       # Create today's journal note
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    ctx.obj = {"debug": debug}


app.command(name="init", rich_help_panel=PANEL_SETUP)(init_cmd.main)

app.command(name="sync", rich_help_panel=PANEL_SYNC)(sync.sync)
app.command(name="watch", rich_help_panel=PANEL_SYNC)(watch.watch)
app.command(name="status", rich_help_panel=PANEL_SYNC)(status.status)


@app.command(rich_help_panel=PANEL_NOTES)
def today() -> None:
    """Create today's daily note if missing and print its path."""
    notes = load_notes_context(require_repo=False)
    console.print(str(ensure_daily_note(notes.notes_folder)))


@app.command(rich_help_panel=PANEL_SETUP)
def version() -> None:
    """Show notesync version and exit."""
    console.print(f"notesync version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
