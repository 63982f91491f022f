"""
notesync CLI - Status command.

Shows where the notes repository lives, whether it has unsynced changes and
how it compares with its upstream.
"""

import asyncio
from dataclasses import dataclass
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from notesync.cli.context import load_notes_context, setup_logging
from notesync.cli.errors import ExitCode
from notesync.core.exceptions import CommandFailed
from notesync.core.git import DivergenceResult, NotesRepository
from notesync.core.github.models import RepoInfo

console = Console()


@dataclass
class RepoStatus:
    branch: str | None
    has_changes: bool
    divergence: DivergenceResult
    origin_url: str | None


async def collect_status(root: Path) -> RepoStatus:
    repository = NotesRepository(root)
    return RepoStatus(
        branch=await repository.current_branch(),
        has_changes=await repository.has_local_changes(),
        divergence=await repository.divergence(),
        origin_url=await repository.get_remote_url("origin"),
    )


def status(ctx: typer.Context) -> None:
    """
    Show notes repository status.

    Examples:
        notesync status
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)

    notes = load_notes_context()
    root = notes.require_repo_root()

    try:
        info = asyncio.run(collect_status(root))
    except CommandFailed as e:
        console.print(f"[red]Git error:[/red] {e.output}")
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    auto_sync = notes.config.notes_git.auto_sync_enabled
    table = Table(title="Notes Sync", show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Notes folder", str(notes.notes_folder))
    table.add_row("Repository root", str(root))
    table.add_row("Branch", info.branch or "[dim](detached)[/dim]")
    table.add_row("Auto-sync", "[green]enabled[/green]" if auto_sync else "[dim]disabled[/dim]")
    table.add_row(
        "Local changes",
        "[yellow]yes[/yellow]" if info.has_changes else "[green]none[/green]",
    )

    if info.origin_url:
        repo_info = RepoInfo.from_remote_url(info.origin_url)
        table.add_row("Origin", repo_info.full_name if repo_info else info.origin_url)
    else:
        table.add_row("Origin", "[dim]not set[/dim]")

    if info.divergence.has_upstream:
        table.add_row("Ahead", str(info.divergence.ahead))
        table.add_row("Behind", str(info.divergence.behind))
    else:
        table.add_row("Upstream", "[dim]none[/dim]")

    console.print(table)

    if not info.origin_url:
        console.print("\n[dim]→ Run [bold]notesync init[/bold] to create a GitHub remote[/dim]")
    elif info.divergence.is_behind:
        console.print(
            "\n[dim]→ Run [bold]notesync sync --on-behind pull[/bold] to fast-forward[/dim]"
        )
    elif info.has_changes:
        console.print("\n[dim]→ Run [bold]notesync sync[/bold] to commit and push[/dim]")
