"""
notesync CLI - Init command.

Creates (or reuses) a private GitHub repository for the notes folder and
wires it as ``origin``, initializing a local repository first if needed.
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console

from notesync.cli.context import load_notes_context, setup_logging
from notesync.cli.errors import ExitCode, print_auth_error, print_error
from notesync.cli.prompts import ask_remote
from notesync.core.config.models import RemoteConfig
from notesync.core.exceptions import (
    AuthFailure,
    CommandFailed,
    GitHubApiError,
    ProvisioningCancelled,
    ProvisioningError,
)
from notesync.core.github import GitHubClient, ProvisionResult, RemoteProvisioner

console = Console()


async def _provision(notes_folder: Path, remote: RemoteConfig) -> ProvisionResult:
    async with GitHubClient.from_environment(remote.api_url) as client:
        provisioner = RemoteProvisioner(client, notes_folder, remote, ask_remote)
        return await provisioner.provision()


def main(
    ctx: typer.Context,
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Base name for the GitHub repository (default from config: notes)",
    ),
    ssh: bool | None = typer.Option(
        None,
        "--ssh/--https",
        help="Wire origin with the SSH or HTTPS clone URL",
    ),
) -> None:
    """
    Initialize the notes repository and its GitHub remote.

    Looks for NAME, NAME-1, NAME-2, ... on your GitHub account. If one
    already exists you choose between reusing it and creating the next free
    name; otherwise a new private repository is created. The notes folder is
    then committed, wired as origin and pushed.

    Examples:
        notesync init                 # Use the configured base name
        notesync init --name journal  # Provision journal, journal-1, ...
        notesync init --ssh           # Use git@github.com: URLs
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)

    notes = load_notes_context(require_repo=False)
    updates: dict[str, object] = {}
    if name is not None:
        updates["base_name"] = name
    if ssh is not None:
        updates["use_ssh"] = ssh
    try:
        remote = RemoteConfig.model_validate(notes.config.remote.model_dump() | updates)
    except ValueError as e:
        print_error("Invalid repository name", reason=str(e))
        raise typer.Exit(ExitCode.USER_ERROR)

    notes.notes_folder.mkdir(parents=True, exist_ok=True)
    console.print(f"[blue]Provisioning GitHub remote for {notes.notes_folder}...[/blue]")

    try:
        result = asyncio.run(_provision(notes.notes_folder, remote))
    except AuthFailure as e:
        print_auth_error(str(e))
        raise typer.Exit(ExitCode.USER_ERROR)
    except ProvisioningCancelled as e:
        console.print(f"[yellow]{e}[/yellow]")
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except (ProvisioningError, GitHubApiError) as e:
        print_error("Could not provision the notes remote", reason=str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except CommandFailed as e:
        print_error(
            "Local git setup failed",
            reason=f"{e.command_line}: {e.output}",
            solution=f"cd {notes.notes_folder} && git status",
        )
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if result.initialized:
        console.print(f"[green]✓[/green] Initialized git repository in {result.repo_root}")
    if result.created:
        console.print(f"[green]✓[/green] Created private repository {result.owner}/{result.repo_name}")
    else:
        console.print(f"[green]✓[/green] Using existing repository {result.owner}/{result.repo_name}")
    console.print(f"[green]✓[/green] Remote origin {result.remote_action}: {result.remote_url}")
    if result.pushed:
        console.print(f"[green]✓[/green] Pushed {result.branch} and set upstream")
    for warning in result.warnings:
        console.print(f"[yellow]⚠[/yellow]  {warning}")

    if not notes.config.notes_git.auto_sync_enabled:
        console.print(
            "\n[dim]→ Set [bold]NOTESYNC_AUTO_SYNC=1[/bold] and run "
            "[bold]notesync watch[/bold] to sync automatically[/dim]"
        )
