"""
notesync CLI - Manual sync command.

Runs the commit-reconcile-push protocol once against the notes repository,
whether or not auto-sync is enabled.
"""

import asyncio
from enum import Enum

import typer
from rich.console import Console

from notesync.cli.context import load_notes_context, setup_logging
from notesync.cli.errors import ExitCode
from notesync.cli.prompts import ask_pull, fixed_pull_answer
from notesync.core.sync import PullPrompt, SyncCoordinator, SyncOutcome, SyncResult
from notesync.core.sync.models import PullDecision

console = Console()


class BehindPolicy(str, Enum):
    """What to do when the notes repo is behind its upstream."""

    ASK = "ask"
    PULL = "pull"
    SKIP = "skip"


def pull_prompt_for(policy: BehindPolicy, ask: PullPrompt = ask_pull) -> PullPrompt:
    """Map a --on-behind policy to the coordinator's pull callback."""
    if policy is BehindPolicy.ASK:
        return ask
    return fixed_pull_answer(PullDecision(policy.value))


def print_sync_result(result: SyncResult) -> None:
    """Render one sync attempt for the operator."""
    if result.outcome is SyncOutcome.COMMITTED:
        short = (result.commit_sha or "")[:8]
        if result.pulled:
            console.print("[green]✓[/green] Fast-forwarded from upstream")
        console.print(f"[green]✓[/green] Committed {short}: {result.commit_message}")
        if result.pushed:
            console.print("[green]✓[/green] Pushed to remote")
        for warning in result.warnings:
            console.print(f"[yellow]⚠[/yellow]  {warning}")
    elif result.outcome is SyncOutcome.NO_CHANGES:
        console.print(f"[blue]{result.message}[/blue]")
    elif result.outcome in (SyncOutcome.SKIPPED_BEHIND, SyncOutcome.BUSY):
        console.print(f"[yellow]⚠[/yellow]  {result.message}")
    else:
        console.print(f"[red]✗[/red] {result.message}")
        if result.error:
            console.print(f"[dim]{result.error}[/dim]")


def sync(
    ctx: typer.Context,
    on_behind: BehindPolicy = typer.Option(
        BehindPolicy.ASK,
        "--on-behind",
        help="When the repo is behind its upstream: ask, pull (fast-forward only) or skip",
        case_sensitive=False,
    ),
) -> None:
    """
    Commit and push the notes repository now.

    Stages everything, commits with the configured message template
    (reason "manual") and pushes. If the branch is behind its upstream you
    are asked whether to fast-forward first; skipping leaves everything
    uncommitted.

    Examples:
        notesync sync                     # Sync, asking before any pull
        notesync sync --on-behind pull    # Fast-forward without asking
        notesync sync --on-behind skip    # Never pull
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug)

    notes = load_notes_context()
    coordinator = SyncCoordinator(notes.config.notes_git, pull_prompt_for(on_behind))
    coordinator.configure(notes.require_repo_root())

    result = asyncio.run(coordinator.sync_now())
    print_sync_result(result)

    if result.outcome in (SyncOutcome.FAILED, SyncOutcome.PULL_FAILED):
        raise typer.Exit(ExitCode.GENERAL_ERROR)
