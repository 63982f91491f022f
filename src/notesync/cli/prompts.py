"""
Interactive decision callbacks for the sync coordinator and the provisioner.
"""

import asyncio
from pathlib import Path

from rich.console import Console
from rich.prompt import Prompt

from notesync.core.git.divergence import DivergenceResult
from notesync.core.github.models import RemoteChoice
from notesync.core.sync.models import PullDecision

console = Console()

_REMOTE_ANSWERS = {
    "use": RemoteChoice.USE_EXISTING,
    "create": RemoteChoice.CREATE_NEW,
    "cancel": RemoteChoice.CANCEL,
}


def ask_pull(root: Path, divergence: DivergenceResult) -> PullDecision:
    """Ask whether to fast-forward a notes repo that is behind its upstream."""
    console.print(
        f"[yellow]⚠[/yellow]  Notes repo at [bold]{root}[/bold] is behind its upstream by "
        f"{divergence.behind} commit(s). Auto-push is paused."
    )
    answer = Prompt.ask(
        "Pull now (fast-forward only) or skip this sync?",
        choices=["pull", "skip"],
        default="skip",
        console=console,
    )
    return PullDecision.PULL if answer == "pull" else PullDecision.SKIP


async def ask_pull_async(root: Path, divergence: DivergenceResult) -> PullDecision:
    """``ask_pull`` off the event loop, so saves keep being recorded while waiting."""
    return await asyncio.to_thread(ask_pull, root, divergence)


def fixed_pull_answer(decision: PullDecision):
    """Non-interactive pull callback that always answers ``decision``."""

    def _answer(root: Path, divergence: DivergenceResult) -> PullDecision:
        return decision

    return _answer


def ask_remote(existing_name: str, create_name: str) -> RemoteChoice:
    """Ask whether to reuse an existing GitHub repository or create a new one."""
    console.print(
        f"A notes repository named [bold]{existing_name}[/bold] already exists on GitHub."
    )
    answer = Prompt.ask(
        f"Use existing repo '{existing_name}' or create new repo '{create_name}'?",
        choices=list(_REMOTE_ANSWERS),
        default="use",
        console=console,
    )
    return _REMOTE_ANSWERS[answer]
