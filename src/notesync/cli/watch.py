"""
notesync CLI - Watch command.

Long-running auto-sync: watches the notes folder for saves, runs the minute
ticker, warns at startup when the upstream is ahead and keeps today's daily
note in place across midnight.
"""

import asyncio
import contextlib
import logging
from datetime import date, datetime, timedelta
from pathlib import Path

import typer
from rich.console import Console

from notesync.cli.context import NotesContext, load_notes_context, setup_logging
from notesync.cli.errors import ExitCode, print_error
from notesync.cli.prompts import ask_pull_async
from notesync.cli.sync import BehindPolicy, print_sync_result, pull_prompt_for
from notesync.core.notes import ensure_daily_note
from notesync.core.sync import SyncCoordinator, SyncDispatcher
from notesync.core.sync.dispatcher import DEFAULT_TICK_INTERVAL
from notesync.core.sync.watcher import NotesWatcher

logger = logging.getLogger(__name__)
console = Console()

# Seconds past midnight before rolling the daily note
DAILY_NOTE_DELAY = 5


def seconds_until_next_day(now: datetime) -> float:
    tomorrow = datetime.combine(now.date() + timedelta(days=1), datetime.min.time())
    return (tomorrow - now).total_seconds() + DAILY_NOTE_DELAY


async def roll_daily_notes(notes_folder: Path) -> None:
    """Create each new day's note shortly after midnight, forever."""
    while True:
        await asyncio.sleep(seconds_until_next_day(datetime.now()))
        path = ensure_daily_note(notes_folder, date.today())
        logger.info("Daily note ready: %s", path)


async def run_watch(
    notes: NotesContext,
    coordinator: SyncCoordinator,
    *,
    tick_interval: float = DEFAULT_TICK_INTERVAL,
) -> None:
    """Run watcher, ticker and daily-note roller until cancelled."""
    root = notes.require_repo_root()
    coordinator.configure(root)

    today_path = ensure_daily_note(notes.notes_folder)
    console.print(f"[dim]Today's note: {today_path}[/dim]")

    divergence = await coordinator.check_remote_ahead()
    if divergence is not None and divergence.is_behind:
        console.print(
            f"[yellow]⚠[/yellow]  Remote is ahead by {divergence.behind} commit(s). "
            "Run [bold]notesync sync --on-behind pull[/bold] before relying on auto-sync."
        )

    dispatcher = SyncDispatcher(
        coordinator,
        notes.notes_folder,
        tick_interval=tick_interval,
        on_result=print_sync_result,
    )
    loop = asyncio.get_running_loop()
    roller = asyncio.create_task(roll_daily_notes(notes.notes_folder))
    try:
        with NotesWatcher(notes.notes_folder, dispatcher, loop):
            await dispatcher.run()
    finally:
        roller.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await roller


def watch(
    ctx: typer.Context,
    on_behind: BehindPolicy = typer.Option(
        BehindPolicy.ASK,
        "--on-behind",
        help="When a sync finds the repo behind its upstream: ask, pull or skip",
        case_sensitive=False,
    ),
) -> None:
    """
    Watch the notes folder and sync automatically.

    Commits and pushes after the configured number of saves, or once the
    configured minutes have passed with unsynced saves. Requires
    notes_git.auto_sync_enabled (or NOTESYNC_AUTO_SYNC=1). Stop with Ctrl+C.

    Examples:
        notesync watch
        notesync watch --on-behind skip    # Unattended: never pull
    """
    debug = ctx.obj.get("debug", False) if ctx.obj else False
    setup_logging(debug, level=logging.INFO)

    notes = load_notes_context()
    config = notes.config.notes_git
    if not config.auto_sync_enabled:
        print_error(
            "Auto-sync is disabled",
            reason="Saves are not recorded while notes_git.auto_sync_enabled is false",
            solution="export NOTESYNC_AUTO_SYNC=1  # or use 'notesync sync' for a one-off sync",
        )
        raise typer.Exit(ExitCode.USER_ERROR)

    coordinator = SyncCoordinator(config, pull_prompt_for(on_behind, ask=ask_pull_async))

    console.print(
        f"[blue]Watching {notes.notes_folder}[/blue] "
        f"[dim](every {config.save_count_threshold} saves or "
        f"{config.minutes_threshold} minutes; Ctrl+C to stop)[/dim]"
    )
    try:
        asyncio.run(run_watch(notes, coordinator))
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped watching[/dim]")
        raise typer.Exit(ExitCode.SIGINT)
