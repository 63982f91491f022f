"""
Event queue in front of the sync coordinator.

Save notifications, minute ticks and manual requests arrive as
:class:`SyncEvent` messages on an ``asyncio.Queue``. Each event is handled in
its own task so a long-running sync never blocks the queue: a save arriving
mid-sync is still recorded immediately, and the coordinator's
mutual-exclusion flag turns any trigger it causes into a no-op.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from notesync.core.sync.coordinator import SyncCoordinator
from notesync.core.sync.models import SyncResult

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 60.0

# Paths under these directory names are sync bookkeeping, not notes
BOOKKEEPING_DIRS = frozenset({".git"})


class SyncEventKind(str, Enum):
    """Kind of message handled by the dispatcher."""

    SAVE = "save"
    TICK = "tick"
    MANUAL = "manual"
    STOP = "stop"


@dataclass(frozen=True)
class SyncEvent:
    """A single message on the dispatcher queue."""

    kind: SyncEventKind
    path: Path | None = None


ResultCallback = Callable[[SyncResult], None]


class SyncDispatcher:
    """
    Feeds events to a SyncCoordinator and runs the minute ticker.

    Example:
        >>> dispatcher = SyncDispatcher(coordinator, notes_root)
        >>> runner = asyncio.create_task(dispatcher.run())
        >>> dispatcher.submit_save(notes_root / "journals" / "2026-01-05.md")
        >>> dispatcher.stop()
        >>> await runner
    """

    def __init__(
        self,
        coordinator: SyncCoordinator,
        notes_root: Path,
        *,
        tick_interval: float = DEFAULT_TICK_INTERVAL,
        on_result: ResultCallback | None = None,
    ) -> None:
        self.coordinator = coordinator
        self.notes_root = Path(notes_root).resolve()
        self.tick_interval = tick_interval
        self._on_result = on_result
        self._queue: asyncio.Queue[SyncEvent] = asyncio.Queue()
        self._tasks: set[asyncio.Task[None]] = set()

    # ------------------------------------------------------------------
    # Producers
    # ------------------------------------------------------------------

    def is_qualifying_path(self, path: Path | str) -> bool:
        """True for files under the notes root that are not git bookkeeping."""
        candidate = Path(path).resolve()
        try:
            relative = candidate.relative_to(self.notes_root)
        except ValueError:
            return False
        return not any(part in BOOKKEEPING_DIRS for part in relative.parts)

    def submit(self, event: SyncEvent) -> None:
        self._queue.put_nowait(event)

    def submit_save(self, path: Path | str) -> bool:
        """
        Queue a save notification if ``path`` qualifies.

        Returns:
            True if the event was queued
        """
        if not self.is_qualifying_path(path):
            logger.debug("Ignoring save outside notes or in bookkeeping: %s", path)
            return False
        self.submit(SyncEvent(SyncEventKind.SAVE, Path(path)))
        return True

    def request_sync(self) -> None:
        self.submit(SyncEvent(SyncEventKind.MANUAL))

    def stop(self) -> None:
        self.submit(SyncEvent(SyncEventKind.STOP))

    # ------------------------------------------------------------------
    # Consumer
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """
        Process events until a STOP event, then wait for in-flight handlers.

        If the run itself is cancelled (Ctrl+C), in-flight handlers are
        cancelled too instead of awaited, so a pending pull prompt cannot hold
        up shutdown.
        """
        ticker = asyncio.create_task(self._tick_loop())
        try:
            while True:
                event = await self._queue.get()
                if event.kind is SyncEventKind.STOP:
                    break
                self._dispatch(event)
        except asyncio.CancelledError:
            self.cancel_pending()
            raise
        finally:
            ticker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await ticker
            await self.drain()

    async def drain(self) -> None:
        """Wait for every dispatched handler to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def cancel_pending(self) -> None:
        for task in list(self._tasks):
            task.cancel()

    def _dispatch(self, event: SyncEvent) -> None:
        handler: Awaitable[SyncResult | None]
        if event.kind is SyncEventKind.SAVE:
            logger.debug("Save event for %s", event.path)
            handler = self.coordinator.on_qualifying_save()
        elif event.kind is SyncEventKind.TICK:
            handler = self.coordinator.on_timer_tick()
        else:
            handler = self.coordinator.sync_now()

        task = asyncio.create_task(self._handle(event, handler))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _handle(self, event: SyncEvent, handler: Awaitable[SyncResult | None]) -> None:
        try:
            result = await handler
        except Exception:
            # Keep the dispatcher alive; the next trigger retries
            logger.exception("Unhandled error while processing %s event", event.kind.value)
            return
        if result is None:
            return
        if not result.completed:
            logger.info(
                "%s sync ended %s; changes stay pending",
                result.trigger.value,
                result.outcome.value,
            )
        if self._on_result is not None:
            self._on_result(result)

    async def _tick_loop(self) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            self.submit(SyncEvent(SyncEventKind.TICK))
