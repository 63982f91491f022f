"""File system watcher that turns note writes into save events.

Uses a watchdog observer on the notes folder. Editors often emit several
events for one save (truncate, write, rename from a temp file), so events for
the same path within a short window are coalesced before they reach the
dispatcher. The observer thread hands events to the asyncio loop with
``call_soon_threadsafe``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from notesync.core.sync.dispatcher import BOOKKEEPING_DIRS

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

    from notesync.core.sync.dispatcher import SyncDispatcher

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_S = 1.0


class SaveEventHandler(FileSystemEventHandler):
    """Forwards debounced file writes to a submit callback on the event loop."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        submit: Callable[[Path], object],
        debounce_s: float = DEFAULT_DEBOUNCE_S,
    ) -> None:
        super().__init__()
        self._loop = loop
        self._submit = submit
        self._debounce_s = debounce_s
        self._last_seen: dict[Path, float] = {}
        self._lock = threading.Lock()

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle_path(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle_path(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Atomic-save editors write a temp file and rename it over the note
        if not event.is_directory:
            self._handle_path(event.dest_path)

    def _handle_path(self, raw_path: str | bytes) -> None:
        if not raw_path:
            return
        path = Path(os.fsdecode(raw_path))
        if any(part in BOOKKEEPING_DIRS for part in path.parts):
            return

        now = time.monotonic()
        cutoff = now - self._debounce_s
        with self._lock:
            # Only paths still inside the window can suppress an event
            self._last_seen = {p: t for p, t in self._last_seen.items() if t > cutoff}
            if path in self._last_seen:
                return
            self._last_seen[path] = now

        self._loop.call_soon_threadsafe(self._submit, path)


class NotesWatcher:
    """
    Watches the notes folder and submits save events to a dispatcher.

    Usable as a context manager:

        >>> with NotesWatcher(notes_root, dispatcher, loop):
        ...     await dispatcher.run()
    """

    def __init__(
        self,
        notes_root: Path,
        dispatcher: SyncDispatcher,
        loop: asyncio.AbstractEventLoop,
        debounce_s: float = DEFAULT_DEBOUNCE_S,
    ) -> None:
        self.notes_root = Path(notes_root)
        self._handler = SaveEventHandler(loop, dispatcher.submit_save, debounce_s)
        self._observer: BaseObserver | None = None

    def start(self) -> None:
        if self._observer is not None:
            return
        observer = Observer()
        observer.schedule(self._handler, str(self.notes_root), recursive=True)
        observer.start()
        self._observer = observer
        logger.info("Watching %s for note saves", self.notes_root)

    def stop(self) -> None:
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None

    def __enter__(self) -> NotesWatcher:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()
