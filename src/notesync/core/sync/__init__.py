"""
Notes repository synchronization.

Provides the sync coordinator (trigger policy and the
commit-reconcile-push protocol), the event dispatcher that feeds it, and the
filesystem watcher that produces save events.
"""

from notesync.core.sync.coordinator import PullPrompt, SyncCoordinator
from notesync.core.sync.dispatcher import SyncDispatcher, SyncEvent, SyncEventKind
from notesync.core.sync.models import (
    PullDecision,
    SyncOutcome,
    SyncResult,
    SyncState,
    SyncTrigger,
)

__all__ = [
    "PullDecision",
    "PullPrompt",
    "SyncCoordinator",
    "SyncDispatcher",
    "SyncEvent",
    "SyncEventKind",
    "SyncOutcome",
    "SyncResult",
    "SyncState",
    "SyncTrigger",
]
