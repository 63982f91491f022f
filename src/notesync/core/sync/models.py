"""
Data models for the sync coordinator.

Defines Pydantic models for the in-memory sync state and for the outcome of
a single sync attempt.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

from notesync.core.git.divergence import DivergenceResult


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncTrigger(str, Enum):
    """Why a sync attempt started. Used in the commit message and in logs."""

    SAVE_THRESHOLD = "save-threshold"
    TIMER = "timer"
    MANUAL = "manual"


class PullDecision(str, Enum):
    """Operator answer when the notes repo is behind its upstream."""

    PULL = "pull"
    SKIP = "skip"


class SyncOutcome(str, Enum):
    """How a sync attempt ended."""

    COMMITTED = "committed"
    NO_CHANGES = "no_changes"
    BUSY = "busy"
    SKIPPED_BEHIND = "skipped_behind"
    PULL_FAILED = "pull_failed"
    NOT_CONFIGURED = "not_configured"
    FAILED = "failed"


class SyncState(BaseModel):
    """
    Session state of the sync coordinator.

    Exactly one instance exists per coordinator and nothing is persisted:
    a restart begins clean.

    Example:
        >>> state = SyncState(repo_root=Path("/notes"))
        >>> state.record_save()
        1
        >>> state.dirty
        True
    """

    repo_root: Path | None = Field(
        default=None,
        description="Root of the notes working copy; None until configured",
    )

    dirty: bool = Field(
        default=False,
        description="Qualifying saves happened since the last completed sync",
    )

    save_count: int = Field(
        default=0,
        ge=0,
        description="Qualifying saves since the last completed sync",
    )

    last_sync_at: datetime = Field(
        default_factory=utcnow,
        description="When the last sync completed (or the coordinator was configured)",
    )

    sync_in_progress: bool = Field(
        default=False,
        description="Mutual-exclusion flag for the sync protocol",
    )

    def record_save(self) -> int:
        """Mark the repo dirty and count the save. Returns the new count."""
        self.dirty = True
        self.save_count += 1
        return self.save_count

    def mark_synced(self, now: datetime) -> None:
        """Clear pending-change tracking after a completed or no-op sync."""
        self.dirty = False
        self.save_count = 0
        self.last_sync_at = now


class SyncResult(BaseModel):
    """
    Result of one sync attempt.

    Provides detailed feedback about what happened, for logging and for the
    CLI to render.
    """

    trigger: SyncTrigger = Field(description="What started the attempt")

    outcome: SyncOutcome = Field(description="How the attempt ended")

    message: str = Field(default="", description="Human-readable summary")

    commit_message: str | None = Field(default=None, description="Message used for the commit")

    commit_sha: str | None = Field(default=None, description="SHA of the new commit")

    pulled: bool = Field(default=False, description="A fast-forward pull was performed")

    pushed: bool = Field(default=False, description="The commit reached the remote")

    push_error: str | None = Field(default=None, description="Git output of a failed push")

    error: str | None = Field(default=None, description="Git output of a fatal failure")

    divergence: DivergenceResult | None = Field(
        default=None, description="Ahead/behind state seen during the attempt"
    )

    warnings: list[str] = Field(default_factory=list, description="Non-fatal problems")

    @property
    def completed(self) -> bool:
        """True when the attempt cleared the dirty state."""
        return self.outcome in (SyncOutcome.COMMITTED, SyncOutcome.NO_CHANGES)
