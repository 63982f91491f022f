"""
Sync coordinator for the notes repository.

Owns the session's SyncState and decides when to run the sync protocol:

- after ``save_count_threshold`` qualifying saves (trigger ``save-threshold``)
- on the minute ticker, once ``minutes_threshold`` minutes have passed since
  the last completed sync and there are unsynced saves (trigger ``timer``)
- on explicit request (trigger ``manual``)

The protocol itself is a single critical section guarded by
``SyncState.sync_in_progress``. A trigger that arrives while it is held is
dropped (the dirty flag already remembers that work is pending):

1. ``git status --porcelain``; a clean tree is a successful no-op.
2. If the branch is behind its upstream, ask the operator to pull or skip.
   A skipped or failed fast-forward pull aborts without committing.
3. ``git add -A`` and commit with the rendered template. "Nothing to commit"
   here is the same no-op as step 1.
4. ``git push``. Failure is only a warning: the local commit stands.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Union

from notesync.core.config.models import NotesGitConfig
from notesync.core.exceptions import CommandFailed, NothingToCommit, PullConflict, PushRejected
from notesync.core.git.divergence import DivergenceResult
from notesync.core.git.repository import NotesRepository
from notesync.core.sync.models import (
    PullDecision,
    SyncOutcome,
    SyncResult,
    SyncState,
    SyncTrigger,
    utcnow,
)

logger = logging.getLogger(__name__)

PullPrompt = Callable[
    [Path, DivergenceResult], Union[PullDecision, Awaitable[PullDecision]]
]
"""Asks the operator whether to pull when the repo is behind. May be async."""


def skip_pull(root: Path, divergence: DivergenceResult) -> PullDecision:
    """Non-interactive answer: never pull on the operator's behalf."""
    return PullDecision.SKIP


class SyncCoordinator:
    """
    Trigger policy and commit-reconcile-push protocol for one notes repo.

    Example:
        >>> coordinator = SyncCoordinator(NotesGitConfig(auto_sync_enabled=True))
        >>> coordinator.configure(Path("~/notes").expanduser())
        >>> result = await coordinator.sync_now()
        >>> result.outcome
        <SyncOutcome.COMMITTED: 'committed'>
    """

    def __init__(
        self,
        config: NotesGitConfig,
        pull_prompt: PullPrompt | None = None,
        *,
        clock: Callable[[], datetime] = utcnow,
        repository_factory: Callable[[Path], NotesRepository] = NotesRepository,
    ) -> None:
        """
        Args:
            config: Sync policy (thresholds, commit template, enable flag)
            pull_prompt: Decision callback used when the repo is behind its
                upstream. Defaults to always skipping.
            clock: Source of "now"; injectable for tests.
            repository_factory: Builds the git wrapper for a root.
        """
        self.config = config
        self._pull_prompt = pull_prompt or skip_pull
        self._clock = clock
        self._repository_factory = repository_factory
        self._repo: NotesRepository | None = None
        self.state = SyncState(last_sync_at=clock())

    @property
    def repo_root(self) -> Path | None:
        return self.state.repo_root

    @property
    def repository(self) -> NotesRepository | None:
        return self._repo

    def configure(self, repo_root: Path) -> None:
        """
        Bind the coordinator to a repository root.

        Re-binding starts from a clean state: not dirty, zero saves, and the
        last-sync clock set to now. Only an in-flight protocol run keeps the
        mutual-exclusion flag.
        """
        root = Path(repo_root)
        self._repo = self._repository_factory(root)
        self.state = SyncState(
            repo_root=root,
            last_sync_at=self._clock(),
            sync_in_progress=self.state.sync_in_progress,
        )
        logger.info("Notes git root = %s", root)

    # ------------------------------------------------------------------
    # Triggers
    # ------------------------------------------------------------------

    async def on_qualifying_save(self) -> SyncResult | None:
        """
        Record one save under the notes root.

        Returns:
            The sync result if this save reached the threshold, else None.
        """
        if not self.config.auto_sync_enabled:
            return None

        count = self.state.record_save()
        threshold = self.config.save_count_threshold
        logger.info("Notes save detected (%d/%d)", count, threshold)

        if count >= threshold:
            return await self.run_sync(SyncTrigger.SAVE_THRESHOLD)
        return None

    async def on_timer_tick(self) -> SyncResult | None:
        """Sync if there are unsynced saves and the minutes threshold has passed."""
        if not self.config.auto_sync_enabled or self._repo is None or not self.state.dirty:
            return None

        elapsed_minutes = (self._clock() - self.state.last_sync_at).total_seconds() / 60
        if elapsed_minutes < self.config.minutes_threshold:
            return None

        logger.info("Timer-based notes sync triggered after %.1f minutes", elapsed_minutes)
        return await self.run_sync(SyncTrigger.TIMER)

    async def sync_now(self) -> SyncResult:
        """Explicit operator request; ignores dirty state, elapsed time and the enable flag."""
        return await self.run_sync(SyncTrigger.MANUAL)

    async def check_remote_ahead(self) -> DivergenceResult | None:
        """
        Warn (without pulling) when the upstream has commits we lack.

        Meant for startup, before relying on auto-sync.
        """
        if self._repo is None:
            return None
        divergence = await self._repo.divergence()
        if divergence.is_behind:
            logger.warning(
                "Notes repo at %s is behind its upstream by %d commit(s); "
                "consider pulling before relying on auto-sync",
                self._repo.root,
                divergence.behind,
            )
        return divergence

    # ------------------------------------------------------------------
    # Protocol
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def exclusive(self) -> AsyncIterator[bool]:
        """
        Hold the sync mutual-exclusion flag for the duration of the block.

        Yields False (and holds nothing) if someone else already has it.
        Check-and-set happens without awaiting, so it is atomic on the loop.
        """
        if self.state.sync_in_progress:
            yield False
            return
        self.state.sync_in_progress = True
        try:
            yield True
        finally:
            self.state.sync_in_progress = False

    async def run_sync(self, trigger: SyncTrigger) -> SyncResult:
        """
        Run the sync protocol once for ``trigger``.

        Never raises for git failures; they come back as a ``failed`` result
        with ``dirty`` left set so the next trigger retries.
        """
        repo = self._repo
        if repo is None:
            logger.info("Notes git root not set, skipping %s sync", trigger.value)
            return SyncResult(
                trigger=trigger,
                outcome=SyncOutcome.NOT_CONFIGURED,
                message="Notes git repository not configured",
            )

        async with self.exclusive() as acquired:
            if not acquired:
                logger.info("Notes sync already in progress, skipping %s trigger", trigger.value)
                return SyncResult(
                    trigger=trigger,
                    outcome=SyncOutcome.BUSY,
                    message="A sync is already in progress",
                )

            try:
                return await self._run_protocol(repo, trigger)
            except CommandFailed as e:
                logger.error(
                    "Notes sync (%s) failed in %s: %s: %s",
                    trigger.value,
                    repo.root,
                    e.command_line,
                    e.output,
                )
                return SyncResult(
                    trigger=trigger,
                    outcome=SyncOutcome.FAILED,
                    message=f"Error during notes sync: {e.message}",
                    error=e.output,
                )

    async def _run_protocol(self, repo: NotesRepository, trigger: SyncTrigger) -> SyncResult:
        if not await repo.has_local_changes():
            logger.info("No changes to commit in notes repo %s", repo.root)
            self._mark_synced()
            return SyncResult(
                trigger=trigger,
                outcome=SyncOutcome.NO_CHANGES,
                message="No changes to commit",
            )

        divergence = await repo.divergence()
        pulled = False

        if divergence.is_behind:
            decision = await self._ask_pull(repo.root, divergence)
            if decision is not PullDecision.PULL:
                logger.info("Pull skipped; not committing or pushing notes repo %s", repo.root)
                return SyncResult(
                    trigger=trigger,
                    outcome=SyncOutcome.SKIPPED_BEHIND,
                    message=(
                        f"Notes repo is behind its upstream by {divergence.behind} "
                        "commit(s); sync skipped"
                    ),
                    divergence=divergence,
                )
            try:
                await repo.pull_ff_only()
            except PullConflict as e:
                logger.error(
                    "git pull --ff-only failed in %s; resolve manually: %s", repo.root, e.output
                )
                return SyncResult(
                    trigger=trigger,
                    outcome=SyncOutcome.PULL_FAILED,
                    message="git pull failed for notes repo. Please resolve conflicts manually.",
                    error=e.output,
                    divergence=divergence,
                )
            pulled = True

        await repo.add_all()
        message = self.config.render_commit_message(trigger.value)
        try:
            sha = await repo.commit(message)
        except NothingToCommit:
            logger.info("Nothing to commit in %s (race), skipping push", repo.root)
            self._mark_synced()
            return SyncResult(
                trigger=trigger,
                outcome=SyncOutcome.NO_CHANGES,
                message="Nothing to commit",
                pulled=pulled,
                divergence=divergence,
            )

        result = SyncResult(
            trigger=trigger,
            outcome=SyncOutcome.COMMITTED,
            commit_message=message,
            commit_sha=sha,
            pulled=pulled,
            divergence=divergence,
        )

        try:
            await repo.push()
            result.pushed = True
            result.message = f"Committed and pushed ({trigger.value})"
            logger.info("Pushed notes repo %s (ahead was %d)", repo.root, divergence.ahead)
        except PushRejected as e:
            warning = f"git push failed for notes repo. Check remote configuration. {e.output}"
            logger.warning("Push failed in %s: %s: %s", repo.root, e.command_line, e.output)
            result.push_error = e.output
            result.warnings.append(warning)
            result.message = f"Committed locally ({trigger.value}); push failed"

        self._mark_synced()
        return result

    async def _ask_pull(self, root: Path, divergence: DivergenceResult) -> PullDecision:
        answer = self._pull_prompt(root, divergence)
        if inspect.isawaitable(answer):
            answer = await answer
        # A dismissed prompt counts as skip
        if answer is None:
            return PullDecision.SKIP
        return PullDecision(answer)

    def _mark_synced(self) -> None:
        self.state.mark_synced(self._clock())
