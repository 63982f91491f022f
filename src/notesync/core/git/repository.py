"""
Named git operations on the notes working copy.

``NotesRepository`` wraps a repository root and exposes the handful of
porcelain commands the sync protocol and the provisioner need. Failures keep
their captured output and are re-typed into the notesync error taxonomy where
callers treat them differently (nothing to commit, pull conflict, push
rejection).
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from notesync.core.exceptions import (
    CommandFailed,
    NothingToCommit,
    PullConflict,
    PushRejected,
)
from notesync.core.git.divergence import DivergenceResult, get_divergence
from notesync.core.git.runner import CommandOutput, run_git

logger = logging.getLogger(__name__)

_NOTHING_TO_COMMIT = re.compile(r"nothing to commit|no changes added to commit", re.IGNORECASE)


class NotesRepository:
    """
    Git operations bound to one working-copy root.

    Example:
        >>> repo = NotesRepository(Path("~/notes").expanduser())
        >>> if await repo.has_local_changes():
        ...     await repo.add_all()
        ...     await repo.commit("notesync auto-commit (manual)")
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def __repr__(self) -> str:
        return f"NotesRepository({str(self.root)!r})"

    async def _git(self, *args: str) -> CommandOutput:
        return await run_git(list(args), self.root)

    @classmethod
    async def init(cls, path: Path) -> NotesRepository:
        """Create a new repository at ``path`` (creating the folder if needed)."""
        path.mkdir(parents=True, exist_ok=True)
        await run_git(["init"], path)
        logger.info("Initialized git repository at %s", path)
        return cls(path)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    async def status_porcelain(self) -> str:
        """Machine-readable working-copy status (empty when clean)."""
        return (await self._git("status", "--porcelain")).stdout

    async def has_local_changes(self) -> bool:
        """True if anything is modified, staged, or untracked."""
        return bool((await self.status_porcelain()).strip())

    async def divergence(self) -> DivergenceResult:
        return await get_divergence(self.root)

    async def has_commits(self) -> bool:
        try:
            await self._git("rev-parse", "--verify", "--quiet", "HEAD")
            return True
        except CommandFailed:
            return False

    async def head_sha(self) -> str | None:
        try:
            return (await self._git("rev-parse", "HEAD")).stdout.strip() or None
        except CommandFailed:
            return None

    async def current_branch(self) -> str | None:
        """Name of the checked-out branch (also works before the first commit)."""
        try:
            out = await self._git("symbolic-ref", "--short", "HEAD")
        except CommandFailed:
            return None
        return out.stdout.strip() or None

    async def get_remote_url(self, name: str = "origin") -> str | None:
        try:
            out = await self._git("remote", "get-url", name)
        except CommandFailed:
            return None
        return out.stdout.strip() or None

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    async def add_all(self) -> None:
        """Stage every change in the working copy, including deletions."""
        await self._git("add", "-A")

    async def commit(self, message: str, *, allow_empty: bool = False) -> str | None:
        """
        Commit the index.

        Returns:
            SHA of the new commit.

        Raises:
            NothingToCommit: If git found nothing staged.
            CommandFailed: For any other failure.
        """
        args = ["commit", "-m", message]
        if allow_empty:
            args.append("--allow-empty")
        try:
            await self._git(*args)
        except CommandFailed as e:
            if _NOTHING_TO_COMMIT.search(e.stdout) or _NOTHING_TO_COMMIT.search(e.stderr):
                raise NothingToCommit.wrap(e) from e
            raise
        sha = await self.head_sha()
        logger.info("Committed %s in %s: %s", (sha or "")[:8], self.root, message)
        return sha

    async def pull_ff_only(self) -> None:
        """
        Fast-forward the current branch from its upstream.

        Raises:
            PullConflict: If the branches diverged or the pull otherwise failed.
        """
        try:
            await self._git("pull", "--ff-only")
        except CommandFailed as e:
            raise PullConflict.wrap(e) from e
        logger.info("Fast-forwarded %s from upstream", self.root)

    async def push(
        self,
        remote: str | None = None,
        branch: str | None = None,
        *,
        set_upstream: bool = False,
    ) -> None:
        """
        Push to the configured (or given) remote.

        Raises:
            PushRejected: On any push failure.
        """
        args = ["push"]
        if set_upstream:
            args.append("-u")
        if remote:
            args.append(remote)
            if branch:
                args.append(branch)
        try:
            await self._git(*args)
        except CommandFailed as e:
            raise PushRejected.wrap(e) from e
        logger.info("Pushed %s%s", self.root, f" to {remote}" if remote else "")

    async def add_remote(self, name: str, url: str) -> None:
        await self._git("remote", "add", name, url)

    async def set_remote_url(self, name: str, url: str) -> None:
        await self._git("remote", "set-url", name, url)

    async def rename_branch(self, new_name: str) -> None:
        """Rename the current branch (``git branch -M``)."""
        await self._git("branch", "-M", new_name)
