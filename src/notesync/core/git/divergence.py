"""
Ahead/behind inspection of the current branch against its upstream.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field

from notesync.core.exceptions import CommandFailed
from notesync.core.git.runner import run_git

logger = logging.getLogger(__name__)


class DivergenceResult(BaseModel):
    """
    How far the local branch is from its upstream.

    Computed fresh for every sync attempt, since the remote can move between
    checks.
    """

    ahead: int = Field(default=0, ge=0, description="Local commits not on the upstream")
    behind: int = Field(default=0, ge=0, description="Upstream commits not yet local")
    has_upstream: bool = Field(default=False, description="Whether an upstream is configured")

    @classmethod
    def no_upstream(cls) -> DivergenceResult:
        """Result for a branch without an upstream."""
        return cls(ahead=0, behind=0, has_upstream=False)

    @property
    def is_behind(self) -> bool:
        """True when the upstream has commits the local branch lacks."""
        return self.has_upstream and self.behind > 0


def parse_left_right_count(output: str) -> DivergenceResult:
    """
    Parse ``git rev-list --left-right --count`` output ("<ahead>\\t<behind>").

    Blank output means there was nothing to compare against.
    """
    parts = output.split()
    if not parts:
        return DivergenceResult.no_upstream()

    def _count(index: int) -> int:
        try:
            return max(0, int(parts[index]))
        except (IndexError, ValueError):
            return 0

    return DivergenceResult(ahead=_count(0), behind=_count(1), has_upstream=True)


async def get_divergence(repo_root: Path) -> DivergenceResult:
    """
    Report ahead/behind counts of HEAD relative to its upstream.

    A missing upstream makes git fail; that is expected for new repositories
    and is reported as ``has_upstream=False`` rather than raised.

    Args:
        repo_root: Root of the working copy

    Returns:
        DivergenceResult for the current branch
    """
    try:
        out = await run_git(["rev-list", "--left-right", "--count", "HEAD...@{u}"], repo_root)
    except CommandFailed as e:
        logger.debug("No upstream for %s: %s", repo_root, e.output)
        return DivergenceResult.no_upstream()

    return parse_left_right_count(out.stdout)
