"""
Git access for notesync: subprocess runner, root discovery, divergence
inspection, and the repository wrapper used by sync and provisioning.
"""

from notesync.core.git.divergence import DivergenceResult, get_divergence
from notesync.core.git.locator import find_git_root
from notesync.core.git.repository import NotesRepository
from notesync.core.git.runner import CommandOutput, run_git

__all__ = [
    "CommandOutput",
    "DivergenceResult",
    "NotesRepository",
    "find_git_root",
    "get_divergence",
    "run_git",
]
