"""
notesync - Git-backed notes synchronization

A CLI tool that keeps a personal notes repository committed and pushed to a
remote, and provisions a private GitHub repository for it on first use.
"""

__version__ = "0.3.0.dev0"

# Re-export core models for convenience
from notesync.core.config.models import NotesGitConfig, NotesyncConfig
from notesync.core.sync.models import SyncResult, SyncState, SyncTrigger

__all__ = [
    "NotesGitConfig",
    "NotesyncConfig",
    "SyncResult",
    "SyncState",
    "SyncTrigger",
    "__version__",
]
