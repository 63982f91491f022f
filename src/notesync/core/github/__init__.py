"""
GitHub integration for notesync.

Provides the REST client and the provisioner that creates (or reuses) a
private notes repository and wires it as ``origin``.
"""

from notesync.core.github.client import GitHubClient, resolve_token
from notesync.core.github.models import (
    GitHubRepository,
    NameResolution,
    ProvisionResult,
    RemoteCandidate,
    RemoteChoice,
    RepoInfo,
)
from notesync.core.github.provisioner import (
    RemotePrompt,
    RemoteProvisioner,
    resolve_repository_name,
)

__all__ = [
    "GitHubClient",
    "GitHubRepository",
    "NameResolution",
    "ProvisionResult",
    "RemoteCandidate",
    "RemoteChoice",
    "RemotePrompt",
    "RemoteProvisioner",
    "RepoInfo",
    "resolve_repository_name",
    "resolve_token",
]
