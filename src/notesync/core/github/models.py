"""
GitHub data models for notesync.

Defines Pydantic models for repositories returned by the REST API and for
the transient state of remote provisioning.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, computed_field


class RepoInfo(BaseModel):
    """
    GitHub repository coordinates parsed from a git remote URL.

    Example:
        >>> RepoInfo.from_remote_url("git@github.com:user/notes.git").full_name
        'user/notes'
        >>> RepoInfo.from_remote_url("https://github.com/user/notes.git").repo
        'notes'
    """

    owner: str = Field(..., description="Repository owner (user or organization)")
    repo: str = Field(..., description="Repository name")

    @computed_field
    @property
    def full_name(self) -> str:
        """Full repository name (owner/repo)."""
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_remote_url(cls, remote_url: str) -> RepoInfo | None:
        """
        Parse repository info from a git remote URL.

        Handles SSH (``git@github.com:user/repo(.git)``) and HTTPS
        (``https://github.com/user/repo(.git)``) forms, including HTTPS URLs
        carrying credentials.

        Returns:
            RepoInfo or None if not a GitHub URL
        """
        if not remote_url:
            return None

        ssh_match = re.match(
            r"git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$",
            remote_url,
        )
        if ssh_match:
            return cls(owner=ssh_match.group(1), repo=ssh_match.group(2))

        https_match = re.match(
            r"https?://(?:[^@/]+@)?github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$",
            remote_url,
        )
        if https_match:
            return cls(owner=https_match.group(1), repo=https_match.group(2))

        return None


class GitHubRepository(BaseModel):
    """A repository as returned by ``GET /repos/{owner}/{name}`` or ``POST /user/repos``."""

    name: str
    owner: str
    private: bool = True
    html_url: str = ""
    clone_url: str = ""
    ssh_url: str = ""

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> GitHubRepository:
        owner = data.get("owner") or {}
        return cls(
            name=data["name"],
            owner=owner.get("login", "") if isinstance(owner, dict) else str(owner),
            private=bool(data.get("private", True)),
            html_url=data.get("html_url") or "",
            clone_url=data.get("clone_url") or "",
            ssh_url=data.get("ssh_url") or "",
        )

    def remote_url(self, use_ssh: bool = False) -> str:
        """URL to wire as ``origin``; falls back to the canonical HTTPS form."""
        if use_ssh:
            return self.ssh_url or f"git@github.com:{self.owner}/{self.name}.git"
        return self.clone_url or f"https://github.com/{self.owner}/{self.name}.git"


class RemoteCandidate(BaseModel):
    """One probed repository name during collision resolution."""

    name: str
    exists: bool
    repository: GitHubRepository | None = None


class NameResolution(BaseModel):
    """
    Outcome of probing ``base, base-1, base-2, ...``.

    ``existing_name`` is the most recently probed name that exists;
    ``free_name`` is the first name found free (probing stops there).
    """

    base_name: str
    candidates: list[RemoteCandidate] = Field(default_factory=list)
    existing_name: str | None = None
    free_name: str | None = None

    @property
    def existing(self) -> GitHubRepository | None:
        for candidate in self.candidates:
            if candidate.name == self.existing_name:
                return candidate.repository
        return None


class RemoteChoice(str, Enum):
    """Operator answer when a notes repository already exists on GitHub."""

    USE_EXISTING = "use_existing"
    CREATE_NEW = "create_new"
    CANCEL = "cancel"


class ProvisionResult(BaseModel):
    """What ``RemoteProvisioner.provision`` did."""

    owner: str
    repo_name: str
    remote_url: str
    repo_root: str
    created: bool = Field(default=False, description="A new GitHub repository was created")
    reused: bool = Field(default=False, description="An existing GitHub repository was reused")
    initialized: bool = Field(default=False, description="A local repository was created")
    remote_action: str = Field(default="added", description="'added' or 'updated'")
    branch: str = ""
    branch_renamed: bool = False
    pushed: bool = False
    warnings: list[str] = Field(default_factory=list)
