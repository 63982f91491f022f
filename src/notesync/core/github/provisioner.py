"""
Remote provisioning for the notes repository.

Ensures a private GitHub repository exists for the notes and is wired as the
local ``origin``. Safe to run repeatedly: a repository left by an earlier run
(or another machine) is offered for reuse instead of creating near-duplicates.

Name collision resolution probes ``base``, ``base-1``, ``base-2``, ... and
stops at the first free name. If any probed name existed, the operator
chooses between reusing the most recent existing one and creating the free
one; otherwise the free name is created without asking.

Authentication problems surface before any local change, so origin is either
fully wired or untouched.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Union

from notesync.core.config.models import RemoteConfig
from notesync.core.exceptions import (
    CommandFailed,
    ProvisioningCancelled,
    ProvisioningError,
    PushRejected,
)
from notesync.core.git.locator import find_git_root
from notesync.core.git.repository import NotesRepository
from notesync.core.github.client import GitHubClient
from notesync.core.github.models import (
    GitHubRepository,
    NameResolution,
    ProvisionResult,
    RemoteCandidate,
    RemoteChoice,
)
from notesync.core.sync.models import utcnow

if TYPE_CHECKING:
    from notesync.core.sync.coordinator import SyncCoordinator

logger = logging.getLogger(__name__)

ORIGIN = "origin"
INITIAL_COMMIT_MESSAGE = "Initialize notes repository"

RemotePrompt = Callable[[str, str], Union[RemoteChoice, Awaitable[RemoteChoice]]]
"""Given (existing_name, create_name), decide whether to reuse or create."""


def candidate_names(base_name: str, max_attempts: int) -> list[str]:
    """``[base, base-1, ..., base-(max_attempts-1)]``."""
    return [base_name] + [f"{base_name}-{i}" for i in range(1, max_attempts)]


def fallback_name(base_name: str, now: datetime) -> str:
    """Synthesized name used when every probed candidate is taken."""
    return f"{base_name}-{now.strftime('%Y%m%d%H%M%S')}"


async def resolve_repository_name(
    client: GitHubClient,
    owner: str,
    base_name: str,
    max_attempts: int,
) -> NameResolution:
    """
    Probe candidate names in order until one is free.

    Every existing candidate overwrites ``existing_name``, so after the loop
    it names the most recent existing repository in the sequence.
    """
    resolution = NameResolution(base_name=base_name)

    for name in candidate_names(base_name, max_attempts):
        repository = await client.get_repository(owner, name)
        exists = repository is not None
        resolution.candidates.append(
            RemoteCandidate(name=name, exists=exists, repository=repository)
        )
        logger.debug("Candidate %s/%s %s", owner, name, "exists" if exists else "is free")
        if exists:
            resolution.existing_name = name
        else:
            resolution.free_name = name
            break

    return resolution


class RemoteProvisioner:
    """
    Creates or reuses the GitHub notes repository and wires ``origin``.

    Example:
        >>> async with GitHubClient.from_environment() as client:
        ...     provisioner = RemoteProvisioner(client, notes_folder, RemoteConfig(), ask)
        ...     result = await provisioner.provision()
        >>> result.remote_url
        'https://github.com/me/notes.git'
    """

    def __init__(
        self,
        client: GitHubClient,
        notes_folder: Path,
        config: RemoteConfig,
        choose_remote: RemotePrompt,
        *,
        coordinator: SyncCoordinator | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Args:
            client: GitHub API client
            notes_folder: Folder holding the notes (initialized if not a repo)
            config: Remote naming and wiring settings
            choose_remote: Decision callback when a repository already exists
            coordinator: When given, provisioning holds its sync lock so an
                automatic sync cannot touch the working copy meanwhile
            clock: Source of "now" for synthesized names
        """
        self.client = client
        self.notes_folder = Path(notes_folder)
        self.config = config
        self._choose_remote = choose_remote
        self._coordinator = coordinator
        self._clock = clock

    async def provision(self) -> ProvisionResult:
        """
        Ensure the remote exists and is wired as origin.

        Raises:
            AuthFailure: Credentials missing or rejected (nothing changed)
            ProvisioningCancelled: Operator declined (nothing changed)
            ProvisioningError: A sync holds the lock
            GitHubApiError: Unexpected API response
            CommandFailed: Local git setup failed before origin was wired
        """
        if self._coordinator is None:
            return await self._provision()

        async with self._coordinator.exclusive() as acquired:
            if not acquired:
                raise ProvisioningError(
                    "A notes sync is in progress; run provisioning again when it finishes"
                )
            return await self._provision()

    async def _provision(self) -> ProvisionResult:
        owner = await self.client.get_login()
        logger.info("Provisioning notes remote for GitHub user %s", owner)

        repository, created = await self._select_repository(owner)
        remote_url = repository.remote_url(self.config.use_ssh)

        result = await self._wire_local(remote_url)
        result.owner = owner
        result.repo_name = repository.name
        result.created = created
        result.reused = not created
        return result

    async def _select_repository(self, owner: str) -> tuple[GitHubRepository, bool]:
        resolution = await resolve_repository_name(
            self.client, owner, self.config.base_name, self.config.max_name_attempts
        )
        existing = resolution.existing

        if resolution.existing_name and existing is not None:
            create_name = resolution.free_name or fallback_name(
                self.config.base_name, self._clock()
            )
            choice = await self._ask(resolution.existing_name, create_name)
            if choice is RemoteChoice.USE_EXISTING:
                logger.info("Reusing existing repository %s/%s", owner, existing.name)
                return existing, False
            if choice is RemoteChoice.CANCEL:
                raise ProvisioningCancelled("Provisioning cancelled; nothing was changed")
            return await self._create(create_name), True

        return await self._create(resolution.free_name or self.config.base_name), True

    async def _create(self, name: str) -> GitHubRepository:
        return await self.client.create_repository(
            name, private=True, description=self.config.description
        )

    async def _ask(self, existing_name: str, create_name: str) -> RemoteChoice:
        answer = self._choose_remote(existing_name, create_name)
        if inspect.isawaitable(answer):
            answer = await answer
        if answer is None:
            return RemoteChoice.CANCEL
        return RemoteChoice(answer)

    async def _ensure_local_repository(self) -> tuple[NotesRepository, bool]:
        root = find_git_root(self.notes_folder)
        if root is not None:
            return NotesRepository(root), False
        return await NotesRepository.init(self.notes_folder), True

    async def _wire_local(self, remote_url: str) -> ProvisionResult:
        repository, initialized = await self._ensure_local_repository()

        if not await repository.has_commits():
            await repository.add_all()
            await repository.commit(INITIAL_COMMIT_MESSAGE, allow_empty=True)

        result = ProvisionResult(
            owner="",
            repo_name="",
            remote_url=remote_url,
            repo_root=str(repository.root),
            initialized=initialized,
        )

        if await repository.get_remote_url(ORIGIN) is None:
            await repository.add_remote(ORIGIN, remote_url)
            result.remote_action = "added"
        else:
            await repository.set_remote_url(ORIGIN, remote_url)
            result.remote_action = "updated"
        logger.info("Remote %s %s: %s", ORIGIN, result.remote_action, remote_url)

        branch = self.config.default_branch
        try:
            await repository.rename_branch(branch)
            result.branch_renamed = True
        except CommandFailed as e:
            result.warnings.append(f"Could not rename branch to {branch}: {e.output}")
            logger.warning("Branch rename to %s failed in %s: %s", branch, repository.root, e.output)
            branch = await repository.current_branch() or branch
        result.branch = branch

        try:
            await repository.push(ORIGIN, branch, set_upstream=True)
            result.pushed = True
        except PushRejected as e:
            result.warnings.append(
                f"Initial push failed; run 'git push -u {ORIGIN} {branch}' once resolved: {e.output}"
            )
            logger.warning("Initial push failed in %s: %s", repository.root, e.output)

        return result
