"""
Tests for remote provisioning.

Tests cover:
- Candidate name probing and collision resolution
- Reuse / create / cancel decisions
- Authentication failure leaves local state untouched
- Local wiring: init, initial commit, origin, branch rename, first push
- Mutual exclusion with the sync coordinator
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from notesync.core.config.models import NotesGitConfig, RemoteConfig
from notesync.core.exceptions import AuthFailure, ProvisioningCancelled, ProvisioningError
from notesync.core.github import (
    GitHubRepository,
    RemoteChoice,
    RemoteProvisioner,
    resolve_repository_name,
)
from notesync.core.github.provisioner import candidate_names, fallback_name
from notesync.core.sync import SyncCoordinator

FIXED_NOW = datetime(2026, 1, 5, 9, 30, 15, tzinfo=timezone.utc)


class FakeGitHubClient:
    """In-memory stand-in for GitHubClient."""

    def __init__(
        self,
        existing: dict[str, GitHubRepository] | None = None,
        *,
        login: str = "octo",
        auth_error_on: str | None = None,
        remote_dir: Path | None = None,
        clone_url_for=None,
    ) -> None:
        self.login = login
        self.existing = dict(existing or {})
        self.auth_error_on = auth_error_on
        self.remote_dir = remote_dir
        self.clone_url_for = clone_url_for or self._default_clone_url
        self.probed: list[str] = []
        self.created: list[tuple[str, bool, str]] = []

    def _default_clone_url(self, name: str) -> str:
        # Local paths keep the first push off the network
        if self.remote_dir is not None:
            return str(self.remote_dir / f"{name}.git")
        return f"https://github.com/{self.login}/{name}.git"

    def repository(self, name: str) -> GitHubRepository:
        return GitHubRepository(
            name=name,
            owner=self.login,
            clone_url=self.clone_url_for(name),
            ssh_url=f"git@github.com:{self.login}/{name}.git",
        )

    def _check_auth(self, call: str) -> None:
        if self.auth_error_on == call:
            raise AuthFailure("Bad credentials", status_code=401 if call == "login" else 403)

    async def get_login(self) -> str:
        self._check_auth("login")
        return self.login

    async def get_repository(self, owner: str, name: str) -> GitHubRepository | None:
        self._check_auth("lookup")
        self.probed.append(name)
        return self.existing.get(name)

    async def create_repository(
        self, name: str, *, private: bool = True, description: str = ""
    ) -> GitHubRepository:
        self._check_auth("create")
        self.created.append((name, private, description))
        repository = self.repository(name)
        self.existing[name] = repository
        return repository


def with_existing(client: FakeGitHubClient, *names: str) -> FakeGitHubClient:
    for name in names:
        client.existing[name] = client.repository(name)
    return client


def make_provisioner(
    client: FakeGitHubClient,
    notes_folder: Path,
    choose_remote=None,
    **config: object,
) -> RemoteProvisioner:
    return RemoteProvisioner(
        client,  # type: ignore[arg-type]
        notes_folder,
        RemoteConfig(**config),
        choose_remote or MagicMock(return_value=RemoteChoice.USE_EXISTING),
        clock=lambda: FIXED_NOW,
    )


class TestCandidateNames:
    """Tests for the naming helpers."""

    def test_sequence(self) -> None:
        assert candidate_names("notes", 4) == ["notes", "notes-1", "notes-2", "notes-3"]

    def test_single_attempt(self) -> None:
        assert candidate_names("notes", 1) == ["notes"]

    def test_fallback_name(self) -> None:
        assert fallback_name("notes", FIXED_NOW) == "notes-20260105093015"


class TestResolveRepositoryName:
    """Tests for resolve_repository_name."""

    @pytest.mark.asyncio
    async def test_nothing_exists(self) -> None:
        client = FakeGitHubClient()

        resolution = await resolve_repository_name(client, "octo", "notes", 10)  # type: ignore[arg-type]

        assert resolution.existing_name is None
        assert resolution.free_name == "notes"
        assert client.probed == ["notes"]

    @pytest.mark.asyncio
    async def test_most_recent_existing_is_offered(self) -> None:
        """With notes and notes-1 taken, notes-1 is reusable and notes-2 is free."""
        client = with_existing(FakeGitHubClient(), "notes", "notes-1")

        resolution = await resolve_repository_name(client, "octo", "notes", 10)  # type: ignore[arg-type]

        assert resolution.existing_name == "notes-1"
        assert resolution.free_name == "notes-2"
        assert resolution.existing is not None
        assert resolution.existing.name == "notes-1"
        assert client.probed == ["notes", "notes-1", "notes-2"]

    @pytest.mark.asyncio
    async def test_every_candidate_taken(self) -> None:
        client = with_existing(FakeGitHubClient(), "notes", "notes-1", "notes-2")

        resolution = await resolve_repository_name(client, "octo", "notes", 3)  # type: ignore[arg-type]

        assert resolution.existing_name == "notes-2"
        assert resolution.free_name is None
        assert len(resolution.candidates) == 3


class TestRemoteSelection:
    """Tests for the reuse / create / cancel decision."""

    @pytest.mark.asyncio
    async def test_creates_without_prompt_when_free(self, tmp_path: Path) -> None:
        client = FakeGitHubClient(remote_dir=tmp_path)
        prompt = MagicMock()
        provisioner = make_provisioner(client, tmp_path / "notes", prompt)

        result = await provisioner.provision()

        prompt.assert_not_called()
        assert client.created == [("notes", True, RemoteConfig().description)]
        assert result.created is True
        assert result.repo_name == "notes"
        assert result.owner == "octo"

    @pytest.mark.asyncio
    async def test_reuse_existing(self, tmp_path: Path) -> None:
        client = with_existing(FakeGitHubClient(remote_dir=tmp_path), "notes", "notes-1")
        prompt = MagicMock(return_value=RemoteChoice.USE_EXISTING)
        provisioner = make_provisioner(client, tmp_path / "notes", prompt)

        result = await provisioner.provision()

        prompt.assert_called_once_with("notes-1", "notes-2")
        assert client.created == []
        assert result.reused is True
        assert result.repo_name == "notes-1"
        assert result.remote_url == str(tmp_path / "notes-1.git")

    @pytest.mark.asyncio
    async def test_create_next_free(self, tmp_path: Path) -> None:
        client = with_existing(FakeGitHubClient(remote_dir=tmp_path), "notes", "notes-1")

        async def prompt(existing_name: str, create_name: str) -> RemoteChoice:
            return RemoteChoice.CREATE_NEW

        provisioner = make_provisioner(client, tmp_path / "notes", prompt)

        result = await provisioner.provision()

        assert [name for name, _, _ in client.created] == ["notes-2"]
        assert result.created is True
        assert result.repo_name == "notes-2"

    @pytest.mark.asyncio
    async def test_create_with_synthesized_name(self, tmp_path: Path) -> None:
        """When every probed name exists, the create option gets a timestamped name."""
        client = with_existing(FakeGitHubClient(remote_dir=tmp_path), "notes", "notes-1")
        prompt = MagicMock(return_value=RemoteChoice.CREATE_NEW)
        provisioner = make_provisioner(client, tmp_path / "notes", prompt, max_name_attempts=2)

        result = await provisioner.provision()

        prompt.assert_called_once_with("notes-1", "notes-20260105093015")
        assert result.repo_name == "notes-20260105093015"

    @pytest.mark.asyncio
    async def test_cancel_changes_nothing(self, tmp_path: Path) -> None:
        client = with_existing(FakeGitHubClient(), "notes")
        notes = tmp_path / "notes"
        notes.mkdir()
        provisioner = make_provisioner(
            client, notes, MagicMock(return_value=RemoteChoice.CANCEL)
        )

        with pytest.raises(ProvisioningCancelled):
            await provisioner.provision()

        assert client.created == []
        assert not (notes / ".git").exists()

    @pytest.mark.asyncio
    async def test_dismissed_prompt_cancels(self, tmp_path: Path) -> None:
        client = with_existing(FakeGitHubClient(remote_dir=tmp_path), "notes")
        provisioner = make_provisioner(client, tmp_path / "notes", MagicMock(return_value=None))

        with pytest.raises(ProvisioningCancelled):
            await provisioner.provision()

    @pytest.mark.asyncio
    async def test_ssh_remote(self, tmp_path: Path, monkeypatch) -> None:
        monkeypatch.setenv("GIT_SSH_COMMAND", "false")
        client = FakeGitHubClient()
        provisioner = make_provisioner(client, tmp_path / "notes", use_ssh=True)

        result = await provisioner.provision()

        assert result.remote_url == "git@github.com:octo/notes.git"


class TestAuthFailure:
    """Credential problems stop provisioning before anything changes."""

    @pytest.mark.asyncio
    async def test_plain_folder_untouched(self, tmp_path: Path) -> None:
        notes = tmp_path / "notes"
        notes.mkdir()
        client = FakeGitHubClient(auth_error_on="login")

        with pytest.raises(AuthFailure):
            await make_provisioner(client, notes).provision()

        assert not (notes / ".git").exists()
        assert client.probed == []
        assert client.created == []

    @pytest.mark.asyncio
    async def test_existing_origin_untouched(self, git_repo: Path, git) -> None:
        git(git_repo, "remote", "add", "origin", "https://example.com/keep.git")
        client = FakeGitHubClient(auth_error_on="login")

        with pytest.raises(AuthFailure):
            await make_provisioner(client, git_repo).provision()

        assert git(git_repo, "remote", "get-url", "origin").strip() == (
            "https://example.com/keep.git"
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("call", ["lookup", "create"])
    async def test_rejected_mid_provisioning(self, tmp_path: Path, call: str) -> None:
        """A token that can log in but not read or create repos still aborts cleanly."""
        notes = tmp_path / "notes"
        notes.mkdir()
        client = FakeGitHubClient(auth_error_on=call)

        with pytest.raises(AuthFailure) as exc_info:
            await make_provisioner(client, notes).provision()

        assert exc_info.value.status_code == 403
        assert not (notes / ".git").exists()
        assert client.created == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("call", ["lookup", "create"])
    async def test_rejected_mid_provisioning_keeps_origin(
        self, git_repo: Path, git, call: str
    ) -> None:
        git(git_repo, "remote", "add", "origin", "https://example.com/keep.git")
        head = git(git_repo, "rev-parse", "HEAD")
        client = FakeGitHubClient(auth_error_on=call)

        with pytest.raises(AuthFailure):
            await make_provisioner(client, git_repo).provision()

        assert git(git_repo, "remote", "get-url", "origin").strip() == (
            "https://example.com/keep.git"
        )
        assert git(git_repo, "rev-parse", "HEAD") == head


class TestLocalWiring:
    """Tests for initializing and wiring the local repository."""

    @pytest.mark.asyncio
    async def test_plain_folder_initialized_and_pushed(
        self, tmp_path: Path, bare_remote: Path, git
    ) -> None:
        notes = tmp_path / "plain-notes"
        notes.mkdir()
        (notes / "idea.md").write_text("idea\n")
        client = FakeGitHubClient(clone_url_for=lambda name: str(bare_remote))

        result = await make_provisioner(client, notes).provision()

        assert result.initialized is True
        assert result.remote_action == "added"
        assert result.branch == "main"
        assert result.pushed is True
        assert result.warnings == []
        assert git(notes, "remote", "get-url", "origin").strip() == str(bare_remote)
        assert git(notes, "rev-parse", "HEAD") == git(bare_remote, "rev-parse", "main")
        assert git(notes, "ls-files").split() == ["idea.md"]
        assert git(notes, "rev-parse", "--abbrev-ref", "main@{u}").strip() == "origin/main"

    @pytest.mark.asyncio
    async def test_empty_folder_gets_initial_commit(
        self, tmp_path: Path, bare_remote: Path, git
    ) -> None:
        notes = tmp_path / "empty-notes"
        client = FakeGitHubClient(clone_url_for=lambda name: str(bare_remote))

        result = await make_provisioner(client, notes).provision()

        assert result.pushed is True
        assert git(notes, "log", "-1", "--format=%s").strip() == "Initialize notes repository"

    @pytest.mark.asyncio
    async def test_existing_origin_is_updated(
        self, git_repo: Path, bare_remote: Path, git
    ) -> None:
        git(git_repo, "remote", "add", "origin", "https://example.com/old.git")
        client = FakeGitHubClient(clone_url_for=lambda name: str(bare_remote))

        result = await make_provisioner(client, git_repo).provision()

        assert result.initialized is False
        assert result.remote_action == "updated"
        assert git(git_repo, "remote", "get-url", "origin").strip() == str(bare_remote)

    @pytest.mark.asyncio
    async def test_subfolder_uses_enclosing_repository(
        self, git_repo: Path, bare_remote: Path
    ) -> None:
        subfolder = git_repo / "notes"
        subfolder.mkdir()
        client = FakeGitHubClient(clone_url_for=lambda name: str(bare_remote))

        result = await make_provisioner(client, subfolder).provision()

        assert result.initialized is False
        assert Path(result.repo_root) == git_repo.resolve()
        assert not (subfolder / ".git").exists()

    @pytest.mark.asyncio
    async def test_branch_renamed(self, git_repo: Path, bare_remote: Path, git) -> None:
        git(git_repo, "branch", "-M", "master")
        client = FakeGitHubClient(clone_url_for=lambda name: str(bare_remote))

        result = await make_provisioner(client, git_repo).provision()

        assert result.branch_renamed is True
        assert git(git_repo, "symbolic-ref", "--short", "HEAD").strip() == "main"
        assert git(bare_remote, "rev-parse", "main")

    @pytest.mark.asyncio
    async def test_push_failure_is_a_warning(self, git_repo: Path, tmp_path: Path, git) -> None:
        """Origin stays wired even when the first push fails."""
        missing = tmp_path / "missing.git"
        client = FakeGitHubClient(clone_url_for=lambda name: str(missing))

        result = await make_provisioner(client, git_repo).provision()

        assert result.pushed is False
        assert len(result.warnings) == 1
        assert "git push -u origin main" in result.warnings[0]
        assert git(git_repo, "remote", "get-url", "origin").strip() == str(missing)

    @pytest.mark.asyncio
    async def test_rerun_is_idempotent(self, git_repo: Path, bare_remote: Path) -> None:
        """A second run reuses the repository created by the first."""
        client = FakeGitHubClient(clone_url_for=lambda name: str(bare_remote))
        prompt = MagicMock(return_value=RemoteChoice.USE_EXISTING)

        first = await make_provisioner(client, git_repo, prompt).provision()
        second = await make_provisioner(client, git_repo, prompt).provision()

        assert first.created is True
        assert second.reused is True
        assert second.repo_name == "notes"
        assert second.remote_action == "updated"
        assert second.pushed is True
        prompt.assert_called_once_with("notes", "notes-1")


class TestSyncExclusion:
    """Provisioning and automatic sync never run at the same time."""

    @pytest.mark.asyncio
    async def test_refuses_while_sync_runs(self, tmp_path: Path) -> None:
        coordinator = SyncCoordinator(NotesGitConfig())
        client = FakeGitHubClient()
        provisioner = RemoteProvisioner(
            client,  # type: ignore[arg-type]
            tmp_path / "notes",
            RemoteConfig(),
            MagicMock(),
            coordinator=coordinator,
        )

        async with coordinator.exclusive():
            with pytest.raises(ProvisioningError):
                await provisioner.provision()

        assert client.probed == []

    @pytest.mark.asyncio
    async def test_holds_sync_lock(self, tmp_path: Path, bare_remote: Path) -> None:
        coordinator = SyncCoordinator(NotesGitConfig())
        seen: list[bool] = []
        client = FakeGitHubClient(clone_url_for=lambda name: str(bare_remote))
        original_get_login = client.get_login

        async def get_login() -> str:
            seen.append(coordinator.state.sync_in_progress)
            return await original_get_login()

        client.get_login = get_login  # type: ignore[method-assign]
        provisioner = RemoteProvisioner(
            client,  # type: ignore[arg-type]
            tmp_path / "notes",
            RemoteConfig(),
            MagicMock(),
            coordinator=coordinator,
        )

        await provisioner.provision()

        assert seen == [True]
        assert coordinator.state.sync_in_progress is False
