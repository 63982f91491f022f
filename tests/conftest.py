"""
Pytest configuration and shared fixtures.

Provides an isolated environment (HOME, XDG config, git identity), real git
repositories in temp directories, and a local bare repository standing in for
the GitHub remote.
"""

import subprocess
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from notesync.core.config import clear_cache

GitRunner = Callable[..., str]

# Variables that would leak the developer's real setup into tests
_LEAKY_ENV_VARS = (
    "NOTESYNC_NOTES_FOLDER",
    "NOTESYNC_AUTO_SYNC",
    "NOTESYNC_SAVE_THRESHOLD",
    "NOTESYNC_MINUTES_THRESHOLD",
    "NOTESYNC_COMMIT_MESSAGE",
    "NOTESYNC_GITHUB_TOKEN",
    "GITHUB_TOKEN",
    "GH_TOKEN",
    "OneDrive",
    "ONE_DRIVE",
    "ONEDRIVE",
    "USERPROFILE",
    "GIT_DIR",
    "GIT_WORK_TREE",
)


def run_git_command(cwd: Path, *args: str) -> str:
    """Run git synchronously for test setup and return stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout


# ==============================================================================
# Environment Fixtures
# ==============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Path]:
    """
    Point HOME and XDG_CONFIG_HOME at temp dirs and give git an identity.

    Also clears the config cache so every test loads its own config.
    """
    home = tmp_path / "home"
    home.mkdir()
    (home / ".gitconfig").write_text(
        "[user]\n"
        "\tname = Test User\n"
        "\temail = test@example.com\n"
        "[init]\n"
        "\tdefaultBranch = main\n"
        "[advice]\n"
        "\tdetachedHead = false\n"
    )

    for var in _LEAKY_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("GIT_TERMINAL_PROMPT", "0")

    clear_cache()
    yield home
    clear_cache()


# ==============================================================================
# Git Repository Fixtures
# ==============================================================================


@pytest.fixture
def git() -> GitRunner:
    """Synchronous ``git`` helper for arranging repository state."""
    return run_git_command


@pytest.fixture
def git_repo(tmp_path: Path) -> Path:
    """Create a notes repository with one commit and no remote."""
    repo = tmp_path / "notes"
    repo.mkdir()
    run_git_command(repo, "init")
    (repo / "README.md").write_text("# Notes\n")
    run_git_command(repo, "add", "README.md")
    run_git_command(repo, "commit", "-m", "Initial commit")
    return repo


@pytest.fixture
def bare_remote(tmp_path: Path) -> Path:
    """Create an empty bare repository to act as the hosted remote."""
    remote = tmp_path / "remote.git"
    run_git_command(tmp_path, "init", "--bare", str(remote))
    return remote


@pytest.fixture
def synced_repo(git_repo: Path, bare_remote: Path) -> Path:
    """Notes repository whose ``main`` tracks ``origin/main`` on a bare remote."""
    run_git_command(git_repo, "remote", "add", "origin", str(bare_remote))
    run_git_command(git_repo, "push", "-u", "origin", "main")
    return git_repo


@pytest.fixture
def other_clone(tmp_path: Path, synced_repo: Path, bare_remote: Path) -> Path:
    """A second clone of the remote, used to make the remote move ahead."""
    clone = tmp_path / "other"
    run_git_command(tmp_path, "clone", str(bare_remote), str(clone))
    return clone


@pytest.fixture
def push_remote(other_clone: Path) -> Callable[[str, str], None]:
    """Return a helper that commits a file in the other clone and pushes it."""

    def _push(filename: str, content: str) -> None:
        (other_clone / filename).write_text(content)
        run_git_command(other_clone, "add", filename)
        run_git_command(other_clone, "commit", "-m", f"Add {filename}")
        run_git_command(other_clone, "push")

    return _push
