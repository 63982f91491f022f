"""
Working-copy root discovery.

Searches upward from a directory for the ``.git`` marker. The result is never
cached: a folder can become a repository after an earlier negative check.
"""

from pathlib import Path

GIT_MARKER = ".git"


def find_git_root(start: Path | str) -> Path | None:
    """
    Find the root of the working copy containing ``start``.

    ``.git`` may be a directory or a file (worktrees and submodules use a
    file), so any existing entry counts.

    Args:
        start: Directory to start searching from.

    Returns:
        Path to the repository root, or None if the filesystem root is
        reached without finding one.

    Example:
        >>> find_git_root(Path("/home/me/notes/journals"))
        PosixPath('/home/me/notes')
    """
    current = Path(start).expanduser().resolve()

    while True:
        if (current / GIT_MARKER).exists():
            return current
        if current == current.parent:
            return None
        current = current.parent
