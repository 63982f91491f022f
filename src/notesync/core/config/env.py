"""Credentials from the environment and from .env files.

`notesync init` needs a GitHub token. It can be exported in the shell or kept
in a ``.env`` file beside either notesync config file:

- ``$XDG_CONFIG_HOME/notesync/.env`` (next to ``config.json``)
- ``<cwd>/.env`` (next to ``.notesync.json``)

Exported variables always win; the project file beats the user file.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_project_config_path, get_user_config_path

logger = logging.getLogger(__name__)

ENV_FILENAME = ".env"

# Checked in order; the first non-empty one is used
TOKEN_ENV_VARS = ("NOTESYNC_GITHUB_TOKEN", "GITHUB_TOKEN", "GH_TOKEN")


def default_env_files(project_dir: Path | None = None) -> tuple[Path, Path]:
    """Return the (user, project) .env paths that sit beside the config files."""
    user = get_user_config_path().parent / ENV_FILENAME
    project = get_project_config_path(project_dir).parent / ENV_FILENAME
    return user, project


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, Path]:
    """
    Export variables from the user and project .env files.

    Args:
        project_dir: Directory holding the project files (defaults to cwd)
        user_env_paths: Override the user .env locations
        project_env_paths: Override the project .env locations

    Returns:
        Mapping of each exported variable to the file it came from
    """
    user_default, project_default = default_env_files(project_dir)
    layers = [
        list(user_env_paths) if user_env_paths is not None else [user_default],
        list(project_env_paths) if project_env_paths is not None else [project_default],
    ]

    # Later layers replace earlier ones before anything touches os.environ
    merged: dict[str, tuple[str, Path]] = {}
    for layer in layers:
        for path in layer:
            path = Path(path)
            if not path.is_file():
                continue
            for key, value in dotenv_values(path).items():
                if value is not None:
                    merged[key] = (value, path)

    exported: dict[str, Path] = {}
    for key, (value, path) in merged.items():
        if key in os.environ:
            continue
        os.environ[key] = value
        exported[key] = path

    for key in TOKEN_ENV_VARS:
        if key in exported:
            logger.debug("%s loaded from %s", key, exported[key])
    return exported


def token_from_env() -> tuple[str, str] | None:
    """
    Find a GitHub token among the supported variables.

    Returns:
        ``(variable name, token)`` for the first non-empty one, or None
    """
    for var in TOKEN_ENV_VARS:
        if token := os.environ.get(var, "").strip():
            return var, token
    return None
