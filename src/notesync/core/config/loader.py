"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import NotesyncConfig

logger = logging.getLogger(__name__)

DEFAULT_NOTES_DIRNAME = "foam-notes"

# Global cache to avoid reloading config multiple times per session
_config_cache: NotesyncConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/notesync/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "notesync" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to .notesync.json in that directory
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".notesync.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested dicts
    are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 20}})
        {'a': 1, 'b': {'x': 10, 'y': 20}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.
    """
    if not path.exists():
        return None

    try:
        with path.open() as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient to a broken file
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def _parse_bool(value: str) -> bool:
    return value.strip().lower() not in ("false", "0", "no", "off", "")


def _set_int_override(
    result: dict[str, Any], env_name: str, key: str, minimum: int
) -> None:
    raw = os.environ.get(env_name)
    if not raw:
        return
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s value '%s', ignoring", env_name, raw)
        return
    if value < minimum:
        logger.warning("%s must be >= %d, got %d, ignoring", env_name, minimum, value)
        return
    result.setdefault("notes_git", {})[key] = value


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        NOTESYNC_NOTES_FOLDER - overrides notes_folder
        NOTESYNC_AUTO_SYNC - overrides notes_git.auto_sync_enabled
        NOTESYNC_SAVE_THRESHOLD - overrides notes_git.save_count_threshold
        NOTESYNC_MINUTES_THRESHOLD - overrides notes_git.minutes_threshold
        NOTESYNC_COMMIT_MESSAGE - overrides notes_git.commit_message

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()
    if "notes_git" in result:
        result["notes_git"] = dict(result["notes_git"])

    if folder := os.environ.get("NOTESYNC_NOTES_FOLDER"):
        result["notes_folder"] = folder

    if auto_str := os.environ.get("NOTESYNC_AUTO_SYNC"):
        result.setdefault("notes_git", {})["auto_sync_enabled"] = _parse_bool(auto_str)

    _set_int_override(result, "NOTESYNC_SAVE_THRESHOLD", "save_count_threshold", 1)
    _set_int_override(result, "NOTESYNC_MINUTES_THRESHOLD", "minutes_threshold", 0)

    if message := os.environ.get("NOTESYNC_COMMIT_MESSAGE"):
        result.setdefault("notes_git", {})["commit_message"] = message

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "notes_git": {
            "auto_sync_enabled": False,
            "save_count_threshold": 10,
            "minutes_threshold": 10,
        },
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> NotesyncConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (NOTESYNC_*)
        2. Project config (.notesync.json)
        3. User config (~/.config/notesync/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Directory to load .notesync.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated NotesyncConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation

    Example:
        >>> config = load_config()
        >>> config.notes_git.save_count_threshold
        10
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = NotesyncConfig(**merged)
    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None


def resolve_notes_folder(config: NotesyncConfig) -> Path | None:
    """
    Work out which folder holds the notes.

    An explicit ``notes_folder`` wins. Otherwise the folder defaults to
    ``foam-notes`` under OneDrive when it is available, falling back to the
    user profile or home directory.

    Returns:
        Absolute notes folder path, or None if no base location is known
    """
    if config.notes_folder:
        return Path(config.notes_folder).expanduser().resolve()

    base = (
        os.environ.get("OneDrive")
        or os.environ.get("ONE_DRIVE")
        or os.environ.get("ONEDRIVE")
        or os.environ.get("USERPROFILE")
        or os.environ.get("HOME")
    )
    if not base:
        return None

    folder = Path(base) / DEFAULT_NOTES_DIRNAME
    logger.info("notes_folder not set; defaulting to %s", folder)
    return folder
