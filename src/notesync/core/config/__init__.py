"""
Configuration models and loading.

This module provides Pydantic models for notesync configuration
with multi-layer merging: defaults < user < project < env vars.
"""

from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
    resolve_notes_folder,
)
from .models import NotesGitConfig, NotesyncConfig, RemoteConfig

__all__ = [
    # Models
    "NotesGitConfig",
    "NotesyncConfig",
    "RemoteConfig",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "resolve_notes_folder",
]
