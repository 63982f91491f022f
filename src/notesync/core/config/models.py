"""
Configuration data models for notesync.

These models define the structure of .notesync.json and
~/.config/notesync/config.json files, with validation and type safety via
Pydantic.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

REASON_PLACEHOLDER = "{reason}"


class NotesGitConfig(BaseModel):
    """
    Automatic commit/push policy for the notes repository.

    A sync is attempted after ``save_count_threshold`` qualifying saves, or on
    the minute ticker once ``minutes_threshold`` minutes have passed since the
    last completed sync while there are unsynced saves.
    """
    auto_sync_enabled: bool = Field(
        default=False,
        description="Commit and push automatically on saves and on the timer"
    )
    save_count_threshold: int = Field(
        default=10,
        ge=1,
        description="Sync after this many qualifying saves"
    )
    minutes_threshold: int = Field(
        default=10,
        ge=0,
        description="Sync on the timer once this many minutes passed since the last sync"
    )
    commit_message: str = Field(
        default="notesync auto-commit ({reason})",
        min_length=1,
        description="Commit message template; {reason} becomes the trigger name"
    )

    def render_commit_message(self, reason: str) -> str:
        """Substitute the trigger reason into the commit message template."""
        return self.commit_message.replace(REASON_PLACEHOLDER, reason)


class RemoteConfig(BaseModel):
    """
    Hosted remote settings used by ``notesync init``.
    """
    base_name: str = Field(
        default="notes",
        pattern=r"^[A-Za-z0-9._-]+$",
        description="Preferred GitHub repository name; collisions get -1, -2, ... suffixes"
    )
    description: str = Field(
        default="Personal notes (managed by notesync)",
        description="Description for newly created repositories"
    )
    max_name_attempts: int = Field(
        default=10,
        ge=1,
        description="How many candidate names to probe before synthesizing one"
    )
    default_branch: str = Field(
        default="main",
        min_length=1,
        description="Branch the notes repository is renamed to before the first push"
    )
    use_ssh: bool = Field(
        default=False,
        description="Wire origin with the SSH URL instead of HTTPS"
    )
    api_url: str = Field(
        default="https://api.github.com",
        description="GitHub REST API base URL"
    )


class NotesyncConfig(BaseModel):
    """
    Top-level notesync configuration.

    Loaded from defaults, user config, project config, and env vars.

    Example:
        >>> config = NotesyncConfig(
        ...     notes_folder="~/notes",
        ...     notes_git=NotesGitConfig(auto_sync_enabled=True, save_count_threshold=3),
        ... )
        >>> config.notes_git.save_count_threshold
        3
    """
    notes_folder: Optional[str] = Field(
        default=None,
        description="Notes folder; inferred from the environment when unset"
    )
    notes_git: NotesGitConfig = Field(
        default_factory=NotesGitConfig,
        description="Automatic sync policy"
    )
    remote: RemoteConfig = Field(
        default_factory=RemoteConfig,
        description="Remote provisioning settings"
    )

    model_config = ConfigDict(
        extra="allow",  # Allow extra fields for forward compatibility
        validate_assignment=True,
    )

    @field_validator('notes_folder', mode='before')
    @classmethod
    def blank_folder_is_unset(cls, v: Optional[str]) -> Optional[str]:
        """Treat an empty or whitespace-only folder as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v
