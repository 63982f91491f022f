"""Note file helpers (daily journal notes)."""

from notesync.core.notes.daily import daily_note_path, ensure_daily_note

__all__ = ["daily_note_path", "ensure_daily_note"]
