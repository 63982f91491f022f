"""
Daily journal notes.

Each day gets ``journals/YYYY-MM-DD.md`` in the notes folder, created with a
small front matter block and an empty log section. Existing notes are never
touched.
"""

from __future__ import annotations

import logging
from datetime import date
from pathlib import Path

import frontmatter

logger = logging.getLogger(__name__)

JOURNALS_DIRNAME = "journals"
DAILY_NOTE_TYPE = "daily-note"


def daily_note_slug(day: date) -> str:
    """``YYYY-MM-DD`` slug used as the file stem and heading."""
    return day.strftime("%Y-%m-%d")


def daily_note_path(notes_folder: Path, day: date) -> Path:
    return Path(notes_folder) / JOURNALS_DIRNAME / f"{daily_note_slug(day)}.md"


def render_daily_note(day: date) -> str:
    """Initial content for a new daily note."""
    slug = daily_note_slug(day)
    post = frontmatter.Post(f"# {slug}\n\n## Log\n", type=DAILY_NOTE_TYPE)
    return frontmatter.dumps(post) + "\n"


def ensure_daily_note(notes_folder: Path, day: date | None = None) -> Path:
    """
    Make sure the daily note for ``day`` (default: today) exists.

    Returns:
        Path to the note
    """
    day = day or date.today()
    path = daily_note_path(notes_folder, day)
    if path.exists():
        return path

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_daily_note(day), encoding="utf-8")
    logger.info("Created daily note %s", path)
    return path
