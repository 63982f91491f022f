"""Core business logic for notesync, independent of the CLI."""
