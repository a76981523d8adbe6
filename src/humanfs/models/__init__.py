"""SQLModel tables for the database impl."""

from humanfs.models.entries import Entry, EntryBase

__all__ = ["Entry", "EntryBase"]
