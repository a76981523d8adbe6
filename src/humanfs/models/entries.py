"""Entry model — one row per file or directory.

Provides the ``EntryBase`` non-table base class.  Subclass with
``table=True`` and a custom ``__tablename__`` to store a volume in a
different table.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from sqlalchemy import DateTime, LargeBinary
from sqlmodel import Field, SQLModel


class EntryBase(SQLModel):
    """Base fields for a stored entry. Subclass with ``table=True`` for a concrete table.

    ``path`` is root-relative and ``/`` separated (``"docs/a.txt"``); the
    root itself is implicit and never stored.  Top-level entries have an
    empty ``parent_path``.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), primary_key=True)
    path: str = Field(index=True, unique=True)
    parent_path: str = Field(default="", index=True)
    name: str = Field(default="")
    is_directory: bool = Field(default=False)
    content: bytes | None = Field(default=None, sa_type=LargeBinary)
    size_bytes: int = Field(default=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_type=DateTime(timezone=True),
    )


class Entry(EntryBase, table=True):
    """Default entry table — ``humanfs_entries``."""

    __tablename__ = "humanfs_entries"
