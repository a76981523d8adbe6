"""DatabaseHfsImpl — entries stored as rows through SQLModel."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlmodel import select

from humanfs.errors import DirectoryError, NotEmptyError, NotFoundError, PermissionDeniedError
from humanfs.hfs import Hfs
from humanfs.types import DirectoryEntry
from humanfs.utils import parent_path

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, AsyncIterator, Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

    from humanfs.events import LogSink
    from humanfs.models.entries import EntryBase

logger = logging.getLogger(__name__)


def _aware(value: datetime) -> datetime:
    # SQLite drops the offset on the way back out.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class DatabaseHfsImpl:
    """Minimal impl over a SQL table: only the ``HfsImpl`` core plus size
    and modification time.

    Copy, move, append, recursive delete and walk are all composed by the
    façade from these primitives.  Sessions are per-operation: committed on
    success, rolled back on failure.
    """

    def __init__(
        self,
        session_factory: Callable[..., AsyncSession],
        *,
        entry_model: type[EntryBase] | None = None,
    ) -> None:
        from humanfs.models.entries import Entry

        self._session_factory = session_factory
        self._entry_model: type[EntryBase] = entry_model or Entry  # type: ignore[assignment]

    @property
    def entry_model(self) -> type[EntryBase]:
        return self._entry_model

    # ------------------------------------------------------------------
    # Session Management (per-operation only)
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _session_for(self) -> AsyncGenerator[AsyncSession]:
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ------------------------------------------------------------------
    # Row helpers
    # ------------------------------------------------------------------

    async def _get(self, session: AsyncSession, path: str) -> EntryBase | None:
        model = self._entry_model
        result = await session.execute(
            select(model).where(model.path == path)  # type: ignore[arg-type]
        )
        return result.scalars().first()

    async def _has_children(self, session: AsyncSession, path: str) -> bool:
        model = self._entry_model
        result = await session.execute(
            select(func.count()).select_from(model).where(model.parent_path == path)  # type: ignore[arg-type]
        )
        return (result.scalar() or 0) > 0

    async def _ensure_directories(self, session: AsyncSession, path: str, target: str) -> None:
        """Create *path* and every missing ancestor as directory rows."""
        if not path:
            return
        parts = path.split("/")
        for i in range(1, len(parts) + 1):
            dir_path = "/".join(parts[:i])
            existing = await self._get(session, dir_path)
            if existing is None:
                session.add(
                    self._entry_model(
                        path=dir_path,
                        parent_path="/".join(parts[: i - 1]),
                        name=parts[i - 1],
                        is_directory=True,
                    )
                )
                await session.flush()
            elif not existing.is_directory:
                raise DirectoryError(target)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def bytes(self, path: str) -> bytes | None:
        if not path:
            raise DirectoryError(path)
        async with self._session_for() as session:
            entry = await self._get(session, path)
            if entry is None:
                return None
            if entry.is_directory:
                raise DirectoryError(path)
            return entry.content or b""

    async def is_file(self, path: str) -> bool:
        if not path:
            return False
        async with self._session_for() as session:
            entry = await self._get(session, path)
            return entry is not None and not entry.is_directory

    async def is_directory(self, path: str) -> bool:
        if not path:
            return True
        async with self._session_for() as session:
            entry = await self._get(session, path)
            return entry is not None and entry.is_directory

    async def size(self, path: str) -> int | None:
        if not path:
            return None
        async with self._session_for() as session:
            entry = await self._get(session, path)
            if entry is None or entry.is_directory:
                return None
            return entry.size_bytes

    async def last_modified(self, path: str) -> datetime | None:
        if not path:
            return None
        async with self._session_for() as session:
            entry = await self._get(session, path)
            return None if entry is None else _aware(entry.updated_at)

    async def list(self, path: str) -> AsyncIterator[DirectoryEntry]:
        model = self._entry_model
        async with self._session_for() as session:
            if path:
                directory = await self._get(session, path)
                if directory is None:
                    raise NotFoundError(path)
                if not directory.is_directory:
                    raise PermissionDeniedError(path)
            result = await session.execute(
                select(model).where(model.parent_path == path).order_by(model.name)  # type: ignore[arg-type]
            )
            entries = [
                DirectoryEntry(
                    name=row.name,
                    is_file=not row.is_directory,
                    is_directory=row.is_directory,
                )
                for row in result.scalars().all()
            ]
        # Yielded after the session has closed.
        for entry in entries:
            yield entry

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def write(self, path: str, contents: bytes) -> None:
        if not path:
            raise DirectoryError(path)
        async with self._session_for() as session:
            await self._ensure_directories(session, parent_path(path), path)
            entry = await self._get(session, path)
            now = datetime.now(UTC)
            if entry is None:
                parent, _, name = path.rpartition("/")
                session.add(
                    self._entry_model(
                        path=path,
                        parent_path=parent,
                        name=name,
                        content=contents,
                        size_bytes=len(contents),
                        created_at=now,
                        updated_at=now,
                    )
                )
                return
            if entry.is_directory:
                raise DirectoryError(path)
            entry.content = contents
            entry.size_bytes = len(contents)
            entry.updated_at = now
            session.add(entry)

    async def create_directory(self, path: str) -> None:
        async with self._session_for() as session:
            await self._ensure_directories(session, path, path)

    async def delete(self, path: str) -> bool:
        if not path:
            raise PermissionDeniedError(path)
        async with self._session_for() as session:
            entry = await self._get(session, path)
            if entry is None:
                raise NotFoundError(path)
            if entry.is_directory and await self._has_children(session, path):
                raise NotEmptyError(path)
            await session.delete(entry)
            logger.debug("Deleted %s row %s", "directory" if entry.is_directory else "file", path)
        return True


class DatabaseHfs(Hfs):
    """``Hfs`` over a SQL table."""

    def __init__(
        self,
        session_factory: Callable[..., AsyncSession],
        *,
        entry_model: type[EntryBase] | None = None,
        log_sink: LogSink | None = None,
    ) -> None:
        super().__init__(
            impl=DatabaseHfsImpl(session_factory, entry_model=entry_model),
            log_sink=log_sink,
        )

    @classmethod
    async def from_engine(
        cls,
        engine: AsyncEngine,
        *,
        entry_model: type[EntryBase] | None = None,
        log_sink: LogSink | None = None,
    ) -> DatabaseHfs:
        """Create the entry table if needed and build a session factory for *engine*."""
        from humanfs.models.entries import Entry

        model = entry_model or Entry
        table = model.__table__  # type: ignore[attr-defined]
        async with engine.begin() as conn:
            await conn.run_sync(lambda c: table.create(c, checkfirst=True))
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        return cls(session_factory, entry_model=entry_model, log_sink=log_sink)
