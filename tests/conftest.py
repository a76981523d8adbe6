"""Shared fixtures for humanfs tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from humanfs import DatabaseHfs, Hfs, LocalHfs, MemoryHfs, MemoryHfsVolume, RetryConfig

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncEngine


class CoreMemoryImpl:
    """Only the seven core methods, as plain functions, over a memory volume.

    Every other operation on an ``Hfs`` using this impl is composed by the
    façade.
    """

    def __init__(self) -> None:
        self.volume = MemoryHfsVolume()

    def bytes(self, path: str) -> bytes | None:
        return self.volume.read_file(path)

    def write(self, path: str, contents: bytes) -> None:
        self.volume.write_file(path, contents)

    def is_file(self, path: str) -> bool:
        stat = self.volume.stat(path)
        return stat is not None and stat.kind == "file"

    def is_directory(self, path: str) -> bool:
        stat = self.volume.stat(path)
        return stat is not None and stat.kind == "directory"

    def create_directory(self, path: str) -> None:
        self.volume.mkdirp(path)

    def delete(self, path: str) -> None:
        self.volume.rm(path)

    def list(self, path: str) -> list[dict[str, object]]:
        return [
            {"name": e.name, "isFile": e.is_file, "isDirectory": e.is_directory}
            for e in self.volume.readdir(path)
        ]


@pytest.fixture
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Async in-memory SQLite engine shared by every session."""
    eng = create_async_engine("sqlite+aiosqlite://", echo=False, poolclass=StaticPool)
    yield eng
    await eng.dispose()


@pytest.fixture
async def database_hfs(async_engine: AsyncEngine) -> DatabaseHfs:
    """DatabaseHfs with its entry table created on the in-memory engine."""
    return await DatabaseHfs.from_engine(async_engine)


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def memory_hfs() -> MemoryHfs:
    return MemoryHfs()


@pytest.fixture
def core_hfs() -> Hfs:
    """Hfs over an impl that only has the core methods."""
    return Hfs(impl=CoreMemoryImpl())


@pytest.fixture
def local_hfs(tmp_path: Path) -> LocalHfs:
    """LocalHfs rooted at a temporary directory."""
    return LocalHfs(tmp_path, retry=RetryConfig(initial_wait=0, max_delay=0))


@pytest.fixture(params=["memory", "core", "local", "database"])
def hfs(request: pytest.FixtureRequest) -> Hfs:
    """Every bundled backend, plus the composed-only core impl."""
    return request.getfixturevalue(f"{request.param}_hfs")
