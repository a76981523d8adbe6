"""MemoryHfsImpl — a complete impl over a ``MemoryHfsVolume``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from humanfs.errors import DirectoryError, NotFoundError, PermissionDeniedError
from humanfs.hfs import Hfs
from humanfs.path import Path
from humanfs.types import WalkEntry
from humanfs.utils import is_within, join_path

from .memory_volume import MemoryHfsVolume

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from datetime import datetime

    from humanfs.events import LogSink
    from humanfs.types import DirectoryEntry


class MemoryHfsImpl:
    """Implements every capability natively against an in-memory volume.

    Text and JSON reads are left to the façade, which derives them from
    ``bytes``.
    """

    def __init__(self, volume: MemoryHfsVolume | None = None) -> None:
        self.volume = volume if volume is not None else MemoryHfsVolume()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def bytes(self, path: str) -> bytes | None:
        return self.volume.read_file(path)

    async def is_file(self, path: str) -> bool:
        stat = self.volume.stat(path)
        return stat is not None and stat.kind == "file"

    async def is_directory(self, path: str) -> bool:
        stat = self.volume.stat(path)
        return stat is not None and stat.kind == "directory"

    async def size(self, path: str) -> int | None:
        stat = self.volume.stat(path)
        if stat is None or stat.kind != "file":
            return None
        return stat.size

    async def last_modified(self, path: str) -> datetime | None:
        stat = self.volume.stat(path)
        return None if stat is None else stat.last_modified

    async def list(self, path: str) -> AsyncIterator[DirectoryEntry]:
        for entry in self.volume.readdir(path):
            yield entry

    async def walk(self, path: str) -> AsyncIterator[WalkEntry]:
        async for entry in self._walk(path, Path(), 1):
            yield entry

    async def _walk(self, root: str, relative: Path, depth: int) -> AsyncIterator[WalkEntry]:
        for item in self.volume.readdir(join_path(root, str(relative))):
            relative.push(item.name)
            yield WalkEntry(
                name=item.name,
                is_file=item.is_file,
                is_directory=item.is_directory,
                path=str(relative),
                depth=depth,
            )
            if item.is_directory:
                async for child in self._walk(root, relative, depth + 1):
                    yield child
            relative.pop()

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def write(self, path: str, contents: bytes) -> None:
        self.volume.write_file(path, contents)

    async def append(self, path: str, contents: bytes) -> None:
        existing = self.volume.read_file(path)
        self.volume.write_file(path, (existing or b"") + contents)

    async def create_directory(self, path: str) -> None:
        self.volume.mkdirp(path)

    async def delete(self, path: str) -> bool:
        self.volume.rm(path)
        return True

    async def delete_all(self, path: str) -> bool:
        self.volume.rm(path, recursive=True)
        return True

    # ------------------------------------------------------------------
    # Copy / move
    # ------------------------------------------------------------------

    def _is_directory_now(self, path: str) -> bool:
        stat = self.volume.stat(path)
        return stat is not None and stat.kind == "directory"

    def _check_single_file(self, source: str, destination: str) -> None:
        stat = self.volume.stat(source)
        if stat is None:
            raise NotFoundError(source)
        if stat.kind == "directory":
            raise DirectoryError(source)
        if self._is_directory_now(destination):
            raise DirectoryError(destination)

    async def copy(self, source: str, destination: str) -> None:
        self._check_single_file(source, destination)
        self.volume.cp(source, destination)

    async def copy_all(self, source: str, destination: str) -> None:
        if await self.is_file(source):
            await self.copy(source, destination)
            return
        if not await self.is_directory(source):
            raise NotFoundError(source)
        source_path = Path.from_string(source) if source else Path()
        destination_path = Path.from_string(destination) if destination else Path()
        entries = self.volume.readdir(source)
        self.volume.mkdirp(destination)
        for entry in entries:
            source_path.push(entry.name)
            destination_path.push(entry.name)
            await self.copy_all(str(source_path), str(destination_path))
            source_path.pop()
            destination_path.pop()

    async def move(self, source: str, destination: str) -> None:
        self._check_single_file(source, destination)
        self.volume.mv(source, destination)

    async def move_all(self, source: str, destination: str) -> None:
        if not source:
            raise PermissionDeniedError(source)
        if await self.is_file(source):
            await self.move(source, destination)
            return
        if not await self.is_directory(source):
            raise NotFoundError(source)
        if destination == source:
            return
        if is_within(destination, source):
            raise DirectoryError(destination)
        if self.volume.stat(destination) is None:
            self.volume.mkdirp(Path.from_string(destination).parent or Path())
            self.volume.mv(source, destination)
            return
        await self.copy_all(source, destination)
        self.volume.rm(source, recursive=True)


class MemoryHfs(Hfs):
    """``Hfs`` backed by a fresh (or given) in-memory volume."""

    def __init__(self, *, volume: MemoryHfsVolume | None = None, log_sink: LogSink | None = None) -> None:
        super().__init__(impl=MemoryHfsImpl(volume), log_sink=log_sink)
