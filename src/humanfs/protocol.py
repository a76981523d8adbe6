"""Impl protocols — runtime-checkable capability interfaces.

Split into one protocol per operation so that a backend can implement any
subset.  ``HfsImpl`` bundles the minimal core; a backend that satisfies it
gets the whole ``Hfs`` surface (except ``last_modified``) through composed
fallbacks in the façade.  Every other protocol is an opt-in capability the
façade prefers over composition when present.

Paths arrive as root-relative strings produced by ``str(Path)``; the empty
string addresses the root.  Contents arrive as ``bytes``.  Methods may be
coroutines or plain functions.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Awaitable, Iterable
    from datetime import datetime

    from .types import DirectoryEntry, WalkEntry

    ListResult = AsyncIterable[DirectoryEntry] | Iterable[DirectoryEntry] | Awaitable[Any]


# ----------------------------------------------------------------------
# Read
# ----------------------------------------------------------------------


@runtime_checkable
class SupportsBytes(Protocol):
    """Raw file contents, ``None`` when the file does not exist."""

    async def bytes(self, path: str) -> bytes | None: ...


@runtime_checkable
class SupportsText(Protocol):
    """Opt-in: native UTF-8 text reads."""

    async def text(self, path: str) -> str | None: ...


@runtime_checkable
class SupportsJson(Protocol):
    """Opt-in: native JSON reads."""

    async def json(self, path: str) -> Any: ...


@runtime_checkable
class SupportsIsFile(Protocol):
    async def is_file(self, path: str) -> bool: ...


@runtime_checkable
class SupportsIsDirectory(Protocol):
    async def is_directory(self, path: str) -> bool: ...


@runtime_checkable
class SupportsList(Protocol):
    """Immediate children of a directory; raises ``FileNotFoundError`` if absent."""

    def list(self, path: str) -> ListResult: ...


@runtime_checkable
class SupportsWalk(Protocol):
    """Opt-in: native recursive traversal yielding ``WalkEntry`` objects."""

    def walk(self, path: str) -> AsyncIterable[WalkEntry] | Iterable[WalkEntry]: ...


@runtime_checkable
class SupportsSize(Protocol):
    async def size(self, path: str) -> int | None: ...


@runtime_checkable
class SupportsLastModified(Protocol):
    async def last_modified(self, path: str) -> datetime | None: ...


# ----------------------------------------------------------------------
# Write
# ----------------------------------------------------------------------


@runtime_checkable
class SupportsWrite(Protocol):
    """Replace file contents, creating missing ancestor directories."""

    async def write(self, path: str, contents: bytes) -> None: ...


@runtime_checkable
class SupportsAppend(Protocol):
    """Opt-in: native append."""

    async def append(self, path: str, contents: bytes) -> None: ...


@runtime_checkable
class SupportsCreateDirectory(Protocol):
    """Recursive, idempotent directory creation."""

    async def create_directory(self, path: str) -> None: ...


@runtime_checkable
class SupportsDelete(Protocol):
    """Delete a file or empty directory; ``False`` or ``FileNotFoundError`` when absent."""

    async def delete(self, path: str) -> bool | None: ...


@runtime_checkable
class SupportsDeleteAll(Protocol):
    """Opt-in: native recursive delete."""

    async def delete_all(self, path: str) -> bool | None: ...


@runtime_checkable
class SupportsCopy(Protocol):
    """Opt-in: native single-file copy."""

    async def copy(self, source: str, destination: str) -> None: ...


@runtime_checkable
class SupportsCopyAll(Protocol):
    """Opt-in: native recursive copy."""

    async def copy_all(self, source: str, destination: str) -> None: ...


@runtime_checkable
class SupportsMove(Protocol):
    """Opt-in: native single-file move (e.g. a rename)."""

    async def move(self, source: str, destination: str) -> None: ...


@runtime_checkable
class SupportsMoveAll(Protocol):
    """Opt-in: native recursive move."""

    async def move_all(self, source: str, destination: str) -> None: ...


# ----------------------------------------------------------------------
# Core
# ----------------------------------------------------------------------


@runtime_checkable
class HfsImpl(
    SupportsBytes,
    SupportsWrite,
    SupportsIsFile,
    SupportsIsDirectory,
    SupportsCreateDirectory,
    SupportsDelete,
    SupportsList,
    Protocol,
):
    """Minimal core every complete backend implements."""
