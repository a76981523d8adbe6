"""Hfs — the filesystem façade over a swappable impl."""

from __future__ import annotations

import json as jsonlib
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from .errors import (
    DirectoryError,
    ImplAlreadySetError,
    MethodNotImplementedError,
    NotFoundError,
    PermissionDeniedError,
    is_not_found,
)
from .events import LogEntry, LogSink
from .path import Path
from .protocol import (
    SupportsAppend,
    SupportsBytes,
    SupportsCopy,
    SupportsCopyAll,
    SupportsCreateDirectory,
    SupportsDelete,
    SupportsDeleteAll,
    SupportsIsDirectory,
    SupportsIsFile,
    SupportsJson,
    SupportsLastModified,
    SupportsList,
    SupportsMove,
    SupportsMoveAll,
    SupportsSize,
    SupportsText,
    SupportsWalk,
    SupportsWrite,
)
from .types import WalkEntry, to_directory_entry, to_walk_entry
from .utils import (
    assert_valid_contents,
    assert_valid_path,
    is_within,
    iterate,
    join_path,
    parent_path,
    resolve,
    to_bytes,
    to_impl_path,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable, Iterator
    from datetime import datetime

    from .types import DirectoryEntry
    from .utils import Contents, PathArg

    EntryFilter = Callable[[WalkEntry], Any]

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Hfs:
    """Uniform async filesystem API over any impl.

    Every public method validates its arguments, normalizes paths through
    ``Path``, then either calls the matching capability on the active impl
    or composes the operation from the ``HfsImpl`` core.  Absence is
    reported as ``None``/``False`` by the tolerant operations; every other
    backend error propagates unchanged.

    Each call that passes validation produces exactly one ``LogEntry``,
    delivered to the instance's ``LogSink`` and to any named log opened
    with ``log_start()``.

    Usage::

        hfs = MemoryHfs()
        await hfs.write("notes/today.txt", "Hello")
        async for entry in hfs.walk("notes"):
            print(entry.path)
    """

    def __init__(self, *, impl: Any, log_sink: LogSink | None = None) -> None:
        if impl is None:
            raise TypeError("impl is required.")
        self._base_impl = impl
        self._impl = impl
        self._log_sink = log_sink if log_sink is not None else LogSink()
        self._logs: dict[str, list[LogEntry]] = {}

    @property
    def log_sink(self) -> LogSink:
        return self._log_sink

    # ------------------------------------------------------------------
    # Impl management
    # ------------------------------------------------------------------

    def is_base_impl(self) -> bool:
        return self._impl is self._base_impl

    def set_impl(self, impl: Any) -> None:
        """Swap the active impl; only one swap may be active at a time.

        Raises:
            TypeError: *impl* is None.
            ImplAlreadySetError: a non-base impl is already active.
        """
        if impl is None:
            raise TypeError("impl is required.")
        with self._record("set_impl", (impl,)):
            if not self.is_base_impl():
                raise ImplAlreadySetError
            self._impl = impl

    def reset_impl(self) -> None:
        """Restore the impl given at construction."""
        with self._record("reset_impl", ()):
            self._impl = self._base_impl

    # ------------------------------------------------------------------
    # Named logs
    # ------------------------------------------------------------------

    def log_start(self, name: str) -> None:
        """Start collecting log entries under *name*."""
        if not isinstance(name, str) or not name:
            raise TypeError("Log name must be a non-empty string.")
        if name in self._logs:
            raise ValueError(f'Log "{name}" already exists.')
        self._logs[name] = []

    def log_end(self, name: str) -> list[LogEntry]:
        """Stop collecting under *name* and return what was collected."""
        if name not in self._logs:
            raise KeyError(f'Log "{name}" does not exist.')
        return self._logs.pop(name)

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    def _emit(self, entry: LogEntry) -> None:
        if entry.success:
            logger.debug("%s%r ok in %.6fs", entry.method_name, entry.args, entry.duration)
        else:
            logger.debug(
                "%s%r failed in %.6fs: %r", entry.method_name, entry.args, entry.duration, entry.error
            )
        for entries in self._logs.values():
            entries.append(entry)
        self._log_sink.emit(entry)

    @contextmanager
    def _record(self, method_name: str, args: tuple[Any, ...]) -> Iterator[None]:
        start = time.perf_counter()
        error: BaseException | None = None
        try:
            yield
        except GeneratorExit:
            # Consumer closed an iterator early; nothing failed.
            raise
        except BaseException as exc:
            error = exc
            raise
        finally:
            self._emit(
                LogEntry(
                    method_name=method_name,
                    args=args,
                    duration=time.perf_counter() - start,
                    success=error is None,
                    error=error,
                )
            )

    async def _iterate_logged(
        self, method_name: str, args: tuple[Any, ...], source: AsyncIterator[T]
    ) -> AsyncIterator[T]:
        with self._record(method_name, args):
            async for item in source:
                yield item

    # ------------------------------------------------------------------
    # Capability discovery
    # ------------------------------------------------------------------

    def _get_capability(self, protocol: type[T]) -> T | None:
        if isinstance(self._impl, protocol):
            return self._impl
        return None

    def _require(self, protocol: type[T], method_name: str) -> T:
        cap = self._get_capability(protocol)
        if cap is None:
            raise MethodNotImplementedError(method_name, type(self._impl).__name__)
        return cap

    @staticmethod
    async def _call(func: Callable[..., Any], *args: Any) -> Any:
        return await resolve(func(*args))

    @staticmethod
    async def _call_or(default: Any, func: Callable[..., Any], *args: Any) -> Any:
        """Call an impl method, mapping "not found" to *default*."""
        try:
            return await resolve(func(*args))
        except Exception as exc:
            if is_not_found(exc):
                return default
            raise

    # ------------------------------------------------------------------
    # Primitives (unlogged; paths already normalized)
    # ------------------------------------------------------------------

    async def _bytes(self, path: str) -> bytes | None:
        impl = self._require(SupportsBytes, "bytes")
        data = await self._call_or(None, impl.bytes, path)
        return None if data is None else bytes(data)

    async def _text(self, path: str) -> str | None:
        cap = self._get_capability(SupportsText)
        if cap is not None:
            return await self._call_or(None, cap.text, path)
        data = await self._bytes(path)
        return None if data is None else data.decode("utf-8")

    async def _json(self, path: str) -> Any:
        cap = self._get_capability(SupportsJson)
        if cap is not None:
            return await self._call_or(None, cap.json, path)
        text = await self._text(path)
        return None if text is None else jsonlib.loads(text)

    async def _write(self, path: str, data: bytes) -> None:
        impl = self._require(SupportsWrite, "write")
        await self._call(impl.write, path, data)

    async def _append(self, path: str, data: bytes) -> None:
        cap = self._get_capability(SupportsAppend)
        if cap is not None:
            await self._call(cap.append, path, data)
            return
        if await self._is_directory(path):
            raise DirectoryError(path)
        existing = await self._bytes(path)
        await self._write(path, (existing or b"") + data)

    async def _is_file(self, path: str) -> bool:
        impl = self._require(SupportsIsFile, "is_file")
        return bool(await self._call_or(False, impl.is_file, path))

    async def _is_directory(self, path: str) -> bool:
        impl = self._require(SupportsIsDirectory, "is_directory")
        return bool(await self._call_or(False, impl.is_directory, path))

    async def _create_directory(self, path: str) -> None:
        impl = self._require(SupportsCreateDirectory, "create_directory")
        await self._call(impl.create_directory, path)

    async def _delete(self, path: str) -> bool:
        impl = self._require(SupportsDelete, "delete")
        result = await self._call_or(False, impl.delete, path)
        return True if result is None else bool(result)

    async def _delete_all(self, path: str) -> bool:
        if not path:
            raise PermissionDeniedError(path)
        cap = self._get_capability(SupportsDeleteAll)
        if cap is not None:
            result = await self._call_or(False, cap.delete_all, path)
            return True if result is None else bool(result)
        if await self._is_file(path):
            return await self._delete(path)
        if not await self._is_directory(path):
            return False
        await self._delete_children(path)
        return await self._delete(path)

    async def _delete_children(self, path: str) -> None:
        # Snapshot first: deleting while the impl is still listing is undefined.
        entries = [entry async for entry in self._list(path)]
        for entry in entries:
            child = join_path(path, entry.name)
            if entry.is_directory:
                await self._delete_children(child)
            await self._delete(child)

    async def _list(self, path: str) -> AsyncIterator[DirectoryEntry]:
        impl = self._require(SupportsList, "list")
        async for item in iterate(impl.list(path)):
            yield to_directory_entry(item)

    async def _size(self, path: str) -> int | None:
        cap = self._get_capability(SupportsSize)
        if cap is not None:
            return await self._call_or(None, cap.size, path)
        if not await self._is_file(path):
            return None
        data = await self._bytes(path)
        return None if data is None else len(data)

    async def _last_modified(self, path: str) -> datetime | None:
        impl = self._require(SupportsLastModified, "last_modified")
        return await self._call_or(None, impl.last_modified, path)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    async def _walk(
        self,
        path: str,
        directory_filter: EntryFilter | None,
        entry_filter: EntryFilter | None,
    ) -> AsyncIterator[WalkEntry]:
        cap = self._get_capability(SupportsWalk)
        if cap is None:
            async for entry in self._walk_listing(path, Path(), 1, directory_filter, entry_filter):
                yield entry
            return

        pruned: list[str] = []
        async for item in iterate(cap.walk(path)):
            entry = to_walk_entry(item)
            if any(entry.path.startswith(prefix) for prefix in pruned):
                continue
            if entry_filter is None or await resolve(entry_filter(entry)):
                yield entry
            if (
                entry.is_directory
                and directory_filter is not None
                and not await resolve(directory_filter(entry))
            ):
                pruned.append(entry.path + "/")

    async def _walk_listing(
        self,
        root: str,
        relative: Path,
        depth: int,
        directory_filter: EntryFilter | None,
        entry_filter: EntryFilter | None,
    ) -> AsyncIterator[WalkEntry]:
        """Pre-order depth-first traversal built from ``list`` calls.

        *relative* is a cursor below *root*, pushed and popped as the
        traversal descends.
        """
        async for item in self._list(join_path(root, str(relative))):
            relative.push(item.name)
            entry = WalkEntry(
                name=item.name,
                is_file=item.is_file,
                is_directory=item.is_directory,
                is_symlink=item.is_symlink,
                path=str(relative),
                depth=depth,
            )
            if entry_filter is None or await resolve(entry_filter(entry)):
                yield entry
            if entry.is_directory and (
                directory_filter is None or await resolve(directory_filter(entry))
            ):
                async for child in self._walk_listing(
                    root, relative, depth + 1, directory_filter, entry_filter
                ):
                    yield child
            relative.pop()

    # ------------------------------------------------------------------
    # Copy / move
    # ------------------------------------------------------------------

    async def _check_transfer(self, source: str, destination: str) -> None:
        """Raise for the single-file copy/move conflicts, source first."""
        if await self._is_directory(source):
            raise DirectoryError(source)
        if not await self._is_file(source):
            raise NotFoundError(source)
        if await self._is_directory(destination):
            raise DirectoryError(destination)
        parent = parent_path(destination)
        if parent and not await self._is_directory(parent):
            raise NotFoundError(destination)

    async def _copy(self, source: str, destination: str) -> None:
        cap = self._get_capability(SupportsCopy)
        if cap is not None:
            await self._call(cap.copy, source, destination)
            return
        await self._check_transfer(source, destination)
        data = await self._bytes(source)
        if data is None:
            raise NotFoundError(source)
        await self._write(destination, data)

    async def _copy_all(self, source: str, destination: str) -> None:
        cap = self._get_capability(SupportsCopyAll)
        if cap is not None:
            await self._call(cap.copy_all, source, destination)
            return
        if await self._is_file(source):
            await self._copy(source, destination)
            return
        if not await self._is_directory(source):
            raise NotFoundError(source)
        # List before creating the destination so copying into a subdirectory
        # of the source never sees its own output.
        entries = [entry async for entry in self._list(source)]
        await self._create_directory(destination)
        for entry in entries:
            await self._copy_all(join_path(source, entry.name), join_path(destination, entry.name))

    async def _move(self, source: str, destination: str) -> None:
        cap = self._get_capability(SupportsMove)
        if cap is not None:
            await self._call(cap.move, source, destination)
            return
        if source == destination:
            await self._check_transfer(source, destination)
            return
        await self._copy(source, destination)
        await self._delete(source)

    async def _move_all(self, source: str, destination: str) -> None:
        if not source:
            raise PermissionDeniedError(source)
        cap = self._get_capability(SupportsMoveAll)
        if cap is not None:
            await self._call(cap.move_all, source, destination)
            return
        if await self._is_file(source):
            await self._move(source, destination)
            return
        if not await self._is_directory(source):
            raise NotFoundError(source)
        if destination == source:
            return
        if is_within(destination, source):
            raise DirectoryError(destination)
        await self._copy_all(source, destination)
        # Only reached once the whole tree has been copied.
        await self._delete_all(source)

    # ------------------------------------------------------------------
    # Public API: reads
    # ------------------------------------------------------------------

    async def text(self, path: PathArg) -> str | None:
        """Read a file as UTF-8 text, or None if it does not exist."""
        assert_valid_path(path)
        target = to_impl_path(path)
        with self._record("text", (path,)):
            return await self._text(target)

    async def json(self, path: PathArg) -> Any:
        """Read and parse a JSON file, or None if it does not exist.

        Raises:
            json.JSONDecodeError: the file is not valid JSON.
        """
        assert_valid_path(path)
        target = to_impl_path(path)
        with self._record("json", (path,)):
            return await self._json(target)

    async def bytes(self, path: PathArg) -> bytes | None:
        """Read a file's raw contents, or None if it does not exist."""
        assert_valid_path(path)
        target = to_impl_path(path)
        with self._record("bytes", (path,)):
            return await self._bytes(target)

    async def is_file(self, path: PathArg) -> bool:
        assert_valid_path(path)
        target = to_impl_path(path)
        with self._record("is_file", (path,)):
            return await self._is_file(target)

    async def is_directory(self, path: PathArg) -> bool:
        assert_valid_path(path)
        target = to_impl_path(path)
        with self._record("is_directory", (path,)):
            return await self._is_directory(target)

    async def size(self, path: PathArg) -> int | None:
        """Size of a file in bytes; None if absent or a directory."""
        assert_valid_path(path)
        target = to_impl_path(path)
        with self._record("size", (path,)):
            return await self._size(target)

    async def last_modified(self, path: PathArg) -> datetime | None:
        """Modification time of a file or directory, or None if absent.

        There is no composed fallback; impls without the capability raise
        ``MethodNotImplementedError``.
        """
        assert_valid_path(path)
        target = to_impl_path(path)
        with self._record("last_modified", (path,)):
            return await self._last_modified(target)

    def list(self, path: PathArg) -> AsyncIterator[DirectoryEntry]:
        """Iterate the immediate children of a directory.

        Arguments are validated eagerly; the impl is only called once
        iteration starts.  Wrap in ``contextlib.aclosing`` when breaking out
        early so the call is logged promptly.
        """
        assert_valid_path(path)
        target = to_impl_path(path)
        return self._iterate_logged("list", (path,), self._list(target))

    def walk(
        self,
        path: PathArg,
        *,
        directory_filter: EntryFilter | None = None,
        entry_filter: EntryFilter | None = None,
    ) -> AsyncIterator[WalkEntry]:
        """Iterate every descendant of a directory, pre-order, depth first.

        Args:
            path: Directory to walk.
            directory_filter: Called with each directory entry; a falsy
                result skips that directory's descendants.
            entry_filter: Called with each entry; a falsy result keeps the
                entry out of the results without affecting descent.

        Both filters may be plain or async callables.
        """
        assert_valid_path(path)
        for candidate in (directory_filter, entry_filter):
            if candidate is not None and not callable(candidate):
                raise TypeError("Walk filters must be callable.")
        target = to_impl_path(path)
        return self._iterate_logged(
            "walk", (path,), self._walk(target, directory_filter, entry_filter)
        )

    # ------------------------------------------------------------------
    # Public API: writes
    # ------------------------------------------------------------------

    async def write(self, path: PathArg, contents: Contents) -> None:
        """Replace a file's contents, creating missing parent directories."""
        assert_valid_path(path)
        assert_valid_contents(contents)
        target = to_impl_path(path)
        with self._record("write", (path, contents)):
            await self._write(target, to_bytes(contents))

    async def append(self, path: PathArg, contents: Contents) -> None:
        """Append to a file, creating it if it does not exist.

        Raises:
            DirectoryError: *path* is a directory.
        """
        assert_valid_path(path)
        assert_valid_contents(contents)
        target = to_impl_path(path)
        with self._record("append", (path, contents)):
            await self._append(target, to_bytes(contents))

    async def create_directory(self, path: PathArg) -> None:
        """Create a directory and any missing parents; no-op if it exists."""
        assert_valid_path(path)
        target = to_impl_path(path)
        with self._record("create_directory", (path,)):
            await self._create_directory(target)

    async def delete(self, path: PathArg) -> bool:
        """Delete a file or empty directory; False if nothing was there.

        Raises:
            NotEmptyError: *path* is a directory with children.
        """
        assert_valid_path(path)
        target = to_impl_path(path)
        with self._record("delete", (path,)):
            return await self._delete(target)

    async def delete_all(self, path: PathArg) -> bool:
        """Delete a file or a whole directory tree; False if nothing was there.

        Raises:
            PermissionDeniedError: *path* is the root.
        """
        assert_valid_path(path)
        target = to_impl_path(path)
        with self._record("delete_all", (path,)):
            return await self._delete_all(target)

    async def copy(self, source: PathArg, destination: PathArg) -> None:
        """Copy a single file.

        Raises:
            DirectoryError: *source* is a directory, or *destination* is an
                existing directory.
            NotFoundError: *source* does not exist, or the parent of
                *destination* does not exist.
        """
        assert_valid_path(source)
        assert_valid_path(destination)
        src, dst = to_impl_path(source), to_impl_path(destination)
        with self._record("copy", (source, destination)):
            await self._copy(src, dst)

    async def copy_all(self, source: PathArg, destination: PathArg) -> None:
        """Copy a file or a directory tree, creating *destination* as needed."""
        assert_valid_path(source)
        assert_valid_path(destination)
        src, dst = to_impl_path(source), to_impl_path(destination)
        with self._record("copy_all", (source, destination)):
            await self._copy_all(src, dst)

    async def move(self, source: PathArg, destination: PathArg) -> None:
        """Move a single file; same conflict rules as ``copy``.

        Moving a file onto itself is a no-op.
        """
        assert_valid_path(source)
        assert_valid_path(destination)
        src, dst = to_impl_path(source), to_impl_path(destination)
        with self._record("move", (source, destination)):
            await self._move(src, dst)

    async def move_all(self, source: PathArg, destination: PathArg) -> None:
        """Move a file or a directory tree.

        The source tree is removed only after it has been copied in full, so
        a failure or cancellation part way leaves it intact.

        Raises:
            PermissionDeniedError: *source* is the root.
            DirectoryError: *destination* lies inside the *source* tree.
        """
        assert_valid_path(source)
        assert_valid_path(destination)
        src, dst = to_impl_path(source), to_impl_path(destination)
        with self._record("move_all", (source, destination)):
            await self._move_all(src, dst)
