"""LocalHfsImpl — direct disk access confined to a root directory."""

from __future__ import annotations

import asyncio
import contextlib
import errno
import logging
import os
import shutil
import stat as stat_module
import tempfile
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tenacity

from humanfs.errors import DirectoryError, NotEmptyError, NotFoundError, PermissionDeniedError
from humanfs.hfs import Hfs
from humanfs.types import DirectoryEntry
from humanfs.utils import is_within, parent_path

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from humanfs.events import LogSink

logger = logging.getLogger(__name__)

# Transient descriptor exhaustion; every other errno fails fast.
RETRY_ERRNOS = frozenset({errno.EMFILE, errno.ENFILE})


@dataclass(frozen=True)
class RetryConfig:
    """How hard to retry when the process or system runs out of file handles.

    Attributes:
        max_attempts: Total tries, the first one included.
        initial_wait: Seconds to wait before the second try; doubles after.
        max_delay: Upper bound in seconds on any single wait.
    """

    max_attempts: int = 10
    initial_wait: float = 0.01
    max_delay: float = 1.0


def _is_transient(exc: BaseException) -> bool:
    return isinstance(exc, OSError) and exc.errno in RETRY_ERRNOS


def _translate(exc: OSError, target: str) -> Exception | None:
    """Map an ``OSError`` onto the humanfs taxonomy, or None to re-raise as is."""
    if isinstance(exc, (NotFoundError, DirectoryError, PermissionDeniedError)):
        return None
    if isinstance(exc, (FileNotFoundError, NotADirectoryError)):
        return NotFoundError(target)
    if exc.errno == errno.ENOTEMPTY:
        return NotEmptyError(target)
    if isinstance(exc, (IsADirectoryError, FileExistsError)):
        return DirectoryError(target)
    if isinstance(exc, PermissionError):
        return PermissionDeniedError(target)
    return None


# =============================================================================
# Blocking helpers (run in a worker thread)
# =============================================================================


def _write_atomic(target: Path, contents: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    if target.is_dir():
        raise IsADirectoryError(errno.EISDIR, "Is a directory", str(target))
    fd, tmp_path = tempfile.mkstemp(dir=str(target.parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(contents)
        Path(tmp_path).replace(target)
    except Exception:
        with contextlib.suppress(OSError):
            Path(tmp_path).unlink()
        raise


def _append(target: Path, contents: bytes) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("ab") as f:
        f.write(contents)


def _delete(target: Path) -> None:
    if target.is_dir() and not target.is_symlink():
        try:
            target.rmdir()
        except FileExistsError as exc:
            # Some platforms report a non-empty directory as EEXIST.
            raise OSError(errno.ENOTEMPTY, os.strerror(errno.ENOTEMPTY), str(target)) from exc
    else:
        target.unlink()


def _delete_all(target: Path) -> None:
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    else:
        target.unlink()


def _scan(target: Path) -> list[DirectoryEntry]:
    with os.scandir(target) as it:
        entries = [
            DirectoryEntry(
                name=entry.name,
                is_file=entry.is_file(),
                is_directory=entry.is_dir(),
                is_symlink=entry.is_symlink(),
            )
            for entry in it
        ]
    return sorted(entries, key=lambda entry: entry.name)


def _move_tree(source: Path, destination: Path) -> None:
    if destination.exists():
        shutil.copytree(source, destination, dirs_exist_ok=True)
        shutil.rmtree(source)
        return
    destination.parent.mkdir(parents=True, exist_ok=True)
    shutil.move(str(source), str(destination))


class LocalHfsImpl:
    """Impl over the host filesystem, rooted at *root*.

    Security: ``_resolve()`` keeps every path inside *root*.  The full path
    is resolved through symlinks and must stay under the root.  Operations
    on the link itself (delete, move) resolve only the parent directory, so
    deleting a symlink removes the link, not its target.
    """

    def __init__(self, root: str | os.PathLike[str], *, retry: RetryConfig | None = None) -> None:
        self.root = Path(root).resolve()
        self.retry = retry if retry is not None else RetryConfig()

        if not self.root.exists():
            raise FileNotFoundError(f"Root directory does not exist: {self.root}")
        if not self.root.is_dir():
            raise NotADirectoryError(f"Root path is not a directory: {self.root}")

        self._retrying = tenacity.retry(
            stop=tenacity.stop_after_attempt(self.retry.max_attempts),
            wait=tenacity.wait_exponential(
                multiplier=self.retry.initial_wait, max=self.retry.max_delay
            ),
            retry=tenacity.retry_if_exception(_is_transient),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    # =========================================================================
    # Path Resolution & Security
    # =========================================================================

    def _resolve(self, path: str, *, follow: bool = True) -> Path:
        """Map *path* under the root; *follow* also checks where a final symlink points."""
        if not path:
            return self.root
        candidate = self.root.joinpath(*path.split("/"))
        real = candidate.resolve() if follow else candidate.parent.resolve()
        try:
            real.relative_to(self.root)
        except ValueError:
            raise PermissionDeniedError(path) from None
        return candidate

    # =========================================================================
    # Thread + retry plumbing
    # =========================================================================

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run blocking *func* in a worker thread, retrying descriptor exhaustion."""

        async def attempt() -> Any:
            return await asyncio.to_thread(func, *args)

        return await self._retrying(attempt)()

    async def _call(self, path: str, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await self._run(func, *args)
        except OSError as exc:
            mapped = _translate(exc, path)
            if mapped is None:
                raise
            raise mapped from exc

    async def _stat(self, path: str) -> os.stat_result:
        return await self._call(path, os.stat, self._resolve(path))

    # =========================================================================
    # Reads
    # =========================================================================

    async def bytes(self, path: str) -> bytes:
        return await self._call(path, self._resolve(path).read_bytes)

    async def is_file(self, path: str) -> bool:
        return stat_module.S_ISREG((await self._stat(path)).st_mode)

    async def is_directory(self, path: str) -> bool:
        return stat_module.S_ISDIR((await self._stat(path)).st_mode)

    async def size(self, path: str) -> int | None:
        result = await self._stat(path)
        if not stat_module.S_ISREG(result.st_mode):
            return None
        return result.st_size

    async def last_modified(self, path: str) -> datetime:
        result = await self._stat(path)
        return datetime.fromtimestamp(result.st_mtime, tz=UTC)

    async def list(self, path: str) -> AsyncIterator[DirectoryEntry]:
        for entry in await self._call(path, _scan, self._resolve(path)):
            yield entry

    # =========================================================================
    # Writes
    # =========================================================================

    async def write(self, path: str, contents: bytes) -> None:
        """Write atomically: a temp file in the target directory, then replace."""
        await self._call(path, _write_atomic, self._resolve(path), contents)

    async def append(self, path: str, contents: bytes) -> None:
        await self._call(path, _append, self._resolve(path), contents)

    async def create_directory(self, path: str) -> None:
        target = self._resolve(path)
        await self._call(path, lambda: target.mkdir(parents=True, exist_ok=True))

    async def delete(self, path: str) -> bool:
        if not path:
            raise PermissionDeniedError(path)
        await self._call(path, _delete, self._resolve(path, follow=False))
        return True

    async def delete_all(self, path: str) -> bool:
        if not path:
            raise PermissionDeniedError(path)
        await self._call(path, _delete_all, self._resolve(path, follow=False))
        return True

    # =========================================================================
    # Copy / move
    # =========================================================================

    async def _check_single_file(self, source: str, destination: str) -> None:
        if await self._exists_as(source, stat_module.S_ISDIR):
            raise DirectoryError(source)
        if not await self._exists_as(source, stat_module.S_ISREG):
            raise NotFoundError(source)
        if await self._exists_as(destination, stat_module.S_ISDIR):
            raise DirectoryError(destination)
        parent = parent_path(destination)
        if parent and not await self._exists_as(parent, stat_module.S_ISDIR):
            raise NotFoundError(destination)

    async def _exists_as(self, path: str, check: Callable[[int], bool]) -> bool:
        try:
            return check((await self._stat(path)).st_mode)
        except NotFoundError:
            return False

    async def copy(self, source: str, destination: str) -> None:
        await self._check_single_file(source, destination)
        await self._call(destination, shutil.copy2, self._resolve(source), self._resolve(destination))

    async def copy_all(self, source: str, destination: str) -> None:
        if await self._exists_as(source, stat_module.S_ISREG):
            await self.copy(source, destination)
            return
        if not await self._exists_as(source, stat_module.S_ISDIR):
            raise NotFoundError(source)
        await self._call(
            destination,
            lambda: shutil.copytree(
                self._resolve(source), self._resolve(destination), dirs_exist_ok=True
            ),
        )

    async def move(self, source: str, destination: str) -> None:
        await self._check_single_file(source, destination)
        await self._call(
            destination,
            shutil.move,
            str(self._resolve(source, follow=False)),
            str(self._resolve(destination, follow=False)),
        )

    async def move_all(self, source: str, destination: str) -> None:
        if not source:
            raise PermissionDeniedError(source)
        if await self._exists_as(source, stat_module.S_ISREG):
            await self.move(source, destination)
            return
        if not await self._exists_as(source, stat_module.S_ISDIR):
            raise NotFoundError(source)
        if destination == source:
            return
        if is_within(destination, source):
            raise DirectoryError(destination)
        await self._call(destination, _move_tree, self._resolve(source), self._resolve(destination))


class LocalHfs(Hfs):
    """``Hfs`` over the host filesystem, rooted at *root*."""

    def __init__(
        self,
        root: str | os.PathLike[str],
        *,
        retry: RetryConfig | None = None,
        log_sink: LogSink | None = None,
    ) -> None:
        super().__init__(impl=LocalHfsImpl(root, retry=retry), log_sink=log_sink)
