"""humanfs: a filesystem API for humans.

One async façade over swappable storage impls, with predictable handling of
missing entries and file/directory conflicts.
"""

__version__ = "0.1.0"

from humanfs.errors import (
    DirectoryError,
    HfsError,
    ImplAlreadySetError,
    MethodNotImplementedError,
    NotEmptyError,
    NotFoundError,
    PermissionDeniedError,
)
from humanfs.events import LogEntry, LogSink
from humanfs.hfs import Hfs
from humanfs.impls import (
    DatabaseHfs,
    DatabaseHfsImpl,
    LocalHfs,
    LocalHfsImpl,
    MemoryHfs,
    MemoryHfsImpl,
    MemoryHfsVolume,
    RetryConfig,
)
from humanfs.path import Path
from humanfs.protocol import (
    HfsImpl,
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
from humanfs.types import DirectoryEntry, Stat, WalkEntry

__all__ = [
    "DatabaseHfs",
    "DatabaseHfsImpl",
    "DirectoryEntry",
    "DirectoryError",
    "Hfs",
    "HfsError",
    "HfsImpl",
    "ImplAlreadySetError",
    "LocalHfs",
    "LocalHfsImpl",
    "LogEntry",
    "LogSink",
    "MemoryHfs",
    "MemoryHfsImpl",
    "MemoryHfsVolume",
    "MethodNotImplementedError",
    "NotEmptyError",
    "NotFoundError",
    "Path",
    "PermissionDeniedError",
    "RetryConfig",
    "Stat",
    "SupportsAppend",
    "SupportsBytes",
    "SupportsCopy",
    "SupportsCopyAll",
    "SupportsCreateDirectory",
    "SupportsDelete",
    "SupportsDeleteAll",
    "SupportsIsDirectory",
    "SupportsIsFile",
    "SupportsJson",
    "SupportsLastModified",
    "SupportsList",
    "SupportsMove",
    "SupportsMoveAll",
    "SupportsSize",
    "SupportsText",
    "SupportsWalk",
    "SupportsWrite",
    "WalkEntry",
]
