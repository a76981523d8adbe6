"""Bundled impls — in-memory, local disk, and SQL database."""

from humanfs.impls.database import DatabaseHfs, DatabaseHfsImpl
from humanfs.impls.local import LocalHfs, LocalHfsImpl, RetryConfig
from humanfs.impls.memory import MemoryHfs, MemoryHfsImpl
from humanfs.impls.memory_volume import DirectoryNode, FileNode, MemoryHfsVolume

__all__ = [
    "DatabaseHfs",
    "DatabaseHfsImpl",
    "DirectoryNode",
    "FileNode",
    "LocalHfs",
    "LocalHfsImpl",
    "MemoryHfs",
    "MemoryHfsImpl",
    "MemoryHfsVolume",
    "RetryConfig",
]
