"""Custom exception hierarchy for the humanfs filesystem layer.

Filesystem-condition errors also derive from the matching builtin ``OSError``
subclass, so ``except FileNotFoundError`` keeps working for callers that never
heard of humanfs.
"""

from __future__ import annotations

import errno


class HfsError(Exception):
    """Base exception for all humanfs errors."""


class _FileSystemConditionError(HfsError):
    """Base for errors that describe the state of an entry on a volume."""

    code: str = ""
    errno_value: int = 0
    description: str = ""

    def __init__(self, target: str) -> None:
        super().__init__(f"{self.code}: {self.description}, {target}")
        self.errno = self.errno_value
        self.target = target

    def __str__(self) -> str:
        return str(self.args[0])


class NotFoundError(_FileSystemConditionError, FileNotFoundError):
    """Raised when a file or directory that must exist does not."""

    code = "ENOENT"
    errno_value = errno.ENOENT
    description = "No such file or directory"


class DirectoryError(_FileSystemConditionError, IsADirectoryError):
    """Raised when an operation is invalid for a directory (or for a file where a directory sits)."""

    code = "EISDIR"
    errno_value = errno.EISDIR
    description = "Illegal operation on a directory"


class NotEmptyError(DirectoryError):
    """Raised when a non-recursive delete targets a directory that has entries."""

    code = "ENOTEMPTY"
    errno_value = errno.ENOTEMPTY
    description = "Directory not empty"


class PermissionDeniedError(_FileSystemConditionError, PermissionError):
    """Raised when a backend refuses an operation, e.g. a path escaping its root."""

    code = "EPERM"
    errno_value = errno.EPERM
    description = "Operation not permitted"


class MethodNotImplementedError(HfsError, NotImplementedError):
    """Raised when the active impl lacks a method and no composed fallback exists."""

    def __init__(self, method_name: str, impl_name: str) -> None:
        super().__init__(f'Method "{method_name}" does not exist on impl {impl_name}.')
        self.method_name = method_name
        self.impl_name = impl_name


class ImplAlreadySetError(HfsError):
    """Raised when ``set_impl()`` is called while a replacement impl is active."""

    def __init__(self) -> None:
        super().__init__("Implementation already set.")


def is_not_found(exc: BaseException) -> bool:
    """Return True if *exc* signals a missing entry (and nothing else)."""
    return isinstance(exc, FileNotFoundError)
