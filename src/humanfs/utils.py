"""Argument validation, path normalization, content coercion."""

from __future__ import annotations

import inspect
import os
from collections.abc import AsyncIterable, Iterable
from typing import TYPE_CHECKING, Any

from .path import URL_TYPES, Path

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from urllib.parse import ParseResult, SplitResult

    PathArg = str | os.PathLike[str] | SplitResult | ParseResult
    Contents = str | bytes | bytearray | memoryview

PATH_ERROR = "Path must be a non-empty string or URL."
CONTENTS_ERROR = "File contents must be a string, bytes, bytearray, or memoryview."


# =============================================================================
# Validation
# =============================================================================


def assert_valid_path(value: Any) -> None:
    """Fail fast on anything that is not a usable path argument.

    Raises:
        ValueError: *value* is an empty string.
        TypeError: *value* is neither a string, a path-like object, nor a URL.
    """
    if isinstance(value, str):
        if not value:
            raise ValueError(PATH_ERROR)
        return
    if isinstance(value, (os.PathLike, *URL_TYPES)):
        return
    raise TypeError(PATH_ERROR)


def assert_valid_contents(value: Any) -> None:
    if not isinstance(value, (str, bytes, bytearray, memoryview)):
        raise TypeError(CONTENTS_ERROR)


# =============================================================================
# Normalization
# =============================================================================


def to_impl_path(value: PathArg) -> str:
    """Normalize a caller's path to the root-relative string impls receive.

    Examples:
        to_impl_path("/a//b/") -> "a/b"
        to_impl_path("C:\\\\x\\\\y.txt") -> "x/y.txt"
        to_impl_path("/") -> ""
    """
    return str(Path.from_value(value))


def to_bytes(contents: Contents) -> bytes:
    """Encode text as UTF-8 and copy any byte view into an immutable buffer."""
    if isinstance(contents, str):
        return contents.encode("utf-8")
    return bytes(contents)


def join_path(parent: str, name: str) -> str:
    """Join two root-relative strings; either side may be the root ``""``."""
    if not parent:
        return name
    if not name:
        return parent
    return f"{parent}/{name}"


def parent_path(path: str) -> str:
    return path.rpartition("/")[0]


def is_within(path: str, ancestor: str) -> bool:
    """True if *path* lies strictly below *ancestor*; the root ``""`` contains everything else."""
    if not ancestor:
        return bool(path)
    return path.startswith(ancestor + "/")


# =============================================================================
# Impl call helpers
# =============================================================================


async def resolve(value: Any) -> Any:
    """Await *value* if the impl handed back an awaitable."""
    if inspect.isawaitable(value):
        return await value
    return value


async def iterate(value: Any) -> AsyncIterator[Any]:
    """Iterate whatever an impl's ``list``/``walk`` returned.

    Impls may return an async iterable, a plain iterable, or an awaitable
    resolving to either.
    """
    value = await resolve(value)
    if isinstance(value, AsyncIterable):
        async for item in value:
            yield item
    elif isinstance(value, Iterable):
        for item in value:
            yield item
    else:
        raise TypeError(f"Expected an iterable of directory entries, got {type(value).__name__}")
