"""Path — a normalized, separator-agnostic sequence of path segments."""

from __future__ import annotations

import os
import re
from typing import TYPE_CHECKING
from urllib.parse import ParseResult, SplitResult, unquote

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

_SEPARATORS = re.compile(r"[/\\]")
_DRIVE = re.compile(r"^[a-zA-Z]:$")

URL_TYPES = (SplitResult, ParseResult)


def assert_valid_name(name: object) -> None:
    """Reject anything that cannot be a single path segment."""
    if not isinstance(name, str):
        raise TypeError("name must be a string")
    if not name:
        raise ValueError("name cannot be empty")
    if name == ".":
        raise ValueError('name cannot be "."')
    if name == "..":
        raise ValueError('name cannot be ".."')
    if "/" in name or "\\" in name:
        raise ValueError(f'name cannot contain a slash or backslash: "{name}"')


def _split(value: str) -> list[str]:
    steps = [step for step in _SEPARATORS.split(value) if step and step != "."]
    if steps and _DRIVE.match(steps[0]):
        steps = steps[1:]
    return steps


class Path:
    """Ordered, mutable list of path segments relative to a backend root.

    A Path is a working cursor: ``push()`` and ``pop()`` mutate it in place,
    so code that needs an independent cursor should call ``copy()``.  The
    empty Path addresses the backend root and stringifies to ``""``.

    Examples:
        str(Path.from_string("/a//b\\\\c.txt")) -> "a/b/c.txt"
        Path.from_string("a/b").name -> "b"
    """

    __slots__ = ("_steps",)

    def __init__(self, steps: Iterable[str] = ()) -> None:
        if isinstance(steps, str) or not hasattr(steps, "__iter__"):
            raise TypeError("steps must be an iterable of strings")
        self._steps: list[str] = list(steps)
        for step in self._steps:
            assert_valid_name(step)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def from_string(cls, path: str) -> Path:
        """Parse a ``/`` or ``\\`` separated path string."""
        if not isinstance(path, str):
            raise TypeError("path must be a string")
        if not path:
            raise ValueError("path cannot be empty")
        return cls(_split(path))

    @classmethod
    def from_url(cls, url: SplitResult | ParseResult) -> Path:
        """Parse a ``file:`` URL, ignoring its authority."""
        if not isinstance(url, URL_TYPES):
            raise TypeError("url must be a URL")
        if url.scheme != "file":
            raise TypeError(f"url must use the file: scheme, got {url.scheme or 'none'}:")
        return cls([unquote(step) for step in _split(url.path)])

    @classmethod
    def from_value(cls, value: str | os.PathLike[str] | SplitResult | ParseResult) -> Path:
        """Dispatch to ``from_string`` or ``from_url`` based on the type of *value*."""
        if isinstance(value, str):
            return cls.from_string(value)
        if isinstance(value, URL_TYPES):
            return cls.from_url(value)
        if isinstance(value, os.PathLike):
            return cls.from_string(os.fspath(value))
        raise TypeError("value must be a string or URL")

    def copy(self) -> Path:
        return Path(self._steps)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def push(self, *steps: str) -> None:
        """Append *steps* to the end of the path."""
        for step in steps:
            assert_valid_name(step)
        self._steps.extend(steps)

    def pop(self) -> str | None:
        """Remove and return the last segment, or None if the path is empty."""
        if not self._steps:
            return None
        return self._steps.pop()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def name(self) -> str | None:
        return self._steps[-1] if self._steps else None

    @name.setter
    def name(self, value: str) -> None:
        assert_valid_name(value)
        if not self._steps:
            raise ValueError("cannot set the name of an empty path")
        self._steps[-1] = value

    @property
    def parent(self) -> Path | None:
        if not self._steps:
            return None
        return Path(self._steps[:-1])

    def __iter__(self) -> Iterator[str]:
        return iter(tuple(self._steps))

    def __len__(self) -> int:
        return len(self._steps)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Path):
            return NotImplemented
        return self._steps == other._steps

    def __str__(self) -> str:
        return "/".join(self._steps)

    def __repr__(self) -> str:
        return f"Path({str(self)!r})"
