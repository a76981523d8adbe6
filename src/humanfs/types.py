"""Entry types: DirectoryEntry, WalkEntry, Stat."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from datetime import datetime


@dataclass
class DirectoryEntry:
    """One immediate child of a listed directory."""

    name: str
    is_file: bool
    is_directory: bool
    is_symlink: bool = False


@dataclass
class WalkEntry(DirectoryEntry):
    """A descendant found by ``walk()``.

    Attributes:
        path: Location relative to the walked directory, ``/`` separated.
        depth: 1 for direct children of the walked directory.
    """

    path: str = ""
    depth: int = 1


@dataclass
class Stat:
    """Kind, size and modification time of a single entry."""

    kind: Literal["file", "directory"]
    size: int
    last_modified: datetime


_ENTRY_KEYS = {
    "name": ("name",),
    "is_file": ("is_file", "isFile"),
    "is_directory": ("is_directory", "isDirectory"),
    "is_symlink": ("is_symlink", "isSymlink"),
}


def _lookup(item: Any, keys: tuple[str, ...], default: Any = None) -> Any:
    for key in keys:
        if isinstance(item, Mapping):
            if key in item:
                return item[key]
        elif hasattr(item, key):
            value = getattr(item, key)
            # os.DirEntry exposes is_file() and friends as methods
            return value() if callable(value) else value
    return default


def to_directory_entry(item: Any) -> DirectoryEntry:
    """Coerce an impl-provided list item into a ``DirectoryEntry``.

    Accepts ``DirectoryEntry`` instances, any object with matching attributes,
    and mappings keyed either ``is_file`` or ``isFile`` style.
    """
    if type(item) is DirectoryEntry:
        return item
    name = _lookup(item, _ENTRY_KEYS["name"])
    if not isinstance(name, str) or not name:
        raise TypeError(f"Directory entry has no name: {item!r}")
    return DirectoryEntry(
        name=name,
        is_file=bool(_lookup(item, _ENTRY_KEYS["is_file"], False)),
        is_directory=bool(_lookup(item, _ENTRY_KEYS["is_directory"], False)),
        is_symlink=bool(_lookup(item, _ENTRY_KEYS["is_symlink"], False)),
    )


def to_walk_entry(item: Any) -> WalkEntry:
    """Coerce an impl-provided walk item into a ``WalkEntry``.

    Missing ``path`` defaults to the entry name; missing ``depth`` is derived
    from the number of segments in ``path``.
    """
    if type(item) is WalkEntry:
        return item
    entry = to_directory_entry(item)
    path = _lookup(item, ("path",)) or entry.name
    depth = _lookup(item, ("depth",)) or path.count("/") + 1
    return WalkEntry(
        name=entry.name,
        is_file=entry.is_file,
        is_directory=entry.is_directory,
        is_symlink=entry.is_symlink,
        path=path,
        depth=int(depth),
    )
