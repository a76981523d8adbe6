"""MemoryHfsVolume — an in-memory tree of file and directory nodes.

Nodes live in an arena (``dict[id, node]``) owned by the volume.  A
directory owns its children through an ordered ``name -> node`` mapping;
each node points back at its parent only by id, and that id is rewritten
whenever the node is re-parented.

Two APIs sit on top of the tree:

- Path-based (``read_file``, ``write_file``, ``mkdirp``, ``readdir``,
  ``stat``, ``rm``, ``cp``, ``mv``) used by ``MemoryHfsImpl``.
- ID-based (``create_file_object``, ``read_file_object``, ``move_object``,
  ...) shaped like the object APIs of cloud storage services, for impls that
  want to exercise id-addressed storage.
"""

from __future__ import annotations

import itertools
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from humanfs.errors import DirectoryError, NotEmptyError, NotFoundError, PermissionDeniedError
from humanfs.path import Path, assert_valid_name
from humanfs.types import DirectoryEntry, Stat

if TYPE_CHECKING:
    from collections.abc import Iterator

_object_ids = itertools.count()


def _now() -> datetime:
    return datetime.now(UTC)


def _assert_bytes(value: object) -> None:
    if not isinstance(value, bytes):
        raise TypeError("Value must be bytes.")


@dataclass(eq=False)
class FileNode:
    name: str
    contents: bytes = b""
    parent_id: str | None = None
    last_modified: datetime = field(default_factory=_now)
    id: str = field(default_factory=lambda: f"file-{next(_object_ids)}")

    @property
    def kind(self) -> str:
        return "file"


@dataclass(eq=False)
class DirectoryNode:
    name: str
    children: dict[str, Node] = field(default_factory=dict)
    parent_id: str | None = None
    last_modified: datetime = field(default_factory=_now)
    id: str = field(default_factory=lambda: f"dir-{next(_object_ids)}")

    @property
    def kind(self) -> str:
        return "directory"


Node = FileNode | DirectoryNode


def _to_entry(node: Node) -> DirectoryEntry:
    return DirectoryEntry(
        name=node.name,
        is_file=isinstance(node, FileNode),
        is_directory=isinstance(node, DirectoryNode),
    )


class MemoryHfsVolume:
    """A single in-memory filesystem tree.

    Paths are ``str`` (``""`` is the root) or ``Path`` objects.
    """

    def __init__(self) -> None:
        self._root = DirectoryNode(name="")
        self._objects: dict[str, Node] = {self._root.id: self._root}

    @property
    def root_id(self) -> str:
        return self._root.id

    # ------------------------------------------------------------------
    # Arena bookkeeping
    # ------------------------------------------------------------------

    @staticmethod
    def _to_path(path: str | Path) -> Path:
        if isinstance(path, Path):
            return path.copy()
        if path == "":
            return Path()
        return Path.from_value(path)

    def _parent(self, node: Node) -> DirectoryNode | None:
        if node.parent_id is None:
            return None
        parent = self._objects.get(node.parent_id)
        assert isinstance(parent, DirectoryNode)
        return parent

    def _ancestors(self, node: Node) -> Iterator[DirectoryNode]:
        parent = self._parent(node)
        while parent is not None:
            yield parent
            parent = self._parent(parent)

    def _touch(self, node: Node) -> None:
        """Stamp *node* and every ancestor with the current time."""
        stamp = _now()
        node.last_modified = stamp
        for ancestor in self._ancestors(node):
            ancestor.last_modified = stamp

    def _subtree(self, node: Node) -> Iterator[Node]:
        yield node
        if isinstance(node, DirectoryNode):
            for child in node.children.values():
                yield from self._subtree(child)

    def _register(self, node: Node) -> None:
        for member in self._subtree(node):
            self._objects[member.id] = member

    def _unregister(self, node: Node) -> None:
        for member in self._subtree(node):
            self._objects.pop(member.id, None)

    def _attach(self, directory: DirectoryNode, node: Node) -> None:
        """Make *node* a child of *directory*, replacing any same-named child."""
        existing = directory.children.get(node.name)
        if existing is not None and existing is not node:
            self._unregister(existing)
        directory.children[node.name] = node
        node.parent_id = directory.id
        self._register(node)
        self._touch(node)

    def _detach(self, node: Node) -> None:
        parent = self._parent(node)
        if parent is None:
            raise PermissionDeniedError("cannot detach the root directory")
        del parent.children[node.name]
        node.parent_id = None
        self._touch(parent)

    def _clone(self, node: Node, name: str) -> Node:
        if isinstance(node, FileNode):
            return FileNode(name=name, contents=node.contents)
        clone = DirectoryNode(name=name)
        for child in node.children.values():
            copy = self._clone(child, child.name)
            copy.parent_id = clone.id
            clone.children[child.name] = copy
        return clone

    def _find(self, path: str | Path) -> Node | None:
        node: Node = self._root
        for step in self._to_path(path):
            if not isinstance(node, DirectoryNode):
                return None
            child = node.children.get(step)
            if child is None:
                return None
            node = child
        return node

    def _ensure_directory(self, path: Path, target: str) -> DirectoryNode:
        """Walk *path* from the root, creating missing directories."""
        directory = self._root
        for step in path:
            child = directory.children.get(step)
            if child is None:
                child = DirectoryNode(name=step)
                self._attach(directory, child)
            elif not isinstance(child, DirectoryNode):
                raise DirectoryError(target)
            directory = child
        return directory

    def _split_destination(self, destination: str | Path, target: str) -> tuple[DirectoryNode, str]:
        """Resolve the existing parent directory and final name of *destination*."""
        path = self._to_path(destination)
        name = path.pop()
        if name is None:
            raise DirectoryError(target)
        parent = self._find(path)
        if parent is None:
            raise NotFoundError(target)
        if not isinstance(parent, DirectoryNode):
            raise DirectoryError(target)
        return parent, name

    # ------------------------------------------------------------------
    # Path-based API
    # ------------------------------------------------------------------

    def read_file(self, path: str | Path) -> bytes | None:
        """Contents of the file at *path*, or None if nothing is there."""
        node = self._find(path)
        if node is None:
            return None
        if not isinstance(node, FileNode):
            raise DirectoryError(f"read_file {path}")
        return node.contents

    def write_file(self, path: str | Path, contents: bytes) -> None:
        """Create or replace a file, creating missing parent directories.

        Raises:
            DirectoryError: *path* is a directory, or a file sits where a
                parent directory is needed.
        """
        _assert_bytes(contents)
        target = f"write_file {path}"
        steps = self._to_path(path)
        name = steps.pop()
        if name is None:
            raise DirectoryError(target)
        directory = self._ensure_directory(steps, target)
        existing = directory.children.get(name)
        if isinstance(existing, DirectoryNode):
            raise DirectoryError(target)
        if isinstance(existing, FileNode):
            existing.contents = contents
            self._touch(existing)
            return
        self._attach(directory, FileNode(name=name, contents=contents))

    def mkdirp(self, path: str | Path) -> None:
        """Create a directory and its parents; a no-op if it already exists."""
        self._ensure_directory(self._to_path(path), f"mkdirp {path}")

    def readdir(self, path: str | Path) -> list[DirectoryEntry]:
        node = self._find(path)
        if node is None:
            raise NotFoundError(f"readdir {path}")
        if not isinstance(node, DirectoryNode):
            raise PermissionDeniedError(f"readdir {path}")
        return [_to_entry(child) for child in node.children.values()]

    def stat(self, path: str | Path) -> Stat | None:
        node = self._find(path)
        if node is None:
            return None
        size = len(node.contents) if isinstance(node, FileNode) else 0
        return Stat(kind=node.kind, size=size, last_modified=node.last_modified)

    def rm(self, path: str | Path, *, recursive: bool = False) -> None:
        """Remove a file or directory.

        Raises:
            NotFoundError: nothing exists at *path*.
            NotEmptyError: *path* is a non-empty directory and *recursive*
                is false.
            PermissionDeniedError: *path* is the root.
        """
        target = f"rm {path}"
        node = self._find(path)
        if node is None:
            raise NotFoundError(target)
        if node is self._root:
            raise PermissionDeniedError(target)
        if isinstance(node, DirectoryNode) and node.children and not recursive:
            raise NotEmptyError(target)
        self._detach(node)
        self._unregister(node)

    def cp(self, source: str | Path, destination: str | Path) -> None:
        """Copy a file or directory tree to *destination*.

        The parent of *destination* must already exist.
        """
        target = f"cp {source} {destination}"
        node = self._find(source)
        if node is None:
            raise NotFoundError(target)
        existing = self._find(destination)
        if isinstance(node, FileNode) and isinstance(existing, DirectoryNode):
            raise DirectoryError(target)
        parent, name = self._split_destination(destination, target)
        self._attach(parent, self._clone(node, name))

    def mv(self, source: str | Path, destination: str | Path) -> None:
        """Move a file or directory tree to *destination*, keeping node ids."""
        target = f"mv {source} {destination}"
        node = self._find(source)
        if node is None:
            raise NotFoundError(target)
        if node is self._root:
            raise PermissionDeniedError(target)
        existing = self._find(destination)
        if isinstance(node, FileNode) and isinstance(existing, DirectoryNode):
            raise DirectoryError(target)
        parent, name = self._split_destination(destination, target)
        if parent is node or node in self._ancestors(parent):
            raise DirectoryError(target)
        if existing is node:
            return
        self._detach(node)
        node.name = name
        self._attach(parent, node)

    # ------------------------------------------------------------------
    # ID-based API
    # ------------------------------------------------------------------

    def _get_object(self, object_id: str) -> Node | None:
        if not isinstance(object_id, str):
            raise TypeError("ID must be a string.")
        return self._objects.get(object_id)

    def _get_directory_object(self, object_id: str, target: str) -> DirectoryNode:
        node = self._get_object(object_id)
        if node is None:
            raise NotFoundError(target)
        if not isinstance(node, DirectoryNode):
            raise DirectoryError(target)
        return node

    def get_object_id_from_path(self, path: str | Path) -> str | None:
        node = self._find(path)
        return None if node is None else node.id

    def create_file_object(self, name: str, parent_id: str, contents: bytes) -> str:
        """Create a file under the directory *parent_id*; return its id."""
        _assert_bytes(contents)
        assert_valid_name(name)
        parent = self._get_directory_object(parent_id, f"create_object {parent_id}")
        node = FileNode(name=name, contents=contents)
        self._attach(parent, node)
        return node.id

    def create_directory_object(self, name: str, parent_id: str) -> str:
        assert_valid_name(name)
        parent = self._get_directory_object(parent_id, f"create_object {parent_id}")
        node = DirectoryNode(name=name)
        self._attach(parent, node)
        return node.id

    def read_file_object(self, object_id: str) -> bytes | None:
        node = self._get_object(object_id)
        if node is None:
            return None
        if not isinstance(node, FileNode):
            raise DirectoryError(f"read_object {object_id}")
        return node.contents

    def write_file_object(self, object_id: str, contents: bytes) -> None:
        _assert_bytes(contents)
        node = self._get_object(object_id)
        if node is None:
            raise NotFoundError(f"write_object {object_id}")
        if not isinstance(node, FileNode):
            raise DirectoryError(f"write_object {object_id}")
        node.contents = contents
        self._touch(node)

    def read_directory_object(self, object_id: str) -> list[DirectoryEntry]:
        node = self._get_directory_object(object_id, f"read_object {object_id}")
        return [_to_entry(child) for child in node.children.values()]

    def move_object(self, object_id: str, parent_id: str) -> None:
        """Re-parent *object_id* under *parent_id*, keeping its name."""
        target = f"move_object {object_id}"
        node = self._get_object(object_id)
        if node is None:
            raise NotFoundError(target)
        parent = self._get_directory_object(parent_id, f"move_object {parent_id}")
        if parent is node or node in self._ancestors(parent):
            raise DirectoryError(target)
        self._detach(node)
        self._attach(parent, node)

    def copy_object(self, object_id: str, parent_id: str) -> str:
        """Copy *object_id* (recursively) under *parent_id*; return the copy's id."""
        node = self._get_object(object_id)
        if node is None:
            raise NotFoundError(f"copy_object {object_id}")
        parent = self._get_directory_object(parent_id, f"copy_object {parent_id}")
        clone = self._clone(node, node.name)
        self._attach(parent, clone)
        return clone.id

    def delete_object(self, object_id: str) -> None:
        """Delete *object_id* and everything below it."""
        target = f"delete_object {object_id}"
        node = self._get_object(object_id)
        if node is None:
            raise NotFoundError(target)
        if node is self._root:
            raise PermissionDeniedError(target)
        self._detach(node)
        self._unregister(node)
