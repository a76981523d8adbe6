"""Behaviour every backend must share, run against each bundled impl."""

from __future__ import annotations

import json
from datetime import datetime

import pytest

from humanfs import DirectoryEntry, DirectoryError, Hfs, NotEmptyError, NotFoundError, PermissionDeniedError


async def _collect(iterator):
    return [item async for item in iterator]


async def _make_tree(hfs: Hfs) -> None:
    await hfs.write("dir/a.txt", "alpha")
    await hfs.write("dir/sub/b.txt", "beta")


# =========================================================================
# Reads of missing files
# =========================================================================


class TestReadMissing:
    async def test_text_missing(self, hfs: Hfs) -> None:
        assert await hfs.text("nope.txt") is None

    async def test_json_missing(self, hfs: Hfs) -> None:
        assert await hfs.json("nope.json") is None

    async def test_bytes_missing(self, hfs: Hfs) -> None:
        assert await hfs.bytes("nope.bin") is None

    async def test_missing_under_missing_directory(self, hfs: Hfs) -> None:
        assert await hfs.text("no/such/dir/file.txt") is None

    async def test_size_missing(self, hfs: Hfs) -> None:
        assert await hfs.size("missing.txt") is None

    async def test_last_modified_missing(self, hfs: Hfs) -> None:
        if type(hfs) is Hfs:
            pytest.skip("core-only impl has no modification times")
        assert await hfs.last_modified("missing.txt") is None


# =========================================================================
# Write / read
# =========================================================================


class TestWriteRead:
    async def test_text_round_trip(self, hfs: Hfs) -> None:
        await hfs.write("hello.txt", "Hello, wörld ✓")
        assert await hfs.text("hello.txt") == "Hello, wörld ✓"

    async def test_bytes_round_trip(self, hfs: Hfs) -> None:
        data = bytes(range(256))
        await hfs.write("data.bin", data)
        assert await hfs.bytes("data.bin") == data

    async def test_bytearray_and_memoryview(self, hfs: Hfs) -> None:
        await hfs.write("a.bin", bytearray(b"abc"))
        await hfs.write("b.bin", memoryview(b"xyz123")[3:])
        assert await hfs.bytes("a.bin") == b"abc"
        assert await hfs.bytes("b.bin") == b"123"

    async def test_bytes_returns_bytes(self, hfs: Hfs) -> None:
        await hfs.write("a.txt", "abc")
        assert type(await hfs.bytes("a.txt")) is bytes

    async def test_overwrite_replaces(self, hfs: Hfs) -> None:
        await hfs.write("file.txt", "v1")
        await hfs.write("file.txt", "v2")
        assert await hfs.text("file.txt") == "v2"

    async def test_write_creates_parents(self, hfs: Hfs) -> None:
        await hfs.write("a/b/c/d.txt", "deep")
        assert await hfs.is_directory("a/b/c") is True
        assert await hfs.text("a/b/c/d.txt") == "deep"

    async def test_empty_file(self, hfs: Hfs) -> None:
        await hfs.write("empty.txt", "")
        assert await hfs.text("empty.txt") == ""
        assert await hfs.is_file("empty.txt") is True

    async def test_write_over_directory(self, hfs: Hfs) -> None:
        await hfs.write("dir/child.txt", "x")
        with pytest.raises(DirectoryError):
            await hfs.write("dir", "clobber")
        assert await hfs.text("dir/child.txt") == "x"

    async def test_text_of_directory(self, hfs: Hfs) -> None:
        await hfs.create_directory("dir")
        with pytest.raises(DirectoryError):
            await hfs.text("dir")

    async def test_separators_are_normalized(self, hfs: Hfs) -> None:
        await hfs.write("/x//y\\z.txt", "norm")
        assert await hfs.text("x/y/z.txt") == "norm"


class TestJson:
    async def test_parse(self, hfs: Hfs) -> None:
        await hfs.write("data.json", '{"a": [1, 2], "b": null}')
        assert await hfs.json("data.json") == {"a": [1, 2], "b": None}

    async def test_malformed(self, hfs: Hfs) -> None:
        await hfs.write("bad.json", "{not json")
        with pytest.raises(json.JSONDecodeError):
            await hfs.json("bad.json")


class TestAppend:
    async def test_concatenates(self, hfs: Hfs) -> None:
        await hfs.write("greeting.txt", "Hello, ")
        await hfs.append("greeting.txt", "world!")
        assert await hfs.text("greeting.txt") == "Hello, world!"

    async def test_missing_behaves_like_write(self, hfs: Hfs) -> None:
        await hfs.append("new/log.txt", b"first")
        assert await hfs.text("new/log.txt") == "first"

    async def test_directory(self, hfs: Hfs) -> None:
        await hfs.create_directory("logs")
        with pytest.raises(DirectoryError):
            await hfs.append("logs", "x")


# =========================================================================
# Kind checks, directories, size
# =========================================================================


class TestKind:
    async def test_file(self, hfs: Hfs) -> None:
        await hfs.write("f.txt", "x")
        assert await hfs.is_file("f.txt") is True
        assert await hfs.is_directory("f.txt") is False

    async def test_directory(self, hfs: Hfs) -> None:
        await hfs.create_directory("d")
        assert await hfs.is_directory("d") is True
        assert await hfs.is_file("d") is False

    async def test_missing(self, hfs: Hfs) -> None:
        assert await hfs.is_file("missing") is False
        assert await hfs.is_directory("missing") is False

    async def test_below_a_file(self, hfs: Hfs) -> None:
        await hfs.write("f.txt", "x")
        assert await hfs.is_file("f.txt/inner") is False

    async def test_root_is_directory(self, hfs: Hfs) -> None:
        assert await hfs.is_directory("/") is True


class TestCreateDirectory:
    async def test_idempotent(self, hfs: Hfs) -> None:
        await hfs.create_directory("a/b")
        assert await hfs.is_directory("a/b") is True
        await hfs.create_directory("a/b")
        assert await hfs.is_directory("a/b") is True

    async def test_keeps_contents(self, hfs: Hfs) -> None:
        await hfs.write("a/keep.txt", "x")
        await hfs.create_directory("a")
        assert await hfs.text("a/keep.txt") == "x"


class TestSize:
    async def test_size_after_write(self, hfs: Hfs) -> None:
        assert await hfs.size("missing.txt") is None
        await hfs.write("missing.txt", "abc")
        assert await hfs.size("missing.txt") == 3

    async def test_size_counts_bytes(self, hfs: Hfs) -> None:
        await hfs.write("u.txt", "é")
        assert await hfs.size("u.txt") == 2

    async def test_size_of_directory(self, hfs: Hfs) -> None:
        await hfs.create_directory("d")
        assert await hfs.size("d") is None


class TestLastModified:
    async def test_file_and_directory(self, hfs: Hfs) -> None:
        if type(hfs) is Hfs:
            pytest.skip("core-only impl has no modification times")
        await hfs.write("d/f.txt", "x")
        file_time = await hfs.last_modified("d/f.txt")
        dir_time = await hfs.last_modified("d")
        assert isinstance(file_time, datetime)
        assert isinstance(dir_time, datetime)
        assert file_time.tzinfo is not None


# =========================================================================
# Delete
# =========================================================================


class TestDelete:
    async def test_file(self, hfs: Hfs) -> None:
        await hfs.write("f.txt", "x")
        assert await hfs.delete("f.txt") is True
        assert await hfs.is_file("f.txt") is False

    async def test_empty_directory(self, hfs: Hfs) -> None:
        await hfs.create_directory("d")
        assert await hfs.delete("d") is True
        assert await hfs.is_directory("d") is False

    async def test_missing(self, hfs: Hfs) -> None:
        assert await hfs.delete("missing") is False

    async def test_non_empty_directory(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        with pytest.raises(DirectoryError) as exc_info:
            await hfs.delete("dir")
        assert isinstance(exc_info.value, NotEmptyError)
        assert await hfs.is_file("dir/a.txt") is True

    async def test_root(self, hfs: Hfs) -> None:
        with pytest.raises(PermissionDeniedError):
            await hfs.delete("/")


class TestDeleteAll:
    async def test_missing(self, hfs: Hfs) -> None:
        assert await hfs.delete_all("missing") is False

    async def test_tree(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        assert await hfs.delete_all("dir") is True
        assert await hfs.is_directory("dir") is False
        assert await hfs.is_file("dir/sub/b.txt") is False

    async def test_file(self, hfs: Hfs) -> None:
        await hfs.write("f.txt", "x")
        assert await hfs.delete_all("f.txt") is True
        assert await hfs.is_file("f.txt") is False

    async def test_leaves_siblings(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        await hfs.write("other/c.txt", "gamma")
        await hfs.delete_all("dir")
        assert await hfs.text("other/c.txt") == "gamma"

    async def test_root_refused_before_deleting(self, hfs: Hfs) -> None:
        await hfs.write("keep/a.txt", "a")
        with pytest.raises(PermissionDeniedError):
            await hfs.delete_all("/")
        assert await hfs.text("keep/a.txt") == "a"


# =========================================================================
# List / walk
# =========================================================================


class TestList:
    async def test_shallow(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        entries = await _collect(hfs.list("dir"))
        assert {e.name for e in entries} == {"a.txt", "sub"}
        by_name = {e.name: e for e in entries}
        assert by_name["a.txt"].is_file is True
        assert by_name["sub"].is_directory is True
        assert all(isinstance(e, DirectoryEntry) for e in entries)

    async def test_restartable(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        first = await _collect(hfs.list("dir"))
        second = await _collect(hfs.list("dir"))
        assert [e.name for e in first] == [e.name for e in second]

    async def test_root(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        entries = await _collect(hfs.list("/"))
        assert [e.name for e in entries] == ["dir"]

    async def test_empty_directory(self, hfs: Hfs) -> None:
        await hfs.create_directory("empty")
        assert await _collect(hfs.list("empty")) == []

    async def test_missing(self, hfs: Hfs) -> None:
        with pytest.raises(NotFoundError):
            await _collect(hfs.list("missing"))


class TestWalk:
    async def test_deep(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        entries = await _collect(hfs.walk("dir"))
        assert [e.path for e in entries] == ["a.txt", "sub", "sub/b.txt"]
        assert [e.depth for e in entries] == [1, 1, 2]
        assert entries[2].name == "b.txt"
        assert entries[2].is_file is True

    async def test_entry_filter(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        entries = await _collect(hfs.walk("dir", entry_filter=lambda e: e.is_file))
        assert [e.path for e in entries] == ["a.txt", "sub/b.txt"]

    async def test_directory_filter(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        await hfs.write("dir/skip/hidden.txt", "x")
        entries = await _collect(
            hfs.walk("dir", directory_filter=lambda e: e.name != "skip")
        )
        paths = [e.path for e in entries]
        assert "skip" in paths
        assert "skip/hidden.txt" not in paths
        assert "sub/b.txt" in paths

    async def test_async_filters(self, hfs: Hfs) -> None:
        await _make_tree(hfs)

        async def only_directories(entry):
            return entry.is_directory

        entries = await _collect(hfs.walk("dir", entry_filter=only_directories))
        assert [e.path for e in entries] == ["sub"]


# =========================================================================
# Copy / move
# =========================================================================


class TestCopy:
    async def test_file(self, hfs: Hfs) -> None:
        await hfs.write("a.txt", "alpha")
        await hfs.copy("a.txt", "b.txt")
        assert await hfs.text("a.txt") == "alpha"
        assert await hfs.text("b.txt") == "alpha"

    async def test_onto_existing_directory(self, hfs: Hfs) -> None:
        await hfs.write("a.txt", "alpha")
        await hfs.create_directory("dir")
        with pytest.raises(DirectoryError):
            await hfs.copy("a.txt", "dir")

    async def test_directory_source(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        with pytest.raises(DirectoryError):
            await hfs.copy("dir", "dir2")

    async def test_source_checked_first(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        await hfs.create_directory("target")
        with pytest.raises(DirectoryError) as exc_info:
            await hfs.copy("dir", "target")
        assert exc_info.value.target == "dir"

    async def test_missing_source(self, hfs: Hfs) -> None:
        with pytest.raises(NotFoundError):
            await hfs.copy("missing.txt", "b.txt")

    async def test_missing_destination_parent(self, hfs: Hfs) -> None:
        await hfs.write("a.txt", "alpha")
        with pytest.raises(NotFoundError):
            await hfs.copy("a.txt", "no/such/b.txt")


class TestCopyAll:
    async def test_tree(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        await hfs.copy_all("dir", "dir2")
        assert await hfs.is_file("dir2/a.txt") is True
        assert await hfs.is_file("dir2/sub/b.txt") is True
        assert await hfs.text("dir2/sub/b.txt") == "beta"
        assert await hfs.is_file("dir/a.txt") is True
        assert await hfs.is_file("dir/sub/b.txt") is True

    async def test_file_source(self, hfs: Hfs) -> None:
        await hfs.write("a.txt", "alpha")
        await hfs.copy_all("a.txt", "b.txt")
        assert await hfs.text("b.txt") == "alpha"

    async def test_missing_source(self, hfs: Hfs) -> None:
        with pytest.raises(NotFoundError):
            await hfs.copy_all("missing", "dest")

    async def test_empty_directory(self, hfs: Hfs) -> None:
        await hfs.create_directory("empty")
        await hfs.copy_all("empty", "copy")
        assert await hfs.is_directory("copy") is True


class TestMove:
    async def test_file(self, hfs: Hfs) -> None:
        await hfs.write("a.txt", "alpha")
        await hfs.move("a.txt", "b.txt")
        assert await hfs.is_file("a.txt") is False
        assert await hfs.text("b.txt") == "alpha"

    async def test_directory_source(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        with pytest.raises(DirectoryError):
            await hfs.move("dir", "elsewhere")
        assert await hfs.is_directory("dir") is True

    async def test_onto_existing_directory(self, hfs: Hfs) -> None:
        await hfs.write("a.txt", "alpha")
        await hfs.create_directory("dir")
        with pytest.raises(DirectoryError):
            await hfs.move("a.txt", "dir")
        assert await hfs.is_file("a.txt") is True

    async def test_missing_source(self, hfs: Hfs) -> None:
        with pytest.raises(NotFoundError):
            await hfs.move("missing.txt", "b.txt")

    async def test_onto_itself(self, hfs: Hfs) -> None:
        await hfs.write("a.txt", "keep")
        await hfs.move("a.txt", "/a.txt")
        assert await hfs.text("a.txt") == "keep"


class TestMoveAll:
    async def test_tree(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        await hfs.move_all("dir", "dir3")
        assert await hfs.is_file("dir3/a.txt") is True
        assert await hfs.is_file("dir3/sub/b.txt") is True
        assert await hfs.is_directory("dir") is False

    async def test_file_source(self, hfs: Hfs) -> None:
        await hfs.write("a.txt", "alpha")
        await hfs.move_all("a.txt", "b.txt")
        assert await hfs.is_file("a.txt") is False
        assert await hfs.text("b.txt") == "alpha"

    async def test_missing_source(self, hfs: Hfs) -> None:
        with pytest.raises(NotFoundError):
            await hfs.move_all("missing", "dest")

    async def test_into_nested_destination(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        await hfs.move_all("dir", "x/y/dir")
        assert await hfs.text("x/y/dir/sub/b.txt") == "beta"
        assert await hfs.is_directory("dir") is False

    async def test_onto_itself(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        await hfs.move_all("dir", "/dir/")
        assert await hfs.text("dir/a.txt") == "alpha"
        assert await hfs.text("dir/sub/b.txt") == "beta"

    async def test_into_own_subtree(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        with pytest.raises(DirectoryError):
            await hfs.move_all("dir", "dir/sub/inner")
        assert await hfs.text("dir/a.txt") == "alpha"
        assert await hfs.text("dir/sub/b.txt") == "beta"
        assert await hfs.is_directory("dir/sub/inner") is False

    async def test_sibling_with_shared_prefix(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        await hfs.move_all("dir", "dir2")
        assert await hfs.text("dir2/a.txt") == "alpha"

    async def test_root_source(self, hfs: Hfs) -> None:
        await _make_tree(hfs)
        with pytest.raises(PermissionDeniedError):
            await hfs.move_all("/", "elsewhere")
        assert await hfs.text("dir/a.txt") == "alpha"
        assert await hfs.is_directory("elsewhere") is False
