from __future__ import annotations

import os

import pytest

from capdir.core.errors import ConstructionError, FilesystemError, LineageError
from capdir.fs.boundary import CapBoundary
from capdir.fs.entry import DirectoryEntry, FileEntry
from capdir.fs.virtual_file import VirtualFileEntry

pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX path fixtures")


def test_file_path_is_cap_relative(tmp_path) -> None:
    root = CapBoundary(str(tmp_path))
    file = VirtualFileEntry("../../secrets.env", root.get_directory("app"))
    assert file.path == "/secrets.env"
    assert file.trail == ("secrets.env",)
    assert file.real.path == os.path.join(str(tmp_path), "secrets.env")
    assert file.name == "secrets.env"
    assert file.stem == "secrets"
    assert file.extension == ".env"
    assert file.cap is root
    assert isinstance(file.to_real(), FileEntry)


def test_absolute_file_path_reads_from_the_cap(tmp_path) -> None:
    root = CapBoundary(str(tmp_path))
    file = root.get_directory("a/b").get_file("/etc/passwd")
    assert file.path == "/etc/passwd"
    assert file.real.path == os.path.join(str(tmp_path), "etc", "passwd")


def test_parent_is_the_holding_directory(tmp_path) -> None:
    root = CapBoundary(str(tmp_path))
    data = root.get_directory("data")
    direct = data.get_file("config.json")
    assert direct.parent is data

    nested = data.get_file("nested/deep.txt")
    assert isinstance(nested.parent, CapBoundary)
    assert nested.parent.path == "/data/nested"
    assert nested.parent.cap is root

    top = root.get_file("top.txt")
    assert top.parent is root


def test_invalid_construction(tmp_path) -> None:
    root = CapBoundary(str(tmp_path))
    with pytest.raises(ConstructionError):
        VirtualFileEntry("", root)
    with pytest.raises(ConstructionError):
        VirtualFileEntry("..", root)
    with pytest.raises(ConstructionError):
        root.get_file("/")
    with pytest.raises(LineageError):
        VirtualFileEntry("a.txt", DirectoryEntry(str(tmp_path)))  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_operations_delegate_to_the_real_file(tmp_path) -> None:
    root = CapBoundary(str(tmp_path))
    file = root.get_file("notes.txt")

    assert await file.exists() is False
    assert await file.size() is None
    await file.write("hello")
    assert await file.exists() is True
    assert await file.read() == "hello"
    assert await file.size() == 5
    assert await file.modified() is not None
    assert await file.can_read() is True
    assert await file.can_write() is True
    await file.write_bytes(b"bytes")
    assert await file.read_bytes() == b"bytes"
    await file.delete()
    assert await file.exists() is False


@pytest.mark.asyncio
async def test_write_needs_an_existing_directory(tmp_path) -> None:
    root = CapBoundary(str(tmp_path))
    file = root.get_file("missing/notes.txt")
    with pytest.raises(FilesystemError):
        await file.write("hello")


@pytest.mark.asyncio
async def test_load_data_from_yaml(tmp_path) -> None:
    (tmp_path / "settings.yml").write_text("retries: 3\nhosts: [a, b]\n")
    root = CapBoundary(str(tmp_path))
    data = await root.get_file("settings.yml").load_data("yml")
    assert data == {"retries": 3, "hosts": ["a", "b"]}
