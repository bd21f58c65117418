"""Uncapped file and directory handles.

Metadata is resolved once, at construction, without touching the disk. Every
filesystem operation is a coroutine awaiting a single blocking call run in a
worker thread.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import os
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypeVar

from capdir.core.errors import ConstructionError, FilesystemError, fail
from capdir.core.settings import get_settings
from capdir.fs.paths import (
    fix_slashes,
    looks_absolute,
    path_parts,
    path_to_uri,
    relative_or_absolute,
    resolve_path,
    strip_root,
)
from capdir.utils.data import parse

T = TypeVar("T")


@dataclass(frozen=True)
class Listing:
    files: list[Any] = field(default_factory=list)
    directories: list[Any] = field(default_factory=list)


async def run_io(message: str, func: Callable[..., T], *args: Any) -> T:
    try:
        return await asyncio.to_thread(func, *args)
    except OSError as exc:
        raise FilesystemError.from_os_error(message, exc) from exc


def scan(root: str, pattern: str | None = None) -> tuple[list[str], list[str]]:
    """Return ``(files, directories)`` below ``root``.

    Symbolic links are reported as files so that they are unlinked rather
    than followed.
    """
    if not os.path.isdir(root):
        raise FileNotFoundError(2, "No such directory", root)

    if pattern:
        found = [str(item) for item in Path(root).glob(pattern)]
    else:
        with os.scandir(root) as entries:
            found = [entry.path for entry in entries]

    files: list[str] = []
    directories: list[str] = []
    for item in sorted(found):
        if os.path.islink(item) or os.path.isfile(item):
            files.append(item)
        elif os.path.isdir(item):
            directories.append(item)
    return files, directories


class DirectoryEntry:
    is_directory = True
    is_file = False

    def __init__(self, supplied: str | None = None) -> None:
        fixed = supplied or "."
        self._bind(os.path.abspath(fix_slashes(fixed)), supplied)

    @classmethod
    def from_os_path(cls, path: str) -> DirectoryEntry:
        """Wrap a path reported by the OS. Backslashes stay part of the name."""
        entry = cls.__new__(cls)
        entry._bind(os.path.abspath(path), path)
        return entry

    def _bind(self, resolved: str, supplied: str | None) -> None:
        parts = path_parts(resolved)

        self._supplied = supplied
        self._path = resolved
        self._uri = path_to_uri(resolved)
        self._name = parts.base
        self._stem = parts.name
        self._extension = parts.ext
        self._parent_path = None if parts.dir == resolved else parts.dir
        self._trail = tuple(resolved.split(os.sep))

    @classmethod
    def from_cwd(cls) -> DirectoryEntry:
        return cls(os.getcwd())

    def __str__(self) -> str:
        return f"[{type(self).__name__}: {self._path}]"

    __repr__ = __str__

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._path == other.path

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._path))

    @property
    def supplied(self) -> str | None:
        return self._supplied

    @property
    def path(self) -> str:
        return self._path

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def name(self) -> str:
        return self._name

    @property
    def stem(self) -> str:
        return self._stem

    @property
    def extension(self) -> str:
        return self._extension

    @property
    def sep(self) -> str:
        return os.sep

    @property
    def trail(self) -> tuple[str, ...]:
        return self._trail

    @property
    def parent_path(self) -> str | None:
        return self._parent_path

    @property
    def parent(self) -> DirectoryEntry | None:
        if self._parent_path is None:
            return None
        return DirectoryEntry.from_os_path(self._parent_path)

    def walk_up(self) -> Iterator[DirectoryEntry]:
        """Yield this directory and each ancestor up to the platform root."""
        current: DirectoryEntry = self
        while True:
            yield current
            parent = current.parent
            if parent is None or parent.path == current.path:
                return
            current = parent

    def relative_to(self, other: DirectoryEntry | FileEntry) -> str:
        return relative_or_absolute(other, self)

    def get_directory(self, path: str) -> DirectoryEntry:
        return DirectoryEntry(resolve_path(self._path, path))

    def get_file(self, path: str) -> FileEntry:
        if not path:
            fail("File name must not be empty.", kind=ConstructionError)
        return FileEntry(resolve_path(self._path, path))

    async def exists(self) -> bool:
        return await asyncio.to_thread(os.path.isdir, self._path)

    async def has_file(self, name: str) -> bool:
        return await self.get_file(name).exists()

    async def has_directory(self, name: str) -> bool:
        return await self.get_directory(name).exists()

    async def read(self, pattern: str | None = None) -> Listing:
        """List the immediate contents, or the matches of a glob pattern."""
        _check_pattern(pattern)
        files, directories = await run_io(
            f"Unable to read directory '{self._path}'", scan, self._path, pattern
        )
        return Listing(
            files=[FileEntry.from_os_path(item) for item in files],
            directories=[DirectoryEntry.from_os_path(item) for item in directories],
        )

    async def glob(self, pattern: str = "**/*") -> Listing:
        """Recursive search; ``*``, ``?`` and ``**`` follow pathlib rules."""
        return await self.read(pattern or "**/*")

    async def assure_exists(self, parents: bool = False, mode: int = 0o777) -> None:
        if await self.exists():
            return
        make = os.makedirs if parents else os.mkdir
        try:
            await asyncio.to_thread(make, self._path, mode)
        except FileExistsError:
            return
        except OSError as exc:
            raise FilesystemError.from_os_error(
                f"Unable to create directory '{self._path}'", exc
            ) from exc

    async def delete(self) -> None:
        """Delete this directory. Only empty directories can be deleted."""
        if not await self.exists():
            raise FilesystemError(f"No such directory '{self._uri}'", path=self._path)
        await run_io(f"Unable to delete directory '{self._path}'", os.rmdir, self._path)


class FileEntry:
    is_directory = False
    is_file = True

    def __init__(
        self, submitted: str, parent: DirectoryEntry | str | None = None
    ) -> None:
        if not isinstance(submitted, str) or not submitted:
            fail("File path must be a non-empty string.", kind=ConstructionError)
        if parent is not None and not isinstance(parent, (str, DirectoryEntry)):
            fail(
                f"Parent must be a path or DirectoryEntry, got {type(parent).__name__}",
                kind=ConstructionError,
            )

        normalized = fix_slashes(submitted)
        if parent and looks_absolute(normalized):
            normalized = strip_root(normalized)

        if isinstance(parent, DirectoryEntry):
            resolved = os.path.abspath(resolve_path(parent.path, normalized))
        elif parent:
            resolved = os.path.abspath(resolve_path(parent, normalized))
        else:
            resolved = os.path.abspath(normalized)

        self._bind(resolved, submitted, parent)

    @classmethod
    def from_os_path(cls, path: str) -> FileEntry:
        """Wrap a path reported by the OS. Backslashes stay part of the name."""
        entry = cls.__new__(cls)
        entry._bind(os.path.abspath(path), path)
        return entry

    def _bind(self, resolved: str, submitted: str, parent: Any = None) -> None:
        parts = path_parts(resolved)
        if isinstance(parent, DirectoryEntry) and parent.path == parts.dir:
            directory = parent
        else:
            directory = DirectoryEntry.from_os_path(parts.dir)

        self._supplied = submitted
        self._path = resolved
        self._uri = path_to_uri(resolved)
        self._name = parts.base
        self._stem = parts.name
        self._extension = parts.ext
        self._parent = directory

    def __str__(self) -> str:
        return f"[{type(self).__name__}: {self._path}]"

    __repr__ = __str__

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return self._path == other.path

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._path))

    @property
    def supplied(self) -> str:
        return self._supplied

    @property
    def path(self) -> str:
        return self._path

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def name(self) -> str:
        return self._name

    @property
    def stem(self) -> str:
        return self._stem

    @property
    def extension(self) -> str:
        return self._extension

    @property
    def parent(self) -> DirectoryEntry:
        return self._parent

    @property
    def parent_path(self) -> str:
        return self._parent.path

    def relative_to(self, other: DirectoryEntry | FileEntry) -> str:
        return relative_or_absolute(other, self)

    async def exists(self) -> bool:
        return await asyncio.to_thread(os.path.isfile, self._path)

    async def can_read(self) -> bool:
        return await asyncio.to_thread(os.access, self._path, os.R_OK)

    async def can_write(self) -> bool:
        return await asyncio.to_thread(os.access, self._path, os.W_OK)

    async def size(self) -> int | None:
        try:
            stat = await asyncio.to_thread(os.stat, self._path)
        except (FileNotFoundError, NotADirectoryError):
            return None
        return stat.st_size

    async def modified(self) -> dt.datetime | None:
        try:
            stat = await asyncio.to_thread(os.stat, self._path)
        except (FileNotFoundError, NotADirectoryError):
            return None
        return dt.datetime.fromtimestamp(stat.st_mtime, dt.UTC)

    async def read(self, encoding: str | None = None) -> str:
        return await run_io(
            f"Unable to read file '{self._path}'",
            _read_text,
            self._path,
            encoding or get_settings().encoding,
        )

    async def read_bytes(self) -> bytes:
        return await run_io(
            f"Unable to read file '{self._path}'", _read_bytes, self._path
        )

    async def write(self, content: str, encoding: str | None = None) -> None:
        """Write text. The parent directory must already exist."""
        await run_io(
            f"Unable to write file '{self._path}'",
            _write_text,
            self._path,
            content,
            encoding or get_settings().encoding,
        )

    async def write_bytes(self, data: bytes | bytearray | memoryview) -> None:
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"Data must be bytes-like, got {type(data).__name__}"
            )
        await run_io(
            f"Unable to write file '{self._path}'", _write_bytes, self._path, data
        )

    async def load_data(self, kind: str = "any", encoding: str | None = None) -> Any:
        content = await self.read(encoding)
        return parse(content, kind, source=self._path)

    async def delete(self) -> None:
        await run_io(f"Unable to delete file '{self._path}'", os.unlink, self._path)


def _check_pattern(pattern: str | None) -> None:
    if pattern and looks_absolute(pattern):
        fail("Glob patterns must be relative.", kind=ConstructionError)


def _read_text(path: str, encoding: str) -> str:
    with open(path, encoding=encoding) as handle:
        return handle.read()


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as handle:
        return handle.read()


def _write_text(path: str, content: str, encoding: str) -> None:
    with open(path, "w", encoding=encoding) as handle:
        handle.write(content)


def _write_bytes(path: str, data: bytes | bytearray | memoryview) -> None:
    with open(path, "wb") as handle:
        handle.write(data)
