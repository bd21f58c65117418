"""Files inside a capped directory tree."""

from __future__ import annotations

import datetime as dt
import os
from typing import TYPE_CHECKING, Any

from capdir.core.errors import ConstructionError, LineageError, fail
from capdir.fs.entry import FileEntry
from capdir.fs.paths import clamp_segments

if TYPE_CHECKING:
    from capdir.fs.boundary import CapBoundary


class VirtualFileEntry:
    """A file addressed by its cap-relative path.

    The file always belongs to a capped directory; its real counterpart is
    derived from the same trail as the virtual path.
    """

    is_directory = False
    is_file = True

    def __init__(self, path: str, parent: CapBoundary) -> None:
        from capdir.fs.boundary import CapBoundary

        if not isinstance(parent, CapBoundary):
            fail(
                f"Parent must be a capped directory, got {type(parent).__name__}.",
                kind=LineageError,
            )
        if not isinstance(path, str) or not path:
            fail("File path must be a non-empty string.", kind=ConstructionError)

        self._bind(parent, clamp_segments(parent.trail, path), path)

    @classmethod
    def at_trail(
        cls, parent: CapBoundary, trail: tuple[str, ...]
    ) -> VirtualFileEntry:
        """File at a trail that is already split into segments."""
        entry = cls.__new__(cls)
        entry._bind(parent, tuple(trail), "/" + "/".join(trail))
        return entry

    def _bind(
        self, parent: CapBoundary, trail: tuple[str, ...], supplied: str
    ) -> None:
        if not trail:
            fail(
                f"File path '{supplied}' resolves to the cap itself.",
                kind=ConstructionError,
            )

        cap = parent.cap
        self._supplied = supplied
        self._trail = trail
        self._origin = parent
        self._cap = cap
        self._real = FileEntry.from_os_path(os.path.join(cap.real.path, *trail))

    def __str__(self) -> str:
        return f"[{type(self).__name__}: {self.path} → {self._real.path}]"

    __repr__ = __str__

    @property
    def supplied(self) -> str:
        return self._supplied

    @property
    def path(self) -> str:
        return "/" + "/".join(self._trail)

    @property
    def trail(self) -> tuple[str, ...]:
        return self._trail

    @property
    def name(self) -> str:
        return self._real.name

    @property
    def stem(self) -> str:
        return self._real.stem

    @property
    def extension(self) -> str:
        return self._real.extension

    @property
    def cap(self) -> CapBoundary:
        return self._cap

    @property
    def parent(self) -> CapBoundary:
        """The capped directory that holds this file."""
        directory = self._trail[:-1]
        if self._origin.trail == directory:
            return self._origin
        return self._cap.descend(directory)

    @property
    def real(self) -> FileEntry:
        return self._real

    def to_real(self) -> FileEntry:
        return self._real

    async def exists(self) -> bool:
        return await self._real.exists()

    async def can_read(self) -> bool:
        return await self._real.can_read()

    async def can_write(self) -> bool:
        return await self._real.can_write()

    async def size(self) -> int | None:
        return await self._real.size()

    async def modified(self) -> dt.datetime | None:
        return await self._real.modified()

    async def read(self, encoding: str | None = None) -> str:
        return await self._real.read(encoding)

    async def read_bytes(self) -> bytes:
        return await self._real.read_bytes()

    async def write(self, content: str, encoding: str | None = None) -> None:
        await self._real.write(content, encoding)

    async def write_bytes(self, data: bytes | bytearray | memoryview) -> None:
        await self._real.write_bytes(data)

    async def load_data(self, kind: str = "any", encoding: str | None = None) -> Any:
        return await self._real.load_data(kind, encoding)

    async def delete(self) -> None:
        await self._real.delete()
