"""Capped directory trees.

A capped directory presents a virtual path rooted at ``/`` while every
operation runs against a real directory inside the cap. Both paths of a node
come from the same segment trail, so the virtual path ``/data/cache`` always
denotes ``<cap real path>/data/cache`` and nothing outside the cap.

``CapBoundary`` and ``TempBoundary`` share the same core and differ only by
their ``BoundaryPolicy``.
"""

from __future__ import annotations

import logging
import os
import uuid
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any, ClassVar

from capdir.core.errors import (
    ConstructionError,
    FilesystemError,
    LineageError,
    UnsupportedOperation,
    fail,
)
from capdir.core.settings import get_settings
from capdir.fs.entry import DirectoryEntry, FileEntry, Listing
from capdir.fs.paths import (
    clamp_segments,
    cwd,
    fix_slashes,
    looks_absolute,
    path_contains,
    split_segments,
)
from capdir.fs.virtual_file import VirtualFileEntry

logger = logging.getLogger(__name__)

VIRTUAL_ROOT = "/"


@dataclass(frozen=True)
class RootLink:
    anchor: str


@dataclass(frozen=True)
class ChildLink:
    origin: CapBoundary
    cap: CapBoundary


Link = RootLink | ChildLink


class BoundaryPolicy:
    """Construction and cleanup rules for a family of capped directories."""

    allows_cwd = True
    allows_remove = False

    def root_path(self, directory: str | None) -> str:
        if not directory:
            return cwd()
        return os.path.abspath(fix_slashes(directory))

    def check_parent(self, parent: CapBoundary) -> None:
        return None

    def after_create(self, node: CapBoundary) -> None:
        return None

    def check_remove(self, node: CapBoundary) -> None:
        fail(
            f"{type(node).__name__} does not support recursive removal.",
            kind=UnsupportedOperation,
        )


class TempPolicy(BoundaryPolicy):
    """Roots live in the OS temp directory and are created on construction."""

    allows_cwd = False
    allows_remove = True

    def root_path(self, directory: str | None) -> str:
        settings = get_settings()
        if not directory:
            return settings.temp_dir

        segments = split_segments(directory)
        if looks_absolute(directory) or segments != [directory] or directory == "..":
            fail(
                "Temporary directory name must be a single path segment, "
                f"got '{directory}'.",
                kind=ConstructionError,
            )

        prefix = directory if directory.endswith("-") else f"{directory}-"
        suffix = uuid.uuid4().hex[: settings.temp_suffix_length].upper()
        return os.path.join(settings.temp_dir, prefix + suffix)

    def check_parent(self, parent: CapBoundary) -> None:
        if not isinstance(parent.policy, TempPolicy):
            fail(
                f"Parent must be a TempBoundary, got {type(parent).__name__}.",
                kind=LineageError,
            )
        if not os.path.isdir(parent.real.path):
            fail(f"Parent '{parent.real.path}' must exist.", kind=LineageError)

        temp_dir = get_settings().temp_dir
        if not _lineage_reaches(parent, temp_dir):
            fail(
                f"The lineage of '{parent.real.path}' must be the temp "
                f"directory '{temp_dir}'.",
                kind=LineageError,
            )

    def after_create(self, node: CapBoundary) -> None:
        real_path = node.real.path
        try:
            os.makedirs(real_path, exist_ok=True)
        except FileExistsError:
            pass
        except OSError as exc:
            raise FilesystemError.from_os_error(
                f"Unable to create temporary directory '{real_path}'", exc
            ) from exc
        logger.debug("Temporary directory ready at %s", real_path)

    def check_remove(self, node: CapBoundary) -> None:
        temp_dir = get_settings().temp_dir
        if not path_contains(temp_dir, node.real.path):
            fail(
                f"Refusing to remove '{node.real.path}': it is not inside the "
                f"temp directory '{temp_dir}'.",
                kind=LineageError,
            )


def _lineage_reaches(node: CapBoundary, target: str) -> bool:
    root = node
    while root.cap is not root:
        root = root.cap
    target = os.path.normpath(target)
    return any(entry.path == target for entry in root.real.walk_up())


class CapBoundary:
    """A directory handle that can never reach outside its cap.

    Without a parent the instance is a root: ``directory`` (the current
    working directory by default) becomes both the real anchor and the
    virtual ``/``. With a parent, ``directory`` is a path fragment applied to
    the parent's virtual path: absolute fragments are read relative to the
    cap and excess ``..`` segments stop at the cap.
    """

    policy: ClassVar[BoundaryPolicy] = BoundaryPolicy()

    def __init__(
        self, directory: str | None = None, parent: CapBoundary | None = None
    ) -> None:
        policy = type(self).policy

        if parent is None:
            anchor = policy.root_path(directory)
            self._link: Link = RootLink(anchor=anchor)
            self._trail: tuple[str, ...] = ()
            self._real = DirectoryEntry(anchor)
        else:
            if not isinstance(parent, CapBoundary):
                fail(
                    "Parent must be a capped directory, got "
                    f"{type(parent).__name__}.",
                    kind=LineageError,
                )
            if not directory:
                fail(
                    "Directory name must not be empty when a parent is provided.",
                    kind=ConstructionError,
                )
            policy.check_parent(parent)
            self._attach(parent, clamp_segments(parent.trail, directory))

        policy.after_create(self)

    @classmethod
    def _at_trail(
        cls, parent: CapBoundary, trail: tuple[str, ...], create: bool = True
    ) -> CapBoundary:
        """Child of ``parent`` at a trail that is already split into segments.

        With ``create=False`` the policy checks and creation hook are skipped,
        which gives a view of a directory that may not exist yet.
        """
        node = cls.__new__(cls)
        if create:
            cls.policy.check_parent(parent)
        node._attach(parent, trail)
        if create:
            cls.policy.after_create(node)
        return node

    def _attach(self, parent: CapBoundary, trail: tuple[str, ...]) -> None:
        cap = parent.cap
        self._trail = trail
        self._link = ChildLink(origin=parent, cap=cap)
        self._real = DirectoryEntry.from_os_path(_join(cap.real.path, trail))

    @classmethod
    def from_cwd(cls) -> CapBoundary:
        if not cls.policy.allows_cwd:
            fail(f"{cls.__name__}.from_cwd() is not supported.", kind=UnsupportedOperation)
        return cls(cwd())

    def __str__(self) -> str:
        return f"[{type(self).__name__}: {self.path} → {self._real.path}]"

    __repr__ = __str__

    @property
    def is_root(self) -> bool:
        return isinstance(self._link, RootLink)

    @property
    def cap(self) -> CapBoundary:
        if isinstance(self._link, RootLink):
            return self
        return self._link.cap

    @property
    def trail(self) -> tuple[str, ...]:
        return self._trail

    @property
    def path(self) -> str:
        return VIRTUAL_ROOT + "/".join(self._trail)

    @property
    def name(self) -> str:
        if self._trail:
            return self._trail[-1]
        return self._real.name

    @property
    def real(self) -> DirectoryEntry:
        return self._real

    def to_real(self) -> DirectoryEntry:
        return self._real

    @property
    def parent(self) -> CapBoundary | None:
        """The capped directory one level up, or ``None`` at the cap."""
        if isinstance(self._link, RootLink) or not self._trail:
            return None
        origin = self._link.origin
        if origin.trail == self._trail[:-1]:
            return origin
        return self._link.cap.descend(self._trail[:-1])

    def descend(self, trail: tuple[str, ...]) -> CapBoundary:
        """Node of this family at a cap-relative trail. Nothing is created."""
        if not trail:
            return self.cap
        return type(self)._at_trail(self.cap, tuple(trail), create=False)

    def walk_up(self) -> Iterator[CapBoundary]:
        """Yield this directory and its capped ancestors, ending at the cap."""
        node: CapBoundary | None = self
        while node is not None:
            yield node
            node = node.parent

    def get_directory(self, path: str) -> CapBoundary:
        return type(self)(path, self)

    def get_file(self, path: str) -> VirtualFileEntry:
        return VirtualFileEntry(path, self)

    async def exists(self) -> bool:
        return await self._real.exists()

    async def has_file(self, name: str) -> bool:
        return await self.get_file(name).exists()

    async def has_directory(self, name: str) -> bool:
        trail = clamp_segments(self._trail, name)
        real = DirectoryEntry.from_os_path(_join(self.cap.real.path, trail))
        return await real.exists()

    async def assure_exists(self, parents: bool = False, mode: int = 0o777) -> None:
        await self._real.assure_exists(parents=parents, mode=mode)

    async def read(self, pattern: str | None = None) -> Listing:
        """List contents as capped directories and virtual files."""
        return self._rewrap(await self._real.read(pattern))

    async def glob(self, pattern: str = "**/*") -> Listing:
        return self._rewrap(await self._real.glob(pattern))

    async def delete(self) -> None:
        """Delete this directory. Only empty directories can be deleted."""
        await self._real.delete()

    async def remove(self) -> None:
        """Recursively delete this directory and everything below it."""
        self.policy.check_remove(self)
        listing = await self.read()
        for directory in listing.directories:
            await directory.remove()
        for file in listing.files:
            await file.delete()
        await self.delete()
        logger.debug("Removed %s", self._real.path)

    def _rewrap(self, listing: Listing) -> Listing:
        files: list[VirtualFileEntry] = []
        directories: list[CapBoundary] = []
        base = self._real.path

        # listed names are taken as-is, never parsed as fragments
        for directory in listing.directories:
            relative = _inside(base, directory.path)
            if relative is not None:
                directories.append(type(self)._at_trail(self, self._trail + relative))
        for file in listing.files:
            relative = _inside(base, file.path)
            if relative is not None:
                files.append(VirtualFileEntry.at_trail(self, self._trail + relative))
        return Listing(files=files, directories=directories)


class TempBoundary(CapBoundary):
    """A capped tree inside the OS temp directory.

    ``TempBoundary()`` caps the temp directory itself. ``TempBoundary(name)``
    creates ``<tmp>/<name>-<SUFFIX>`` with a random suffix, and
    ``TempBoundary(fragment, parent)`` derives a child of another temp
    boundary. Every constructed instance exists on disk; parent views do not
    create anything.
    """

    policy: ClassVar[BoundaryPolicy] = TempPolicy()


def to_real(node: Any) -> DirectoryEntry | FileEntry:
    """Explicit conversion of a capped node into its uncapped counterpart."""
    if not isinstance(node, (CapBoundary, VirtualFileEntry)):
        raise TypeError(f"Expected a capped node, got {type(node).__name__}")
    return node.real


def _join(anchor: str, trail: tuple[str, ...]) -> str:
    if not trail:
        return anchor
    return os.path.join(anchor, *trail)


def _inside(base: str, candidate: str) -> tuple[str, ...] | None:
    if not path_contains(base, candidate):
        return None
    return tuple(os.path.relpath(candidate, base).split(os.sep))
