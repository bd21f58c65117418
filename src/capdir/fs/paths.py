"""Pure path-string helpers.

Nothing in this module touches the filesystem. Paths are compared segment by
segment, so ``/srv/app`` never contains ``/srv/application``.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

from capdir.core.errors import ConstructionError

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


@dataclass(frozen=True)
class PathParts:
    root: str
    dir: str
    base: str
    name: str
    ext: str


def fix_slashes(path_name: str) -> str:
    if not path_name:
        return path_name
    return os.path.normpath(path_name.replace("\\", "/"))


def path_to_uri(path_name: str) -> str:
    try:
        return Path(path_name).absolute().as_uri()
    except ValueError:
        return path_name


def uri_to_path(uri: str) -> str:
    parsed = urlparse(uri)
    if parsed.scheme != "file":
        return uri
    return url2pathname(unquote(parsed.path))


def cwd() -> str:
    return os.getcwd()


def split_segments(path_name: str) -> list[str]:
    """Split on either separator, dropping empty and ``.`` segments."""
    return [part for part in re.split(r"[\\/]+", path_name) if part not in {"", "."}]


def looks_absolute(path_name: str) -> bool:
    return path_name.startswith(("/", "\\")) or bool(_DRIVE_RE.match(path_name))


def strip_root(path_name: str) -> str:
    """Drop a leading drive and root marker, leaving a relative remainder."""
    stripped = _DRIVE_RE.sub("", path_name, count=1)
    return stripped.lstrip("/\\")


def clamp_segments(base: tuple[str, ...], fragment: str) -> tuple[str, ...]:
    """Apply ``fragment`` to the trail ``base`` without ever leaving it.

    An absolute fragment restarts from the empty trail instead of the real
    filesystem root, and ``..`` stops at the empty trail.
    """
    if looks_absolute(fragment):
        segments: list[str] = []
        fragment = strip_root(fragment)
    else:
        segments = list(base)

    for part in split_segments(fragment):
        if part == "..":
            if segments:
                segments.pop()
            continue
        segments.append(part)
    return tuple(segments)


def path_parts(path_name: str) -> PathParts:
    if not path_name:
        raise ConstructionError("Path must be a non-empty string.")
    drive, rest = os.path.splitdrive(path_name)
    root = drive + (os.sep if rest.startswith(("/", os.sep)) else "")
    base = os.path.basename(path_name)
    name, ext = os.path.splitext(base)
    return PathParts(
        root=root,
        dir=os.path.dirname(path_name),
        base=base,
        name=name,
        ext=ext,
    )


def merge_overlapping_paths(path1: str, path2: str, sep: str = os.sep) -> str:
    """Join two paths without repeating the segments they share.

    The longest run of trailing segments of ``path1`` that also starts
    ``path2`` is written once::

        >>> merge_overlapping_paths("projects/toolkit", "toolkit/src", "/")
        'projects/toolkit/src'

    Without an overlap the paths are concatenated.
    """
    if not path1:
        return path2
    if not path2:
        return path1

    first = [part for part in path1.split(sep) if part and part != "."]
    second = [part for part in path2.split(sep) if part and part != "."]
    if first == second:
        return path1

    overlap = 0
    for size in range(min(len(first), len(second)), 0, -1):
        if first[-size:] == second[:size]:
            overlap = size
            break

    merged = sep.join(first + second[overlap:])
    if path1.startswith(sep):
        return sep + merged
    return merged


def resolve_path(from_path: str, to_path: str) -> str:
    raw_to = to_path.strip()
    source = fix_slashes(from_path.strip())
    target = fix_slashes(raw_to)

    if source == target:
        return source
    if not source:
        return target
    if not target:
        return source

    if os.path.isabs(target):
        return os.path.abspath(target)

    navigation = raw_to.replace("\\", "/")
    if navigation in {".", ".."} or navigation.startswith(("./", "../")):
        return os.path.abspath(os.path.join(source, target))

    return os.path.normpath(merge_overlapping_paths(source, target))


def relative_or_absolute_path(from_path: str, to_path: str) -> str:
    """Relative path from ``from_path`` to ``to_path``, never escaping upward.

    When ``to_path`` is outside ``from_path`` its absolute path is returned.
    """
    absolute = os.path.abspath(to_path)
    try:
        relative = os.path.relpath(absolute, os.path.abspath(from_path))
    except ValueError:
        # different drives
        return absolute
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        return absolute
    return relative


def relative_or_absolute(from_entry, to_entry) -> str:
    if getattr(from_entry, "is_directory", False):
        base = from_entry.path
    else:
        base = getattr(from_entry, "parent_path", None) or os.path.dirname(
            from_entry.path
        )
    return relative_or_absolute_path(base, to_entry.path)


def path_contains(container: str, candidate: str) -> bool:
    """Strict descendant test; a path does not contain itself."""
    if not container or not candidate:
        raise ConstructionError("Container and candidate must be non-empty paths.")

    container = os.path.normpath(container)
    candidate = os.path.normpath(candidate)
    if container == candidate:
        return False
    prefix = container if container.endswith(os.sep) else container + os.sep
    return candidate.startswith(prefix)


def to_relative_path(from_path: str, to_path: str, sep: str = os.sep) -> str | None:
    """Portion of ``to_path`` after the last segment of ``from_path``.

    >>> to_relative_path("/projects/toolkit", "/projects/toolkit/src", "/")
    'src'
    """
    if from_path == to_path:
        return ""

    from_trail = from_path.rstrip(sep).split(sep)
    to_trail = to_path.split(sep)
    anchor = from_trail[-1]
    if anchor not in to_trail:
        return None
    index = to_trail.index(anchor)
    return sep.join(to_trail[index + 1 :])


def get_common_root_path(from_path: str, to_path: str, sep: str = os.sep) -> str | None:
    if not from_path or not to_path:
        raise ConstructionError("Both paths must be non-empty strings.")
    if from_path == to_path:
        return from_path

    common: list[str] = []
    for left, right in zip(from_path.split(sep), to_path.split(sep)):
        if left != right:
            break
        common.append(left)

    if not any(common):
        return None
    return sep.join(common)
