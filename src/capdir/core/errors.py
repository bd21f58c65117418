"""Error taxonomy for capped directory trees."""

from __future__ import annotations

import errno as errno_codes
from typing import NoReturn


class CapdirError(Exception):
    """Base class for every error raised by capdir."""


class ConstructionError(CapdirError, ValueError):
    """A name or path fragment cannot be used to build an entry."""


class LineageError(CapdirError):
    """A parent does not belong to the family or tree it claims."""


class UnsupportedOperation(CapdirError):
    """The operation is not available for this boundary family."""


class DataFormatError(CapdirError, ValueError):
    """File content cannot be parsed as the requested format."""


class SchemaError(CapdirError, ValueError):
    def __init__(self, message: str, report: str = "") -> None:
        super().__init__(f"{message}\n{report}" if report else message)
        self.report = report


class FilesystemError(CapdirError, OSError):
    """An OS call failed for a specific path."""

    def __init__(
        self, message: str, path: str | None = None, errno: int | None = None
    ) -> None:
        CapdirError.__init__(self, message)
        self.message = message
        self.path = path
        self.errno = errno

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} (path={self.path})"
        return self.message

    @classmethod
    def from_os_error(cls, message: str, exc: OSError) -> FilesystemError:
        target = NotEmptyError if exc.errno == errno_codes.ENOTEMPTY else cls
        return target(
            f"{message}: {exc.strerror or exc}", path=exc.filename, errno=exc.errno
        )


class NotEmptyError(FilesystemError):
    """A non-recursive delete hit a directory that still has entries."""


def fail(
    message: str,
    cause: BaseException | None = None,
    kind: type[CapdirError] = CapdirError,
) -> NoReturn:
    raise kind(message) from cause
