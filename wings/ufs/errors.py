"""Error values raised by sandboxed filesystem operations.

The filesystem layer performs I/O inside a base directory and refuses to touch
anything that resolves outside of it. Every failure is reported as a
:class:`PathError` (or :class:`LinkError` for two-path operations) carrying the
operation, the path involved and the underlying cause.
"""

from __future__ import annotations

import errno
import os
from enum import Enum


class ErrorKind(Enum):
    """Well-known causes that errors are normalised into."""

    IS_DIRECTORY = "is a directory"
    NOT_DIRECTORY = "not a directory"
    BAD_PATH_RESOLUTION = "bad path resolution"
    NOT_REGULAR = "not a regular file"
    CLOSED = "file already closed"
    INVALID = "invalid argument"
    EXIST = "file already exists"
    NOT_EXIST = "file does not exist"
    PERMISSION = "permission denied"

    def __str__(self) -> str:
        return self.value


# Errno values that are equivalent to a kind when tested with ``is_error``.
_ERRNO_KINDS: dict[int, ErrorKind] = {
    errno.ENOENT: ErrorKind.NOT_EXIST,
    errno.EEXIST: ErrorKind.EXIST,
    errno.ENOTEMPTY: ErrorKind.EXIST,
    errno.EACCES: ErrorKind.PERMISSION,
    errno.EPERM: ErrorKind.PERMISSION,
}

# Errno values that are replaced by a kind when converted into a PathError.
_ERRNO_CONVERSIONS: dict[int, ErrorKind] = {
    errno.EEXIST: ErrorKind.EXIST,
    errno.EISDIR: ErrorKind.IS_DIRECTORY,
    errno.ENOTDIR: ErrorKind.NOT_DIRECTORY,
    errno.ENOENT: ErrorKind.NOT_EXIST,
    errno.EPERM: ErrorKind.PERMISSION,
    errno.EXDEV: ErrorKind.BAD_PATH_RESOLUTION,
    errno.ELOOP: ErrorKind.BAD_PATH_RESOLUTION,
}


def _describe(err: object) -> str:
    if isinstance(err, int) and not isinstance(err, bool):
        return os.strerror(err)
    return str(err)


def _cause_matches(err: object, kind: ErrorKind) -> bool:
    if err is kind:
        return True
    if isinstance(err, int) and not isinstance(err, bool):
        return _ERRNO_KINDS.get(err) is kind
    if isinstance(err, BaseException):
        return is_error(err, kind)
    return False


class PathError(OSError):
    """An error together with the operation and path that caused it."""

    def __init__(self, op: str, path: str, err: object) -> None:
        super().__init__(f"{op} {path}: {_describe(err)}")
        self.op = op
        self.path = path
        self.err = err
        if isinstance(err, int) and not isinstance(err, bool):
            self.errno = err
        elif isinstance(err, OSError):
            self.errno = err.errno

    def __str__(self) -> str:
        return f"{self.op} {self.path}: {_describe(self.err)}"

    def matches(self, kind: ErrorKind) -> bool:
        """Report whether the underlying cause is equivalent to ``kind``."""
        return _cause_matches(self.err, kind)


class LinkError(OSError):
    """An error from a link, symlink or rename and the two paths involved."""

    def __init__(self, op: str, old: str, new: str, err: object) -> None:
        super().__init__(f"{op} {old} {new}: {_describe(err)}")
        self.op = op
        self.old = old
        self.new = new
        self.err = err
        if isinstance(err, int) and not isinstance(err, bool):
            self.errno = err
        elif isinstance(err, OSError):
            self.errno = err.errno

    def __str__(self) -> str:
        return f"{self.op} {self.old} {self.new}: {_describe(self.err)}"

    def matches(self, kind: ErrorKind) -> bool:
        """Report whether the underlying cause is equivalent to ``kind``."""
        return _cause_matches(self.err, kind)


def is_error(err: BaseException | None, kind: ErrorKind) -> bool:
    """Report whether ``err`` or any error it wraps is equivalent to ``kind``."""
    seen: set[int] = set()
    current: BaseException | None = err
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, (PathError, LinkError)):
            if current.matches(kind):
                return True
        elif isinstance(current, OSError) and current.errno is not None:
            if _ERRNO_KINDS.get(current.errno) is kind:
                return True
        current = current.__cause__
    return False


def errno_to_path_error(errno_value: int, op: str, path: str) -> PathError:
    """Convert an errno value into a PathError with a normalised cause."""
    return PathError(op, path, _ERRNO_CONVERSIONS.get(errno_value, errno_value))


def _bare_errno(err: BaseException) -> int | None:
    if isinstance(err, OSError) and not isinstance(err, (PathError, LinkError)):
        return err.errno
    return None


def ensure_path_error(
    err: BaseException | None, op: str, path: str
) -> BaseException | None:
    """Return ``err`` as a PathError; ``op`` and ``path`` are used only if it is not one already."""
    if err is None:
        return None
    if isinstance(err, PathError):
        if isinstance(err.err, int) and not isinstance(err.err, bool):
            return errno_to_path_error(err.err, err.op, err.path)
        return err
    code = _bare_errno(err)
    if code is not None:
        return errno_to_path_error(code, op, path)
    return PathError(op, path, err)


def convert_error_type(err: BaseException | None) -> BaseException | None:
    """Normalise errno-carrying errors into consistent PathError values."""
    if err is None:
        return None
    if isinstance(err, PathError):
        if isinstance(err.err, int) and not isinstance(err.err, bool):
            return errno_to_path_error(err.err, err.op, err.path)
        return err
    if _bare_errno(err) is not None:
        return PathError("!(UNKNOWN)", "!(UNKNOWN)", err)
    return err