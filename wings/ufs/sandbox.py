"""Path resolution that keeps every operation inside a base directory.

Paths handed to the filesystem are untrusted. They are first cleaned and
checked lexically against the base path, then the parent directory is opened
relative to the base and the location the kernel actually opened is verified,
so a symlink cannot be used to escape the sandbox.
"""

from __future__ import annotations

import os
import posixpath
from typing import Iterable, Optional

from wings.ufs.errors import ErrorKind, PathError, ensure_path_error
from wings.ufs.fileinfo import (
    O_CLOEXEC,
    O_DIRECTORY,
    O_LARGEFILE,
    O_NOFOLLOW,
    O_RDONLY,
)
from wings.ufs.modes import syscall_mode


class SafePath:
    """An open directory descriptor and the name of an entry within it.

    ``dirfd`` and ``name`` are meant for ``*at`` style calls. Closing releases
    every descriptor that was opened while resolving the path; it is safe to
    close more than once. Use it as a context manager to close it reliably.
    """

    __slots__ = ("dirfd", "name", "_fds")

    def __init__(self, dirfd: int, name: str, fds: Iterable[int]) -> None:
        self.dirfd = dirfd
        self.name = name
        self._fds = tuple(fds)

    def close(self) -> None:
        fds, self._fds = self._fds, ()
        for fd in fds:
            try:
                os.close(fd)
            except OSError:
                pass

    def __enter__(self) -> SafePath:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"SafePath(dirfd={self.dirfd}, name={self.name!r})"


def is_path_inside_base(base_path: str, path: str) -> bool:
    """Report whether ``path`` lies inside ``base_path``, by prefix alone.

    The path is neither cleaned nor joined with the base.
    """
    return (path.removesuffix("/") + "/").startswith(base_path + "/")


def _clean(path: str) -> str:
    if not path:
        return "."
    cleaned = posixpath.normpath(path)
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned


def unsafe_path(base_path: str, path: str) -> str:
    """Clean ``path`` and return it relative to ``base_path``.

    The result is "." for the base itself. Lexical escapes such as ".." out of
    the base raise a PathError; symlinks are not resolved, so the result still
    needs checking when it is opened.
    """
    relative = path.removeprefix(base_path)
    joined = "/".join(part for part in (base_path, relative) if part)
    resolved = _clean(joined)
    if is_path_inside_base(base_path, resolved):
        resolved = resolved.removeprefix(base_path).removeprefix("/")
        return resolved or "."
    raise PathError("safePath", path, ErrorKind.BAD_PATH_RESOLUTION)


def _open_raw(
    dirfd: Optional[int], name: str, flag: int, mode: int, op: str
) -> int:
    flag |= O_CLOEXEC
    while True:
        try:
            return os.open(name, flag, mode, dir_fd=dirfd)
        except InterruptedError:
            continue
        except BlockingIOError:
            raise
        except OSError as err:
            raise ensure_path_error(err, op, name) from err


def _resolved_fd_path(fd: int) -> str:
    return os.path.realpath(f"/proc/self/fd/{fd}")


def openat(
    base_path: str,
    dirfd: Optional[int],
    name: str,
    flag: int,
    mode: int,
    use_openat2: bool = False,
) -> int:
    """Open ``name`` relative to ``dirfd`` without following a final symlink.

    The location that was actually opened is checked against ``base_path``;
    if it lies outside, the descriptor is closed and a PathError is raised.
    ``use_openat2`` selects the flags and the operation name used in errors.
    """
    flag |= O_NOFOLLOW
    op = "openat2" if use_openat2 else "openat"
    if use_openat2:
        flag |= O_LARGEFILE
    fd = _open_raw(dirfd, name, flag, int(syscall_mode(mode)), op)
    try:
        resolved = _resolved_fd_path(fd)
    except OSError as err:
        os.close(fd)
        raise ensure_path_error(err, op, name) from err
    if not is_path_inside_base(base_path, resolved):
        os.close(fd)
        raise PathError(op, name, ErrorKind.BAD_PATH_RESOLUTION)
    return fd


def safe_path(base_path: str, path: str, use_openat2: bool = False) -> SafePath:
    """Resolve ``path`` into an opened parent directory and an entry name."""
    name = unsafe_path(base_path, path)
    root_fd = _open_raw(None, base_path, O_DIRECTORY | O_RDONLY, 0, "openat")

    directory, _, file = name.rpartition("/")
    if not directory:
        return SafePath(root_fd, file, (root_fd,))

    try:
        dirfd = openat(
            base_path, root_fd, directory, O_DIRECTORY | O_RDONLY, 0, use_openat2
        )
    except BaseException:
        os.close(root_fd)
        raise
    return SafePath(dirfd, file, (dirfd, root_fd))