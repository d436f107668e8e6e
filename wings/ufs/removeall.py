"""Recursive removal of directory trees relative to open directory descriptors.

Everything below the parent directory is addressed through ``*at`` style
calls on descriptors, so a path component swapped for a symlink part-way
through cannot redirect the removal outside the tree being removed.

The filesystem object passed in needs three methods: ``open(name)``, which
returns an open descriptor (or an object with ``fileno()`` and ``close()``)
for ``name``; ``remove(name)``; and ``unlinkat(dirfd, name, flags)``.
"""

from __future__ import annotations

import errno
import os
import stat as _stat
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from wings.ufs.errors import (
    ErrorKind,
    PathError,
    convert_error_type,
    ensure_path_error,
    is_error,
)
from wings.ufs.fileinfo import (
    AT_REMOVEDIR,
    O_CLOEXEC,
    O_NOFOLLOW,
    O_RDONLY,
    ends_with_dot,
    split_path,
)
from wings.ufs.modes import ignoring_eintr

# Number of names read from a directory before trying to remove them.
_BATCH_SIZE = 1024

# Errors from unlinking an entry that may still be a directory to recurse into.
_RECURSE_ERRNOS = frozenset({errno.EISDIR, errno.EPERM, errno.EACCES})


def _cause(err: OSError) -> object:
    """Return the errno of ``err`` if it has one, otherwise the error itself."""
    return err.errno if err.errno is not None else err


@contextmanager
def _descriptor(handle: Any) -> Iterator[int]:
    """Yield the descriptor behind ``handle`` and release it afterwards."""
    if isinstance(handle, int):
        try:
            yield handle
        finally:
            os.close(handle)
    else:
        try:
            yield handle.fileno()
        finally:
            handle.close()


def _batches(names: list[str]) -> Iterator[list[str]]:
    """Yield ``names`` in batches; an empty listing yields one empty batch."""
    if not names:
        yield []
        return
    for start in range(0, len(names), _BATCH_SIZE):
        yield names[start : start + _BATCH_SIZE]


def open_fd_at(dirfd: int, name: str) -> int:
    """Open ``name`` relative to ``dirfd`` read-only, without following symlinks."""
    return ignoring_eintr(
        lambda: os.open(name, O_RDONLY | O_CLOEXEC | O_NOFOLLOW, dir_fd=dirfd)
    )


def _open_parent(fs: Any, parent_dir: str) -> Optional[Any]:
    """Open the parent directory, or return ``None`` if it does not exist."""
    try:
        return fs.open(parent_dir)
    except OSError as err:
        if is_error(err, ErrorKind.NOT_EXIST):
            return None
        raise


def _reraise_with_parent(err: OSError, parent_dir: str, op: str, base: str) -> None:
    if isinstance(err, PathError):
        err.path = f"{parent_dir}/{err.path}"
        converted = convert_error_type(err)
        if converted is err:
            raise err
        raise converted from err
    raise ensure_path_error(err, op, base) from err


def remove_all(fs: Any, path: str) -> None:
    """Remove ``path`` and everything below it.

    A missing path is not an error. Paths whose last element is "." are
    refused with an EINVAL PathError, as rmdir refuses them.
    """
    if path == "":
        return
    if ends_with_dot(path):
        raise PathError("removeall", path, errno.EINVAL)

    try:
        fs.remove(path)
        return
    except OSError as err:
        if is_error(err, ErrorKind.NOT_EXIST):
            return

    parent_dir, base = split_path(path)
    handle = _open_parent(fs, parent_dir)
    if handle is None:
        return
    with _descriptor(handle) as parent_fd:
        try:
            remove_all_from(fs, parent_fd, base)
        except OSError as err:
            _reraise_with_parent(err, parent_dir, "removeallfrom", base)


def remove_contents(fs: Any, path: str) -> None:
    """Remove everything below ``path`` while keeping ``path`` itself.

    A missing path is not an error.
    """
    if path == "":
        return

    parent_dir, base = split_path(path)
    handle = _open_parent(fs, parent_dir)
    if handle is None:
        return
    with _descriptor(handle) as parent_fd:
        try:
            remove_contents_from(fs, parent_fd, base)
        except OSError as err:
            _reraise_with_parent(err, parent_dir, "removecontentsfrom", base)


def remove_contents_from(fs: Any, parent_fd: int, base: str) -> None:
    """Remove every descendant of the directory ``base`` within ``parent_fd``.

    Entries that cannot be removed are left in place; the directory is
    re-read after each round of removals until a round removes nothing
    further.
    """
    while True:
        try:
            fd = open_fd_at(parent_fd, base)
        except OSError:
            # Either the directory vanished or it cannot be opened; in both
            # cases there is nothing more that can be removed from here.
            return

        try:
            try:
                names = os.listdir(fd)
            except OSError as err:
                if is_error(err, ErrorKind.NOT_EXIST):
                    return
                raise PathError("readdirnames", base, _cause(err)) from err

            batch_size = 0
            for batch in _batches(names):
                batch_size = len(batch)
                failures = 0
                for name in batch:
                    try:
                        remove_all_from(fs, fd, name)
                    except OSError:
                        failures += 1
                # Something was removed: start over with a freshly opened
                # directory, since removals may reshuffle its entries.
                if failures != _BATCH_SIZE:
                    break
        finally:
            os.close(fd)

        if batch_size < _BATCH_SIZE:
            return


def remove_all_from(fs: Any, parent_fd: int, base: str) -> None:
    """Remove the entry ``base`` within ``parent_fd``, recursing into directories."""
    try:
        fs.unlinkat(parent_fd, base, 0)
        return
    except OSError as err:
        unlink_err = err
    if is_error(unlink_err, ErrorKind.NOT_EXIST):
        return

    if unlink_err.errno not in _RECURSE_ERRNOS:
        raise PathError("unlinkat", base, _cause(unlink_err)) from unlink_err

    try:
        st = ignoring_eintr(
            lambda: os.stat(base, dir_fd=parent_fd, follow_symlinks=False)
        )
    except OSError as err:
        if is_error(err, ErrorKind.NOT_EXIST):
            return
        raise PathError("fstatat", base, _cause(err)) from err
    if not _stat.S_ISDIR(st.st_mode):
        raise PathError("unlinkat", base, _cause(unlink_err)) from unlink_err

    recurse_err: Optional[OSError] = None
    try:
        remove_contents_from(fs, parent_fd, base)
    except OSError as err:
        recurse_err = err

    try:
        fs.unlinkat(parent_fd, base, AT_REMOVEDIR)
        return
    except OSError as err:
        if is_error(err, ErrorKind.NOT_EXIST):
            return

    if recurse_err is not None:
        raise recurse_err
    raise ensure_path_error(unlink_err, "unlinkat", base) from unlink_err