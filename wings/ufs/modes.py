"""Helpers shared by the POSIX system-call wrappers."""

from __future__ import annotations

import stat as _stat
from typing import Callable, TypeVar

from wings.ufs.fileinfo import MODE_SETGID, MODE_SETUID, MODE_STICKY, FileMode

T = TypeVar("T")


def ignoring_eintr(fn: Callable[[], T]) -> T:
    """Call ``fn`` and repeat the call for as long as it is interrupted (EINTR)."""
    while True:
        try:
            return fn()
        except InterruptedError:
            continue


def syscall_mode(mode: int) -> FileMode:
    """Convert portable mode bits into the bits understood by the system calls."""
    mode = FileMode(mode)
    result = int(mode.perm())
    if mode & MODE_SETUID:
        result |= _stat.S_ISUID
    if mode & MODE_SETGID:
        result |= _stat.S_ISGID
    if mode & MODE_STICKY:
        result |= _stat.S_ISVTX
    # The temporary-file bit has no system-call counterpart.
    return FileMode(result)