"""File modes, file information and path helpers for the sandboxed filesystem."""

from __future__ import annotations

import os
import stat as _stat
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

# Mode type bits, in the most significant bits of a FileMode.
MODE_DIR = 1 << 31
MODE_APPEND = 1 << 30
MODE_EXCLUSIVE = 1 << 29
MODE_TEMPORARY = 1 << 28
MODE_SYMLINK = 1 << 27
MODE_DEVICE = 1 << 26
MODE_NAMED_PIPE = 1 << 25
MODE_SOCKET = 1 << 24
MODE_SETUID = 1 << 23
MODE_SETGID = 1 << 22
MODE_CHAR_DEVICE = 1 << 21
MODE_STICKY = 1 << 20
MODE_IRREGULAR = 1 << 19

MODE_TYPE = (
    MODE_DIR
    | MODE_SYMLINK
    | MODE_NAMED_PIPE
    | MODE_SOCKET
    | MODE_DEVICE
    | MODE_CHAR_DEVICE
    | MODE_IRREGULAR
)
MODE_PERM = 0o777

# Open flags.
O_RDONLY = os.O_RDONLY
O_WRONLY = os.O_WRONLY
O_RDWR = os.O_RDWR
O_APPEND = os.O_APPEND
O_CREATE = os.O_CREAT
O_EXCL = os.O_EXCL
O_SYNC = os.O_SYNC
O_TRUNC = os.O_TRUNC
O_DIRECTORY = os.O_DIRECTORY
O_NOFOLLOW = os.O_NOFOLLOW
O_CLOEXEC = os.O_CLOEXEC
O_LARGEFILE = getattr(os, "O_LARGEFILE", 0)

# *at() flags.
AT_SYMLINK_NOFOLLOW = 0x100
AT_REMOVEDIR = 0x200
AT_EMPTY_PATH = 0x1000

_TYPE_CHARS = "dalTLDpSugct?"
_PERM_CHARS = "rwxrwxrwx"


class FileMode(int):
    """A file's mode and permission bits, portable across systems."""

    def __or__(self, other: int) -> FileMode:
        return FileMode(int(self) | int(other))

    __ror__ = __or__

    def __and__(self, other: int) -> FileMode:
        return FileMode(int(self) & int(other))

    __rand__ = __and__

    def perm(self) -> FileMode:
        """Return the Unix permission bits."""
        return FileMode(int(self) & MODE_PERM)

    def is_dir(self) -> bool:
        return bool(self & MODE_DIR)

    def is_regular(self) -> bool:
        """Report whether no mode type bits are set."""
        return not self & MODE_TYPE

    def type(self) -> FileMode:
        """Return only the mode type bits."""
        return FileMode(int(self) & MODE_TYPE)

    def __str__(self) -> str:
        kinds = "".join(
            char for i, char in enumerate(_TYPE_CHARS) if self & (1 << (31 - i))
        )
        perms = "".join(
            char if self & (1 << (8 - i)) else "-"
            for i, char in enumerate(_PERM_CHARS)
        )
        return (kinds or "-") + perms

    def __repr__(self) -> str:
        return f"FileMode({str(self)!r})"


@dataclass(frozen=True)
class FileInfo:
    """Information describing a filesystem entry."""

    name: str
    size: int
    mode: FileMode
    mod_time: datetime
    sys: os.stat_result | None = field(default=None, compare=False, repr=False)

    def is_dir(self) -> bool:
        return self.mode.is_dir()


def _mode_from_stat(st_mode: int) -> FileMode:
    mode = st_mode & MODE_PERM
    fmt = _stat.S_IFMT(st_mode)
    if fmt == _stat.S_IFBLK:
        mode |= MODE_DEVICE
    elif fmt == _stat.S_IFCHR:
        mode |= MODE_DEVICE | MODE_CHAR_DEVICE
    elif fmt == _stat.S_IFDIR:
        mode |= MODE_DIR
    elif fmt == _stat.S_IFIFO:
        mode |= MODE_NAMED_PIPE
    elif fmt == _stat.S_IFLNK:
        mode |= MODE_SYMLINK
    elif fmt == _stat.S_IFSOCK:
        mode |= MODE_SOCKET
    if st_mode & _stat.S_ISGID:
        mode |= MODE_SETGID
    if st_mode & _stat.S_ISUID:
        mode |= MODE_SETUID
    if st_mode & _stat.S_ISVTX:
        mode |= MODE_STICKY
    return FileMode(mode)


def file_info_from_stat(st: os.stat_result, name: str) -> FileInfo:
    """Build a FileInfo from a stat result for the entry at ``name``."""
    seconds, nanos = divmod(st.st_mtime_ns, 1_000_000_000)
    mod_time = datetime.fromtimestamp(seconds, tz=timezone.utc) + timedelta(
        microseconds=nanos // 1000
    )
    return FileInfo(
        name=basename(name),
        size=st.st_size,
        mode=_mode_from_stat(st.st_mode),
        mod_time=mod_time,
        sys=st,
    )


def basename(name: str) -> str:
    """Remove trailing slashes and the leading directory name from ``name``."""
    stripped = name.rstrip("/") or name[:1]
    index = stripped.rfind("/", 0, len(stripped) - 1)
    return stripped[index + 1 :] if index >= 0 else stripped


def ends_with_dot(path: str) -> bool:
    """Report whether the final component of ``path`` is "."."""
    return path == "." or (len(path) >= 2 and path[-1] == "." and path[-2] == "/")


def split_path(path: str) -> tuple[str, str]:
    """Return the parent directory and base name of ``path``."""
    if path.startswith("//"):
        path = "/" + path.lstrip("/")
    stripped = path.rstrip("/") or path[:1]
    index = stripped.rfind("/", 0, len(stripped) - 1)
    if index < 0:
        return ".", stripped
    return stripped[:index] or "/", stripped[index + 1 :]