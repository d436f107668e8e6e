# wings

`wings` helps a program work inside a directory tree whose paths it does not
trust. Paths are cleaned and checked against a base directory, opened relative
to descriptors, and the location the kernel actually opened is verified, so
neither `..` segments nor symbolic links can reach outside the base. Anything
that would escape is refused with a `PathError`.

It needs a POSIX system. The check of opened descriptors reads
`/proc/self/fd`, so Linux is the target. Only the standard library is used.

## Modules

- `wings.ufs.sandbox`: `unsafe_path`, `is_path_inside_base`, `openat` and
  `safe_path`. `safe_path(base_path, path, use_openat2=False)` returns a
  `SafePath` holding an open parent-directory descriptor (`dirfd`) and the
  entry name (`name`). Use it with `*at` style calls, and use it as a context
  manager so that its descriptors are closed.
- `wings.ufs.removeall`: `remove_all`, `remove_contents`, `remove_all_from`,
  `remove_contents_from` and `open_fd_at`. These remove directory trees
  through descriptors, so a path component swapped for a symlink part-way
  through cannot redirect the removal.
- `wings.ufs.errors`: `PathError`, `LinkError`, `ErrorKind`, `is_error`,
  `errno_to_path_error`, `ensure_path_error` and `convert_error_type`. They
  map raw `errno` values onto a small set of error kinds.
- `wings.ufs.fileinfo`: `FileMode`, `FileInfo`, `file_info_from_stat`, the
  mode and open-flag constants, and the path helpers `basename`,
  `ends_with_dot` and `split_path`.
- `wings.ufs.modes`: `syscall_mode`, which turns portable mode bits into
  system-call bits, and `ignoring_eintr`, which retries a call that was
  interrupted.
- `wings.ufs.counted`: `CountedWriter` and `CountedReader`, which wrap a file
  or stream and count the bytes that pass through.
- `wings.cli_log`: `CliHandler`, a `logging` handler that writes aligned,
  optionally coloured lines. `level_label` and `format_stacktrace` are also
  available.

## Resolving paths

```python
import os

from wings.ufs.errors import ErrorKind, PathError, is_error
from wings.ufs.fileinfo import file_info_from_stat
from wings.ufs.sandbox import safe_path, unsafe_path

base = "/srv/data/server-1"

print(unsafe_path(base, "/srv/data/server-1/config/../logs"))   # "logs"

with safe_path(base, "config/server.properties") as sp:
    st = os.stat(sp.name, dir_fd=sp.dirfd, follow_symlinks=False)
    print(file_info_from_stat(st, sp.name).size)

try:
    safe_path(base, "../../etc/passwd")
except PathError as err:
    assert is_error(err, ErrorKind.BAD_PATH_RESOLUTION)
```

`safe_path` raises a `PathError` when the parent directory does not exist or
when it resolves outside the base.

## Removing trees

The removal functions take any object with three methods: `open(name)`,
`remove(name)` and `unlinkat(dirfd, name, flags)`. Here is one built on
`safe_path`:

```python
import os

from wings.ufs.fileinfo import AT_REMOVEDIR, O_DIRECTORY, O_RDONLY
from wings.ufs.removeall import remove_all
from wings.ufs.sandbox import openat, safe_path


class Tree:
    def __init__(self, base):
        self.base = base

    def open(self, name):
        with safe_path(self.base, name) as sp:
            return openat(self.base, sp.dirfd, sp.name, O_DIRECTORY | O_RDONLY, 0)

    def remove(self, name):
        with safe_path(self.base, name) as sp:
            try:
                os.unlink(sp.name, dir_fd=sp.dirfd)
            except IsADirectoryError:
                os.rmdir(sp.name, dir_fd=sp.dirfd)

    def unlinkat(self, dirfd, name, flags):
        if flags & AT_REMOVEDIR:
            os.rmdir(name, dir_fd=dirfd)
        else:
            os.unlink(name, dir_fd=dirfd)


remove_all(Tree("/srv/data/server-1"), "cache")
```

A missing path is not an error. A path whose last element is `.` is refused
with an `EINVAL` `PathError`. `remove_contents` empties a directory and keeps
the directory itself.

## Counting bytes

```python
import io

from wings.ufs.counted import CountedWriter

with open("out.bin", "wb") as f:
    writer = CountedWriter(f)
    writer.write(b"hello")
    writer.read_from(io.BytesIO(b" world"))
    print(writer.bytes_written())   # 11
```

## Console logging

```python
import logging
import sys

from wings.cli_log import CliHandler

log = logging.getLogger("app")
log.addHandler(CliHandler(sys.stderr, True))
log.setLevel(logging.DEBUG)
log.info("configuring system crons", extra={"fields": {"interval": "60s"}})
```

Fields are printed sorted by name. A `source` field is not printed. When an
`error` field holds an exception, its stack trace follows the line. Colours
are used only when the stream is a terminal.

## What it does not do

There is no ready-made filesystem object. Creating, stat-ing, renaming,
symlinking, changing the mode or owner of entries and creating directories
recursively are left to the caller, who combines `safe_path` with the `os`
functions, as the examples above show. The package does not track disk usage
against a quota, and it has no directory walker.

## Tests

The tests use pytest, which the `test` extra installs.