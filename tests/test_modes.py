import errno
import stat

import pytest

from wings.ufs.errors import PathError
from wings.ufs.fileinfo import (
    MODE_DIR,
    MODE_SETGID,
    MODE_SETUID,
    MODE_STICKY,
    MODE_TEMPORARY,
    FileMode,
)
from wings.ufs.modes import ignoring_eintr, syscall_mode


def test_syscall_mode_keeps_permission_bits():
    assert syscall_mode(FileMode(0o755)) == 0o755


def test_syscall_mode_maps_special_bits():
    mode = FileMode(MODE_SETUID | MODE_SETGID | MODE_STICKY | 0o644)
    assert syscall_mode(mode) == stat.S_ISUID | stat.S_ISGID | stat.S_ISVTX | 0o644


def test_syscall_mode_drops_type_bits():
    assert syscall_mode(FileMode(MODE_DIR | 0o700)) == 0o700


def test_syscall_mode_ignores_temporary_bit():
    assert syscall_mode(FileMode(MODE_TEMPORARY | 0o600)) == 0o600


def test_syscall_mode_accepts_plain_int():
    assert syscall_mode(MODE_SETUID | 0o750) == stat.S_ISUID | 0o750


def test_ignoring_eintr_retries_until_success():
    calls = []

    def fn():
        calls.append(1)
        if len(calls) < 3:
            raise OSError(errno.EINTR, "interrupted")
        return "done"

    assert ignoring_eintr(fn) == "done"
    assert len(calls) == 3


def test_ignoring_eintr_propagates_other_errors():
    def fn():
        raise OSError(errno.ENOENT, "missing")

    with pytest.raises(FileNotFoundError):
        ignoring_eintr(fn)


def test_ignoring_eintr_does_not_retry_wrapped_errno():
    calls = []

    def fn():
        calls.append(1)
        raise PathError("open", "x", errno.EINTR)

    with pytest.raises(PathError):
        ignoring_eintr(fn)
    assert len(calls) == 1