import os

import pytest

from wings.ufs.fileinfo import (
    MODE_DIR,
    MODE_PERM,
    MODE_SYMLINK,
    MODE_TYPE,
    FileMode,
    basename,
    ends_with_dot,
    file_info_from_stat,
    split_path,
)


def test_file_mode_string_for_regular_file():
    assert str(FileMode(0o644)) == "-rw-r--r--"


def test_file_mode_string_for_directory():
    assert str(FileMode(MODE_DIR | 0o755)) == "drwxr-xr-x"


def test_file_mode_predicates():
    directory = FileMode(MODE_DIR | 0o750)
    assert directory.is_dir()
    assert not directory.is_regular()
    assert directory.perm() == 0o750
    assert directory.type() == MODE_DIR

    regular = FileMode(0o600)
    assert regular.is_regular()
    assert not regular.is_dir()
    assert regular.type() == 0


def test_file_mode_bit_operations_keep_type():
    combined = FileMode(0o644) | MODE_SYMLINK
    assert isinstance(combined, FileMode)
    assert (combined & MODE_TYPE) == MODE_SYMLINK
    assert (combined & MODE_PERM) == 0o644


def test_file_info_for_regular_file(tmp_path):
    target = tmp_path / "data.bin"
    payload = b"some bytes here"
    target.write_bytes(payload)
    os.chmod(target, 0o640)

    info = file_info_from_stat(os.lstat(target), str(target))
    assert info.name == "data.bin"
    assert info.size == len(payload)
    assert info.mode.perm() == 0o640
    assert info.mode.is_regular()
    assert not info.is_dir()
    assert int(info.mod_time.timestamp()) == int(os.lstat(target).st_mtime)


def test_file_info_for_directory(tmp_path):
    directory = tmp_path / "nested"
    directory.mkdir()
    info = file_info_from_stat(os.lstat(directory), str(directory) + "/")
    assert info.name == "nested"
    assert info.is_dir()
    assert info.mode.type() == MODE_DIR


def test_file_info_for_symlink(tmp_path):
    link = tmp_path / "link"
    os.symlink(tmp_path, link)
    info = file_info_from_stat(os.lstat(link), str(link))
    assert info.mode.type() == MODE_SYMLINK
    assert not info.is_dir()


@pytest.mark.parametrize(
    "name, expected",
    [
        ("a/b/", "b"),
        ("a//b", "b"),
        ("file", "file"),
        ("/", "/"),
        ("", ""),
    ],
)
def test_basename(name, expected):
    assert basename(name) == expected


@pytest.mark.parametrize(
    "path, expected",
    [
        (".", True),
        ("a/.", True),
        ("a.", False),
        ("a/b", False),
        ("", False),
    ],
)
def test_ends_with_dot(path, expected):
    assert ends_with_dot(path) is expected


@pytest.mark.parametrize(
    "path, expected",
    [
        ("file", (".", "file")),
        ("/file", ("/", "file")),
        ("dir/file", ("dir", "file")),
        ("dir/sub/file/", ("dir/sub", "file")),
        ("//dir/file", ("/dir", "file")),
        ("", (".", "")),
    ],
)
def test_split_path(path, expected):
    assert split_path(path) == expected


def test_split_path_parts_rejoin():
    parent, base = split_path("x/y/z")
    assert parent + "/" + base == "x/y/z"
    assert basename("x/y/z") == base