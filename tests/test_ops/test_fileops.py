"""Tests for ops/fileops.py -- path, device and copy helpers."""

import os
import threading
from pathlib import Path

import pytest

from file_relocator.errors import CopyFailed, DirectoryUnwritable
from file_relocator.ops.fileops import (
    check_disk_space,
    copy_with_progress,
    ensure_writable_dir,
    is_same_file,
    mount_point,
    real_path,
    remove_partial,
    same_filesystem,
)


class TestRealPath:
    def test_resolves_symlink(self, tmp_path, make_file):
        target = make_file(tmp_path / "target.mkv")
        link = tmp_path / "link.mkv"
        link.symlink_to(target)
        assert real_path(link) == target.resolve()

    def test_missing_returns_none(self, tmp_path):
        assert real_path(tmp_path / "missing.mkv") is None

    def test_under_a_file_returns_none(self, tmp_path, make_file):
        f = make_file(tmp_path / "f")
        assert real_path(f / "child") is None


class TestSameFilesystem:
    def test_same_dir(self, tmp_path, make_file):
        f = make_file(tmp_path / "a.mkv")
        assert same_filesystem(f, tmp_path) is True

    def test_missing_falls_back_to_copy(self, tmp_path):
        assert same_filesystem(tmp_path / "missing", tmp_path) is False


class TestIsSameFile:
    def test_hard_link(self, tmp_path, make_file):
        a = make_file(tmp_path / "a")
        b = tmp_path / "b"
        os.link(a, b)
        assert is_same_file(a, b)

    def test_different_files(self, tmp_path, make_file):
        a = make_file(tmp_path / "a")
        b = make_file(tmp_path / "b")
        assert not is_same_file(a, b)

    def test_missing(self, tmp_path, make_file):
        a = make_file(tmp_path / "a")
        assert not is_same_file(a, tmp_path / "missing")


class TestEnsureWritableDir:
    def test_creates_parents(self, tmp_path):
        d = tmp_path / "x" / "y"
        ensure_writable_dir(d)
        assert d.is_dir()

    def test_parent_is_file(self, tmp_path, make_file):
        blocker = make_file(tmp_path / "blocker")
        with pytest.raises(DirectoryUnwritable):
            ensure_writable_dir(blocker / "sub")

    def test_path_is_file(self, tmp_path, make_file):
        blocker = make_file(tmp_path / "blocker")
        with pytest.raises(DirectoryUnwritable):
            ensure_writable_dir(blocker)

    def test_not_writable(self, tmp_path, monkeypatch):
        monkeypatch.setattr("file_relocator.ops.fileops.os.access", lambda *a: False)
        with pytest.raises(DirectoryUnwritable, match="not writable"):
            ensure_writable_dir(tmp_path)


class TestCheckDiskSpace:
    def test_small_requirement(self, tmp_path):
        assert check_disk_space(tmp_path, 1) is True

    def test_huge_requirement(self, tmp_path):
        assert check_disk_space(tmp_path, 1 << 62) is False


class TestCopyWithProgress:
    def test_copies_content_and_reports(self, tmp_path, make_file):
        src = make_file(tmp_path / "src.bin", content=b"abcdefghij")
        dest = tmp_path / "dest.bin"
        seen = []
        copied = copy_with_progress(src, dest, on_progress=seen.append, chunk_size=4)
        assert copied == 10
        assert dest.read_bytes() == b"abcdefghij"
        assert seen == [4, 8, 10]
        assert src.exists()

    def test_preserves_mtime(self, tmp_path, make_file):
        src = make_file(tmp_path / "src.bin")
        os.utime(src, (1_000_000, 1_000_000))
        dest = tmp_path / "dest.bin"
        copy_with_progress(src, dest)
        assert dest.stat().st_mtime == pytest.approx(1_000_000)

    def test_never_overwrites(self, tmp_path, make_file):
        src = make_file(tmp_path / "src.bin")
        dest = make_file(tmp_path / "dest.bin", content=b"keep")
        with pytest.raises(FileExistsError):
            copy_with_progress(src, dest)
        assert dest.read_bytes() == b"keep"

    def test_cancelled(self, tmp_path, make_file):
        src = make_file(tmp_path / "src.bin", size=100)
        dest = tmp_path / "dest.bin"
        cancelled = threading.Event()
        cancelled.set()
        with pytest.raises(CopyFailed):
            copy_with_progress(src, dest, cancelled=cancelled, chunk_size=10)

    def test_empty_file(self, tmp_path, make_file):
        src = make_file(tmp_path / "empty", content=b"")
        dest = tmp_path / "copy"
        assert copy_with_progress(src, dest) == 0
        assert dest.exists()


class TestRemovePartial:
    def test_removes(self, tmp_path, make_file):
        f = make_file(tmp_path / "partial")
        assert remove_partial(f) is True
        assert not f.exists()

    def test_missing_is_success(self, tmp_path):
        assert remove_partial(tmp_path / "missing") is True

    def test_failure(self, tmp_path, monkeypatch, make_file):
        f = make_file(tmp_path / "partial")

        def fail(self, missing_ok=False):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "unlink", fail)
        assert remove_partial(f) is False


class TestMountPoint:
    def test_is_ancestor_and_mount(self, tmp_path):
        mp = mount_point(tmp_path)
        assert os.path.ismount(mp)
        assert mp == tmp_path or mp in tmp_path.parents
