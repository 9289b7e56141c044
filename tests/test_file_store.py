# tests/test_file_store.py
import os

import pytest

from common.api_error import PersistenceError, StorageUnavailableError
from hospital_scheduler.store import FileStore


def test_open_creates_directory(tmp_path):
    files = FileStore.open(tmp_path / "nested" / "data")
    assert files.directory.is_dir()


def test_open_rejects_a_file(tmp_path):
    target = tmp_path / "not-a-dir"
    target.write_text("x")
    with pytest.raises(StorageUnavailableError):
        FileStore.open(target)


def test_missing_file_reads_empty(tmp_path):
    assert FileStore.open(tmp_path).read_lines("users.txt") == []


def test_write_then_read_preserves_order(tmp_path):
    files = FileStore.open(tmp_path)
    files.write_lines("appts.txt", ["2|b", "1|a", "3|c"])
    assert files.read_lines("appts.txt") == ["2|b", "1|a", "3|c"]
    assert (tmp_path / "appts.txt").read_text() == "2|b\n1|a\n3|c\n"


def test_write_replaces_previous_contents(tmp_path):
    files = FileStore.open(tmp_path, fsync=True)
    files.write_lines("users.txt", ["a", "b", "c"])
    files.write_lines("users.txt", ["z"])
    assert files.read_lines("users.txt") == ["z"]


def test_crlf_lines_are_normalized(tmp_path):
    (tmp_path / "users.txt").write_bytes(b"a|1\r\nb|2\r\n")
    assert FileStore.open(tmp_path).read_lines("users.txt") == ["a|1", "b|2"]


def test_failed_replace_keeps_old_file_and_temp_is_removed(tmp_path, monkeypatch):
    files = FileStore.open(tmp_path)
    files.write_lines("users.txt", ["old"])

    def broken_replace(src, dst):
        raise OSError("disk full")

    monkeypatch.setattr(os, "replace", broken_replace)
    with pytest.raises(PersistenceError, match="disk full"):
        files.write_lines("users.txt", ["new"])

    monkeypatch.undo()
    assert files.read_lines("users.txt") == ["old"]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["users.txt"]


def test_unreadable_file_raises(tmp_path):
    (tmp_path / "users.txt").write_bytes(b"\xff\xfe\xfa")
    with pytest.raises(PersistenceError):
        FileStore.open(tmp_path).read_lines("users.txt")
