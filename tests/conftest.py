"""Shared test fixtures and utilities."""

from pathlib import Path
from typing import Dict

import pytest

from mark_files.core import FileRecord


@pytest.fixture(autouse=True)
def isolated_lock_dir(tmp_path, monkeypatch):
    """Keep run lock files out of the real user cache directory."""
    lock_dir = tmp_path / "locks"
    monkeypatch.setattr("mark_files.lock.lock_dir", lambda: lock_dir)
    return lock_dir


@pytest.fixture
def source_dir(tmp_path):
    """Empty directory to snapshot."""
    source = tmp_path / "source"
    source.mkdir()
    return source


@pytest.fixture
def write_file(source_dir):
    """Factory fixture to write files relative to source_dir."""
    def _write(path: str, content: str = "test content") -> Path:
        file_path = source_dir / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)
        return file_path
    return _write


class FakeProvider:
    """Hash/stat provider answering from a table keyed by file name."""

    def __init__(self, records: Dict[str, FileRecord]):
        self.records = dict(records)
        self.calls = []

    def __call__(self, path: Path) -> FileRecord:
        self.calls.append(path)
        try:
            return self.records[path.name]
        except KeyError:
            raise FileNotFoundError(2, "No such file", str(path))


class RecordingSetter:
    """Timestamp setter that records calls instead of touching files."""

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)

    def __call__(self, path: Path, ctime=None, mtime=None) -> None:
        if path.name in self.fail_on:
            raise PermissionError(13, "Permission denied", str(path))
        self.calls.append((path.name, ctime, mtime))


@pytest.fixture
def make_provider():
    return FakeProvider


@pytest.fixture
def make_setter():
    return RecordingSetter
