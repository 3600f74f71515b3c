"""End-to-end tests for a full run (enumerate, scan, restore, persist)."""

import json
import os
import sys

import pytest

from mark_files.config import RunConfig
from mark_files.core import FileRecord
from mark_files.errors import EmptyScanError, EnumerationError, PersistError, SnapshotFormatError
from mark_files.ops import run
from mark_files.snapshot import Snapshot, load_snapshot, save_snapshot
from mark_files.timestamps import read_timestamps


@pytest.fixture
def output(tmp_path):
    return tmp_path / "marks.json"


def persisted(path):
    return load_snapshot(path).files


class TestRecord:

    def test_records_every_file(self, source_dir, write_file, output):
        write_file("a.txt", "alpha")
        write_file("docs/b.txt", "beta")

        report = run(source_dir, output)

        assert report.scanned == 2
        assert report.restore is None
        assert set(persisted(output)) == {"a.txt", "docs/b.txt"}

    def test_record_leaves_timestamps_alone(self, source_dir, write_file, output, make_setter):
        write_file("a.txt")
        setter = make_setter()

        run(source_dir, output, setter=setter)

        assert setter.calls == []

    def test_rerun_without_changes_is_identical(self, source_dir, write_file, output):
        write_file("a.txt", "alpha")
        write_file("b/c.txt", "gamma")

        run(source_dir, output)
        first = output.read_text()
        run(source_dir, output, restore=True)

        assert output.read_text() == first

    def test_output_inside_source_is_not_recorded(self, source_dir, write_file):
        write_file("a.txt")
        output = source_dir / "marks.json"

        run(source_dir, output)
        run(source_dir, output)

        assert set(persisted(output)) == {"a.txt"}

    @pytest.mark.skipif(sys.platform == "darwin", reason="macOS folds unicode forms in file names")
    def test_names_differing_in_unicode_form(self, source_dir, write_file, output):
        write_file("cafe\u0301.txt", "decomposed")
        write_file("caf\u00e9.txt", "composed")

        report = run(source_dir, output)

        assert report.scanned == 2
        assert set(persisted(output)) == {"cafe\u0301.txt", "caf\u00e9.txt"}

    @pytest.mark.skipif(sys.platform == "win32", reason="backslash is a separator on Windows")
    def test_backslash_in_file_name_restored(self, source_dir, write_file, output):
        f = write_file("a\\b.txt", "alpha")
        os.utime(f, (1_000, 1_000))
        run(source_dir, output)

        os.utime(f, (1_000, 2_000))
        run(source_dir, output, restore=True)

        assert read_timestamps(f)[1] == 1_000
        assert set(persisted(output)) == {"a\\b.txt"}

    def test_hidden_files_skipped_by_default(self, source_dir, write_file, output):
        write_file("a.txt")
        write_file(".cache/x.bin")

        run(source_dir, output)

        assert set(persisted(output)) == {"a.txt"}

    def test_config_from_source_directory(self, source_dir, write_file, output):
        write_file("a.txt")
        write_file("b.log")
        write_file(".mark-files.yaml", "ignore:\n  - '*.log'\n")

        run(source_dir, output)

        assert set(persisted(output)) == {"a.txt"}

    def test_unreadable_file_is_skipped(self, source_dir, write_file, output, make_provider):
        write_file("a.txt")
        write_file("b.txt")
        provider = make_provider({"a.txt": FileRecord(sha="aaa", ctime=1, mtime=2)})

        report = run(source_dir, output, provider=provider)

        assert report.scanned == 1
        assert [f.path for f in report.scan_failures] == ["b.txt"]
        assert report.has_warnings
        assert set(persisted(output)) == {"a.txt"}


class TestRestore:

    def test_restores_drifted_mtime_only(self, source_dir, write_file, output,
                                         make_provider, make_setter):
        save_snapshot(Snapshot(files={
            "A": FileRecord(sha="aaa", ctime=100, mtime=200),
            "B": FileRecord(sha="bbb", ctime=300, mtime=300),
        }), output)
        write_file("A")
        write_file("C")
        provider = make_provider({
            "A": FileRecord(sha="aaa", ctime=100, mtime=250),
            "C": FileRecord(sha="ccc", ctime=400, mtime=400),
        })
        setter = make_setter()

        report = run(source_dir, output, restore=True, provider=provider, setter=setter)

        assert setter.calls == [("A", None, 200)]
        assert persisted(output) == {
            "A": FileRecord(sha="aaa", ctime=100, mtime=200),
            "C": FileRecord(sha="ccc", ctime=400, mtime=400),
        }
        assert [a.path for a in report.restore.restored] == ["A"]
        assert report.changes.added == 1
        assert report.changes.deleted == 1
        assert report.changes.drifted == 1

    def test_modified_content_is_not_restored(self, source_dir, write_file, output,
                                              make_provider, make_setter):
        save_snapshot(Snapshot(files={"A": FileRecord(sha="old", ctime=1, mtime=2)}), output)
        write_file("A")
        provider = make_provider({"A": FileRecord(sha="new", ctime=5, mtime=6)})
        setter = make_setter()

        run(source_dir, output, restore=True, provider=provider, setter=setter)

        assert setter.calls == []
        assert persisted(output)["A"] == FileRecord(sha="new", ctime=5, mtime=6)

    def test_restore_failure_keeps_observed_values(self, source_dir, write_file, output,
                                                   make_provider, make_setter):
        save_snapshot(Snapshot(files={
            "A": FileRecord(sha="aaa", ctime=1, mtime=2),
            "B": FileRecord(sha="bbb", ctime=1, mtime=2),
        }), output)
        write_file("A")
        write_file("B")
        provider = make_provider({
            "A": FileRecord(sha="aaa", ctime=1, mtime=9),
            "B": FileRecord(sha="bbb", ctime=1, mtime=9),
        })

        report = run(source_dir, output, restore=True, provider=provider,
                     setter=make_setter(fail_on={"A"}))

        assert [f.path for f in report.restore.failures] == ["A"]
        assert persisted(output)["A"].mtime == 9
        assert persisted(output)["B"].mtime == 2

    def test_missing_baseline_restores_nothing(self, source_dir, write_file, output, make_setter):
        write_file("a.txt")
        setter = make_setter()

        report = run(source_dir, output, restore=True, setter=setter)

        assert setter.calls == []
        assert report.restore.restored == []
        assert output.exists()

    def test_real_mtime_restored(self, source_dir, write_file, output):
        f = write_file("a.txt", "alpha")
        os.utime(f, (1_000_000_000, 1_000_000_000))
        run(source_dir, output)

        os.utime(f, (1_000_000_000, 1_600_000_000))
        report = run(source_dir, output, restore=True)

        assert read_timestamps(f)[1] == 1_000_000_000
        assert persisted(output)["a.txt"].mtime == 1_000_000_000
        assert [a.path for a in report.restore.restored] == ["a.txt"]

    def test_decomposed_unicode_name_restored(self, source_dir, write_file, output):
        # Name as written by macOS: "e" followed by a combining acute accent
        f = write_file("cafe\u0301.txt", "alpha")
        os.utime(f, (1_000, 1_000))
        run(source_dir, output)

        os.utime(f, (1_000, 2_000))
        report = run(source_dir, output, restore=True)

        assert read_timestamps(f)[1] == 1_000
        assert [a.path for a in report.restore.restored] == [f.name]
        assert not any("No such file" in failure.error for failure in report.restore.failures)

    def test_legacy_baseline_with_absolute_names(self, source_dir, write_file, output,
                                                 make_provider, make_setter):
        root = source_dir.resolve().as_posix()
        output.write_text(json.dumps({
            f"{root}/A": {"sha": "aaa", "ctime": 100, "mtime": 200},
        }))
        write_file("A")
        provider = make_provider({"A": FileRecord(sha="aaa", ctime=100, mtime=250)})
        setter = make_setter()

        run(source_dir, output, restore=True, provider=provider, setter=setter)

        assert setter.calls == [("A", None, 200)]
        assert "files" in json.loads(output.read_text())


class TestFatalErrors:

    def test_empty_directory(self, source_dir, output):
        with pytest.raises(EmptyScanError):
            run(source_dir, output)
        assert not output.exists()

    def test_empty_directory_keeps_previous_snapshot(self, source_dir, output):
        save_snapshot(Snapshot(files={"A": FileRecord(sha="aaa", ctime=1, mtime=2)}), output)
        before = output.read_text()

        with pytest.raises(EmptyScanError):
            run(source_dir, output, restore=True)

        assert output.read_text() == before

    def test_every_file_failing(self, source_dir, write_file, output, make_provider):
        write_file("a.txt")
        write_file("b.txt")

        with pytest.raises(EmptyScanError) as exc:
            run(source_dir, output, provider=make_provider({}))

        assert exc.value.failed == 2
        assert not output.exists()

    def test_missing_source(self, tmp_path, output):
        with pytest.raises(EnumerationError):
            run(tmp_path / "missing", output)

    def test_unparsable_baseline(self, source_dir, write_file, output):
        write_file("a.txt")
        output.write_text("{not json")

        with pytest.raises(SnapshotFormatError):
            run(source_dir, output, restore=True)

        assert output.read_text() == "{not json"

    def test_unwritable_output(self, source_dir, write_file, tmp_path):
        write_file("a.txt")
        output = tmp_path / "taken"
        output.mkdir()

        with pytest.raises(PersistError):
            run(source_dir, output)

    def test_workers_from_config(self, source_dir, write_file, output, monkeypatch):
        for i in range(5):
            write_file(f"f{i}.txt", str(i))
        seen = {}

        import mark_files.ops as ops_module
        real_scan = ops_module.scan_files

        def spy(*args, **kwargs):
            result = real_scan(*args, **kwargs)
            seen["workers"] = result.workers
            return result

        monkeypatch.setattr(ops_module, "scan_files", spy)
        run(source_dir, output, config=RunConfig(workers=1))

        assert seen["workers"] == 1
