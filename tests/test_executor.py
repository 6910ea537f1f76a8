"""Tests for the replication engine."""

import builtins
import os
import threading
from pathlib import Path

import pytest

import handover.backup.executor as executor_module
import handover.backup.scanner as scanner_module
from handover.backup.categories import FileCategory, expand_selection
from handover.backup.executor import ReplicationEngine
from handover.backup.models import ReplicationRequest
from handover.config import ReplicationConfig
from handover.errors import DirectoryCreateError, PathOutsideScopeError, SourceRootError
from handover.util.paths import ensure_directory


def _request(source_root: Path, destination_root: Path, *categories: FileCategory) -> ReplicationRequest:
    return ReplicationRequest(
        source_root=source_root,
        destination_root=destination_root,
        selected_categories=frozenset(categories),
        mirror_root=source_root,
    )


class TestEnsureDirectory:
    """Test destination directory creation."""

    def test_idempotent(self, tmp_path):
        """Creating the same directory twice is not an error."""
        target = tmp_path / "a" / "b" / "c"

        ensure_directory(target)
        ensure_directory(target)

        assert target.is_dir()

    def test_concurrent_overlapping_parents(self, tmp_path):
        """Workers racing on shared parents all succeed."""
        errors = []

        def create(n):
            try:
                ensure_directory(tmp_path / "shared" / "deep" / f"leaf{n % 3}")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=create, args=(n,)) for n in range(12)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(list((tmp_path / "shared" / "deep").iterdir())) == 3

    def test_file_in_the_way(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("x")

        with pytest.raises(DirectoryCreateError):
            ensure_directory(blocker / "child")


class TestReplicationRun:
    """Test full replication runs."""

    def test_selected_categories_only(self, session, source_tree, tmp_path, read_lines):
        """Only selected categories are copied; others leave no trace."""
        destination = tmp_path / "backup"
        engine = ReplicationEngine(session, workers=2)

        summary = engine.run(_request(source_tree, destination, FileCategory.NEW_OFFICE_DOC))

        assert summary.copied == 1
        assert summary.failed == 0
        assert (destination / "report.docx").read_bytes() == b"docx"
        assert not (destination / "video.mp4").exists()
        assert len(read_lines(session.activity_path)) == 1
        assert read_lines(session.error_path) == []

    def test_structure_mirrored(self, session, source_tree, tmp_path):
        """Nested folders are recreated under the destination."""
        destination = tmp_path / "backup"
        engine = ReplicationEngine(session)

        summary = engine.run(_request(
            source_tree, destination, FileCategory.IMAGE, FileCategory.PDF, FileCategory.OLD_OFFICE_DOC,
        ))

        assert summary.copied == 3
        assert (destination / "Pictures" / "Holiday" / "beach.jpg").exists()
        assert (destination / "Docs" / "scan.pdf").exists()
        assert (destination / "Docs" / "old.DOC").exists()

    def test_default_mirror_root_is_drive(self, session, source_tree, tmp_path):
        """Without an explicit mirror root the full path below the drive is kept."""
        destination = tmp_path / "backup"
        request = ReplicationRequest(
            source_root=source_tree,
            destination_root=destination,
            selected_categories=frozenset({FileCategory.AUDIO}),
        )

        ReplicationEngine(session).run(request)

        relative = (source_tree / "Music" / "song.mp3").relative_to(source_tree.anchor)
        assert (destination / relative).exists()

    def test_all_categories(self, session, source_tree, tmp_path, read_lines):
        """Everything except unknown extensions is copied."""
        destination = tmp_path / "backup"
        request = ReplicationRequest(
            source_root=source_tree,
            destination_root=destination,
            selected_categories=expand_selection(["all"]),
            mirror_root=source_tree,
        )

        summary = ReplicationEngine(session).run(request)

        assert summary.copied == 6
        assert not (destination / "notes.txt").exists()
        assert len(read_lines(session.activity_path)) == 6

    def test_empty_run(self, session, tmp_path):
        """No matching files is a valid, empty outcome."""
        source = tmp_path / "empty"
        source.mkdir()

        summary = ReplicationEngine(session).run(_request(source, tmp_path / "backup", FileCategory.PDF))

        assert summary.copied == 0
        assert summary.failed == 0
        assert not summary.cancelled

    def test_missing_source_root(self, session, tmp_path):
        """A missing source root is a request-level error."""
        with pytest.raises(SourceRootError):
            ReplicationEngine(session).run(_request(tmp_path / "nope", tmp_path / "backup", FileCategory.PDF))

    def test_mirror_root_must_contain_source(self, session, source_tree, tmp_path):
        request = ReplicationRequest(
            source_root=source_tree,
            destination_root=tmp_path / "backup",
            selected_categories=frozenset({FileCategory.PDF}),
            mirror_root=tmp_path / "elsewhere",
        )

        with pytest.raises(PathOutsideScopeError):
            ReplicationEngine(session).run(request)

    def test_overwrite_existing(self, session, source_tree, tmp_path):
        """An existing destination file is replaced by default."""
        destination = tmp_path / "backup"
        destination.mkdir()
        (destination / "report.docx").write_bytes(b"stale")

        summary = ReplicationEngine(session).run(_request(source_tree, destination, FileCategory.NEW_OFFICE_DOC))

        assert summary.copied == 1
        assert (destination / "report.docx").read_bytes() == b"docx"

    def test_no_overwrite_records_failure(self, session, source_tree, tmp_path, read_lines):
        destination = tmp_path / "backup"
        destination.mkdir()
        (destination / "report.docx").write_bytes(b"keep")

        engine = ReplicationEngine(session, overwrite=False)
        summary = engine.run(_request(source_tree, destination, FileCategory.NEW_OFFICE_DOC))

        assert summary.failed == 1
        assert (destination / "report.docx").read_bytes() == b"keep"
        assert "destination already exists" in read_lines(session.error_path)[0]

    def test_verify_integrity(self, session, source_tree, tmp_path):
        engine = ReplicationEngine(session, verify_integrity=True)

        summary = engine.run(_request(source_tree, tmp_path / "backup", FileCategory.PDF))

        assert summary.copied == 1


class TestFailureIsolation:
    """Test that one failing file never stops the run."""

    def test_one_failure_among_many(self, session, tmp_path, monkeypatch, read_lines):
        """N files with file k failing give N-1 copies and one failure naming k."""
        source = tmp_path / "source"
        source.mkdir()
        names = [f"file{i}.pdf" for i in range(10)]
        for name in names:
            (source / name).write_bytes(name.encode())

        real_copy = executor_module._copy_file

        def flaky_copy(src, dst, deadline, chunk_size):
            if src.name == "file4.pdf":
                raise PermissionError(13, "The process cannot access the file", str(src))
            return real_copy(src, dst, deadline, chunk_size)

        monkeypatch.setattr(executor_module, "_copy_file", flaky_copy)

        summary = ReplicationEngine(session, workers=3).run(_request(source, tmp_path / "backup", FileCategory.PDF))

        assert summary.copied == 9
        assert summary.failed == 1
        errors = read_lines(session.error_path)
        assert len(errors) == 1
        assert "file4.pdf" in errors[0]
        assert "PermissionError" in errors[0]

    def test_outcomes_are_exclusive(self, session, tmp_path, monkeypatch, read_lines):
        """Every selected file yields exactly one line in exactly one sink."""
        source = tmp_path / "source"
        source.mkdir()
        for i in range(20):
            (source / f"img{i}.png").write_bytes(b"x" * i)

        real_copy = executor_module._copy_file

        def flaky_copy(src, dst, deadline, chunk_size):
            if int(src.stem[3:]) % 4 == 0:
                raise OSError("I/O error")
            return real_copy(src, dst, deadline, chunk_size)

        monkeypatch.setattr(executor_module, "_copy_file", flaky_copy)

        summary = ReplicationEngine(session, workers=4).run(_request(source, tmp_path / "backup", FileCategory.IMAGE))

        activity = read_lines(session.activity_path)
        errors = read_lines(session.error_path)
        assert summary.copied == len(activity) == 15
        assert summary.failed == len(errors) == 5

        for i in range(20):
            marker = f"img{i}.png ->"
            hits = sum(marker in line for line in activity) + sum(marker in line for line in errors)
            assert hits == 1

    def test_timeout_is_a_failure(self, session, source_tree, tmp_path, read_lines):
        """A copy exceeding its time limit fails and leaves no partial file."""
        destination = tmp_path / "backup"
        engine = ReplicationEngine(session, copy_timeout=-1)

        summary = engine.run(_request(source_tree, destination, FileCategory.PDF))

        assert summary.failed == 1
        assert not (destination / "Docs" / "scan.pdf").exists()
        assert "CopyTimeoutError" in read_lines(session.error_path)[0]


class TestCancellation:
    """Test external cancellation."""

    def test_cancel_before_start(self, session, source_tree, tmp_path):
        """A set cancel event stops dispatch of new copies."""
        cancel_event = threading.Event()
        cancel_event.set()

        summary = ReplicationEngine(session).run(
            _request(source_tree, tmp_path / "backup", FileCategory.PDF, FileCategory.IMAGE),
            cancel_event,
        )

        assert summary.cancelled
        assert summary.copied == 0


class TestFromConfig:
    """Test building the engine from configuration."""

    def test_overrides(self, session):
        config = ReplicationConfig(workers=8, copy_timeout_seconds=30, chunk_size_kb=64)

        engine = ReplicationEngine.from_config(session, config, workers=2, copy_timeout=None)

        assert engine.workers == 2
        assert engine.copy_timeout == 30
        assert engine.chunk_size == 64 * 1024

    def test_invalid_workers(self, session):
        with pytest.raises(ValueError):
            ReplicationEngine(session, workers=0)


class TestSourceWalk:
    """Test how the walk handles unreadable folders and links."""

    def test_unreadable_directory_is_reported(self, session, source_tree, tmp_path, monkeypatch, read_lines):
        """A folder that cannot be listed is logged and skipped; the rest is copied."""
        real_scandir = os.scandir
        blocked = source_tree / "Docs"

        def scandir(path):
            if Path(path) == blocked:
                raise PermissionError(13, "Access is denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(scanner_module.os, "scandir", scandir)
        destination = tmp_path / "backup"

        summary = ReplicationEngine(session).run(_request(
            source_tree, destination, FileCategory.PDF, FileCategory.IMAGE, FileCategory.NEW_OFFICE_DOC,
        ))

        assert summary.copied == 2
        assert (destination / "Pictures" / "Holiday" / "beach.jpg").exists()
        assert not (destination / "Docs").exists()
        errors = read_lines(session.error_path)
        assert len(errors) == 1
        assert "Could not read directory" in errors[0]

    def test_directory_links_are_not_followed(self, session, source_tree, tmp_path):
        """A link pointing back at the root does not loop the walk."""
        try:
            os.symlink(source_tree, source_tree / "Docs" / "loop", target_is_directory=True)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks are not available")
        destination = tmp_path / "backup"

        summary = ReplicationEngine(session).run(_request(source_tree, destination, FileCategory.PDF))

        assert summary.copied == 1
        assert not (destination / "Docs" / "loop").exists()


class TestCopyCleanup:
    """Test that failed copies only remove files they created."""

    def test_unopenable_destination_is_kept(self, session, source_tree, tmp_path, monkeypatch, read_lines):
        """An existing backup that cannot be reopened for writing survives."""
        destination = tmp_path / "backup"
        destination.mkdir()
        existing = destination / "report.docx"
        existing.write_bytes(b"previous")

        def locked_open(path, mode="r", *args, **kwargs):
            if "w" in mode and Path(path) == existing:
                raise PermissionError(13, "Access is denied", str(path))
            return builtins.open(path, mode, *args, **kwargs)

        monkeypatch.setattr(executor_module, "open", locked_open, raising=False)

        summary = ReplicationEngine(session).run(_request(source_tree, destination, FileCategory.NEW_OFFICE_DOC))

        assert summary.failed == 1
        assert existing.read_bytes() == b"previous"
        assert "PermissionError" in read_lines(session.error_path)[0]
