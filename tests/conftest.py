"""Shared fixtures."""

from pathlib import Path

import pytest

from handover.backup.session import LogSession


def _read_lines(path: Path):
    return [line for line in path.read_text(encoding="utf-8").splitlines() if line.strip()]


@pytest.fixture
def read_lines():
    """Return a helper that reads the non-empty lines of a log file."""
    return _read_lines


@pytest.fixture
def session(tmp_path):
    """A fresh log session in a temporary folder."""
    return LogSession.open(tmp_path / "logs", "Backup")


@pytest.fixture
def source_tree(tmp_path):
    """A small source tree with files of several categories."""
    root = tmp_path / "source"
    files = {
        "report.docx": b"docx",
        "video.mp4": b"mp4",
        "notes.txt": b"text",
        "Docs/old.DOC": b"doc",
        "Docs/scan.pdf": b"pdf",
        "Pictures/Holiday/beach.jpg": b"jpg",
        "Music/song.mp3": b"mp3",
    }
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
    return root
