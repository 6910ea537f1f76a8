"""Data model for replication runs."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePath
from typing import FrozenSet, Optional

from ..util.timeutil import format_local_timestamp, format_log_timestamp, utc_now
from .categories import FileCategory
from .pathmap import drive_anchor


class TransferStatus(str, Enum):
    """Result of attempting to transfer one file."""

    COPIED = "Copied"
    FAILED = "Failed"


@dataclass(frozen=True)
class ReplicationRequest:
    """Immutable description of one replication run.

    ``mirror_root`` is the prefix stripped from every source path before it is
    joined onto ``destination_root``. It defaults to the drive the source root
    lives on, so ``C:\\Users\\demo\\a.docx`` is replicated to
    ``<destination_root>\\Users\\demo\\a.docx``.
    """

    source_root: PurePath
    destination_root: PurePath
    selected_categories: FrozenSet[FileCategory]
    mirror_root: Optional[PurePath] = None

    def __post_init__(self):
        object.__setattr__(self, "selected_categories", frozenset(self.selected_categories))
        if self.mirror_root is None:
            object.__setattr__(self, "mirror_root", drive_anchor(self.source_root))


@dataclass
class FileTransferOutcome:
    """Recorded result of transferring a single file."""

    source_path: PurePath
    destination_path: Optional[PurePath]
    status: TransferStatus
    error_detail: Optional[str] = None
    timestamp_utc: datetime = field(default_factory=utc_now)

    @property
    def timestamp_local(self) -> datetime:
        return self.timestamp_utc.astimezone()

    @property
    def ok(self) -> bool:
        return self.status is TransferStatus.COPIED

    def describe(self) -> str:
        """Render the outcome as a single log message."""
        stamps = (
            f"utc={format_log_timestamp(self.timestamp_utc)} "
            f"local={format_local_timestamp(self.timestamp_utc)}"
        )
        if self.ok:
            return f"{self.status.value}: {self.source_path} -> {self.destination_path} ({stamps})"
        return (
            f"{self.status.value}: {self.source_path} -> {self.destination_path or '?'} "
            f"({stamps}): {self.error_detail}"
        )


@dataclass
class RunSummary:
    """Aggregate outcome of a run."""

    copied: int = 0
    failed: int = 0
    cancelled: bool = False
    activity_log: Optional[Path] = None
    error_log: Optional[Path] = None

    @property
    def total(self) -> int:
        return self.copied + self.failed

    def add(self, outcome: FileTransferOutcome) -> None:
        if outcome.ok:
            self.copied += 1
        else:
            self.failed += 1
