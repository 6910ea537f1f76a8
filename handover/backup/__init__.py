"""Backup module initialization."""

from .categories import CATEGORY_EXTENSIONS, FileCategory, classify, expand_selection, selected
from .executor import ReplicationEngine
from .models import FileTransferOutcome, ReplicationRequest, RunSummary, TransferStatus
from .pathmap import drive_anchor, map_destination
from .scanner import ScanResult, SourceScanner
from .session import LogSession, LogSink

__all__ = [
    # categories
    "CATEGORY_EXTENSIONS",
    "FileCategory",
    "classify",
    "expand_selection",
    "selected",
    # executor
    "ReplicationEngine",
    # models
    "FileTransferOutcome",
    "ReplicationRequest",
    "RunSummary",
    "TransferStatus",
    # pathmap
    "drive_anchor",
    "map_destination",
    # scanner
    "ScanResult",
    "SourceScanner",
    # session
    "LogSession",
    "LogSink",
]
