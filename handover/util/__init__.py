"""Utility module initialization."""

from .commands import run_command, run_powershell
from .hashing import calculate_file_hash, files_match
from .logging import get_logger, setup_logging
from .paths import ensure_directory, format_size, split_relative
from .timeutil import (
    format_duration,
    format_local_timestamp,
    format_log_timestamp,
    parse_timestamp,
    utc_now,
)

__all__ = [
    # commands
    "run_command",
    "run_powershell",
    # hashing
    "calculate_file_hash",
    "files_match",
    # logging
    "get_logger",
    "setup_logging",
    # paths
    "ensure_directory",
    "format_size",
    "split_relative",
    # timeutil
    "format_duration",
    "format_local_timestamp",
    "format_log_timestamp",
    "parse_timestamp",
    "utc_now",
]
