"""Utility functions for time operations."""

from datetime import datetime, timezone

# Chromium stores times as microseconds since 1601-01-01 UTC
WEBKIT_EPOCH_OFFSET_SECONDS = 11644473600

LOG_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
RUN_STAMP_FORMAT = "%Y%m%d%H%M%S"


def utc_now() -> datetime:
    """Get the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_log_timestamp(moment: datetime) -> str:
    """Format a datetime for a run log line prefix."""
    return moment.astimezone(timezone.utc).strftime(LOG_TIMESTAMP_FORMAT) + "Z"


def format_local_timestamp(moment: datetime) -> str:
    """Format a datetime in the machine's local time zone."""
    return moment.astimezone().strftime(LOG_TIMESTAMP_FORMAT + " %z")


def run_stamp(moment: datetime) -> str:
    """Compact UTC stamp used in run log file names."""
    return moment.astimezone(timezone.utc).strftime(RUN_STAMP_FORMAT)


def format_duration(seconds: float) -> str:
    """Format duration in human readable format."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    elif seconds < 3600:
        minutes = seconds / 60
        return f"{minutes:.1f}m"
    else:
        hours = seconds / 3600
        return f"{hours:.1f}h"


def parse_timestamp(timestamp_str: str) -> datetime:
    """Parse the timestamp formats emitted by PowerShell and WMI."""
    formats = [
        "%Y-%m-%d %H:%M:%S",
        "%Y-%m-%dT%H:%M:%S",
        "%Y-%m-%dT%H:%M:%SZ",
        "%Y-%m-%dT%H:%M:%S.%f",
        "%m/%d/%Y %I:%M:%S %p",
        "%Y%m%d%H%M%S.%f",
    ]

    for fmt in formats:
        try:
            return datetime.strptime(timestamp_str, fmt)
        except ValueError:
            continue

    try:
        return datetime.fromisoformat(timestamp_str.replace("Z", "+00:00"))
    except ValueError:
        pass

    raise ValueError(f"Unable to parse timestamp: {timestamp_str}")
