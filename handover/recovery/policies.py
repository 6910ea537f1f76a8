"""Snapshot selection policies.

A policy receives the freshly enumerated snapshots (never empty) and returns
the one to recover from. Enumeration order carries no meaning, so callers
choose explicitly.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, Sequence

from .snapshots import SnapshotHandle

SelectionPolicy = Callable[[Sequence[SnapshotHandle]], SnapshotHandle]

_UNDATED = datetime.min.replace(tzinfo=timezone.utc)


def _created(handle: SnapshotHandle) -> datetime:
    return handle.created_at or _UNDATED


def most_recent(handles: Sequence[SnapshotHandle]) -> SnapshotHandle:
    return max(handles, key=_created)


def oldest(handles: Sequence[SnapshotHandle]) -> SnapshotHandle:
    return min(handles, key=_created)


def first_enumerated(handles: Sequence[SnapshotHandle]) -> SnapshotHandle:
    return handles[0]


POLICIES: Dict[str, SelectionPolicy] = {
    "most-recent": most_recent,
    "oldest": oldest,
    "first-enumerated": first_enumerated,
}


def get_policy(name: str) -> SelectionPolicy:
    """Look up a policy by its configuration name."""
    try:
        return POLICIES[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown snapshot policy '{name}'; expected one of {', '.join(POLICIES)}") from None
