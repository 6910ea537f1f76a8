"""Snapshot recovery module initialization."""

from .engine import RecoveryRequest, RecoveryResult, SnapshotRecoveryEngine
from .policies import POLICIES, first_enumerated, get_policy, most_recent, oldest
from .snapshots import SnapshotHandle, SnapshotProvider, StaticSnapshotProvider, VssSnapshotProvider

__all__ = [
    # engine
    "RecoveryRequest",
    "RecoveryResult",
    "SnapshotRecoveryEngine",
    # policies
    "POLICIES",
    "first_enumerated",
    "get_policy",
    "most_recent",
    "oldest",
    # snapshots
    "SnapshotHandle",
    "SnapshotProvider",
    "StaticSnapshotProvider",
    "VssSnapshotProvider",
]
