"""Disk diagnostics module initialization."""

from .probes import (
    ProbeResult,
    probe_fragmentation,
    probe_integrity,
    probe_snapshot_service,
    probe_space,
    run_probes,
)

__all__ = [
    "ProbeResult",
    "probe_fragmentation",
    "probe_integrity",
    "probe_snapshot_service",
    "probe_space",
    "run_probes",
]
