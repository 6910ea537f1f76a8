"""Read-only disk-health probes.

Each probe is independent: it inspects one aspect of a drive and reports a
single line, without touching the state of any other probe.
"""

import shutil
from dataclasses import dataclass
from typing import Callable, List, Optional

from ..backup.session import LogSession
from ..config import DiagnosticsConfig
from ..errors import CommandError
from ..util.commands import run_command
from ..util.logging import get_logger
from ..util.paths import format_size

logger = get_logger(__name__)

Runner = Callable[..., str]


@dataclass
class ProbeResult:
    """Result of one probe."""

    name: str
    ok: bool
    detail: str

    def describe(self) -> str:
        status = "OK" if self.ok else "WARN"
        return f"{self.name} [{status}]: {self.detail}"


def probe_space(drive: str, low_space_percent: float = 10.0) -> ProbeResult:
    """Report used and free space on a drive."""
    try:
        usage = shutil.disk_usage(drive)
    except OSError as e:
        return ProbeResult("Space usage", False, f"could not read usage of {drive}: {e}")

    free_percent = (usage.free / usage.total * 100) if usage.total else 0.0
    detail = (
        f"{format_size(usage.used)} used of {format_size(usage.total)}, "
        f"{format_size(usage.free)} free ({free_percent:.1f}%)"
    )
    return ProbeResult("Space usage", free_percent >= low_space_percent, detail)


def probe_integrity(drive: str, runner: Runner = run_command, timeout: int = 120) -> ProbeResult:
    """Check the file-system dirty bit, which forces chkdsk at next boot."""
    try:
        output = runner(["fsutil", "dirty", "query", drive], timeout=timeout)
    except CommandError as e:
        return ProbeResult("File-system integrity", False, str(e))

    dirty = "is dirty" in output.lower()
    return ProbeResult("File-system integrity", not dirty, output.splitlines()[-1] if output else "no output")


def probe_fragmentation(drive: str, runner: Runner = run_command, timeout: int = 120) -> ProbeResult:
    """Run a defragmenter analysis pass (no changes are made)."""
    try:
        output = runner(["defrag", drive, "/A"], timeout=timeout)
    except CommandError as e:
        return ProbeResult("Fragmentation", False, str(e))

    lines = [line.strip() for line in output.splitlines() if line.strip()]
    summary = next((line for line in lines if "fragmented space" in line.lower()), None)
    needs_defrag = any("you should defragment" in line.lower() for line in lines)
    return ProbeResult("Fragmentation", not needs_defrag, summary or (lines[-1] if lines else "no output"))


def probe_snapshot_service(runner: Runner = run_command, timeout: int = 120) -> ProbeResult:
    """Report the state of the Volume Shadow Copy service."""
    try:
        output = runner(["sc", "query", "VSS"], timeout=timeout)
    except CommandError as e:
        return ProbeResult("Snapshot service", False, str(e))

    state = next((line.split(":", 1)[1].strip() for line in output.splitlines() if "STATE" in line), "unknown")
    # A stopped VSS service is normal: it starts on demand
    return ProbeResult("Snapshot service", "unknown" not in state.lower(), f"VSS {state}")


def run_probes(
    drive: str,
    config: Optional[DiagnosticsConfig] = None,
    session: Optional[LogSession] = None,
    runner: Runner = run_command,
) -> List[ProbeResult]:
    """Run every probe against a drive, logging one line per probe."""
    if config is None:
        config = DiagnosticsConfig()

    results = [
        probe_space(drive, config.low_space_percent),
        probe_integrity(drive, runner, config.probe_timeout_seconds),
        probe_fragmentation(drive, runner, config.probe_timeout_seconds),
        probe_snapshot_service(runner, config.probe_timeout_seconds),
    ]

    for result in results:
        if session:
            if result.ok:
                session.activity(result.describe())
            else:
                session.error(result.describe())
        else:
            logger.info(result.describe())

    return results
