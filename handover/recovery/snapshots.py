"""Volume Shadow Copy snapshot enumeration."""

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..errors import CommandError
from ..util.commands import run_powershell
from ..util.logging import get_logger
from ..util.timeutil import parse_timestamp

logger = get_logger(__name__)

# Shadow copies of one volume; InstallDate rendered as sortable UTC (yyyy-MM-ddTHH:mm:ss)
SHADOW_COPY_QUERY = """
$volume = (Get-CimInstance -ClassName Win32_Volume -Filter "DriveLetter='{drive}'").DeviceID
Get-CimInstance -ClassName Win32_ShadowCopy |
    Where-Object {{ $_.VolumeName -eq $volume }} |
    Select-Object ID, DeviceObject, VolumeName,
        @{{n='InstallDate';e={{ $_.InstallDate.ToUniversalTime().ToString('s') }}}} |
    ConvertTo-Json -Compress
"""


@dataclass(frozen=True)
class SnapshotHandle:
    """A read-only point-in-time view of a volume."""

    device_root: str
    created_at: Optional[datetime] = None
    snapshot_id: str = ""
    volume: str = ""

    def same_snapshot(self, other: "SnapshotHandle") -> bool:
        return self.device_root.rstrip("\\/").casefold() == other.device_root.rstrip("\\/").casefold()


class SnapshotProvider:
    """Source of the snapshots currently available for a volume."""

    def list_snapshots(self) -> List[SnapshotHandle]:
        raise NotImplementedError


class VssSnapshotProvider(SnapshotProvider):
    """Lists Volume Shadow Copies through PowerShell and WMI."""

    def __init__(self, volume: str = "C:", runner: Callable[..., str] = run_powershell, timeout: int = 60):
        self.volume = volume.rstrip("\\/").upper()
        self.runner = runner
        self.timeout = timeout

    def list_snapshots(self) -> List[SnapshotHandle]:
        output = self.runner(SHADOW_COPY_QUERY.format(drive=self.volume), timeout=self.timeout)
        handles = [self._to_handle(record) for record in parse_powershell_json(output)]
        handles = [h for h in handles if h.device_root]
        logger.debug(f"Found {len(handles)} shadow copies of {self.volume}")
        return handles

    def _to_handle(self, record: Dict[str, Any]) -> SnapshotHandle:
        return SnapshotHandle(
            device_root=record.get("DeviceObject") or "",
            created_at=_parse_install_date(record.get("InstallDate")),
            snapshot_id=record.get("ID") or "",
            volume=self.volume,
        )


class StaticSnapshotProvider(SnapshotProvider):
    """Serves a fixed list of snapshot roots, e.g. shadow copies mounted by hand."""

    def __init__(self, handles: Sequence[SnapshotHandle]):
        self.handles = list(handles)

    def list_snapshots(self) -> List[SnapshotHandle]:
        return list(self.handles)


def parse_powershell_json(output: str) -> List[Dict[str, Any]]:
    """Parse ``ConvertTo-Json`` output, which is an object for a single row.

    Raises:
        CommandError: the output is not valid JSON
    """
    if not output.strip():
        return []

    try:
        data = json.loads(output)
    except ValueError as e:
        raise CommandError(f"Unexpected PowerShell output: {e}") from e

    if isinstance(data, dict):
        return [data]
    return [row for row in data if isinstance(row, dict)]


def _parse_install_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        moment = parse_timestamp(value)
    except ValueError:
        logger.debug(f"Unrecognized shadow copy date: {value}")
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment
