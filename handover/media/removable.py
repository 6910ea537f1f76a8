"""Removable media enumeration."""

from dataclasses import dataclass
from typing import Callable, List

from ..recovery.snapshots import parse_powershell_json
from ..util.commands import run_powershell
from ..util.logging import get_logger
from ..util.paths import format_size

logger = get_logger(__name__)

# DriveType 2 is "Removable Disk"
REMOVABLE_DRIVES_QUERY = (
    "Get-CimInstance -ClassName Win32_LogicalDisk -Filter 'DriveType=2' | "
    "Select-Object DeviceID, VolumeName, Size | ConvertTo-Json -Compress"
)


@dataclass
class RemovableDrive:
    """An attached removable volume."""

    device_id: str
    description: str
    size_bytes: int

    @property
    def display_name(self) -> str:
        label = self.description or "Removable Disk"
        return f"{self.device_id} {label} ({format_size(self.size_bytes)})"


def list_removable_drives(runner: Callable[..., str] = run_powershell) -> List[RemovableDrive]:
    """List attached removable volumes with their label and capacity."""
    drives = []
    for record in parse_powershell_json(runner(REMOVABLE_DRIVES_QUERY)):
        device_id = record.get("DeviceID")
        if not device_id:
            continue
        drives.append(RemovableDrive(
            device_id=device_id,
            description=record.get("VolumeName") or "",
            size_bytes=int(record.get("Size") or 0),
        ))

    logger.debug(f"Found {len(drives)} removable drives")
    return drives
