"""Recovery of deleted files from volume snapshots."""

import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from ..backup.session import LogSession
from ..config import RecoveryConfig
from ..errors import (
    CommandError,
    CopyFailed,
    DirectoryCreateError,
    FileNotFoundInSnapshot,
    RecoveryError,
    SnapshotUnavailable,
    ToolInstallError,
)
from ..util.commands import run_command
from ..util.logging import get_logger
from ..util.paths import ensure_directory, split_relative
from .policies import SelectionPolicy, most_recent
from .snapshots import SnapshotHandle, SnapshotProvider, VssSnapshotProvider

logger = get_logger(__name__)


@dataclass(frozen=True)
class RecoveryRequest:
    """One attempt at pulling a file back out of a snapshot."""

    relative_file_path: str
    destination_root: Path
    selection_policy: SelectionPolicy = field(default=most_recent)


@dataclass
class RecoveryResult:
    """Outcome of a recovery attempt; exactly one of ``path`` or ``error`` is set."""

    relative_file_path: str
    handle: Optional[SnapshotHandle] = None
    path: Optional[Path] = None
    error: Optional[RecoveryError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SnapshotRecoveryEngine:
    """Resolves relative paths against snapshot roots and copies them out."""

    def __init__(
        self,
        provider: SnapshotProvider,
        session: Optional[LogSession] = None,
        tool_executable: str = "winfr",
        tool_package_id: str = "9N26S50LN705",
        install_timeout: int = 600,
        runner: Callable[..., str] = run_command,
    ) -> None:
        """Initialize recovery engine.

        Args:
            provider: Source of currently available snapshots
            session: Optional run logs for recovery outcomes
            tool_executable: Recovery utility looked up on PATH
            tool_package_id: winget package id used to install the utility
            install_timeout: Time limit for the install in seconds
            runner: Command runner used for the install
        """
        self.provider = provider
        self.session = session
        self.tool_executable = tool_executable
        self.tool_package_id = tool_package_id
        self.install_timeout = install_timeout
        self.runner = runner

    @classmethod
    def from_config(
        cls,
        config: RecoveryConfig,
        session: Optional[LogSession] = None,
        provider: Optional[SnapshotProvider] = None,
    ) -> "SnapshotRecoveryEngine":
        return cls(
            provider or VssSnapshotProvider(config.volume),
            session=session,
            tool_executable=config.tool_executable,
            tool_package_id=config.tool_package_id,
            install_timeout=config.install_timeout_seconds,
        )

    def list_snapshots(self) -> List[SnapshotHandle]:
        """Enumerate the snapshots available right now.

        Never cached: the operating system creates and deletes snapshots on
        its own schedule.
        """
        handles = list(self.provider.list_snapshots())
        logger.debug(f"{len(handles)} snapshots available")
        return handles

    def resolve(self, handle: SnapshotHandle, relative_file_path: str) -> str:
        """Build the path of a file inside a snapshot.

        Returned as a string: shadow copy roots such as
        ``\\\\?\\GLOBALROOT\\Device\\HarddiskVolumeShadowCopy3`` are not
        reliably handled by pathlib.
        """
        return os.path.join(handle.device_root, *split_relative(relative_file_path))

    def recover_from_snapshot(
        self,
        handle: SnapshotHandle,
        relative_file_path: str,
        destination_root: Path,
    ) -> RecoveryResult:
        """Copy one file out of a snapshot into ``destination_root``.

        The file lands directly in ``destination_root`` under its base name;
        its original folders are not recreated.
        """
        result = RecoveryResult(relative_file_path=relative_file_path, handle=handle)

        try:
            current = self.list_snapshots()
        except CommandError as e:
            return self._fail(result, SnapshotUnavailable(f"Could not enumerate snapshots: {e}"))

        if not current:
            return self._fail(result, SnapshotUnavailable("No snapshots are available"))

        if not any(handle.same_snapshot(h) for h in current):
            return self._fail(result, SnapshotUnavailable(f"Snapshot {handle.device_root} no longer exists"))

        parts = split_relative(relative_file_path)
        if not parts or any(part in (".", "..") for part in parts):
            return self._fail(result, FileNotFoundInSnapshot(f"{relative_file_path} is not a path inside the snapshot"))

        source = self.resolve(handle, relative_file_path)
        if not os.path.isfile(source):
            return self._fail(result, FileNotFoundInSnapshot(f"{relative_file_path} not found in {handle.device_root}"))

        destination = Path(destination_root) / parts[-1]
        try:
            ensure_directory(destination_root)
            shutil.copy2(source, destination)
        except (OSError, DirectoryCreateError) as e:
            return self._fail(result, CopyFailed(f"Could not copy {source} -> {destination}: {e}"))

        result.path = destination
        self._log_activity(f"Recovered {source} -> {destination}")
        return result

    def recover(self, request: RecoveryRequest) -> RecoveryResult:
        """Pick a snapshot with the request's policy and recover from it."""
        try:
            handles = self.list_snapshots()
        except CommandError as e:
            return self._fail(
                RecoveryResult(relative_file_path=request.relative_file_path),
                SnapshotUnavailable(f"Could not enumerate snapshots: {e}"),
            )

        if not handles:
            return self._fail(
                RecoveryResult(relative_file_path=request.relative_file_path),
                SnapshotUnavailable("No snapshots are available"),
            )

        handle = request.selection_policy(handles)
        logger.info(f"Recovering {request.relative_file_path} from {handle.device_root}")
        return self.recover_from_snapshot(handle, request.relative_file_path, request.destination_root)

    def install_recovery_tool_if_missing(self) -> bool:
        """Install the recovery utility through winget when it is not on PATH.

        Returns:
            True if the utility is present or was installed; False if the
            install failed (snapshot recovery still works without it)
        """
        if shutil.which(self.tool_executable):
            logger.info(f"{self.tool_executable} is already installed")
            return True

        logger.info(f"Installing {self.tool_executable} ({self.tool_package_id}) with winget")
        try:
            self.runner(
                [
                    "winget", "install",
                    "--id", self.tool_package_id,
                    "--exact",
                    "--silent",
                    "--accept-package-agreements",
                    "--accept-source-agreements",
                ],
                timeout=self.install_timeout,
            )
        except CommandError as e:
            error = ToolInstallError(f"Could not install {self.tool_executable}: {e}")
            self._log_error(str(error))
            return False

        self._log_activity(f"Installed {self.tool_executable} ({self.tool_package_id})")
        return True

    def _fail(self, result: RecoveryResult, error: RecoveryError) -> RecoveryResult:
        result.error = error
        self._log_error(f"{type(error).__name__}: {error}")
        return result

    def _log_activity(self, message: str) -> None:
        if self.session:
            self.session.activity(message)
        else:
            logger.info(message)

    def _log_error(self, message: str) -> None:
        if self.session:
            self.session.error(message)
        else:
            logger.warning(message)
