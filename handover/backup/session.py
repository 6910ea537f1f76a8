"""Per-run activity and error logs."""

import random
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Optional, Union

from ..errors import DirectoryCreateError, LogSinkError
from ..util.logging import get_logger
from ..util.paths import ensure_directory
from ..util.timeutil import format_log_timestamp, run_stamp, utc_now
from .models import FileTransferOutcome, TransferStatus

logger = get_logger(__name__)

# Attempts at finding an unused run id before giving up
MAX_NAME_ATTEMPTS = 20


class LogSink(str, Enum):
    """The two channels of a run log."""

    ACTIVITY = "Activity"
    ERROR = "Error"


def generate_run_id(moment: Optional[datetime] = None) -> str:
    """Build a run id: six random digits plus a UTC stamp."""
    if moment is None:
        moment = utc_now()
    return f"{random.randint(100000, 999999)}_{run_stamp(moment)}"


@dataclass
class LogSession:
    """Append-only Activity/Error log files owned by a single run.

    Use :meth:`open` to create a session; both files exist from that point on,
    even if nothing is ever written to them.
    """

    run_id: str
    run_kind: str
    activity_path: Path
    error_path: Path
    created_at: datetime
    _locks: Dict[LogSink, threading.Lock] = field(
        default_factory=lambda: {sink: threading.Lock() for sink in LogSink},
        init=False,
        repr=False,
        compare=False,
    )
    _counts: Dict[LogSink, int] = field(
        default_factory=lambda: {sink: 0 for sink in LogSink},
        init=False,
        repr=False,
        compare=False,
    )

    @classmethod
    def open(cls, base_path: Union[str, Path], run_kind: str = "Backup") -> "LogSession":
        """Create a new session with two fresh, uniquely named sink files.

        Raises:
            LogSinkError: the base directory or the sink files cannot be created
        """
        base_path = Path(base_path)
        try:
            ensure_directory(base_path)
        except DirectoryCreateError as e:
            raise LogSinkError(f"Cannot create log directory {base_path}: {e}") from e

        for _ in range(MAX_NAME_ATTEMPTS):
            created_at = utc_now()
            run_id = generate_run_id(created_at)
            activity_path = base_path / f"{run_id}-{run_kind}-{LogSink.ACTIVITY.value}.txt"
            error_path = base_path / f"{run_id}-{run_kind}-{LogSink.ERROR.value}.txt"

            try:
                _create_exclusive(activity_path)
            except FileExistsError:
                continue

            try:
                _create_exclusive(error_path)
            except FileExistsError:
                activity_path.unlink()
                continue

            logger.debug(f"Opened log session {run_id} in {base_path}")
            return cls(
                run_id=run_id,
                run_kind=run_kind,
                activity_path=activity_path,
                error_path=error_path,
                created_at=created_at,
            )

        raise LogSinkError(f"Could not find an unused log name in {base_path}")

    def path_for(self, sink: LogSink) -> Path:
        """Return the file backing a sink."""
        return self.activity_path if sink is LogSink.ACTIVITY else self.error_path

    def append(self, sink: LogSink, message: str) -> None:
        """Append one ``[<UTC timestamp>] <message>`` line to a sink."""
        line = f"[{format_log_timestamp(utc_now())}] {message}\n"
        path = self.path_for(sink)

        with self._locks[sink]:
            try:
                with open(path, "a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                raise LogSinkError(f"Cannot write to {path}: {e}") from e
            self._counts[sink] += 1

        if sink is LogSink.ERROR:
            logger.warning(message)
        else:
            logger.debug(message)

    def activity(self, message: str) -> None:
        self.append(LogSink.ACTIVITY, message)

    def error(self, message: str) -> None:
        self.append(LogSink.ERROR, message)

    def record(self, outcome: FileTransferOutcome) -> None:
        """Write a transfer outcome to exactly one sink."""
        if outcome.status is TransferStatus.COPIED:
            self.activity(outcome.describe())
        else:
            self.error(outcome.describe())

    def line_count(self, sink: LogSink) -> int:
        """Number of lines this session has written to a sink."""
        return self._counts[sink]


def _create_exclusive(path: Path) -> None:
    try:
        with open(path, "x", encoding="utf-8"):
            pass
    except FileExistsError:
        raise
    except OSError as e:
        raise LogSinkError(f"Cannot create log file {path}: {e}") from e
