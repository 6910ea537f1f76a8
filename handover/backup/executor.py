"""Backup execution engine."""

import shutil
import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from pathlib import Path, PurePath
from typing import Iterable, Iterator, Optional, Set, Tuple

from tqdm import tqdm

from ..config import ReplicationConfig
from ..errors import CopyTimeoutError, FileCopyError, HandoverError
from ..util.hashing import files_match
from ..util.logging import get_logger
from ..util.paths import ensure_directory
from ..util.timeutil import format_duration
from .models import FileTransferOutcome, ReplicationRequest, RunSummary, TransferStatus
from .pathmap import map_destination
from .scanner import SourceScanner
from .session import LogSession

logger = get_logger(__name__)

Job = Tuple[Path, Path]


def _discard_partial(destination: Path) -> None:
    try:
        destination.unlink(missing_ok=True)
    except OSError as e:
        logger.debug(f"Could not remove partial copy {destination}: {e}")


def _copy_file(source: Path, destination: Path, deadline: float, chunk_size: int) -> None:
    """Copy file contents and metadata, giving up once ``deadline`` passes."""
    with open(source, "rb") as src:
        dst = open(destination, "wb")
        try:
            with dst:
                while chunk := src.read(chunk_size):
                    if time.monotonic() > deadline:
                        raise CopyTimeoutError(f"Copy of {source} exceeded its time limit")
                    dst.write(chunk)
        except (OSError, CopyTimeoutError):
            _discard_partial(destination)
            raise
    shutil.copystat(source, destination)


class ReplicationEngine:
    """Copies selected files from a source tree to a backup target.

    The per-file time limit is checked between chunks, so it bounds slow
    copies but not an ``open`` or ``read`` call that blocks indefinitely
    (e.g. on a stalled network share).
    """

    def __init__(
        self,
        session: LogSession,
        workers: int = 4,
        copy_timeout: float = 300.0,
        chunk_size: int = 1024 * 1024,
        overwrite: bool = True,
        verify_integrity: bool = False,
        show_progress: bool = False,
    ) -> None:
        """Initialize replication engine.

        Args:
            session: Log session receiving one outcome line per file
            workers: Number of concurrent copy workers
            copy_timeout: Per-file copy time limit in seconds
            chunk_size: Read size used while copying
            overwrite: Replace files already present at the destination
            verify_integrity: Compare SHA-256 of source and copy after copying
            show_progress: Display a tqdm progress bar
        """
        if workers < 1:
            raise ValueError("workers must be at least 1")

        self.session = session
        self.workers = workers
        self.copy_timeout = copy_timeout
        self.chunk_size = chunk_size
        self.overwrite = overwrite
        self.verify_integrity = verify_integrity
        self.show_progress = show_progress

    @classmethod
    def from_config(cls, session: LogSession, config: ReplicationConfig, **overrides) -> "ReplicationEngine":
        """Build an engine from the replication section of the configuration."""
        options = {
            "workers": config.workers,
            "copy_timeout": config.copy_timeout_seconds,
            "chunk_size": config.chunk_size_kb * 1024,
            "overwrite": config.overwrite,
            "verify_integrity": config.verify_integrity,
        }
        options.update({key: value for key, value in overrides.items() if value is not None})
        return cls(session, **options)

    def run(self, request: ReplicationRequest, cancel_event: Optional[threading.Event] = None) -> RunSummary:
        """Replicate every selected file under the request's source root.

        Per-file failures are recorded in the error log and never abort the run.

        Raises:
            SourceRootError: the source root is missing or unreadable
            PathOutsideScopeError: the source root is not under the mirror root
            LogSinkError: the run logs cannot be written
        """
        # Fails fast when the mirror root cannot map the source tree
        map_destination(request.mirror_root, request.destination_root, request.source_root)

        scanner = SourceScanner(request.source_root, request.selected_categories, on_error=self.session.error)
        scanner.check_root()

        categories = ", ".join(sorted(c.name for c in request.selected_categories)) or "none"
        logger.info(f"Replicating {request.source_root} -> {request.destination_root} [{categories}]")

        started = time.monotonic()
        jobs = self._map_jobs(scanner.scan(), request.mirror_root, request.destination_root)
        summary = self._dispatch(jobs, cancel_event)

        logger.info(
            f"Run {self.session.run_id} finished in {format_duration(time.monotonic() - started)}: "
            f"{summary.copied} copied, {summary.failed} failed, {scanner.result.skipped} not selected"
        )
        return summary

    def replicate_paths(
        self,
        paths: Iterable[Path],
        mirror_root: PurePath,
        destination_root: PurePath,
        cancel_event: Optional[threading.Event] = None,
    ) -> RunSummary:
        """Replicate an explicit list of files through the same per-file pipeline."""
        return self._dispatch(self._map_jobs(paths, mirror_root, destination_root), cancel_event)

    def transfer(self, source: Path, destination: Path) -> FileTransferOutcome:
        """Copy one file, converting any per-file failure into an outcome."""
        try:
            ensure_directory(destination.parent)

            if not self.overwrite and destination.exists():
                raise FileCopyError("destination already exists")

            _copy_file(source, destination, time.monotonic() + self.copy_timeout, self.chunk_size)

            if self.verify_integrity and not files_match(source, destination):
                raise FileCopyError("integrity check failed after copy")

        except (OSError, HandoverError) as e:
            return FileTransferOutcome(
                source_path=source,
                destination_path=destination,
                status=TransferStatus.FAILED,
                error_detail=f"{type(e).__name__}: {e}",
            )

        return FileTransferOutcome(
            source_path=source,
            destination_path=destination,
            status=TransferStatus.COPIED,
        )

    def _map_jobs(self, paths: Iterable[Path], mirror_root: PurePath, destination_root: PurePath) -> Iterator[Job]:
        for path in paths:
            yield Path(path), Path(map_destination(mirror_root, destination_root, path))

    def _dispatch(self, jobs: Iterable[Job], cancel_event: Optional[threading.Event]) -> RunSummary:
        summary = RunSummary(
            activity_log=self.session.activity_path,
            error_log=self.session.error_path,
        )
        in_flight: Set[Future] = set()
        max_in_flight = self.workers * 2

        with tqdm(desc="Copying files", unit="file", disable=not self.show_progress) as pbar:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                for source, destination in jobs:
                    if cancel_event is not None and cancel_event.is_set():
                        logger.warning("Cancellation requested; waiting for in-flight copies")
                        summary.cancelled = True
                        break

                    if len(in_flight) >= max_in_flight:
                        done, in_flight = wait(in_flight, return_when=FIRST_COMPLETED)
                        self._collect(done, summary, pbar)

                    in_flight.add(pool.submit(self.transfer, source, destination))

                done, _ = wait(in_flight)
                self._collect(done, summary, pbar)

        return summary

    def _collect(self, done: Iterable[Future], summary: RunSummary, pbar: tqdm) -> None:
        for future in done:
            outcome = future.result()
            self.session.record(outcome)
            summary.add(outcome)
            pbar.update(1)
