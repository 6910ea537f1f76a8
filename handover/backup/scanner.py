"""Source tree scanning and category selection."""

import os
from pathlib import Path
from typing import Callable, FrozenSet, Iterator, List, Optional

from ..errors import SourceRootError
from ..util.logging import get_logger
from .categories import FileCategory, classify, selected

logger = get_logger(__name__)


class ScanResult:
    """Running totals for a scan."""

    def __init__(self) -> None:
        self.matched = 0
        self.skipped = 0
        self.errors: List[str] = []

    def add_error(self, error: str) -> None:
        self.errors.append(error)


class SourceScanner:
    """Walks a source tree and yields the files selected for backup."""

    def __init__(
        self,
        source_root: Path,
        categories: FrozenSet[FileCategory],
        on_error: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.source_root = Path(source_root)
        self.categories = categories
        self.on_error = on_error
        self.result = ScanResult()

    def check_root(self) -> None:
        """Verify the source root can be listed.

        Raises:
            SourceRootError: the root is missing, not a directory, or unreadable
        """
        if not self.source_root.is_dir():
            raise SourceRootError(f"Source root is not a directory: {self.source_root}")
        try:
            with os.scandir(self.source_root):
                pass
        except OSError as e:
            raise SourceRootError(f"Source root is unreadable: {self.source_root}: {e}") from e

    def walk(self) -> Iterator[Path]:
        """Yield every regular file under the root.

        Uses an explicit stack, so tree depth is not bounded by the interpreter
        recursion limit. Directory symlinks are not followed.
        """
        self.check_root()
        stack = [self.source_root]

        while stack:
            directory = stack.pop()
            try:
                with os.scandir(directory) as entries:
                    children = list(entries)
            except OSError as e:
                self._report(f"Could not read directory {directory}: {e}")
                continue

            for entry in children:
                try:
                    if entry.is_dir(follow_symlinks=False):
                        stack.append(Path(entry.path))
                    elif entry.is_file():
                        yield Path(entry.path)
                except OSError as e:
                    self._report(f"Could not stat {entry.path}: {e}")

    def scan(self) -> Iterator[Path]:
        """Yield the files whose extension belongs to the selected categories."""
        for path in self.walk():
            if selected(classify(path.suffix), self.categories):
                self.result.matched += 1
                yield path
            else:
                self.result.skipped += 1

    def _report(self, message: str) -> None:
        self.result.add_error(message)
        if self.on_error:
            self.on_error(message)
        else:
            logger.warning(message)
