"""Utility functions for path operations."""

from pathlib import Path
from typing import Union

from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..errors import DirectoryCreateError


@retry(
    retry=retry_if_exception_type(DirectoryCreateError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.1, min=0.1, max=1),
    reraise=True,
)
def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure directory exists, creating it if necessary.

    Safe to call concurrently for overlapping paths: a directory that already
    exists (or that another worker creates first) counts as success.
    """
    path = Path(path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except FileExistsError as e:
        # exist_ok only covers directories; a file is in the way
        raise DirectoryCreateError(f"Cannot create directory {path}: a file exists there") from e
    except OSError as e:
        raise DirectoryCreateError(f"Cannot create directory {path}: {e}") from e
    return path


def split_relative(relative_path: str) -> list:
    """Split a relative path on either separator, dropping empty segments."""
    return [part for part in relative_path.replace("\\", "/").split("/") if part]


def format_size(size_bytes: int) -> str:
    """Format file size in human readable format."""
    if size_bytes == 0:
        return "0 B"

    size_names = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while size_bytes >= 1024.0 and i < len(size_names) - 1:
        size_bytes /= 1024.0
        i += 1

    return f"{size_bytes:.1f} {size_names[i]}"
