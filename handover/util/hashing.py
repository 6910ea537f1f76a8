"""Utility functions for hashing operations."""

import hashlib
from pathlib import Path
from typing import Optional

from ..util.logging import get_logger

logger = get_logger(__name__)


def calculate_file_hash(
    file_path: Path,
    algorithm: str = "sha256",
    chunk_size: int = 1024 * 1024
) -> Optional[str]:
    """Calculate hash of a file."""
    try:
        hasher = hashlib.new(algorithm)

        with open(file_path, "rb") as f:
            while chunk := f.read(chunk_size):
                hasher.update(chunk)

        return hasher.hexdigest()
    except OSError as e:
        logger.error(f"Failed to calculate hash for {file_path}: {e}")
        return None


def files_match(source: Path, copy: Path, algorithm: str = "sha256") -> bool:
    """Check that a copied file has the same content as its source."""
    source_hash = calculate_file_hash(source, algorithm)
    if source_hash is None:
        return False

    return source_hash == calculate_file_hash(copy, algorithm)
