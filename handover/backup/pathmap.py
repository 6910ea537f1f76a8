"""Source-to-destination path mapping."""

from pathlib import Path, PurePath
from typing import Tuple, Union

from ..errors import PathOutsideScopeError

PathLike = Union[str, PurePath]


def _as_path(value: PathLike, flavour: type) -> PurePath:
    if isinstance(value, PurePath):
        return value
    return flavour(value)


def _folded(parts: Tuple[str, ...]) -> Tuple[str, ...]:
    return tuple(part.casefold() for part in parts)


def drive_anchor(path: PathLike) -> PurePath:
    """Return the root a path hangs from (``C:\\`` on Windows, ``/`` elsewhere)."""
    path = _as_path(path, Path)
    return type(path)(path.anchor)


def map_destination(source_root: PathLike, destination_root: PathLike, source_path: PathLike) -> PurePath:
    """Translate a source file path into its mirrored destination path.

    The ``source_root`` prefix is compared case-insensitively; the remaining
    segments are joined onto ``destination_root`` unchanged. Windows paths
    given as ``PureWindowsPath`` keep their flavour on any host.

    Raises:
        PathOutsideScopeError: ``source_path`` is not under ``source_root``
    """
    src = _as_path(source_path, Path)
    root = _as_path(source_root, type(src))
    dest_root = _as_path(destination_root, type(src))

    root_parts = root.parts
    src_parts = src.parts
    if len(src_parts) < len(root_parts) or _folded(src_parts[:len(root_parts)]) != _folded(root_parts):
        raise PathOutsideScopeError(source_root, source_path)

    return dest_root.joinpath(*src_parts[len(root_parts):])
