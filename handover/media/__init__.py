"""Removable media module initialization."""

from .removable import RemovableDrive, list_removable_drives

__all__ = [
    "RemovableDrive",
    "list_removable_drives",
]
