"""File categories and extension classification."""

from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional

ALL_CATEGORIES = "all"


class FileCategory(str, Enum):
    """Categories of user files selectable for backup."""

    OLD_OFFICE_DOC = "old-office"
    NEW_OFFICE_DOC = "new-office"
    PDF = "pdf"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"


# Extensions by category, lower-case and without the leading dot
CATEGORY_EXTENSIONS: Dict[FileCategory, FrozenSet[str]] = {
    FileCategory.OLD_OFFICE_DOC: frozenset({"doc", "xls", "ppt"}),
    FileCategory.NEW_OFFICE_DOC: frozenset({"docx", "xlsx", "pptx"}),
    FileCategory.PDF: frozenset({"pdf"}),
    FileCategory.IMAGE: frozenset({"jpg", "jpeg", "png", "webp", "bmp"}),
    FileCategory.VIDEO: frozenset({"mp4", "avi", "mov", "wmv", "flv", "mkv", "webm", "mpeg"}),
    FileCategory.AUDIO: frozenset({"mp3", "wav", "ogg", "flac", "aac", "m4a", "wma"}),
}


def _build_index(table: Dict[FileCategory, FrozenSet[str]]) -> Dict[str, FileCategory]:
    index: Dict[str, FileCategory] = {}
    for category, extensions in table.items():
        for ext in extensions:
            if ext in index:
                raise ValueError(f"Extension '{ext}' listed under {index[ext].name} and {category.name}")
            index[ext] = category
    return index


_EXTENSION_INDEX = _build_index(CATEGORY_EXTENSIONS)


def normalize_extension(extension: str) -> str:
    """Lower-case an extension and strip a leading dot."""
    return extension.strip().lower().lstrip(".")


def classify(extension: str) -> Optional[FileCategory]:
    """Map a file extension to its category.

    Args:
        extension: Extension with or without the leading dot, any case

    Returns:
        The owning category, or None for unrecognized extensions
    """
    return _EXTENSION_INDEX.get(normalize_extension(extension))


def selected(category: Optional[FileCategory], requested: FrozenSet[FileCategory]) -> bool:
    """Check whether a classified file belongs to the requested selection."""
    return category is not None and category in requested


def parse_category(name: str) -> FileCategory:
    """Resolve a user-supplied category name (value or member name)."""
    key = name.strip().lower()
    for category in FileCategory:
        if key in (category.value, category.name.lower(), category.name.lower().replace("_", "-")):
            return category
    raise ValueError(f"Unknown file category: {name}")


def expand_selection(names: Iterable[str]) -> FrozenSet[FileCategory]:
    """Turn user category names into a frozen selection.

    The ``all`` option expands here, so the selection is fixed for the run
    even if the category table changes later.
    """
    selection = set()
    for name in names:
        if name.strip().lower() == ALL_CATEGORIES:
            selection.update(CATEGORY_EXTENSIONS.keys())
        else:
            selection.add(parse_category(name))
    return frozenset(selection)
