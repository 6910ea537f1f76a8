"""Browser data module initialization."""

from .backup import backup_browsers, collect_browser_artifacts
from .history import HistoryExporter
from .locator import BROWSER_PROFILES, BrowserProfile, get_profile, history_database, locate_artifacts

__all__ = [
    "BROWSER_PROFILES",
    "BrowserProfile",
    "HistoryExporter",
    "backup_browsers",
    "collect_browser_artifacts",
    "get_profile",
    "history_database",
    "locate_artifacts",
]
