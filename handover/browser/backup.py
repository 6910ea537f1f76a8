"""Backup of browser profile artifacts."""

import threading
from pathlib import Path, PurePath
from typing import Iterable, List, Optional

from ..backup.executor import ReplicationEngine
from ..backup.models import RunSummary
from ..backup.pathmap import drive_anchor
from ..util.logging import get_logger
from .locator import get_profile, locate_artifacts

logger = get_logger(__name__)


def collect_browser_artifacts(browsers: Iterable[str], user_home: PurePath) -> List[Path]:
    """Gather the artifact files of the named browsers for one user."""
    paths: List[Path] = []
    for name in browsers:
        profile = get_profile(name)
        found = locate_artifacts(profile, user_home)
        if found:
            logger.info(f"{profile.display_name}: {len(found)} artifacts")
        else:
            logger.info(f"{profile.display_name}: no profile data for {user_home}")
        paths.extend(found)
    return paths


def backup_browsers(
    engine: ReplicationEngine,
    browsers: Iterable[str],
    user_home: PurePath,
    destination_root: PurePath,
    cancel_event: Optional[threading.Event] = None,
) -> RunSummary:
    """Copy browser artifacts to the backup target, mirroring their location on the drive."""
    paths = collect_browser_artifacts(browsers, user_home)
    return engine.replicate_paths(paths, drive_anchor(user_home), destination_root, cancel_event)
