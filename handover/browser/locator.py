"""Well-known browser data locations on Windows."""

from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class BrowserProfile:
    """Where one browser keeps its per-user data."""

    name: str
    display_name: str
    engine: str
    # Relative to the user's home folder
    profile_dir: str
    artifacts: Tuple[str, ...]


BROWSER_PROFILES: Dict[str, BrowserProfile] = {
    "chrome": BrowserProfile(
        name="chrome",
        display_name="Google Chrome",
        engine="chromium",
        profile_dir="AppData/Local/Google/Chrome/User Data/Default",
        artifacts=("History", "Bookmarks", "Favicons", "Preferences", "Login Data", "Web Data"),
    ),
    "edge": BrowserProfile(
        name="edge",
        display_name="Microsoft Edge",
        engine="chromium",
        profile_dir="AppData/Local/Microsoft/Edge/User Data/Default",
        artifacts=("History", "Bookmarks", "Favicons", "Preferences", "Login Data", "Web Data"),
    ),
    "brave": BrowserProfile(
        name="brave",
        display_name="Brave",
        engine="chromium",
        profile_dir="AppData/Local/BraveSoftware/Brave-Browser/User Data/Default",
        artifacts=("History", "Bookmarks", "Favicons", "Preferences", "Login Data", "Web Data"),
    ),
    "opera": BrowserProfile(
        name="opera",
        display_name="Opera",
        engine="chromium",
        profile_dir="AppData/Roaming/Opera Software/Opera Stable",
        artifacts=("History", "Bookmarks", "Favicons", "Preferences", "Login Data", "Web Data"),
    ),
    "firefox": BrowserProfile(
        name="firefox",
        display_name="Mozilla Firefox",
        engine="gecko",
        profile_dir="AppData/Roaming/Mozilla/Firefox/Profiles",
        artifacts=("places.sqlite", "favicons.sqlite", "logins.json", "key4.db", "formhistory.sqlite"),
    ),
}


def get_profile(name: str) -> BrowserProfile:
    try:
        return BROWSER_PROFILES[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown browser '{name}'; expected one of {', '.join(BROWSER_PROFILES)}") from None


def profile_roots(profile: BrowserProfile, user_home: PurePath) -> List[Path]:
    """Return the existing profile folders of a browser for one user.

    Firefox keeps one randomly named folder per profile under ``Profiles``.
    """
    base = Path(user_home) / profile.profile_dir
    if not base.is_dir():
        return []
    if profile.engine == "gecko":
        return sorted(p for p in base.iterdir() if p.is_dir())
    return [base]


def locate_artifacts(profile: BrowserProfile, user_home: PurePath) -> List[Path]:
    """Return the artifact files of a browser that exist for one user."""
    found = []
    for root in profile_roots(profile, user_home):
        for artifact in profile.artifacts:
            candidate = root / artifact
            if candidate.is_file():
                found.append(candidate)
    return found


def history_database(profile: BrowserProfile, user_home: PurePath) -> Optional[Path]:
    """Return the Chromium History database for a user, if there is one."""
    if profile.engine != "chromium":
        return None
    candidate = Path(user_home) / profile.profile_dir / "History"
    return candidate if candidate.is_file() else None
