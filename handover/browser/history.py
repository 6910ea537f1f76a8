"""Chromium browsing history export."""

import csv
import shutil
import sqlite3
import tempfile
from contextlib import closing
from pathlib import Path
from typing import Any, Dict, List

from ..util.logging import get_logger
from ..util.paths import ensure_directory
from ..util.timeutil import WEBKIT_EPOCH_OFFSET_SECONDS

logger = get_logger(__name__)

HISTORY_QUERY = f"""
SELECT
    urls.url AS url,
    datetime(visits.visit_time / 1000000 - {WEBKIT_EPOCH_OFFSET_SECONDS}, 'unixepoch', 'localtime') AS visit_date,
    visits.visit_duration AS duration_microseconds,
    visits.visit_duration / 1000000 AS duration_seconds,
    (visits.visit_duration / 1000000) / 60 AS duration_minutes,
    (visits.visit_duration / 1000000) / 3600 AS duration_hours,
    urls.title AS title,
    visit_source.source AS visit_source
FROM visits
JOIN urls ON visits.url = urls.id
LEFT JOIN visit_source ON visits.id = visit_source.id
ORDER BY visits.visit_time DESC
"""

CSV_HEADERS = {
    "url": "URL",
    "visit_date": "Visit Date",
    "duration_microseconds": "Visit Duration (microseconds)",
    "duration_seconds": "Visit Duration (seconds)",
    "duration_minutes": "Visit Duration (minutes)",
    "duration_hours": "Visit Duration (hours)",
    "title": "Title",
    "visit_source": "Visit Source",
}


class HistoryExporter:
    """Exports visits from a Chromium ``History`` database to CSV."""

    def __init__(self, history_db: Path):
        self.history_db = Path(history_db)

    def read_visits(self) -> List[Dict[str, Any]]:
        """Read all visits, newest first.

        The live database is locked while the browser runs, so a temporary
        copy is queried instead.
        """
        with tempfile.TemporaryDirectory(prefix="handover-history-") as temp_dir:
            snapshot = Path(temp_dir) / "History"
            shutil.copy2(self.history_db, snapshot)

            with closing(sqlite3.connect(snapshot)) as conn:
                conn.row_factory = sqlite3.Row
                rows = conn.execute(HISTORY_QUERY).fetchall()

        return [dict(row) for row in rows]

    def export_csv(self, output_file: Path) -> int:
        """Write the visits to ``output_file`` and return the number of rows."""
        visits = self.read_visits()

        ensure_directory(output_file.parent)
        with open(output_file, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=list(CSV_HEADERS))
            writer.writerow(CSV_HEADERS)
            writer.writerows(visits)

        logger.info(f"Exported {len(visits)} history entries to {output_file}")
        return len(visits)
