"""File-based outbox for daily summaries."""

import json
from datetime import date
from pathlib import Path

from cadence.core.summary import DailySummary


class FileSummaryOutbox:
    """
    Writes each summary as JSON for the notification service to pick up.

    Implements SummarySink protocol. One directory per day, one file per
    person; re-running a day overwrites that day's files.
    """

    def __init__(self, outbox_dir: Path | str):
        self.outbox_dir = Path(outbox_dir).expanduser()
        self.outbox_dir.mkdir(parents=True, exist_ok=True)

    def _path_for(self, target_date: date, person_id: str) -> Path:
        return self.outbox_dir / target_date.isoformat() / f"{person_id}.json"

    def deliver(self, summary: DailySummary) -> None:
        path = self._path_for(summary.date, summary.person_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(summary.to_dict(), indent=2))

    def read(self, target_date: date, person_id: str) -> dict | None:
        """Read a delivered summary back. Returns None if not found."""
        path = self._path_for(target_date, person_id)
        if not path.exists():
            return None
        return json.loads(path.read_text())

    def list_people(self, target_date: date) -> list[str]:
        """People with a summary for a date."""
        day_dir = self.outbox_dir / target_date.isoformat()
        if not day_dir.exists():
            return []
        return sorted(p.stem for p in day_dir.glob("*.json"))
