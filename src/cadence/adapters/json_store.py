"""JSON file store adapter."""

import json
import logging
import os
import tempfile
from datetime import date
from pathlib import Path

from cadence.core.errors import CadenceError, NotFoundError, StoreUnavailableError
from cadence.core.models import CompletionRecord, Person, Task, TaskAssignment, parse_day
from cadence.core.working_days import WorkingCalendar

logger = logging.getLogger(__name__)

TABLES = (
    "organizations",
    "organization_settings",
    "users",
    "tasks",
    "task_assignments",
    "task_completions",
    "weekly_offs",
    "public_holidays",
    "user_weekly_offs",
    "personal_holidays",
)


def _row_key(row: dict) -> tuple[str, date]:
    """Occurrence key of a stored completion, read without parsing the rest."""
    return (str(row["assignment_id"]), parse_day(row.get("scheduled_date")) or parse_day(row.get("completion_date")))


class JsonFileStore:
    """
    Single-document JSON store.

    Implements TaskStore and WorkingDayStore protocols. The document holds one
    list of rows per table. Every call reads the file afresh; writes replace
    the file atomically.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    # ============== File I/O ==============

    def load(self) -> dict[str, list[dict]]:
        """Read the whole document. A missing file is an empty store."""
        if not self.path.exists():
            return {table: [] for table in TABLES}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise StoreUnavailableError(f"Cannot read store {self.path}: {e}")
        for table in TABLES:
            data.setdefault(table, [])
        return data

    def save(self, data: dict[str, list[dict]]) -> None:
        """Write the whole document."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2, default=str)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreUnavailableError(f"Cannot write store {self.path}: {e}")

    # ============== Organizations and people ==============

    def fetch_organizations(self) -> list[str]:
        return [str(o["id"]) for o in self.load()["organizations"]]

    def fetch_organization_settings(self, organization_id: str) -> dict[str, str]:
        return {
            s["setting_key"]: s["setting_value"]
            for s in self.load()["organization_settings"]
            if str(s.get("organization_id")) == organization_id
        }

    def fetch_person(self, person_id: str) -> Person:
        for row in self.load()["users"]:
            if str(row["id"]) == person_id:
                return Person.from_row(row)
        raise NotFoundError(f"Unknown person: {person_id}")

    def fetch_people(self, organization_id: str) -> list[Person]:
        return [
            Person.from_row(row)
            for row in self.load()["users"]
            if str(row.get("organization_id")) == organization_id and row.get("is_active", True)
        ]

    def fetch_subordinates(self, manager_id: str) -> list[Person]:
        return [
            Person.from_row(row)
            for row in self.load()["users"]
            if str(row.get("manager_id")) == manager_id and row.get("is_active", True)
        ]

    # ============== Assignments ==============

    def _assignments(self, data: dict, predicate) -> list[TaskAssignment]:
        tasks = {str(t["id"]): t for t in data["tasks"]}
        assignments = []
        for row in data["task_assignments"]:
            if not predicate(row):
                continue
            task_row = tasks.get(str(row["task_id"]))
            if task_row is None:
                logger.warning(f"Assignment {row['id']} points at missing task {row['task_id']}")
                continue
            assignments.append(TaskAssignment.from_row(row, task=Task.from_row(task_row)))
        return assignments

    def fetch_assignments(self, person_id: str) -> list[TaskAssignment]:
        return self._assignments(self.load(), lambda row: str(row["assigned_to"]) == person_id)

    def fetch_assignment(self, assignment_id: str) -> TaskAssignment:
        found = self._assignments(self.load(), lambda row: str(row["id"]) == assignment_id)
        if not found:
            raise NotFoundError(f"Unknown assignment: {assignment_id}")
        return found[0]

    # ============== Completions ==============

    def fetch_completions(
        self, assignment_ids: list[str], start: date, end: date
    ) -> list[CompletionRecord]:
        wanted = set(assignment_ids)
        records = []
        for row in self.load()["task_completions"]:
            if str(row["assignment_id"]) not in wanted:
                continue
            try:
                record = CompletionRecord.from_row(row)
            except CadenceError as e:
                logger.warning(f"Skipping unreadable completion for {row['assignment_id']}: {e}")
                continue
            if start <= record.scheduled_date <= end or start <= record.completion_date <= end:
                records.append(record)
        return records

    def fetch_completion(self, assignment_id: str, scheduled_date: date) -> CompletionRecord | None:
        for row in self.load()["task_completions"]:
            if _row_key(row) == (assignment_id, scheduled_date):
                return CompletionRecord.from_row(row)
        return None

    def upsert_completion(self, record: CompletionRecord) -> CompletionRecord:
        """Write the record, replacing any existing one for the same occurrence."""
        data = self.load()
        rows = [
            row
            for row in data["task_completions"]
            if _row_key(row) != record.key
        ]
        rows.append(record.to_row())
        data["task_completions"] = rows
        self.save(data)
        return record

    # ============== Working days ==============

    def fetch_working_calendar(self, person_id: str) -> WorkingCalendar:
        data = self.load()
        person = self.fetch_person(person_id)
        org = person.organization_id

        def in_org(row: dict) -> bool:
            return "organization_id" not in row or str(row["organization_id"]) == org

        return WorkingCalendar.from_rows(
            weekly_offs=[r for r in data["weekly_offs"] if in_org(r)],
            public_holidays=[r for r in data["public_holidays"] if in_org(r)],
            user_weekly_offs=[r for r in data["user_weekly_offs"] if str(r["user_id"]) == person_id],
            personal_holidays=[r for r in data["personal_holidays"] if str(r["user_id"]) == person_id],
        )
