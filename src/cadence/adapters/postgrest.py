"""PostgREST adapter - HTTP client for a Supabase-style database."""

import logging
from datetime import date

import requests

from cadence.config import Config
from cadence.core.errors import CadenceError, ConflictError, NotFoundError, StoreUnavailableError
from cadence.core.models import CompletionRecord, Person, TaskAssignment
from cadence.core.working_days import WorkingCalendar

logger = logging.getLogger(__name__)

PERSON_COLUMNS = "id,organization_id,full_name,email,manager_id,is_active"
ASSIGNMENT_COLUMNS = (
    "id,task_id,assigned_to,assigned_by,created_at,delegation_type,"
    "task:tasks(id,name,description,category,benchmark,recurrence_type,recurrence_config,created_at,is_active)"
)


class PostgrestStore:
    """
    PostgREST store adapter.

    Implements TaskStore and WorkingDayStore protocols. Handles the HTTP
    calls and row mapping only. No business logic - just I/O.
    """

    def __init__(self, base_url: str, api_key: str, timeout: float = 10.0):
        if not base_url:
            raise StoreUnavailableError("POSTGREST_URL not configured")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        self._session.headers.update(
            {
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )

    @classmethod
    def from_config(cls, config: Config) -> "PostgrestStore":
        return cls(config.postgrest_url, config.postgrest_api_key)

    def _request(
        self,
        method: str,
        table: str,
        params: dict | None = None,
        json: dict | list | None = None,
        headers: dict | None = None,
    ) -> list[dict]:
        """Make a request against one table and return the rows."""
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            resp = self._session.request(
                method, url, params=params, json=json, headers=headers, timeout=self.timeout
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            raise StoreUnavailableError(f"Store unreachable: {e}")

        if resp.status_code == 409:
            raise ConflictError(f"Conflict writing {table}: {resp.text}")
        if resp.status_code >= 500:
            raise StoreUnavailableError(f"Store error {resp.status_code} on {table}: {resp.text}")
        resp.raise_for_status()
        if not resp.content:
            return []
        return resp.json()

    def _select(self, table: str, **params: str) -> list[dict]:
        return self._request("GET", table, params=params)

    # ============== Organizations and people ==============

    def fetch_organizations(self) -> list[str]:
        return [str(row["id"]) for row in self._select("organizations", select="id")]

    def fetch_organization_settings(self, organization_id: str) -> dict[str, str]:
        rows = self._select(
            "organization_settings",
            select="setting_key,setting_value",
            organization_id=f"eq.{organization_id}",
        )
        return {row["setting_key"]: row["setting_value"] for row in rows}

    def fetch_person(self, person_id: str) -> Person:
        rows = self._select("users", select=PERSON_COLUMNS, id=f"eq.{person_id}")
        if not rows:
            raise NotFoundError(f"Unknown person: {person_id}")
        return Person.from_row(rows[0])

    def fetch_people(self, organization_id: str) -> list[Person]:
        rows = self._select(
            "users",
            select=PERSON_COLUMNS,
            organization_id=f"eq.{organization_id}",
            is_active="eq.true",
        )
        return [Person.from_row(row) for row in rows]

    def fetch_subordinates(self, manager_id: str) -> list[Person]:
        rows = self._select(
            "users",
            select=PERSON_COLUMNS,
            manager_id=f"eq.{manager_id}",
            is_active="eq.true",
        )
        return [Person.from_row(row) for row in rows]

    # ============== Assignments ==============

    def _to_assignments(self, rows: list[dict]) -> list[TaskAssignment]:
        assignments = []
        for row in rows:
            if not row.get("task"):
                logger.warning(f"Assignment {row.get('id')} has no readable task")
                continue
            assignments.append(TaskAssignment.from_row(row))
        return assignments

    def fetch_assignments(self, person_id: str) -> list[TaskAssignment]:
        rows = self._select("task_assignments", select=ASSIGNMENT_COLUMNS, assigned_to=f"eq.{person_id}")
        return self._to_assignments(rows)

    def fetch_assignment(self, assignment_id: str) -> TaskAssignment:
        rows = self._select("task_assignments", select=ASSIGNMENT_COLUMNS, id=f"eq.{assignment_id}")
        assignments = self._to_assignments(rows)
        if not assignments:
            raise NotFoundError(f"Unknown assignment: {assignment_id}")
        return assignments[0]

    # ============== Completions ==============

    def fetch_completions(
        self, assignment_ids: list[str], start: date, end: date
    ) -> list[CompletionRecord]:
        if not assignment_ids:
            return []
        s, e = start.isoformat(), end.isoformat()
        rows = self._select(
            "task_completions",
            select="*",
            assignment_id=f"in.({','.join(assignment_ids)})",
            **{
                "or": (
                    f"(and(scheduled_date.gte.{s},scheduled_date.lte.{e}),"
                    f"and(completion_date.gte.{s},completion_date.lte.{e}))"
                )
            },
        )
        records = []
        for row in rows:
            try:
                records.append(CompletionRecord.from_row(row))
            except CadenceError as e:
                logger.warning(f"Skipping unreadable completion for {row.get('assignment_id')}: {e}")
        return records

    def fetch_completion(self, assignment_id: str, scheduled_date: date) -> CompletionRecord | None:
        rows = self._select(
            "task_completions",
            select="*",
            assignment_id=f"eq.{assignment_id}",
            scheduled_date=f"eq.{scheduled_date.isoformat()}",
        )
        return CompletionRecord.from_row(rows[0]) if rows else None

    def upsert_completion(self, record: CompletionRecord) -> CompletionRecord:
        """Insert or merge on the (assignment_id, scheduled_date) unique key."""
        rows = self._request(
            "POST",
            "task_completions",
            params={"on_conflict": "assignment_id,scheduled_date"},
            json=record.to_row(),
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        )
        return CompletionRecord.from_row(rows[0]) if rows else record

    # ============== Working days ==============

    def fetch_working_calendar(self, person_id: str) -> WorkingCalendar:
        person = self.fetch_person(person_id)
        org = f"eq.{person.organization_id}"
        user = f"eq.{person_id}"
        return WorkingCalendar.from_rows(
            weekly_offs=self._select("weekly_offs", select="day_of_week", organization_id=org),
            public_holidays=self._select(
                "public_holidays", select="holiday_name,holiday_date", organization_id=org
            ),
            user_weekly_offs=self._select("user_weekly_offs", select="day_of_week", user_id=user),
            personal_holidays=self._select(
                "personal_holidays",
                select="start_date,end_date,approval_status",
                user_id=user,
                approval_status="eq.approved",
            ),
        )
