"""Task store interface."""

from datetime import date
from typing import Protocol

from cadence.core.models import CompletionRecord, Person, TaskAssignment


class TaskStore(Protocol):
    """Interface for reading people, assignments and completions from any backend."""

    def fetch_organizations(self) -> list[str]:
        """IDs of all organizations."""
        ...

    def fetch_organization_settings(self, organization_id: str) -> dict[str, str]:
        """Raw key/value settings for an organization."""
        ...

    def fetch_person(self, person_id: str) -> Person:
        """Fetch one person. Raises NotFoundError if unknown."""
        ...

    def fetch_people(self, organization_id: str) -> list[Person]:
        """Active people in an organization."""
        ...

    def fetch_subordinates(self, manager_id: str) -> list[Person]:
        """Active people reporting to a manager."""
        ...

    def fetch_assignments(self, person_id: str) -> list[TaskAssignment]:
        """Assignments of a person, with their tasks embedded."""
        ...

    def fetch_assignment(self, assignment_id: str) -> TaskAssignment:
        """Fetch one assignment. Raises NotFoundError if unknown."""
        ...

    def fetch_completions(
        self, assignment_ids: list[str], start: date, end: date
    ) -> list[CompletionRecord]:
        """Records whose scheduled or completion date falls in start..end."""
        ...

    def fetch_completion(self, assignment_id: str, scheduled_date: date) -> CompletionRecord | None:
        """The record for one occurrence, if any."""
        ...

    def upsert_completion(self, record: CompletionRecord) -> CompletionRecord:
        """Insert or overwrite the record for (assignment_id, scheduled_date)."""
        ...
