"""Working-day data interface."""

from typing import Protocol

from cadence.core.working_days import WorkingCalendar


class WorkingDayStore(Protocol):
    """Interface for weekly offs, public holidays and leave."""

    def fetch_working_calendar(self, person_id: str) -> WorkingCalendar:
        """Organization and personal working-day data for one person."""
        ...
