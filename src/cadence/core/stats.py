"""Pure completion statistics - no I/O dependencies."""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date

from .models import CompletionRecord, Person
from .working_days import WorkingCalendar, is_on_leave, leave_dates


def completion_percentage(completed: int, total: int) -> int:
    """
    The one completion rate used everywhere: completed / total, rounded half up.

    Partial completions earn no credit.
    """
    if total <= 0:
        return 0
    return math.floor(completed * 100 / total + 0.5)


@dataclass
class CompletionStats:
    total: int
    completed: int
    percentage: int

    def to_dict(self) -> dict:
        return {"total": self.total, "completed": self.completed, "percentage": self.percentage}


@dataclass
class MemberStats:
    """One team member's completion over a period."""

    person: Person
    stats: CompletionStats

    def to_dict(self) -> dict:
        return {
            "person_id": self.person.id,
            "full_name": self.person.full_name,
            "email": self.person.email,
            **self.stats.to_dict(),
        }


def _in_range(record: CompletionRecord, start: date, end: date) -> bool:
    return start <= record.scheduled_date <= end or start <= record.completion_date <= end


def monthly_completion(
    records: Iterable[CompletionRecord],
    calendar: WorkingCalendar,
    start: date,
    end: date,
    assignment_count: int = 0,
) -> CompletionStats:
    """
    Roll up completions over start..end inclusive.

    Counts unique (assignment, scheduled_date) occurrences, leaving out days
    the person was on approved leave. Only completed-and-approved records count
    as completed. With no records yet, the total falls back to the number of
    assignments, unless the whole period was leave.

    Pure function - no I/O.
    """
    in_range = [r for r in records if _in_range(r, start, end)]

    occurrences: dict[tuple[str, date], CompletionRecord] = {}
    for record in in_range:
        if is_on_leave(calendar, record.scheduled_date):
            continue
        occurrences[record.key] = record

    completed = sum(1 for r in occurrences.values() if r.is_approved_completion)

    period_days = (end - start).days + 1
    fully_on_leave = len(leave_dates(calendar, start, end)) >= period_days
    if occurrences:
        total = len(occurrences)
    elif in_range or fully_on_leave:
        total = 0
    else:
        total = assignment_count

    return CompletionStats(total=total, completed=completed, percentage=completion_percentage(completed, total))
