"""Pure daily summary assembly - no I/O dependencies.

The summary is handed to the notification side as data; rendering and
delivery happen elsewhere.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from .models import ApprovalStatus, CompletionRecord, Person, Status, TaskAssignment
from .stats import completion_percentage
from .working_days import WorkingCalendar, is_on_leave, is_working_day


@dataclass
class SummaryItem:
    task_name: str
    status: Status
    scheduled_date: date
    completion_date: date
    quantity_completed: float | None = None
    benchmark: float | None = None
    notes: str | None = None
    approval_status: ApprovalStatus | None = None

    @property
    def delayed(self) -> bool:
        return self.completion_date > self.scheduled_date

    @property
    def approved_completion(self) -> bool:
        return self.status is Status.COMPLETED and self.approval_status is ApprovalStatus.APPROVED

    def to_dict(self) -> dict:
        return {
            "task_name": self.task_name,
            "status": self.status.value,
            "scheduled_date": self.scheduled_date.isoformat(),
            "completion_date": self.completion_date.isoformat(),
            "quantity_completed": self.quantity_completed,
            "benchmark": self.benchmark,
            "notes": self.notes,
            "approval_status": self.approval_status.value if self.approval_status else None,
            "delayed": self.delayed,
        }


@dataclass
class DailySummary:
    """What one person recorded on one day."""

    person_id: str
    full_name: str
    email: str
    date: date
    items: list[SummaryItem] = field(default_factory=list)
    scheduled: int = 0
    is_holiday: bool = False
    holiday_reason: str | None = None
    on_leave: bool = False
    manager_name: str | None = None
    manager_email: str | None = None

    def _count(self, status: Status) -> int:
        return sum(1 for item in self.items if item.status is status)

    @property
    def completed(self) -> int:
        return self._count(Status.COMPLETED)

    @property
    def partial(self) -> int:
        return self._count(Status.PARTIAL)

    @property
    def not_done(self) -> int:
        return self._count(Status.NOT_DONE)

    @property
    def pending(self) -> int:
        return self._count(Status.PENDING)

    @property
    def delayed(self) -> int:
        return sum(1 for item in self.items if item.delayed)

    @property
    def approved(self) -> int:
        return sum(1 for item in self.items if item.approved_completion)

    @property
    def completion_rate(self) -> int | None:
        """Approved completions over scheduled. None while on leave."""
        if self.on_leave:
            return None
        return completion_percentage(self.approved, self.scheduled)

    def to_dict(self) -> dict:
        return {
            "person_id": self.person_id,
            "full_name": self.full_name,
            "email": self.email,
            "manager_name": self.manager_name,
            "manager_email": self.manager_email,
            "date": self.date.isoformat(),
            "is_holiday": self.is_holiday,
            "holiday_reason": self.holiday_reason,
            "on_leave": self.on_leave,
            "scheduled": self.scheduled,
            "completed": self.completed,
            "approved": self.approved,
            "partial": self.partial,
            "not_done": self.not_done,
            "pending": self.pending,
            "delayed": self.delayed,
            "completion_rate": self.completion_rate,
            "items": [item.to_dict() for item in self.items],
        }


def build_daily_summary(
    person: Person,
    assignments: list[TaskAssignment],
    records: Iterable[CompletionRecord],
    calendar: WorkingCalendar,
    day: date,
    manager: Person | None = None,
) -> DailySummary | None:
    """
    Summarize records due or recorded on a day.

    Returns None when there is nothing to report, including days off on which
    nothing was recorded. Pure function - no I/O.
    """
    tasks = {a.id: a.task for a in assignments}
    todays = [r for r in records if r.scheduled_date == day or r.completion_date == day]
    if not todays:
        return None

    items = []
    for record in sorted(todays, key=lambda r: (r.scheduled_date, r.assignment_id)):
        task = tasks.get(record.assignment_id)
        items.append(
            SummaryItem(
                task_name=task.name if task else "Unknown Task",
                status=record.status,
                scheduled_date=record.scheduled_date,
                completion_date=record.completion_date,
                quantity_completed=record.quantity_completed,
                benchmark=task.benchmark if task else None,
                notes=record.notes,
                approval_status=record.approval_status,
            )
        )

    scheduled = sum(1 for r in todays if r.scheduled_date == day)
    working_day = is_working_day(calendar, day)

    return DailySummary(
        person_id=person.id,
        full_name=person.full_name,
        email=person.email,
        date=day,
        items=items,
        scheduled=scheduled or len(items),
        is_holiday=not working_day.is_working_day,
        holiday_reason=working_day.reason,
        on_leave=is_on_leave(calendar, day),
        manager_name=manager.full_name if manager else None,
        manager_email=manager.email if manager else None,
    )
