"""Pure agenda assembly logic - no I/O dependencies."""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone, tzinfo

from .models import CompletionRecord, Occurrence, Status, TaskAssignment
from .recurrence import applies, local_date, occurrences
from .working_days import WorkingCalendar, WorkingDayInfo, is_working_day

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 30

# Statuses that leave an occurrence unresolved
CARRY_FORWARD_STATUSES = frozenset({Status.PENDING, Status.SCHEDULED})

CompletionIndex = Mapping[tuple[str, date], CompletionRecord]


@dataclass
class DailyAgenda:
    """A person's tasks for one day."""

    date: date
    working_day: WorkingDayInfo
    due_today: list[Occurrence] = field(default_factory=list)
    pending_from_past: list[Occurrence] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "working_day": self.working_day.to_dict(),
            "due_today": [o.to_dict() for o in self.due_today],
            "pending_from_past": [o.to_dict() for o in self.pending_from_past],
        }


@dataclass
class MonthlyRow:
    """Per-day statuses of one assignment across a date range."""

    assignment: TaskAssignment
    statuses: dict[date, Status] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "assignment_id": self.assignment.id,
            "task_name": self.assignment.task.name,
            "statuses": {d.isoformat(): s.value for d, s in sorted(self.statuses.items())},
        }


def index_completions(records: Iterable[CompletionRecord]) -> dict[tuple[str, date], CompletionRecord]:
    """Key records by (assignment_id, scheduled_date); later records win."""
    return {r.key: r for r in records}


def _as_index(completions: CompletionIndex | Iterable[CompletionRecord]) -> CompletionIndex:
    if isinstance(completions, Mapping):
        return completions
    return index_completions(completions)


def _due_on(
    assignment: TaskAssignment,
    index: CompletionIndex,
    day: date,
    working_day: WorkingDayInfo,
    tz: str | tzinfo | None,
) -> list[Occurrence]:
    if not applies(assignment.task, day, tz):
        return []
    record = index.get((assignment.id, day))
    if record is not None:
        status = record.status
    elif working_day.is_working_day:
        status = Status.SCHEDULED
    else:
        status = Status.NOT_APPLICABLE
    return [Occurrence(assignment, day, status, completion=record)]


def _carried_forward(
    assignment: TaskAssignment,
    index: CompletionIndex,
    calendar: WorkingCalendar,
    day: date,
    tz: str | tzinfo | None,
    lookback_days: int,
) -> list[Occurrence]:
    yesterday = day - timedelta(days=1)
    horizon = max(day - timedelta(days=lookback_days), local_date(assignment.task.created_at, tz))
    if horizon > yesterday:
        return []

    pending = []
    for due in occurrences(assignment.task, horizon, yesterday, tz):
        if not is_working_day(calendar, due).is_working_day:
            continue
        record = index.get((assignment.id, due))
        if record is None or record.status in CARRY_FORWARD_STATUSES:
            pending.append(
                Occurrence(assignment, due, Status.PENDING, completion=record, carried_forward=True)
            )
    return pending


def build_daily_agenda(
    assignments: list[TaskAssignment],
    completions: CompletionIndex | Iterable[CompletionRecord],
    calendar: WorkingCalendar,
    day: date,
    tz: str | tzinfo | None = None,
    lookback_days: int = DEFAULT_LOOKBACK_DAYS,
) -> DailyAgenda:
    """
    Assemble the tasks due on a day plus unresolved ones from earlier days.

    Pure function - no I/O, never mutates its inputs. One broken assignment is
    logged and skipped; it never prevents the rest of the agenda from building.
    """
    index = _as_index(completions)
    working_day = is_working_day(calendar, day)
    agenda = DailyAgenda(date=day, working_day=working_day)

    for assignment in assignments:
        if not assignment.active:
            continue
        try:
            due = _due_on(assignment, index, day, working_day, tz)
            pending = []
            # Nothing is carried onto a day off
            if working_day.is_working_day:
                pending = _carried_forward(assignment, index, calendar, day, tz, lookback_days)
        except Exception as e:
            logger.warning(f"Skipping assignment {assignment.id} for {day}: {e}")
            continue
        agenda.due_today.extend(due)
        agenda.pending_from_past.extend(pending)

    agenda.due_today.sort(key=lambda o: (o.task.name.lower(), o.assignment.id))
    agenda.pending_from_past.sort(key=lambda o: (o.scheduled_date, o.task.name.lower(), o.assignment.id))
    return agenda


def build_monthly_agenda(
    assignments: list[TaskAssignment],
    completions: CompletionIndex | Iterable[CompletionRecord],
    calendar: WorkingCalendar,
    start: date,
    end: date,
    tz: str | tzinfo | None = None,
    today: date | None = None,
) -> list[MonthlyRow]:
    """
    Status grid for each assignment over start..end inclusive.

    Only dates the task applies on appear in a row. Days off are
    not_applicable; unrecorded past days are pending; today and later are
    scheduled. Pure function - no I/O.
    """
    index = _as_index(completions)
    today = today or local_date(datetime.now(timezone.utc), tz)
    rows = []

    for assignment in assignments:
        if not assignment.active:
            continue
        row = MonthlyRow(assignment)
        try:
            for due in occurrences(assignment.task, start, end, tz):
                record = index.get((assignment.id, due))
                if not is_working_day(calendar, due).is_working_day:
                    row.statuses[due] = Status.NOT_APPLICABLE
                elif record is not None:
                    row.statuses[due] = record.status
                elif due >= today:
                    row.statuses[due] = Status.SCHEDULED
                else:
                    row.statuses[due] = Status.PENDING
        except Exception as e:
            logger.warning(f"Skipping assignment {assignment.id} for {start}..{end}: {e}")
            continue
        rows.append(row)

    rows.sort(key=lambda r: (r.assignment.task.name.lower(), r.assignment.id))
    return rows
