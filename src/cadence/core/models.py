"""Pure task domain model - no I/O dependencies."""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from .errors import ConfigError, ValidationError
from .recurrence import RecurrenceRule, RecurrenceType, normalize_recurrence

logger = logging.getLogger(__name__)


class Status(Enum):
    """Completion status of a single occurrence."""

    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    PARTIAL = "partial"
    NOT_DONE = "not_done"
    PENDING = "pending"
    NOT_APPLICABLE = "not_applicable"


# Values older rows may carry; lateness is now read from the dates
LEGACY_STATUSES = {"delayed": Status.COMPLETED}


def parse_status(value: str) -> Status:
    """Read a stored status, mapping legacy values onto current ones."""
    if value in LEGACY_STATUSES:
        return LEGACY_STATUSES[value]
    try:
        return Status(value)
    except ValueError:
        raise ValidationError("invalid-status", f"Unknown status: {value!r}")


class ApprovalStatus(Enum):
    """Manager sign-off on a submitted completion."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


def parse_instant(value: str | datetime | None) -> datetime | None:
    """Parse an ISO timestamp; naive values are read as UTC."""
    if value is None or value == "":
        return None
    dt = value if isinstance(value, datetime) else datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_day(value: str | date | None) -> date | None:
    """Parse a YYYY-MM-DD value (or the date part of a timestamp)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


@dataclass
class Task:
    """A task definition with its recurrence."""

    id: str
    name: str
    recurrence_type: RecurrenceType
    created_at: datetime
    recurrence_config: dict | None = None
    benchmark: float | None = None
    category: str | None = None
    description: str | None = None
    is_active: bool = True
    rule: RecurrenceRule | None = field(default=None, compare=False)

    def __post_init__(self):
        if not isinstance(self.recurrence_type, RecurrenceType):
            self.recurrence_type = RecurrenceType(self.recurrence_type)
        self.created_at = parse_instant(self.created_at)
        # Legacy field aliases are resolved here, once.
        if self.rule is None and self.recurrence_type is not RecurrenceType.NONE:
            try:
                self.rule = normalize_recurrence(self.recurrence_type, self.recurrence_config)
            except ConfigError as e:
                logger.warning(f"Task {self.id} has an unusable recurrence: {e}")

    @property
    def has_benchmark(self) -> bool:
        return self.benchmark is not None and self.benchmark > 0

    @classmethod
    def from_row(cls, data: dict) -> "Task":
        """Create Task from a stored row."""
        benchmark = data.get("benchmark")
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            recurrence_type=data.get("recurrence_type") or "none",
            created_at=data["created_at"],
            recurrence_config=data.get("recurrence_config"),
            benchmark=float(benchmark) if benchmark is not None else None,
            category=data.get("category"),
            description=data.get("description"),
            is_active=data.get("is_active", True),
        )

    def to_row(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "recurrence_type": self.recurrence_type.value,
            "recurrence_config": self.recurrence_config,
            "created_at": self.created_at.isoformat(),
            "benchmark": self.benchmark,
            "category": self.category,
            "description": self.description,
            "is_active": self.is_active,
        }


@dataclass
class Person:
    """A member of an organization."""

    id: str
    organization_id: str
    full_name: str = ""
    email: str = ""
    manager_id: str | None = None
    is_active: bool = True

    @classmethod
    def from_row(cls, data: dict) -> "Person":
        return cls(
            id=str(data["id"]),
            organization_id=str(data.get("organization_id") or ""),
            full_name=data.get("full_name") or "",
            email=data.get("email") or "",
            manager_id=data.get("manager_id"),
            is_active=data.get("is_active", True),
        )


@dataclass
class TaskAssignment:
    """Binds a task to an assignee. One assignment yields many occurrences."""

    id: str
    task: Task
    assigned_to: str
    assigned_by: str | None = None
    assigned_at: datetime | None = None
    delegation_type: str | None = None
    is_active: bool = True

    @property
    def active(self) -> bool:
        return self.is_active and self.task.is_active

    @classmethod
    def from_row(cls, data: dict, task: Task | None = None) -> "TaskAssignment":
        """Create from a stored row; the task may be embedded under "task"."""
        return cls(
            id=str(data["id"]),
            task=task or Task.from_row(data["task"]),
            assigned_to=str(data["assigned_to"]),
            assigned_by=data.get("assigned_by"),
            assigned_at=parse_instant(data.get("assigned_at") or data.get("created_at")),
            delegation_type=data.get("delegation_type"),
            is_active=data.get("is_active", True),
        )


@dataclass
class CompletionRecord:
    """Outcome recorded for one (assignment, scheduled_date) occurrence."""

    assignment_id: str
    scheduled_date: date
    completion_date: date
    status: Status
    quantity_completed: float | None = None
    notes: str | None = None
    approval_status: ApprovalStatus | None = None
    approved_by: str | None = None
    approver_comment: str | None = None
    approved_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def key(self) -> tuple[str, date]:
        return (self.assignment_id, self.scheduled_date)

    @property
    def is_delayed(self) -> bool:
        """Recorded after the day it was due."""
        return self.completion_date > self.scheduled_date

    @property
    def is_approved_completion(self) -> bool:
        return self.status is Status.COMPLETED and self.approval_status is ApprovalStatus.APPROVED

    @classmethod
    def from_row(cls, data: dict) -> "CompletionRecord":
        completion_date = parse_day(data.get("completion_date"))
        scheduled_date = parse_day(data.get("scheduled_date")) or completion_date
        quantity = data.get("quantity_completed")
        approval = data.get("approval_status")
        return cls(
            assignment_id=str(data["assignment_id"]),
            scheduled_date=scheduled_date,
            completion_date=completion_date or scheduled_date,
            status=parse_status(data["status"]),
            quantity_completed=float(quantity) if quantity is not None else None,
            notes=data.get("notes"),
            approval_status=ApprovalStatus(approval) if approval else None,
            approved_by=data.get("approved_by"),
            approver_comment=data.get("approver_comment"),
            approved_at=parse_instant(data.get("approved_at")),
            updated_at=parse_instant(data.get("updated_at")),
        )

    def to_row(self) -> dict:
        return {
            "assignment_id": self.assignment_id,
            "scheduled_date": self.scheduled_date.isoformat(),
            "completion_date": self.completion_date.isoformat(),
            "status": self.status.value,
            "quantity_completed": self.quantity_completed,
            "notes": self.notes,
            "approval_status": self.approval_status.value if self.approval_status else None,
            "approved_by": self.approved_by,
            "approver_comment": self.approver_comment,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass
class Occurrence:
    """A single due-date instance of an assignment."""

    assignment: TaskAssignment
    scheduled_date: date
    status: Status
    completion: CompletionRecord | None = None
    carried_forward: bool = False

    @property
    def task(self) -> Task:
        return self.assignment.task

    @property
    def key(self) -> tuple[str, date]:
        return (self.assignment.id, self.scheduled_date)

    def to_dict(self) -> dict:
        return {
            "assignment_id": self.assignment.id,
            "task_id": self.task.id,
            "task_name": self.task.name,
            "benchmark": self.task.benchmark,
            "scheduled_date": self.scheduled_date.isoformat(),
            "status": self.status.value,
            "carried_forward": self.carried_forward,
            "completion": self.completion.to_row() if self.completion else None,
        }
