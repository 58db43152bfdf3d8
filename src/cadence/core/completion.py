"""Completion status rules - pure, no I/O dependencies."""

from datetime import date, datetime, timezone

from .errors import ValidationError
from .models import ApprovalStatus, CompletionRecord, Status, Task

# Statuses a person may record
SUBMITTABLE_STATUSES = frozenset({Status.COMPLETED, Status.PARTIAL, Status.NOT_DONE, Status.PENDING})

# Statuses that need an explanation
NOTES_REQUIRED_STATUSES = frozenset({Status.NOT_DONE, Status.PARTIAL, Status.PENDING})

# Statuses a manager can sign off on
REVIEWABLE_STATUSES = frozenset({Status.COMPLETED, Status.PARTIAL, Status.NOT_DONE})


def derive_status(quantity: float | None, benchmark: float | None) -> Status:
    """
    Status implied by the quantity done.

    With a benchmark: completed at or above it, partial below it, not_done at
    zero. Without one: completed for any positive quantity.
    """
    done = quantity or 0
    if benchmark is not None and benchmark > 0:
        if done >= benchmark:
            return Status.COMPLETED
        if done > 0:
            return Status.PARTIAL
        return Status.NOT_DONE
    return Status.COMPLETED if done > 0 else Status.NOT_DONE


def _parse_status(status: Status | str) -> Status:
    try:
        parsed = Status(status)
    except ValueError:
        raise ValidationError("invalid-status", f"Unknown status: {status!r}")
    if parsed not in SUBMITTABLE_STATUSES:
        raise ValidationError("invalid-status", f"Status {parsed.value} cannot be submitted")
    return parsed


def prepare_completion(
    task: Task,
    assignment_id: str,
    scheduled_date: date,
    status: Status | str | None = None,
    quantity: float | None = None,
    notes: str | None = None,
    completion_date: date | None = None,
    auto_approve: bool = True,
    now: datetime | None = None,
) -> CompletionRecord:
    """
    Validate a submission and build the record to store.

    With an explicit status the quantity is informational only; otherwise the
    status is derived from quantity and benchmark. Raises ValidationError and
    builds nothing if the submission is incomplete.
    """
    now = now or datetime.now(timezone.utc)

    if quantity is not None and quantity < 0:
        raise ValidationError("invalid-quantity", "Quantity cannot be negative")
    if task.has_benchmark and quantity is None:
        raise ValidationError("quantity-required", "Quantity is required for tasks with a benchmark")

    resolved = _parse_status(status) if status is not None else derive_status(quantity, task.benchmark)

    cleaned_notes = notes.strip() if notes else ""
    if resolved in NOTES_REQUIRED_STATUSES and not cleaned_notes:
        raise ValidationError("notes-required", f"Notes are required when marking a task {resolved.value}")

    approval = None
    if resolved in REVIEWABLE_STATUSES:
        approval = ApprovalStatus.APPROVED if auto_approve else ApprovalStatus.PENDING

    return CompletionRecord(
        assignment_id=assignment_id,
        scheduled_date=scheduled_date,
        completion_date=completion_date or scheduled_date,
        status=resolved,
        quantity_completed=quantity,
        notes=cleaned_notes or None,
        approval_status=approval,
        updated_at=now,
    )
