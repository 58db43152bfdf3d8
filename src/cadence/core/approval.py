"""Manager approval of completions - pure, no I/O dependencies."""

from dataclasses import replace
from datetime import datetime, timezone

from .completion import REVIEWABLE_STATUSES
from .errors import ValidationError
from .models import ApprovalStatus, CompletionRecord


def _check_reviewable(record: CompletionRecord) -> None:
    # Earlier decisions, including auto-approval, may be revised
    if record.status not in REVIEWABLE_STATUSES:
        raise ValidationError("not-reviewable", f"A {record.status.value} task cannot be reviewed")


def approve(
    record: CompletionRecord,
    approver_id: str,
    comment: str | None = None,
    now: datetime | None = None,
) -> CompletionRecord:
    """Sign off on a completion. The completion status is left as submitted."""
    _check_reviewable(record)
    now = now or datetime.now(timezone.utc)
    return replace(
        record,
        approval_status=ApprovalStatus.APPROVED,
        approved_by=approver_id,
        approver_comment=(comment or "").strip() or None,
        approved_at=now,
        updated_at=now,
    )


def reject(
    record: CompletionRecord,
    approver_id: str,
    comment: str,
    now: datetime | None = None,
) -> CompletionRecord:
    """Reject a completion. A comment explaining why is mandatory."""
    if not comment or not comment.strip():
        raise ValidationError("comment-required-for-rejection", "A comment is required when rejecting a task")
    _check_reviewable(record)
    now = now or datetime.now(timezone.utc)
    return replace(
        record,
        approval_status=ApprovalStatus.REJECTED,
        approved_by=approver_id,
        approver_comment=comment.strip(),
        approved_at=now,
        updated_at=now,
    )
