"""Functional core - pure scheduling logic with no I/O."""

from .errors import (
    CadenceError,
    ConfigError,
    ValidationError,
    ConflictError,
    AuthorizationError,
    NotFoundError,
    StoreUnavailableError,
)
from .recurrence import RecurrenceType, normalize_recurrence, applies, occurrences
from .models import Task, Person, TaskAssignment, CompletionRecord, Occurrence, Status, ApprovalStatus
from .working_days import WorkingCalendar, PersonalHoliday, WorkingDayInfo, is_working_day, next_working_day
from .agenda import DailyAgenda, MonthlyRow, build_daily_agenda, build_monthly_agenda
from .completion import derive_status, prepare_completion
from .approval import approve, reject
from .stats import CompletionStats, MemberStats, monthly_completion, completion_percentage
from .summary import DailySummary, SummaryItem, build_daily_summary

__all__ = [
    # Errors
    "CadenceError",
    "ConfigError",
    "ValidationError",
    "ConflictError",
    "AuthorizationError",
    "NotFoundError",
    "StoreUnavailableError",
    # Recurrence
    "RecurrenceType",
    "normalize_recurrence",
    "applies",
    "occurrences",
    # Models
    "Task",
    "Person",
    "TaskAssignment",
    "CompletionRecord",
    "Occurrence",
    "Status",
    "ApprovalStatus",
    # Working days
    "WorkingCalendar",
    "PersonalHoliday",
    "WorkingDayInfo",
    "is_working_day",
    "next_working_day",
    # Agenda
    "DailyAgenda",
    "MonthlyRow",
    "build_daily_agenda",
    "build_monthly_agenda",
    # Completion and approval
    "derive_status",
    "prepare_completion",
    "approve",
    "reject",
    # Stats and summaries
    "CompletionStats",
    "MemberStats",
    "monthly_completion",
    "completion_percentage",
    "DailySummary",
    "SummaryItem",
    "build_daily_summary",
]
