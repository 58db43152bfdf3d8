"""Shared workflow layer between the CLI and the scheduler.

Each function loads what it needs through the store ports, runs the pure core,
writes results back where the operation is a mutation, and returns the
updated data so callers never have to re-fetch.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol

from .adapters.json_store import JsonFileStore
from .adapters.postgrest import PostgrestStore
from .adapters.summary_outbox import FileSummaryOutbox
from .config import DATA_DIR, Config, OrgSettings
from .core import agenda, approval, completion, stats, summary
from .core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)
from .core.models import CompletionRecord, Person, Status
from .core.recurrence import applies, local_date
from .core.working_days import WorkingDayInfo, is_working_day
from .ports import SummarySink, TaskStore, WorkingDayStore

logger = logging.getLogger(__name__)


class Store(TaskStore, WorkingDayStore, Protocol):
    """Both store ports; every bundled adapter implements the pair."""


def get_store(config: Config) -> Store:
    """Resolve the configured persistence adapter."""
    match config.store:
        case "postgrest":
            return PostgrestStore.from_config(config)
        case "json":
            if config.data_file:
                return JsonFileStore(Path(config.data_file).expanduser())
            return JsonFileStore(DATA_DIR / "cadence.json")
    raise StoreUnavailableError(f"Unknown store: {config.store!r}")


def get_outbox(config: Config) -> FileSummaryOutbox:
    """Resolve the summary outbox directory from config."""
    if config.summary_dir:
        return FileSummaryOutbox(Path(config.summary_dir).expanduser())
    return FileSummaryOutbox(DATA_DIR / "summaries")


def today_in(tz: str) -> date:
    """The current calendar date in a timezone."""
    return local_date(datetime.now(timezone.utc), tz)


def org_settings(store: Store, config: Config, organization_id: str) -> OrgSettings:
    """Organization settings from the store layered over the config."""
    return OrgSettings.resolve(config, store.fetch_organization_settings(organization_id))


def _person_settings(store: Store, config: Config, person_id: str) -> tuple[Person, OrgSettings]:
    person = store.fetch_person(person_id)
    return person, org_settings(store, config, person.organization_id)


def _save(store: Store, record: CompletionRecord) -> CompletionRecord:
    """Upsert a record, retrying once if the store reports a conflict."""
    try:
        return store.upsert_completion(record)
    except ConflictError as e:
        logger.info(f"Conflict saving {record.assignment_id}@{record.scheduled_date}, retrying: {e}")
        return store.upsert_completion(record)


# ============== Agenda ==============


def build_daily_agenda(
    store: Store, config: Config, person_id: str, day: date | None = None
) -> agenda.DailyAgenda:
    """Tasks due for a person on a day, plus those carried forward."""
    person, settings = _person_settings(store, config, person_id)
    day = day or today_in(settings.timezone)

    assignments = store.fetch_assignments(person.id)
    horizon = day - timedelta(days=settings.carry_forward_days)
    records = store.fetch_completions([a.id for a in assignments], horizon, day)
    calendar = store.fetch_working_calendar(person.id)

    return agenda.build_daily_agenda(
        assignments,
        records,
        calendar,
        day,
        tz=settings.timezone,
        lookback_days=settings.carry_forward_days,
    )


def build_monthly_agenda(
    store: Store, config: Config, person_id: str, start: date, end: date
) -> list[agenda.MonthlyRow]:
    """Per-day status grid for a person's assignments over a date range."""
    person, settings = _person_settings(store, config, person_id)
    assignments = store.fetch_assignments(person.id)
    records = store.fetch_completions([a.id for a in assignments], start, end)
    calendar = store.fetch_working_calendar(person.id)

    return agenda.build_monthly_agenda(
        assignments,
        records,
        calendar,
        start,
        end,
        tz=settings.timezone,
        today=today_in(settings.timezone),
    )


def check_working_day(store: Store, config: Config, person_id: str, day: date | None = None) -> WorkingDayInfo:
    person, settings = _person_settings(store, config, person_id)
    return is_working_day(store.fetch_working_calendar(person.id), day or today_in(settings.timezone))


# ============== Completion and approval ==============


def submit_completion(
    store: Store,
    config: Config,
    assignment_id: str,
    scheduled_date: date | None = None,
    status: Status | str | None = None,
    quantity: float | None = None,
    notes: str | None = None,
    completion_date: date | None = None,
) -> CompletionRecord:
    """
    Record the outcome of one occurrence and return the stored record.

    The record is keyed on its original due date, so late completions of
    carried-forward tasks stay attached to the day they were due. The due
    date defaults to today in the organization's timezone.
    """
    assignment = store.fetch_assignment(assignment_id)
    _, settings = _person_settings(store, config, assignment.assigned_to)
    scheduled_date = scheduled_date or today_in(settings.timezone)

    if not assignment.active:
        raise ValidationError("inactive-assignment", f"Assignment {assignment.id} is no longer active")

    if not applies(assignment.task, scheduled_date, settings.timezone):
        raise ValidationError(
            "not-due", f"{assignment.task.name} is not due on {scheduled_date.isoformat()}"
        )

    record = completion.prepare_completion(
        assignment.task,
        assignment.id,
        scheduled_date,
        status=status,
        quantity=quantity,
        notes=notes,
        completion_date=completion_date or today_in(settings.timezone),
        auto_approve=settings.auto_approve,
    )
    saved = _save(store, record)
    logger.info(f"Recorded {saved.status.value} for {assignment.id}@{scheduled_date}")
    return saved


def _record_for_review(
    store: Store, assignment_id: str, scheduled_date: date, approver_id: str
) -> CompletionRecord:
    """Fetch a record, checking the approver manages its assignee."""
    assignment = store.fetch_assignment(assignment_id)
    assignee = store.fetch_person(assignment.assigned_to)
    if assignee.manager_id != approver_id:
        raise AuthorizationError(f"{approver_id} does not manage {assignee.id}")

    record = store.fetch_completion(assignment_id, scheduled_date)
    if record is None:
        raise NotFoundError(f"No completion for {assignment_id} on {scheduled_date.isoformat()}")
    return record


def approve(
    store: Store,
    config: Config,
    assignment_id: str,
    scheduled_date: date,
    approver_id: str,
    comment: str | None = None,
) -> CompletionRecord:
    """Approve a submitted completion as the assignee's manager."""
    record = _record_for_review(store, assignment_id, scheduled_date, approver_id)
    return _save(store, approval.approve(record, approver_id, comment))


def reject(
    store: Store,
    config: Config,
    assignment_id: str,
    scheduled_date: date,
    approver_id: str,
    comment: str,
) -> CompletionRecord:
    """Reject a submitted completion as the assignee's manager."""
    if not comment or not comment.strip():
        raise ValidationError("comment-required-for-rejection", "A comment is required when rejecting a task")
    record = _record_for_review(store, assignment_id, scheduled_date, approver_id)
    return _save(store, approval.reject(record, approver_id, comment))


# ============== Statistics ==============


def monthly_completion(
    store: Store, config: Config, person_id: str, start: date, end: date
) -> stats.CompletionStats:
    """Completion counts for a person over start..end inclusive."""
    assignments = store.fetch_assignments(person_id)
    records = store.fetch_completions([a.id for a in assignments], start, end)
    calendar = store.fetch_working_calendar(person_id)
    active = sum(1 for a in assignments if a.active)
    return stats.monthly_completion(records, calendar, start, end, assignment_count=active)


def team_completion(
    store: Store, config: Config, manager_id: str, start: date, end: date
) -> list[stats.MemberStats]:
    """Completion counts for each active person reporting to a manager."""
    team = []
    for person in store.fetch_subordinates(manager_id):
        try:
            member = stats.MemberStats(person, monthly_completion(store, config, person.id, start, end))
        except StoreUnavailableError:
            raise
        except Exception as e:
            logger.warning(f"Skipping stats for {person.id}: {e}")
            continue
        team.append(member)
    return sorted(team, key=lambda m: m.person.full_name.lower())


# ============== Daily summaries ==============


def daily_summary(store: Store, config: Config, person_id: str, day: date | None = None) -> summary.DailySummary | None:
    """One person's summary for a day, or None when nothing was recorded."""
    person, settings = _person_settings(store, config, person_id)
    day = day or today_in(settings.timezone)

    assignments = store.fetch_assignments(person.id)
    records = store.fetch_completions([a.id for a in assignments], day, day)
    calendar = store.fetch_working_calendar(person.id)

    manager = None
    if person.manager_id:
        try:
            manager = store.fetch_person(person.manager_id)
        except NotFoundError:
            logger.warning(f"Manager {person.manager_id} of {person.id} not found")

    return summary.build_daily_summary(person, assignments, records, calendar, day, manager=manager)


def compile_daily_summaries(
    store: Store, config: Config, organization_id: str, run_date: date | None = None
) -> list[summary.DailySummary]:
    """
    Summaries for every active person in an organization.

    With summary_day = previous, the day before the run date is summarized.
    One person's failure is logged and skipped.
    """
    settings = org_settings(store, config, organization_id)
    day = run_date or today_in(settings.timezone)
    if settings.summary_day == "previous":
        day -= timedelta(days=1)

    summaries = []
    for person in store.fetch_people(organization_id):
        try:
            result = daily_summary(store, config, person.id, day)
        except StoreUnavailableError:
            raise
        except Exception as e:
            logger.error(f"Failed to summarize {person.id} for {day}: {e}")
            continue
        if result is None:
            logger.info(f"Nothing to report for {person.id} on {day}")
            continue
        summaries.append(result)
    return summaries


def send_daily_summaries(
    store: Store,
    sink: SummarySink,
    config: Config,
    organization_ids: list[str] | None = None,
    run_date: date | None = None,
) -> dict[str, int]:
    """Compile and deliver summaries; returns delivered/failed counts."""
    delivered = failed = 0
    for organization_id in organization_ids or store.fetch_organizations():
        try:
            summaries = compile_daily_summaries(store, config, organization_id, run_date)
        except Exception as e:
            logger.error(f"Failed to compile summaries for organization {organization_id}: {e}")
            failed += 1
            continue
        for item in summaries:
            try:
                sink.deliver(item)
                delivered += 1
            except Exception as e:
                logger.error(f"Failed to deliver summary for {item.person_id}: {e}")
                failed += 1

    logger.info(f"Summary processing complete. Delivered: {delivered}, Failed: {failed}")
    return {"delivered": delivered, "failed": failed}


def month_bounds(value: str | None, tz: str) -> tuple[date, date]:
    """First and last day of a YYYY-MM month; the current month if None."""
    if value:
        try:
            year, month = (int(part) for part in value.split("-"))
            first = date(year, month, 1)
        except ValueError:
            raise ValidationError("invalid-month", f"Expected YYYY-MM, got {value!r}")
    else:
        first = today_in(tz).replace(day=1)
    following = (first.replace(day=28) + timedelta(days=4)).replace(day=1)
    return first, following - timedelta(days=1)
