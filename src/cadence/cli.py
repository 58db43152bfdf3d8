"""Cadence CLI - recurring task tracking."""

import json
import logging
import sys
from datetime import date

import click

from .config import load_config
from .core.agenda import DailyAgenda
from .core.errors import CadenceError
from .core.models import CompletionRecord, Occurrence
from .scheduler import run_scheduler
from .workflows import (
    approve as approve_completion,
    build_daily_agenda,
    build_monthly_agenda,
    check_working_day,
    daily_summary,
    get_outbox,
    get_store,
    month_bounds,
    monthly_completion,
    reject as reject_completion,
    submit_completion,
    team_completion,
)

DATE = click.DateTime(formats=["%Y-%m-%d"])
SUBMIT_STATUSES = ["completed", "partial", "not_done", "pending"]


@click.group()
@click.version_option()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output")
def main(verbose: bool):
    """Cadence - recurring task tracking CLI."""
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=logging.DEBUG if verbose else logging.WARNING,
    )


def _fail(e: CadenceError):
    click.echo(f"Error: {e}", err=True)
    sys.exit(1)


def _day(value) -> date | None:
    return value.date() if value else None


def _echo_json(data) -> None:
    click.echo(json.dumps(data, indent=2, default=str))


def _format_occurrence(occurrence: Occurrence) -> str:
    task = occurrence.task
    line = f"  [{occurrence.status.value:14}] {task.name}"
    if task.has_benchmark:
        done = occurrence.completion.quantity_completed if occurrence.completion else None
        line += f" ({done if done is not None else 0:g}/{task.benchmark:g})"
    if occurrence.carried_forward:
        line += f" (due {occurrence.scheduled_date})"
    return f"{line}  #{occurrence.assignment.id}"


def _show_agenda(agenda: DailyAgenda) -> None:
    click.echo(f"### {agenda.date.strftime('%A, %B %d')}")
    if not agenda.working_day.is_working_day:
        click.echo(f"Not a working day ({agenda.working_day.reason}).")

    if agenda.due_today:
        click.echo("\nDue today:")
        for occurrence in agenda.due_today:
            click.echo(_format_occurrence(occurrence))
    else:
        click.echo("\nNothing due today.")

    if agenda.pending_from_past:
        click.echo("\nPending from earlier days:")
        for occurrence in agenda.pending_from_past:
            click.echo(_format_occurrence(occurrence))


def _show_record(record: CompletionRecord) -> None:
    approval = record.approval_status.value if record.approval_status else "n/a"
    click.echo(
        f"{record.assignment_id} @ {record.scheduled_date}: {record.status.value} "
        f"(approval: {approval})"
    )


@main.command()
@click.argument("person")
@click.option("--date", "day", type=DATE, help="Day to show (default: today)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def agenda(person: str, day, as_json: bool):
    """Show a person's tasks for a day."""
    config = load_config()
    try:
        result = build_daily_agenda(get_store(config), config, person, _day(day))
    except CadenceError as e:
        _fail(e)

    if as_json:
        _echo_json(result.to_dict())
    else:
        _show_agenda(result)


@main.command()
@click.argument("person")
@click.option("--month", "month", help="Month as YYYY-MM (default: this month)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def month(person: str, month: str | None, as_json: bool):
    """Show a person's per-day status grid for a month."""
    config = load_config()
    try:
        start, end = month_bounds(month, config.timezone)
        rows = build_monthly_agenda(get_store(config), config, person, start, end)
    except CadenceError as e:
        _fail(e)

    if as_json:
        _echo_json([row.to_dict() for row in rows])
        return

    if not rows:
        click.echo("No tasks this month.")
        return

    for row in rows:
        click.echo(f"### {row.assignment.task.name}  #{row.assignment.id}")
        for day, status in sorted(row.statuses.items()):
            click.echo(f"  {day.strftime('%a %d')}  {status.value}")


@main.command()
@click.argument("assignment")
@click.option("--date", "day", type=DATE, help="Date the task was due (default: today)")
@click.option("--status", type=click.Choice(SUBMIT_STATUSES), help="Outcome of the task")
@click.option("--quantity", type=float, help="Quantity done, for tasks with a benchmark")
@click.option("--notes", help="Required unless the task was completed")
def submit(assignment: str, day, status: str | None, quantity: float | None, notes: str | None):
    """Record the outcome of a task."""
    config = load_config()
    try:
        record = submit_completion(
            get_store(config),
            config,
            assignment,
            _day(day),
            status=status,
            quantity=quantity,
            notes=notes,
        )
    except CadenceError as e:
        _fail(e)
    _show_record(record)


@main.command()
@click.argument("assignment")
@click.argument("day", type=DATE)
@click.option("--by", "approver", required=True, help="ID of the approving manager")
@click.option("--comment", help="Optional comment")
def approve(assignment: str, day, approver: str, comment: str | None):
    """Approve a submitted task."""
    config = load_config()
    try:
        record = approve_completion(get_store(config), config, assignment, day.date(), approver, comment)
    except CadenceError as e:
        _fail(e)
    _show_record(record)


@main.command()
@click.argument("assignment")
@click.argument("day", type=DATE)
@click.option("--by", "approver", required=True, help="ID of the rejecting manager")
@click.option("--comment", required=True, help="Reason for rejection")
def reject(assignment: str, day, approver: str, comment: str):
    """Reject a submitted task."""
    config = load_config()
    try:
        record = reject_completion(get_store(config), config, assignment, day.date(), approver, comment)
    except CadenceError as e:
        _fail(e)
    _show_record(record)


@main.command()
@click.argument("person")
@click.option("--month", "month", help="Month as YYYY-MM (default: this month)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def stats(person: str, month: str | None, as_json: bool):
    """Show a person's completion rate for a month."""
    config = load_config()
    try:
        start, end = month_bounds(month, config.timezone)
        result = monthly_completion(get_store(config), config, person, start, end)
    except CadenceError as e:
        _fail(e)

    if as_json:
        _echo_json(result.to_dict())
    else:
        click.echo(f"{start:%B %Y}: {result.completed}/{result.total} completed ({result.percentage}%)")


@main.command()
@click.argument("manager")
@click.option("--month", "month", help="Month as YYYY-MM (default: this month)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def team(manager: str, month: str | None, as_json: bool):
    """Show completion rates for a manager's team."""
    config = load_config()
    try:
        start, end = month_bounds(month, config.timezone)
        members = team_completion(get_store(config), config, manager, start, end)
    except CadenceError as e:
        _fail(e)

    if as_json:
        _echo_json([m.to_dict() for m in members])
        return

    if not members:
        click.echo("No team members.")
        return

    for member in members:
        s = member.stats
        click.echo(f"{member.person.full_name or member.person.id:30} {s.completed:>3}/{s.total:<3} {s.percentage:>3}%")


@main.command("working-day")
@click.argument("person")
@click.option("--date", "day", type=DATE, help="Day to check (default: today)")
def working_day(person: str, day):
    """Check whether a day is a working day for a person."""
    config = load_config()
    try:
        info = check_working_day(get_store(config), config, person, _day(day))
    except CadenceError as e:
        _fail(e)

    if info.is_working_day:
        click.echo("Working day")
    else:
        click.echo(f"Not a working day: {info.reason}")


@main.command()
@click.argument("person")
@click.option("--date", "day", type=DATE, help="Day to summarize (default: today)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option("--deliver", is_flag=True, help="Also write the summary to the outbox")
def summary(person: str, day, as_json: bool, deliver: bool):
    """Show a person's daily summary."""
    config = load_config()
    try:
        result = daily_summary(get_store(config), config, person, _day(day))
    except CadenceError as e:
        _fail(e)

    if result is None:
        click.echo("Nothing recorded.")
        return

    if deliver:
        get_outbox(config).deliver(result)

    if as_json:
        _echo_json(result.to_dict())
        return

    click.echo(f"### {result.full_name or result.person_id} - {result.date}")
    if result.is_holiday:
        click.echo(f"Not a working day ({result.holiday_reason})")
    rate = "n/a" if result.completion_rate is None else f"{result.completion_rate}%"
    click.echo(
        f"Completed {result.completed}, partial {result.partial}, not done {result.not_done}, "
        f"pending {result.pending}, delayed {result.delayed} - rate {rate}"
    )
    for item in result.items:
        late = " (late)" if item.delayed else ""
        click.echo(f"  [{item.status.value:9}] {item.task_name}{late}")


@main.command()
def serve():
    """Run the daily summary scheduler."""
    try:
        run_scheduler()
    except CadenceError as e:
        _fail(e)


if __name__ == "__main__":
    main()
