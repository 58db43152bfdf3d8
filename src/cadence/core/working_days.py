"""Pure working-day policy - no I/O dependencies."""

from dataclasses import dataclass, field
from datetime import date, timedelta

WEEKDAY_NAMES = ("sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday")

WEEKLY_OFF = "weekly off"
ON_LEAVE = "on leave"


def weekday_index(day: date) -> int:
    """0=Sunday..6=Saturday."""
    return (day.weekday() + 1) % 7


def parse_weekday(value: str | int) -> int:
    """Accept a stored weekday name ("monday") or a Sunday-first index."""
    if isinstance(value, int):
        if not 0 <= value <= 6:
            raise ValueError(f"Weekday index out of range: {value}")
        return value
    name = value.strip().lower()
    if name not in WEEKDAY_NAMES:
        raise ValueError(f"Unknown weekday: {value!r}")
    return WEEKDAY_NAMES.index(name)


@dataclass
class PersonalHoliday:
    """A leave request covering start..end inclusive."""

    start: date
    end: date
    approval_status: str = "approved"

    @property
    def approved(self) -> bool:
        return self.approval_status == "approved"

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass
class WorkingCalendar:
    """Everything needed to decide working days for one person."""

    org_weekly_offs: frozenset[int] = frozenset()
    public_holidays: dict[date, str] = field(default_factory=dict)
    person_weekly_offs: frozenset[int] = frozenset()
    personal_holidays: list[PersonalHoliday] = field(default_factory=list)

    @property
    def effective_weekly_offs(self) -> frozenset[int]:
        """A person's own weekly offs replace the organization's entirely."""
        return self.person_weekly_offs or self.org_weekly_offs

    @classmethod
    def from_rows(
        cls,
        weekly_offs: list[dict],
        public_holidays: list[dict],
        user_weekly_offs: list[dict],
        personal_holidays: list[dict],
    ) -> "WorkingCalendar":
        """Create from stored rows (weekday names, ISO dates)."""
        return cls(
            org_weekly_offs=frozenset(parse_weekday(r["day_of_week"]) for r in weekly_offs),
            public_holidays={
                date.fromisoformat(r["holiday_date"][:10]): r.get("holiday_name") or "Public holiday"
                for r in public_holidays
            },
            person_weekly_offs=frozenset(parse_weekday(r["day_of_week"]) for r in user_weekly_offs),
            personal_holidays=[
                PersonalHoliday(
                    start=date.fromisoformat(r["start_date"][:10]),
                    end=date.fromisoformat(r["end_date"][:10]),
                    approval_status=r.get("approval_status") or "pending",
                )
                for r in personal_holidays
            ],
        )


@dataclass
class WorkingDayInfo:
    is_working_day: bool
    reason: str | None = None

    def to_dict(self) -> dict:
        return {"is_working_day": self.is_working_day, "reason": self.reason}


def is_working_day(calendar: WorkingCalendar, day: date) -> WorkingDayInfo:
    """
    Decide whether a day is a working day for the calendar's owner.

    Order: public holiday, weekly off (personal override, else organization),
    approved leave. Pure function - no I/O.
    """
    holiday = calendar.public_holidays.get(day)
    if holiday is not None:
        return WorkingDayInfo(False, holiday)

    if weekday_index(day) in calendar.effective_weekly_offs:
        return WorkingDayInfo(False, WEEKLY_OFF)

    if is_on_leave(calendar, day):
        return WorkingDayInfo(False, ON_LEAVE)

    return WorkingDayInfo(True)


def is_on_leave(calendar: WorkingCalendar, day: date) -> bool:
    """Whether the day falls in an approved personal holiday."""
    return any(h.approved and h.contains(day) for h in calendar.personal_holidays)


def leave_dates(calendar: WorkingCalendar, start: date, end: date) -> set[date]:
    """Approved leave days within start..end inclusive."""
    dates = set()
    for holiday in calendar.personal_holidays:
        if not holiday.approved:
            continue
        day = max(start, holiday.start)
        last = min(end, holiday.end)
        while day <= last:
            dates.add(day)
            day += timedelta(days=1)
    return dates


def next_working_day(calendar: WorkingCalendar, day: date, max_days: int = 365) -> date | None:
    """First working day strictly after the given day, or None within max_days."""
    for offset in range(1, max_days + 1):
        candidate = day + timedelta(days=offset)
        if is_working_day(calendar, candidate).is_working_day:
            return candidate
    return None
