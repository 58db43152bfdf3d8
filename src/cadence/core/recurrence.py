"""Pure recurrence logic - expands recurrence definitions into due dates.

Raw recurrence configs come from storage in several historical shapes. They are
normalized once into one of the closed rule variants below; evaluation only
ever looks at those variants.

Weekdays are 0=Sunday..6=Saturday throughout the domain. dateutil counts
0=Monday, so indices are remapped only where a rule is handed to dateutil.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone, tzinfo
from enum import Enum
from typing import ClassVar
from zoneinfo import ZoneInfo

from dateutil import rrule

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Kolkata"

ORDINAL_POSITIONS = (1, 2, 3, 4, -1)


class RecurrenceType(Enum):
    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"
    CUSTOM = "custom"


def to_rrule_weekday(day: int) -> int:
    """Sunday-first index -> dateutil's Monday-first index."""
    return (day + 6) % 7


def from_rrule_weekday(day: int) -> int:
    """dateutil's Monday-first index -> Sunday-first index."""
    return (day + 1) % 7


def resolve_zone(tz: str | tzinfo | None) -> tzinfo:
    if tz is None:
        return ZoneInfo(DEFAULT_TIMEZONE)
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def local_date(value: date | datetime, tz: str | tzinfo | None = None) -> date:
    """Calendar date of a value in the given timezone.

    Plain dates are taken as already local. Naive datetimes are read as UTC.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(resolve_zone(tz)).date()
    return value


class EndKind(Enum):
    NEVER = "never"
    UNTIL = "until"
    COUNT = "count"


@dataclass(frozen=True)
class EndCondition:
    kind: EndKind = EndKind.NEVER
    until: date | datetime | None = None
    count: int | None = None

    def rrule_options(self, zone: tzinfo) -> dict:
        if self.kind is EndKind.UNTIL:
            # Inclusive of the whole final day
            return {"until": datetime.combine(local_date(self.until, zone), time.max, tzinfo=zone)}
        if self.kind is EndKind.COUNT:
            return {"count": self.count}
        return {}


@dataclass(frozen=True, kw_only=True)
class _Rule:
    frequency: ClassVar[int]

    interval: int = 1
    end: EndCondition = field(default_factory=EndCondition)

    def pattern_options(self) -> dict:
        return {}

    def rrule_options(self, zone: tzinfo) -> dict:
        return {
            "freq": self.frequency,
            "interval": self.interval,
            **self.end.rrule_options(zone),
            **self.pattern_options(),
        }


@dataclass(frozen=True, kw_only=True)
class DailyRule(_Rule):
    frequency: ClassVar[int] = rrule.DAILY


@dataclass(frozen=True, kw_only=True)
class WeeklyRule(_Rule):
    """Every N weeks on the given weekdays (anchor weekday when empty)."""

    frequency: ClassVar[int] = rrule.WEEKLY
    weekdays: tuple[int, ...] = ()

    def pattern_options(self) -> dict:
        if not self.weekdays:
            return {}
        return {"byweekday": [to_rrule_weekday(d) for d in self.weekdays]}


@dataclass(frozen=True, kw_only=True)
class MonthlyDayRule(_Rule):
    """Fixed day(s) of month (anchor day when empty)."""

    frequency: ClassVar[int] = rrule.MONTHLY
    days: tuple[int, ...] = ()

    def pattern_options(self) -> dict:
        return {"bymonthday": list(self.days)} if self.days else {}


@dataclass(frozen=True, kw_only=True)
class MonthlyWeekdayRule(_Rule):
    """Relative weekday within the month, e.g. first Monday or last Friday."""

    frequency: ClassVar[int] = rrule.MONTHLY
    positions: tuple[int, ...] = ()
    weekdays: tuple[int, ...] = ()

    def pattern_options(self) -> dict:
        return {
            "bysetpos": list(self.positions),
            "byweekday": [to_rrule_weekday(d) for d in self.weekdays],
        }


@dataclass(frozen=True, kw_only=True)
class YearlyDateRule(_Rule):
    """Fixed month/day. Empty months or days fall back to the anchor's."""

    frequency: ClassVar[int] = rrule.YEARLY
    months: tuple[int, ...] = ()
    days: tuple[int, ...] = ()

    def pattern_options(self) -> dict:
        options = {}
        if self.months:
            options["bymonth"] = list(self.months)
        if self.days:
            options["bymonthday"] = list(self.days)
        return options


@dataclass(frozen=True, kw_only=True)
class YearlyWeekdayRule(_Rule):
    """Relative weekday within given months, e.g. first Monday of January."""

    frequency: ClassVar[int] = rrule.YEARLY
    months: tuple[int, ...] = ()
    positions: tuple[int, ...] = ()
    weekdays: tuple[int, ...] = ()

    def pattern_options(self) -> dict:
        return {
            "bymonth": list(self.months),
            "bysetpos": list(self.positions),
            "byweekday": [to_rrule_weekday(d) for d in self.weekdays],
        }


RecurrenceRule = (
    DailyRule | WeeklyRule | MonthlyDayRule | MonthlyWeekdayRule | YearlyDateRule | YearlyWeekdayRule
)


# ============== Normalization ==============


def _int_list(config: dict, key: str, low: int, high: int) -> tuple[int, ...]:
    raw = config.get(key)
    if raw is None:
        return ()
    if isinstance(raw, (int, str)):
        raw = [raw]
    try:
        values = tuple(int(v) for v in raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be a list of integers, got {raw!r}")
    for v in values:
        if not low <= v <= high:
            raise ConfigError(f"{key} value {v} out of range {low}..{high}")
    return values


def _weekdays(config: dict, *keys: str) -> tuple[int, ...]:
    for key in keys:
        values = _int_list(config, key, 0, 6)
        if values:
            return values
    return ()


def _months(config: dict) -> tuple[int, ...]:
    # Stored months are 0-based (0=January)
    return tuple(m + 1 for m in _int_list(config, "bymonth", 0, 11))


def _positions(config: dict) -> tuple[int, ...]:
    values = _int_list(config, "bysetpos", -1, 4)
    for v in values:
        if v not in ORDINAL_POSITIONS:
            raise ConfigError(f"bysetpos value {v} is not one of {ORDINAL_POSITIONS}")
    return values


def _positive_int(value, key: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {value!r}")
    if number < 1:
        raise ConfigError(f"{key} must be positive, got {number}")
    return number


def _end_value(value, key: str) -> date | datetime:
    if isinstance(value, (date, datetime)):
        return value
    try:
        text = str(value)
        if len(text) <= 10:
            return date.fromisoformat(text)
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ConfigError(f"{key} is not an ISO date: {value!r}")
    # Date pickers send local midnight as a UTC instant; keep the instant
    return parsed if parsed.tzinfo else parsed.date()


def _parse_end(config: dict) -> EndCondition:
    """New-style endType fields win over the legacy until/count pair."""
    end_type = config.get("endType")
    if end_type == "on" and config.get("endDate"):
        return EndCondition(EndKind.UNTIL, until=_end_value(config["endDate"], "endDate"))
    if end_type == "after" and config.get("occurrences"):
        return EndCondition(EndKind.COUNT, count=_positive_int(config["occurrences"], "occurrences"))
    if end_type == "never":
        return EndCondition()
    if config.get("until"):
        return EndCondition(EndKind.UNTIL, until=_end_value(config["until"], "until"))
    if config.get("count"):
        return EndCondition(EndKind.COUNT, count=_positive_int(config["count"], "count"))
    return EndCondition()


def _effective_frequency(recurrence_type: RecurrenceType, config: dict) -> RecurrenceType:
    if recurrence_type is not RecurrenceType.CUSTOM:
        return recurrence_type
    frequency = config.get("frequency") or "daily"
    try:
        effective = RecurrenceType(frequency)
    except ValueError:
        raise ConfigError(f"Unknown custom frequency: {frequency!r}")
    if effective in (RecurrenceType.NONE, RecurrenceType.CUSTOM):
        raise ConfigError(f"Unsupported custom frequency: {frequency!r}")
    return effective


def normalize_recurrence(
    recurrence_type: RecurrenceType | str,
    config: dict | None,
) -> RecurrenceRule | None:
    """
    Map a stored recurrence definition onto its canonical rule.

    Returns None for one-time tasks. Raises ConfigError for malformed input,
    including a custom task with no config at all.
    """
    try:
        recurrence_type = RecurrenceType(recurrence_type)
    except ValueError:
        raise ConfigError(f"Unknown recurrence type: {recurrence_type!r}")

    if recurrence_type is RecurrenceType.NONE:
        return None
    if recurrence_type is RecurrenceType.CUSTOM and not config:
        raise ConfigError("Custom recurrence requires a config")
    if config is None:
        config = {}
    if not isinstance(config, dict):
        raise ConfigError(f"Recurrence config must be a mapping, got {type(config).__name__}")

    common = {
        "interval": _positive_int(config.get("interval") or 1, "interval"),
        "end": _parse_end(config),
    }

    match _effective_frequency(recurrence_type, config):
        case RecurrenceType.DAILY:
            return DailyRule(**common)
        case RecurrenceType.WEEKLY:
            return WeeklyRule(weekdays=_weekdays(config, "days", "byweekday"), **common)
        case RecurrenceType.MONTHLY:
            positions = _positions(config)
            weekdays = _weekdays(config, "byweekday")
            if config.get("monthlyType") == "weekday" and positions and weekdays:
                return MonthlyWeekdayRule(positions=positions, weekdays=weekdays, **common)
            if config.get("monthlyType") == "date" and config.get("dayOfMonth"):
                return MonthlyDayRule(days=_int_list(config, "dayOfMonth", 1, 31), **common)
            return MonthlyDayRule(days=_int_list(config, "bymonthday", 1, 31), **common)
        case RecurrenceType.YEARLY:
            months = _months(config)
            positions = _positions(config)
            weekdays = _weekdays(config, "byweekday")
            if config.get("yearlyType") == "weekday" and positions and weekdays and months:
                return YearlyWeekdayRule(
                    months=months, positions=positions, weekdays=weekdays, **common
                )
            if config.get("yearlyType") == "date" and config.get("dayOfMonth") and months:
                return YearlyDateRule(
                    months=months, days=_int_list(config, "dayOfMonth", 1, 31), **common
                )
            # A day without a month falls back to the anchor date
            days = _int_list(config, "bymonthday", 1, 31) if months else ()
            return YearlyDateRule(months=months, days=days, **common)

    raise ConfigError(f"Unhandled recurrence type: {recurrence_type.value}")


# ============== Evaluation ==============


def build_rrule(rule: RecurrenceRule, anchor: datetime, tz: str | tzinfo | None = None) -> rrule.rrule:
    """Build a dateutil rule starting at local midnight of the anchor instant."""
    zone = resolve_zone(tz)
    dtstart = datetime.combine(local_date(anchor, zone), time.min, tzinfo=zone)
    return rrule.rrule(dtstart=dtstart, **rule.rrule_options(zone))


def occurrences(task, start: date, end: date, tz: str | tzinfo | None = None) -> list[date]:
    """
    Local due dates of a task between start and end (inclusive).

    Pure function - no I/O. Never raises: an unusable definition yields [].
    """
    try:
        zone = resolve_zone(tz)
        if task.recurrence_type is RecurrenceType.NONE:
            created = local_date(task.created_at, zone)
            return [created] if start <= created <= end else []
        if task.rule is None:
            return []
        window_start = datetime.combine(start, time.min, tzinfo=zone)
        window_end = datetime.combine(end, time.max, tzinfo=zone)
        rule = build_rrule(task.rule, task.created_at, zone)
        return sorted({dt.date() for dt in rule.between(window_start, window_end, inc=True)})
    except Exception as e:
        logger.warning(f"Could not expand recurrence for task {task.id}: {e}")
        return []


def applies(task, day: date | datetime, tz: str | tzinfo | None = None) -> bool:
    """
    Whether a task is due on a calendar day in the given timezone.

    The check generates occurrences for that local day only, so instants near
    midnight never drift onto a neighbouring day.
    """
    try:
        target = local_date(day, tz)
    except Exception as e:
        logger.warning(f"Could not resolve date {day!r} in {tz!r}: {e}")
        return False
    return bool(occurrences(task, target, target, tz))
