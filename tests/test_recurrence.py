"""Tests for recurrence normalization and evaluation."""

from datetime import date, datetime, timedelta, timezone

import pytest

from cadence.core.errors import ConfigError
from cadence.core.models import Task
from cadence.core.recurrence import (
    DailyRule,
    EndKind,
    MonthlyDayRule,
    MonthlyWeekdayRule,
    WeeklyRule,
    YearlyDateRule,
    YearlyWeekdayRule,
    applies,
    from_rrule_weekday,
    local_date,
    normalize_recurrence,
    occurrences,
    to_rrule_weekday,
)

IST = "Asia/Kolkata"


def make_task(recurrence_type="daily", config=None, created_at="2025-01-01T00:00:00+05:30", **kwargs):
    return Task(
        id=kwargs.pop("id", "t1"),
        name=kwargs.pop("name", "Task"),
        recurrence_type=recurrence_type,
        created_at=created_at,
        recurrence_config=config,
        **kwargs,
    )


def days_between(start: date, end: date):
    day = start
    while day <= end:
        yield day
        day += timedelta(days=1)


class TestWeekdayRemapping:
    def test_sunday_first_to_monday_first(self):
        assert to_rrule_weekday(0) == 6
        assert to_rrule_weekday(1) == 0
        assert to_rrule_weekday(6) == 5

    def test_both_directions_agree(self):
        for day in range(7):
            assert from_rrule_weekday(to_rrule_weekday(day)) == day


class TestLocalDate:
    def test_projects_instant_into_timezone(self):
        instant = datetime(2025, 1, 14, 20, 0, tzinfo=timezone.utc)
        assert local_date(instant, IST) == date(2025, 1, 15)
        assert local_date(instant, "UTC") == date(2025, 1, 14)

    def test_plain_date_is_already_local(self):
        assert local_date(date(2025, 1, 15), IST) == date(2025, 1, 15)


class TestOneTime:
    def test_applies_only_on_creation_day(self):
        task = make_task("none", created_at="2025-01-15T10:00:00+05:30")
        matches = [d for d in days_between(date(2025, 1, 1), date(2025, 1, 31)) if applies(task, d, IST)]
        assert matches == [date(2025, 1, 15)]

    def test_creation_day_is_local_not_utc(self):
        # 20:00 UTC on the 14th is already the 15th in India
        task = make_task("none", created_at="2025-01-14T20:00:00Z")
        assert applies(task, date(2025, 1, 15), IST)
        assert not applies(task, date(2025, 1, 14), IST)
        assert applies(task, date(2025, 1, 14), "UTC")


class TestDaily:
    def test_starts_on_local_creation_day(self):
        task = make_task("daily", created_at="2025-01-14T19:00:00Z")
        assert not applies(task, date(2025, 1, 14), IST)
        assert applies(task, date(2025, 1, 15), IST)
        assert applies(task, date(2025, 1, 16), IST)

    def test_interval(self):
        task = make_task("daily", {"interval": 3})
        assert occurrences(task, date(2025, 1, 1), date(2025, 1, 10), IST) == [
            date(2025, 1, 1),
            date(2025, 1, 4),
            date(2025, 1, 7),
            date(2025, 1, 10),
        ]

    def test_nothing_before_creation(self):
        task = make_task("daily")
        assert occurrences(task, date(2024, 12, 1), date(2024, 12, 31), IST) == []


class TestWeekly:
    def test_monday_and_wednesday(self):
        task = make_task("weekly", {"days": [1, 3]})
        for day in days_between(date(2025, 1, 1), date(2025, 3, 31)):
            expected = day.weekday() in (0, 2)
            assert applies(task, day, IST) is expected, day

    def test_not_before_anchor(self):
        # 2024-12-30 is a Monday, before the task existed
        task = make_task("weekly", {"days": [1, 3]})
        assert not applies(task, date(2024, 12, 30), IST)

    def test_legacy_byweekday_field(self):
        task = make_task("weekly", {"byweekday": [5]})
        assert task.rule == WeeklyRule(weekdays=(5,))
        assert applies(task, date(2025, 1, 3), IST)
        assert not applies(task, date(2025, 1, 2), IST)

    def test_defaults_to_anchor_weekday(self):
        # Created on a Wednesday
        task = make_task("weekly", {})
        assert applies(task, date(2025, 1, 8), IST)
        assert not applies(task, date(2025, 1, 9), IST)


class TestMonthly:
    def test_first_monday_matches_once_in_five_monday_month(self):
        # March 2025 has five Mondays
        task = make_task("monthly", {"monthlyType": "weekday", "bysetpos": [1], "byweekday": [1]})
        assert isinstance(task.rule, MonthlyWeekdayRule)
        assert occurrences(task, date(2025, 3, 1), date(2025, 3, 31), IST) == [date(2025, 3, 3)]

    def test_last_friday(self):
        task = make_task("monthly", {"monthlyType": "weekday", "bysetpos": [-1], "byweekday": [5]})
        assert occurrences(task, date(2025, 1, 1), date(2025, 2, 28), IST) == [
            date(2025, 1, 31),
            date(2025, 2, 28),
        ]

    def test_day_of_month(self):
        task = make_task("monthly", {"monthlyType": "date", "dayOfMonth": 15})
        assert task.rule == MonthlyDayRule(days=(15,))
        assert applies(task, date(2025, 2, 15), IST)
        assert not applies(task, date(2025, 2, 14), IST)

    def test_legacy_bymonthday(self):
        task = make_task("monthly", {"bymonthday": [1, 20]})
        assert occurrences(task, date(2025, 2, 1), date(2025, 2, 28), IST) == [
            date(2025, 2, 1),
            date(2025, 2, 20),
        ]


class TestYearly:
    def test_first_monday_of_january(self):
        # Stored months are 0-based
        task = make_task(
            "yearly", {"yearlyType": "weekday", "bymonth": [0], "bysetpos": [1], "byweekday": [1]}
        )
        assert isinstance(task.rule, YearlyWeekdayRule)
        assert occurrences(task, date(2025, 1, 1), date(2026, 12, 31), IST) == [
            date(2025, 1, 6),
            date(2026, 1, 5),
        ]

    def test_fixed_date(self):
        task = make_task("yearly", {"yearlyType": "date", "bymonth": [2], "dayOfMonth": [10]})
        assert task.rule == YearlyDateRule(months=(3,), days=(10,))
        assert applies(task, date(2025, 3, 10), IST)
        assert applies(task, date(2026, 3, 10), IST)
        assert not applies(task, date(2025, 4, 10), IST)

    def test_day_without_month_recurs_on_anchor_date(self):
        task = make_task("yearly", {"bymonthday": [15]}, created_at="2025-01-15T09:00:00+05:30")
        assert task.rule == YearlyDateRule()
        assert occurrences(task, date(2025, 1, 1), date(2026, 12, 31), IST) == [
            date(2025, 1, 15),
            date(2026, 1, 15),
        ]


class TestCustom:
    def test_biweekly_friday(self):
        task = make_task(
            "custom",
            {"frequency": "weekly", "days": [5], "interval": 2},
            created_at="2025-01-03T09:00:00+05:30",
        )
        assert occurrences(task, date(2025, 1, 1), date(2025, 1, 31), IST) == [
            date(2025, 1, 3),
            date(2025, 1, 17),
            date(2025, 1, 31),
        ]

    def test_missing_frequency_is_daily(self):
        task = make_task("custom", {"interval": 1})
        assert isinstance(task.rule, DailyRule)

    def test_missing_config_never_applies(self):
        task = make_task("custom", None)
        assert task.rule is None
        assert not applies(task, date(2025, 1, 1), IST)

    def test_unknown_frequency_never_applies(self):
        task = make_task("custom", {"frequency": "hourly"})
        assert task.rule is None
        assert not applies(task, date(2025, 1, 2), IST)


class TestEndConditions:
    def test_until_is_inclusive(self):
        task = make_task("daily", {"until": "2025-01-10"})
        assert applies(task, date(2025, 1, 10), IST)
        assert not applies(task, date(2025, 1, 11), IST)

    def test_count(self):
        task = make_task("daily", {"count": 3})
        assert applies(task, date(2025, 1, 3), IST)
        assert not applies(task, date(2025, 1, 4), IST)

    def test_new_style_wins_over_legacy(self):
        task = make_task("daily", {"endType": "on", "endDate": "2025-01-05", "count": 100})
        assert task.rule.end.kind is EndKind.UNTIL
        assert applies(task, date(2025, 1, 5), IST)
        assert not applies(task, date(2025, 1, 6), IST)

    def test_explicit_never_ignores_legacy_until(self):
        task = make_task("daily", {"endType": "never", "until": "2025-01-05"})
        assert applies(task, date(2025, 6, 1), IST)

    def test_after_occurrences(self):
        task = make_task("weekly", {"days": [1], "endType": "after", "occurrences": 2})
        assert occurrences(task, date(2025, 1, 1), date(2025, 2, 28), IST) == [
            date(2025, 1, 6),
            date(2025, 1, 13),
        ]

    def test_utc_end_instant_is_projected(self):
        # Local midnight of the 10th in India, sent as UTC
        task = make_task("daily", {"endType": "on", "endDate": "2025-01-09T18:30:00.000Z"})
        assert applies(task, date(2025, 1, 10), IST)
        assert not applies(task, date(2025, 1, 11), IST)


class TestNormalizeRecurrence:
    def test_none_has_no_rule(self):
        assert normalize_recurrence("none", {"days": [1]}) is None

    def test_unknown_type(self):
        with pytest.raises(ConfigError):
            normalize_recurrence("fortnightly", {})

    def test_rejects_negative_interval(self):
        with pytest.raises(ConfigError):
            normalize_recurrence("daily", {"interval": -2})

    def test_rejects_bad_position(self):
        with pytest.raises(ConfigError):
            normalize_recurrence("monthly", {"monthlyType": "weekday", "bysetpos": [0], "byweekday": [1]})

    def test_rejects_weekday_out_of_range(self):
        with pytest.raises(ConfigError):
            normalize_recurrence("weekly", {"days": [7]})

    def test_rejects_non_mapping(self):
        with pytest.raises(ConfigError):
            normalize_recurrence("weekly", ["monday"])


class TestFailureIsolation:
    def test_unexpandable_task_never_applies(self):
        task = make_task("daily", created_at=None)
        assert occurrences(task, date(2025, 1, 1), date(2025, 1, 31), IST) == []
        assert not applies(task, date(2025, 1, 1), IST)

    def test_bad_timezone_never_applies(self):
        task = make_task("daily")
        assert not applies(task, date(2025, 1, 2), "Not/AZone")
