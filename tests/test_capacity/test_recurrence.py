"""Tests for recurring task expansion."""

from __future__ import annotations

import datetime as dt

import pytest

from capacify.capacity.recurrence import expand_recurring_task, generate_recurring_dates
from capacify.models.task import RecurrenceType, Task


@pytest.fixture
def standup() -> Task:
    return Task(
        id="standup",
        title="Standup notes",
        assigned_to="alice",
        date="2026-03-02",
        estimated_hours=0.5,
    )


class TestGenerateRecurringDates:
    def test_none_returns_start(self):
        assert generate_recurring_dates("none", "2026-03-02") == [dt.date(2026, 3, 2)]

    def test_daily_inclusive_end(self):
        dates = generate_recurring_dates("daily", "2026-03-02", end_date="2026-03-05")
        assert dates == [dt.date(2026, 3, d) for d in (2, 3, 4, 5)]

    def test_daily_with_interval(self):
        dates = generate_recurring_dates(
            RecurrenceType.DAILY, "2026-03-02", interval=3, end_date="2026-03-10"
        )
        assert dates == [dt.date(2026, 3, 2), dt.date(2026, 3, 5), dt.date(2026, 3, 8)]

    def test_daily_without_end_falls_back_to_start(self):
        assert generate_recurring_dates("daily", "2026-03-02") == [dt.date(2026, 3, 2)]

    def test_daily_end_before_start_is_empty(self):
        assert generate_recurring_dates("daily", "2026-03-05", end_date="2026-03-01") == []

    def test_custom_dates_sorted_unique(self):
        dates = generate_recurring_dates(
            "custom", "2026-03-02", dates=["2026-03-09", "2026-03-04", "2026-03-09"]
        )
        assert dates == [dt.date(2026, 3, 4), dt.date(2026, 3, 9)]

    def test_custom_without_dates_falls_back_to_start(self):
        assert generate_recurring_dates("custom", "2026-03-02") == [dt.date(2026, 3, 2)]

    def test_custom_empty_dates_yields_nothing(self):
        assert generate_recurring_dates("custom", "2026-03-02", dates=[]) == []

    def test_invalid_interval(self):
        with pytest.raises(ValueError, match="interval"):
            generate_recurring_dates("daily", "2026-03-02", interval=0, end_date="2026-03-05")

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            generate_recurring_dates("weekly", "2026-03-02")


class TestExpandRecurringTask:
    def test_parent_and_children(self, standup):
        tasks = expand_recurring_task(standup, "daily", end_date="2026-03-04")
        assert [t.id for t in tasks] == ["standup", "standup-1", "standup-2"]
        assert [t.date for t in tasks] == [dt.date(2026, 3, d) for d in (2, 3, 4)]
        assert tasks[0].parent_task_id is None
        assert all(t.parent_task_id == "standup" for t in tasks[1:])
        assert all(t.is_recurring for t in tasks)
        assert all(t.estimated_hours == 0.5 for t in tasks)

    def test_none_is_single_non_recurring_task(self, standup):
        tasks = expand_recurring_task(standup, "none")
        assert len(tasks) == 1
        assert tasks[0].is_recurring is False
        assert tasks[0].recurrence_type == RecurrenceType.NONE

    def test_custom_parent_takes_earliest_date(self, standup):
        tasks = expand_recurring_task(standup, "custom", dates=["2026-03-12", "2026-03-10"])
        assert tasks[0].date == dt.date(2026, 3, 10)
        assert tasks[1].date == dt.date(2026, 3, 12)

    def test_template_untouched(self, standup):
        expand_recurring_task(standup, "daily", end_date="2026-03-06")
        assert standup.is_recurring is False
        assert standup.date == dt.date(2026, 3, 2)

    def test_no_dates_raises(self, standup):
        with pytest.raises(ValueError, match="No dates generated"):
            expand_recurring_task(standup, "daily", end_date="2026-03-01")

    def test_empty_custom_dates_raises(self, standup):
        with pytest.raises(ValueError, match="No dates generated"):
            expand_recurring_task(standup, "custom", dates=[])
