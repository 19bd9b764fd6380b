"""Tests for the day-capacity calculator."""

from __future__ import annotations

import datetime as dt

import pytest

from capacify.capacity.calculator import (
    HIGH_THRESHOLD,
    LOW_THRESHOLD,
    calculate_day_capacity,
    can_assign_task,
    format_capacity_display,
    get_capacity_percentage,
    get_capacity_status,
    get_remaining_capacity,
    parse_date,
    resolve_time_off,
    weekday_index,
)
from capacify.models.capacity import CapacityStatus, DayCapacity
from capacify.models.time_off import TimeOff

MONDAY = "2026-03-02"
SATURDAY = "2026-03-07"


def _capacity(total: float, used: float) -> DayCapacity:
    return DayCapacity(date=dt.date(2026, 3, 2), total_capacity=total, used_capacity=used)


class TestDateHelpers:
    def test_weekday_index_sunday_is_zero(self):
        assert weekday_index(dt.date(2026, 3, 1)) == 0
        assert weekday_index(dt.date(2026, 3, 2)) == 1
        assert weekday_index(dt.date(2026, 3, 7)) == 6

    def test_parse_date_accepts_string_and_date(self):
        assert parse_date("2026-03-02") == dt.date(2026, 3, 2)
        assert parse_date(dt.date(2026, 3, 2)) == dt.date(2026, 3, 2)
        assert parse_date(dt.datetime(2026, 3, 2, 15, 30)) == dt.date(2026, 3, 2)

    def test_parse_date_rejects_garbage(self):
        with pytest.raises(ValueError, match="Unparseable date"):
            parse_date("next tuesday")


class TestCalculateDayCapacity:
    def test_working_day_without_tasks(self, alice):
        cap = calculate_day_capacity(alice, MONDAY, [])
        assert cap.total_capacity == 8
        assert cap.used_capacity == 0
        assert cap.tasks == []
        assert get_capacity_status(cap) == CapacityStatus.EMPTY
        assert format_capacity_display(cap) == "0/8h"

    def test_single_task(self, alice, make_task):
        tasks = [make_task("alice", MONDAY, 6)]
        cap = calculate_day_capacity(alice, MONDAY, tasks)
        assert cap.used_capacity == 6
        assert get_capacity_percentage(cap) == 75
        assert get_capacity_status(cap) == CapacityStatus.MEDIUM

        check = can_assign_task(cap, 3)
        assert check.allowed is False
        assert "overload by 1h. Only 2h available." in check.warning

    def test_filters_other_teammates_and_dates(self, alice, make_task):
        tasks = [
            make_task("alice", MONDAY, 2),
            make_task("alice", "2026-03-03", 4),
            make_task("bob", MONDAY, 5),
            make_task("alice", MONDAY, 1.5),
        ]
        cap = calculate_day_capacity(alice, MONDAY, tasks)
        assert cap.used_capacity == 3.5
        assert [t.estimated_hours for t in cap.tasks] == [2, 1.5]

    def test_non_working_day_is_off(self, alice, make_task):
        tasks = [make_task("alice", SATURDAY, 4)]
        cap = calculate_day_capacity(alice, SATURDAY, tasks)
        assert cap.total_capacity == 0
        assert get_capacity_status(cap) == CapacityStatus.EMPTY
        assert format_capacity_display(cap) == "Off"
        # Tasks still show up on the day
        assert len(cap.tasks) == 1

    def test_full_day_off_zeroes_total(self, alice, make_task):
        tasks = [make_task("alice", MONDAY, 3)]
        off = [TimeOff(id="o1", teammate_id="alice", date=MONDAY)]
        cap = calculate_day_capacity(alice, MONDAY, tasks, off)
        assert cap.total_capacity == 0
        assert len(cap.tasks) == 1
        assert cap.time_off == off[0]
        assert format_capacity_display(cap) == "Off"

    def test_time_off_hours_at_capacity_is_full_day(self, alice):
        off = [TimeOff(id="o1", teammate_id="alice", date=MONDAY, hours=8)]
        cap = calculate_day_capacity(alice, MONDAY, [], off)
        assert cap.total_capacity == 0
        assert cap.used_capacity == 0

    def test_partial_day_off_counts_as_used(self, alice, make_task):
        tasks = [make_task("alice", MONDAY, 3)]
        off = [TimeOff(id="o1", teammate_id="alice", date=MONDAY, hours=2)]
        cap = calculate_day_capacity(alice, MONDAY, tasks, off)
        assert cap.total_capacity == 8
        assert cap.used_capacity == 5
        assert get_capacity_percentage(cap) == 62.5
        assert get_capacity_status(cap) == CapacityStatus.LOW

    def test_time_off_for_other_teammate_ignored(self, alice):
        off = [TimeOff(id="o1", teammate_id="bob", date=MONDAY)]
        cap = calculate_day_capacity(alice, MONDAY, [], off)
        assert cap.total_capacity == 8
        assert cap.time_off is None

    def test_idempotent(self, alice, make_task):
        tasks = [make_task("alice", MONDAY, 6), make_task("alice", MONDAY, 1)]
        off = [TimeOff(id="o1", teammate_id="alice", date=MONDAY, hours=1)]
        first = calculate_day_capacity(alice, MONDAY, tasks, off)
        second = calculate_day_capacity(alice, MONDAY, tasks, off)
        assert first == second

    def test_accepts_date_object(self, alice):
        cap = calculate_day_capacity(alice, dt.date(2026, 3, 2), [])
        assert cap.date == dt.date(2026, 3, 2)
        assert cap.total_capacity == 8

    @pytest.mark.parametrize("day_offset", range(7))
    def test_non_working_weekdays_always_empty(self, bob, make_task, day_offset):
        day = dt.date(2026, 3, 1) + dt.timedelta(days=day_offset)
        tasks = [make_task("bob", day, 10)]
        cap = calculate_day_capacity(bob, day, tasks)
        if weekday_index(day) in bob.working_days:
            assert cap.total_capacity == 6
        else:
            assert cap.total_capacity == 0
            assert get_capacity_status(cap) == CapacityStatus.EMPTY


class TestResolveTimeOff:
    def test_most_recent_wins(self):
        older = TimeOff(
            id="a", teammate_id="alice", date=MONDAY, hours=2,
            created_at=dt.datetime(2026, 2, 1, 9, 0),
        )
        newer = TimeOff(
            id="b", teammate_id="alice", date=MONDAY,
            created_at=dt.datetime(2026, 2, 5, 9, 0),
        )
        chosen = resolve_time_off("alice", dt.date(2026, 3, 2), [newer, older])
        assert chosen.id == "b"

    def test_undated_records_rank_oldest(self):
        undated = TimeOff(id="a", teammate_id="alice", date=MONDAY)
        dated = TimeOff(
            id="b", teammate_id="alice", date=MONDAY, hours=1,
            created_at=dt.datetime(2026, 1, 1),
        )
        assert resolve_time_off("alice", dt.date(2026, 3, 2), [undated, dated]).id == "b"

    def test_tie_keeps_first(self):
        first = TimeOff(id="a", teammate_id="alice", date=MONDAY)
        second = TimeOff(id="b", teammate_id="alice", date=MONDAY, hours=3)
        assert resolve_time_off("alice", dt.date(2026, 3, 2), [first, second]).id == "a"

    def test_no_records(self):
        assert resolve_time_off("alice", dt.date(2026, 3, 2), None) is None
        assert resolve_time_off("alice", dt.date(2026, 3, 2), []) is None


class TestCapacityStatus:
    @pytest.mark.parametrize(
        "used, expected",
        [
            (0, CapacityStatus.EMPTY),
            (1, CapacityStatus.LOW),
            (7, CapacityStatus.LOW),
            (7.5, CapacityStatus.MEDIUM),
            (9, CapacityStatus.MEDIUM),
            (9.5, CapacityStatus.HIGH),
            (14, CapacityStatus.HIGH),
        ],
    )
    def test_thresholds(self, used, expected):
        assert get_capacity_status(_capacity(10, used)) == expected

    def test_zero_total_is_empty(self):
        assert get_capacity_status(_capacity(0, 5)) == CapacityStatus.EMPTY

    def test_threshold_constants(self):
        assert LOW_THRESHOLD == 70
        assert HIGH_THRESHOLD == 90


class TestRemainingAndPercentage:
    def test_remaining_never_negative(self):
        assert get_remaining_capacity(_capacity(8, 3)) == 5
        assert get_remaining_capacity(_capacity(8, 12)) == 0
        assert get_remaining_capacity(_capacity(0, 4)) == 0

    def test_percentage_clamped(self):
        assert get_capacity_percentage(_capacity(8, 4)) == 50
        assert get_capacity_percentage(_capacity(8, 16)) == 100
        assert get_capacity_percentage(_capacity(0, 4)) == 0


class TestCanAssignTask:
    def test_non_working_day_refused(self):
        check = can_assign_task(_capacity(0, 0), 1)
        assert check.allowed is False
        assert check.warning == "This is not a working day for this teammate."

    def test_fits_without_warning(self):
        check = can_assign_task(_capacity(8, 2), 4)
        assert check.allowed is True
        assert check.warning is None

    def test_near_capacity_soft_warning(self):
        check = can_assign_task(_capacity(8, 5), 3)
        assert check.allowed is True
        assert check.warning == "This will bring capacity to 100%. Consider spreading work."

    def test_soft_warning_rounds_percentage(self):
        # 7.5 / 8 = 93.75%
        check = can_assign_task(_capacity(8, 6), 1.5)
        assert check.allowed is True
        assert "94%" in check.warning

    def test_exactly_at_high_threshold_has_no_warning(self):
        check = can_assign_task(_capacity(10, 5), 4)
        assert check.allowed is True
        assert check.warning is None

    def test_overload_refused_with_amounts(self):
        check = can_assign_task(_capacity(8, 6.5), 3)
        assert check.allowed is False
        assert check.warning == "This would overload by 1.5h. Only 1.5h available."

    @pytest.mark.parametrize("used", [0, 2, 5.5, 8, 11])
    @pytest.mark.parametrize("hours", [0.5, 1, 3, 8])
    def test_allowed_implies_fits(self, used, hours):
        cap = _capacity(8, used)
        check = can_assign_task(cap, hours)
        if check.allowed:
            assert hours <= get_remaining_capacity(cap)

    def test_negative_hours_rejected(self):
        with pytest.raises(ValueError, match="must not be negative"):
            can_assign_task(_capacity(8, 0), -1)


class TestFormatCapacityDisplay:
    def test_fractional_hours(self):
        assert format_capacity_display(_capacity(7.5, 2.5)) == "2.5/7.5h"

    def test_over_allocated(self):
        assert format_capacity_display(_capacity(8, 10)) == "10/8h"
