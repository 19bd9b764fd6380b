"""Day-capacity computation for a single teammate and date.

Every function here is pure: it reads only its arguments and returns a
fresh value. Callers pass the complete task and time-off collections;
filtering to the teammate and date happens inside.
"""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Iterable

from capacify.models.capacity import AssignmentCheck, CapacityStatus, DayCapacity
from capacify.models.task import Task
from capacify.models.teammate import Teammate
from capacify.models.time_off import TimeOff

# Percentage boundaries between low/medium and medium/high load
LOW_THRESHOLD = 70.0
HIGH_THRESHOLD = 90.0


def parse_date(value: str | dt.date) -> dt.date:
    """Accept a ``date`` or a ``YYYY-MM-DD`` string."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    try:
        return dt.date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Unparseable date: {value!r} (expected YYYY-MM-DD)") from e


def weekday_index(day: dt.date) -> int:
    """Weekday of ``day`` with 0=Sunday..6=Saturday."""
    return day.isoweekday() % 7


def format_hours(hours: float) -> str:
    """Render hours without a trailing ``.0`` for whole numbers."""
    if float(hours).is_integer():
        return str(int(hours))
    return str(hours)


def _created_key(record: TimeOff) -> tuple[bool, dt.datetime]:
    return (record.created_at is not None, record.created_at or dt.datetime.min)


def resolve_time_off(
    teammate_id: str,
    day: dt.date,
    time_off: Iterable[TimeOff] | None,
) -> TimeOff | None:
    """Pick the time-off record that applies to a teammate on a date.

    When several records match, the most recently created one wins.
    Records without ``created_at`` rank oldest; ties keep input order.
    """
    if not time_off:
        return None
    chosen: TimeOff | None = None
    for record in time_off:
        if record.teammate_id != teammate_id or record.date != day:
            continue
        if chosen is None or _created_key(record) > _created_key(chosen):
            chosen = record
    return chosen


def calculate_day_capacity(
    teammate: Teammate,
    date: str | dt.date,
    tasks: Iterable[Task],
    time_off: Iterable[TimeOff] | None = None,
) -> DayCapacity:
    """Compute available and used hours for ``teammate`` on ``date``.

    A full day off (no hours, or hours >= daily capacity) zeroes the total
    even on a working day. A partial day off leaves the total untouched and
    adds its hours to the used figure instead.
    """
    day = parse_date(date)
    is_working_day = teammate.works_on(weekday_index(day))

    record = resolve_time_off(teammate.id, day, time_off)
    full_day_off = record is not None and record.is_full_day(teammate.daily_capacity)
    partial_hours = record.hours if record is not None and not full_day_off else 0.0

    day_tasks = [t for t in tasks if t.assigned_to == teammate.id and t.date == day]
    task_hours = sum(t.estimated_hours for t in day_tasks)

    total = teammate.daily_capacity if is_working_day and not full_day_off else 0.0
    return DayCapacity(
        date=day,
        total_capacity=total,
        used_capacity=task_hours + partial_hours,
        tasks=day_tasks,
        time_off=record,
    )


def get_capacity_status(capacity: DayCapacity) -> CapacityStatus:
    if capacity.total_capacity == 0:
        return CapacityStatus.EMPTY

    percentage = capacity.used_capacity * 100 / capacity.total_capacity
    if percentage == 0:
        return CapacityStatus.EMPTY
    elif percentage <= LOW_THRESHOLD:
        return CapacityStatus.LOW
    elif percentage <= HIGH_THRESHOLD:
        return CapacityStatus.MEDIUM
    return CapacityStatus.HIGH


def get_remaining_capacity(capacity: DayCapacity) -> float:
    return max(0.0, capacity.total_capacity - capacity.used_capacity)


def get_capacity_percentage(capacity: DayCapacity) -> float:
    """Used share of the day in percent, clamped to 100."""
    if capacity.total_capacity == 0:
        return 0.0
    return min(100.0, capacity.used_capacity * 100 / capacity.total_capacity)


def can_assign_task(capacity: DayCapacity, estimated_hours: float) -> AssignmentCheck:
    """Check whether a task of ``estimated_hours`` fits the day.

    Nothing is mutated. Going above the high threshold is allowed with a
    warning; exceeding the remaining hours is refused.

    Raises:
        ValueError: If ``estimated_hours`` is negative.
    """
    if estimated_hours < 0:
        raise ValueError(f"Estimated hours must not be negative, got {estimated_hours}")

    if capacity.total_capacity == 0:
        return AssignmentCheck(
            allowed=False,
            warning="This is not a working day for this teammate.",
        )

    remaining = get_remaining_capacity(capacity)
    if estimated_hours > remaining:
        overload = estimated_hours - remaining
        return AssignmentCheck(
            allowed=False,
            warning=(
                f"This would overload by {format_hours(overload)}h. "
                f"Only {format_hours(remaining)}h available."
            ),
        )

    new_percentage = (capacity.used_capacity + estimated_hours) * 100 / capacity.total_capacity
    if new_percentage > HIGH_THRESHOLD:
        # Round half up
        rounded = math.floor(new_percentage + 0.5)
        return AssignmentCheck(
            allowed=True,
            warning=f"This will bring capacity to {rounded}%. Consider spreading work.",
        )

    return AssignmentCheck(allowed=True)


def format_capacity_display(capacity: DayCapacity) -> str:
    if capacity.total_capacity == 0:
        return "Off"
    return f"{format_hours(capacity.used_capacity)}/{format_hours(capacity.total_capacity)}h"
