"""Recurring task expansion."""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable

from capacify.capacity.calculator import parse_date
from capacify.models.task import RecurrenceType, Task


def generate_recurring_dates(
    recurrence_type: RecurrenceType | str,
    start_date: str | dt.date,
    interval: int = 1,
    end_date: str | dt.date | None = None,
    dates: Iterable[str | dt.date] | None = None,
) -> list[dt.date]:
    """Return the dates a recurring task occurs on.

    Args:
        recurrence_type: "none", "daily" or "custom".
        start_date: First occurrence.
        interval: Days between occurrences for daily recurrence.
        end_date: Last possible occurrence (inclusive) for daily recurrence.
        dates: Explicit dates for custom recurrence.

    Returns:
        Sorted dates. Daily recurrence without an end date and custom
        recurrence with ``dates=None`` fall back to ``[start_date]``; an
        empty custom list yields no dates.
    """
    recurrence_type = RecurrenceType(recurrence_type)
    if interval < 1:
        raise ValueError(f"Recurrence interval must be at least 1, got {interval}")
    start = parse_date(start_date)

    if recurrence_type == RecurrenceType.CUSTOM and dates is not None:
        return sorted({parse_date(d) for d in dates})

    if recurrence_type == RecurrenceType.DAILY and end_date is not None:
        end = parse_date(end_date)
        result: list[dt.date] = []
        current = start
        while current <= end:
            result.append(current)
            current += dt.timedelta(days=interval)
        return result

    return [start]


def expand_recurring_task(
    template: Task,
    recurrence_type: RecurrenceType | str,
    interval: int = 1,
    end_date: str | dt.date | None = None,
    dates: Iterable[str | dt.date] | None = None,
) -> list[Task]:
    """Create one task per occurrence of ``template``.

    The first task keeps the template's id and acts as the parent; the
    others get ``{parent_id}-{n}`` ids and point back to it.

    Raises:
        ValueError: If the recurrence yields no dates.
    """
    recurrence_type = RecurrenceType(recurrence_type)
    occurrences = generate_recurring_dates(
        recurrence_type, template.date, interval=interval, end_date=end_date, dates=dates
    )
    if not occurrences:
        raise ValueError("No dates generated for recurring task")

    is_recurring = recurrence_type != RecurrenceType.NONE
    parent = template.model_copy(
        update={
            "date": occurrences[0],
            "is_recurring": is_recurring,
            "recurrence_type": recurrence_type,
            "parent_task_id": None,
        }
    )
    children = [
        template.model_copy(
            update={
                "id": f"{template.id}-{n}",
                "date": day,
                "is_recurring": True,
                "recurrence_type": recurrence_type,
                "parent_task_id": parent.id,
            }
        )
        for n, day in enumerate(occurrences[1:], start=1)
    ]
    return [parent, *children]
