"""Teammate x date capacity grid built from the day calculator."""

from __future__ import annotations

import datetime as dt
from collections import defaultdict
from collections.abc import Iterable, Sequence

import pandas as pd

from capacify.capacity.calculator import (
    calculate_day_capacity,
    format_capacity_display,
    get_capacity_percentage,
    get_capacity_status,
    get_remaining_capacity,
    parse_date,
)
from capacify.models.capacity import CapacityStatus
from capacify.models.grid import CapacityCell, CapacityGrid, TeamDaySummary
from capacify.models.planning import PlanningConfig
from capacify.models.task import Task
from capacify.models.teammate import Teammate
from capacify.models.time_off import TimeOff

_GRID_VALUES = ("label", "percentage", "status")


def build_date_range(start: str | dt.date, days: int = 14) -> list[dt.date]:
    if days < 1:
        raise ValueError(f"A date range needs at least one day, got {days}")
    first = parse_date(start)
    return [first + dt.timedelta(days=i) for i in range(days)]


def shift_window(start: str | dt.date, direction: str, step: int = 7) -> dt.date:
    """Move a grid window start ``step`` days back ("prev") or forward ("next")."""
    first = parse_date(start)
    if direction == "next":
        return first + dt.timedelta(days=step)
    if direction == "prev":
        return first - dt.timedelta(days=step)
    raise ValueError(f"Unknown direction: {direction!r}. Use 'prev' or 'next'")


def build_capacity_grid(
    teammates: Sequence[Teammate],
    start: str | dt.date,
    tasks: Iterable[Task],
    time_off: Iterable[TimeOff] | None = None,
    config: PlanningConfig | None = None,
) -> CapacityGrid:
    """Compute a cell for every teammate on every date of the window."""
    config = config or PlanningConfig()
    dates = build_date_range(start, config.visible_days)

    # Group once so each cell scans only its teammate's records
    tasks_by_teammate: dict[str, list[Task]] = defaultdict(list)
    for task in tasks:
        tasks_by_teammate[task.assigned_to].append(task)
    off_by_teammate: dict[str, list[TimeOff]] = defaultdict(list)
    for record in time_off or []:
        off_by_teammate[record.teammate_id].append(record)

    rows: list[list[CapacityCell]] = []
    for teammate in teammates:
        row: list[CapacityCell] = []
        for day in dates:
            capacity = calculate_day_capacity(
                teammate,
                day,
                tasks_by_teammate.get(teammate.id, []),
                off_by_teammate.get(teammate.id, []),
            )
            row.append(
                CapacityCell(
                    teammate_id=teammate.id,
                    date=day,
                    capacity=capacity,
                    status=get_capacity_status(capacity),
                    percentage=get_capacity_percentage(capacity),
                    label=format_capacity_display(capacity),
                )
            )
        rows.append(row)

    return CapacityGrid(
        start_date=dates[0],
        dates=dates,
        teammates=list(teammates),
        rows=rows,
    )


def summarize_team_day(grid: CapacityGrid, date: str | dt.date) -> TeamDaySummary:
    """Aggregate every teammate's cell on one date of the grid."""
    day = parse_date(date)
    if day not in grid.dates:
        raise KeyError(f"Date {day.isoformat()} is outside the grid window")

    summary = TeamDaySummary(
        date=day,
        status_counts={status: 0 for status in CapacityStatus},
    )
    for teammate in grid.teammates:
        cell = grid.cell(teammate.id, day)
        summary.total_capacity += cell.capacity.total_capacity
        summary.used_capacity += cell.capacity.used_capacity
        summary.remaining_capacity += get_remaining_capacity(cell.capacity)
        summary.status_counts[cell.status] += 1
    return summary


def grid_to_dataframe(grid: CapacityGrid, value: str = "label") -> pd.DataFrame:
    """Render the grid as a DataFrame indexed by teammate name.

    Args:
        grid: The grid to render.
        value: Cell attribute to show: "label", "percentage" or "status".
    """
    if value not in _GRID_VALUES:
        raise ValueError(f"Unknown grid value: {value!r}. Available: {', '.join(_GRID_VALUES)}")

    data: list[dict[str, str | float]] = []
    for teammate, row in zip(grid.teammates, grid.rows):
        row_data: dict[str, str | float] = {"Teammate": teammate.name or teammate.id}
        for cell in row:
            if value == "status":
                row_data[cell.date.isoformat()] = cell.status.value
            else:
                row_data[cell.date.isoformat()] = getattr(cell, value)
        data.append(row_data)

    columns = ["Teammate"] + [d.isoformat() for d in grid.dates]
    return pd.DataFrame(data, columns=columns).set_index("Teammate")
