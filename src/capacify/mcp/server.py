"""Capacify MCP Server.

Exposes the capacity calculator as MCP tools so that AI agents can
check team load and pre-flight task assignments via the Model
Context Protocol.

Usage:
    uv run python -m capacify.mcp.server        # stdio mode
    uv run fastmcp run capacify/mcp/server.py   # via CLI
"""

from __future__ import annotations

import datetime as dt
import logging
import tempfile
from pathlib import Path
from typing import Any

from fastmcp import FastMCP
from pydantic import ValidationError

from capacify.capacity.calculator import (
    calculate_day_capacity,
    can_assign_task,
    format_capacity_display,
    get_capacity_percentage,
    get_capacity_status,
    get_remaining_capacity,
    parse_date,
)
from capacify.capacity.grid import build_capacity_grid, summarize_team_day
from capacify.capacity.recurrence import expand_recurring_task
from capacify.io.excel_reader import read_planning_input
from capacify.io.excel_writer import write_capacity_grid
from capacify.models.capacity import DayCapacity
from capacify.models.planning import PlanningConfig, PlanningInput
from capacify.models.task import Task
from capacify.models.teammate import Teammate
from capacify.models.time_off import TimeOff

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Server instance
# ---------------------------------------------------------------------------
mcp = FastMCP(
    name="capacify",
    instructions="""
    Capacify tracks how many hours each teammate has available per day
    and how many are already taken by tasks and time off.

    Basic flow:
    1. load_team or load_planning_workbook -> register teammates (and records)
    2. add_task / add_time_off / create_recurring_task -> record work and absences
    3. get_day_capacity / get_capacity_grid -> inspect load
    4. check_assignment -> pre-flight a new task before assigning it
    5. update_task / delete_task / remove_time_off / update_teammate -> correct records
    6. export_capacity_grid -> write the grid to Excel
    """,
)

# ---------------------------------------------------------------------------
# In-memory planning state (per server session)
# ---------------------------------------------------------------------------
_planning_state: dict[str, Any] = {}


def _planning() -> PlanningInput:
    if "planning" not in _planning_state:
        _planning_state["planning"] = PlanningInput()
    return _planning_state["planning"]


def _get_output_dir() -> Path:
    """Get or create the output directory for exported files."""
    out = Path(_planning_state.get("output_dir", tempfile.gettempdir())) / "capacify_output"
    out.mkdir(parents=True, exist_ok=True)
    return out


def _error(message: str, **extra: Any) -> dict[str, Any]:
    logger.warning("Tool error: %s", message)
    return {"status": "error", "message": message, **extra}


def _capacity_summary(capacity: DayCapacity) -> dict[str, Any]:
    return {
        "date": capacity.date.isoformat(),
        "total_capacity": capacity.total_capacity,
        "used_capacity": capacity.used_capacity,
        "remaining_capacity": get_remaining_capacity(capacity),
        "percentage": round(get_capacity_percentage(capacity), 1),
        "status": get_capacity_status(capacity).value,
        "display": format_capacity_display(capacity),
        "tasks": [
            {"id": t.id, "title": t.title, "estimated_hours": t.estimated_hours}
            for t in capacity.tasks
        ],
        "time_off": capacity.time_off.model_dump(mode="json") if capacity.time_off else None,
    }


# ---------------------------------------------------------------------------
# Tool 1: load_team
# ---------------------------------------------------------------------------
@mcp.tool
def load_team(
    teammates: list[dict[str, Any]],
    output_dir: str | None = None,
) -> dict[str, Any]:
    """Register the team whose capacity is planned.

    Replaces any previously loaded teammates, tasks and time off.

    Args:
        teammates: Teammate records, each of the form:
            {
                "id": "t1",
                "name": "Alice Smith",
                "job_role": "Designer",
                "daily_capacity": 8,          # hours per working day
                "working_days": [1, 2, 3, 4, 5]  # 0=Sun..6=Sat
            }
        output_dir: Directory for exported files.

    Returns:
        Summary of the loaded team.
    """
    try:
        planning = PlanningInput(teammates=teammates)
    except ValidationError as e:
        return _error(f"Invalid teammate data: {e.error_count()} error(s)", details=str(e))

    _planning_state["planning"] = planning
    if output_dir:
        _planning_state["output_dir"] = output_dir

    return {
        "status": "ok",
        "teammate_count": len(planning.teammates),
        "teammates": [
            {"id": t.id, "name": t.name, "daily_capacity": t.daily_capacity}
            for t in planning.teammates
        ],
    }


# ---------------------------------------------------------------------------
# Tool 2: load_planning_workbook
# ---------------------------------------------------------------------------
@mcp.tool
def load_planning_workbook(filepath: str) -> dict[str, Any]:
    """Load teammates, tasks and time off from an Excel workbook.

    Args:
        filepath: Path to an .xlsx file with "Teammates", "Tasks" and
            optionally "TimeOff" sheets.

    Returns:
        Record counts.
    """
    path = Path(filepath)
    if not path.exists():
        return _error(f"File not found: {filepath}")
    try:
        planning = read_planning_input(path)
    except (ValueError, KeyError) as e:
        return _error(str(e))

    _planning_state["planning"] = planning
    return {
        "status": "ok",
        "teammate_count": len(planning.teammates),
        "task_count": len(planning.tasks),
        "time_off_count": len(planning.time_off),
    }


# ---------------------------------------------------------------------------
# Tool 3: add_task
# ---------------------------------------------------------------------------
@mcp.tool
def add_task(
    task_id: str,
    teammate_id: str,
    date: str,
    estimated_hours: float,
    title: str = "",
    force: bool = False,
) -> dict[str, Any]:
    """Assign a task to a teammate on a date.

    The assignment is checked first; a task that does not fit is
    rejected unless force=True.

    Args:
        task_id: Unique task id.
        teammate_id: Teammate to assign to.
        date: Date in YYYY-MM-DD form.
        estimated_hours: Estimated effort in hours.
        title: Task title.
        force: Record the task even if it overloads the day.

    Returns:
        The assignment check and the day's capacity after the change.
    """
    planning = _planning()
    try:
        teammate = planning.teammate(teammate_id)
        task = Task(
            id=task_id,
            title=title,
            assigned_to=teammate_id,
            date=date,
            estimated_hours=estimated_hours,
        )
    except KeyError as e:
        return _error(str(e.args[0]))
    except ValidationError as e:
        return _error(f"Invalid task: {e.error_count()} error(s)", details=str(e))

    if task.id in planning.task_ids():
        return _error(f"Task id already exists: {task.id}")

    before = calculate_day_capacity(teammate, task.date, planning.tasks, planning.time_off)
    check = can_assign_task(before, task.estimated_hours)
    if not check.allowed and not force:
        return _error(check.warning or "Task does not fit", allowed=False)

    planning.tasks.append(task)
    after = calculate_day_capacity(teammate, task.date, planning.tasks, planning.time_off)
    return {
        "status": "ok",
        "allowed": check.allowed,
        "warning": check.warning,
        "capacity": _capacity_summary(after),
    }


# ---------------------------------------------------------------------------
# Tool 4: add_time_off
# ---------------------------------------------------------------------------
@mcp.tool
def add_time_off(
    time_off_id: str,
    teammate_id: str,
    date: str,
    hours: float | None = None,
    reason: str | None = None,
) -> dict[str, Any]:
    """Record time off for a teammate.

    A new record replaces any earlier time off for the same teammate
    and date.

    Args:
        time_off_id: Unique record id.
        teammate_id: Teammate who is off.
        date: Date in YYYY-MM-DD form.
        hours: Hours off. Omit for a full day off.
        reason: Optional reason.

    Returns:
        The day's capacity after the change and the ids of replaced records.
    """
    planning = _planning()
    try:
        teammate = planning.teammate(teammate_id)
        record = TimeOff(
            id=time_off_id,
            teammate_id=teammate_id,
            date=date,
            hours=hours,
            reason=reason,
            created_at=dt.datetime.now(),
        )
    except KeyError as e:
        return _error(str(e.args[0]))
    except ValidationError as e:
        return _error(f"Invalid time off: {e.error_count()} error(s)", details=str(e))

    if any(r.id == record.id for r in planning.time_off):
        return _error(f"Time off id already exists: {record.id}")

    replaced = [
        r.id for r in planning.time_off
        if r.teammate_id == record.teammate_id and r.date == record.date
    ]
    planning.time_off = [r for r in planning.time_off if r.id not in replaced]
    planning.time_off.append(record)
    capacity = calculate_day_capacity(teammate, record.date, planning.tasks, planning.time_off)
    return {
        "status": "ok",
        "replaced": replaced,
        "full_day": record.is_full_day(teammate.daily_capacity),
        "capacity": _capacity_summary(capacity),
    }


# ---------------------------------------------------------------------------
# Tool 5: get_day_capacity
# ---------------------------------------------------------------------------
@mcp.tool
def get_day_capacity(teammate_id: str, date: str) -> dict[str, Any]:
    """Return a teammate's capacity on one date.

    Args:
        teammate_id: Teammate id.
        date: Date in YYYY-MM-DD form.

    Returns:
        Total, used and remaining hours, percentage, status and tasks.
    """
    planning = _planning()
    try:
        teammate = planning.teammate(teammate_id)
        capacity = calculate_day_capacity(teammate, date, planning.tasks, planning.time_off)
    except KeyError as e:
        return _error(str(e.args[0]))
    except ValueError as e:
        return _error(str(e))
    return {"status": "ok", "teammate_id": teammate_id, **_capacity_summary(capacity)}


# ---------------------------------------------------------------------------
# Tool 6: check_assignment
# ---------------------------------------------------------------------------
@mcp.tool
def check_assignment(teammate_id: str, date: str, estimated_hours: float) -> dict[str, Any]:
    """Check whether a new task fits a teammate's day without recording it.

    Args:
        teammate_id: Teammate id.
        date: Date in YYYY-MM-DD form.
        estimated_hours: Hours the new task would take.

    Returns:
        allowed flag and an optional warning.
    """
    planning = _planning()
    try:
        teammate = planning.teammate(teammate_id)
        capacity = calculate_day_capacity(teammate, date, planning.tasks, planning.time_off)
        check = can_assign_task(capacity, estimated_hours)
    except KeyError as e:
        return _error(str(e.args[0]))
    except ValueError as e:
        return _error(str(e))
    return {
        "status": "ok",
        "allowed": check.allowed,
        "warning": check.warning,
        "remaining_capacity": get_remaining_capacity(capacity),
    }


# ---------------------------------------------------------------------------
# Tool 7: get_capacity_grid
# ---------------------------------------------------------------------------
@mcp.tool
def get_capacity_grid(start_date: str, days: int = 14) -> dict[str, Any]:
    """Return the team capacity calendar for a date window.

    Args:
        start_date: First date in YYYY-MM-DD form.
        days: Number of dates to include.

    Returns:
        One "used/total h" label per teammate per date, plus per-date
        team totals.
    """
    planning = _planning()
    try:
        config = PlanningConfig(visible_days=days)
        grid = build_capacity_grid(
            planning.teammates, start_date, planning.tasks, planning.time_off, config
        )
    except ValueError as e:
        return _error(str(e))

    team_totals = []
    for day in grid.dates:
        summary = summarize_team_day(grid, day)
        team_totals.append(
            {
                "date": day.isoformat(),
                "total_capacity": summary.total_capacity,
                "used_capacity": summary.used_capacity,
                "remaining_capacity": summary.remaining_capacity,
                "overloaded": summary.overloaded_count,
            }
        )
    return {
        "status": "ok",
        "start_date": grid.start_date.isoformat(),
        "end_date": grid.end_date.isoformat(),
        "grid": {
            teammate.id: {cell.date.isoformat(): cell.label for cell in row}
            for teammate, row in zip(grid.teammates, grid.rows)
        },
        "team_totals": team_totals,
    }


# ---------------------------------------------------------------------------
# Tool 8: create_recurring_task
# ---------------------------------------------------------------------------
@mcp.tool
def create_recurring_task(
    task_id: str,
    teammate_id: str,
    start_date: str,
    estimated_hours: float,
    recurrence_type: str = "none",
    interval: int = 1,
    end_date: str | None = None,
    dates: list[str] | None = None,
    title: str = "",
) -> dict[str, Any]:
    """Create a task that repeats over several dates.

    Args:
        task_id: Id of the parent task; occurrences get "{task_id}-{n}".
        teammate_id: Teammate to assign to.
        start_date: First occurrence (YYYY-MM-DD).
        estimated_hours: Hours per occurrence.
        recurrence_type: "none", "daily" or "custom".
        interval: Days between daily occurrences.
        end_date: Last possible daily occurrence (YYYY-MM-DD).
        dates: Explicit dates for custom recurrence.
        title: Task title.

    Returns:
        Created dates and any dates that are now over capacity.
    """
    planning = _planning()
    try:
        teammate = planning.teammate(teammate_id)
        template = Task(
            id=task_id,
            title=title,
            assigned_to=teammate_id,
            date=start_date,
            estimated_hours=estimated_hours,
        )
        created = expand_recurring_task(
            template, recurrence_type, interval=interval, end_date=end_date, dates=dates
        )
    except KeyError as e:
        return _error(str(e.args[0]))
    except ValueError as e:
        # pydantic ValidationError is a ValueError
        return _error(str(e))

    clashes = sorted(planning.task_ids() & {t.id for t in created})
    if clashes:
        return _error(f"Task id already exists: {', '.join(clashes)}")

    planning.tasks.extend(created)
    overloaded = []
    for task in created:
        capacity = calculate_day_capacity(teammate, task.date, planning.tasks, planning.time_off)
        if capacity.used_capacity > capacity.total_capacity:
            overloaded.append(task.date.isoformat())

    return {
        "status": "ok",
        "total_tasks": len(created),
        "dates": [t.date.isoformat() for t in created],
        "overloaded_dates": overloaded,
    }


# ---------------------------------------------------------------------------
# Tool 9: export_capacity_grid
# ---------------------------------------------------------------------------
@mcp.tool
def export_capacity_grid(
    start_date: str,
    days: int = 14,
    output_filename: str | None = None,
) -> dict[str, Any]:
    """Write the team capacity calendar to an Excel file.

    Args:
        start_date: First date in YYYY-MM-DD form.
        days: Number of dates to include.
        output_filename: Output file name (generated when omitted).

    Returns:
        Path of the written file.
    """
    planning = _planning()
    try:
        start = parse_date(start_date)
        grid = build_capacity_grid(
            planning.teammates,
            start,
            planning.tasks,
            planning.time_off,
            PlanningConfig(visible_days=days),
        )
    except ValueError as e:
        return _error(str(e))

    if not output_filename:
        output_filename = f"capacity_{start.isoformat()}_{days}d.xlsx"
    path = write_capacity_grid(_get_output_dir() / output_filename, grid)
    return {"status": "ok", "output_path": str(path), "teammate_count": grid.num_teammates}


# ---------------------------------------------------------------------------
# Tool 10: update_task
# ---------------------------------------------------------------------------
@mcp.tool
def update_task(
    task_id: str,
    date: str | None = None,
    estimated_hours: float | None = None,
    status: str | None = None,
    title: str | None = None,
    force: bool = False,
) -> dict[str, Any]:
    """Change a recorded task.

    Moving the task or changing its hours re-checks the target date
    with the task itself left out; a change that does not fit is
    rejected unless force=True.

    Args:
        task_id: Task to change.
        date: New date in YYYY-MM-DD form.
        estimated_hours: New estimate in hours.
        status: "pending", "in-progress" or "completed".
        title: New title.
        force: Apply the change even if it overloads the day.

    Returns:
        The updated task and the capacity of its (new) date.
    """
    planning = _planning()
    changes = {
        k: v
        for k, v in {
            "date": date, "estimated_hours": estimated_hours, "status": status, "title": title,
        }.items()
        if v is not None
    }
    try:
        current = planning.task(task_id)
        teammate = planning.teammate(current.assigned_to)
        updated = Task.model_validate({**current.model_dump(), **changes})
    except KeyError as e:
        return _error(str(e.args[0]))
    except ValidationError as e:
        return _error(f"Invalid task: {e.error_count()} error(s)", details=str(e))

    others = [t for t in planning.tasks if t.id != task_id]
    allowed, warning = True, None
    if updated.date != current.date or updated.estimated_hours != current.estimated_hours:
        before = calculate_day_capacity(teammate, updated.date, others, planning.time_off)
        check = can_assign_task(before, updated.estimated_hours)
        if not check.allowed and not force:
            return _error(check.warning or "Task does not fit", allowed=False)
        allowed, warning = check.allowed, check.warning

    planning.tasks = [updated if t.id == task_id else t for t in planning.tasks]
    after = calculate_day_capacity(teammate, updated.date, planning.tasks, planning.time_off)
    return {
        "status": "ok",
        "allowed": allowed,
        "warning": warning,
        "task": updated.model_dump(mode="json"),
        "capacity": _capacity_summary(after),
    }


# ---------------------------------------------------------------------------
# Tool 11: delete_task
# ---------------------------------------------------------------------------
@mcp.tool
def delete_task(task_id: str) -> dict[str, Any]:
    """Delete a recorded task.

    Args:
        task_id: Task to delete.

    Returns:
        The deleted id and the number of remaining tasks.
    """
    planning = _planning()
    try:
        planning.task(task_id)
    except KeyError as e:
        return _error(str(e.args[0]))

    planning.tasks = [t for t in planning.tasks if t.id != task_id]
    return {"status": "ok", "deleted": task_id, "task_count": len(planning.tasks)}


# ---------------------------------------------------------------------------
# Tool 12: remove_time_off
# ---------------------------------------------------------------------------
@mcp.tool
def remove_time_off(time_off_id: str) -> dict[str, Any]:
    """Withdraw a time-off record.

    Args:
        time_off_id: Record to remove.

    Returns:
        The removed id and the teammate's capacity on that date.
    """
    planning = _planning()
    try:
        record = planning.time_off_record(time_off_id)
    except KeyError as e:
        return _error(str(e.args[0]))

    planning.time_off = [r for r in planning.time_off if r.id != time_off_id]
    result: dict[str, Any] = {"status": "ok", "removed": time_off_id}
    try:
        teammate = planning.teammate(record.teammate_id)
    except KeyError:
        return result
    capacity = calculate_day_capacity(teammate, record.date, planning.tasks, planning.time_off)
    result["capacity"] = _capacity_summary(capacity)
    return result


# ---------------------------------------------------------------------------
# Tool 13: update_teammate
# ---------------------------------------------------------------------------
@mcp.tool
def update_teammate(
    teammate_id: str,
    name: str | None = None,
    job_role: str | None = None,
    daily_capacity: float | None = None,
    working_days: list[int] | None = None,
) -> dict[str, Any]:
    """Change a teammate's profile or schedule.

    Existing tasks are kept; days that no longer fit are reported.

    Args:
        teammate_id: Teammate to change.
        name: New display name.
        job_role: New job role.
        daily_capacity: New hours per working day.
        working_days: New weekday indices (0=Sun..6=Sat).

    Returns:
        The updated teammate and the dates of their tasks now over capacity.
    """
    planning = _planning()
    changes = {
        k: v
        for k, v in {
            "name": name, "job_role": job_role,
            "daily_capacity": daily_capacity, "working_days": working_days,
        }.items()
        if v is not None
    }
    try:
        current = planning.teammate(teammate_id)
        updated = Teammate.model_validate({**current.model_dump(), **changes})
    except KeyError as e:
        return _error(str(e.args[0]))
    except ValidationError as e:
        return _error(f"Invalid teammate data: {e.error_count()} error(s)", details=str(e))

    planning.teammates = [updated if t.id == teammate_id else t for t in planning.teammates]
    task_dates = sorted({t.date for t in planning.tasks if t.assigned_to == teammate_id})
    overloaded = []
    for day in task_dates:
        capacity = calculate_day_capacity(updated, day, planning.tasks, planning.time_off)
        if capacity.used_capacity > capacity.total_capacity:
            overloaded.append(day.isoformat())

    return {
        "status": "ok",
        "teammate": updated.model_dump(mode="json"),
        "overloaded_dates": overloaded,
    }


if __name__ == "__main__":
    mcp.run()
