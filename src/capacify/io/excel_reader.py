"""Excel reader for planning workbooks."""

from __future__ import annotations

import datetime as dt
import logging
import numbers
from pathlib import Path
from typing import Any

import pandas as pd

from capacify.models.planning import PlanningInput
from capacify.models.task import Task
from capacify.models.teammate import Teammate
from capacify.models.time_off import TimeOff

logger = logging.getLogger(__name__)

TEAMMATES_SHEET = "Teammates"
TASKS_SHEET = "Tasks"
TIME_OFF_SHEET = "TimeOff"

_REQUIRED_COLUMNS = {
    TEAMMATES_SHEET: ["id", "daily_capacity"],
    TASKS_SHEET: ["id", "assigned_to", "date", "estimated_hours"],
    TIME_OFF_SHEET: ["id", "teammate_id", "date"],
}


def read_planning_input(filepath: str | Path) -> PlanningInput:
    """Read teammates, tasks and time off from an Excel workbook.

    Workbook layout (first row of each sheet is the header):
        - Teammates: id, name, job_role, daily_capacity, working_days
          (working_days is a comma-separated list, 0=Sun..6=Sat)
        - Tasks: id, title, assigned_to, date, estimated_hours, status
        - TimeOff (optional): id, teammate_id, date, hours, reason, created_at
          (when several rows share a teammate and date, the newest created_at wins)
    """
    filepath = Path(filepath)
    sheets = pd.read_excel(filepath, sheet_name=None)

    for required in (TEAMMATES_SHEET, TASKS_SHEET):
        if required not in sheets:
            raise ValueError(f"Workbook {filepath.name} has no '{required}' sheet")

    teammates = [Teammate(**_teammate_fields(r)) for r in _records(sheets, TEAMMATES_SHEET)]
    tasks = [Task(**_task_fields(r)) for r in _records(sheets, TASKS_SHEET)]
    time_off: list[TimeOff] = []
    if TIME_OFF_SHEET in sheets:
        time_off = [TimeOff(**_time_off_fields(r)) for r in _records(sheets, TIME_OFF_SHEET)]

    logger.info(
        "Read %d teammates, %d tasks, %d time-off records from %s",
        len(teammates), len(tasks), len(time_off), filepath,
    )
    return PlanningInput(teammates=teammates, tasks=tasks, time_off=time_off)


def _records(sheets: dict[str, pd.DataFrame], sheet_name: str) -> list[dict[str, Any]]:
    df = sheets[sheet_name].dropna(how="all")
    df.columns = [str(c).strip() for c in df.columns]
    missing = [c for c in _REQUIRED_COLUMNS[sheet_name] if c not in df.columns]
    if missing:
        raise ValueError(f"Sheet '{sheet_name}' is missing columns: {', '.join(missing)}")

    records = []
    for raw in df.to_dict(orient="records"):
        records.append({k: v for k, v in raw.items() if pd.notna(v)})
    return records


def _as_id(value: Any) -> str:
    # Numeric ids come back from pandas as floats
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _as_date(value: Any) -> dt.date | str:
    if isinstance(value, (pd.Timestamp, dt.datetime)):
        return value.date()
    return str(value).strip()


def _parse_working_days(value: Any) -> list[int]:
    if isinstance(value, numbers.Number):
        return [int(value)]
    parts = [p.strip() for p in str(value).split(",")]
    try:
        return [int(p) for p in parts if p]
    except ValueError as e:
        raise ValueError(f"Malformed working days: {value!r}") from e


def _teammate_fields(record: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "id": _as_id(record["id"]),
        "name": str(record.get("name", "")),
        "job_role": str(record.get("job_role", "")),
        "daily_capacity": float(record["daily_capacity"]),
    }
    if "email" in record:
        fields["email"] = str(record["email"])
    if "working_days" in record:
        fields["working_days"] = _parse_working_days(record["working_days"])
    return fields


def _task_fields(record: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "id": _as_id(record["id"]),
        "title": str(record.get("title", "")),
        "assigned_to": _as_id(record["assigned_to"]),
        "date": _as_date(record["date"]),
        "estimated_hours": float(record["estimated_hours"]),
    }
    if "status" in record:
        fields["status"] = str(record["status"]).strip()
    return fields


def _time_off_fields(record: dict[str, Any]) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "id": _as_id(record["id"]),
        "teammate_id": _as_id(record["teammate_id"]),
        "date": _as_date(record["date"]),
    }
    if "hours" in record:
        fields["hours"] = float(record["hours"])
    if "reason" in record:
        fields["reason"] = str(record["reason"])
    if "created_at" in record:
        fields["created_at"] = pd.Timestamp(record["created_at"]).to_pydatetime()
    return fields
