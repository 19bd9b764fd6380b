"""Task data models."""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field


class TaskStatus(str, Enum):
    """Progress of a task."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class RecurrenceType(str, Enum):
    """How a recurring task repeats."""

    NONE = "none"
    DAILY = "daily"
    CUSTOM = "custom"


class Task(BaseModel):
    """Work assigned to a teammate on a single date."""

    id: str
    title: str = ""
    description: str | None = None
    assigned_to: str = Field(description="Teammate id")
    assigned_by_name: str = ""
    date: dt.date
    estimated_hours: float = Field(gt=0)
    status: TaskStatus = TaskStatus.PENDING
    is_self_assigned: bool = False
    sort_order: int = 0
    is_recurring: bool = False
    recurrence_type: RecurrenceType = RecurrenceType.NONE
    parent_task_id: str | None = None
