"""Capacity result models."""

from __future__ import annotations

import datetime as dt
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from capacify.models.task import Task
from capacify.models.time_off import TimeOff


class CapacityStatus(str, Enum):
    """Load bucket used for colour-coding a day."""

    EMPTY = "empty"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DayCapacity(BaseModel):
    """Hours available and used by one teammate on one date.

    Derived on every query from the current teammate, task and time-off
    records; never stored.
    """

    model_config = ConfigDict(frozen=True)

    date: dt.date
    total_capacity: float = Field(description="Hours available after working-day and day-off rules")
    used_capacity: float = Field(description="Task hours plus partial time-off hours")
    tasks: list[Task] = Field(default_factory=list)
    time_off: TimeOff | None = None


class AssignmentCheck(BaseModel):
    """Outcome of checking whether a new task fits a day."""

    allowed: bool
    warning: str | None = None
