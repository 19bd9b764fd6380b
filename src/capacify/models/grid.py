"""Capacity grid models."""

from __future__ import annotations

import datetime as dt

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, Field

from capacify.models.capacity import CapacityStatus, DayCapacity
from capacify.models.teammate import Teammate


class CapacityCell(BaseModel):
    """One teammate-date cell of the capacity calendar."""

    teammate_id: str
    date: dt.date
    capacity: DayCapacity
    status: CapacityStatus
    percentage: float = Field(ge=0, le=100)
    label: str

    @property
    def task_count(self) -> int:
        return len(self.capacity.tasks)


class CapacityGrid(BaseModel):
    """Teammates x dates view of day capacities.

    ``rows[i][j]`` is the cell of ``teammates[i]`` on ``dates[j]``.
    """

    start_date: dt.date
    dates: list[dt.date]
    teammates: list[Teammate]
    rows: list[list[CapacityCell]] = Field(default_factory=list)

    @property
    def num_teammates(self) -> int:
        return len(self.teammates)

    @property
    def num_days(self) -> int:
        return len(self.dates)

    @property
    def end_date(self) -> dt.date:
        return self.dates[-1]

    def cell(self, teammate_id: str, date: dt.date) -> CapacityCell:
        for row_idx, teammate in enumerate(self.teammates):
            if teammate.id != teammate_id:
                continue
            for cell in self.rows[row_idx]:
                if cell.date == date:
                    return cell
            raise KeyError(f"Date {date.isoformat()} is outside the grid window")
        raise KeyError(f"Unknown teammate: {teammate_id}")

    def utilization_matrix(self) -> NDArray[np.float64]:
        """Clamped percentages, shape=(num_teammates, num_days)."""
        matrix = np.zeros((self.num_teammates, self.num_days), dtype=np.float64)
        for i, row in enumerate(self.rows):
            for j, cell in enumerate(row):
                matrix[i, j] = cell.percentage
        return matrix


class TeamDaySummary(BaseModel):
    """Team-wide totals for one date of a grid."""

    date: dt.date
    total_capacity: float = 0.0
    used_capacity: float = 0.0
    remaining_capacity: float = 0.0
    status_counts: dict[CapacityStatus, int] = Field(default_factory=dict)

    @property
    def overloaded_count(self) -> int:
        return self.status_counts.get(CapacityStatus.HIGH, 0)
