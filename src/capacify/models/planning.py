"""Planning input and configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from capacify.models.task import Task
from capacify.models.teammate import Teammate
from capacify.models.time_off import TimeOff


class PlanningConfig(BaseModel):
    """Configuration for the capacity calendar window."""

    visible_days: int = Field(default=14, ge=1, description="Number of dates shown in a grid")
    navigation_step: int = Field(default=7, ge=1, description="Days moved per prev/next step")


class PlanningInput(BaseModel):
    """Snapshot of the records a capacity view is computed from."""

    teammates: list[Teammate] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    time_off: list[TimeOff] = Field(default_factory=list)

    def teammate(self, teammate_id: str) -> Teammate:
        for t in self.teammates:
            if t.id == teammate_id:
                return t
        available = ", ".join(t.id for t in self.teammates)
        raise KeyError(f"Unknown teammate: {teammate_id}. Available: {available}")

    def task(self, task_id: str) -> Task:
        for t in self.tasks:
            if t.id == task_id:
                return t
        raise KeyError(f"Unknown task: {task_id}")

    def time_off_record(self, time_off_id: str) -> TimeOff:
        for record in self.time_off:
            if record.id == time_off_id:
                return record
        raise KeyError(f"Unknown time off: {time_off_id}")

    def task_ids(self) -> set[str]:
        return {t.id for t in self.tasks}
