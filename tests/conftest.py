"""Common test fixtures."""

from __future__ import annotations

import datetime as dt

import pytest

from capacify.models.planning import PlanningInput
from capacify.models.task import Task
from capacify.models.teammate import Teammate
from capacify.models.time_off import TimeOff

# 2026-03-02 is a Monday
MONDAY = dt.date(2026, 3, 2)


@pytest.fixture
def alice() -> Teammate:
    """8h/day, Monday to Friday."""
    return Teammate(
        id="alice",
        name="Alice Smith",
        job_role="Designer",
        daily_capacity=8,
        working_days=[1, 2, 3, 4, 5],
    )


@pytest.fixture
def bob() -> Teammate:
    """6h/day, Monday to Wednesday."""
    return Teammate(
        id="bob",
        name="Bob Jones",
        job_role="Developer",
        daily_capacity=6,
        working_days=[1, 2, 3],
    )


@pytest.fixture
def make_task():
    """Factory for tasks with sensible defaults."""
    counter = iter(range(1, 10_000))

    def _make(assigned_to: str, date: dt.date | str, hours: float, **kwargs) -> Task:
        return Task(
            id=kwargs.pop("id", f"task-{next(counter)}"),
            assigned_to=assigned_to,
            date=date,
            estimated_hours=hours,
            **kwargs,
        )

    return _make


@pytest.fixture
def small_planning_input(alice, bob, make_task) -> PlanningInput:
    """Two teammates over the first week of March 2026."""
    return PlanningInput(
        teammates=[alice, bob],
        tasks=[
            make_task("alice", MONDAY, 6, title="Wireframes"),
            make_task("alice", MONDAY + dt.timedelta(days=1), 8, title="Review"),
            make_task("bob", MONDAY, 3, title="API"),
            make_task("bob", MONDAY + dt.timedelta(days=2), 6, title="Deploy"),
        ],
        time_off=[
            TimeOff(id="off-1", teammate_id="bob", date=MONDAY + dt.timedelta(days=1)),
            TimeOff(id="off-2", teammate_id="alice", date=MONDAY + dt.timedelta(days=3), hours=2),
        ],
    )
