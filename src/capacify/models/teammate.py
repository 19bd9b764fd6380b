"""Teammate data models."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

# Weekday indices are 0=Sunday..6=Saturday throughout the package
DEFAULT_WORKING_DAYS = [1, 2, 3, 4, 5]


class Teammate(BaseModel):
    """A team member whose daily hours are planned."""

    id: str
    name: str = ""
    job_role: str = ""
    email: str | None = None
    daily_capacity: float = Field(gt=0, description="Hours available on a working day")
    working_days: list[int] = Field(
        default_factory=lambda: list(DEFAULT_WORKING_DAYS),
        description="Weekday indices (0=Sun..6=Sat) the teammate works on",
    )

    @field_validator("working_days")
    @classmethod
    def _check_working_days(cls, value: list[int]) -> list[int]:
        invalid = [d for d in value if not 0 <= d <= 6]
        if invalid:
            raise ValueError(f"Working days must be weekday indices 0-6, got {invalid}")
        return sorted(set(value))

    def works_on(self, weekday: int) -> bool:
        return weekday in self.working_days
