"""Time-off data models."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, Field


class TimeOff(BaseModel):
    """An absence of a teammate on one date.

    Without ``hours`` the whole day is off. With ``hours`` below the
    teammate's daily capacity the absence is partial and its hours count
    as used capacity.
    """

    id: str
    teammate_id: str
    date: dt.date
    hours: float | None = Field(default=None, gt=0)
    reason: str | None = None
    created_at: dt.datetime | None = None

    def is_full_day(self, daily_capacity: float) -> bool:
        return self.hours is None or self.hours >= daily_capacity
