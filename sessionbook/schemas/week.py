# sessionbook/schemas/week.py
"""Weekly grid response schemas."""

from dataclasses import asdict
from datetime import date
from typing import Any, List, Optional

from pydantic import Field

from ..core.enums import LanePolicy
from ._strict_base import StrictModel
from .slot import SlotResponse


class SlotCell(SlotResponse):
    """Slot as placed in the grid, with its owner's display details."""

    owner_name: Optional[str] = None
    owner_callsign: Optional[str] = None


class WeekDayResponse(StrictModel):
    weekday: int = Field(ge=0, le=6, description="0=Monday")
    calendar_date: date
    lanes: List[List[SlotCell]]


class WeekRef(StrictModel):
    year: int
    week: int


class WeekLayoutResponse(StrictModel):
    course_id: str
    year: int
    week: int
    owner_id: Optional[str] = None
    days: List[WeekDayResponse]
    max_lanes_used: int
    display_lanes: int
    grid_lanes: int
    hours: List[int]
    utc_offset_hours: float
    previous_week: WeekRef
    next_week: WeekRef
    next_week_available: bool
    lane_policy: LanePolicy

    @classmethod
    def from_view(cls, view: Any) -> "WeekLayoutResponse":
        data = asdict(view)
        for key in ("previous_week", "next_week"):
            year, week = data[key]
            data[key] = {"year": year, "week": week}
        return cls.model_validate(data)
