# sessionbook/schemas/slot.py
"""Slot request and response schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from ..core.enums import SlotOrigin, SlotStatus
from ._strict_base import StrictModel, StrictRequestModel


class SlotInterval(StrictRequestModel):
    """Half-open [start_time, end_time) interval."""

    start_time: datetime
    end_time: datetime

    @model_validator(mode="after")
    def _check_order(self) -> "SlotInterval":
        if self.start_time >= self.end_time:
            raise ValueError("start_time must be before end_time")
        return self


class WeekSlotsRequest(StrictRequestModel):
    """A student's full set of open slots for one week."""

    slots: List[SlotInterval] = Field(default_factory=list, max_length=200)


class WeekSlotsResponse(StrictModel):
    course_id: str
    student_id: str
    year: int
    week: int
    slot_ids: List[str]


class ClearWeekResponse(StrictModel):
    deleted: int


class SlotResponse(StrictModel):
    id: str
    owner_id: str
    course_id: str
    start_time: datetime
    end_time: datetime
    year: int
    week: int
    status: SlotStatus
    origin: SlotOrigin
    annotation: Optional[str] = None
    display_color: Optional[str] = None
