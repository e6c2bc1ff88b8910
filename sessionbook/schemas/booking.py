# sessionbook/schemas/booking.py
"""Booking request and response schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, model_validator

from ..core.constants import MAX_REASON_LENGTH
from ..core.enums import BookingState
from ._strict_base import Identifier, StrictModel, StrictRequestModel
from .slot import SlotInterval, SlotResponse


class BookingTriple(StrictRequestModel):
    course_id: Identifier
    student_id: Identifier
    exercise_id: Identifier


class BookingCreate(BookingTriple):
    """
    Book a session.

    Pass ``slot`` to create a new session slot, or ``slot_id`` to claim one
    of the student's open slots.
    """

    instructor_id: Identifier
    slot: Optional[SlotInterval] = None
    slot_id: Optional[Identifier] = None

    @model_validator(mode="after")
    def _require_slot(self) -> "BookingCreate":
        if self.slot is None and not self.slot_id:
            raise ValueError("Either slot or slot_id is required")
        return self


class BookingConfirm(BookingTriple):
    pass


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=MAX_REASON_LENGTH)


class BookingResponse(StrictModel):
    id: str
    course_id: str
    student_id: str
    exercise_id: str
    instructor_id: str
    slot_id: str
    confirmed: bool
    active: bool
    state: BookingState
    last_modified: Optional[datetime] = None
    slot: Optional[SlotResponse] = None


class BookingResultResponse(StrictModel):
    success: bool
    state: BookingState
    booking: Optional[BookingResponse] = None
    slot: Optional[SlotResponse] = None
    notified: bool = False


class BookingListResponse(StrictModel):
    bookings: List[BookingResponse]
    total: int


class GradingEvent(BookingTriple):
    grader_id: Optional[str] = None
    grade: Optional[Decimal] = None
    graded_at: Optional[datetime] = None
