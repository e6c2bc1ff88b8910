"""Booking domain events."""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass
class BookingCreated:
    """Fired after an instructor books a session."""

    booking_id: str
    course_id: str
    student_id: str
    instructor_id: str
    exercise_id: str
    slot_start: datetime
    slot_end: datetime
    created_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingConfirmed:
    """Fired after the student acknowledges a booked session."""

    booking_id: str
    course_id: str
    student_id: str
    instructor_id: str
    exercise_id: str
    confirmed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingCancelled:
    """Fired after a booking is cancelled."""

    booking_id: str
    course_id: str
    student_id: str
    instructor_id: str
    exercise_id: str
    cancelled_at: datetime
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class BookingDeactivated:
    """Fired when grading an exercise retires its booking."""

    booking_id: str
    course_id: str
    student_id: str
    exercise_id: str
    deactivated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
