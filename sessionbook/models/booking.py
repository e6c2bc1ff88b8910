# sessionbook/models/booking.py
"""
Booking model.

A booking ties an instructor, a student, an exercise and exactly one slot
together for one training session. Only one active booking may exist for a
(course, student, exercise) triple; the partial unique index enforces that
at the database so concurrent writers lose with an IntegrityError.
"""

from datetime import datetime, timezone
import logging
from typing import Any

from sqlalchemy import Boolean, Column, ForeignKey, Index, String, true
from sqlalchemy.orm import relationship
import ulid

from ..core.enums import BookingState
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    """Instructor session booked against a student's slot."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    course_id = Column(String(26), nullable=False)
    student_id = Column(String(26), nullable=False, index=True)
    exercise_id = Column(String(26), nullable=False)
    instructor_id = Column(String(26), nullable=False, index=True)
    slot_id = Column(String(26), ForeignKey("slots.id"), nullable=False)

    confirmed = Column(Boolean, nullable=False, default=False)
    active = Column(Boolean, nullable=False, default=True)
    last_modified = Column(UTCDateTime(), nullable=False, default=_now_utc, onupdate=_now_utc)

    slot = relationship("Slot", lazy="joined")

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.confirmed is None:
            self.confirmed = False
        if self.active is None:
            self.active = True

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: course={self.course_id}, student={self.student_id}, "
            f"exercise={self.exercise_id}, instructor={self.instructor_id}, "
            f"confirmed={self.confirmed}, active={self.active}>"
        )

    @property
    def state(self) -> BookingState:
        if not self.active:
            return BookingState.INACTIVE
        if self.confirmed:
            return BookingState.CONFIRMED
        return BookingState.TENTATIVE

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "course_id": self.course_id,
            "student_id": self.student_id,
            "exercise_id": self.exercise_id,
            "instructor_id": self.instructor_id,
            "slot_id": self.slot_id,
            "confirmed": self.confirmed,
            "active": self.active,
            "state": self.state.value,
            "last_modified": self.last_modified.isoformat() if self.last_modified else None,
        }


Index(
    "uq_bookings_active_triple",
    Booking.course_id,
    Booking.student_id,
    Booking.exercise_id,
    unique=True,
    postgresql_where=(Booking.active == true()),
    sqlite_where=(Booking.active == true()),
)
