# sessionbook/models/slot.py
"""
Availability slot model.

A slot is a half-open interval [start_time, end_time) posted by a student
for a course and ISO week, or created by an instructor when booking a
session directly. Its status follows the booking that references it.
"""

from datetime import datetime, timezone
import logging
from typing import Any

from sqlalchemy import CheckConstraint, Column, Index, Integer, String, Text
import ulid

from ..core.enums import SlotOrigin, SlotStatus
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class Slot(Base):
    """Posted availability interval, possibly claimed by a booking."""

    __tablename__ = "slots"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    owner_id = Column(String(26), nullable=False, index=True)
    course_id = Column(String(26), nullable=False, index=True)

    start_time = Column(UTCDateTime(), nullable=False)
    end_time = Column(UTCDateTime(), nullable=False)
    year = Column(Integer, nullable=False)
    week = Column(Integer, nullable=False)

    status = Column(String(20), nullable=False, default=SlotStatus.OPEN.value)
    origin = Column(String(20), nullable=False, default=SlotOrigin.STUDENT.value)
    annotation = Column(Text, nullable=True)
    display_color = Column(String(16), nullable=True)

    created_at = Column(UTCDateTime(), nullable=False, default=_now_utc)

    __table_args__ = (
        CheckConstraint("start_time < end_time", name="ck_slots_time_order"),
        CheckConstraint(
            "status IN ('open', 'tentative', 'booked', 'confirmed')",
            name="ck_slots_status",
        ),
        CheckConstraint("origin IN ('student', 'instructor')", name="ck_slots_origin"),
        CheckConstraint("week BETWEEN 1 AND 53", name="ck_slots_week_range"),
        Index("ix_slots_course_year_week", "course_id", "year", "week"),
        Index("ix_slots_owner_year_week", "owner_id", "year", "week"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = SlotStatus.OPEN.value
        if not self.origin:
            self.origin = SlotOrigin.STUDENT.value

    def __repr__(self) -> str:
        return (
            f"<Slot {self.id}: owner={self.owner_id}, course={self.course_id}, "
            f"{self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def is_open(self) -> bool:
        return self.status == SlotStatus.OPEN.value

    @property
    def is_instructor_created(self) -> bool:
        return self.origin == SlotOrigin.INSTRUCTOR.value

    def overlaps(self, other: "Slot") -> bool:
        """Half-open interval intersection."""
        return self.start_time < other.end_time and other.start_time < self.end_time

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "course_id": self.course_id,
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "year": self.year,
            "week": self.week,
            "status": self.status,
            "origin": self.origin,
            "annotation": self.annotation,
            "display_color": self.display_color,
        }
