# sessionbook/models/enrollment.py
"""
Course enrolment records for students and instructors.

Enrolments carry the participant details the booking core needs: the
enrolment date (eligibility fallback), display names and callsign, and the
per-student posting wait waiver.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String, UniqueConstraint
import ulid

from ..core.enums import ParticipantRole
from ..database import Base
from .types import UTCDateTime


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class CourseEnrollment(Base):
    __tablename__ = "course_enrollments"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    course_id = Column(String(26), nullable=False, index=True)
    user_id = Column(String(26), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=ParticipantRole.STUDENT.value)

    first_name = Column(String(100), nullable=False, default="")
    last_name = Column(String(100), nullable=False, default="")
    alternate_name = Column(String(100), nullable=True)
    callsign = Column(String(20), nullable=True)

    enrolled_at = Column(UTCDateTime(), nullable=False, default=_now_utc)
    active = Column(Boolean, nullable=False, default=True)
    posting_wait_override = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("course_id", "user_id", "role", name="uq_enrollment_course_user_role"),
        CheckConstraint("role IN ('student', 'instructor')", name="ck_enrollment_role"),
    )

    def __repr__(self) -> str:
        return f"<CourseEnrollment {self.course_id}/{self.user_id} role={self.role}>"

    def to_dict(self) -> dict[str, Any]:
        return {
            "course_id": self.course_id,
            "user_id": self.user_id,
            "role": self.role,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "alternate_name": self.alternate_name,
            "callsign": self.callsign,
            "enrolled_at": self.enrolled_at.isoformat() if self.enrolled_at else None,
            "posting_wait_override": self.posting_wait_override,
        }
