# sessionbook/services/participants.py
"""
Course participants as seen by the booking core.

Students and instructors are separate types that both satisfy the
``Participant`` protocol; neither inherits from the other.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from ..models.enrollment import CourseEnrollment


@runtime_checkable
class Participant(Protocol):
    def get_enrol_date(self) -> datetime:
        ...

    def get_full_name(self, include_alternate: bool = True) -> str:
        ...

    def get_callsign(self) -> Optional[str]:
        ...


def _full_name(first: str, last: str, alternate: Optional[str], include_alternate: bool) -> str:
    name = f"{first} {last}".strip()
    if include_alternate and alternate:
        name = f"{name} ({alternate})"
    return name


@dataclass(frozen=True)
class Student:
    """A student enrolled in a course."""

    user_id: str
    course_id: str
    first_name: str
    last_name: str
    enrolled_at: datetime
    alternate_name: Optional[str] = None
    callsign: Optional[str] = None
    posting_wait_override: bool = False
    slot_color: Optional[str] = None

    @classmethod
    def from_enrollment(
        cls, enrollment: CourseEnrollment, slot_color: Optional[str] = None
    ) -> "Student":
        return cls(
            user_id=enrollment.user_id,
            course_id=enrollment.course_id,
            first_name=enrollment.first_name,
            last_name=enrollment.last_name,
            enrolled_at=enrollment.enrolled_at,
            alternate_name=enrollment.alternate_name,
            callsign=enrollment.callsign,
            posting_wait_override=bool(enrollment.posting_wait_override),
            slot_color=slot_color,
        )

    def get_enrol_date(self) -> datetime:
        return self.enrolled_at

    def get_full_name(self, include_alternate: bool = True) -> str:
        return _full_name(self.first_name, self.last_name, self.alternate_name, include_alternate)

    def get_callsign(self) -> Optional[str]:
        return self.callsign

    def has_posting_waiver(self) -> bool:
        return self.posting_wait_override


@dataclass(frozen=True)
class Instructor:
    """An instructor enrolled in a course."""

    user_id: str
    course_id: str
    first_name: str
    last_name: str
    enrolled_at: datetime
    alternate_name: Optional[str] = None
    callsign: Optional[str] = None

    @classmethod
    def from_enrollment(cls, enrollment: CourseEnrollment) -> "Instructor":
        return cls(
            user_id=enrollment.user_id,
            course_id=enrollment.course_id,
            first_name=enrollment.first_name,
            last_name=enrollment.last_name,
            enrolled_at=enrollment.enrolled_at,
            alternate_name=enrollment.alternate_name,
            callsign=enrollment.callsign,
        )

    def get_enrol_date(self) -> datetime:
        return self.enrolled_at

    def get_full_name(self, include_alternate: bool = True) -> str:
        return _full_name(self.first_name, self.last_name, self.alternate_name, include_alternate)

    def get_callsign(self) -> Optional[str]:
        return self.callsign
