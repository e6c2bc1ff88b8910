# sessionbook/models/grade.py
"""Exercise grades recorded from external grading events."""

from datetime import datetime, timezone

from sqlalchemy import Column, Index, Numeric, String
import ulid

from ..database import Base
from .types import UTCDateTime


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


class ExerciseGrade(Base):
    __tablename__ = "exercise_grades"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    course_id = Column(String(26), nullable=False)
    student_id = Column(String(26), nullable=False)
    exercise_id = Column(String(26), nullable=False)
    grader_id = Column(String(26), nullable=True)
    grade = Column(Numeric(10, 2), nullable=True)
    graded_at = Column(UTCDateTime(), nullable=False, default=_now_utc)

    __table_args__ = (Index("ix_grades_course_student", "course_id", "student_id", "graded_at"),)

    def __repr__(self) -> str:
        return (
            f"<ExerciseGrade {self.course_id}/{self.student_id}/{self.exercise_id} "
            f"grade={self.grade} at={self.graded_at}>"
        )
