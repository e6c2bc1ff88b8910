# sessionbook/repositories/participant_repository.py
"""
Participant Repository

Reads course enrolments for students and instructors and the grade history
the eligibility calculation falls back on.
"""

from datetime import datetime
from decimal import Decimal
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import ParticipantRole
from ..models.enrollment import CourseEnrollment
from ..models.grade import ExerciseGrade
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class ParticipantRepository(BaseRepository[CourseEnrollment]):
    """Repository for course enrolments and exercise grades."""

    def __init__(self, db: Session):
        super().__init__(db, CourseEnrollment)
        self.logger = logging.getLogger(__name__)

    def get_enrollment(
        self, course_id: str, user_id: str, role: ParticipantRole
    ) -> Optional[CourseEnrollment]:
        return self.find_one_by(course_id=course_id, user_id=user_id, role=role.value)

    def get_active_students(self, course_id: str) -> List[CourseEnrollment]:
        """Active student enrolments in palette order (sort order, then enrolment date)."""
        return self._active_by_role(course_id, ParticipantRole.STUDENT)

    def get_active_instructors(self, course_id: str) -> List[CourseEnrollment]:
        return self._active_by_role(course_id, ParticipantRole.INSTRUCTOR)

    def _active_by_role(self, course_id: str, role: ParticipantRole) -> List[CourseEnrollment]:
        query = (
            self._build_query()
            .filter(
                CourseEnrollment.course_id == course_id,
                CourseEnrollment.role == role.value,
                CourseEnrollment.active.is_(True),
            )
            .order_by(
                CourseEnrollment.sort_order,
                CourseEnrollment.enrolled_at,
                CourseEnrollment.id,
            )
        )
        return self._execute_query(query)

    def get_last_graded_at(self, course_id: str, student_id: str) -> Optional[datetime]:
        """Most recent grading time for the student in the course."""
        query = (
            self.db.query(ExerciseGrade)
            .filter(
                ExerciseGrade.course_id == course_id,
                ExerciseGrade.student_id == student_id,
            )
            .order_by(ExerciseGrade.graded_at.desc())
        )
        grade = self._execute_first(query)
        return grade.graded_at if grade else None

    def record_grade(
        self,
        course_id: str,
        student_id: str,
        exercise_id: str,
        graded_at: datetime,
        *,
        grader_id: Optional[str] = None,
        grade: Optional[Decimal] = None,
    ) -> ExerciseGrade:
        entry = ExerciseGrade(
            course_id=course_id,
            student_id=student_id,
            exercise_id=exercise_id,
            grader_id=grader_id,
            grade=grade,
            graded_at=graded_at,
        )
        self.db.add(entry)
        self.flush()
        return entry
