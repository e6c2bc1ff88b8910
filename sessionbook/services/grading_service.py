# sessionbook/services/grading_service.py
"""
Grading events.

When an exercise is graded the grade is recorded (it feeds the posting
eligibility fallback) and the booking for that exercise is retired.
"""

from datetime import datetime
from decimal import Decimal
import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..core.time_utils import ensure_utc, utc_now
from ..repositories.factory import RepositoryFactory
from ..repositories.participant_repository import ParticipantRepository
from .base import BaseService
from .booking_lifecycle import BookingLifecycleService, BookingResult

logger = logging.getLogger(__name__)


class GradingService(BaseService):
    def __init__(
        self,
        db: Session,
        lifecycle: Optional[BookingLifecycleService] = None,
        participant_repository: Optional[ParticipantRepository] = None,
    ):
        super().__init__(db)
        self.lifecycle = lifecycle or BookingLifecycleService(db)
        self.participant_repository = (
            participant_repository or RepositoryFactory.create_participant_repository(db)
        )

    @BaseService.measure_operation("record_graded")
    def record_graded(
        self,
        course_id: str,
        student_id: str,
        exercise_id: str,
        *,
        grader_id: Optional[str] = None,
        grade: Optional[Decimal] = None,
        graded_at: Optional[datetime] = None,
    ) -> BookingResult:
        """Store the grade, then deactivate the exercise's active booking if any."""
        graded_at = ensure_utc(graded_at) if graded_at else utc_now()
        self.log_operation(
            "record_graded", course_id=course_id, student_id=student_id, exercise_id=exercise_id
        )
        with self.transaction():
            self.participant_repository.record_grade(
                course_id,
                student_id,
                exercise_id,
                graded_at,
                grader_id=grader_id,
                grade=grade,
            )
        return self.lifecycle.deactivate_on_graded(course_id, student_id, exercise_id, graded_at)
