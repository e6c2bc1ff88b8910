# sessionbook/services/availability_service.py
"""
Student availability posting.

A student's week is saved as a whole: their open slots for the week are
replaced by the submitted set in one transaction. Booked slots are left
alone. Posting is refused before the student's next allowed date.
"""

from datetime import datetime
import logging
from typing import List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from ..core.enums import SlotOrigin, SlotStatus
from ..core.exceptions import PostingRestrictedException, ValidationException
from ..core.time_utils import ensure_utc, iso_week_of, utc_now
from ..models.slot import Slot
from ..repositories.factory import RepositoryFactory
from ..repositories.participant_repository import ParticipantRepository
from ..repositories.slot_repository import SlotRepository
from .base import BaseService
from .eligibility import EligibilityService
from .palette import color_for_index

logger = logging.getLogger(__name__)

Interval = Tuple[datetime, datetime]


class AvailabilityService(BaseService):
    """Service for a student's weekly availability slots."""

    def __init__(
        self,
        db: Session,
        eligibility_service: Optional[EligibilityService] = None,
        slot_repository: Optional[SlotRepository] = None,
        participant_repository: Optional[ParticipantRepository] = None,
    ):
        super().__init__(db)
        self.slot_repository = slot_repository or RepositoryFactory.create_slot_repository(db)
        self.participant_repository = (
            participant_repository or RepositoryFactory.create_participant_repository(db)
        )
        self.eligibility_service = eligibility_service or EligibilityService(
            db,
            slot_repository=self.slot_repository,
            participant_repository=self.participant_repository,
        )

    def _validate_week_intervals(
        self, intervals: Sequence[Interval], year: int, week: int
    ) -> List[Interval]:
        normalized = sorted(
            ((ensure_utc(start), ensure_utc(end)) for start, end in intervals),
            key=lambda interval: interval[0],
        )
        for start, end in normalized:
            if start >= end:
                raise ValidationException(
                    "Slot start time must be before its end time",
                    code="INVALID_SLOT_INTERVAL",
                    details={"start_time": start.isoformat(), "end_time": end.isoformat()},
                )
            if iso_week_of(start) != (year, week):
                raise ValidationException(
                    f"Slot starting {start.isoformat()} is outside week {week} of {year}",
                    code="SLOT_OUTSIDE_WEEK",
                )
        for (_, previous_end), (next_start, _) in zip(normalized, normalized[1:]):
            if next_start < previous_end:
                raise ValidationException(
                    "Submitted slots overlap each other",
                    code="OVERLAPPING_SLOTS",
                    details={"start_time": next_start.isoformat()},
                )
        return normalized

    def _student_color(self, course_id: str, student_id: str) -> Optional[str]:
        students = self.participant_repository.get_active_students(course_id)
        for index, enrollment in enumerate(students):
            if enrollment.user_id == student_id:
                return color_for_index(index)
        return None

    @BaseService.measure_operation("save_week_slots")
    def save_week_slots(
        self,
        course_id: str,
        student_id: str,
        year: int,
        week: int,
        intervals: Sequence[Interval],
        now: Optional[datetime] = None,
    ) -> List[str]:
        """
        Replace the student's open slots for one week.

        Returns:
            Ids of the saved slots, earliest first

        Raises:
            ValidationException: Bad or overlapping intervals, or a slot outside the week
            PostingRestrictedException: A slot falls before the next allowed date
            NotFoundException: The student is not enrolled in the course
        """
        now = ensure_utc(now) if now else utc_now()
        normalized = self._validate_week_intervals(intervals, year, week)

        window = self.eligibility_service.get_window(student_id, course_id, now)
        if normalized and normalized[0][0].date() < window.next_allowed_date:
            raise PostingRestrictedException(
                next_allowed_date=window.next_allowed_date.isoformat(),
                first_slot_date=normalized[0][0].date().isoformat(),
            )

        self.log_operation(
            "save_week_slots",
            course_id=course_id,
            student_id=student_id,
            year=year,
            week=week,
            count=len(normalized),
        )
        color = self._student_color(course_id, student_id)

        with self.transaction():
            self.slot_repository.delete_slots(course_id, year, week, student_id)
            slot_ids = [
                self.slot_repository.save_slot(
                    Slot(
                        owner_id=student_id,
                        course_id=course_id,
                        start_time=start,
                        end_time=end,
                        year=year,
                        week=week,
                        status=SlotStatus.OPEN.value,
                        origin=SlotOrigin.STUDENT.value,
                        display_color=color,
                    )
                )
                for start, end in normalized
            ]
        return slot_ids

    @BaseService.measure_operation("clear_week_slots")
    def clear_week_slots(self, course_id: str, student_id: str, year: int, week: int) -> int:
        """Delete the student's unbooked slots for one week."""
        self.log_operation(
            "clear_week_slots", course_id=course_id, student_id=student_id, year=year, week=week
        )
        with self.transaction():
            deleted = self.slot_repository.delete_slots(course_id, year, week, student_id)
        return deleted

    def get_posting_summary(self, course_id: str, student_id: str) -> dict:
        """Counts and bounds of the student's current open postings."""
        first = self.slot_repository.get_first_posted_slot(student_id)
        last = self.slot_repository.get_last_posted_slot(course_id, student_id)
        return {
            "total_posts": self.slot_repository.get_slot_count(course_id, student_id),
            "first_posted_at": first.start_time if first else None,
            "last_posted_at": last.start_time if last else None,
        }
