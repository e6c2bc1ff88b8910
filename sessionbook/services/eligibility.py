# sessionbook/services/eligibility.py
"""
Posting eligibility.

A student must wait ``posting_wait_days`` after their last session before
posting new availability. The wait counts from the most recent booked
session, else the last graded exercise, else the enrolment date.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
import logging
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from ..core.enums import EligibilityBasis, ParticipantRole
from ..core.exceptions import NotFoundException
from ..core.time_utils import ensure_utc, utc_now
from ..repositories.course_repository import CourseRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.participant_repository import ParticipantRepository
from ..repositories.slot_repository import SlotRepository
from .base import BaseService
from .course_policy import CoursePolicy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EligibilityWindow:
    student_id: str
    course_id: str
    next_allowed_date: date
    posting_wait_days: int
    override: bool
    basis: EligibilityBasis
    basis_date: Optional[datetime] = None

    def is_restricted(self, now: datetime) -> bool:
        return self.next_allowed_date > ensure_utc(now).date()


def _select_base(
    last_booking_at: Optional[datetime],
    last_graded_at: Optional[datetime],
    enrolled_at: Optional[datetime],
) -> Tuple[Optional[datetime], EligibilityBasis]:
    for value, basis in (
        (last_booking_at, EligibilityBasis.BOOKING),
        (last_graded_at, EligibilityBasis.GRADED),
        (enrolled_at, EligibilityBasis.ENROLLED),
    ):
        if value is not None:
            return value, basis
    return None, EligibilityBasis.NOW


def compute_window(
    student_id: str,
    course_id: str,
    *,
    posting_wait_days: int,
    override: bool,
    last_booking_at: Optional[datetime],
    last_graded_at: Optional[datetime],
    enrolled_at: Optional[datetime],
    now: datetime,
) -> EligibilityWindow:
    """Pure eligibility computation that also reports which history value was used."""
    now = ensure_utc(now)
    if posting_wait_days <= 0 or override:
        return EligibilityWindow(
            student_id=student_id,
            course_id=course_id,
            next_allowed_date=now.date(),
            posting_wait_days=posting_wait_days,
            override=override,
            basis=EligibilityBasis.NOW,
        )

    base, basis = _select_base(last_booking_at, last_graded_at, enrolled_at)
    anchor = ensure_utc(base) if base is not None else now
    candidate = anchor + timedelta(days=posting_wait_days)
    if candidate < now:
        candidate = now

    return EligibilityWindow(
        student_id=student_id,
        course_id=course_id,
        next_allowed_date=candidate.date(),
        posting_wait_days=posting_wait_days,
        override=override,
        basis=basis,
        basis_date=anchor if base is not None else None,
    )


def next_allowed_date(
    posting_wait_days: int,
    override: bool,
    last_booking_at: Optional[datetime],
    last_graded_at: Optional[datetime],
    enrolled_at: Optional[datetime],
    now: datetime,
) -> date:
    """
    Earliest date the student may post availability.

    Returns ``now``'s date when there is no wait or the student has a waiver.
    Otherwise the first available of (last booking, last graded, enrolment)
    plus the wait, never earlier than ``now``, with the time dropped.
    """
    return compute_window(
        "",
        "",
        posting_wait_days=posting_wait_days,
        override=override,
        last_booking_at=last_booking_at,
        last_graded_at=last_graded_at,
        enrolled_at=enrolled_at,
        now=now,
    ).next_allowed_date


class EligibilityService(BaseService):
    """Fetches a student's history and computes their posting window."""

    def __init__(
        self,
        db: Session,
        slot_repository: Optional[SlotRepository] = None,
        participant_repository: Optional[ParticipantRepository] = None,
        course_repository: Optional[CourseRepository] = None,
    ):
        super().__init__(db)
        self.slot_repository = slot_repository or RepositoryFactory.create_slot_repository(db)
        self.participant_repository = (
            participant_repository or RepositoryFactory.create_participant_repository(db)
        )
        self.course_repository = course_repository or RepositoryFactory.create_course_repository(db)

    def get_course_policy(self, course_id: str) -> CoursePolicy:
        return CoursePolicy.from_fields(self.course_repository.get_fields(course_id))

    @BaseService.measure_operation("get_window")
    def get_window(
        self, student_id: str, course_id: str, now: Optional[datetime] = None
    ) -> EligibilityWindow:
        enrollment = self.participant_repository.get_enrollment(
            course_id, student_id, ParticipantRole.STUDENT
        )
        if enrollment is None:
            raise NotFoundException(
                f"Student {student_id} is not enrolled in course {course_id}",
                code="STUDENT_NOT_ENROLLED",
            )

        policy = self.get_course_policy(course_id)
        window = compute_window(
            student_id,
            course_id,
            posting_wait_days=policy.posting_wait_days,
            override=bool(enrollment.posting_wait_override),
            last_booking_at=self.slot_repository.get_last_booking(course_id, student_id),
            last_graded_at=self.participant_repository.get_last_graded_at(course_id, student_id),
            enrolled_at=enrollment.enrolled_at,
            now=now or utc_now(),
        )
        self.logger.debug(
            "Eligibility for %s in %s: %s (basis=%s)",
            student_id,
            course_id,
            window.next_allowed_date,
            window.basis.value,
        )
        return window

    def next_allowed_date(
        self, student_id: str, course_id: str, now: Optional[datetime] = None
    ) -> date:
        return self.get_window(student_id, course_id, now).next_allowed_date
