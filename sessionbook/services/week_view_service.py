# sessionbook/services/week_view_service.py
"""
Weekly availability grid.

Reads a week of slots for a course (or a single student), orders them by
student enrolment, packs them into lanes and adds what the grid needs
around the lanes: day dates, hour rows, colors and week navigation.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
import logging
from typing import Any, Dict, List, Optional, Tuple

import pytz
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.enums import LanePolicy
from ..core.exceptions import ValidationException
from ..core.time_utils import (
    adjacent_week,
    ensure_utc,
    utc_now,
    utc_offset_hours,
    week_days,
    week_start_date,
)
from ..models.slot import Slot
from ..repositories.course_repository import CourseRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.participant_repository import ParticipantRepository
from ..repositories.slot_repository import SlotRepository
from .base import BaseService
from .course_policy import CoursePolicy
from .lane_packer import pack
from .palette import color_for_index
from .participants import Student

logger = logging.getLogger(__name__)


@dataclass
class WeekDayView:
    weekday: int
    calendar_date: date
    lanes: List[List[Dict[str, Any]]] = field(default_factory=list)


@dataclass
class WeekView:
    course_id: str
    year: int
    week: int
    owner_id: Optional[str]
    days: List[WeekDayView]
    max_lanes_used: int
    display_lanes: int
    grid_lanes: int
    hours: List[int]
    utc_offset_hours: float
    previous_week: Tuple[int, int]
    next_week: Tuple[int, int]
    next_week_available: bool
    lane_policy: LanePolicy


class WeekViewService(BaseService):
    """Builds the packed weekly grid for a course."""

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

    def _students(self, course_id: str, max_lanes: int) -> Dict[str, Tuple[int, Student]]:
        enrollments = self.participant_repository.get_active_students(course_id)
        return {
            enrollment.user_id: (
                index,
                Student.from_enrollment(
                    enrollment, slot_color=color_for_index(index, max_lanes=max_lanes)
                ),
            )
            for index, enrollment in enumerate(enrollments)
        }

    @staticmethod
    def _cell(slot: Slot, student: Optional[Student]) -> Dict[str, Any]:
        cell = slot.to_dict()
        if student is not None:
            cell["display_color"] = slot.display_color or student.slot_color
            cell["owner_name"] = student.get_full_name()
            cell["owner_callsign"] = student.get_callsign()
        else:
            cell["display_color"] = slot.display_color or settings.slot_color
            cell["owner_name"] = None
            cell["owner_callsign"] = None
        return cell

    @BaseService.measure_operation("get_week_view")
    def get_week_view(
        self,
        course_id: str,
        year: int,
        week: int,
        owner_id: Optional[str] = None,
        tz_name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> WeekView:
        """
        Packed grid for one ISO week.

        Args:
            course_id: Course whose slots are shown
            year: ISO year
            week: ISO week
            owner_id: Limit to one student's slots
            tz_name: IANA timezone used to place slots on days (UTC if None)
            now: Reference time for lookahead navigation

        Raises:
            ValidationException: Unknown week, unknown timezone or a malformed slot
        """
        try:
            week_start = week_start_date(year, week)
        except ValueError as exc:
            raise ValidationException(
                f"Week {week} of {year} does not exist", code="INVALID_WEEK"
            ) from exc
        try:
            tz = pytz.timezone(tz_name) if tz_name else None
        except pytz.UnknownTimeZoneError as exc:
            raise ValidationException(
                f"Unknown timezone {tz_name}", code="INVALID_TIMEZONE"
            ) from exc

        policy = CoursePolicy.from_fields(self.course_repository.get_fields(course_id))
        students = self._students(course_id, policy.max_lanes)

        slots = self.slot_repository.get_slots_for_week(owner_id, year, week, course_id=course_id)
        # Group by student enrolment order; each student's slots stay in time order.
        unknown = (len(students), None)
        slots = sorted(
            slots,
            key=lambda slot: (students.get(slot.owner_id, unknown)[0], slot.start_time),
        )

        layout = pack(
            slots,
            settings.week_start_weekday,
            ceiling=policy.max_lanes,
            policy=LanePolicy(settings.lane_policy),
            tz=tz,
        )

        dates = week_days(year, week, settings.week_start_weekday)
        days = [
            WeekDayView(
                weekday=day.weekday,
                calendar_date=day_date,
                lanes=[
                    [
                        self._cell(slot, students.get(slot.owner_id, (0, None))[1])
                        for slot in lane
                    ]
                    for lane in day.lanes
                ],
            )
            for day, day_date in zip(layout.days, dates)
        ]

        now = ensure_utc(now) if now else utc_now()
        next_week = adjacent_week(year, week, 1)
        lookahead_limit = now.date() + timedelta(weeks=policy.weeks_lookahead)

        return WeekView(
            course_id=course_id,
            year=year,
            week=week,
            owner_id=owner_id,
            days=days,
            max_lanes_used=layout.max_lanes_used,
            display_lanes=layout.display_lanes,
            grid_lanes=max(layout.display_lanes, settings.min_lanes),
            hours=list(range(policy.first_session_hour, policy.last_session_hour + 1)),
            utc_offset_hours=utc_offset_hours(tz_name, week_start) if tz_name else 0.0,
            previous_week=adjacent_week(year, week, -1),
            next_week=next_week,
            next_week_available=week_start_date(*next_week) <= lookahead_limit,
            lane_policy=layout.policy,
        )
