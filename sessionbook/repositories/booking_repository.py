# sessionbook/repositories/booking_repository.py
"""
Booking Repository

Implements all data access operations for booking management. Lookups take
a ``BookingCriteria`` so the lifecycle can address a booking either by id
or by its (course, student, exercise) triple.
"""

from dataclasses import dataclass, fields
from datetime import datetime
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.exceptions import RepositoryException, ValidationException
from ..core.time_utils import utc_now
from ..models.booking import Booking
from ..models.slot import Slot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookingCriteria:
    """Filter for booking lookups. Unset fields are not filtered on."""

    booking_id: Optional[str] = None
    course_id: Optional[str] = None
    student_id: Optional[str] = None
    exercise_id: Optional[str] = None
    instructor_id: Optional[str] = None
    active: Optional[bool] = None

    @classmethod
    def for_triple(
        cls, course_id: str, student_id: str, exercise_id: str, *, active: Optional[bool] = True
    ) -> "BookingCriteria":
        return cls(
            course_id=course_id, student_id=student_id, exercise_id=exercise_id, active=active
        )

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def as_filters(self) -> Dict[str, Any]:
        column_map = {"booking_id": "id"}
        return {
            column_map.get(f.name, f.name): getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }


class BookingRepository(BaseRepository[Booking]):
    """Repository for booking data access."""

    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def _filtered(self, criteria: BookingCriteria) -> Query:
        if criteria.is_empty():
            raise ValidationException("Booking lookup requires at least one criterion")
        return self._build_query().filter_by(**criteria.as_filters())

    def get_bookings_for_user(
        self, user_id: str, oldest_first: bool = False, *, as_student: bool = False
    ) -> List[Booking]:
        """
        Active bookings for an instructor (or a student with ``as_student``).

        Args:
            user_id: Instructor or student id
            oldest_first: Order by session start ascending instead of most
                recently modified first

        Returns:
            Active bookings with their slot loaded
        """
        owner_column = Booking.student_id if as_student else Booking.instructor_id
        query = (
            self._build_query()
            .join(Slot, Booking.slot_id == Slot.id)
            .filter(owner_column == user_id, Booking.active.is_(True))
        )
        if oldest_first:
            query = query.order_by(Slot.start_time.asc())
        else:
            query = query.order_by(Booking.last_modified.desc(), Booking.id.desc())
        return self._execute_query(query)

    def get_booking(self, criteria: BookingCriteria) -> Optional[Booking]:
        """Return the first booking matching the criteria, newest first."""
        query = self._filtered(criteria).order_by(Booking.last_modified.desc())
        return self._execute_first(query)

    def get_active_booking(
        self, course_id: str, student_id: str, exercise_id: str
    ) -> Optional[Booking]:
        return self.get_booking(BookingCriteria.for_triple(course_id, student_id, exercise_id))

    def save_booking(self, booking: Booking) -> str:
        self.add(booking)
        return booking.id

    def delete_booking(self, criteria: BookingCriteria) -> int:
        """Delete matching bookings and return how many were removed."""
        deleted = self._execute_delete(self._filtered(criteria))
        self.logger.debug("Deleted %s booking(s) matching %s", deleted, criteria)
        return deleted

    def confirm_booking(self, course_id: str, student_id: str, exercise_id: str) -> int:
        """Mark the active booking for a triple confirmed; returns rows affected."""
        query = self._filtered(BookingCriteria.for_triple(course_id, student_id, exercise_id))
        return self._execute_write(
            query, {Booking.confirmed: True, Booking.last_modified: utc_now()}
        )

    def set_booking_inactive(self, booking: Booking) -> int:
        """Deactivate a booking; returns 0 when it was already inactive."""
        if not booking.active:
            return 0
        booking.active = False
        self.flush()
        return 1

    def get_last_booked_session(
        self, user_id: str, is_instructor: bool = False
    ) -> Optional[datetime]:
        """
        Most recent session start among the user's bookings, active or not.

        Args:
            user_id: Student or instructor id
            is_instructor: Look the user up as the booking instructor
        """
        owner_column = Booking.instructor_id if is_instructor else Booking.student_id
        query = (
            self.db.query(Slot)
            .join(Booking, Booking.slot_id == Slot.id)
            .filter(owner_column == user_id)
            .order_by(Slot.start_time.desc())
        )
        slot = self._first_slot(query)
        return slot.start_time if slot else None

    def get_booked_exercise_date(self, student_id: str, exercise_id: str) -> Optional[datetime]:
        """Session start of the student's active booking for an exercise."""
        query = (
            self.db.query(Slot)
            .join(Booking, Booking.slot_id == Slot.id)
            .filter(
                Booking.student_id == student_id,
                Booking.exercise_id == exercise_id,
                Booking.active.is_(True),
            )
            .order_by(Slot.start_time.desc())
        )
        slot = self._first_slot(query)
        return slot.start_time if slot else None

    def _first_slot(self, query: Query) -> Optional[Slot]:
        try:
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Slot lookup failed: {str(e)}")
            raise RepositoryException(f"Slot lookup failed: {str(e)}")
