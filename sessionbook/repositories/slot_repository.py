# sessionbook/repositories/slot_repository.py
"""
Slot Repository

Data access for availability slots: the week queries the grid is built
from, the student's week replace/clear operations, and the history lookups
the eligibility calculation reads.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.enums import SlotStatus
from ..models.booking import Booking
from ..models.slot import Slot
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)

COMMITTED_STATUSES = (
    SlotStatus.TENTATIVE.value,
    SlotStatus.BOOKED.value,
    SlotStatus.CONFIRMED.value,
)


class SlotRepository(BaseRepository[Slot]):
    """Repository for availability slot storage."""

    def __init__(self, db: Session):
        super().__init__(db, Slot)
        self.logger = logging.getLogger(__name__)

    def get_slot(self, slot_id: str) -> Optional[Slot]:
        return self.get_by_id(slot_id)

    def get_slots_for_week(
        self,
        owner_id: Optional[str],
        year: int,
        week: int,
        course_id: Optional[str] = None,
    ) -> List[Slot]:
        """
        Slots for one ISO week, for a single owner or for everybody.

        Args:
            owner_id: Student whose slots to return, or None for all students
            year: ISO year
            week: ISO week number
            course_id: Optional course scope

        Returns:
            Slots ordered by start time (ties by creation order)
        """
        query = self._build_query().filter(Slot.year == year, Slot.week == week)
        if owner_id:
            query = query.filter(Slot.owner_id == owner_id)
        if course_id:
            query = query.filter(Slot.course_id == course_id)
        query = query.order_by(Slot.start_time, Slot.created_at, Slot.id)
        return self._execute_query(query)

    def save_slot(self, slot: Slot) -> str:
        """Persist a new or modified slot and return its id."""
        self.add(slot)
        return slot.id

    def delete_slots(self, course_id: str, year: int, week: int, owner_id: str) -> int:
        """
        Delete a student's unbooked slots for one week.

        Slots referenced by a booking are never removed here.
        """
        query = self._build_query().filter(
            Slot.course_id == course_id,
            Slot.year == year,
            Slot.week == week,
            Slot.owner_id == owner_id,
            Slot.status == SlotStatus.OPEN.value,
        )
        deleted = self._execute_delete(query)
        self.logger.debug(
            "Deleted %s open slots for owner %s course %s week %s/%s",
            deleted,
            owner_id,
            course_id,
            year,
            week,
        )
        return deleted

    def get_first_posted_slot(self, owner_id: str) -> Optional[Slot]:
        """Earliest unbooked availability slot the student has posted."""
        query = (
            self._build_query()
            .filter(Slot.owner_id == owner_id, Slot.status == SlotStatus.OPEN.value)
            .order_by(Slot.start_time.asc())
        )
        return self._execute_first(query)

    def get_last_posted_slot(self, course_id: str, owner_id: str) -> Optional[Slot]:
        """Latest unbooked availability slot the student has posted in a course."""
        query = (
            self._build_query()
            .filter(
                Slot.course_id == course_id,
                Slot.owner_id == owner_id,
                Slot.status == SlotStatus.OPEN.value,
            )
            .order_by(Slot.start_time.desc())
        )
        return self._execute_first(query)

    def get_last_booking(self, course_id: str, owner_id: str) -> Optional[datetime]:
        """Start time of the student's most recent session still held by an active booking."""
        query = (
            self._build_query()
            .join(Booking, Booking.slot_id == Slot.id)
            .filter(
                Booking.course_id == course_id,
                Booking.student_id == owner_id,
                Booking.active.is_(True),
                Slot.status.in_(COMMITTED_STATUSES),
            )
            .order_by(Slot.start_time.desc())
        )
        slot = self._execute_first(query)
        return slot.start_time if slot else None

    def get_slot_count(self, course_id: str, owner_id: str) -> int:
        """Number of unbooked availability slots the student currently has posted."""
        return self.count(course_id=course_id, owner_id=owner_id, status=SlotStatus.OPEN.value)
