# sessionbook/repositories/factory.py
"""
Repository Factory for the session booking service.

Provides centralized creation of repository instances,
ensuring consistent initialization and dependency injection.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .booking_repository import BookingRepository
    from .course_repository import CourseRepository
    from .participant_repository import ParticipantRepository
    from .slot_repository import SlotRepository


class RepositoryFactory:
    """
    Factory class for creating repository instances.

    Services ask the factory rather than constructing repositories so tests
    can swap implementations in one place.
    """

    @staticmethod
    def create_slot_repository(db: Session) -> "SlotRepository":
        """Create repository for availability slots."""
        from .slot_repository import SlotRepository

        return SlotRepository(db)

    @staticmethod
    def create_booking_repository(db: Session) -> "BookingRepository":
        """Create repository for bookings."""
        from .booking_repository import BookingRepository

        return BookingRepository(db)

    @staticmethod
    def create_participant_repository(db: Session) -> "ParticipantRepository":
        """Create repository for enrolments and grades."""
        from .participant_repository import ParticipantRepository

        return ParticipantRepository(db)

    @staticmethod
    def create_course_repository(db: Session) -> "CourseRepository":
        from .course_repository import CourseRepository

        return CourseRepository(db)
