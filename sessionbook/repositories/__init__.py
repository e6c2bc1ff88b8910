# sessionbook/repositories/__init__.py
"""
Repository layer for the session booking service.

Key Components:
- BaseRepository: generic CRUD with SQLAlchemy errors wrapped in RepositoryException
- RepositoryFactory: creates repository instances for services
- SlotRepository: availability slot storage and history lookups
- BookingRepository: booking storage addressed by id or (course, student, exercise)
- ParticipantRepository: enrolments and grade history
- CourseRepository: raw course custom fields

Usage:
    from sessionbook.repositories import RepositoryFactory

    slots = RepositoryFactory.create_slot_repository(db)
    week = slots.get_slots_for_week(None, 2024, 10, course_id=course_id)
"""

from .base_repository import BaseRepository
from .booking_repository import BookingCriteria, BookingRepository
from .course_repository import CourseRepository
from .factory import RepositoryFactory
from .participant_repository import ParticipantRepository
from .slot_repository import SlotRepository

__all__ = [
    "BaseRepository",
    "BookingCriteria",
    "BookingRepository",
    "CourseRepository",
    "ParticipantRepository",
    "RepositoryFactory",
    "SlotRepository",
]
