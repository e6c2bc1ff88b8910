# sessionbook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from functools import lru_cache
import logging

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.booking_lifecycle import BookingLifecycleService
from ...services.eligibility import EligibilityService
from ...services.grading_service import GradingService
from ...services.notification_service import BookingNotifier, LoggingNotifier
from ...services.week_view_service import WeekViewService
from .database import get_db

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_notifier() -> BookingNotifier:
    """Get the process-wide booking notifier."""
    return LoggingNotifier()


def get_booking_lifecycle_service(
    db: Session = Depends(get_db),
    notifier: BookingNotifier = Depends(get_notifier),
) -> BookingLifecycleService:
    """
    Get booking lifecycle service instance with all dependencies.

    Args:
        db: Database session
        notifier: Notification collaborator for booking messages

    Returns:
        BookingLifecycleService instance
    """
    return BookingLifecycleService(db, notifier)


def get_eligibility_service(db: Session = Depends(get_db)) -> EligibilityService:
    return EligibilityService(db)


def get_availability_service(
    db: Session = Depends(get_db),
    eligibility_service: EligibilityService = Depends(get_eligibility_service),
) -> AvailabilityService:
    return AvailabilityService(db, eligibility_service)


def get_week_view_service(db: Session = Depends(get_db)) -> WeekViewService:
    return WeekViewService(db)


def get_grading_service(
    db: Session = Depends(get_db),
    lifecycle: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> GradingService:
    return GradingService(db, lifecycle)
