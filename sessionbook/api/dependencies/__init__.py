# sessionbook/api/dependencies/__init__.py
"""
Central export point for all dependencies.

This module re-exports all dependencies from submodules
for convenient access throughout the application.
"""

from .database import get_db
from .services import (
    get_availability_service,
    get_booking_lifecycle_service,
    get_eligibility_service,
    get_grading_service,
    get_notifier,
    get_week_view_service,
)

__all__ = [
    # Database
    "get_db",
    # Services
    "get_availability_service",
    "get_booking_lifecycle_service",
    "get_eligibility_service",
    "get_grading_service",
    "get_notifier",
    "get_week_view_service",
]
