# sessionbook/core/enums.py
"""
Core enums for the session booking service.

These enums give type safety to the values persisted on slots,
bookings and enrolments.
"""

from enum import Enum


class SlotStatus(str, Enum):
    """Status of an availability slot."""

    OPEN = "open"  # Posted by a student, no booking yet
    TENTATIVE = "tentative"  # Booked by an instructor, awaiting student acknowledgment
    BOOKED = "booked"
    CONFIRMED = "confirmed"  # Student acknowledged the session


class SlotOrigin(str, Enum):
    """Who created the slot row."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"


class BookingState(str, Enum):
    """Lifecycle state of a Booking and its Slot taken together."""

    NONE = "none"
    TENTATIVE = "tentative"
    CONFIRMED = "confirmed"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"


class ParticipantRole(str, Enum):
    """Course participant roles."""

    STUDENT = "student"
    INSTRUCTOR = "instructor"


class LanePolicy(str, Enum):
    """Placement policy used when packing a day's slots into lanes."""

    FIRST_FIT = "first_fit"
    LAST_FREE_LANE = "last_free_lane"


class EligibilityBasis(str, Enum):
    """Which history value a posting restriction was computed from."""

    NOW = "now"
    BOOKING = "booking"
    GRADED = "graded"
    ENROLLED = "enrolled"
