"""Booking lifecycle events handed to notification collaborators."""

from .booking_events import (
    BookingCancelled,
    BookingConfirmed,
    BookingCreated,
    BookingDeactivated,
)

__all__ = [
    "BookingCreated",
    "BookingConfirmed",
    "BookingCancelled",
    "BookingDeactivated",
]
