# sessionbook/services/notification_service.py
"""
Booking notifications.

The lifecycle talks to a ``BookingNotifier``. Delivery (email, chat) is out
of scope here; ``LoggingNotifier`` records what would be sent.
"""

import logging
from typing import Protocol

from ..events.booking_events import BookingCancelled, BookingConfirmed, BookingCreated

logger = logging.getLogger(__name__)


class BookingNotifier(Protocol):
    def notify_student_booked(self, event: BookingCreated) -> bool:
        ...

    def notify_instructor_confirmed(self, event: BookingCreated) -> bool:
        ...

    def notify_session_cancelled(self, event: BookingCancelled) -> bool:
        ...

    def notify_instructor_of_student_confirmation(self, event: BookingConfirmed) -> bool:
        ...


class LoggingNotifier:
    """Notifier that writes each message to the application log."""

    def __init__(self, name: str = "sessionbook.notifications"):
        self.logger = logging.getLogger(name)

    def notify_student_booked(self, event: BookingCreated) -> bool:
        self.logger.info(
            "Notify student %s: session booked for exercise %s at %s",
            event.student_id,
            event.exercise_id,
            event.slot_start.isoformat(),
        )
        return True

    def notify_instructor_confirmed(self, event: BookingCreated) -> bool:
        self.logger.info(
            "Notify instructor %s: booking %s sent to student %s",
            event.instructor_id,
            event.booking_id,
            event.student_id,
        )
        return True

    def notify_session_cancelled(self, event: BookingCancelled) -> bool:
        self.logger.info(
            "Notify student %s: booking %s cancelled (%s)",
            event.student_id,
            event.booking_id,
            event.reason or "no reason given",
        )
        return True

    def notify_instructor_of_student_confirmation(self, event: BookingConfirmed) -> bool:
        self.logger.info(
            "Notify instructor %s: student %s confirmed booking %s",
            event.instructor_id,
            event.student_id,
            event.booking_id,
        )
        return True
