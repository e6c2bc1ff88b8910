# sessionbook/services/booking_lifecycle.py
"""
Booking lifecycle for instructor sessions.

Handles the transitions of a booking and the slot it occupies:

    NONE -> TENTATIVE -> CONFIRMED -> INACTIVE
    TENTATIVE/CONFIRMED -> CANCELLED

Each transition runs inside a single transaction. Notifications go out
after the commit and never undo a transition.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
import logging
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..core.constants import MAX_ANNOTATION_LENGTH
from ..core.enums import BookingState, ParticipantRole, SlotOrigin, SlotStatus
from ..core.exceptions import (
    BookingConflictException,
    ConflictException,
    NotFoundException,
    PersistenceException,
    ValidationException,
)
from ..core.time_utils import ensure_utc, iso_week_of, utc_now
from ..events.booking_events import (
    BookingCancelled,
    BookingConfirmed,
    BookingCreated,
    BookingDeactivated,
)
from ..models.booking import Booking
from ..models.slot import Slot
from ..monitoring.prometheus_metrics import prometheus_metrics
from ..repositories.booking_repository import BookingCriteria, BookingRepository
from ..repositories.factory import RepositoryFactory
from ..repositories.participant_repository import ParticipantRepository
from ..repositories.slot_repository import SlotRepository
from .base import BaseService
from .notification_service import BookingNotifier, LoggingNotifier
from .participants import Instructor

logger = logging.getLogger(__name__)

GENERIC_CONFLICT_MESSAGE = "An active booking already exists for this exercise"


@dataclass(frozen=True)
class BookingResult:
    """Outcome of a lifecycle operation."""

    success: bool
    state: BookingState
    booking: Optional[Dict[str, Any]] = None
    slot: Optional[Dict[str, Any]] = None
    notified: bool = False


def build_annotation(instructor_name: str, exercise_id: str, status: SlotStatus) -> str:
    """Booking info text shown on the slot."""
    text = f"{status.value.capitalize()} session: exercise {exercise_id} with {instructor_name}"
    return text[:MAX_ANNOTATION_LENGTH]


class BookingLifecycleService(BaseService):
    """
    Service layer for booking transitions.

    Owns the transaction for every mutation so that the booking row and its
    slot change together or not at all.
    """

    def __init__(
        self,
        db: Session,
        notifier: Optional[BookingNotifier] = None,
        slot_repository: Optional[SlotRepository] = None,
        booking_repository: Optional[BookingRepository] = None,
        participant_repository: Optional[ParticipantRepository] = None,
    ):
        super().__init__(db)
        self.notifier: BookingNotifier = notifier or LoggingNotifier()
        self.slot_repository = slot_repository or RepositoryFactory.create_slot_repository(db)
        self.booking_repository = (
            booking_repository or RepositoryFactory.create_booking_repository(db)
        )
        self.participant_repository = (
            participant_repository or RepositoryFactory.create_participant_repository(db)
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    @BaseService.measure_operation("create_booking")
    def create_booking(
        self,
        course_id: str,
        student_id: str,
        exercise_id: str,
        instructor_id: str,
        slot_interval: Optional[Tuple[datetime, datetime]] = None,
        *,
        slot_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        """
        Book a session for a student.

        Either ``slot_interval`` creates a new instructor slot, or ``slot_id``
        claims one of the student's open slots.

        Raises:
            ValidationException: Missing identifiers or a bad interval
            NotFoundException: ``slot_id`` does not exist
            ConflictException: An active booking exists for the triple, or the
                slot is no longer open
            PersistenceException: The transaction could not be committed
        """
        self._require_ids(
            course_id=course_id,
            student_id=student_id,
            exercise_id=exercise_id,
            instructor_id=instructor_id,
        )
        if slot_interval is None and not slot_id:
            raise ValidationException("A slot interval or an existing slot id is required")
        if slot_interval is not None:
            start, end = (ensure_utc(value) for value in slot_interval)
            if start >= end:
                raise ValidationException(
                    "Slot start time must be before its end time",
                    code="INVALID_SLOT_INTERVAL",
                    details={"start_time": start.isoformat(), "end_time": end.isoformat()},
                )

        now = ensure_utc(now) if now else utc_now()
        self.log_operation(
            "create_booking",
            course_id=course_id,
            student_id=student_id,
            exercise_id=exercise_id,
            instructor_id=instructor_id,
        )

        if self.booking_repository.get_active_booking(course_id, student_id, exercise_id):
            raise BookingConflictException(
                details={
                    "course_id": course_id,
                    "student_id": student_id,
                    "exercise_id": exercise_id,
                }
            )

        instructor_name = self._instructor_name(course_id, instructor_id)
        annotation = build_annotation(instructor_name, exercise_id, SlotStatus.TENTATIVE)

        try:
            with self.transaction():
                if slot_id:
                    slot = self._claim_open_slot(slot_id, course_id, student_id, annotation)
                else:
                    start, end = (ensure_utc(value) for value in slot_interval)
                    year, week = iso_week_of(start)
                    slot = Slot(
                        owner_id=student_id,
                        course_id=course_id,
                        start_time=start,
                        end_time=end,
                        year=year,
                        week=week,
                        status=SlotStatus.TENTATIVE.value,
                        origin=SlotOrigin.INSTRUCTOR.value,
                        annotation=annotation,
                    )
                    self.slot_repository.save_slot(slot)

                booking = Booking(
                    course_id=course_id,
                    student_id=student_id,
                    exercise_id=exercise_id,
                    instructor_id=instructor_id,
                    slot_id=slot.id,
                    confirmed=False,
                    active=True,
                    last_modified=now,
                )
                booking.slot = slot
                self.booking_repository.save_booking(booking)
                booking_data = booking.to_dict()
                slot_data = slot.to_dict()
                slot_start, slot_end = slot.start_time, slot.end_time
        except IntegrityError as exc:
            # Lost a race against a concurrent booking for the same triple.
            raise BookingConflictException(
                message=GENERIC_CONFLICT_MESSAGE,
                details={
                    "course_id": course_id,
                    "student_id": student_id,
                    "exercise_id": exercise_id,
                },
            ) from exc

        prometheus_metrics.record_booking_transition("created")
        event = BookingCreated(
            booking_id=booking_data["id"],
            course_id=course_id,
            student_id=student_id,
            instructor_id=instructor_id,
            exercise_id=exercise_id,
            slot_start=slot_start,
            slot_end=slot_end,
            created_at=now,
        )
        notified = self._notify("booking.created", self.notifier.notify_student_booked, event)
        if notified:
            notified = self._notify(
                "booking.instructor_copy", self.notifier.notify_instructor_confirmed, event
            )

        return BookingResult(
            success=True,
            state=BookingState.TENTATIVE,
            booking=booking_data,
            slot=slot_data,
            notified=notified,
        )

    @BaseService.measure_operation("confirm_booking")
    def confirm_booking(
        self,
        course_id: str,
        student_id: str,
        exercise_id: str,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        """
        Student acknowledgment of the active booking for the triple.

        Raises:
            NotFoundException: No active booking for the triple
        """
        self._require_ids(course_id=course_id, student_id=student_id, exercise_id=exercise_id)
        now = ensure_utc(now) if now else utc_now()

        booking = self.booking_repository.get_active_booking(course_id, student_id, exercise_id)
        if booking is None:
            raise NotFoundException(
                "No active booking found for this exercise",
                code="BOOKING_NOT_FOUND",
                details={
                    "course_id": course_id,
                    "student_id": student_id,
                    "exercise_id": exercise_id,
                },
            )

        self.log_operation("confirm_booking", booking_id=booking.id)
        instructor_name = self._instructor_name(course_id, booking.instructor_id)

        with self._transition():
            self.booking_repository.confirm_booking(course_id, student_id, exercise_id)
            slot = booking.slot
            slot.status = SlotStatus.CONFIRMED.value
            slot.annotation = build_annotation(
                instructor_name, exercise_id, SlotStatus.CONFIRMED
            )
            self.slot_repository.flush()
            booking_data = booking.to_dict()
            slot_data = slot.to_dict()

        prometheus_metrics.record_booking_transition("confirmed")
        event = BookingConfirmed(
            booking_id=booking_data["id"],
            course_id=course_id,
            student_id=student_id,
            instructor_id=booking_data["instructor_id"],
            exercise_id=exercise_id,
            confirmed_at=now,
        )
        notified = self._notify(
            "booking.confirmed", self.notifier.notify_instructor_of_student_confirmation, event
        )
        return BookingResult(
            success=True,
            state=BookingState.CONFIRMED,
            booking=booking_data,
            slot=slot_data,
            notified=notified,
        )

    @BaseService.measure_operation("cancel_booking")
    def cancel_booking(
        self,
        booking_id: str,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        """
        Cancel a booking by id.

        The booking row is removed. A slot the student posted goes back to
        ``open``; a slot the instructor created for the session is deleted.

        Raises:
            NotFoundException: No booking with this id
            ConflictException: The booking was already retired after grading
        """
        self._require_ids(booking_id=booking_id)
        now = ensure_utc(now) if now else utc_now()

        booking = self.booking_repository.get_booking(BookingCriteria(booking_id=booking_id))
        if booking is None:
            raise NotFoundException(
                f"Booking {booking_id} not found",
                code="BOOKING_NOT_FOUND",
                details={"booking_id": booking_id},
            )
        if not booking.active:
            raise ConflictException(
                f"Booking {booking_id} is no longer active and cannot be cancelled",
                code="BOOKING_INACTIVE",
                details={"booking_id": booking_id},
            )

        self.log_operation("cancel_booking", booking_id=booking_id, reason=reason)
        booking_data = booking.to_dict()

        with self._transition():
            slot = booking.slot
            self.booking_repository.delete_booking(BookingCriteria(booking_id=booking_id))
            if slot.is_instructor_created:
                slot_data = None
                self.slot_repository.delete_entity(slot)
            else:
                slot.status = SlotStatus.OPEN.value
                slot.annotation = None
                self.slot_repository.flush()
                slot_data = slot.to_dict()

        prometheus_metrics.record_booking_transition("cancelled")
        event = BookingCancelled(
            booking_id=booking_id,
            course_id=booking_data["course_id"],
            student_id=booking_data["student_id"],
            instructor_id=booking_data["instructor_id"],
            exercise_id=booking_data["exercise_id"],
            cancelled_at=now,
            reason=reason,
        )
        notified = self._notify("booking.cancelled", self.notifier.notify_session_cancelled, event)
        return BookingResult(
            success=True,
            state=BookingState.CANCELLED,
            booking=booking_data,
            slot=slot_data,
            notified=notified,
        )

    @BaseService.measure_operation("deactivate_on_graded")
    def deactivate_on_graded(
        self,
        course_id: str,
        student_id: str,
        exercise_id: str,
        now: Optional[datetime] = None,
    ) -> BookingResult:
        """Retire the active booking for a graded exercise. No-op when none exists."""
        self._require_ids(course_id=course_id, student_id=student_id, exercise_id=exercise_id)

        booking = self.booking_repository.get_active_booking(course_id, student_id, exercise_id)
        if booking is None:
            self.logger.debug(
                "No active booking to deactivate for %s/%s/%s", course_id, student_id, exercise_id
            )
            return BookingResult(success=True, state=BookingState.NONE)

        with self._transition():
            self.booking_repository.set_booking_inactive(booking)
            booking_data = booking.to_dict()

        prometheus_metrics.record_booking_transition("deactivated")
        self.logger.info(
            "Booking deactivated",
            extra={
                "event": BookingDeactivated(
                    booking_id=booking_data["id"],
                    course_id=course_id,
                    student_id=student_id,
                    exercise_id=exercise_id,
                    deactivated_at=ensure_utc(now) if now else utc_now(),
                ).to_dict()
            },
        )
        return BookingResult(success=True, state=BookingState.INACTIVE, booking=booking_data)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @BaseService.measure_operation("get_bookings_for_user")
    def get_bookings_for_user(
        self, user_id: str, oldest_first: bool = False, as_student: bool = False
    ) -> List[Booking]:
        return self.booking_repository.get_bookings_for_user(
            user_id, oldest_first, as_student=as_student
        )

    def get_booking_state(self, course_id: str, student_id: str, exercise_id: str) -> BookingState:
        booking = self.booking_repository.get_active_booking(course_id, student_id, exercise_id)
        return booking.state if booking else BookingState.NONE

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _claim_open_slot(
        self, slot_id: str, course_id: str, student_id: str, annotation: str
    ) -> Slot:
        slot = self.slot_repository.get_slot(slot_id)
        if slot is None:
            raise NotFoundException(
                f"Slot {slot_id} not found", code="SLOT_NOT_FOUND", details={"slot_id": slot_id}
            )
        if slot.course_id != course_id or slot.owner_id != student_id:
            raise ValidationException(
                "Slot does not belong to this student and course",
                code="SLOT_OWNER_MISMATCH",
                details={"slot_id": slot_id},
            )
        if not slot.is_open:
            raise ConflictException(
                "Slot is no longer available",
                code="SLOT_NOT_OPEN",
                details={"slot_id": slot_id, "status": slot.status},
            )
        slot.status = SlotStatus.TENTATIVE.value
        slot.annotation = annotation
        self.slot_repository.flush()
        return slot

    @contextmanager
    def _transition(self) -> Iterator[Session]:
        """Transaction for an existing booking; constraint failures are persistence errors."""
        try:
            with self.transaction() as db:
                yield db
        except IntegrityError as exc:
            self.logger.error(f"Booking transition violated a constraint: {str(exc)}")
            raise PersistenceException(
                "The booking change could not be saved", code="BOOKING_NOT_SAVED"
            ) from exc

    def _instructor_name(self, course_id: str, instructor_id: str) -> str:
        enrollment = self.participant_repository.get_enrollment(
            course_id, instructor_id, ParticipantRole.INSTRUCTOR
        )
        if enrollment is None:
            return instructor_id
        return Instructor.from_enrollment(enrollment).get_full_name(include_alternate=False)

    def _notify(self, event_type: str, send: Callable[[Any], bool], event: Any) -> bool:
        try:
            return send(event) is not False
        except Exception as e:
            self.logger.error(f"Failed to send {event_type} notification: {str(e)}")
            prometheus_metrics.record_notification_failure(event_type)
            return False

    @staticmethod
    def _require_ids(**ids: Optional[str]) -> None:
        missing = [name for name, value in ids.items() if not value]
        if missing:
            raise ValidationException(
                f"Missing required identifiers: {', '.join(missing)}",
                code="MISSING_IDENTIFIER",
                details={"missing": missing},
            )
