from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from sessionbook.core.enums import BookingState, ParticipantRole, SlotOrigin, SlotStatus
from sessionbook.core.exceptions import (
    BookingConflictException,
    ConflictException,
    NotFoundException,
    PersistenceException,
    ValidationException,
)
from sessionbook.models.booking import Booking
from sessionbook.models.slot import Slot
from sessionbook.services.booking_lifecycle import BookingLifecycleService, build_annotation

COURSE_ID = "01HCOURSE00000000000000000"
STUDENT_ID = "01HSTUDENT0000000000000001"
INSTRUCTOR_ID = "01HINSTRUCTR00000000000001"
EXERCISE_ID = "01HEXERCISE000000000000001"

NOW = datetime(2024, 3, 13, 12, 0, tzinfo=timezone.utc)
SESSION = (
    datetime(2024, 3, 14, 10, 0, tzinfo=timezone.utc),
    datetime(2024, 3, 14, 11, 30, tzinfo=timezone.utc),
)


@pytest.fixture
def notifier() -> Mock:
    mock = Mock()
    mock.notify_student_booked.return_value = True
    mock.notify_instructor_confirmed.return_value = True
    mock.notify_session_cancelled.return_value = True
    mock.notify_instructor_of_student_confirmation.return_value = True
    return mock


@pytest.fixture
def service(unit_db, notifier) -> BookingLifecycleService:
    return BookingLifecycleService(unit_db, notifier=notifier)


def _book(service: BookingLifecycleService, interval=SESSION):
    return service.create_booking(
        COURSE_ID, STUDENT_ID, EXERCISE_ID, INSTRUCTOR_ID, interval, now=NOW
    )


class TestCreateBooking:
    def test_creates_tentative_booking_with_instructor_slot(
        self, service, unit_db, notifier
    ) -> None:
        result = _book(service)

        assert result.success
        assert result.state is BookingState.TENTATIVE
        assert result.booking["confirmed"] is False
        assert result.slot["status"] == SlotStatus.TENTATIVE.value
        assert result.slot["origin"] == SlotOrigin.INSTRUCTOR.value
        assert result.slot["year"] == 2024 and result.slot["week"] == 11
        assert unit_db.query(Booking).count() == 1
        notifier.notify_student_booked.assert_called_once()
        notifier.notify_instructor_confirmed.assert_called_once()
        assert result.notified

    def test_annotation_uses_instructor_name(self, service, make_enrollment) -> None:
        make_enrollment(
            INSTRUCTOR_ID, role=ParticipantRole.INSTRUCTOR, first_name="Ada", last_name="Lovelace"
        )

        result = _book(service)

        assert result.slot["annotation"] == build_annotation(
            "Ada Lovelace", EXERCISE_ID, SlotStatus.TENTATIVE
        )

    def test_duplicate_active_booking_conflicts(self, service, unit_db) -> None:
        _book(service)

        with pytest.raises(BookingConflictException):
            _book(service)

        assert unit_db.query(Booking).count() == 1

    def test_lost_race_maps_integrity_error_to_conflict(
        self, service, unit_db, monkeypatch
    ) -> None:
        _book(service)
        # Simulate a writer that checked before the first booking committed.
        monkeypatch.setattr(service.booking_repository, "get_active_booking", lambda *args: None)

        with pytest.raises(BookingConflictException):
            _book(service)

        assert unit_db.query(Booking).count() == 1
        assert unit_db.query(Slot).count() == 1

    def test_commit_failure_rolls_back_both_rows(self, service, unit_db, monkeypatch) -> None:
        def failing_commit() -> None:
            raise OperationalError("COMMIT", {}, Exception("disk I/O error"))

        monkeypatch.setattr(unit_db, "commit", failing_commit)

        with pytest.raises(PersistenceException):
            _book(service)

        monkeypatch.undo()
        assert unit_db.query(Booking).count() == 0
        assert unit_db.query(Slot).count() == 0

    def test_claims_students_open_slot(self, service, make_slot) -> None:
        open_slot = make_slot(SESSION[0])

        result = service.create_booking(
            COURSE_ID, STUDENT_ID, EXERCISE_ID, INSTRUCTOR_ID, slot_id=open_slot.id, now=NOW
        )

        assert result.slot["id"] == open_slot.id
        assert result.slot["status"] == SlotStatus.TENTATIVE.value
        assert result.slot["origin"] == SlotOrigin.STUDENT.value

    def test_claiming_taken_slot_conflicts(self, service, make_slot) -> None:
        taken = make_slot(SESSION[0], status=SlotStatus.CONFIRMED)

        with pytest.raises(ConflictException):
            service.create_booking(
                COURSE_ID, STUDENT_ID, EXERCISE_ID, INSTRUCTOR_ID, slot_id=taken.id, now=NOW
            )

    def test_claiming_unknown_slot_not_found(self, service) -> None:
        with pytest.raises(NotFoundException):
            service.create_booking(
                COURSE_ID, STUDENT_ID, EXERCISE_ID, INSTRUCTOR_ID, slot_id="missing", now=NOW
            )

    def test_invalid_interval_rejected(self, service, unit_db) -> None:
        with pytest.raises(ValidationException):
            _book(service, interval=(SESSION[1], SESSION[0]))

        assert unit_db.query(Slot).count() == 0

    @pytest.mark.parametrize("missing", ["course_id", "student_id", "exercise_id", "instructor_id"])
    def test_missing_identifier_rejected(self, service, missing: str) -> None:
        ids = {
            "course_id": COURSE_ID,
            "student_id": STUDENT_ID,
            "exercise_id": EXERCISE_ID,
            "instructor_id": INSTRUCTOR_ID,
        }
        ids[missing] = ""

        with pytest.raises(ValidationException) as exc_info:
            service.create_booking(slot_interval=SESSION, now=NOW, **ids)

        assert exc_info.value.details["missing"] == [missing]


class TestNotifications:
    def test_student_notification_failure_does_not_fail_booking(
        self, service, unit_db, notifier, caplog
    ) -> None:
        notifier.notify_student_booked.side_effect = RuntimeError("mail down")

        result = _book(service)

        assert result.success
        assert not result.notified
        assert unit_db.query(Booking).count() == 1
        notifier.notify_instructor_confirmed.assert_not_called()
        assert "Failed to send booking.created notification" in caplog.text

    def test_instructor_copy_failure_reported(self, service, notifier) -> None:
        notifier.notify_instructor_confirmed.return_value = False

        result = _book(service)

        assert result.success
        assert not result.notified


class TestConfirmBooking:
    def test_confirms_booking_and_slot(self, service, notifier) -> None:
        _book(service)

        result = service.confirm_booking(COURSE_ID, STUDENT_ID, EXERCISE_ID, now=NOW)

        assert result.state is BookingState.CONFIRMED
        assert result.booking["confirmed"] is True
        assert result.slot["status"] == SlotStatus.CONFIRMED.value
        assert result.slot["annotation"].startswith("Confirmed session")
        notifier.notify_instructor_of_student_confirmation.assert_called_once()
        state = service.get_booking_state(COURSE_ID, STUDENT_ID, EXERCISE_ID)
        assert state is BookingState.CONFIRMED

    def test_confirm_without_booking_not_found(self, service) -> None:
        with pytest.raises(NotFoundException):
            service.confirm_booking(COURSE_ID, STUDENT_ID, EXERCISE_ID, now=NOW)

    def test_confirm_after_cancel_not_found(self, service) -> None:
        created = _book(service)
        service.cancel_booking(created.booking["id"], now=NOW)

        with pytest.raises(NotFoundException):
            service.confirm_booking(COURSE_ID, STUDENT_ID, EXERCISE_ID, now=NOW)


class TestCancelBooking:
    def test_instructor_slot_deleted(self, service, unit_db, notifier) -> None:
        created = _book(service)

        result = service.cancel_booking(created.booking["id"], reason="weather", now=NOW)

        assert result.state is BookingState.CANCELLED
        assert result.slot is None
        assert unit_db.query(Booking).count() == 0
        assert unit_db.query(Slot).count() == 0
        event = notifier.notify_session_cancelled.call_args.args[0]
        assert event.reason == "weather"

    def test_student_slot_reopened(self, service, unit_db, make_slot) -> None:
        posted = make_slot(SESSION[0])
        created = service.create_booking(
            COURSE_ID, STUDENT_ID, EXERCISE_ID, INSTRUCTOR_ID, slot_id=posted.id, now=NOW
        )

        result = service.cancel_booking(created.booking["id"], now=NOW)

        assert result.slot["status"] == SlotStatus.OPEN.value
        assert result.slot["annotation"] is None
        reopened = unit_db.get(Slot, posted.id)
        assert reopened.status == SlotStatus.OPEN.value

    def test_cancel_unknown_booking_not_found(self, service) -> None:
        with pytest.raises(NotFoundException):
            service.cancel_booking("01HNOPE0000000000000000000", now=NOW)

    def test_graded_booking_cannot_be_cancelled(self, service, unit_db, make_slot) -> None:
        posted = make_slot(SESSION[0])
        created = service.create_booking(
            COURSE_ID, STUDENT_ID, EXERCISE_ID, INSTRUCTOR_ID, slot_id=posted.id, now=NOW
        )
        service.deactivate_on_graded(COURSE_ID, STUDENT_ID, EXERCISE_ID, now=NOW)

        with pytest.raises(ConflictException) as exc_info:
            service.cancel_booking(created.booking["id"], now=NOW)

        assert exc_info.value.code == "BOOKING_INACTIVE"
        assert unit_db.query(Booking).count() == 1
        assert unit_db.get(Slot, posted.id).status == SlotStatus.TENTATIVE.value

    def test_rebooking_after_cancel_allowed(self, service, unit_db) -> None:
        created = _book(service)
        service.cancel_booking(created.booking["id"], now=NOW)

        _book(service)

        assert unit_db.query(Booking).count() == 1


class TestDeactivateOnGraded:
    def test_no_booking_is_noop(self, service) -> None:
        result = service.deactivate_on_graded(COURSE_ID, STUDENT_ID, EXERCISE_ID, now=NOW)

        assert result.success
        assert result.state is BookingState.NONE

    def test_deactivates_and_frees_triple(self, service, unit_db) -> None:
        _book(service)

        result = service.deactivate_on_graded(COURSE_ID, STUDENT_ID, EXERCISE_ID, now=NOW)

        assert result.state is BookingState.INACTIVE
        assert result.booking["active"] is False
        assert service.get_booking_state(COURSE_ID, STUDENT_ID, EXERCISE_ID) is BookingState.NONE

        next_week = (SESSION[0] + timedelta(days=7), SESSION[1] + timedelta(days=7))
        second = _book(service, interval=next_week)

        assert second.state is BookingState.TENTATIVE
        assert unit_db.query(Booking).count() == 2


class TestConstraintFailures:
    @pytest.fixture
    def failing_commit(self, unit_db, monkeypatch):
        def _commit() -> None:
            raise IntegrityError("UPDATE bookings", {}, Exception("constraint failed"))

        def _install() -> None:
            monkeypatch.setattr(unit_db, "commit", _commit)

        yield _install
        monkeypatch.undo()

    def test_confirm_reports_persistence_failure(self, service, failing_commit) -> None:
        _book(service)
        failing_commit()

        with pytest.raises(PersistenceException) as exc_info:
            service.confirm_booking(COURSE_ID, STUDENT_ID, EXERCISE_ID, now=NOW)

        assert exc_info.value.code == "BOOKING_NOT_SAVED"
        state = service.get_booking_state(COURSE_ID, STUDENT_ID, EXERCISE_ID)
        assert state is BookingState.TENTATIVE

    def test_cancel_reports_persistence_failure(self, service, unit_db, failing_commit) -> None:
        created = _book(service)
        failing_commit()

        with pytest.raises(PersistenceException):
            service.cancel_booking(created.booking["id"], now=NOW)

        assert unit_db.query(Booking).count() == 1

    def test_deactivate_reports_persistence_failure(self, service, failing_commit) -> None:
        _book(service)
        failing_commit()

        with pytest.raises(PersistenceException):
            service.deactivate_on_graded(COURSE_ID, STUDENT_ID, EXERCISE_ID, now=NOW)

        state = service.get_booking_state(COURSE_ID, STUDENT_ID, EXERCISE_ID)
        assert state is BookingState.TENTATIVE


class TestQueries:
    def test_bookings_for_instructor_and_student(self, service) -> None:
        _book(service)

        assert len(service.get_bookings_for_user(INSTRUCTOR_ID)) == 1
        assert len(service.get_bookings_for_user(STUDENT_ID, as_student=True)) == 1
        assert service.get_bookings_for_user(STUDENT_ID) == []
