from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from sessionbook.core.enums import BookingState, SlotOrigin, SlotStatus
from sessionbook.models.booking import Booking
from sessionbook.models.slot import Slot

MONDAY = datetime(2024, 3, 11, 9, tzinfo=timezone.utc)


def _slot(start: datetime, hours: float = 1) -> Slot:
    return Slot(
        owner_id="s",
        course_id="c",
        start_time=start,
        end_time=start + timedelta(hours=hours),
        year=2024,
        week=11,
    )


class TestSlot:
    def test_defaults(self) -> None:
        slot = _slot(MONDAY)

        assert slot.status == SlotStatus.OPEN.value
        assert slot.origin == SlotOrigin.STUDENT.value
        assert slot.is_open
        assert not slot.is_instructor_created

    def test_overlap_is_half_open(self) -> None:
        first = _slot(MONDAY)

        assert first.overlaps(_slot(MONDAY + timedelta(minutes=30)))
        assert not first.overlaps(_slot(MONDAY + timedelta(hours=1)))

    def test_naive_times_read_back_as_utc(self, unit_db) -> None:
        slot = _slot(datetime(2024, 3, 11, 9))
        unit_db.add(slot)
        unit_db.commit()
        unit_db.expire_all()

        stored = unit_db.get(Slot, slot.id)

        assert stored.start_time == MONDAY
        assert stored.start_time.tzinfo is not None

    def test_database_rejects_reversed_interval(self, unit_db) -> None:
        unit_db.add(_slot(MONDAY, hours=-1))

        with pytest.raises(IntegrityError):
            unit_db.commit()


class TestBookingState:
    @pytest.mark.parametrize(
        "confirmed,active,expected",
        [
            (False, True, BookingState.TENTATIVE),
            (True, True, BookingState.CONFIRMED),
            (True, False, BookingState.INACTIVE),
            (False, False, BookingState.INACTIVE),
        ],
    )
    def test_state(self, confirmed: bool, active: bool, expected: BookingState) -> None:
        booking = Booking(confirmed=confirmed, active=active)

        assert booking.state is expected

    def test_new_booking_is_tentative(self) -> None:
        assert Booking().state is BookingState.TENTATIVE
