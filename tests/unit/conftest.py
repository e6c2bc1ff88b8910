from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from sessionbook.core.enums import ParticipantRole, SlotOrigin, SlotStatus
from sessionbook.core.time_utils import iso_week_of
from sessionbook.database import Base

# Import models so Base.metadata is populated for create_all.
import sessionbook.models  # noqa: F401
from sessionbook.models.booking import Booking
from sessionbook.models.course_field import CourseField
from sessionbook.models.enrollment import CourseEnrollment
from sessionbook.models.slot import Slot

COURSE_ID = "01HCOURSE00000000000000000"
STUDENT_ID = "01HSTUDENT0000000000000001"
OTHER_STUDENT_ID = "01HSTUDENT0000000000000002"
INSTRUCTOR_ID = "01HINSTRUCTR00000000000001"
EXERCISE_ID = "01HEXERCISE000000000000001"


@pytest.fixture(scope="function")
def _unit_engine():
    # Fresh database per test; services commit.
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def unit_db(_unit_engine) -> Session:
    """Provide a session bound to the per-test in-memory engine."""
    SessionLocal = sessionmaker(
        bind=_unit_engine, autoflush=False, expire_on_commit=False, future=True
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def make_enrollment(unit_db: Session) -> Callable[..., CourseEnrollment]:
    def _make(
        user_id: str = STUDENT_ID,
        role: ParticipantRole = ParticipantRole.STUDENT,
        course_id: str = COURSE_ID,
        enrolled_at: Optional[datetime] = None,
        **kwargs: Any,
    ) -> CourseEnrollment:
        enrollment = CourseEnrollment(
            course_id=course_id,
            user_id=user_id,
            role=role.value,
            first_name=kwargs.pop("first_name", "Test"),
            last_name=kwargs.pop("last_name", user_id[-4:]),
            enrolled_at=enrolled_at or datetime(2024, 1, 1, tzinfo=timezone.utc),
            **kwargs,
        )
        unit_db.add(enrollment)
        unit_db.commit()
        return enrollment

    return _make


@pytest.fixture
def make_slot(unit_db: Session) -> Callable[..., Slot]:
    def _make(
        start: datetime,
        hours: float = 1,
        owner_id: str = STUDENT_ID,
        course_id: str = COURSE_ID,
        status: SlotStatus = SlotStatus.OPEN,
        origin: SlotOrigin = SlotOrigin.STUDENT,
    ) -> Slot:
        year, week = iso_week_of(start)
        slot = Slot(
            owner_id=owner_id,
            course_id=course_id,
            start_time=start,
            end_time=start + timedelta(hours=hours),
            year=year,
            week=week,
            status=status.value,
            origin=origin.value,
        )
        unit_db.add(slot)
        unit_db.commit()
        return slot

    return _make


@pytest.fixture
def make_booking(unit_db: Session) -> Callable[..., Booking]:
    def _make(
        slot: Slot,
        exercise_id: str = EXERCISE_ID,
        instructor_id: str = INSTRUCTOR_ID,
        confirmed: bool = False,
        active: bool = True,
    ) -> Booking:
        booking = Booking(
            course_id=slot.course_id,
            student_id=slot.owner_id,
            exercise_id=exercise_id,
            instructor_id=instructor_id,
            slot_id=slot.id,
            confirmed=confirmed,
            active=active,
        )
        unit_db.add(booking)
        unit_db.commit()
        return booking

    return _make


@pytest.fixture
def set_course_field(unit_db: Session) -> Callable[[str, str], CourseField]:
    def _set(shortname: str, value: str, course_id: str = COURSE_ID) -> CourseField:
        field = CourseField(course_id=course_id, shortname=shortname, value=value)
        unit_db.add(field)
        unit_db.commit()
        return field

    return _set


@pytest.fixture
def client(unit_db: Session):
    from sessionbook.api.dependencies import get_db
    from sessionbook.main import app

    def _override_get_db():
        try:
            yield unit_db
            unit_db.commit()
        except Exception:
            unit_db.rollback()
            raise

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
