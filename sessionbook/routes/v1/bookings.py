# sessionbook/routes/v1/bookings.py
"""
Booking routes - API v1

All business logic delegated to BookingLifecycleService.

Endpoints:
    POST /bookings - Book a session (new slot or an open student slot)
    POST /bookings/confirm - Student confirms the active booking for an exercise
    POST /bookings/{booking_id}/cancel - Cancel a booking
    GET /users/{user_id}/bookings - Active bookings for an instructor or student
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query, status

from ...api.dependencies import get_booking_lifecycle_service
from ...core.exceptions import DomainException
from ...schemas.booking import (
    BookingCancel,
    BookingConfirm,
    BookingCreate,
    BookingListResponse,
    BookingResponse,
    BookingResultResponse,
)
from ...services.booking_lifecycle import BookingLifecycleService, BookingResult
from .common import ULID_PATH_PATTERN, handle_domain_exception

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["bookings-v1"])


def _to_response(result: BookingResult) -> BookingResultResponse:
    return BookingResultResponse.model_validate(
        {
            "success": result.success,
            "state": result.state,
            "booking": result.booking,
            "slot": result.slot,
            "notified": result.notified,
        }
    )


@router.post(
    "/bookings",
    response_model=BookingResultResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_booking(
    booking_data: BookingCreate = Body(...),
    lifecycle: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingResultResponse:
    """Book a session for a student."""
    try:
        interval = (
            (booking_data.slot.start_time, booking_data.slot.end_time)
            if booking_data.slot
            else None
        )
        result = lifecycle.create_booking(
            booking_data.course_id,
            booking_data.student_id,
            booking_data.exercise_id,
            booking_data.instructor_id,
            interval,
            slot_id=booking_data.slot_id,
        )
        return _to_response(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/bookings/confirm", response_model=BookingResultResponse)
def confirm_booking(
    confirm_data: BookingConfirm = Body(...),
    lifecycle: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingResultResponse:
    """Student acknowledges the session booked for an exercise."""
    try:
        result = lifecycle.confirm_booking(
            confirm_data.course_id, confirm_data.student_id, confirm_data.exercise_id
        )
        return _to_response(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/bookings/{booking_id}/cancel", response_model=BookingResultResponse)
def cancel_booking(
    booking_id: str = Path(..., pattern=ULID_PATH_PATTERN),
    cancel_data: Optional[BookingCancel] = Body(None),
    lifecycle: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingResultResponse:
    """Cancel a booking; a student-posted slot is reopened."""
    try:
        result = lifecycle.cancel_booking(booking_id, cancel_data.reason if cancel_data else None)
        return _to_response(result)
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/users/{user_id}/bookings", response_model=BookingListResponse)
def list_user_bookings(
    user_id: str,
    oldest_first: bool = Query(False),
    as_student: bool = Query(False, description="Look the user up as the student"),
    lifecycle: BookingLifecycleService = Depends(get_booking_lifecycle_service),
) -> BookingListResponse:
    """Active bookings, most recently changed first unless oldest_first is set."""
    try:
        bookings = lifecycle.get_bookings_for_user(user_id, oldest_first, as_student)
        items = [BookingResponse.model_validate(booking) for booking in bookings]
        return BookingListResponse(bookings=items, total=len(items))
    except DomainException as e:
        handle_domain_exception(e)
