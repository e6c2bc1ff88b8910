# sessionbook/routes/v1/availability.py
"""
Availability routes - API v1

Endpoints:
    GET /courses/{course_id}/weeks/{year}/{week} - Packed weekly grid
    PUT /courses/{course_id}/students/{student_id}/weeks/{year}/{week}/slots - Replace week
    DELETE /courses/{course_id}/students/{student_id}/weeks/{year}/{week}/slots - Clear week
    GET /courses/{course_id}/students/{student_id}/eligibility - Posting window
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query

from ...api.dependencies import (
    get_availability_service,
    get_eligibility_service,
    get_week_view_service,
)
from ...core.exceptions import DomainException
from ...core.time_utils import utc_now
from ...schemas.eligibility import EligibilityResponse
from ...schemas.slot import ClearWeekResponse, WeekSlotsRequest, WeekSlotsResponse
from ...schemas.week import WeekLayoutResponse
from ...services.availability_service import AvailabilityService
from ...services.eligibility import EligibilityService
from ...services.week_view_service import WeekViewService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["availability-v1"])


@router.get("/courses/{course_id}/weeks/{year}/{week}", response_model=WeekLayoutResponse)
def get_week_layout(
    course_id: str,
    year: int = Path(..., ge=1, le=9999),
    week: int = Path(..., ge=1, le=53),
    owner_id: Optional[str] = Query(None, description="Only this student's slots"),
    tz: Optional[str] = Query(None, description="IANA timezone for placing slots on days"),
    week_view_service: WeekViewService = Depends(get_week_view_service),
) -> WeekLayoutResponse:
    """Weekly grid with slots packed into lanes."""
    try:
        view = week_view_service.get_week_view(
            course_id, year, week, owner_id=owner_id, tz_name=tz
        )
        return WeekLayoutResponse.from_view(view)
    except DomainException as e:
        handle_domain_exception(e)


@router.put(
    "/courses/{course_id}/students/{student_id}/weeks/{year}/{week}/slots",
    response_model=WeekSlotsResponse,
)
def save_week_slots(
    course_id: str,
    student_id: str,
    year: int = Path(..., ge=1, le=9999),
    week: int = Path(..., ge=1, le=53),
    payload: WeekSlotsRequest = Body(...),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> WeekSlotsResponse:
    """Replace the student's open slots for the week."""
    try:
        slot_ids = availability_service.save_week_slots(
            course_id,
            student_id,
            year,
            week,
            [(slot.start_time, slot.end_time) for slot in payload.slots],
        )
        return WeekSlotsResponse(
            course_id=course_id, student_id=student_id, year=year, week=week, slot_ids=slot_ids
        )
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/courses/{course_id}/students/{student_id}/weeks/{year}/{week}/slots",
    response_model=ClearWeekResponse,
)
def clear_week_slots(
    course_id: str,
    student_id: str,
    year: int = Path(..., ge=1, le=9999),
    week: int = Path(..., ge=1, le=53),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> ClearWeekResponse:
    """Delete the student's unbooked slots for the week."""
    try:
        deleted = availability_service.clear_week_slots(course_id, student_id, year, week)
        return ClearWeekResponse(deleted=deleted)
    except DomainException as e:
        handle_domain_exception(e)


@router.get(
    "/courses/{course_id}/students/{student_id}/eligibility",
    response_model=EligibilityResponse,
)
def get_eligibility(
    course_id: str,
    student_id: str,
    eligibility_service: EligibilityService = Depends(get_eligibility_service),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> EligibilityResponse:
    """Earliest date the student may post availability, with posting totals."""
    try:
        now = utc_now()
        window = eligibility_service.get_window(student_id, course_id, now)
        summary = availability_service.get_posting_summary(course_id, student_id)
        return EligibilityResponse(
            student_id=window.student_id,
            course_id=window.course_id,
            next_allowed_date=window.next_allowed_date,
            posting_wait_days=window.posting_wait_days,
            override=window.override,
            basis=window.basis,
            basis_date=window.basis_date,
            restricted=window.is_restricted(now),
            **summary,
        )
    except DomainException as e:
        handle_domain_exception(e)
