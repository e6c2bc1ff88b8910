# sessionbook/routes/v1/grading.py
"""Grading event intake - API v1."""

import logging

from fastapi import APIRouter, Body, Depends

from ...api.dependencies import get_grading_service
from ...core.exceptions import DomainException
from ...schemas.booking import BookingResultResponse, GradingEvent
from ...services.grading_service import GradingService
from .common import handle_domain_exception

logger = logging.getLogger(__name__)

router = APIRouter(tags=["grading-v1"])


@router.post("/grading-events", response_model=BookingResultResponse)
def receive_grading_event(
    event: GradingEvent = Body(...),
    grading_service: GradingService = Depends(get_grading_service),
) -> BookingResultResponse:
    """Record a grade and retire the exercise's active booking."""
    try:
        result = grading_service.record_graded(
            event.course_id,
            event.student_id,
            event.exercise_id,
            grader_id=event.grader_id,
            grade=event.grade,
            graded_at=event.graded_at,
        )
        return BookingResultResponse.model_validate(
            {"success": result.success, "state": result.state, "booking": result.booking}
        )
    except DomainException as e:
        handle_domain_exception(e)
