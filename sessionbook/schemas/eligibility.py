# sessionbook/schemas/eligibility.py
from datetime import date, datetime
from typing import Optional

from ..core.enums import EligibilityBasis
from ._strict_base import StrictModel


class EligibilityResponse(StrictModel):
    student_id: str
    course_id: str
    next_allowed_date: date
    posting_wait_days: int
    override: bool
    basis: EligibilityBasis
    basis_date: Optional[datetime] = None
    restricted: bool
    total_posts: int
    first_posted_at: Optional[datetime] = None
    last_posted_at: Optional[datetime] = None
