# sessionbook/repositories/course_repository.py
"""Course custom field lookups."""

import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from ..models.course_field import CourseField
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class CourseRepository(BaseRepository[CourseField]):
    def __init__(self, db: Session):
        super().__init__(db, CourseField)

    def get_fields(self, course_id: str) -> Dict[str, Optional[str]]:
        """Raw course fields keyed by shortname."""
        rows = self.find_by(course_id=course_id)
        return {row.shortname: row.value for row in rows}

    def set_field(self, course_id: str, shortname: str, value: Optional[str]) -> CourseField:
        row = self.find_one_by(course_id=course_id, shortname=shortname)
        if row is None:
            return self.create(course_id=course_id, shortname=shortname, value=value)
        row.value = value
        self.flush()
        return row
