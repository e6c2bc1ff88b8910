# sessionbook/models/course_field.py
"""
Raw course custom fields.

Values are stored as text exactly as configured on the course; the mapping
to typed policy values happens in ``sessionbook.services.course_policy``.
"""

from sqlalchemy import Column, String, Text, UniqueConstraint
import ulid

from ..database import Base


class CourseField(Base):
    __tablename__ = "course_fields"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    course_id = Column(String(26), nullable=False, index=True)
    shortname = Column(String(64), nullable=False)
    value = Column(Text, nullable=True)

    __table_args__ = (UniqueConstraint("course_id", "shortname", name="uq_course_field"),)

    def __repr__(self) -> str:
        return f"<CourseField {self.course_id}.{self.shortname}={self.value!r}>"
