"""
Database models for the session booking service.

- Slot: posted availability intervals
- Booking: instructor sessions booked against slots
- CourseEnrollment: student/instructor participation in a course
- ExerciseGrade: grades recorded from grading events
- CourseField: raw course custom fields feeding course policy
"""

from .booking import Booking
from .course_field import CourseField
from .enrollment import CourseEnrollment
from .grade import ExerciseGrade
from .slot import Slot

__all__ = [
    "Booking",
    "CourseEnrollment",
    "CourseField",
    "ExerciseGrade",
    "Slot",
]
