"""
Learner schemas for Lumina.

Defines Pydantic models for:
- User profiles (role, streak, last activity day)
- Enrollments (completed lessons and derived progress)
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from .course import LuminaModel


class UserRole(str, Enum):
    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


class User(LuminaModel):
    """Profile record mirrored from the identity provider."""
    id: str
    email: str = ""
    name: str
    role: UserRole
    streak: int = Field(default=0, ge=0)
    last_activity_date: Optional[date] = None  # only the calendar day matters

    @field_validator("last_activity_date", mode="before")
    @classmethod
    def day_only(cls, v):
        # stored profiles may hold a full ISO timestamp
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and "T" in v:
            return v.split("T")[0]
        return v


class Enrollment(LuminaModel):
    """
    A student's relationship to a course, keyed by (student_id, course_id).

    progress is derived from completed_lesson_ids by the progress tracker
    and is never set independently.
    """
    student_id: str
    course_id: str
    progress: int = Field(default=0, ge=0, le=100)
    completed_lesson_ids: list[str] = []
    enrolled_at: datetime

    @field_validator("completed_lesson_ids")
    @classmethod
    def no_duplicates(cls, v):
        return list(dict.fromkeys(v))
