"""
AuthoringService - Teacher-facing course operations.

Generated and edited courses pass publish validation before they are
written; nothing invalid reaches the repository.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from lumina.repository import CourseRepository
from lumina.schemas import Course, Difficulty, validate_for_publish

from .generator import CourseGenerator, materialize_draft

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuthoringService:
    """Create, edit and delete courses."""

    def __init__(
        self,
        repository: CourseRepository,
        generator: Optional[CourseGenerator] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.repository = repository
        self.generator = generator
        self.clock = clock

    async def draft_course(
        self,
        teacher_id: str,
        topic: str,
        difficulty: Difficulty | str,
        audience: str,
        duration: str,
    ) -> Course:
        """
        Generate a course for review without saving it.

        Raises:
            ValidationFailure: the generated content is unusable
        """
        if self.generator is None:
            raise RuntimeError("Course generation is not configured (missing GEMINI_API_KEY)")
        difficulty = Difficulty(difficulty)
        draft = await asyncio.to_thread(
            self.generator.generate_draft, topic, difficulty.value, audience, duration
        )
        return materialize_draft(draft, teacher_id, difficulty, audience, now=self.clock())

    async def publish_course(self, course: Course) -> Course:
        """Validate and store a new course."""
        validate_for_publish(course)
        return await self.repository.create_course(course)

    async def generate_course(
        self,
        teacher_id: str,
        topic: str,
        difficulty: Difficulty | str,
        audience: str,
        duration: str,
    ) -> Course:
        """Generate, validate and store a course in one step."""
        course = await self.draft_course(teacher_id, topic, difficulty, audience, duration)
        return await self.publish_course(course)

    async def save_course(self, course: Course) -> Course:
        """Validate an edited course and replace the stored copy."""
        validate_for_publish(course)
        return await self.repository.update_course(course)

    async def delete_course(self, teacher_id: str, course_id: str) -> None:
        """
        Delete a course owned by the teacher.

        Raises:
            NotFound: the course does not exist
            PermissionError: the course belongs to another teacher
        """
        course = await self.repository.get_course(course_id)
        if course.teacher_id != teacher_id:
            raise PermissionError(f"Course {course_id} is not owned by {teacher_id}")
        await self.repository.delete_course(course_id)

    async def teacher_overview(self, teacher_id: str) -> dict:
        """Courses owned by a teacher and their total enrolled students."""
        courses = [c for c in await self.repository.list_courses() if c.teacher_id == teacher_id]
        return {
            "courses": courses,
            "course_count": len(courses),
            "total_students": sum(c.enrolled_count for c in courses),
        }
