"""
Course repository contract.

One asynchronous interface over courses, enrollments and profiles, with a
local (SQLite) and a remote (PostgREST) implementation. The content model
and the calculators never touch storage directly.

Conventions shared by every implementation:
- get_* raise NotFound when the record is absent
- list_* return an empty list when nothing matches
- backend failures raise RepositoryUnavailable and are not retried
"""

from abc import ABC, abstractmethod

from lumina.schemas import Course, Enrollment, User


class CourseRepository(ABC):
    """Storage-agnostic CRUD facade."""

    # -------------------------------------------------------------------------
    # Courses
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_courses(self) -> list[Course]:
        """All courses, newest first."""

    @abstractmethod
    async def get_course(self, course_id: str) -> Course:
        """Get a course by ID. Raises NotFound."""

    @abstractmethod
    async def create_course(self, course: Course) -> Course:
        """Insert a new course. Raises ValueError if the ID is taken."""

    @abstractmethod
    async def update_course(self, course: Course) -> Course:
        """
        Replace a course's authored content by ID. Raises NotFound.

        enrolled_count and created_at are owned by the store: the values on
        the passed course are ignored and the stored ones are returned.
        """

    @abstractmethod
    async def delete_course(self, course_id: str) -> None:
        """
        Delete a course by ID (no-op if absent).

        Ownership is checked by the caller, not here.
        """

    # -------------------------------------------------------------------------
    # Enrollments
    # -------------------------------------------------------------------------

    @abstractmethod
    async def list_enrollments(self, student_id: str) -> list[Enrollment]:
        """All enrollments of a student."""

    @abstractmethod
    async def get_enrollment(self, student_id: str, course_id: str) -> Enrollment:
        """Get one enrollment. Raises NotFound."""

    @abstractmethod
    async def enroll(self, student_id: str, course_id: str) -> Enrollment:
        """
        Enroll a student in a course.

        Idempotent: an existing enrollment is returned unchanged and the
        course's enrolled count is only incremented on first enrollment.
        Raises NotFound if the course does not exist.
        """

    @abstractmethod
    async def complete_lesson(self, student_id: str, course_id: str, lesson_id: str) -> Enrollment:
        """
        Record a completed lesson and store the recomputed progress.

        The completed set is re-read at commit time. Raises NotFound for a
        missing course or enrollment and InvalidLessonReference for a
        lesson outside the course.
        """

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_profile(self, user_id: str) -> User:
        """Get a profile by user ID. Raises NotFound."""

    @abstractmethod
    async def save_profile(self, user: User) -> User:
        """Insert or replace a profile."""

    async def close(self) -> None:
        """Release backend resources."""
