"""
LearnerService - Enrollment, lesson completion and streak credit.

Orchestrates the pure progress and streak calculators against a
CourseRepository using read / compute / write steps.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from lumina.classroom.navigator import Navigator
from lumina.classroom.progress import complete_lesson, next_lesson
from lumina.classroom.quiz import score_quiz, unanswered_questions
from lumina.classroom.streak import record_activity
from lumina.errors import QuizNotPassed
from lumina.repository import CourseRepository
from lumina.schemas import Course, Enrollment, Lesson, User, UserRole, find_lesson

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class LessonCompletion:
    """Result of completing a lesson."""
    enrollment: Enrollment
    profile: Optional[User]          # None when nothing new was completed
    next_lesson: Optional[Lesson]    # None when the course is complete
    quiz: Optional[dict] = None      # score_quiz result for quiz lessons

    @property
    def course_complete(self) -> bool:
        return self.next_lesson is None


@dataclass
class StudentDashboard:
    profile: User
    enrolled: list[tuple[Course, Enrollment]]
    available: list[Course]

    @property
    def completed_courses(self) -> int:
        return sum(1 for _, enrollment in self.enrolled if enrollment.progress == 100)

    @property
    def streak(self) -> int:
        return self.profile.streak


class LearnerService:
    """Student-facing operations."""

    def __init__(self, repository: CourseRepository, clock: Callable[[], datetime] = _utcnow):
        """
        Args:
            repository: Storage backend
            clock: Source of "now" for streak days (learner's calendar)
        """
        self.repository = repository
        self.clock = clock

    async def enroll(self, student_id: str, course_id: str) -> Enrollment:
        return await self.repository.enroll(student_id, course_id)

    async def record_activity(self, user_id: str) -> User:
        """Credit today's activity to a user's streak and persist it."""
        profile = await self.repository.get_profile(user_id)
        updated = record_activity(profile, self.clock())
        if updated is not profile:
            await self.repository.save_profile(updated)
            logger.debug("Streak for %s is now %d", user_id, updated.streak)
        return updated

    async def record_login(self, profile: User) -> User:
        """Credit a login; only students keep streaks."""
        if profile.role != UserRole.STUDENT:
            return profile
        return await self.record_activity(profile.id)

    async def complete_lesson(
        self,
        student_id: str,
        course_id: str,
        lesson_id: str,
        answers: Optional[dict[str, int]] = None,
    ) -> LessonCompletion:
        """
        Complete a lesson and credit the day's activity.

        The lesson reference and, for a lesson with a quiz, the answers are
        validated before anything is written. The streak is credited first so
        that retrying after a failed enrollment write completes the lesson
        without crediting the day twice.

        Raises:
            NotFound: course or enrollment missing
            InvalidLessonReference: lesson is not part of the course
            QuizNotPassed: quiz left incomplete or scored below PASS_PERCENT
        """
        course = await self.repository.get_course(course_id)
        enrollment = await self.repository.get_enrollment(student_id, course_id)

        preview = complete_lesson(enrollment, course, lesson_id)
        if preview is enrollment:
            return LessonCompletion(
                enrollment=enrollment,
                profile=None,
                next_lesson=next_lesson(course, enrollment),
            )

        quiz = None
        lesson = find_lesson(course, lesson_id)
        if lesson.quiz:
            answers = answers or {}
            unanswered = unanswered_questions(lesson.quiz, answers)
            if unanswered:
                raise QuizNotPassed(lesson_id, unanswered=unanswered)
            quiz = score_quiz(lesson.quiz, answers)
            if not quiz["passed"]:
                raise QuizNotPassed(lesson_id, percent=quiz["percent"])

        profile = await self.record_activity(student_id)
        updated = await self.repository.complete_lesson(student_id, course_id, lesson_id)
        logger.info(
            "%s completed %s in %s (%d%%)", student_id, lesson_id, course_id, updated.progress
        )
        return LessonCompletion(
            enrollment=updated,
            profile=profile,
            next_lesson=next_lesson(course, updated),
            quiz=quiz,
        )

    async def resume_lesson(self, student_id: str, course_id: str) -> Optional[Lesson]:
        """Lesson the course player opens first."""
        course = await self.repository.get_course(course_id)
        enrollment = await self.repository.get_enrollment(student_id, course_id)
        navigator = Navigator(course, enrollment)
        lesson_id = navigator.get_resume_lesson_id()
        return navigator.get_lesson(lesson_id) if lesson_id else None

    async def dashboard(self, student_id: str) -> StudentDashboard:
        """Enrolled courses with progress, and courses still open for enrollment."""
        profile = await self.repository.get_profile(student_id)
        courses = await self.repository.list_courses()
        enrollments = {e.course_id: e for e in await self.repository.list_enrollments(student_id)}

        enrolled = [(c, enrollments[c.id]) for c in courses if c.id in enrollments]
        available = [c for c in courses if c.id not in enrollments]
        return StudentDashboard(profile=profile, enrolled=enrolled, available=available)
