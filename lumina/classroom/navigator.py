"""
Navigator - Lesson sequencing and course player navigation.

Provides:
- Next/previous lesson navigation in flattened course order
- Resume point (first incomplete lesson)
- Module tree with completion counts and status indicators
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from lumina.schemas import Course, Enrollment, Lesson, Module, flatten_lessons

from .progress import compute_progress, next_lesson


class LessonState(str, Enum):
    """Lesson state for player sidebar display."""
    AVAILABLE = "available"     # Not yet completed
    COMPLETED = "completed"     # Finished


@dataclass
class NavigationLesson:
    """Lesson with navigation metadata."""
    lesson: Lesson
    number: int                 # 1-based position in the whole course
    state: LessonState
    is_current: bool


@dataclass
class NavigationModule:
    """Module with lessons and navigation metadata."""
    module: Module
    lessons: list[NavigationLesson]
    completed_count: int
    total_count: int


class Navigator:
    """
    Navigate through a course for one enrollment.

    Combines the Course (content) with an Enrollment snapshot (learner
    state). Build a new Navigator after the enrollment changes.
    """

    def __init__(self, course: Course, enrollment: Enrollment):
        """
        Initialize navigator.

        Args:
            course: Course being played
            enrollment: The learner's enrollment in that course
        """
        self.course = course
        self.enrollment = enrollment
        self._lessons = flatten_lessons(course)
        self._lesson_index = {lesson.id: idx for idx, lesson in enumerate(self._lessons)}
        self._completed = set(enrollment.completed_lesson_ids)

    @property
    def total_lessons(self) -> int:
        """Total number of lessons."""
        return len(self._lessons)

    @property
    def progress(self) -> int:
        return compute_progress(self.enrollment.completed_lesson_ids, self.course)

    # -------------------------------------------------------------------------
    # Lesson lookup
    # -------------------------------------------------------------------------

    def get_lesson(self, lesson_id: str) -> Optional[Lesson]:
        idx = self._lesson_index.get(lesson_id)
        return self._lessons[idx] if idx is not None else None

    def get_lesson_state(self, lesson_id: str) -> LessonState:
        if lesson_id in self._completed:
            return LessonState.COMPLETED
        return LessonState.AVAILABLE

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def get_first_lesson_id(self) -> Optional[str]:
        """Get the ID of the first lesson."""
        return self._lessons[0].id if self._lessons else None

    def get_next_lesson_id(self, current_id: str) -> Optional[str]:
        """Get the ID of the next lesson in order."""
        if current_id not in self._lesson_index:
            return None
        current_idx = self._lesson_index[current_id]
        if current_idx + 1 >= len(self._lessons):
            return None
        return self._lessons[current_idx + 1].id

    def get_previous_lesson_id(self, current_id: str) -> Optional[str]:
        """Get the ID of the previous lesson in order."""
        if current_id not in self._lesson_index:
            return None
        current_idx = self._lesson_index[current_id]
        if current_idx <= 0:
            return None
        return self._lessons[current_idx - 1].id

    def get_resume_lesson_id(self) -> Optional[str]:
        """
        Lesson to open when the player starts.

        The first incomplete lesson, or the first lesson if the course is
        already complete. None for a course without lessons.
        """
        lesson = next_lesson(self.course, self.enrollment)
        if lesson:
            return lesson.id
        return self.get_first_lesson_id()

    def get_lesson_position(self, lesson_id: str) -> tuple[int, int]:
        """
        Get lesson position as (current, total).

        Returns (0, total) if lesson not found.
        """
        if lesson_id not in self._lesson_index:
            return (0, len(self._lessons))
        return (self._lesson_index[lesson_id] + 1, len(self._lessons))

    # -------------------------------------------------------------------------
    # Module tree
    # -------------------------------------------------------------------------

    def get_navigation_tree(self, current_lesson_id: Optional[str] = None) -> list[NavigationModule]:
        """
        Get the module tree with navigation metadata.

        Lessons are numbered continuously across modules.
        """
        tree = []
        number = 0
        for module in self.course.modules:
            nav_lessons = []
            completed_count = 0
            for lesson in module.lessons:
                number += 1
                state = self.get_lesson_state(lesson.id)
                if state == LessonState.COMPLETED:
                    completed_count += 1
                nav_lessons.append(NavigationLesson(
                    lesson=lesson,
                    number=number,
                    state=state,
                    is_current=lesson.id == current_lesson_id,
                ))

            tree.append(NavigationModule(
                module=module,
                lessons=nav_lessons,
                completed_count=completed_count,
                total_count=len(module.lessons),
            ))

        return tree

    def get_status_indicator(self, lesson_id: str, current_lesson_id: Optional[str] = None) -> str:
        """
        Get status indicator for sidebar display.

        Returns:
            ✓ for completed
            → for current
            ○ for available
        """
        if self.get_lesson_state(lesson_id) == LessonState.COMPLETED:
            return "✓"
        if lesson_id == current_lesson_id:
            return "→"
        return "○"
