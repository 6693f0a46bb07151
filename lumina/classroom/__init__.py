"""
Lumina Classroom - Progress, streak and navigation engine.

This module provides:
- Progress tracking: lesson completion and derived progress
- Streak calculation: consecutive active days
- Navigator: lesson sequencing for the course player
- Editor: course editing operations
- Quiz scoring
"""

from .progress import (
    compute_progress,
    complete_lesson,
    refresh_progress,
    next_lesson,
    is_course_complete,
    completion_stats,
)

from .streak import record_activity

from .navigator import (
    Navigator,
    LessonState,
    NavigationLesson,
    NavigationModule,
)

from .quiz import PASS_PERCENT, score_quiz, unanswered_questions

from . import editor

__all__ = [
    # Progress
    "compute_progress",
    "complete_lesson",
    "refresh_progress",
    "next_lesson",
    "is_course_complete",
    "completion_stats",
    # Streak
    "record_activity",
    # Navigator
    "Navigator",
    "LessonState",
    "NavigationLesson",
    "NavigationModule",
    # Quiz
    "score_quiz",
    "unanswered_questions",
    "PASS_PERCENT",
    # Editor
    "editor",
]
