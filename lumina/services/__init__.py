"""
Lumina Services - Application operations over the repository.

This module provides:
- LearnerService: enroll, complete lessons, streaks, dashboards
- AuthoringService: generate, save and delete courses
- CourseGenerator: LLM course drafts
- SessionManager: signed-in profile tracking
"""

from .generator import (
    CourseGenerator,
    GeminiClient,
    extract_json_from_response,
    materialize_draft,
)

from .learner import (
    LearnerService,
    LessonCompletion,
    StudentDashboard,
)

from .authoring import AuthoringService

from .session import SessionManager

__all__ = [
    # Generator
    "CourseGenerator",
    "GeminiClient",
    "extract_json_from_response",
    "materialize_draft",
    # Learner
    "LearnerService",
    "LessonCompletion",
    "StudentDashboard",
    # Authoring
    "AuthoringService",
    # Session
    "SessionManager",
]
