"""
Lumina Schemas - Pydantic models for the learning platform.

This module exports all schema classes for:
- Course: courses, modules, lessons, resources, quiz questions
- Draft: untrusted generated course content
- Progress: user profiles and enrollments
"""

# Course schemas
from .course import (
    LuminaModel,
    Difficulty,
    ResourceType,
    Resource,
    QuizQuestion,
    Lesson,
    Module,
    Course,
    QUIZ_OPTION_COUNT,
    flatten_lessons,
    total_lessons,
    lesson_ids,
    find_lesson,
    validate_for_publish,
)

# Draft schemas
from .draft import (
    QuizQuestionDraft,
    LessonDraft,
    ModuleDraft,
    CourseDraft,
    parse_course_draft,
)

# Progress schemas
from .progress import (
    UserRole,
    User,
    Enrollment,
)

__all__ = [
    # Course
    'LuminaModel',
    'Difficulty',
    'ResourceType',
    'Resource',
    'QuizQuestion',
    'Lesson',
    'Module',
    'Course',
    'QUIZ_OPTION_COUNT',
    'flatten_lessons',
    'total_lessons',
    'lesson_ids',
    'find_lesson',
    'validate_for_publish',
    # Draft
    'QuizQuestionDraft',
    'LessonDraft',
    'ModuleDraft',
    'CourseDraft',
    'parse_course_draft',
    # Progress
    'UserRole',
    'User',
    'Enrollment',
]
