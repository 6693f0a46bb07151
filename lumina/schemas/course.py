"""
Course content schemas for Lumina.

Defines Pydantic models for the authored curriculum:
- Course -> ordered Modules -> ordered Lessons
- Lessons carry optional Resources and QuizQuestions
- Lesson ordering helpers used by progress and navigation
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from lumina.errors import ValidationFailure


QUIZ_OPTION_COUNT = 4


class LuminaModel(BaseModel):
    """Base model: snake_case attributes, camelCase canonical JSON."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Difficulty(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class ResourceType(str, Enum):
    SLIDE = "slide"
    DOCUMENT = "document"
    VIDEO = "video"


# -----------------------------------------------------------------------------
# Lesson content
# -----------------------------------------------------------------------------

class Resource(LuminaModel):
    """External material attached to a lesson (slides, documents, videos)."""
    id: str
    title: str
    url: str
    type: ResourceType = ResourceType.DOCUMENT


class QuizQuestion(LuminaModel):
    id: str
    question: str
    options: list[str] = Field(..., min_length=QUIZ_OPTION_COUNT, max_length=QUIZ_OPTION_COUNT)
    correct_answer_index: int = Field(..., ge=0, le=QUIZ_OPTION_COUNT - 1)


class Lesson(LuminaModel):
    id: str
    title: str
    content: str = ""                # markdown
    duration_minutes: int = Field(..., gt=0)
    resources: list[Resource] = []
    quiz: list[QuizQuestion] = []


class Module(LuminaModel):
    id: str
    title: str
    description: str = ""
    lessons: list[Lesson] = []  # may be empty while authoring


class Course(LuminaModel):
    """
    A teacher-authored course.

    Module order is significant: lessons are numbered and traversed by
    concatenating each module's lessons in module order.
    """
    id: str
    teacher_id: str
    title: str
    description: str = ""
    difficulty: Difficulty = Difficulty.BEGINNER
    target_audience: str = ""
    estimated_duration: str = ""
    modules: list[Module] = []
    enrolled_count: int = Field(default=0, ge=0)
    tags: list[str] = []
    created_at: datetime

    @model_validator(mode="after")
    def ids_unique(self):
        module_ids = [m.id for m in self.modules]
        if len(module_ids) != len(set(module_ids)):
            raise ValueError("module ids must be unique within a course")
        ids = [lesson.id for lesson in flatten_lessons(self)]
        if len(ids) != len(set(ids)):
            raise ValueError("lesson ids must be unique within a course")
        return self

    @field_validator("tags")
    @classmethod
    def tags_unique(cls, v):
        # tags behave as a set but keep first-seen order for display
        return list(dict.fromkeys(v))


# -----------------------------------------------------------------------------
# Lesson ordering
# -----------------------------------------------------------------------------

def flatten_lessons(course: Course) -> list[Lesson]:
    """All lessons in module order, then intra-module order."""
    return [lesson for module in course.modules for lesson in module.lessons]


def total_lessons(course: Course) -> int:
    """Number of lessons across all modules (0 for an empty course)."""
    return sum(len(module.lessons) for module in course.modules)


def lesson_ids(course: Course) -> list[str]:
    return [lesson.id for lesson in flatten_lessons(course)]


def find_lesson(course: Course, lesson_id: str) -> Optional[Lesson]:
    for lesson in flatten_lessons(course):
        if lesson.id == lesson_id:
            return lesson
    return None


# -----------------------------------------------------------------------------
# Publish validation
# -----------------------------------------------------------------------------

def validate_for_publish(course: Course) -> Course:
    """
    Check that a course is complete enough to be saved for learners.

    Structural rules (4 quiz options, answer index range, positive
    durations) are enforced by the models themselves; this adds the rules
    that only apply once authoring is finished.

    Raises:
        ValidationFailure: listing every problem found
    """
    errors = []
    if not course.title.strip():
        errors.append("course title is empty")
    if not course.modules:
        errors.append("course has no modules")
    for m_idx, module in enumerate(course.modules):
        if not module.title.strip():
            errors.append(f"module {m_idx + 1} has no title")
        if not module.lessons:
            errors.append(f"module {m_idx + 1} ({module.title}) has no lessons")
        for l_idx, lesson in enumerate(module.lessons):
            if not lesson.title.strip():
                errors.append(f"module {m_idx + 1} lesson {l_idx + 1} has no title")
    if errors:
        raise ValidationFailure(errors)
    return course
