"""
Course draft schemas for Lumina.

A draft is the untrusted shape returned by the generative content service:
the same nesting as a Course but without ids, owner, enrollment count or
creation time. Drafts are validated strictly before anything is persisted.
"""

import json
from typing import Any, Union

from pydantic import Field, ValidationError

from lumina.errors import ValidationFailure

from .course import QUIZ_OPTION_COUNT, LuminaModel


class QuizQuestionDraft(LuminaModel):
    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=QUIZ_OPTION_COUNT, max_length=QUIZ_OPTION_COUNT)
    correct_answer_index: int = Field(..., ge=0, le=QUIZ_OPTION_COUNT - 1)


class LessonDraft(LuminaModel):
    title: str = Field(..., min_length=1)
    content: str = ""
    duration_minutes: int = Field(..., gt=0)
    quiz: list[QuizQuestionDraft] = []


class ModuleDraft(LuminaModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    lessons: list[LessonDraft] = Field(..., min_length=1)


class CourseDraft(LuminaModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    estimated_duration: str = ""
    tags: list[str] = []
    modules: list[ModuleDraft] = Field(..., min_length=1)


def parse_course_draft(payload: Union[str, dict[str, Any]]) -> CourseDraft:
    """
    Validate generated content into a CourseDraft.

    Args:
        payload: Decoded JSON object, or the raw JSON text

    Returns:
        A fully-typed CourseDraft

    Raises:
        ValidationFailure: if the payload is not JSON or breaks any rule
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValidationFailure([f"not valid JSON: {e}"], "Generated course is invalid")
    if not isinstance(payload, dict):
        raise ValidationFailure(["expected a JSON object"], "Generated course is invalid")
    try:
        return CourseDraft.model_validate(payload)
    except ValidationError as e:
        raise ValidationFailure.from_pydantic(e, "Generated course is invalid")
