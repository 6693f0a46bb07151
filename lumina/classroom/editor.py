"""
Course editor operations.

Each operation takes a Course and returns a new, re-validated Course; the
input is never mutated. Edits that break the content model raise
ValidationFailure instead of being coerced. Saving the result is the
caller's job (see AuthoringService.save_course).
"""

from typing import Any, Optional

from pydantic import ValidationError

from lumina.errors import NotFound, ValidationFailure
from lumina.schemas import Course
from lumina.utils.ids import new_id


COURSE_EDITABLE_FIELDS = {
    "title", "description", "difficulty", "target_audience", "estimated_duration", "tags",
}
MODULE_EDITABLE_FIELDS = {"title", "description"}
LESSON_EDITABLE_FIELDS = {"title", "content", "duration_minutes"}


def _rebuild(data: dict[str, Any]) -> Course:
    try:
        return Course.model_validate(data)
    except ValidationError as e:
        raise ValidationFailure.from_pydantic(e, "Edit rejected")


def _check_fields(fields: dict[str, Any], allowed: set[str]):
    unknown = set(fields) - allowed
    if unknown:
        raise ValueError(f"Fields not editable: {', '.join(sorted(unknown))}")


def _module_index(data: dict, module_id: str) -> int:
    for idx, module in enumerate(data["modules"]):
        if module["id"] == module_id:
            return idx
    raise NotFound("module", module_id)


def _lesson_location(data: dict, lesson_id: str) -> tuple[int, int]:
    for m_idx, module in enumerate(data["modules"]):
        for l_idx, lesson in enumerate(module["lessons"]):
            if lesson["id"] == lesson_id:
                return m_idx, l_idx
    raise NotFound("lesson", lesson_id)


def _lesson(data: dict, lesson_id: str) -> dict:
    m_idx, l_idx = _lesson_location(data, lesson_id)
    return data["modules"][m_idx]["lessons"][l_idx]


def _clamp(index: int, length: int) -> int:
    return max(0, min(index, length))


# -----------------------------------------------------------------------------
# Course fields
# -----------------------------------------------------------------------------

def update_course_fields(course: Course, **fields) -> Course:
    """Edit top-level course fields (title, description, difficulty, ...)."""
    _check_fields(fields, COURSE_EDITABLE_FIELDS)
    data = course.model_dump()
    data.update(fields)
    return _rebuild(data)


# -----------------------------------------------------------------------------
# Modules
# -----------------------------------------------------------------------------

def add_module(
    course: Course,
    title: str = "New Module",
    description: str = "Module description...",
) -> Course:
    """Append an empty module; it is the last module of the result."""
    data = course.model_dump()
    data["modules"].append({
        "id": new_id("m"),
        "title": title,
        "description": description,
        "lessons": [],
    })
    return _rebuild(data)


def update_module(course: Course, module_id: str, **fields) -> Course:
    _check_fields(fields, MODULE_EDITABLE_FIELDS)
    data = course.model_dump()
    data["modules"][_module_index(data, module_id)].update(fields)
    return _rebuild(data)


def remove_module(course: Course, module_id: str) -> Course:
    """Delete a module together with all of its lessons."""
    data = course.model_dump()
    del data["modules"][_module_index(data, module_id)]
    return _rebuild(data)


def move_module(course: Course, module_id: str, new_index: int) -> Course:
    """Move a module to a new position (clamped to the module list)."""
    data = course.model_dump()
    module = data["modules"].pop(_module_index(data, module_id))
    data["modules"].insert(_clamp(new_index, len(data["modules"])), module)
    return _rebuild(data)


# -----------------------------------------------------------------------------
# Lessons
# -----------------------------------------------------------------------------

def add_lesson(
    course: Course,
    module_id: str,
    title: str = "New Lesson",
    content: str = "Start writing your lesson content here...",
    duration_minutes: int = 15,
) -> Course:
    """Append a lesson to a module; it is the last lesson of that module."""
    data = course.model_dump()
    data["modules"][_module_index(data, module_id)]["lessons"].append({
        "id": new_id("l"),
        "title": title,
        "content": content,
        "duration_minutes": duration_minutes,
        "resources": [],
        "quiz": [],
    })
    return _rebuild(data)


def update_lesson(course: Course, lesson_id: str, **fields) -> Course:
    _check_fields(fields, LESSON_EDITABLE_FIELDS)
    data = course.model_dump()
    _lesson(data, lesson_id).update(fields)
    return _rebuild(data)


def remove_lesson(course: Course, lesson_id: str) -> Course:
    data = course.model_dump()
    m_idx, l_idx = _lesson_location(data, lesson_id)
    del data["modules"][m_idx]["lessons"][l_idx]
    return _rebuild(data)


def move_lesson(
    course: Course,
    lesson_id: str,
    new_index: int,
    to_module_id: Optional[str] = None,
) -> Course:
    """
    Move a lesson within its module, or into another module.

    Args:
        lesson_id: Lesson to move
        new_index: Position in the target module (clamped)
        to_module_id: Target module, defaults to the lesson's own module
    """
    data = course.model_dump()
    m_idx, l_idx = _lesson_location(data, lesson_id)
    lesson = data["modules"][m_idx]["lessons"].pop(l_idx)
    target = _module_index(data, to_module_id) if to_module_id else m_idx
    lessons = data["modules"][target]["lessons"]
    lessons.insert(_clamp(new_index, len(lessons)), lesson)
    return _rebuild(data)


# -----------------------------------------------------------------------------
# Resources and quiz questions
# -----------------------------------------------------------------------------

def add_resource(course: Course, lesson_id: str, title: str, url: str, type: str = "document") -> Course:
    """Attach a slide, document or video link to a lesson."""
    data = course.model_dump()
    _lesson(data, lesson_id)["resources"].append({
        "id": new_id("r"),
        "title": title,
        "url": url,
        "type": type,
    })
    return _rebuild(data)


def remove_resource(course: Course, lesson_id: str, resource_id: str) -> Course:
    data = course.model_dump()
    lesson = _lesson(data, lesson_id)
    remaining = [r for r in lesson["resources"] if r["id"] != resource_id]
    if len(remaining) == len(lesson["resources"]):
        raise NotFound("resource", resource_id)
    lesson["resources"] = remaining
    return _rebuild(data)


def add_quiz_question(
    course: Course,
    lesson_id: str,
    question: str,
    options: list[str],
    correct_answer_index: int,
) -> Course:
    data = course.model_dump()
    _lesson(data, lesson_id)["quiz"].append({
        "id": new_id("q"),
        "question": question,
        "options": list(options),
        "correct_answer_index": correct_answer_index,
    })
    return _rebuild(data)


def remove_quiz_question(course: Course, lesson_id: str, question_id: str) -> Course:
    data = course.model_dump()
    lesson = _lesson(data, lesson_id)
    remaining = [q for q in lesson["quiz"] if q["id"] != question_id]
    if len(remaining) == len(lesson["quiz"]):
        raise NotFound("quiz question", question_id)
    lesson["quiz"] = remaining
    return _rebuild(data)
