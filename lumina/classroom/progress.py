"""
Progress tracking - completed lessons and derived course progress.

Pure functions over an Enrollment and its Course:
- Lesson completion (idempotent, validated against the course)
- Progress percentage derived from the completed set
- Next lesson in flattened course order
- Completion statistics for dashboards

Nothing here touches storage; repositories call these at commit time.
"""

from typing import Optional

from lumina.errors import InvalidLessonReference
from lumina.schemas import Course, Enrollment, Lesson, flatten_lessons, lesson_ids


def compute_progress(completed_lesson_ids: list[str], course: Course) -> int:
    """
    Percentage of the course's lessons that are completed.

    Only ids that still belong to the course are counted. Rounds half-up,
    but never reports 100 while a lesson is outstanding. A course without
    lessons has progress 0.
    """
    ids = set(lesson_ids(course))
    total = len(ids)
    if total == 0:
        return 0
    done = len(ids.intersection(completed_lesson_ids))
    if done >= total:
        return 100
    percent = (200 * done + total) // (2 * total)
    return max(0, min(percent, 99))


def complete_lesson(enrollment: Enrollment, course: Course, lesson_id: str) -> Enrollment:
    """
    Mark a lesson as completed.

    Args:
        enrollment: Current enrollment state
        course: Course the enrollment belongs to
        lesson_id: ID of the lesson to mark completed

    Returns:
        Updated enrollment, or the same object if the lesson was already completed

    Raises:
        InvalidLessonReference: if lesson_id is not a lesson of this course
    """
    if enrollment.course_id != course.id:
        raise ValueError(
            f"Enrollment is for course {enrollment.course_id}, not {course.id}"
        )
    if lesson_id not in set(lesson_ids(course)):
        raise InvalidLessonReference(lesson_id, course.id)
    if lesson_id in enrollment.completed_lesson_ids:
        return enrollment

    completed = [*enrollment.completed_lesson_ids, lesson_id]
    return enrollment.model_copy(update={
        "completed_lesson_ids": completed,
        "progress": compute_progress(completed, course),
    })


def refresh_progress(enrollment: Enrollment, course: Course) -> Enrollment:
    """Recompute progress after the course itself was edited."""
    progress = compute_progress(enrollment.completed_lesson_ids, course)
    if progress == enrollment.progress:
        return enrollment
    return enrollment.model_copy(update={"progress": progress})


def next_lesson(course: Course, enrollment: Enrollment) -> Optional[Lesson]:
    """
    First lesson in flattened order that is not completed.

    Returns None when every lesson is completed (course complete).
    """
    completed = set(enrollment.completed_lesson_ids)
    for lesson in flatten_lessons(course):
        if lesson.id not in completed:
            return lesson
    return None


def is_course_complete(course: Course, enrollment: Enrollment) -> bool:
    """True when the course has lessons and all of them are completed."""
    ids = lesson_ids(course)
    return bool(ids) and set(ids).issubset(enrollment.completed_lesson_ids)


def completion_stats(course: Course, enrollment: Enrollment) -> dict:
    """
    Get completion statistics for one enrollment.

    Returns:
        Dictionary with lesson counts, progress and study minutes
    """
    completed = set(enrollment.completed_lesson_ids)
    lessons = flatten_lessons(course)
    done = [lesson for lesson in lessons if lesson.id in completed]

    return {
        "total_lessons": len(lessons),
        "completed": len(done),
        "remaining": len(lessons) - len(done),
        "completion_percent": compute_progress(enrollment.completed_lesson_ids, course),
        "total_minutes": sum(lesson.duration_minutes for lesson in lessons),
        "completed_minutes": sum(lesson.duration_minutes for lesson in done),
    }
