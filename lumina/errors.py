"""
Error taxonomy for Lumina.

Calculators raise these instead of logging and swallowing, so the caller
decides how a failure is presented:
- NotFound: a requested course, enrollment or profile is absent
- ValidationFailure: course content violates the content model
- RepositoryUnavailable: the storage backend could not be reached
- InvalidLessonReference: progress recorded against a foreign lesson id
- QuizNotPassed: a quiz lesson completed without a passing answer set
"""

from typing import Optional


class LuminaError(Exception):
    """Base exception for Lumina."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class NotFound(LuminaError):
    """Raised when a course, enrollment or profile does not exist."""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class ValidationFailure(LuminaError):
    """
    Raised when course content breaks the content model.

    Carries every problem found so an author can fix them in one pass.
    """

    def __init__(self, errors: list[str], message: str = "Course content is invalid"):
        self.errors = list(errors)
        detail = "; ".join(self.errors)
        super().__init__(f"{message}: {detail}" if detail else message)

    @classmethod
    def from_pydantic(cls, exc, message: str = "Course content is invalid") -> "ValidationFailure":
        """Convert a pydantic ValidationError into a ValidationFailure."""
        errors = []
        for err in exc.errors():
            location = ".".join(str(part) for part in err.get("loc", ()))
            errors.append(f"{location}: {err.get('msg')}" if location else err.get("msg", ""))
        return cls(errors, message)


class RepositoryUnavailable(LuminaError):
    """Raised when the storage backend fails. Callers may retry."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class InvalidLessonReference(LuminaError):
    """Raised when a lesson id is not part of the course it is recorded against."""

    def __init__(self, lesson_id: str, course_id: str):
        self.lesson_id = lesson_id
        self.course_id = course_id
        super().__init__(f"Lesson {lesson_id} is not part of course {course_id}")


class AuthenticationError(LuminaError):
    """Raised when the identity provider rejects a sign-in or sign-up."""


class QuizNotPassed(LuminaError):
    """Raised when a lesson's quiz is incomplete or below the pass mark."""

    def __init__(self, lesson_id: str, unanswered: Optional[list[str]] = None, percent: Optional[int] = None):
        self.lesson_id = lesson_id
        self.unanswered = list(unanswered or [])
        self.percent = percent
        if self.unanswered:
            message = f"Quiz for {lesson_id} has unanswered questions: {', '.join(self.unanswered)}"
        else:
            message = f"Quiz for {lesson_id} scored {percent}%, below the pass mark"
        super().__init__(message)
