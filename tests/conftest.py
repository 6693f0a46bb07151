"""
Shared fixtures for Lumina tests.
"""

from datetime import date, datetime, timezone

import pytest

from lumina.repository import LocalCourseRepository
from lumina.schemas import Course, Enrollment, User, UserRole

NOW = datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc)
TODAY = NOW.date()


# A well-formed generator response
DRAFT = {
    "title": "Black Holes",
    "description": "Where gravity wins.",
    "estimatedDuration": "2 Weeks",
    "tags": ["Space", "Physics"],
    "modules": [
        {
            "title": "Formation",
            "description": "How black holes form",
            "lessons": [
                {
                    "title": "Stellar collapse",
                    "content": "# Collapse\n\nWhen a massive star {runs out} of fuel...",
                    "durationMinutes": 20,
                    "quiz": [
                        {
                            "question": "What collapses?",
                            "options": ["A star", "A comet", "A moon", "Dust"],
                            "correctAnswerIndex": 0,
                        }
                    ],
                },
                {
                    "title": "Event horizons",
                    "content": "The point of no return.",
                    "durationMinutes": 15,
                    "quiz": [],
                },
            ],
        },
        {
            "title": "Observation",
            "description": "",
            "lessons": [
                {"title": "Imaging", "content": "EHT images.", "durationMinutes": 10},
            ],
        },
    ],
}


class StubClient:
    """Records prompts and replays a canned response."""

    def __init__(self, response: str):
        self.response = response
        self.calls = []

    def generate(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        return self.response


def _build_course(lessons_per_module=(1, 1), course_id="c-test", teacher_id="teacher-1", quiz=False):
    modules = []
    for m_idx, count in enumerate(lessons_per_module, start=1):
        lessons = []
        for l_idx in range(1, count + 1):
            lesson = {
                "id": f"l-{m_idx}-{l_idx}",
                "title": f"Lesson {m_idx}.{l_idx}",
                "content": "# Heading\n\nBody text.",
                "durationMinutes": 10,
            }
            if quiz:
                lesson["quiz"] = [{
                    "id": f"q-{m_idx}-{l_idx}",
                    "question": "Pick B",
                    "options": ["A", "B", "C", "D"],
                    "correctAnswerIndex": 1,
                }]
            lessons.append(lesson)
        modules.append({
            "id": f"m-{m_idx}",
            "title": f"Module {m_idx}",
            "description": "",
            "lessons": lessons,
        })
    return Course.model_validate({
        "id": course_id,
        "teacherId": teacher_id,
        "title": "Test Course",
        "description": "A course for tests",
        "difficulty": "Beginner",
        "targetAudience": "Testers",
        "estimatedDuration": "1 Week",
        "modules": modules,
        "enrolledCount": 0,
        "tags": ["test"],
        "createdAt": NOW,
    })

@pytest.fixture
def make_course():
    """Factory: make_course((2, 1)) builds two modules with 2 and 1 lessons."""
    return _build_course

@pytest.fixture
def course():
    """Two modules with one lesson each."""
    return _build_course((1, 1))

@pytest.fixture
def enrollment(course):
    return Enrollment(student_id="student-1", course_id=course.id, enrolled_at=NOW)

@pytest.fixture
def student():
    return User(
        id="student-1",
        email="student@lumina.com",
        name="Student",
        role=UserRole.STUDENT,
        streak=5,
        last_activity_date=date(2026, 3, 9),
    )

@pytest.fixture
def teacher():
    return User(id="teacher-1", email="teacher@lumina.com", name="Teacher", role=UserRole.TEACHER)

@pytest.fixture
def repo(tmp_path):
    """Empty local repository in a temporary directory."""
    return LocalCourseRepository(tmp_path / "lumina.db")
