"""
Demo catalog and accounts for local mode.

A fresh local database starts with one small course, a teacher who owns
it, and a student on a five-day streak who was last active yesterday.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

from lumina.schemas import Course, User, UserRole

DEMO_TEACHER_ID = "teacher-1"
DEMO_STUDENT_ID = "student-1"
DEMO_PASSWORD = "lumina"


def demo_users(today: Optional[date] = None) -> list[User]:
    """Demo teacher and student profiles."""
    today = today or datetime.now(timezone.utc).date()
    return [
        User(
            id=DEMO_TEACHER_ID,
            email="teacher@lumina.com",
            name="Prof. Albus",
            role=UserRole.TEACHER,
            streak=0,
            last_activity_date=None,
        ),
        User(
            id=DEMO_STUDENT_ID,
            email="student@lumina.com",
            name="Harry P.",
            role=UserRole.STUDENT,
            streak=5,
            last_activity_date=today - timedelta(days=1),
        ),
    ]


def demo_courses(now: Optional[datetime] = None) -> list[Course]:
    """The starter catalog."""
    now = now or datetime.now(timezone.utc)
    return [
        Course.model_validate({
            "id": "c-1",
            "teacherId": DEMO_TEACHER_ID,
            "title": "Introduction to Astrophysics",
            "description": "Learn the basics of stars, galaxies, and the universe.",
            "difficulty": "Beginner",
            "targetAudience": "High School Students",
            "estimatedDuration": "4 Weeks",
            "enrolledCount": 12,
            "tags": ["Science", "Space"],
            "createdAt": now,
            "modules": [
                {
                    "id": "m-1",
                    "title": "The Solar System",
                    "description": "Our immediate neighborhood.",
                    "lessons": [
                        {
                            "id": "l-1",
                            "title": "The Sun",
                            "content": "The sun is a star at the center of the Solar System...",
                            "durationMinutes": 10,
                            "quiz": [
                                {
                                    "id": "q-1",
                                    "question": "What is the Sun?",
                                    "options": ["Planet", "Star", "Moon", "Comet"],
                                    "correctAnswerIndex": 1,
                                }
                            ],
                        }
                    ],
                }
            ],
        })
    ]
