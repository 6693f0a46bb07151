"""
LocalCourseRepository - Courses, enrollments and profiles in SQLite.

Stores everything in a single file (default ~/.lumina/lumina.db):
- Courses, with the module tree kept as canonical JSON
- Enrollments keyed by (student_id, course_id)
- Profiles

Each call opens its own connection on a worker thread, so the event loop
never blocks on disk I/O.
"""

import asyncio
import json
import logging
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from lumina.classroom.progress import complete_lesson, compute_progress
from lumina.config import DEFAULT_DB_PATH
from lumina.errors import NotFound, RepositoryUnavailable
from lumina.schemas import Course, Enrollment, User
from lumina.seed import demo_courses, demo_users

from .base import CourseRepository

logger = logging.getLogger(__name__)


class LocalCourseRepository(CourseRepository):
    """
    Course repository backed by a local SQLite database.

    Read-modify-write operations (enroll, complete_lesson) run inside one
    immediate transaction, so concurrent calls cannot double count.
    """

    def __init__(self, db_path: Optional[Path] = None, seed: bool = False):
        """
        Initialize repository.

        Args:
            db_path: Path to the database (default: ~/.lumina/lumina.db)
            seed: Load the demo catalog and accounts into a new database
        """
        self.db_path = Path(db_path) if db_path else DEFAULT_DB_PATH
        self._ensure_database(seed)

    def _ensure_database(self, seed: bool):
        """Create database and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        conn = sqlite3.connect(str(self.db_path))
        try:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS courses (
                    id TEXT PRIMARY KEY,
                    teacher_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT NOT NULL DEFAULT '',
                    difficulty TEXT NOT NULL,
                    target_audience TEXT NOT NULL DEFAULT '',
                    estimated_duration TEXT NOT NULL DEFAULT '',
                    modules TEXT NOT NULL DEFAULT '[]',
                    enrolled_count INTEGER NOT NULL DEFAULT 0,
                    tags TEXT NOT NULL DEFAULT '[]',
                    created_at TEXT NOT NULL
                );

                CREATE TABLE IF NOT EXISTS enrollments (
                    student_id TEXT NOT NULL,
                    course_id TEXT NOT NULL,
                    progress INTEGER NOT NULL DEFAULT 0,
                    completed_lesson_ids TEXT NOT NULL DEFAULT '[]',
                    enrolled_at TEXT NOT NULL,
                    PRIMARY KEY (student_id, course_id)
                );

                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL DEFAULT '',
                    name TEXT NOT NULL,
                    role TEXT NOT NULL,
                    streak INTEGER NOT NULL DEFAULT 0,
                    last_activity_date TEXT
                );

                CREATE TABLE IF NOT EXISTS metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT
                );

                CREATE INDEX IF NOT EXISTS idx_enrollments_course
                ON enrollments(course_id);
            """)
            if seed:
                self._seed(conn)
            conn.commit()
        finally:
            conn.close()

    def _seed(self, conn: sqlite3.Connection):
        """Insert demo data once per database."""
        row = conn.execute("SELECT value FROM metadata WHERE key = 'seeded'").fetchone()
        if row:
            return
        for course in demo_courses():
            conn.execute(_INSERT_COURSE, _course_to_row(course))
        for user in demo_users():
            conn.execute(_UPSERT_PROFILE, _profile_to_row(user))
        conn.execute(
            "INSERT INTO metadata (key, value) VALUES ('seeded', ?)",
            (datetime.now(timezone.utc).isoformat(),)
        )
        logger.info("Seeded demo catalog into %s", self.db_path)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a new database connection."""
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        return conn

    async def _run(self, fn, *args):
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as e:
            logger.warning("Local database call %s failed: %s", fn.__name__, e)
            raise RepositoryUnavailable(f"Local database error: {e}") from e

    # -------------------------------------------------------------------------
    # Courses
    # -------------------------------------------------------------------------

    async def list_courses(self) -> list[Course]:
        return await self._run(self._list_courses)

    def _list_courses(self) -> list[Course]:
        conn = self._get_connection()
        try:
            cursor = conn.execute("SELECT * FROM courses ORDER BY created_at DESC")
            return [_course_from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    async def get_course(self, course_id: str) -> Course:
        return await self._run(self._get_course, course_id)

    def _get_course(self, course_id: str) -> Course:
        conn = self._get_connection()
        try:
            return _fetch_course(conn, course_id)
        finally:
            conn.close()

    async def create_course(self, course: Course) -> Course:
        return await self._run(self._create_course, course)

    def _create_course(self, course: Course) -> Course:
        conn = self._get_connection()
        try:
            try:
                conn.execute(_INSERT_COURSE, _course_to_row(course))
            except sqlite3.IntegrityError:
                raise ValueError(f"Course already exists: {course.id}")
            conn.commit()
            logger.info("Created course %s (%s)", course.id, course.title)
            return course
        finally:
            conn.close()

    async def update_course(self, course: Course) -> Course:
        return await self._run(self._update_course, course)

    def _update_course(self, course: Course) -> Course:
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            row = _course_to_row(course)
            cursor = conn.execute(
                """UPDATE courses SET
                     teacher_id = :teacher_id, title = :title, description = :description,
                     difficulty = :difficulty, target_audience = :target_audience,
                     estimated_duration = :estimated_duration, modules = :modules, tags = :tags
                   WHERE id = :id""",
                row
            )
            if cursor.rowcount == 0:
                raise NotFound("course", course.id)
            # Lessons may have been added or removed; keep stored progress derived
            for enrollment_row in conn.execute(
                "SELECT * FROM enrollments WHERE course_id = ?", (course.id,)
            ).fetchall():
                completed = json.loads(enrollment_row["completed_lesson_ids"])
                progress = compute_progress(completed, course)
                if progress != enrollment_row["progress"]:
                    conn.execute(
                        """UPDATE enrollments SET progress = ?
                           WHERE student_id = ? AND course_id = ?""",
                        (progress, enrollment_row["student_id"], course.id)
                    )
            stored = _fetch_course(conn, course.id)
            conn.commit()
            return stored
        finally:
            conn.close()

    async def delete_course(self, course_id: str) -> None:
        await self._run(self._delete_course, course_id)

    def _delete_course(self, course_id: str):
        conn = self._get_connection()
        try:
            conn.execute("DELETE FROM enrollments WHERE course_id = ?", (course_id,))
            conn.execute("DELETE FROM courses WHERE id = ?", (course_id,))
            conn.commit()
            logger.info("Deleted course %s", course_id)
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Enrollments
    # -------------------------------------------------------------------------

    async def list_enrollments(self, student_id: str) -> list[Enrollment]:
        return await self._run(self._list_enrollments, student_id)

    def _list_enrollments(self, student_id: str) -> list[Enrollment]:
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                """SELECT * FROM enrollments WHERE student_id = ?
                   ORDER BY enrolled_at""",
                (student_id,)
            )
            return [_enrollment_from_row(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    async def get_enrollment(self, student_id: str, course_id: str) -> Enrollment:
        return await self._run(self._get_enrollment, student_id, course_id)

    def _get_enrollment(self, student_id: str, course_id: str) -> Enrollment:
        conn = self._get_connection()
        try:
            enrollment = _fetch_enrollment(conn, student_id, course_id)
            if enrollment is None:
                raise NotFound("enrollment", f"{student_id}/{course_id}")
            return enrollment
        finally:
            conn.close()

    async def enroll(self, student_id: str, course_id: str) -> Enrollment:
        return await self._run(self._enroll, student_id, course_id)

    def _enroll(self, student_id: str, course_id: str) -> Enrollment:
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            if conn.execute("SELECT 1 FROM courses WHERE id = ?", (course_id,)).fetchone() is None:
                raise NotFound("course", course_id)

            existing = _fetch_enrollment(conn, student_id, course_id)
            if existing is not None:
                return existing

            enrollment = Enrollment(
                student_id=student_id,
                course_id=course_id,
                enrolled_at=datetime.now(timezone.utc),
            )
            conn.execute(_UPSERT_ENROLLMENT, _enrollment_to_row(enrollment))
            conn.execute(
                "UPDATE courses SET enrolled_count = enrolled_count + 1 WHERE id = ?",
                (course_id,)
            )
            conn.commit()
            logger.info("Enrolled %s in %s", student_id, course_id)
            return enrollment
        finally:
            conn.close()

    async def complete_lesson(self, student_id: str, course_id: str, lesson_id: str) -> Enrollment:
        return await self._run(self._complete_lesson, student_id, course_id, lesson_id)

    def _complete_lesson(self, student_id: str, course_id: str, lesson_id: str) -> Enrollment:
        conn = self._get_connection()
        try:
            conn.execute("BEGIN IMMEDIATE")
            course = _fetch_course(conn, course_id)
            enrollment = _fetch_enrollment(conn, student_id, course_id)
            if enrollment is None:
                raise NotFound("enrollment", f"{student_id}/{course_id}")

            updated = complete_lesson(enrollment, course, lesson_id)
            if updated is enrollment:
                return enrollment

            conn.execute(_UPSERT_ENROLLMENT, _enrollment_to_row(updated))
            conn.commit()
            logger.debug(
                "Lesson %s completed by %s, progress %d%%",
                lesson_id, student_id, updated.progress
            )
            return updated
        finally:
            conn.close()

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def get_profile(self, user_id: str) -> User:
        return await self._run(self._get_profile, user_id)

    def _get_profile(self, user_id: str) -> User:
        conn = self._get_connection()
        try:
            row = conn.execute("SELECT * FROM profiles WHERE id = ?", (user_id,)).fetchone()
            if not row:
                raise NotFound("profile", user_id)
            return _profile_from_row(row)
        finally:
            conn.close()

    async def save_profile(self, user: User) -> User:
        return await self._run(self._save_profile, user)

    def _save_profile(self, user: User) -> User:
        conn = self._get_connection()
        try:
            conn.execute(_UPSERT_PROFILE, _profile_to_row(user))
            conn.commit()
            return user
        finally:
            conn.close()


# -----------------------------------------------------------------------------
# Row mapping
# -----------------------------------------------------------------------------

_INSERT_COURSE = """
    INSERT INTO courses (id, teacher_id, title, description, difficulty, target_audience,
                         estimated_duration, modules, enrolled_count, tags, created_at)
    VALUES (:id, :teacher_id, :title, :description, :difficulty, :target_audience,
            :estimated_duration, :modules, :enrolled_count, :tags, :created_at)
"""

_UPSERT_ENROLLMENT = """
    INSERT INTO enrollments (student_id, course_id, progress, completed_lesson_ids, enrolled_at)
    VALUES (:student_id, :course_id, :progress, :completed_lesson_ids, :enrolled_at)
    ON CONFLICT(student_id, course_id) DO UPDATE SET
      progress = excluded.progress,
      completed_lesson_ids = excluded.completed_lesson_ids
"""

_UPSERT_PROFILE = """
    INSERT INTO profiles (id, email, name, role, streak, last_activity_date)
    VALUES (:id, :email, :name, :role, :streak, :last_activity_date)
    ON CONFLICT(id) DO UPDATE SET
      email = excluded.email,
      name = excluded.name,
      role = excluded.role,
      streak = excluded.streak,
      last_activity_date = excluded.last_activity_date
"""


def _course_to_row(course: Course) -> dict:
    data = course.model_dump(mode="json", by_alias=True)
    return {
        "id": course.id,
        "teacher_id": course.teacher_id,
        "title": course.title,
        "description": course.description,
        "difficulty": course.difficulty.value,
        "target_audience": course.target_audience,
        "estimated_duration": course.estimated_duration,
        "modules": json.dumps(data["modules"], ensure_ascii=False),
        "enrolled_count": course.enrolled_count,
        "tags": json.dumps(course.tags, ensure_ascii=False),
        "created_at": course.created_at.isoformat(),
    }


def _course_from_row(row: sqlite3.Row) -> Course:
    return Course.model_validate({
        "id": row["id"],
        "teacher_id": row["teacher_id"],
        "title": row["title"],
        "description": row["description"],
        "difficulty": row["difficulty"],
        "target_audience": row["target_audience"],
        "estimated_duration": row["estimated_duration"],
        "modules": json.loads(row["modules"] or "[]"),
        "enrolled_count": row["enrolled_count"],
        "tags": json.loads(row["tags"] or "[]"),
        "created_at": row["created_at"],
    })


def _fetch_course(conn: sqlite3.Connection, course_id: str) -> Course:
    row = conn.execute("SELECT * FROM courses WHERE id = ?", (course_id,)).fetchone()
    if not row:
        raise NotFound("course", course_id)
    return _course_from_row(row)


def _enrollment_to_row(enrollment: Enrollment) -> dict:
    return {
        "student_id": enrollment.student_id,
        "course_id": enrollment.course_id,
        "progress": enrollment.progress,
        "completed_lesson_ids": json.dumps(enrollment.completed_lesson_ids),
        "enrolled_at": enrollment.enrolled_at.isoformat(),
    }


def _enrollment_from_row(row: sqlite3.Row) -> Enrollment:
    return Enrollment(
        student_id=row["student_id"],
        course_id=row["course_id"],
        progress=row["progress"],
        completed_lesson_ids=json.loads(row["completed_lesson_ids"] or "[]"),
        enrolled_at=datetime.fromisoformat(row["enrolled_at"]),
    )


def _fetch_enrollment(conn: sqlite3.Connection, student_id: str, course_id: str) -> Optional[Enrollment]:
    row = conn.execute(
        "SELECT * FROM enrollments WHERE student_id = ? AND course_id = ?",
        (student_id, course_id)
    ).fetchone()
    return _enrollment_from_row(row) if row else None


def _profile_to_row(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "streak": user.streak,
        "last_activity_date": user.last_activity_date.isoformat() if user.last_activity_date else None,
    }


def _profile_from_row(row: sqlite3.Row) -> User:
    return User(
        id=row["id"],
        email=row["email"],
        name=row["name"],
        role=row["role"],
        streak=row["streak"],
        last_activity_date=row["last_activity_date"],
    )
