"""
RemoteCourseRepository - Courses, enrollments and profiles over PostgREST.

Talks to a Supabase-style REST endpoint (``{url}/rest/v1/{table}``).
Tables use snake_case columns; the module tree is a JSON column holding
the canonical camelCase form. Rows are translated here so the rest of
Lumina only ever sees the schema models.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from lumina.classroom.progress import complete_lesson, compute_progress
from lumina.config import DEFAULT_HTTP_TIMEOUT
from lumina.errors import NotFound, RepositoryUnavailable
from lumina.schemas import Course, Enrollment, User

from .base import CourseRepository

logger = logging.getLogger(__name__)

COURSES = "courses"
ENROLLMENTS = "enrollments"
PROFILES = "profiles"
ENROLL_COUNT_ATTEMPTS = 5


class RemoteCourseRepository(CourseRepository):
    """
    Course repository backed by a remote relational store.

    Read-modify-write operations read fresh state immediately before
    writing; there is no cross-request locking.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: Optional[str] = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize repository.

        Args:
            base_url: Project URL, e.g. https://xyz.supabase.co
            api_key: Anonymous API key
            access_token: Signed-in user's token (defaults to the API key)
            timeout: Request timeout in seconds
            client: Pre-built client (tests inject a MockTransport)
        """
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def set_access_token(self, access_token: Optional[str]):
        """Act on behalf of a signed-in user (None reverts to the API key)."""
        self.access_token = access_token

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, prefer: Optional[str] = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.access_token or self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[dict[str, str]] = None,
        json: Any = None,
        prefer: Optional[str] = None,
    ) -> list[dict]:
        """
        Issue one REST call and return the decoded rows.

        Raises:
            ValueError: on a uniqueness conflict (409)
            RepositoryUnavailable: on transport errors and other non-2xx replies
        """
        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = await self._client.request(
                method, url, params=params, json=json, headers=self._headers(prefer)
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, table, e)
            raise RepositoryUnavailable(f"{method} {table} failed: {e}") from e

        if response.status_code == 409:
            raise ValueError(f"Conflicting {table} record: {response.text[:200]}")
        if response.status_code >= 400:
            logger.warning("%s %s returned %d: %s", method, table, response.status_code, response.text[:200])
            raise RepositoryUnavailable(
                f"{method} {table} returned {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return []
        try:
            data = response.json()
        except ValueError as e:
            raise RepositoryUnavailable(f"{method} {table} returned invalid JSON") from e
        return data if isinstance(data, list) else [data]

    # -------------------------------------------------------------------------
    # Courses
    # -------------------------------------------------------------------------

    async def list_courses(self) -> list[Course]:
        rows = await self._request("GET", COURSES, {"select": "*", "order": "created_at.desc"})
        return [_course_from_row(row) for row in rows]

    async def get_course(self, course_id: str) -> Course:
        rows = await self._request("GET", COURSES, {"select": "*", "id": f"eq.{course_id}"})
        if not rows:
            raise NotFound("course", course_id)
        return _course_from_row(rows[0])

    async def create_course(self, course: Course) -> Course:
        rows = await self._request(
            "POST", COURSES, json=_course_to_row(course), prefer="return=representation"
        )
        logger.info("Created course %s (%s)", course.id, course.title)
        return _course_from_row(rows[0]) if rows else course

    async def update_course(self, course: Course) -> Course:
        rows = await self._request(
            "PATCH", COURSES,
            params={"id": f"eq.{course.id}"},
            json=_course_content_row(course),
            prefer="return=representation",
        )
        if not rows:
            raise NotFound("course", course.id)

        # Lessons may have been added or removed; keep stored progress derived
        enrollments = await self._request(
            "GET", ENROLLMENTS, {"select": "*", "course_id": f"eq.{course.id}"}
        )
        for row in enrollments:
            enrollment = _enrollment_from_row(row)
            progress = compute_progress(enrollment.completed_lesson_ids, course)
            if progress != enrollment.progress:
                await self._request(
                    "PATCH", ENROLLMENTS,
                    params=_enrollment_key(enrollment.student_id, course.id),
                    json={"progress": progress},
                )
        return _course_from_row(rows[0])

    async def delete_course(self, course_id: str) -> None:
        await self._request("DELETE", ENROLLMENTS, params={"course_id": f"eq.{course_id}"})
        await self._request("DELETE", COURSES, params={"id": f"eq.{course_id}"})
        logger.info("Deleted course %s", course_id)

    # -------------------------------------------------------------------------
    # Enrollments
    # -------------------------------------------------------------------------

    async def list_enrollments(self, student_id: str) -> list[Enrollment]:
        rows = await self._request(
            "GET", ENROLLMENTS,
            {"select": "*", "student_id": f"eq.{student_id}", "order": "enrolled_at.asc"},
        )
        return [_enrollment_from_row(row) for row in rows]

    async def _find_enrollment(self, student_id: str, course_id: str) -> Optional[Enrollment]:
        rows = await self._request(
            "GET", ENROLLMENTS, {"select": "*", **_enrollment_key(student_id, course_id)}
        )
        return _enrollment_from_row(rows[0]) if rows else None

    async def get_enrollment(self, student_id: str, course_id: str) -> Enrollment:
        enrollment = await self._find_enrollment(student_id, course_id)
        if enrollment is None:
            raise NotFound("enrollment", f"{student_id}/{course_id}")
        return enrollment

    async def enroll(self, student_id: str, course_id: str) -> Enrollment:
        existing = await self._find_enrollment(student_id, course_id)
        if existing is not None:
            return existing

        await self.get_course(course_id)
        enrollment = Enrollment(
            student_id=student_id,
            course_id=course_id,
            enrolled_at=_utcnow(),
        )
        try:
            rows = await self._request(
                "POST", ENROLLMENTS,
                json=_enrollment_to_row(enrollment),
                prefer="return=representation",
            )
        except ValueError:
            # Another session inserted the same pair first; it did the counting
            return await self.get_enrollment(student_id, course_id)

        await self._increment_enrolled_count(course_id)
        logger.info("Enrolled %s in %s", student_id, course_id)
        return _enrollment_from_row(rows[0]) if rows else enrollment

    async def _increment_enrolled_count(self, course_id: str) -> None:
        # Compare-and-set on the value just read; a concurrent enroll makes the
        # PATCH match no row and we re-read.
        for _ in range(ENROLL_COUNT_ATTEMPTS):
            current = await self.get_course(course_id)
            rows = await self._request(
                "PATCH", COURSES,
                params={
                    "id": f"eq.{course_id}",
                    "enrolled_count": f"eq.{current.enrolled_count}",
                },
                json={"enrolled_count": current.enrolled_count + 1},
                prefer="return=representation",
            )
            if rows:
                return
        logger.warning(
            "Gave up counting an enrollment in %s after %d attempts",
            course_id, ENROLL_COUNT_ATTEMPTS,
        )

    async def complete_lesson(self, student_id: str, course_id: str, lesson_id: str) -> Enrollment:
        course = await self.get_course(course_id)
        enrollment = await self.get_enrollment(student_id, course_id)

        updated = complete_lesson(enrollment, course, lesson_id)
        if updated is enrollment:
            return enrollment

        await self._request(
            "PATCH", ENROLLMENTS,
            params=_enrollment_key(student_id, course_id),
            json={
                "completed_lesson_ids": updated.completed_lesson_ids,
                "progress": updated.progress,
            },
        )
        logger.debug("Lesson %s completed by %s, progress %d%%", lesson_id, student_id, updated.progress)
        return updated

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    async def get_profile(self, user_id: str) -> User:
        rows = await self._request("GET", PROFILES, {"select": "*", "id": f"eq.{user_id}"})
        if not rows:
            raise NotFound("profile", user_id)
        return _profile_from_row(rows[0])

    async def save_profile(self, user: User) -> User:
        rows = await self._request(
            "POST", PROFILES,
            json=_profile_to_row(user),
            prefer="resolution=merge-duplicates,return=representation",
        )
        return _profile_from_row(rows[0]) if rows else user


# -----------------------------------------------------------------------------
# Row mapping
# -----------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _enrollment_key(student_id: str, course_id: str) -> dict[str, str]:
    return {"student_id": f"eq.{student_id}", "course_id": f"eq.{course_id}"}


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
        "modules": data["modules"],
        "enrolled_count": course.enrolled_count,
        "tags": list(course.tags),
        "created_at": data["createdAt"],
    }


def _course_content_row(course: Course) -> dict:
    """Authored columns only; the store owns enrolled_count and created_at."""
    row = _course_to_row(course)
    del row["enrolled_count"], row["created_at"]
    return row


def _course_from_row(row: dict) -> Course:
    return Course.model_validate({
        "id": row["id"],
        "teacher_id": row["teacher_id"],
        "title": row["title"],
        "description": row.get("description") or "",
        "difficulty": row["difficulty"],
        "target_audience": row.get("target_audience") or "",
        "estimated_duration": row.get("estimated_duration") or "",
        "modules": row.get("modules") or [],
        "enrolled_count": row.get("enrolled_count") or 0,
        "tags": row.get("tags") or [],
        "created_at": row["created_at"],
    })


def _enrollment_to_row(enrollment: Enrollment) -> dict:
    return {
        "student_id": enrollment.student_id,
        "course_id": enrollment.course_id,
        "progress": enrollment.progress,
        "completed_lesson_ids": list(enrollment.completed_lesson_ids),
        "enrolled_at": enrollment.enrolled_at.isoformat(),
    }


def _enrollment_from_row(row: dict) -> Enrollment:
    return Enrollment(
        student_id=row["student_id"],
        course_id=row["course_id"],
        progress=row.get("progress") or 0,
        completed_lesson_ids=row.get("completed_lesson_ids") or [],
        enrolled_at=row["enrolled_at"],
    )


def _profile_to_row(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "name": user.name,
        "role": user.role.value,
        "streak": user.streak,
        "last_activity_date": user.last_activity_date.isoformat() if user.last_activity_date else None,
    }


def _profile_from_row(row: dict) -> User:
    return User(
        id=row["id"],
        email=row.get("email") or "",
        name=row.get("name") or "",
        role=row["role"],
        streak=row.get("streak") or 0,
        last_activity_date=row.get("last_activity_date"),
    )
