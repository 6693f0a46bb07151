"""
Service tests over a local repository.

The clock is fixed so streak days are deterministic.
"""

import json

import pytest

from lumina.auth import LocalIdentityProvider
from lumina.classroom import editor
from lumina.errors import InvalidLessonReference, NotFound, QuizNotPassed, ValidationFailure
from lumina.repository import LocalCourseRepository
from lumina.schemas import UserRole
from lumina.services import AuthoringService, CourseGenerator, LearnerService, SessionManager

from conftest import DRAFT, NOW, TODAY, StubClient


@pytest.fixture
def learner(repo):
    return LearnerService(repo, clock=lambda: NOW)


@pytest.fixture
def authoring(repo):
    generator = CourseGenerator(StubClient(json.dumps(DRAFT)))
    return AuthoringService(repo, generator=generator, clock=lambda: NOW)


class TestLearnerService:
    """Test enrollment, completion and streak credit."""

    @pytest.mark.asyncio
    async def test_complete_lesson_credits_streak(self, repo, learner, course, student):
        await repo.create_course(course)
        await repo.save_profile(student)
        await learner.enroll(student.id, course.id)

        result = await learner.complete_lesson(student.id, course.id, "l-1-1")
        assert result.enrollment.progress == 50
        assert result.profile.streak == 6
        assert result.profile.last_activity_date == TODAY
        assert result.next_lesson.id == "l-2-1"
        assert not result.course_complete
        assert (await repo.get_profile(student.id)).streak == 6

    @pytest.mark.asyncio
    async def test_second_lesson_same_day_keeps_streak(self, repo, learner, course, student):
        await repo.create_course(course)
        await repo.save_profile(student)
        await learner.enroll(student.id, course.id)

        await learner.complete_lesson(student.id, course.id, "l-1-1")
        result = await learner.complete_lesson(student.id, course.id, "l-2-1")
        assert result.profile.streak == 6
        assert result.enrollment.progress == 100
        assert result.course_complete

    @pytest.mark.asyncio
    async def test_repeat_completion_is_noop(self, repo, learner, course, student):
        await repo.create_course(course)
        await repo.save_profile(student)
        await learner.enroll(student.id, course.id)
        first = await learner.complete_lesson(student.id, course.id, "l-1-1")

        again = await learner.complete_lesson(student.id, course.id, "l-1-1")
        assert again.profile is None
        assert again.enrollment == first.enrollment

    @pytest.mark.asyncio
    async def test_invalid_lesson_writes_nothing(self, repo, learner, course, student):
        await repo.create_course(course)
        await repo.save_profile(student)
        await learner.enroll(student.id, course.id)

        with pytest.raises(InvalidLessonReference):
            await learner.complete_lesson(student.id, course.id, "l-9-9")
        assert (await repo.get_profile(student.id)).streak == 5

    @pytest.mark.asyncio
    async def test_failed_quiz_writes_nothing(self, repo, learner, make_course, student):
        course = make_course(quiz=True)
        await repo.create_course(course)
        await repo.save_profile(student)
        await learner.enroll(student.id, course.id)

        with pytest.raises(QuizNotPassed) as exc:
            await learner.complete_lesson(student.id, course.id, "l-1-1", answers={"q-1-1": 0})
        assert exc.value.percent == 0
        assert (await repo.get_profile(student.id)).streak == 5
        assert (await repo.get_enrollment(student.id, course.id)).completed_lesson_ids == []

    @pytest.mark.asyncio
    async def test_unanswered_quiz_rejected(self, repo, learner, make_course, student):
        course = make_course(quiz=True)
        await repo.create_course(course)
        await repo.save_profile(student)
        await learner.enroll(student.id, course.id)

        with pytest.raises(QuizNotPassed) as exc:
            await learner.complete_lesson(student.id, course.id, "l-1-1")
        assert exc.value.unanswered == ["q-1-1"]
        assert (await repo.get_enrollment(student.id, course.id)).progress == 0

    @pytest.mark.asyncio
    async def test_passed_quiz_completes_lesson(self, repo, learner, make_course, student):
        course = make_course(quiz=True)
        await repo.create_course(course)
        await repo.save_profile(student)
        await learner.enroll(student.id, course.id)

        result = await learner.complete_lesson(student.id, course.id, "l-1-1", answers={"q-1-1": 1})
        assert result.quiz["passed"]
        assert result.enrollment.completed_lesson_ids == ["l-1-1"]
        assert result.profile.streak == 6

    @pytest.mark.asyncio
    async def test_not_enrolled(self, repo, learner, course, student):
        await repo.create_course(course)
        await repo.save_profile(student)
        with pytest.raises(NotFound):
            await learner.complete_lesson(student.id, course.id, "l-1-1")

    @pytest.mark.asyncio
    async def test_resume_lesson(self, repo, learner, course, student):
        await repo.create_course(course)
        await learner.enroll(student.id, course.id)
        assert (await learner.resume_lesson(student.id, course.id)).id == "l-1-1"

        await repo.complete_lesson(student.id, course.id, "l-1-1")
        assert (await learner.resume_lesson(student.id, course.id)).id == "l-2-1"

    @pytest.mark.asyncio
    async def test_record_login_skips_teachers(self, repo, learner, teacher):
        await repo.save_profile(teacher)
        assert (await learner.record_login(teacher)).streak == 0
        assert (await repo.get_profile(teacher.id)).last_activity_date is None

    @pytest.mark.asyncio
    async def test_dashboard(self, repo, learner, make_course, student):
        enrolled = make_course((1,), course_id="c-enrolled")
        other = make_course((1,), course_id="c-other")
        await repo.create_course(enrolled)
        await repo.create_course(other)
        await repo.save_profile(student)
        await learner.enroll(student.id, enrolled.id)
        await learner.complete_lesson(student.id, enrolled.id, "l-1-1")

        dashboard = await learner.dashboard(student.id)
        assert [c.id for c, _ in dashboard.enrolled] == ["c-enrolled"]
        assert [c.id for c in dashboard.available] == ["c-other"]
        assert dashboard.completed_courses == 1
        assert dashboard.streak == 6


class TestAuthoringService:
    """Test course generation and teacher edits."""

    @pytest.mark.asyncio
    async def test_generate_course_saves_valid_course(self, repo, authoring):
        course = await authoring.generate_course("teacher-1", "Black Holes", "Advanced", "Undergraduates", "2 Weeks")

        stored = await repo.get_course(course.id)
        assert stored.teacher_id == "teacher-1"
        assert stored.difficulty.value == "Advanced"
        assert stored.created_at == NOW
        assert len(stored.modules) == 2

    @pytest.mark.asyncio
    async def test_invalid_generation_saves_nothing(self, repo):
        bad = dict(DRAFT, modules=[])
        service = AuthoringService(repo, generator=CourseGenerator(StubClient(json.dumps(bad))))
        with pytest.raises(ValidationFailure):
            await service.generate_course("teacher-1", "x", "Beginner", "y", "z")
        assert await repo.list_courses() == []

    @pytest.mark.asyncio
    async def test_generation_not_configured(self, repo):
        with pytest.raises(RuntimeError):
            await AuthoringService(repo).draft_course("teacher-1", "x", "Beginner", "y", "z")

    @pytest.mark.asyncio
    async def test_save_rejects_empty_module(self, repo, authoring, course):
        await repo.create_course(course)
        with pytest.raises(ValidationFailure):
            await authoring.save_course(editor.add_module(course))

    @pytest.mark.asyncio
    async def test_save_edited_course(self, repo, authoring, course):
        await repo.create_course(course)
        edited = editor.update_course_fields(course, title="Renamed")
        await authoring.save_course(edited)
        assert (await repo.get_course(course.id)).title == "Renamed"

    @pytest.mark.asyncio
    async def test_delete_requires_owner(self, repo, authoring, course):
        await repo.create_course(course)
        with pytest.raises(PermissionError):
            await authoring.delete_course("teacher-2", course.id)

        await authoring.delete_course("teacher-1", course.id)
        assert await repo.list_courses() == []

    @pytest.mark.asyncio
    async def test_teacher_overview(self, repo, authoring, make_course):
        await repo.create_course(make_course((1,), course_id="c-a"))
        await repo.create_course(make_course((1,), course_id="c-b", teacher_id="teacher-2"))
        await repo.enroll("student-1", "c-a")
        await repo.enroll("student-2", "c-a")

        overview = await authoring.teacher_overview("teacher-1")
        assert overview["course_count"] == 1
        assert overview["total_students"] == 2


class TestSessionManager:
    """Test sign-in sessions and login streaks."""

    @pytest.mark.asyncio
    async def test_sign_in_credits_login_streak(self, tmp_path):
        repo = LocalCourseRepository(tmp_path / "lumina.db", seed=True)
        # seeded student was last active yesterday by the wall clock
        learner = LearnerService(repo)
        identity = LocalIdentityProvider(repo)
        manager = SessionManager(identity, learner)
        await manager.start()
        assert manager.current_user is None

        profile = await identity.sign_in("student@lumina.com", "lumina")
        assert manager.current_user.id == "student-1"
        assert manager.current_user.streak == 6
        assert profile.streak == 6

        await identity.sign_out()
        assert manager.current_user is None
        manager.stop()

    @pytest.mark.asyncio
    async def test_sign_up_starts_session(self, repo, learner):
        identity = LocalIdentityProvider(repo, demo_accounts=False)
        manager = SessionManager(identity, learner)
        await manager.start()

        result = await identity.sign_up("new@lumina.com", "secret", "New Student", UserRole.STUDENT)
        assert not result.confirmation_pending
        assert manager.current_user.id == result.profile.id
        assert manager.current_user.streak == 1
        assert manager.current_user.last_activity_date == TODAY
