"""
Streak calculator tests.
"""

from datetime import date, datetime, timedelta, timezone

from lumina.classroom import record_activity
from lumina.schemas import User, UserRole


def _user(streak=0, last=None):
    return User(id="u-1", name="Learner", role=UserRole.STUDENT, streak=streak, last_activity_date=last)


class TestRecordActivity:
    """Test streak updates on activity."""

    def test_first_activity_starts_streak(self):
        updated = record_activity(_user(), date(2026, 3, 10))
        assert updated.streak == 1
        assert updated.last_activity_date == date(2026, 3, 10)

    def test_consecutive_day_increments(self):
        updated = record_activity(_user(5, date(2026, 3, 9)), date(2026, 3, 10))
        assert updated.streak == 6
        assert updated.last_activity_date == date(2026, 3, 10)

    def test_same_day_unchanged(self):
        user = _user(5, date(2026, 3, 10))
        assert record_activity(user, date(2026, 3, 10)) is user

    def test_same_day_twice(self):
        first = record_activity(_user(5, date(2026, 3, 9)), date(2026, 3, 10))
        second = record_activity(first, date(2026, 3, 10))
        assert second.streak == first.streak == 6

    def test_gap_resets(self):
        updated = record_activity(_user(5, date(2026, 3, 7)), date(2026, 3, 10))
        assert updated.streak == 1
        assert updated.last_activity_date == date(2026, 3, 10)

    def test_future_last_activity_resets(self):
        updated = record_activity(_user(3, date(2026, 3, 12)), date(2026, 3, 10))
        assert updated.streak == 1

    def test_input_not_mutated(self):
        user = _user(2, date(2026, 3, 9))
        record_activity(user, date(2026, 3, 10))
        assert user.streak == 2
        assert user.last_activity_date == date(2026, 3, 9)


class TestCalendarDays:
    """Test day boundaries in the learner's calendar."""

    def test_across_midnight_counts_as_next_day(self):
        user = record_activity(_user(), datetime(2026, 3, 9, 23, 59, tzinfo=timezone.utc))
        updated = record_activity(user, datetime(2026, 3, 10, 0, 1, tzinfo=timezone.utc))
        assert updated.streak == 2

    def test_47_hours_over_two_midnights_breaks(self):
        start = datetime(2026, 3, 8, 23, 0, tzinfo=timezone.utc)
        user = record_activity(_user(), start)
        updated = record_activity(user, start + timedelta(hours=47))
        assert updated.streak == 1

    def test_daily_activity_over_a_week(self):
        user = _user()
        for offset in range(7):
            user = record_activity(user, date(2026, 3, 1) + timedelta(days=offset))
        assert user.streak == 7
