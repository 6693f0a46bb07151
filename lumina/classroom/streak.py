"""
Streak calculator - consecutive calendar days with learner activity.

Days are compared as calendar dates of the caller-supplied clock, not as
elapsed time: activity at 23:59 and again at 00:01 the next day continues
a streak, and a 47-hour gap spanning two midnights breaks it.
"""

from datetime import date, datetime, timedelta
from typing import Union

from lumina.schemas import User


def _as_day(moment: Union[date, datetime]) -> date:
    return moment.date() if isinstance(moment, datetime) else moment


def record_activity(user: User, now: Union[date, datetime]) -> User:
    """
    Credit a day of activity to a user.

    - Same day as the last activity: unchanged (one credit per day)
    - The day after the last activity: streak + 1
    - Anything else (first activity, a gap, a last day in the future): streak = 1

    Args:
        user: Current profile state
        now: Time of the activity, in the learner's calendar

    Returns:
        Updated profile, or the same object if today was already credited.
        The caller persists the result.
    """
    today = _as_day(now)
    last = user.last_activity_date

    if last == today:
        return user

    if last is not None and last == today - timedelta(days=1):
        streak = user.streak + 1
    else:
        streak = 1

    return user.model_copy(update={"streak": streak, "last_activity_date": today})
