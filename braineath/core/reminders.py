"""Reminder scheduling driven by user preferences.

Only reads ``UserPreferences.notifications_enabled`` and
``UserPreferences.reminder_times``; it never modifies records.
"""

from datetime import datetime, timedelta

from braineath.core.preferences import UserPreferences
from braineath.utils.helpers import get_now


def upcoming_reminders(
    preferences: UserPreferences, count: int = 3, now: datetime | None = None
) -> list[datetime]:
    """The next ``count`` reminder moments strictly after now."""
    if not preferences.notifications_enabled or not preferences.reminder_times:
        return []

    now = now or get_now()
    upcoming: list[datetime] = []
    day = now.date()
    while len(upcoming) < count:
        for at in preferences.reminder_times:
            moment = datetime.combine(day, at)
            if moment > now:
                upcoming.append(moment)
                if len(upcoming) == count:
                    break
        day += timedelta(days=1)
    return upcoming


def next_reminder(preferences: UserPreferences, now: datetime | None = None) -> datetime | None:
    """The next reminder moment, or None when reminders are off."""
    reminders = upcoming_reminders(preferences, count=1, now=now)
    return reminders[0] if reminders else None
