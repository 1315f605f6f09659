"""User preference model."""

import datetime as dt
from enum import Enum

from pydantic import Field, field_validator

from braineath.core.base import Record
from braineath.core.breathing import BreathingPattern


class Theme(str, Enum):
    ADAPTIVE = "adaptive"
    LIGHT = "light"
    DARK = "dark"


class PrivacyLevel(str, Enum):
    STANDARD = "standard"
    HIGH = "high"


class UserPreferences(Record):
    """Per-user settings. There is a single record per store."""

    preferred_theme: Theme = Theme.ADAPTIVE
    notifications_enabled: bool = True
    reminder_times: list[dt.time] = Field(default_factory=list)
    preferred_breathing_pattern: BreathingPattern | None = None
    sound_enabled: bool = True
    haptic_enabled: bool = True
    privacy_level: PrivacyLevel = PrivacyLevel.HIGH

    @field_validator("reminder_times")
    @classmethod
    def _sorted_times(cls, value: list[dt.time]) -> list[dt.time]:
        return sorted({t.replace(second=0, microsecond=0) for t in value})

    @classmethod
    def defaults(cls) -> "UserPreferences":
        """Preferences for a new user: adaptive theme, everything on, high privacy."""
        return cls()

    def add_reminder(self, at: dt.time) -> None:
        self.reminder_times = [*self.reminder_times, at]

    def remove_reminder(self, at: dt.time) -> bool:
        """Drop a reminder time, returns False if it was not set."""
        at = at.replace(second=0, microsecond=0)
        if at not in self.reminder_times:
            return False
        self.reminder_times = [t for t in self.reminder_times if t != at]
        return True
