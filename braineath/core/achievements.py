"""Achievement model and milestone catalogue."""

import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field, model_validator

from braineath.core.base import Record, Text
from braineath.core.breathing import BreathingSession
from braineath.core.insights import streak_days
from braineath.core.journal import DailyIntention, GratitudeEntry
from braineath.core.mood import MoodEntry
from braineath.core.thought import ThoughtRecord
from braineath.utils.helpers import get_now


class AchievementType(str, Enum):
    """What kind of activity an achievement counts."""
    BREATHING = "breathing"
    MOOD = "mood"
    GRATITUDE = "gratitude"
    INTENTION = "intention"
    THOUGHT = "thought"
    STREAK = "streak"


class Achievement(Record):
    """Progress toward a usage milestone.

    ``progress`` is clamped to ``required_progress``. The achievement unlocks
    when the threshold is reached and ``date_earned`` is stamped at that
    moment. Earned achievements stay earned: the date can't be cleared or
    replaced, and raising ``required_progress`` afterwards lifts progress to
    the new threshold instead of locking the achievement again.
    """

    title: Text
    description: str = ""
    achievement_type: AchievementType
    is_unlocked: bool = False
    progress: int = Field(default=0, ge=0)
    required_progress: int = Field(default=1, ge=1)
    date_earned: dt.datetime | None = None

    def __setattr__(self, name: str, value) -> None:
        if name == "date_earned" and value != self.date_earned:
            raise ValueError("date_earned is stamped on unlock and cannot be changed")
        super().__setattr__(name, value)

    @model_validator(mode="after")
    def _settle(self) -> "Achievement":
        # Written through __dict__ so normalizing does not re-enter validation
        values = self.__dict__
        if values["date_earned"] is not None:
            values["progress"] = max(values["progress"], values["required_progress"])
        if values["progress"] > values["required_progress"]:
            values["progress"] = values["required_progress"]
        reached = values["progress"] >= values["required_progress"]
        values["is_unlocked"] = reached
        if reached and values["date_earned"] is None:
            values["date_earned"] = dt.datetime.now()
        return self

    def set_progress(self, value: int) -> bool:
        """Set progress, returns True if this call unlocked the achievement."""
        was_unlocked = self.is_unlocked
        self.progress = max(value, 0)
        self._settle()
        return self.is_unlocked and not was_unlocked

    def advance(self, amount: int = 1) -> bool:
        """Add to progress, returns True if this call unlocked the achievement."""
        return self.set_progress(self.progress + amount)

    @property
    def percent(self) -> float:
        return self.progress / self.required_progress * 100


class AchievementTemplate(BaseModel):
    """Catalogue definition an Achievement record is created from."""

    title: str
    description: str
    achievement_type: AchievementType
    required_progress: int

    def create(self) -> Achievement:
        return Achievement(
            title=self.title,
            description=self.description,
            achievement_type=self.achievement_type,
            required_progress=self.required_progress,
        )


AVAILABLE_ACHIEVEMENTS = [
    AchievementTemplate(
        title="First Breath",
        description="Complete your first breathing session",
        achievement_type=AchievementType.BREATHING,
        required_progress=1,
    ),
    AchievementTemplate(
        title="First Step",
        description="Log your first mood entry",
        achievement_type=AchievementType.MOOD,
        required_progress=1,
    ),
    AchievementTemplate(
        title="Three-Day Streak",
        description="Use Braineath three days in a row",
        achievement_type=AchievementType.STREAK,
        required_progress=3,
    ),
    AchievementTemplate(
        title="Weekly Ritual",
        description="Use Braineath seven days in a row",
        achievement_type=AchievementType.STREAK,
        required_progress=7,
    ),
    AchievementTemplate(
        title="Thankful Heart",
        description="Write 10 gratitude entries",
        achievement_type=AchievementType.GRATITUDE,
        required_progress=10,
    ),
    AchievementTemplate(
        title="Intentional",
        description="Complete 5 daily intentions",
        achievement_type=AchievementType.INTENTION,
        required_progress=5,
    ),
    AchievementTemplate(
        title="Reframer",
        description="Finish 5 thought records",
        achievement_type=AchievementType.THOUGHT,
        required_progress=5,
    ),
    AchievementTemplate(
        title="Zen Master",
        description="Complete 50 breathing sessions",
        achievement_type=AchievementType.BREATHING,
        required_progress=50,
    ),
]


def measure_progress(achievement_type: AchievementType, totals: dict[AchievementType, int]) -> int:
    """Current progress for an achievement type from activity totals."""
    return totals.get(achievement_type, 0)


def activity_totals(context, now: dt.datetime | None = None) -> dict[AchievementType, int]:
    """Activity counts achievements measure, read from a persistence context."""
    moods = context.fetch(MoodEntry)
    sessions = context.fetch(BreathingSession)
    gratitudes = context.fetch(GratitudeEntry)
    active_days = {record.day for record in [*moods, *sessions, *gratitudes]}
    today = (now or get_now()).date()
    return {
        AchievementType.BREATHING: len(sessions),
        AchievementType.MOOD: len(moods),
        AchievementType.GRATITUDE: len(gratitudes),
        AchievementType.INTENTION: context.count(DailyIntention, is_completed=True),
        AchievementType.THOUGHT: context.count(ThoughtRecord, predicate=lambda r: r.is_complete),
        AchievementType.STREAK: streak_days(active_days, today),
    }


def refresh_achievements(context, now: dt.datetime | None = None) -> list[Achievement]:
    """Bring every catalogue achievement up to date.

    Missing achievements are created in the context. Progress only moves
    forward, so an earned achievement stays earned. Nothing is saved here.

    Returns:
        Achievements unlocked by this refresh.
    """
    totals = activity_totals(context, now)
    existing = {achievement.title: achievement for achievement in context.fetch(Achievement)}
    unlocked = []
    for template in AVAILABLE_ACHIEVEMENTS:
        achievement = existing.get(template.title)
        if achievement is None:
            achievement = context.create(template.create())
        measured = measure_progress(template.achievement_type, totals)
        if measured > achievement.progress and achievement.set_progress(measured):
            unlocked.append(achievement)
    return unlocked
