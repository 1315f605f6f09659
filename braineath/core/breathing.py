"""Guided breathing models."""

from enum import Enum
from uuid import UUID

from pydantic import Field, field_validator

from braineath.core.base import DatedRecord, OptionalText, Scale


class BreathingPattern(str, Enum):
    """Named breathing techniques."""
    FOUR_SEVEN_EIGHT = "4-7-8"
    BOX = "box"
    COHERENT = "coherent"
    DEEP = "deep"
    QUICK_CALM = "quick-calm"

    @property
    def description(self) -> str:
        descriptions = {
            BreathingPattern.FOUR_SEVEN_EIGHT: "Inhale 4s, hold 7s, exhale 8s",
            BreathingPattern.BOX: "Inhale 4s, hold 4s, exhale 4s, pause 4s",
            BreathingPattern.COHERENT: "Breathe at a steady 5s rhythm",
            BreathingPattern.DEEP: "Slow, deep breaths",
            BreathingPattern.QUICK_CALM: "Quick two-minute technique",
        }
        return descriptions[self]

    @property
    def timings(self) -> tuple[float, float, float, float]:
        """(inhale, hold, exhale, pause) in seconds."""
        timings = {
            BreathingPattern.FOUR_SEVEN_EIGHT: (4.0, 7.0, 8.0, 0.0),
            BreathingPattern.BOX: (4.0, 4.0, 4.0, 4.0),
            BreathingPattern.COHERENT: (5.0, 0.0, 5.0, 0.0),
            BreathingPattern.DEEP: (6.0, 2.0, 8.0, 0.0),
            BreathingPattern.QUICK_CALM: (3.0, 1.0, 4.0, 0.0),
        }
        return timings[self]

    @property
    def cycle_seconds(self) -> float:
        """Length of one full breathing cycle."""
        return sum(self.timings)

    def cycles_for(self, duration_seconds: int) -> int:
        """Number of complete cycles that fit in a session of this length."""
        return int(duration_seconds // self.cycle_seconds)


class BreathingSession(DatedRecord):
    """A completed (or abandoned) breathing session."""

    breathing_pattern: BreathingPattern = BreathingPattern.FOUR_SEVEN_EIGHT
    duration: int = Field(default=0, ge=0)  # seconds
    completion_percentage: float = Field(default=100.0, allow_inf_nan=False)
    mood_before: Scale | None = None
    mood_after: Scale | None = None
    notes: OptionalText = None

    # One-to-one back-link, managed through the persistence context
    mood_entry_id: UUID | None = None

    @field_validator("completion_percentage")
    @classmethod
    def _clamp_completion(cls, value: float) -> float:
        return min(max(value, 0.0), 100.0)

    @property
    def minutes(self) -> int:
        """Whole minutes spent breathing."""
        return self.duration // 60

    @property
    def mood_change(self) -> int | None:
        """Mood improvement over the session, if both ends were rated."""
        if self.mood_before is None or self.mood_after is None:
            return None
        return self.mood_after - self.mood_before

    @property
    def is_complete(self) -> bool:
        return self.completion_percentage >= 100.0
