"""Mood tracking models."""

from enum import Enum

from pydantic import BaseModel, Field, field_validator

from braineath.core.base import DatedRecord, OptionalText, Scale, Text, clean_list


class EmotionCategory(str, Enum):
    """Broad valence of an emotion."""
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Emotion(BaseModel):
    """A named emotion users can pick when logging their mood."""

    name: str
    category: EmotionCategory
    color: str  # hex
    typical_intensity: Scale
    description: str


EMOTIONS = [
    # Positive
    Emotion(name="Joyful", category=EmotionCategory.POSITIVE, color="#FFD700",
            typical_intensity=8, description="Happiness and contentment"),
    Emotion(name="Serene", category=EmotionCategory.POSITIVE, color="#87CEEB",
            typical_intensity=6, description="Inner peace and tranquility"),
    Emotion(name="Energetic", category=EmotionCategory.POSITIVE, color="#FF6347",
            typical_intensity=9, description="Full of vitality and drive"),
    Emotion(name="Confident", category=EmotionCategory.POSITIVE, color="#32CD32",
            typical_intensity=7, description="Feeling secure and self-assured"),
    Emotion(name="Grateful", category=EmotionCategory.POSITIVE, color="#DDA0DD",
            typical_intensity=6, description="Appreciation and thankfulness"),
    # Negative
    Emotion(name="Anxious", category=EmotionCategory.NEGATIVE, color="#FF4500",
            typical_intensity=7, description="Worry and nervousness"),
    Emotion(name="Sad", category=EmotionCategory.NEGATIVE, color="#4169E1",
            typical_intensity=6, description="Melancholy and sorrow"),
    Emotion(name="Stressed", category=EmotionCategory.NEGATIVE, color="#DC143C",
            typical_intensity=8, description="Tension and pressure"),
    Emotion(name="Frustrated", category=EmotionCategory.NEGATIVE, color="#FF69B4",
            typical_intensity=7, description="Irritation at obstacles"),
    Emotion(name="Exhausted", category=EmotionCategory.NEGATIVE, color="#696969",
            typical_intensity=5, description="Physical and mental fatigue"),
    # Neutral
    Emotion(name="Calm", category=EmotionCategory.NEUTRAL, color="#20B2AA",
            typical_intensity=4, description="Quiet tranquility"),
    Emotion(name="Thoughtful", category=EmotionCategory.NEUTRAL, color="#9370DB",
            typical_intensity=5, description="Deep reflection"),
    Emotion(name="Indifferent", category=EmotionCategory.NEUTRAL, color="#708090",
            typical_intensity=3, description="No particular emotion"),
    Emotion(name="Curious", category=EmotionCategory.NEUTRAL, color="#FF8C00",
            typical_intensity=6, description="Eager to learn and discover"),
    Emotion(name="Focused", category=EmotionCategory.NEUTRAL, color="#4682B4",
            typical_intensity=7, description="Attentive and concentrated"),
]


def find_emotion(name: str) -> Emotion | None:
    """Look up a catalogued emotion by name, ignoring case."""
    wanted = name.strip().lower()
    for emotion in EMOTIONS:
        if emotion.name.lower() == wanted:
            return emotion
    return None


class MoodEntry(DatedRecord):
    """A mood check-in."""

    primary_emotion: Text
    emotion_intensity: Scale = 5
    energy_level: Scale = 5
    stress_level: Scale = 0
    sleep_quality: Scale = 5
    notes: OptionalText = None
    triggers: list[str] = Field(default_factory=list)
    weather_impact: OptionalText = None

    @field_validator("triggers")
    @classmethod
    def _clean_triggers(cls, value: list[str]) -> list[str]:
        return clean_list(value)

    @property
    def category(self) -> EmotionCategory | None:
        """Valence of the primary emotion, if it is a catalogued one."""
        emotion = find_emotion(self.primary_emotion)
        return emotion.category if emotion else None
