"""Emergency (SOS) session models."""

import datetime as dt
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from braineath.core.base import DatedRecord, OptionalText, Scale, Text, clean_list


class TechniqueType(str, Enum):
    """Families of calming techniques."""
    BREATHING = "breathing"
    GROUNDING = "grounding"
    MINDFULNESS = "mindfulness"
    MOVEMENT = "movement"


class EmergencyTechnique(BaseModel):
    """A calming technique offered during an SOS session."""

    name: str
    description: str
    technique_type: TechniqueType
    minutes: int


TECHNIQUES = [
    EmergencyTechnique(
        name="Calming breath",
        description="Slow, deep breaths to settle the nervous system",
        technique_type=TechniqueType.BREATHING,
        minutes=3,
    ),
    EmergencyTechnique(
        name="5-4-3-2-1 grounding",
        description="Reconnect with the present moment through your senses",
        technique_type=TechniqueType.GROUNDING,
        minutes=5,
    ),
    EmergencyTechnique(
        name="Mindfulness",
        description="Guided meditation to find calm again",
        technique_type=TechniqueType.MINDFULNESS,
        minutes=5,
    ),
    EmergencyTechnique(
        name="Body release",
        description="Gentle movements to let tension go",
        technique_type=TechniqueType.MOVEMENT,
        minutes=3,
    ),
]

GROUNDING_STEPS = [
    "Name 5 things you can see",
    "Name 4 things you can touch",
    "Name 3 things you can hear",
    "Name 2 things you can smell",
    "Name 1 thing you can taste",
]


def find_technique(name: str) -> EmergencyTechnique | None:
    """Look up a technique by name, ignoring case."""
    wanted = name.strip().lower()
    for technique in TECHNIQUES:
        if technique.name.lower() == wanted:
            return technique
    return None


def trigger_emotion_for(distress: int) -> str:
    """Label the emotion behind a distress level."""
    if distress >= 8:
        return "Panic"
    elif distress >= 6:
        return "Intense anxiety"
    elif distress >= 4:
        return "Stress"
    return "Worry"


class EmergencySession(DatedRecord):
    """An SOS session started at a moment of acute distress."""

    trigger_emotion: Text
    intensity_before: Scale
    techniques_used: list[str] = Field(default_factory=list)
    duration: int = Field(default=0, ge=0)  # seconds
    intensity_after: Scale | None = None
    notes: OptionalText = None

    @field_validator("techniques_used")
    @classmethod
    def _clean_techniques(cls, value: list[str]) -> list[str]:
        return clean_list(value)

    @classmethod
    def start(cls, distress: int) -> "EmergencySession":
        """Open a session for the given distress level."""
        return cls(trigger_emotion=trigger_emotion_for(distress), intensity_before=distress)

    def record_technique(self, name: str, now: dt.datetime | None = None) -> None:
        """Note a technique as used and refresh the session duration."""
        self.techniques_used = [*self.techniques_used, name]
        now = now or dt.datetime.now()
        self.duration = max(int((now - self.date).total_seconds()), 0)

    @property
    def relief(self) -> int | None:
        """Drop in distress over the session."""
        if self.intensity_after is None:
            return None
        return self.intensity_before - self.intensity_after
