"""Cognitive-behavioral thought record models."""

from enum import Enum

from pydantic import Field, field_validator

from braineath.core.base import DatedRecord, OptionalText, Scale, Text


class CognitiveDistortion(str, Enum):
    """Common thinking traps identified in a thought record."""
    ALL_OR_NOTHING = "all-or-nothing"
    OVERGENERALIZATION = "overgeneralization"
    MENTAL_FILTER = "mental-filter"
    DISCOUNTING_POSITIVE = "discounting-positive"
    JUMPING_TO_CONCLUSIONS = "jumping-to-conclusions"
    MAGNIFICATION = "magnification"
    EMOTIONAL_REASONING = "emotional-reasoning"
    SHOULD_STATEMENTS = "should-statements"
    LABELING = "labeling"
    PERSONALIZATION = "personalization"
    CATASTROPHIZING = "catastrophizing"
    MIND_READING = "mind-reading"

    @property
    def label(self) -> str:
        return self.value.replace("-", " ").capitalize()

    @property
    def description(self) -> str:
        return _DISTORTION_INFO[self][0]

    @property
    def guided_question(self) -> str:
        """Question that helps challenge this distortion."""
        return _DISTORTION_INFO[self][1]


_DISTORTION_INFO = {
    CognitiveDistortion.ALL_OR_NOTHING: (
        "Seeing things in black and white, with no middle ground",
        "Is there a middle ground between these two extremes?",
    ),
    CognitiveDistortion.OVERGENERALIZATION: (
        "Drawing broad conclusions from a single event",
        "Is this really always the case, or just this time?",
    ),
    CognitiveDistortion.MENTAL_FILTER: (
        "Focusing only on the negative details",
        "What positive aspects of the situation am I leaving out?",
    ),
    CognitiveDistortion.DISCOUNTING_POSITIVE: (
        "Ignoring or downplaying positive experiences",
        "Would I dismiss this success if a friend achieved it?",
    ),
    CognitiveDistortion.JUMPING_TO_CONCLUSIONS: (
        "Interpreting situations without enough evidence",
        "What evidence do I actually have for this conclusion?",
    ),
    CognitiveDistortion.MAGNIFICATION: (
        "Exaggerating the importance of problems",
        "How much will this matter in a week, or a year?",
    ),
    CognitiveDistortion.EMOTIONAL_REASONING: (
        "Believing feelings reflect reality",
        "Just because I feel this way, does that make it true?",
    ),
    CognitiveDistortion.SHOULD_STATEMENTS: (
        "Using rigid 'I must' and 'I should' rules",
        "What would change if I replaced 'should' with 'would like to'?",
    ),
    CognitiveDistortion.LABELING: (
        "Attaching negative labels to yourself or others",
        "Am I judging a whole person from a single behavior?",
    ),
    CognitiveDistortion.PERSONALIZATION: (
        "Blaming yourself for events outside your control",
        "Which other factors contributed to this situation?",
    ),
    CognitiveDistortion.CATASTROPHIZING: (
        "Imagining the worst possible outcome",
        "What is the most likely outcome, rather than the worst?",
    ),
    CognitiveDistortion.MIND_READING: (
        "Assuming you know what others are thinking",
        "How could I check what they really think?",
    ),
}


def guided_questions(distortions: list[CognitiveDistortion]) -> list[str]:
    """Questions for the distortions identified, general ones when none are."""
    if not distortions:
        return [
            "What evidence supports this thought?",
            "What evidence goes against it?",
            "What would I tell a friend who had this thought?",
        ]
    return [distortion.guided_question for distortion in distortions]


class ThoughtRecord(DatedRecord):
    """A situation, the automatic thought it triggered and its reframing."""

    situation: Text
    automatic_thought: Text
    emotion_before: Text
    intensity_before: Scale
    cognitive_distortions: list[CognitiveDistortion] = Field(default_factory=list)
    balanced_thought: OptionalText = None
    emotion_after: OptionalText = None
    intensity_after: Scale | None = None
    action_plan: OptionalText = None

    @field_validator("cognitive_distortions")
    @classmethod
    def _unique_distortions(cls, value: list[CognitiveDistortion]) -> list[CognitiveDistortion]:
        return list(dict.fromkeys(value))

    def reframe(
        self,
        cognitive_distortions: list[CognitiveDistortion] | None = None,
        balanced_thought: str | None = None,
        emotion_after: str | None = None,
        intensity_after: int | None = None,
        action_plan: str | None = None,
    ) -> None:
        """Fill in the second half of the record; None leaves a field as is."""
        if cognitive_distortions is not None:
            self.cognitive_distortions = cognitive_distortions
        if balanced_thought is not None:
            self.balanced_thought = balanced_thought
        if emotion_after is not None:
            self.emotion_after = emotion_after
        if intensity_after is not None:
            self.intensity_after = intensity_after
        if action_plan is not None:
            self.action_plan = action_plan

    @property
    def intensity_change(self) -> int | None:
        """Drop in intensity after reframing (positive means relief)."""
        if self.intensity_after is None:
            return None
        return self.intensity_before - self.intensity_after

    @property
    def is_complete(self) -> bool:
        return self.balanced_thought is not None and self.intensity_after is not None
