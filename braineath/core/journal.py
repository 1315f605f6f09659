"""Gratitude journal and daily intention models."""

from braineath.core.base import DatedRecord, OptionalText, Text
from braineath.utils.helpers import format_date, get_today

GRATITUDE_CATEGORIES = ["Family", "Nature", "Small pleasures", "Work", "Moments", "Health"]

INTENTION_CATEGORIES = ["Wellbeing", "Relationships", "Productivity", "Gratitude", "Health", "Creativity"]


class GratitudeEntry(DatedRecord):
    """Something the user is grateful for."""

    gratitude_text: Text
    category: OptionalText = None
    emotion_generated: OptionalText = None
    is_private: bool = True


class DailyIntention(DatedRecord):
    """An intention set for the day, with an optional closing reflection."""

    intention_text: Text
    category: OptionalText = None
    is_completed: bool = False
    reflection: OptionalText = None

    def toggle_completed(self) -> bool:
        """Flip completion, returns the new state.

        Completing an intention without a reflection records a default one.
        """
        self.is_completed = not self.is_completed
        if self.is_completed and self.reflection is None:
            self.reflection = f"Completed on {format_date(get_today())}"
        return self.is_completed
