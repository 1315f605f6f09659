"""Read-only statistics derived from recorded entries."""

from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field

from braineath.core.base import SCALE_MAX, SCALE_MIN, DatedRecord
from braineath.core.breathing import BreathingSession
from braineath.core.journal import DailyIntention, GratitudeEntry
from braineath.core.mood import EmotionCategory, MoodEntry
from braineath.core.thought import CognitiveDistortion, ThoughtRecord
from braineath.utils.config import config
from braineath.utils.helpers import days_ago, format_date, get_now

# Phrases that often signal an unhelpful automatic thought
THOUGHT_PATTERNS = [
    "i'm not",
    "i can't",
    "it's terrible",
    "everyone",
    "never",
    "always",
    "nobody",
]


class BreathingStats(BaseModel):
    total_sessions: int = 0
    total_minutes: int = 0
    minutes_this_week: int = 0
    streak_days: int = 0
    average_mood_change: float | None = None


class GratitudeStats(BaseModel):
    total_entries: int = 0
    entries_this_week: int = 0
    current_streak: int = 0
    top_category: str | None = None


class IntentionStats(BaseModel):
    total: int = 0
    completed: int = 0
    this_week: int = 0

    @property
    def completion_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.completed / self.total * 100


class ThoughtStats(BaseModel):
    total_records: int = 0
    records_this_week: int = 0
    distinct_distortions: int = 0
    most_common_distortion: CognitiveDistortion | None = None
    average_intensity_drop: float | None = None


def streak_days(days: Iterable[date], today: date | None = None) -> int:
    """Count consecutive days, ending today, that have at least one entry."""
    logged = set(days)
    current = today or get_now().date()
    streak = 0
    while current in logged:
        streak += 1
        current -= timedelta(days=1)
    return streak


def count_since(records: Iterable[DatedRecord], days: int, now: datetime | None = None) -> int:
    """Number of records dated within the last ``days`` days."""
    cutoff = days_ago(days, now)
    return sum(1 for record in records if record.date >= cutoff)


def mood_trend(
    entries: Iterable[MoodEntry], days: int = 7, now: datetime | None = None
) -> list[tuple[date, float]]:
    """Average emotion intensity per day over the last ``days`` days, oldest first."""
    cutoff = days_ago(days, now)
    per_day: dict[date, list[int]] = {}
    for entry in entries:
        if entry.date >= cutoff:
            per_day.setdefault(entry.day, []).append(entry.emotion_intensity)
    return sorted(
        (day, sum(values) / len(values)) for day, values in per_day.items()
    )


def breathing_stats(sessions: Sequence[BreathingSession], now: datetime | None = None) -> BreathingStats:
    """Totals, weekly minutes and streak for breathing sessions."""
    now = now or get_now()
    cutoff = days_ago(config.week_days, now)
    changes = [s.mood_change for s in sessions if s.mood_change is not None]
    return BreathingStats(
        total_sessions=len(sessions),
        total_minutes=sum(s.minutes for s in sessions),
        minutes_this_week=sum(s.minutes for s in sessions if s.date >= cutoff),
        streak_days=streak_days((s.day for s in sessions), now.date()),
        average_mood_change=sum(changes) / len(changes) if changes else None,
    )


def gratitude_stats(entries: Sequence[GratitudeEntry], now: datetime | None = None) -> GratitudeStats:
    now = now or get_now()
    categories = Counter(e.category for e in entries if e.category)
    return GratitudeStats(
        total_entries=len(entries),
        entries_this_week=count_since(entries, config.week_days, now),
        current_streak=streak_days((e.day for e in entries), now.date()),
        top_category=categories.most_common(1)[0][0] if categories else None,
    )


def intention_stats(intentions: Sequence[DailyIntention], now: datetime | None = None) -> IntentionStats:
    return IntentionStats(
        total=len(intentions),
        completed=sum(1 for i in intentions if i.is_completed),
        this_week=count_since(intentions, config.week_days, now),
    )


def thought_stats(records: Sequence[ThoughtRecord], now: datetime | None = None) -> ThoughtStats:
    distortions = Counter(d for r in records for d in r.cognitive_distortions)
    drops = [r.intensity_change for r in records if r.intensity_change is not None]
    return ThoughtStats(
        total_records=len(records),
        records_this_week=count_since(records, config.week_days, now),
        distinct_distortions=len(distortions),
        most_common_distortion=distortions.most_common(1)[0][0] if distortions else None,
        average_intensity_drop=sum(drops) / len(drops) if drops else None,
    )


def thought_patterns(records: Iterable[ThoughtRecord]) -> dict[str, int]:
    """How often each unhelpful phrase shows up in automatic thoughts."""
    counts: Counter[str] = Counter()
    for record in records:
        thought = record.automatic_thought.lower()
        for pattern in THOUGHT_PATTERNS:
            if pattern in thought:
                counts[pattern] += 1
    return dict(counts)


def todays_intention(intentions: Iterable[DailyIntention], today: date | None = None) -> DailyIntention | None:
    """The most recent intention set today, if any."""
    today = today or get_now().date()
    todays = [i for i in intentions if i.day == today]
    return max(todays, key=lambda i: i.date) if todays else None


def export_gratitudes(entries: Iterable[GratitudeEntry]) -> str:
    """Plain-text export of gratitude entries, oldest first."""
    lines = ["My gratitude journal", ""]
    for entry in sorted(entries, key=lambda e: e.date):
        category = f" [{entry.category}]" if entry.category else ""
        lines.append(f"{format_date(entry.day)}{category}: {entry.gratitude_text}")
    return "\n".join(lines)


class WellnessLevel(str, Enum):
    """Bands of the 0-100 daily wellness score."""
    STRUGGLING = "struggling"
    CHALLENGING = "challenging"
    STABLE = "stable"
    GOOD = "good"
    EXCELLENT = "excellent"

    @classmethod
    def for_score(cls, score: int) -> "WellnessLevel":
        if score < 30:
            return cls.STRUGGLING
        if score < 50:
            return cls.CHALLENGING
        if score < 70:
            return cls.STABLE
        if score < 85:
            return cls.GOOD
        return cls.EXCELLENT

    @property
    def message(self) -> str:
        return _WELLNESS_MESSAGES[self]


_WELLNESS_MESSAGES = {
    WellnessLevel.STRUGGLING: "Take care of yourself today. Try a breathing session or talk to someone.",
    WellnessLevel.CHALLENGING: "Hard days are part of life. Be kind to yourself.",
    WellnessLevel.STABLE: "You are keeping a good balance. Keep up your habits.",
    WellnessLevel.GOOD: "A good day. Your wellbeing is on the right track.",
    WellnessLevel.EXCELLENT: "Wonderful. You are glowing with wellbeing today.",
}


class DailyWellness(BaseModel):
    """One day's check-ins and practice rolled into a wellness score.

    The four ratings are on the 0-10 scale with higher meaning better, so
    ``calm_level`` is the inverse of the logged stress level.
    """

    day: date
    overall_mood: int = 5
    energy_level: int = 5
    calm_level: int = 5
    sleep_quality: int = 5
    mindfulness_minutes: int = 0
    breathing_sessions_completed: int = 0
    gratitude_entries_count: int = 0
    thought_records_count: int = 0

    @property
    def wellness_score(self) -> int:
        """Average rating scaled by 8, plus up to 20 points for mindful minutes, capped at 100."""
        ratings = [self.overall_mood, self.energy_level, self.calm_level, self.sleep_quality]
        average = sum(ratings) // len(ratings)
        bonus = min(20, self.mindfulness_minutes // 5)
        return min(100, average * 8 + bonus)

    @property
    def wellness_level(self) -> WellnessLevel:
        return WellnessLevel.for_score(self.wellness_score)


class InsightCategory(str, Enum):
    MOOD = "mood"
    ENERGY = "energy"
    STRESS = "stress"
    SLEEP = "sleep"
    MINDFULNESS = "mindfulness"


class WellnessInsight(BaseModel):
    title: str
    description: str
    actionable: str
    category: InsightCategory


class WeeklyWellnessSummary(BaseModel):
    """Wellness over a week, one entry per day that has any records."""

    week_start: date
    daily_entries: list[DailyWellness] = Field(default_factory=list)

    @property
    def average_wellness_score(self) -> float:
        if not self.daily_entries:
            return 0.0
        return sum(d.wellness_score for d in self.daily_entries) / len(self.daily_entries)

    @property
    def total_mindfulness_minutes(self) -> int:
        return sum(d.mindfulness_minutes for d in self.daily_entries)

    @property
    def total_breathing_sessions(self) -> int:
        return sum(d.breathing_sessions_completed for d in self.daily_entries)

    @property
    def insights(self) -> list[WellnessInsight]:
        """Suggestions drawn from the week's mood trend, stress, sleep and practice."""
        if not self.daily_entries:
            return []
        days = len(self.daily_entries)
        insights = []
        if _is_decreasing([d.overall_mood for d in self.daily_entries]):
            insights.append(WellnessInsight(
                title="Mood dipping",
                description="Your average mood went down this week.",
                actionable="Try adding more of the activities that make you happy.",
                category=InsightCategory.MOOD,
            ))
        if sum(d.calm_level for d in self.daily_entries) / days < 4:
            insights.append(WellnessInsight(
                title="High stress",
                description="Your stress has been high this week.",
                actionable="Breathe more often and take regular breaks.",
                category=InsightCategory.STRESS,
            ))
        if sum(d.sleep_quality for d in self.daily_entries) / days < 6:
            insights.append(WellnessInsight(
                title="Poor sleep",
                description="Your sleep could be better.",
                actionable="Build a calm evening routine and avoid screens before bed.",
                category=InsightCategory.SLEEP,
            ))
        # Less than ten minutes a day
        if self.total_mindfulness_minutes < 70:
            insights.append(WellnessInsight(
                title="More mindfulness",
                description="You could benefit from more mindful time.",
                actionable="Practice ten minutes of breathing or meditation a day.",
                category=InsightCategory.MINDFULNESS,
            ))
        return insights


def _is_decreasing(values: list[int], threshold: float = 0.5) -> bool:
    """Whether the second half of ``values`` averages lower than the first half."""
    half = len(values) // 2
    if half == 0:
        return False
    first, second = values[:half], values[-half:]
    return sum(first) / half - sum(second) / half > threshold


def _mood_rating(entry: MoodEntry) -> int:
    """How good a mood entry felt on the 0-10 scale."""
    category = entry.category
    if category == EmotionCategory.POSITIVE:
        return entry.emotion_intensity
    if category == EmotionCategory.NEGATIVE:
        return SCALE_MAX - entry.emotion_intensity
    return (SCALE_MAX + SCALE_MIN) // 2


def _average(values: list[int], default: int = 5) -> int:
    return round(sum(values) / len(values)) if values else default


def daily_wellness(
    day: date,
    moods: Iterable[MoodEntry] = (),
    sessions: Iterable[BreathingSession] = (),
    gratitudes: Iterable[GratitudeEntry] = (),
    thoughts: Iterable[ThoughtRecord] = (),
) -> DailyWellness:
    """Build a day's wellness from the records dated that day.

    Ratings are averaged over the day's mood check-ins and stay at mid-scale
    when there are none. Mindful minutes are the day's breathing time.
    """
    moods = [m for m in moods if m.day == day]
    sessions = [s for s in sessions if s.day == day]
    return DailyWellness(
        day=day,
        overall_mood=_average([_mood_rating(m) for m in moods]),
        energy_level=_average([m.energy_level for m in moods]),
        calm_level=_average([SCALE_MAX - m.stress_level for m in moods]),
        sleep_quality=_average([m.sleep_quality for m in moods]),
        mindfulness_minutes=sum(s.duration for s in sessions) // 60,
        breathing_sessions_completed=sum(1 for s in sessions if s.is_complete),
        gratitude_entries_count=sum(1 for g in gratitudes if g.day == day),
        thought_records_count=sum(1 for t in thoughts if t.day == day),
    )


def weekly_wellness(
    moods: Sequence[MoodEntry] = (),
    sessions: Sequence[BreathingSession] = (),
    gratitudes: Sequence[GratitudeEntry] = (),
    thoughts: Sequence[ThoughtRecord] = (),
    today: date | None = None,
) -> WeeklyWellnessSummary:
    """Daily wellness for each day of the last week that has any records, oldest first."""
    today = today or get_now().date()
    week_start = today - timedelta(days=config.week_days - 1)
    active = {r.day for records in (moods, sessions, gratitudes, thoughts) for r in records}
    days = sorted(d for d in active if week_start <= d <= today)
    return WeeklyWellnessSummary(
        week_start=week_start,
        daily_entries=[daily_wellness(d, moods, sessions, gratitudes, thoughts) for d in days],
    )
