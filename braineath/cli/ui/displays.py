"""Rich display components for the CLI."""

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from braineath.cli.session import short_id
from braineath.core.achievements import Achievement
from braineath.core.breathing import BreathingPattern, BreathingSession
from braineath.core.insights import DailyWellness, WeeklyWellnessSummary, WellnessLevel
from braineath.core.journal import DailyIntention, GratitudeEntry
from braineath.core.mood import EmotionCategory, MoodEntry
from braineath.core.preferences import UserPreferences
from braineath.core.reminders import upcoming_reminders
from braineath.core.thought import CognitiveDistortion, ThoughtRecord
from braineath.data.database import Change
from braineath.utils.helpers import format_date, format_datetime, format_duration

console = Console()


CATEGORY_COLORS = {
    EmotionCategory.POSITIVE: "green",
    EmotionCategory.NEGATIVE: "red",
    EmotionCategory.NEUTRAL: "cyan",
}


def display_mood_list(entries: list[MoodEntry], title: str = "Mood Journal") -> None:
    """Display logged moods, newest first."""
    if not entries:
        console.print("[dim]No mood entries yet.[/dim]")
        return

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("ID", style="dim", width=8)
    table.add_column("When", width=16)
    table.add_column("Emotion", no_wrap=True)
    # 0-10 ratings: intensity, energy, stress, sleep
    table.add_column("Int", justify="right")
    table.add_column("Nrg", justify="right")
    table.add_column("Str", justify="right")
    table.add_column("Slp", justify="right")
    table.add_column("Triggers")

    for entry in entries:
        color = CATEGORY_COLORS.get(entry.category, "white")
        table.add_row(
            short_id(entry),
            format_datetime(entry.date),
            f"[{color}]{entry.primary_emotion}[/{color}]",
            str(entry.emotion_intensity),
            str(entry.energy_level),
            str(entry.stress_level),
            str(entry.sleep_quality),
            ", ".join(entry.triggers) or "[dim]-[/dim]",
        )
    console.print(table)


def display_breathing_list(sessions: list[BreathingSession]) -> None:
    if not sessions:
        console.print("[dim]No breathing sessions yet.[/dim]")
        return

    table = Table(title="Breathing Sessions", box=box.ROUNDED)
    table.add_column("ID", style="dim", width=8)
    table.add_column("When", width=16)
    table.add_column("Pattern", width=10)
    table.add_column("Duration", justify="right", width=8)
    table.add_column("Done", justify="right", width=6)
    table.add_column("Mood", width=8)
    table.add_column("Linked", width=6)

    for session in sessions:
        change = session.mood_change
        mood = "[dim]-[/dim]" if change is None else f"{session.mood_before}->{session.mood_after}"
        table.add_row(
            short_id(session),
            format_datetime(session.date),
            session.breathing_pattern.value,
            format_duration(session.duration),
            f"{session.completion_percentage:.0f}%",
            mood,
            "yes" if session.mood_entry_id else "",
        )
    console.print(table)


def display_patterns() -> None:
    """Display the available breathing patterns and their timings."""
    table = Table(title="Breathing Patterns", box=box.ROUNDED)
    table.add_column("Pattern", style="bold", no_wrap=True)
    table.add_column("In", justify="right")
    table.add_column("Hold", justify="right")
    table.add_column("Out", justify="right")
    table.add_column("Pause", justify="right")
    table.add_column("Description")

    for pattern in BreathingPattern:
        inhale, hold, exhale, pause = pattern.timings
        table.add_row(
            pattern.value, f"{inhale:g}s", f"{hold:g}s", f"{exhale:g}s", f"{pause:g}s", pattern.description
        )
    console.print(table)


def display_gratitude_list(entries: list[GratitudeEntry]) -> None:
    if not entries:
        console.print("[dim]Your gratitude journal is empty.[/dim]")
        return

    table = Table(title="Gratitude Journal", box=box.ROUNDED)
    table.add_column("ID", style="dim", width=8)
    table.add_column("When", width=16)
    table.add_column("Category", width=14)
    table.add_column("Grateful for", min_width=30)

    for entry in entries:
        table.add_row(
            short_id(entry),
            format_datetime(entry.date),
            entry.category or "[dim]-[/dim]",
            entry.gratitude_text,
        )
    console.print(table)


def display_intention_list(intentions: list[DailyIntention]) -> None:
    if not intentions:
        console.print("[dim]No intentions set yet.[/dim]")
        return

    table = Table(title="Daily Intentions", box=box.ROUNDED)
    table.add_column("ID", style="dim", width=8)
    table.add_column("When", width=16)
    table.add_column("Intention", min_width=24)
    table.add_column("Category", width=14)
    table.add_column("Status", width=6)
    table.add_column("Reflection")

    for intention in intentions:
        table.add_row(
            short_id(intention),
            format_datetime(intention.date),
            intention.intention_text,
            intention.category or "[dim]-[/dim]",
            "[green]Done[/green]" if intention.is_completed else "",
            intention.reflection or "",
        )
    console.print(table)


def display_thought_list(records: list[ThoughtRecord]) -> None:
    if not records:
        console.print("[dim]No thought records yet.[/dim]")
        return

    table = Table(title="Thought Records", box=box.ROUNDED)
    table.add_column("ID", style="dim", width=8)
    table.add_column("When", width=16)
    table.add_column("Automatic thought", min_width=24)
    table.add_column("Before", width=12)
    table.add_column("After", width=12)
    table.add_column("Distortions")

    for record in records:
        after = "[yellow]pending[/yellow]"
        if record.intensity_after is not None:
            after = f"{record.emotion_after or ''} {record.intensity_after}".strip()
        table.add_row(
            short_id(record),
            format_datetime(record.date),
            record.automatic_thought,
            f"{record.emotion_before} {record.intensity_before}",
            after,
            ", ".join(d.label for d in record.cognitive_distortions) or "[dim]-[/dim]",
        )
    console.print(table)


def display_distortions() -> None:
    table = Table(title="Cognitive Distortions", box=box.ROUNDED, show_lines=True)
    table.add_column("Key", style="bold", no_wrap=True)
    table.add_column("Description")
    table.add_column("Ask yourself", style="italic")

    for distortion in CognitiveDistortion:
        table.add_row(distortion.value, distortion.description, distortion.guided_question)
    console.print(table)


def display_achievements(achievements: list[Achievement]) -> None:
    """Display achievements, unlocked first."""
    if not achievements:
        console.print("[dim]No achievements yet.[/dim]")
        return

    table = Table(title="Achievements", box=box.ROUNDED)
    table.add_column("", width=2)
    table.add_column("Title", no_wrap=True)
    table.add_column("Description")
    table.add_column("Progress", justify="right", width=10)
    table.add_column("Earned", width=16)

    for achievement in sorted(achievements, key=lambda a: (not a.is_unlocked, a.title)):
        earned = format_datetime(achievement.date_earned) if achievement.date_earned else ""
        table.add_row(
            "[yellow]*[/yellow]" if achievement.is_unlocked else "",
            achievement.title,
            achievement.description,
            f"{achievement.progress}/{achievement.required_progress}",
            earned,
        )
    console.print(table)


def display_preferences(preferences: UserPreferences) -> None:
    reminders = ", ".join(t.strftime("%H:%M") for t in preferences.reminder_times) or "none"
    pattern = preferences.preferred_breathing_pattern
    upcoming = upcoming_reminders(preferences, count=1)
    next_line = f"\nNext reminder: {format_datetime(upcoming[0])}" if upcoming else ""

    console.print(Panel(
        f"Theme: {preferences.preferred_theme.value}\n"
        f"Notifications: {'on' if preferences.notifications_enabled else 'off'}\n"
        f"Reminders: {reminders}\n"
        f"Breathing pattern: {pattern.value if pattern else 'not set'}\n"
        f"Sound: {'on' if preferences.sound_enabled else 'off'}  "
        f"Haptics: {'on' if preferences.haptic_enabled else 'off'}\n"
        f"Privacy: {preferences.privacy_level.value}"
        f"{next_line}",
        title="Preferences",
        box=box.ROUNDED,
    ))


def display_history(changes: list[Change]) -> None:
    if not changes:
        console.print("[dim]No changes recorded.[/dim]")
        return

    table = Table(title="Change History", box=box.ROUNDED)
    table.add_column("When", width=16)
    table.add_column("Action", width=7)
    table.add_column("Record", no_wrap=True)
    table.add_column("ID", style="dim", width=8)

    colors = {"insert": "green", "update": "yellow", "delete": "red"}
    for change in changes:
        color = colors[change.action.value]
        table.add_row(
            format_datetime(change.timestamp),
            f"[{color}]{change.action.value}[/{color}]",
            change.entity_type,
            str(change.entity_id)[:8],
        )
    console.print(table)


WELLNESS_COLORS = {
    WellnessLevel.STRUGGLING: "red",
    WellnessLevel.CHALLENGING: "dark_orange",
    WellnessLevel.STABLE: "yellow",
    WellnessLevel.GOOD: "green",
    WellnessLevel.EXCELLENT: "blue",
}


def format_wellness(wellness: DailyWellness) -> str:
    color = WELLNESS_COLORS[wellness.wellness_level]
    return f"[{color}]{wellness.wellness_score}/100 ({wellness.wellness_level.value})[/{color}]"


def display_wellness_week(summary: WeeklyWellnessSummary) -> None:
    """Display daily wellness for the week and the suggestions it leads to."""
    if not summary.daily_entries:
        console.print("[dim]Nothing recorded this week.[/dim]")
        return

    table = Table(title=f"Wellness since {format_date(summary.week_start)}", box=box.ROUNDED)
    table.add_column("Day", width=10)
    table.add_column("Score", no_wrap=True)
    table.add_column("Mood", justify="right")
    table.add_column("Nrg", justify="right")
    table.add_column("Calm", justify="right")
    table.add_column("Slp", justify="right")
    table.add_column("Mindful", justify="right")

    for day in summary.daily_entries:
        table.add_row(
            format_date(day.day),
            format_wellness(day),
            str(day.overall_mood),
            str(day.energy_level),
            str(day.calm_level),
            str(day.sleep_quality),
            f"{day.mindfulness_minutes} min",
        )
    console.print(table)
    console.print(
        f"Average {summary.average_wellness_score:.0f}/100, "
        f"{summary.total_mindfulness_minutes} mindful min, "
        f"{summary.total_breathing_sessions} full breathing session(s)"
    )
    for insight in summary.insights:
        console.print(f"[bold]{insight.title}[/bold]: {insight.description} [dim]{insight.actionable}[/dim]")
