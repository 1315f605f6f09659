"""Main CLI application for Braineath."""

import logging
from pathlib import Path

import typer
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from braineath import __version__
from braineath.cli.commands import breathing, emergency, journal, mood, profile, thought
from braineath.cli.session import get_context, open_context, storage_guard
from braineath.cli.ui.displays import display_wellness_week, format_wellness
from braineath.core.achievements import Achievement
from braineath.core.breathing import BreathingSession
from braineath.core.insights import (
    breathing_stats,
    daily_wellness,
    gratitude_stats,
    todays_intention,
    weekly_wellness,
)
from braineath.core.journal import DailyIntention, GratitudeEntry
from braineath.core.mood import MoodEntry
from braineath.core.reminders import next_reminder
from braineath.core.thought import ThoughtRecord
from braineath.utils.helpers import format_datetime, get_today

# Create main app
app = typer.Typer(
    name="braineath",
    help="Braineath - mood, breathing and journaling companion",
    no_args_is_help=False
)

# Register sub-commands
app.add_typer(mood.app, name="mood", help="Mood tracking")
app.add_typer(breathing.app, name="breathe", help="Breathing exercises")
app.add_typer(journal.gratitude_app, name="gratitude", help="Gratitude journal")
app.add_typer(journal.intention_app, name="intention", help="Daily intentions")
app.add_typer(thought.app, name="thought", help="Thought records")
app.add_typer(emergency.app, name="sos", help="Emergency calming")
app.add_typer(profile.prefs_app, name="prefs", help="Preferences and reminders")

console = Console()


@app.command("achievements")
def achievements_shortcut(ctx: typer.Context) -> None:
    """Show achievements."""
    profile.show_achievements(ctx)


@app.command("reminders")
def reminders_shortcut(
    ctx: typer.Context,
    count: int = typer.Option(3, "--count", "-c", help="How many upcoming reminders"),
) -> None:
    """Show upcoming reminders."""
    profile.show_next_reminders(ctx, count)


@app.command("history")
def history_shortcut(
    ctx: typer.Context,
    limit: int = typer.Option(20, "--limit", "-l", help="How many changes to show"),
) -> None:
    """Show recently saved changes."""
    profile.show_history(ctx, limit)


@app.command("wellness")
def wellness_summary(ctx: typer.Context) -> None:
    """Show this week's wellness scores and suggestions."""
    with storage_guard():
        context = get_context(ctx)
        summary = weekly_wellness(
            context.fetch(MoodEntry),
            context.fetch(BreathingSession),
            context.fetch(GratitudeEntry),
            context.fetch(ThoughtRecord),
        )
    display_wellness_week(summary)


@app.command("version")
def show_version() -> None:
    """Show version information."""
    console.print(f"Braineath v{__version__}")


def setup_logging(verbosity: int) -> None:
    """Send log records to stderr through rich."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    db: Path | None = typer.Option(None, "--db", envvar="BRAINEATH_DB", help="Path to the data file"),
    verbose: int = typer.Option(0, "--verbose", "-v", count=True, help="More log output (repeatable)"),
    reset_incompatible: bool = typer.Option(
        False, "--reset-incompatible", help="Offer to start over if the data file cannot be used"
    ),
) -> None:
    """Braineath - breathe, reflect and track how you feel."""
    setup_logging(verbose)
    if ctx.resilient_parsing:
        return

    with storage_guard():
        context = open_context(db, reset_incompatible)
    ctx.obj = context
    ctx.call_on_close(context.database.close)

    if ctx.invoked_subcommand is None:
        # Show dashboard when called without arguments
        show_dashboard(ctx)


def show_dashboard(ctx: typer.Context) -> None:
    """Show today's overview."""
    with storage_guard():
        context = get_context(ctx)
        today = get_today()
        moods_today = context.fetch(MoodEntry, predicate=lambda e: e.day == today)
        sessions = context.fetch(BreathingSession)
        gratitudes = context.fetch(GratitudeEntry)
        intention = todays_intention(context.fetch(DailyIntention), today)
        unlocked = context.count(Achievement, is_unlocked=True)
        reminder = next_reminder(context.preferences())
        wellness = daily_wellness(today, moods_today, sessions, gratitudes, context.fetch(ThoughtRecord))
        practiced = any(s.day == today for s in sessions)

    console.print()
    console.print(Panel("[bold]Braineath[/bold] - Today", box=box.DOUBLE))

    if moods_today:
        latest = moods_today[0]
        console.print(f"Mood: {latest.primary_emotion} ({latest.emotion_intensity}/10), "
                      f"{len(moods_today)} check-in(s) today")
    else:
        console.print("[dim]No mood logged today: braineath mood log Calm[/dim]")

    if moods_today or practiced:
        console.print(f"Wellness: {format_wellness(wellness)}")
        console.print(f"[dim]{wellness.wellness_level.message}[/dim]")

    breathing = breathing_stats(sessions)
    console.print(f"Breathing: {breathing.minutes_this_week} min this week, streak {breathing.streak_days} day(s)")

    gratitude = gratitude_stats(gratitudes)
    console.print(f"Gratitude: {gratitude.entries_this_week} this week, streak {gratitude.current_streak} day(s)")

    if intention is not None:
        status = "[green]done[/green]" if intention.is_completed else "[yellow]open[/yellow]"
        console.print(f"Intention: {intention.intention_text} ({status})")
    else:
        console.print("[dim]No intention yet: braineath intention set \"...\"[/dim]")

    console.print(f"Achievements unlocked: {unlocked}")
    if reminder is not None:
        console.print(f"[dim]Next reminder: {format_datetime(reminder)}[/dim]")


if __name__ == "__main__":
    app()
