"""Breathing exercise CLI commands."""

import typer
from rich.console import Console

from braineath.cli.session import commit, get_context, resolve, short_id, storage_guard
from braineath.cli.ui.displays import display_breathing_list, display_patterns
from braineath.core.breathing import BreathingPattern, BreathingSession
from braineath.core.insights import breathing_stats
from braineath.core.mood import MoodEntry
from braineath.utils.config import config
from braineath.utils.helpers import format_duration

app = typer.Typer(help="Breathing exercise commands")
console = Console()


@app.command("log")
def log_session(
    ctx: typer.Context,
    pattern: BreathingPattern | None = typer.Argument(None, help="Breathing pattern (defaults to your preference)"),
    duration: int = typer.Option(..., "--duration", "-d", help="Duration in seconds"),
    completion: float = typer.Option(100.0, "--completion", "-c", help="Percent of the session completed"),
    before: int | None = typer.Option(None, "--before", help="Mood before (0-10)"),
    after: int | None = typer.Option(None, "--after", help="Mood after (0-10)"),
    note: str | None = typer.Option(None, "--note", "-n", help="Optional note"),
    mood_id: str | None = typer.Option(None, "--mood", "-m", help="Link to a mood entry"),
) -> None:
    """Log a breathing session."""
    with storage_guard():
        context = get_context(ctx)
        pattern = pattern or context.preferences().preferred_breathing_pattern or BreathingPattern.FOUR_SEVEN_EIGHT
        mood = resolve(context, MoodEntry, mood_id) if mood_id else None
        session = context.new(
            BreathingSession,
            breathing_pattern=pattern,
            duration=duration,
            completion_percentage=completion,
            mood_before=before,
            mood_after=after,
            notes=note,
        )
        if mood is not None:
            context.link(mood, session)
        commit(context)

    console.print(f"[cyan]Breathing session logged: {pattern.value}, {format_duration(session.duration)}[/cyan]")
    console.print(f"[dim]id {short_id(session)}, {pattern.cycles_for(session.duration)} cycles[/dim]")
    if session.mood_change is not None and session.mood_change > 0:
        console.print(f"[green]Mood improved by {session.mood_change} point(s).[/green]")
    if mood is not None:
        console.print(f"[dim]Linked to mood entry {short_id(mood)}[/dim]")


@app.command("list")
def list_sessions(
    ctx: typer.Context,
    limit: int = typer.Option(config.recent_limit, "--limit", "-l", help="How many sessions to show"),
) -> None:
    """Show recent breathing sessions."""
    with storage_guard():
        sessions = get_context(ctx).fetch(BreathingSession, limit=limit)
    display_breathing_list(sessions)


@app.command("patterns")
def show_patterns() -> None:
    """Show available breathing patterns."""
    display_patterns()


@app.command("stats")
def show_stats(ctx: typer.Context) -> None:
    """Show breathing totals and streak."""
    with storage_guard():
        sessions = get_context(ctx).fetch(BreathingSession)
    stats = breathing_stats(sessions)

    console.print("[bold]Breathing[/bold]")
    console.print(f"  Sessions: {stats.total_sessions}")
    console.print(f"  Minutes: {stats.total_minutes} ({stats.minutes_this_week} this week)")
    console.print(f"  Streak: {stats.streak_days} day(s)")
    if stats.average_mood_change is not None:
        console.print(f"  Average mood change: {stats.average_mood_change:+.1f}")


@app.command("unlink")
def unlink_session(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session id (or its first characters)"),
) -> None:
    """Remove the link between a session and its mood entry."""
    with storage_guard():
        context = get_context(ctx)
        session = resolve(context, BreathingSession, session_id)
        context.unlink(session)
        saved = context.save()
    console.print("[yellow]Session unlinked.[/yellow]" if saved else "[dim]Session was not linked.[/dim]")
