"""Mood tracking CLI commands."""

import typer
from rich.console import Console
from rich.table import Table
from rich import box

from braineath.cli.session import commit, get_context, resolve, short_id, storage_guard
from braineath.cli.ui.displays import CATEGORY_COLORS, display_mood_list
from braineath.core.insights import mood_trend
from braineath.core.mood import EMOTIONS, MoodEntry, find_emotion
from braineath.utils.config import config
from braineath.utils.helpers import format_date

app = typer.Typer(help="Mood tracking commands")
console = Console()


@app.command("log")
def log_mood(
    ctx: typer.Context,
    emotion: str = typer.Argument(..., help="Primary emotion, e.g. Calm or Anxious"),
    intensity: int = typer.Option(5, "--intensity", "-i", help="Emotion intensity (0-10)"),
    energy: int = typer.Option(5, "--energy", "-e", help="Energy level (0-10)"),
    stress: int = typer.Option(0, "--stress", "-s", help="Stress level (0-10)"),
    sleep: int = typer.Option(5, "--sleep", help="Sleep quality (0-10)"),
    note: str | None = typer.Option(None, "--note", "-n", help="Optional note"),
    triggers: list[str] = typer.Option([], "--trigger", "-t", help="What set this mood off (repeatable)"),
    weather: str | None = typer.Option(None, "--weather", help="How the weather affected you"),
) -> None:
    """Log how you feel right now."""
    known = find_emotion(emotion)
    with storage_guard():
        context = get_context(ctx)
        entry = context.new(
            MoodEntry,
            primary_emotion=known.name if known else emotion,
            emotion_intensity=intensity,
            energy_level=energy,
            stress_level=stress,
            sleep_quality=sleep,
            notes=note,
            triggers=triggers,
            weather_impact=weather,
        )
        commit(context)

    color = CATEGORY_COLORS.get(entry.category, "white")
    console.print(f"[{color}]Mood logged: {entry.primary_emotion} ({entry.emotion_intensity}/10)[/{color}]")
    console.print(f"[dim]id {short_id(entry)}[/dim]")
    if entry.stress_level >= 7:
        console.print("[yellow]High stress noted. Try: braineath breathe log 4-7-8 --mood "
                      f"{short_id(entry)}[/yellow]")


@app.command("list")
def list_moods(
    ctx: typer.Context,
    limit: int = typer.Option(config.recent_limit, "--limit", "-l", help="How many entries to show"),
) -> None:
    """Show recent mood entries."""
    with storage_guard():
        entries = get_context(ctx).fetch(MoodEntry, limit=limit)
    display_mood_list(entries)


@app.command("trend")
def show_trend(
    ctx: typer.Context,
    days: int = typer.Option(config.week_days, "--days", "-d", help="How many days back"),
) -> None:
    """Average emotion intensity per day."""
    with storage_guard():
        entries = get_context(ctx).fetch(MoodEntry)
    trend = mood_trend(entries, days=days)
    if not trend:
        console.print(f"[dim]No mood entries in the last {days} days.[/dim]")
        return

    table = Table(title=f"Mood Trend ({days} days)", box=box.ROUNDED)
    table.add_column("Day", width=10)
    table.add_column("Average", justify="right", width=7)
    table.add_column("")
    for day, average in trend:
        table.add_row(format_date(day), f"{average:.1f}", "[cyan]" + "#" * round(average) + "[/cyan]")
    console.print(table)


@app.command("delete")
def delete_mood(
    ctx: typer.Context,
    entry_id: str = typer.Argument(..., help="Entry id (or its first characters)"),
) -> None:
    """Delete a mood entry. A linked breathing session is kept but unlinked."""
    with storage_guard():
        context = get_context(ctx)
        entry = resolve(context, MoodEntry, entry_id)
        context.delete(entry)
        context.save()
    console.print(f"[yellow]Deleted mood entry {short_id(entry)}[/yellow]")


@app.command("emotions")
def list_emotions() -> None:
    """Show the emotion catalogue."""
    table = Table(title="Emotions", box=box.ROUNDED)
    table.add_column("Emotion", style="bold")
    table.add_column("Category")
    table.add_column("Description")
    for emotion in EMOTIONS:
        color = CATEGORY_COLORS[emotion.category]
        table.add_row(emotion.name, f"[{color}]{emotion.category.value}[/{color}]", emotion.description)
    console.print(table)
