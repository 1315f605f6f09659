"""Preferences, reminders, achievements and history CLI commands."""

import typer
from rich.console import Console

from braineath.cli.session import get_context, storage_guard
from braineath.cli.ui.displays import display_achievements, display_history, display_preferences
from braineath.core.achievements import Achievement, refresh_achievements
from braineath.core.breathing import BreathingPattern
from braineath.core.preferences import PrivacyLevel, Theme
from braineath.core.reminders import upcoming_reminders
from braineath.utils.helpers import format_datetime, parse_time

prefs_app = typer.Typer(help="Preference commands")
reminder_app = typer.Typer(help="Reminder time commands")
prefs_app.add_typer(reminder_app, name="reminder")
console = Console()


def _parse_time(value: str):
    try:
        return parse_time(value)
    except ValueError:
        raise typer.BadParameter(f"Expected HH:MM, got {value!r}") from None


@prefs_app.command("show")
def show_preferences(ctx: typer.Context) -> None:
    """Show your preferences."""
    with storage_guard():
        preferences = get_context(ctx).preferences()
    display_preferences(preferences)


@prefs_app.command("set")
def set_preferences(
    ctx: typer.Context,
    theme: Theme | None = typer.Option(None, "--theme", help="Display theme"),
    notifications: bool | None = typer.Option(None, "--notifications/--no-notifications", help="Reminder notifications"),
    pattern: BreathingPattern | None = typer.Option(None, "--pattern", help="Default breathing pattern"),
    sound: bool | None = typer.Option(None, "--sound/--no-sound", help="Sound effects"),
    haptic: bool | None = typer.Option(None, "--haptic/--no-haptic", help="Haptic feedback"),
    privacy: PrivacyLevel | None = typer.Option(None, "--privacy", help="Privacy level"),
) -> None:
    """Change one or more preferences."""
    with storage_guard():
        context = get_context(ctx)
        preferences = context.preferences()
        if theme is not None:
            preferences.preferred_theme = theme
        if notifications is not None:
            preferences.notifications_enabled = notifications
        if pattern is not None:
            preferences.preferred_breathing_pattern = pattern
        if sound is not None:
            preferences.sound_enabled = sound
        if haptic is not None:
            preferences.haptic_enabled = haptic
        if privacy is not None:
            preferences.privacy_level = privacy
        saved = context.save()

    console.print("[green]Preferences updated.[/green]" if saved else "[dim]Nothing changed.[/dim]")


@reminder_app.command("add")
def add_reminder(
    ctx: typer.Context,
    at: str = typer.Argument(..., help="Reminder time, HH:MM"),
) -> None:
    """Add a daily reminder time."""
    moment = _parse_time(at)
    with storage_guard():
        context = get_context(ctx)
        context.preferences().add_reminder(moment)
        saved = context.save()
    if saved:
        console.print(f"[green]Reminder added at {moment.strftime('%H:%M')}.[/green]")
    else:
        console.print(f"[dim]Reminder at {moment.strftime('%H:%M')} already set.[/dim]")


@reminder_app.command("remove")
def remove_reminder(
    ctx: typer.Context,
    at: str = typer.Argument(..., help="Reminder time, HH:MM"),
) -> None:
    """Remove a daily reminder time."""
    moment = _parse_time(at)
    with storage_guard():
        context = get_context(ctx)
        removed = context.preferences().remove_reminder(moment)
        context.save()
    if removed:
        console.print(f"[yellow]Reminder at {moment.strftime('%H:%M')} removed.[/yellow]")
    else:
        console.print(f"[dim]No reminder at {moment.strftime('%H:%M')}.[/dim]")


def show_next_reminders(ctx: typer.Context, count: int = 3) -> None:
    """Show the next reminder moments."""
    with storage_guard():
        preferences = get_context(ctx).preferences()
    if not preferences.notifications_enabled:
        console.print("[dim]Notifications are off.[/dim]")
        return
    upcoming = upcoming_reminders(preferences, count=count)
    if not upcoming:
        console.print("[dim]No reminder times set. Add one with: braineath prefs reminder add 09:00[/dim]")
        return
    for moment in upcoming:
        console.print(f"  {format_datetime(moment)}")


def show_achievements(ctx: typer.Context) -> None:
    """Show achievements and progress."""
    with storage_guard():
        context = get_context(ctx)
        refresh_achievements(context)
        context.save()
        achievements = context.fetch(Achievement, order_by=None)
    display_achievements(achievements)


def show_history(ctx: typer.Context, limit: int = 20) -> None:
    """Show the most recent saved changes."""
    with storage_guard():
        changes = get_context(ctx).database.get_history(limit)
    display_history(changes)
