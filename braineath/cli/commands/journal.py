"""Gratitude journal and daily intention CLI commands."""

from pathlib import Path

import typer
from rich.console import Console

from braineath.cli.session import commit, get_context, resolve, short_id, storage_guard
from braineath.cli.ui.displays import display_gratitude_list, display_intention_list
from braineath.core.insights import export_gratitudes, gratitude_stats, intention_stats, todays_intention
from braineath.core.journal import GRATITUDE_CATEGORIES, INTENTION_CATEGORIES, DailyIntention, GratitudeEntry
from braineath.utils.config import config

gratitude_app = typer.Typer(help="Gratitude journal commands")
intention_app = typer.Typer(help="Daily intention commands")
console = Console()


@gratitude_app.command("add")
def add_gratitude(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="What you are grateful for"),
    category: str | None = typer.Option(
        None, "--category", "-c", help=f"One of: {', '.join(GRATITUDE_CATEGORIES)}"
    ),
    emotion: str | None = typer.Option(None, "--emotion", "-e", help="How it makes you feel"),
    shared: bool = typer.Option(False, "--shared", help="Mark the entry as not private"),
) -> None:
    """Add a gratitude entry."""
    with storage_guard():
        context = get_context(ctx)
        entry = context.new(
            GratitudeEntry,
            gratitude_text=text,
            category=category,
            emotion_generated=emotion,
            is_private=not shared,
        )
        commit(context)
        stats = gratitude_stats(context.fetch(GratitudeEntry))

    console.print(f"[green]Gratitude noted.[/green] [dim]id {short_id(entry)}[/dim]")
    console.print(f"[dim]{stats.entries_this_week} this week, streak {stats.current_streak} day(s)[/dim]")


@gratitude_app.command("list")
def list_gratitude(
    ctx: typer.Context,
    category: str | None = typer.Option(None, "--category", "-c", help="Only this category"),
    limit: int = typer.Option(config.recent_limit, "--limit", "-l", help="How many entries to show"),
) -> None:
    """Show recent gratitude entries."""
    filters = {"category": category} if category else {}
    with storage_guard():
        entries = get_context(ctx).fetch(GratitudeEntry, limit=limit, **filters)
    display_gratitude_list(entries)


@gratitude_app.command("export")
def export_gratitude(
    ctx: typer.Context,
    output: Path | None = typer.Option(None, "--output", "-o", help="Write to a file instead of the terminal"),
) -> None:
    """Export the whole gratitude journal as text."""
    with storage_guard():
        text = export_gratitudes(get_context(ctx).fetch(GratitudeEntry))
    if output is None:
        console.print(text, markup=False, highlight=False)
        return
    try:
        output.write_text(text + "\n", encoding="utf-8")
    except OSError as e:
        console.print(f"[red]Could not write {output}: {e.strerror or e}[/red]")
        raise typer.Exit(1) from e
    console.print(f"[green]Exported to {output}[/green]")


@intention_app.command("set")
def set_intention(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Your intention for today"),
    category: str | None = typer.Option(
        None, "--category", "-c", help=f"One of: {', '.join(INTENTION_CATEGORIES)}"
    ),
) -> None:
    """Set an intention for today."""
    with storage_guard():
        context = get_context(ctx)
        intention = context.new(DailyIntention, intention_text=text, category=category)
        commit(context)
    console.print(f"[green]Intention set:[/green] {intention.intention_text} [dim]id {short_id(intention)}[/dim]")


@intention_app.command("done")
def toggle_intention(
    ctx: typer.Context,
    intention_id: str = typer.Argument(..., help="Intention id (or its first characters)"),
) -> None:
    """Mark an intention as completed (or back to open)."""
    with storage_guard():
        context = get_context(ctx)
        intention = resolve(context, DailyIntention, intention_id)
        completed = intention.toggle_completed()
        commit(context)
    if completed:
        console.print(f"[green]Completed: {intention.intention_text}[/green]")
    else:
        console.print(f"[yellow]Reopened: {intention.intention_text}[/yellow]")


@intention_app.command("reflect")
def reflect_intention(
    ctx: typer.Context,
    intention_id: str = typer.Argument(..., help="Intention id (or its first characters)"),
    reflection: str = typer.Argument(..., help="How it went"),
) -> None:
    """Write a reflection on an intention."""
    with storage_guard():
        context = get_context(ctx)
        intention = resolve(context, DailyIntention, intention_id)
        intention.reflection = reflection
        context.save()
    console.print("[green]Reflection saved.[/green]")


@intention_app.command("list")
def list_intentions(
    ctx: typer.Context,
    limit: int = typer.Option(config.recent_limit, "--limit", "-l", help="How many intentions to show"),
) -> None:
    """Show recent intentions."""
    with storage_guard():
        intentions = get_context(ctx).fetch(DailyIntention, limit=limit)
    display_intention_list(intentions)
    if intentions:
        stats = intention_stats(intentions)
        console.print(f"[dim]{stats.completed}/{stats.total} completed ({stats.completion_rate:.0f}%)[/dim]")


@intention_app.command("today")
def show_today(ctx: typer.Context) -> None:
    """Show today's intention."""
    with storage_guard():
        intention = todays_intention(get_context(ctx).fetch(DailyIntention))
    if intention is None:
        console.print("[dim]No intention set for today.[/dim]")
        return
    status = "[green]done[/green]" if intention.is_completed else "[yellow]open[/yellow]"
    console.print(f"Today: {intention.intention_text} ({status})")
