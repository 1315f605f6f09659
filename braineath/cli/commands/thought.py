"""Thought record (cognitive restructuring) CLI commands."""

import typer
from rich.console import Console

from braineath.cli.session import commit, get_context, resolve, short_id, storage_guard
from braineath.cli.ui.displays import display_distortions, display_thought_list
from braineath.core.insights import thought_patterns, thought_stats
from braineath.core.thought import CognitiveDistortion, ThoughtRecord, guided_questions
from braineath.utils.config import config

app = typer.Typer(help="Thought record commands")
console = Console()


@app.command("add")
def add_record(
    ctx: typer.Context,
    situation: str = typer.Option(..., "--situation", prompt="What happened?", help="The situation"),
    thought: str = typer.Option(..., "--thought", prompt="What went through your mind?", help="The automatic thought"),
    emotion: str = typer.Option(..., "--emotion", prompt="What did you feel?", help="Emotion felt"),
    intensity: int = typer.Option(..., "--intensity", prompt="How intense (0-10)?", help="Intensity (0-10)"),
    distortions: list[CognitiveDistortion] = typer.Option(
        [], "--distortion", "-d", help="Thinking trap spotted (repeatable)"
    ),
) -> None:
    """Record a difficult moment and the thought behind it."""
    with storage_guard():
        context = get_context(ctx)
        record = context.new(
            ThoughtRecord,
            situation=situation,
            automatic_thought=thought,
            emotion_before=emotion,
            intensity_before=intensity,
            cognitive_distortions=distortions,
        )
        commit(context)

    console.print(f"[green]Thought recorded.[/green] [dim]id {short_id(record)}[/dim]")
    for question in guided_questions(record.cognitive_distortions):
        console.print(f"  [italic]{question}[/italic]")
    console.print(f"[dim]When ready: braineath thought reframe {short_id(record)}[/dim]")


@app.command("reframe")
def reframe_record(
    ctx: typer.Context,
    record_id: str = typer.Argument(..., help="Record id (or its first characters)"),
    balanced: str = typer.Option(..., "--balanced", prompt="A more balanced thought", help="Balanced thought"),
    emotion: str | None = typer.Option(None, "--emotion", help="Emotion felt now"),
    intensity: int = typer.Option(..., "--intensity", prompt="Intensity now (0-10)?", help="Intensity now (0-10)"),
    plan: str | None = typer.Option(None, "--plan", help="What you will do next"),
    distortions: list[CognitiveDistortion] = typer.Option(
        [], "--distortion", "-d", help="Thinking trap spotted (repeatable)"
    ),
) -> None:
    """Complete a thought record with a balanced perspective."""
    with storage_guard():
        context = get_context(ctx)
        record = resolve(context, ThoughtRecord, record_id)
        record.reframe(
            cognitive_distortions=[*record.cognitive_distortions, *distortions] if distortions else None,
            balanced_thought=balanced,
            emotion_after=emotion,
            intensity_after=intensity,
            action_plan=plan,
        )
        commit(context)

    change = record.intensity_change
    if change is not None and change > 0:
        console.print(f"[green]Reframed. Intensity down by {change} point(s).[/green]")
    else:
        console.print("[green]Reframed.[/green]")


@app.command("list")
def list_records(
    ctx: typer.Context,
    limit: int = typer.Option(config.recent_limit, "--limit", "-l", help="How many records to show"),
) -> None:
    """Show recent thought records and common thinking patterns."""
    with storage_guard():
        records = get_context(ctx).fetch(ThoughtRecord)
    display_thought_list(records[:limit])
    if not records:
        return

    stats = thought_stats(records)
    if stats.most_common_distortion is not None:
        console.print(f"[dim]Most common trap: {stats.most_common_distortion.label}[/dim]")
    if stats.average_intensity_drop is not None:
        console.print(f"[dim]Average intensity drop: {stats.average_intensity_drop:.1f}[/dim]")
    patterns = thought_patterns(records)
    if patterns:
        top = sorted(patterns.items(), key=lambda item: item[1], reverse=True)
        console.print("[dim]Recurring phrases: " + ", ".join(f"'{p}' x{n}" for p, n in top) + "[/dim]")


@app.command("distortions")
def show_distortions() -> None:
    """Show the cognitive distortions reference."""
    display_distortions()
