"""SOS (emergency calming) CLI commands."""

from datetime import datetime

import typer
from rich import box
from rich.console import Console
from rich.panel import Panel

from braineath.cli.session import get_context, resolve, short_id, storage_guard
from braineath.core.emergency import GROUNDING_STEPS, TECHNIQUES, EmergencySession, TechniqueType, find_technique
from braineath.utils.helpers import format_duration

app = typer.Typer(help="Emergency calming commands")
console = Console()


def _show_techniques() -> None:
    for index, technique in enumerate(TECHNIQUES, start=1):
        console.print(f"  {index}. [bold]{technique.name}[/bold] ({technique.minutes} min): {technique.description}")


@app.command("start")
def start_session(
    ctx: typer.Context,
    distress: int = typer.Option(..., "--distress", "-d", prompt="How distressed are you (0-10)?",
                                 help="Distress level (0-10)"),
) -> None:
    """Start an SOS session."""
    with storage_guard():
        context = get_context(ctx)
        session = context.create(EmergencySession.start(distress))
        context.save()

    console.print(Panel(
        f"[bold]{session.trigger_emotion}[/bold] noted at {session.intensity_before}/10.\n"
        "You are safe. Let's take this one step at a time.",
        title="SOS",
        box=box.ROUNDED,
    ))
    console.print("Pick a technique:")
    _show_techniques()
    console.print(f"[dim]Then: braineath sos technique {short_id(session)} \"<name>\"[/dim]")


@app.command("technique")
def use_technique(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session id (or its first characters)"),
    name: str = typer.Argument(..., help="Technique name or number"),
) -> None:
    """Record a technique used during an SOS session and show its steps."""
    if name.isdigit() and 1 <= int(name) <= len(TECHNIQUES):
        technique = TECHNIQUES[int(name) - 1]
    else:
        technique = find_technique(name)
    if technique is None:
        raise typer.BadParameter(f"Unknown technique {name!r}")

    with storage_guard():
        context = get_context(ctx)
        session = resolve(context, EmergencySession, session_id)
        session.record_technique(technique.name)
        context.save()

    console.print(f"[cyan]{technique.name}[/cyan]: {technique.description}")
    if technique.technique_type == TechniqueType.GROUNDING:
        for step in GROUNDING_STEPS:
            console.print(f"  - {step}")
    elif technique.technique_type == TechniqueType.BREATHING:
        console.print("  Breathe in for 4, hold for 7, breathe out for 8.")


@app.command("finish")
def finish_session(
    ctx: typer.Context,
    session_id: str = typer.Argument(..., help="Session id (or its first characters)"),
    distress: int = typer.Option(..., "--distress", "-d", prompt="How distressed are you now (0-10)?",
                                 help="Distress level now (0-10)"),
    note: str | None = typer.Option(None, "--note", "-n", help="Optional note"),
) -> None:
    """Close an SOS session with how you feel now."""
    with storage_guard():
        context = get_context(ctx)
        session = resolve(context, EmergencySession, session_id)
        session.intensity_after = distress
        session.duration = max(int((datetime.now() - session.date).total_seconds()), session.duration)
        if note:
            session.notes = note
        context.save()

    relief = session.relief
    console.print(f"[green]Session closed after {format_duration(session.duration)}.[/green]")
    if relief is not None and relief > 0:
        console.print(f"[green]Distress down by {relief} point(s). Well done.[/green]")
    elif session.intensity_after is not None and session.intensity_after >= 8:
        console.print("[yellow]If you are in danger, please reach out to local emergency services.[/yellow]")


@app.command("techniques")
def list_techniques() -> None:
    """Show the calming techniques."""
    _show_techniques()
