"""Persistence context plumbing shared by CLI commands."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypeVar

import typer
from rich.console import Console

from braineath.core.achievements import refresh_achievements
from braineath.core.base import Record
from braineath.data.context import PersistenceContext
from braineath.data.database import Database
from braineath.data.errors import StorageError, StoreOpenFailure, ValidationFailure

console = Console()

R = TypeVar("R", bound=Record)

SHORT_ID = 8


def short_id(record: Record) -> str:
    return str(record.id)[:SHORT_ID]


def _confirm_reset(failure: StoreOpenFailure) -> bool:
    console.print(f"[yellow]{failure}[/yellow]")
    return typer.confirm(
        "Move the existing data aside and start with an empty store?", default=False
    )


def open_context(db_path: Path | None = None, reset_incompatible: bool = False) -> PersistenceContext:
    """Open the store and wrap it in a persistence context.

    An incompatible store is only recreated when ``reset_incompatible`` is set
    and the user confirms.
    """
    database = Database(db_path, confirm_reset=_confirm_reset if reset_incompatible else None)
    return PersistenceContext(database)


def get_context(ctx: typer.Context) -> PersistenceContext:
    """The persistence context the main callback stored on the typer context."""
    context = ctx.find_object(PersistenceContext)
    if context is None:
        raise RuntimeError("No persistence context; run through the braineath command")
    return context


def describe_validation(error: ValidationFailure) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(loc) for loc in item["loc"])
        parts.append(f"{field}: {item['msg']}" if field else item["msg"])
    return "; ".join(parts)


@contextmanager
def storage_guard() -> Iterator[None]:
    """Report storage and validation errors and exit with status 1."""
    try:
        yield
    except StoreOpenFailure as e:
        console.print(f"[red]Could not open the store: {e}[/red]")
        if e.incompatible:
            console.print("[dim]Run again with --reset-incompatible to start over.[/dim]")
        raise typer.Exit(1) from e
    except StorageError as e:
        console.print(f"[red]Storage error: {e}[/red]")
        raise typer.Exit(1) from e
    except ValidationFailure as e:
        console.print(f"[red]Invalid value: {describe_validation(e)}[/red]")
        raise typer.Exit(1) from e


def commit(context: PersistenceContext) -> bool:
    """Save pending changes together with refreshed achievements."""
    unlocked = refresh_achievements(context)
    saved = context.save()
    for achievement in unlocked:
        console.print(f"[bold magenta]Achievement unlocked: {achievement.title}![/bold magenta]")
    return saved


def resolve(context: PersistenceContext, entity_type: type[R], prefix: str) -> R:
    """Find a record by id or unique id prefix.

    Raises:
        typer.BadParameter: If nothing or more than one record matches.
    """
    prefix = prefix.strip().lower()
    matches = context.fetch(entity_type, predicate=lambda r: str(r.id).startswith(prefix), order_by=None)
    if not prefix or not matches:
        raise typer.BadParameter(f"No {entity_type.__name__} with id {prefix!r}")
    if len(matches) > 1:
        raise typer.BadParameter(f"Id {prefix!r} matches {len(matches)} records, use more characters")
    return matches[0]
