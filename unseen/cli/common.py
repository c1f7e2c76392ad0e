"""Shared CLI helpers."""

import logging
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

console = Console()

OwnerOption = typer.Option(None, "--owner", "-o", help="Owner id (defaults to general.owner_id)")


def setup_logging(verbose: bool = False):
    from unseen.config import get_settings

    level = logging.DEBUG if verbose else get_settings().general.log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True, show_time=False)],
    )


def resolve_owner(owner: Optional[str]) -> str:
    from unseen.config import get_settings

    owner = owner or get_settings().general.owner_id
    if not owner:
        console.print("[red]No owner given. Pass --owner or set general.owner_id in config.[/red]")
        raise typer.Exit(1)
    return owner


def short(value: Optional[str]) -> str:
    return (value or "")[:8]
