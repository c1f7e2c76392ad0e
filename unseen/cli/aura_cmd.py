"""CLI commands for the aura score."""

import asyncio
from typing import Optional

import typer
from rich.table import Table

from unseen.cli.common import OwnerOption, console, resolve_owner

app = typer.Typer(no_args_is_help=True)

STATUS_STYLE = {"weak": "red", "forming": "yellow", "solid": "cyan", "strong": "green"}


@app.command("show")
def show(owner: Optional[str] = OwnerOption):
    """Show score, status, trend and recent history."""
    owner_id = resolve_owner(owner)

    async def _show():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            status = engine.aura_status()
            style = STATUS_STYLE[status]
            console.print(
                f"Aura: [bold]{engine.aura_score:.0f}[/bold] [{style}]{status}[/{style}] trend {engine.aura_trend()}"
            )
            if engine.aura_at_risk():
                console.print(f"[yellow]At risk:[/yellow] {engine.days_missed()} day(s) since your last record.")

            history = engine.aura_history()
            if history:
                table = Table(title="History")
                table.add_column("Date")
                table.add_column("Score", justify="right")
                for point in history:
                    table.add_row(point.day.isoformat(), f"{point.score:.0f}")
                console.print(table)

    asyncio.run(_show())


@app.command("decay")
def decay(owner: Optional[str] = OwnerOption):
    """Apply today's inactivity decay check."""
    owner_id = resolve_owner(owner)

    async def _decay():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            decayed, amount = engine.check_and_apply_decay()
            if decayed:
                console.print(f"[red]Aura decayed by {amount:.0f}[/red] -> {engine.aura_score:.0f}")
            else:
                console.print("No decay today.")

    asyncio.run(_decay())
