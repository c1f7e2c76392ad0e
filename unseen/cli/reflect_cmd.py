"""CLI commands for deferred reflections."""

import asyncio
from typing import Optional

import typer
from rich.table import Table

from unseen.cli.common import OwnerOption, console, resolve_owner, short

app = typer.Typer(no_args_is_help=True)


@app.command("pending")
def pending(owner: Optional[str] = OwnerOption):
    """List focus sessions still owed a reflection."""
    owner_id = resolve_owner(owner)

    async def _pending():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            sessions = engine.pending_reflections()
            if not sessions:
                console.print("[green]No pending reflections.[/green]")
                return

            table = Table(title="Pending Reflections")
            table.add_column("ID", style="dim")
            table.add_column("Intent", style="cyan")
            table.add_column("Outcome")
            table.add_column("Ended")
            for session in sessions:
                ended = f"{session.ended_at:%Y-%m-%d %H:%M}" if session.ended_at else ""
                table.add_row(short(session.id), session.intent_declaration, session.outcome or "", ended)
            console.print(table)

    asyncio.run(_pending())


@app.command("submit")
def submit(
    session_id: str = typer.Argument(help="Session id or unique prefix"),
    outcome: str = typer.Option("", "--outcome", help="What happened"),
    mistake: str = typer.Option("", "--mistake", help="Mistake pattern you noticed"),
    insight: str = typer.Option("", "--insight", help="What you take away"),
    owner: Optional[str] = OwnerOption,
):
    """Submit the reflection for a deferred session."""
    owner_id = resolve_owner(owner)

    async def _submit():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            matches = [s for s in engine.pending_reflections() if s.id.startswith(session_id)]
            if len(matches) != 1:
                console.print(f"[red]No unique pending session matches '{session_id}'.[/red]")
                raise typer.Exit(1)
            engine.submit_deferred_reflection(matches[0].id, outcome, mistake, insight)
            console.print(f"Reflection saved for [cyan]{matches[0].intent_declaration}[/cyan].")

    asyncio.run(_submit())
