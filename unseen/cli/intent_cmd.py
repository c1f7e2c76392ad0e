"""CLI commands for declaring and resolving intents."""

import asyncio
from typing import Optional

import typer
from rich.table import Table

from unseen.cli.common import OwnerOption, console, resolve_owner, short

app = typer.Typer(no_args_is_help=True)


@app.command("declare")
def declare(
    declaration: str = typer.Argument(help="What you choose to work on"),
    owner: Optional[str] = OwnerOption,
):
    """Declare the intent you will focus on next."""
    owner_id = resolve_owner(owner)

    async def _declare():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            intent = engine.declare_intent(declaration)
            if intent is None:
                console.print("[red]Intent not declared.[/red] Close the current focus session first.")
                raise typer.Exit(1)
            console.print(f"Intent declared: [cyan]{intent.declaration}[/cyan] (id: {short(intent.id)})")

    asyncio.run(_declare())


@app.command("resolve")
def resolve(owner: Optional[str] = OwnerOption):
    """Resolve the current intent without entering focus."""
    owner_id = resolve_owner(owner)

    async def _resolve():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            if not engine.resolve_intent_without_focus():
                console.print("[red]Nothing to resolve.[/red] Only a declared intent can be resolved directly.")
                raise typer.Exit(1)
            console.print("[green]Intent resolved.[/green]")

    asyncio.run(_resolve())


@app.command("show")
def show(
    history: bool = typer.Option(False, "--history", help="Include resolved intents"),
    owner: Optional[str] = OwnerOption,
):
    """Show the active intent."""
    owner_id = resolve_owner(owner)

    async def _show():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            intent = engine.active_intent
            if intent is None:
                console.print("[dim]No active intent.[/dim]")
            else:
                console.print(f"[bold]{intent.declaration}[/bold] ({intent.status}) since {intent.declared_at:%Y-%m-%d %H:%M}")

            if history:
                table = Table(title="Resolved Intents")
                table.add_column("ID", style="dim")
                table.add_column("Declaration", style="cyan")
                table.add_column("Resolution")
                table.add_column("Resolved")
                for item in engine.intent_history():
                    resolved = f"{item.resolved_at:%Y-%m-%d}" if item.resolved_at else ""
                    table.add_row(short(item.id), item.declaration, item.resolution or "", resolved)
                console.print(table)

    asyncio.run(_show())
