"""CLI commands for permanent records: vault entries and project logs."""

import asyncio
from typing import Optional

import typer
from rich.table import Table

from unseen.cli.common import OwnerOption, console, resolve_owner, short

app = typer.Typer(no_args_is_help=True)
log_app = typer.Typer(no_args_is_help=True)


@app.command("list")
def list_entries(
    type: Optional[str] = typer.Option(None, "--type", "-t", help="Filter by entry type"),
    owner: Optional[str] = OwnerOption,
):
    """List vault entries, newest first."""
    owner_id = resolve_owner(owner)

    async def _list():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            entries = engine.vault_entries()
            if type:
                entries = [e for e in entries if e.type == type]
            if not entries:
                console.print("[yellow]Vault is empty.[/yellow]")
                return

            table = Table(title=f"Vault ({len(entries)})")
            table.add_column("ID", style="dim")
            table.add_column("Type")
            table.add_column("Title", style="cyan")
            table.add_column("Tags")
            table.add_column("Created")
            table.add_column("Source")
            for entry in entries:
                source = "focus" if entry.focus_session_id else ""
                if entry.unverified:
                    source = f"{source} [yellow]unverified[/yellow]".strip()
                table.add_row(
                    short(entry.id.removeprefix("vault-")),
                    entry.type,
                    entry.title,
                    ", ".join(entry.tags),
                    f"{entry.created_at:%Y-%m-%d}",
                    source,
                )
            console.print(table)

    asyncio.run(_list())


@app.command("add")
def add_entry(
    title: str = typer.Argument(help="Entry title"),
    content: str = typer.Argument(help="Entry content"),
    type: str = typer.Option("learning", "--type", "-t", help="learning, solution, mistake, code, external"),
    language: Optional[str] = typer.Option(None, "--language", "-l"),
    url: Optional[str] = typer.Option(None, "--url"),
    tag: Optional[list[str]] = typer.Option(None, "--tag", help="Tag (repeatable)"),
    owner: Optional[str] = OwnerOption,
):
    """Add a vault entry outside a focus session."""
    owner_id = resolve_owner(owner)

    async def _add():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            entry = engine.add_vault_entry(type, title, content, language=language, url=url, tags=tag or [])
            if entry is None:
                console.print("[red]Entry rejected.[/red] Standalone notes are not stored in the vault.")
                raise typer.Exit(1)
            console.print(f"Vault entry added: [cyan]{title}[/cyan] (aura {engine.aura_score:.0f})")

    asyncio.run(_add())


@log_app.command("add")
def add_log(
    project: str = typer.Argument(help="Project name"),
    idea: str = typer.Argument(help="What the project is about"),
    decision: Optional[list[str]] = typer.Option(None, "--decision", help="Decision made (repeatable)"),
    bug: Optional[list[str]] = typer.Option(None, "--bug", help="Bug found (repeatable)"),
    improvement: Optional[list[str]] = typer.Option(None, "--improvement", help="Improvement (repeatable)"),
    owner: Optional[str] = OwnerOption,
):
    """Record a project log."""
    owner_id = resolve_owner(owner)

    async def _add():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            engine.add_project_log(
                project, idea,
                decisions=decision or [], bugs=bug or [], improvements=improvement or [],
            )
            console.print(f"Project log added: [cyan]{project}[/cyan] (aura {engine.aura_score:.0f})")

    asyncio.run(_add())
