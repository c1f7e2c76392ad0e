"""Interactive focus session.

A focus session lives only as long as the process, so the whole loop
(begin, collect artifacts, finish or abandon, reflect) runs in one command.
"""

import asyncio
from typing import Optional

import typer
from rich.table import Table

from unseen.cli.common import OwnerOption, console, resolve_owner, short

app = typer.Typer(no_args_is_help=True)

HELP = "Commands: note, code, link, list, delete, finish, abandon"


def _print_artifacts(engine) -> None:
    table = Table(title="Artifacts")
    table.add_column("ID", style="dim")
    table.add_column("Type")
    table.add_column("Title", style="cyan")
    table.add_column("Language")
    for artifact in engine.focus_artifacts:
        table.add_row(short(artifact.id), artifact.type, artifact.title, artifact.language or "")
    console.print(table)


def _collect(engine) -> str:
    """Run the artifact loop until the session is finished or abandoned."""
    while True:
        command = typer.prompt("focus").strip().lower()

        if command == "note":
            title = typer.prompt("Title")
            engine.add_artifact("note", title, typer.prompt("Note"))
        elif command == "code":
            title = typer.prompt("Title")
            language = typer.prompt("Language", default="", show_default=False) or None
            engine.add_artifact("code", title, typer.prompt("Code"), language=language)
        elif command == "link":
            title = typer.prompt("Title")
            url = typer.prompt("URL")
            engine.add_artifact("external", title, url, url=url)
        elif command == "list":
            _print_artifacts(engine)
        elif command == "delete":
            prefix = typer.prompt("Artifact id")
            match = next((a for a in engine.focus_artifacts if a.id.startswith(prefix)), None)
            if match is None or not engine.delete_artifact(match.id):
                console.print("[yellow]No such artifact.[/yellow]")
        elif command == "finish":
            if not engine.focus_artifacts:
                console.print("[yellow]Add at least one artifact before finishing.[/yellow]")
                continue
            if engine.finish_focus(typer.prompt("Proof of work")):
                return "finished"
            console.print("[yellow]Proof is required to finish.[/yellow]")
        elif command == "abandon":
            engine.abandon_focus()
            return "abandoned"
        else:
            console.print(f"[dim]{HELP}[/dim]")


@app.command("run")
def run(
    intent: Optional[str] = typer.Option(None, "--intent", "-i", help="Declare this intent before starting"),
    owner: Optional[str] = OwnerOption,
):
    """Begin a focus session on the active intent."""
    owner_id = resolve_owner(owner)

    async def _run():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            if intent and engine.declare_intent(intent) is None:
                console.print("[red]Could not declare intent.[/red]")
                raise typer.Exit(1)

            if not engine.begin_focus():
                console.print("[red]Cannot begin focus.[/red] Declare an intent first: [cyan]unseen intent declare[/cyan]")
                raise typer.Exit(1)

            session = engine.active_focus_session
            console.print(f"[bold]Focus:[/bold] [cyan]{session.intent_declaration}[/cyan]")
            console.print(f"[dim]{HELP}[/dim]")

            outcome = _collect(engine)
            console.print(f"Session {outcome}.")

            if typer.confirm("Reflect now?", default=True):
                reflection = engine.submit_reflection(
                    typer.prompt("What happened", default="", show_default=False),
                    typer.prompt("Mistake pattern", default="", show_default=False),
                    typer.prompt("Insight", default="", show_default=False),
                )
                if reflection is not None:
                    console.print("[green]Reflection saved. Intent resolved.[/green]")
            else:
                engine.defer_reflection()
                console.print("Reflection deferred. See [cyan]unseen reflect pending[/cyan].")

    asyncio.run(_run())
