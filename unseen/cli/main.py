"""Unseen CLI — main entry point using Typer."""

import asyncio
from typing import Optional

import typer

from unseen.cli.aura_cmd import app as aura_app
from unseen.cli.common import OwnerOption, console, resolve_owner, setup_logging
from unseen.cli.focus_cmd import app as focus_app
from unseen.cli.intent_cmd import app as intent_app
from unseen.cli.profile_cmd import app as profile_app
from unseen.cli.reflect_cmd import app as reflect_app
from unseen.cli.vault_cmd import app as vault_app
from unseen.cli.vault_cmd import log_app

app = typer.Typer(
    name="unseen",
    help="Declare an intent, focus on it, reflect, and keep what you learned.",
    no_args_is_help=True,
)

# Register subcommands
app.add_typer(intent_app, name="intent", help="Declare and resolve intents")
app.add_typer(focus_app, name="focus", help="Run a focus session")
app.add_typer(reflect_app, name="reflect", help="Deferred reflections")
app.add_typer(aura_app, name="aura", help="Aura score and decay")
app.add_typer(vault_app, name="vault", help="Knowledge vault")
app.add_typer(log_app, name="log", help="Project logs")
app.add_typer(profile_app, name="profile", help="Owner profile and verification")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    setup_logging(verbose)


DEFAULT_CONFIG = (
    "[general]\n"
    '# owner_id = ""\n'
    'log_level = "INFO"\n\n'
    "[aura]\n"
    "knowledge_delta = 2\n"
    "project_log_delta = 3\n"
    "decay_per_missed_day = 5\n"
    "grace_days = 1\n"
    "history_days = 14\n"
)


@app.command()
def init():
    """Create the config file and database."""

    async def _init():
        from pathlib import Path

        from unseen.config import get_settings
        from unseen.storage.db import init_db

        settings = get_settings()

        console.print("[bold]Setting up Unseen[/bold]", style="green")

        data_dir = Path(settings.general.data_dir).expanduser()
        data_dir.mkdir(parents=True, exist_ok=True)
        console.print(f"  Data dir: {data_dir}")

        config_dir = Path.home() / ".config/unseen"
        config_dir.mkdir(parents=True, exist_ok=True)
        config_path = config_dir / "config.toml"
        if not config_path.exists():
            config_path.write_text(DEFAULT_CONFIG)
            console.print(f"  Config written: {config_path}")
        else:
            console.print(f"  Config exists: {config_path}")

        await init_db(settings.general.db_url)
        console.print("  Database ready.")

        console.print("\nNext steps:")
        console.print("  1. Create your profile: [cyan]unseen profile setup -o <you>[/cyan]")
        console.print("  2. Declare an intent:   [cyan]unseen intent declare \"...\" -o <you>[/cyan]")
        console.print("  3. Start focusing:      [cyan]unseen focus run -o <you>[/cyan]")

    asyncio.run(_init())


@app.command()
def status(owner: Optional[str] = OwnerOption):
    """Show mode, active intent, aura and pending reflections."""
    owner_id = resolve_owner(owner)

    async def _status():
        from rich.table import Table

        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            intent = engine.active_intent
            table = Table(title=f"Unseen Status: {owner_id}")
            table.add_column("Field", style="cyan")
            table.add_column("Value")
            table.add_row("Mode", engine.mode)
            table.add_row("Intent", f"{intent.declaration} ({intent.status})" if intent else "-")
            table.add_row("Aura", f"{engine.aura_score:.0f} ({engine.aura_status()}, {engine.aura_trend()})")
            table.add_row("Vault entries", str(len(engine.vault_entries())))
            table.add_row("Project logs", str(len(engine.project_logs())))
            table.add_row("Completed focus sessions", str(engine.completed_focus_count()))
            table.add_row("Pending reflections", str(len(engine.pending_reflections())))
            console.print(table)

            if engine.aura_at_risk():
                console.print(f"[yellow]Aura at risk:[/yellow] {engine.days_missed()} day(s) since your last record.")

    asyncio.run(_status())


if __name__ == "__main__":
    app()
