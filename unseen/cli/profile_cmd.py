"""CLI commands for the owner profile."""

import asyncio
from typing import Optional

import typer

from unseen.cli.common import OwnerOption, console, resolve_owner

app = typer.Typer(no_args_is_help=True)


@app.command("setup")
def setup(
    name: str = typer.Option(..., "--name", prompt=True),
    email: str = typer.Option(..., "--email", prompt=True),
    focus_area: str = typer.Option("", "--focus-area", prompt="Focus area"),
    owner: Optional[str] = OwnerOption,
):
    """Create the profile for an owner."""
    owner_id = resolve_owner(owner)

    async def _setup():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            profile = engine.complete_onboarding(name, email, focus_area)
            console.print(f"Profile ready. Public alias: [cyan]{profile.public_alias}[/cyan]")

    asyncio.run(_setup())


@app.command("show")
def show(owner: Optional[str] = OwnerOption):
    """Show profile fields."""
    owner_id = resolve_owner(owner)

    async def _show():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            profile = engine.profile
            verified = "[green]verified[/green]" if profile.email_verified else "[yellow]unverified[/yellow]"
            console.print(f"[bold]{profile.name or owner_id}[/bold] ({profile.public_alias or '-'})")
            console.print(f"  Email:  {profile.email or '-'} {verified}")
            console.print(f"  Focus:  {profile.focus_area or '-'}")
            if profile.join_date:
                console.print(f"  Joined: {profile.join_date.isoformat()}")

    asyncio.run(_show())


@app.command("verify")
def verify(
    code: Optional[str] = typer.Option(None, "--code", help="Confirm a previously issued code"),
    owner: Optional[str] = OwnerOption,
):
    """Issue a verification code, or confirm one with --code."""
    owner_id = resolve_owner(owner)

    async def _verify():
        from unseen.host import open_engine

        async with open_engine(owner_id) as engine:
            if code is None:
                issued = engine.set_verification_challenge()
                # Delivery is the account service's job; print it for local use
                console.print(f"Verification code: [bold]{issued}[/bold]")
                return
            if not engine.confirm_verification_code(code):
                console.print("[red]Code does not match.[/red]")
                raise typer.Exit(1)
            console.print("[green]Verified.[/green] Aura rewards and decay are now active.")

    asyncio.run(_verify())
