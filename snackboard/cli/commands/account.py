"""
FILE: snackboard/cli/commands/account.py
PURPOSE: Cloud account and manual sync commands (auth_*, sync_*)
NOTES:
  - Requires SNACKBOARD_SUPABASE_URL and SNACKBOARD_SUPABASE_KEY (or config.json)
  - Signing in migrates a non-empty local board once, then loads the cloud board
"""

import typer

from ..common import run_board
from ..main import auth_app, console, sync_app
from ...core.exceptions import AuthError


@auth_app.command("signup")
def auth_signup(
    email: str = typer.Argument(..., help="Email address"),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
):
    """Create a cloud account (a confirmation email is sent)."""

    async def apply(store, sync):
        await sync.sign_up(email, password)

    run_board(apply, resume=False)
    console.print(f"[green]✓[/green] Account created for {email}. Check your email to confirm.")


@auth_app.command("signin")
def auth_signin(
    email: str = typer.Argument(..., help="Email address"),
    password: str = typer.Option(..., prompt=True, hide_input=True),
):
    """
    Sign in and sync this board with the cloud.

    Example:
        snackboard auth signin me@example.com
    """

    async def apply(store, sync):
        return await sync.sign_in(email, password)

    session = run_board(apply, resume=False)
    console.print(f"[green]✓[/green] Signed in as {session.email or email}")


@auth_app.command("signout")
def auth_signout():
    """Sign out; the board keeps saving locally."""

    async def apply(store, sync):
        if not sync.signed_in:
            return False
        await sync.sign_out()
        return True

    if run_board(apply):
        console.print("[green]✓[/green] Signed out")
    else:
        console.print("[dim]Not signed in.[/dim]")


@auth_app.command("whoami")
def auth_whoami():
    """Show the signed-in account."""

    def apply(store, sync):
        return sync.session

    session = run_board(apply)
    if session is None:
        console.print("[dim]Not signed in.[/dim]")
    else:
        console.print(f"Signed in as [bold]{session.email or session.user_id}[/bold]")


@sync_app.command("push")
def sync_push():
    """Write the local board to the cloud now."""

    async def apply(store, sync):
        if not sync.signed_in:
            raise AuthError("Not signed in")
        return await sync.push()

    if not run_board(apply, resume=True):
        raise typer.Exit(1)
    console.print("[green]✓[/green] Board pushed to cloud")


@sync_app.command("pull")
def sync_pull():
    """Replace the local board with the cloud board."""

    async def apply(store, sync):
        if not sync.signed_in:
            raise AuthError("Not signed in")
        return await sync.load()

    if run_board(apply):
        console.print("[green]✓[/green] Board loaded from cloud")
    else:
        console.print("[dim]Nothing stored in the cloud yet.[/dim]")
