"""
FILE: snackboard/cli/commands/system.py
PURPOSE: System commands (version, config_show, config_set)
"""

import json
from dataclasses import asdict

import typer

from ...config import get_config_path, load_config, save_config, set_option
from ...core.exceptions import SnackboardError
from ..common import fail

# Import shared objects from main module
# These will be available after main.py imports this module
from ..main import app, config_app, console, __version__


@app.command()
def version():
    """Show snackboard version."""
    console.print(f"snackboard v{__version__}")


@config_app.command("show")
def config_show(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show the effective settings (environment overrides applied)."""
    config = load_config()
    data = asdict(config)
    if data["supabase_key"]:
        data["supabase_key"] = data["supabase_key"][:6] + "..."

    if json_output:
        console.print(json.dumps(data, indent=2))
        return

    console.print(f"[dim]{get_config_path()}[/dim]")
    for key, value in data.items():
        console.print(f"{key}: {value}")


@config_app.command("set")
def config_set(
    key: str = typer.Argument(..., help="Setting name, e.g. supabase_url"),
    value: str = typer.Argument(..., help="New value"),
):
    """
    Change one setting in config.json.

    Example:
        snackboard config set supabase_url https://abc.supabase.co
        snackboard config set debounce_seconds 1
    """
    try:
        config = set_option(load_config(apply_env=False), key, value)
    except SnackboardError as e:
        fail(e)
    save_config(config)
    console.print(f"[green]✓[/green] {key} updated")
