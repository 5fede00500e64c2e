"""
FILE: snackboard/cli/commands/labels.py
PURPOSE: Focus area commands (label_add, label_ls, label_rename, label_rm)
"""

import json

import typer

from ..common import run_board
from ..main import console, error_console, label_app


@label_app.command("add")
def label_add(name: str = typer.Argument(..., help="Focus area name")):
    """Add a focus area."""
    added = run_board(lambda store, sync: store.add_label(name))
    console.print(f"[green]✓[/green] Added focus area: {added}")


@label_app.command("ls")
def label_ls(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    List focus areas with how many tasks use each.

    Example:
        snackboard label ls
    """

    def apply(store, sync):
        return [
            (label, sum(1 for t in store.tasks if label in t.labels))
            for label in store.all_labels
        ]

    rows = run_board(apply)

    if json_output:
        console.print(json.dumps([label for label, _ in rows], indent=2))
        return
    for label, count in rows:
        console.print(f"{label} [dim]({count})[/dim]")


@label_app.command("rename")
def label_rename(
    old: str = typer.Argument(..., help="Current name"),
    new: str = typer.Argument(..., help="New name"),
):
    """
    Rename a focus area on every task, project and filter that uses it.

    Example:
        snackboard label rename Coding Engineering
    """
    if old.strip() == new.strip():
        error_console.print("[yellow]Name unchanged.[/yellow]")
        raise typer.Exit(1)

    renamed = run_board(lambda store, sync: store.rename_label(old, new))
    console.print(f"[green]✓[/green] Renamed focus area {old} → {renamed}")


@label_app.command("rm")
def label_rm(
    name: str = typer.Argument(..., help="Focus area name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """Delete a focus area and remove it from all tasks and projects."""
    if not yes:
        typer.confirm(f"Delete focus area '{name}' from all tasks?", abort=True)

    def apply(store, sync):
        known = name in store.all_labels
        if known:
            store.delete_label(name)
        return known

    if not run_board(apply):
        error_console.print(f"[red]Error:[/red] Focus area '{name}' not found")
        raise typer.Exit(1)
    console.print(f"[green]✓[/green] Deleted focus area: {name}")
