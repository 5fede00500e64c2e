"""
FILE: snackboard/cli/commands/projects.py
PURPOSE: Project management commands (project_add, project_ls, project_edit, project_rm)
"""

import json
from typing import Optional

import typer

from ..common import resolve_project, run_board
from ..main import console, error_console, project_app
from ...core.constants import DEFAULT_PROJECT_COLOR
from ...core.queries import project_stats
from ...formatting import ProjectFormatter


@project_app.command("add")
def project_add(
    name: str = typer.Argument(..., help="Project name"),
    color: str = typer.Option(DEFAULT_PROJECT_COLOR, "--color", help="Display color (#rrggbb)"),
    notes: str = typer.Option("", "--notes", "-n", help="Notes"),
    focus: Optional[str] = typer.Option(None, "--focus", "-f", help="Primary focus area for new tasks"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new project.

    Example:
        snackboard project add "Work"
        snackboard project add "Side project" --focus Coding --color "#10b981"
    """

    def apply(store, sync):
        if focus:
            store.ensure_labels([focus])
        return store.create_project(name, color=color, notes=notes, primary_area=focus)

    project = run_board(apply)

    if json_output:
        console.print(project.to_json())
    elif raw:
        console.print(f"{project.id}: {project.name}")
    else:
        console.print(f"[green]✓[/green] Created project {project.id}: {project.name}")


@project_app.command("ls")
def project_ls(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List all projects with lifetime estimate and logged time.

    Example:
        snackboard project ls
        snackboard project ls --json
    """

    def apply(store, sync):
        return list(store.projects), {p.id: project_stats(store, p.id) for p in store.projects}

    projects, stats = run_board(apply)

    if json_output:
        console.print(json.dumps([p.to_dict() for p in projects], indent=2))
    elif raw:
        for project in projects:
            console.print(f"{project.id}: {project.name}")
    elif not projects:
        console.print("[dim]No projects found.[/dim]")
    else:
        console.print(ProjectFormatter.create_table(projects, stats))


@project_app.command("edit")
def project_edit(
    project_ref: str = typer.Argument(..., help="Project name or id"),
    name: Optional[str] = typer.Option(None, "--name", help="New name"),
    color: Optional[str] = typer.Option(None, "--color", help="New color"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Replace notes"),
    focus: Optional[str] = typer.Option(None, "--focus", "-f", help="Primary focus area ('' to clear)"),
):
    """
    Edit a project.

    Example:
        snackboard project edit Work --name "Day job" --focus Admin
    """
    fields = {}
    if name is not None:
        if not name.strip():
            error_console.print("[red]Error:[/red] Project name cannot be empty")
            raise typer.Exit(1)
        fields["name"] = name.strip()
    if color is not None:
        fields["color"] = color
    if notes is not None:
        fields["notes"] = notes
    if focus is not None:
        fields["primary_area"] = focus.strip() or None

    if not fields:
        error_console.print("[yellow]Nothing to change.[/yellow]")
        raise typer.Exit(1)

    def apply(store, sync):
        project = resolve_project(store, project_ref)
        if fields.get("primary_area"):
            store.ensure_labels([fields["primary_area"]])
        return store.update_project(project.id, **fields)

    project = run_board(apply)
    console.print(f"[green]✓[/green] Updated project {project.id}: {project.name}")


@project_app.command("rm")
def project_rm(
    project_ref: str = typer.Argument(..., help="Project name or id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """
    Delete a project. Its tasks are kept and become unassigned.

    Example:
        snackboard project rm Work --yes
    """
    if not yes:
        typer.confirm(f"Delete project '{project_ref}'? Its tasks will be kept.", abort=True)

    def apply(store, sync):
        project = resolve_project(store, project_ref)
        orphaned = sum(1 for t in store.tasks if t.project_id == project.id)
        store.delete_project(project.id)
        return project, orphaned

    project, orphaned = run_board(apply)
    message = f"[green]✓[/green] Deleted project {project.id}: {project.name}"
    if orphaned:
        message += f" [dim]({orphaned} task{'' if orphaned == 1 else 's'} unassigned)[/dim]"
    console.print(message)
