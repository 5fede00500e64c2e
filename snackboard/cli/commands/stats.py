"""
FILE: snackboard/cli/commands/stats.py
PURPOSE: Time statistics commands (stats_today, stats_project)
"""

import json
from dataclasses import asdict

import typer

from ..common import resolve_project, run_board
from ..main import console, stats_app
from ...core.queries import estimate_variance, project_stats, today_stats
from ...formatting import create_stats_table, format_minutes


@stats_app.command("today")
def stats_today(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Time logged today, by focus area and project.

    Example:
        snackboard stats today
    """
    stats = run_board(lambda store, sync: today_stats(store))
    variance = estimate_variance(stats)

    if json_output:
        console.print(json.dumps({**asdict(stats), "variance_percent": variance}, indent=2))
        return

    if not stats.total_minutes:
        console.print("[dim]No time logged today.[/dim]")
        return

    line = f"[bold]Today:[/bold] {format_minutes(stats.total_minutes)}"
    line += f" [dim](estimated {format_minutes(stats.estimate_minutes)})[/dim]"
    if variance is not None:
        color = "red" if variance > 0 else "green"
        line += f" [{color}]{variance:+d}%[/{color}]"
    console.print(line)

    if stats.by_label:
        console.print(create_stats_table("By focus", stats.by_label))
    if stats.by_project:
        console.print(create_stats_table("By project", stats.by_project))


@stats_app.command("project")
def stats_project(
    project_ref: str = typer.Argument(..., help="Project name or id"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Lifetime estimate vs. logged time for a project."""

    def apply(store, sync):
        project = resolve_project(store, project_ref)
        return project, project_stats(store, project.id)

    project, stats = run_board(apply)

    if json_output:
        console.print(json.dumps({"projectId": project.id, **asdict(stats)}, indent=2))
    else:
        console.print(
            f"[bold]{project.name}:[/bold] {format_minutes(stats.total_actual)} logged"
            f" of {format_minutes(stats.total_estimate)} estimated"
        )
