"""
FILE: snackboard/formatting.py
PURPOSE: Shared formatting utilities for CLI output
EXPORTS:
  - format_minutes(minutes) -> str
  - format_clock(seconds) -> str
  - TaskFormatter: Class for formatting tasks
  - ProjectFormatter: Class for formatting projects
  - create_stats_table(title, breakdown) -> Table
DEPENDENCIES:
  - rich (for table formatting)
  - json (for JSON serialization)
  - snackboard.core.models, snackboard.core.queries
NOTES:
  - Centralized formatting logic for consistency
  - JSON output uses the stored (camelCase) record shape
"""

import json
from typing import Dict, List, Optional

from rich.errors import StyleSyntaxError
from rich.markup import escape
from rich.style import Style
from rich.table import Table
from rich.text import Text

from .core.constants import COLUMN_NAMES
from .core.models import Project, Task, TimedTask
from .core.queries import ProjectStats, ranked


def format_minutes(minutes: Optional[int]) -> str:
    """Compact duration: 0m, 45m, 1h, 1h 5m."""
    if not minutes:
        return "0m"
    hours, mins = divmod(int(minutes), 60)
    if hours > 0:
        return f"{hours}h {mins}m" if mins > 0 else f"{hours}h"
    return f"{mins}m"


def format_clock(seconds: int) -> str:
    """Timer display MM:SS (minutes are not wrapped at 60)."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"


class TaskFormatter:
    """Centralized task display formatting."""

    @staticmethod
    def create_table(
        tasks: List[Task],
        projects: Dict[str, Project],
        title: str = "Tasks",
        active_task_id: Optional[str] = None,
    ) -> Table:
        """
        Create Rich table for tasks.

        Args:
            tasks: List of tasks to display
            projects: Project lookup by id
            title: Table title
            active_task_id: Task with the running timer, highlighted

        Returns:
            Rich Table object ready for display
        """
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Title", style="white")
        table.add_column("Column", style="magenta")
        table.add_column("Size", style="blue", justify="right")
        table.add_column("Logged", style="green", justify="right")
        table.add_column("Project", style="yellow")
        table.add_column("Focus", style="dim")

        column_style_map = {
            "backlog": "dim",
            "ready": "blue",
            "doing": "bright_magenta",
            "done": "green",
        }

        for task in tasks:
            column_style = column_style_map.get(task.column_id, "white")
            column = f"[{column_style}]{COLUMN_NAMES.get(task.column_id, task.column_id)}[/{column_style}]"

            if isinstance(task, TimedTask):
                size = f"{task.size_id}m"
                logged = format_minutes(task.actual_minutes) if task.actual_minutes else ""
            else:
                size = "[italic]prompt[/italic]"
                logged = ""

            project = projects.get(task.project_id) if task.project_id else None
            title_text = escape(task.title)
            if task.id == active_task_id:
                title_text = f"[bold green]▶ {title_text}[/bold green]"

            table.add_row(
                task.id,
                title_text,
                column,
                size,
                logged,
                escape(project.name) if project else "-",
                escape(", ".join(task.labels)),
            )

        return table

    @staticmethod
    def to_json_array(tasks: List[Task]) -> str:
        """Convert task list to JSON array string."""
        return json.dumps([t.to_dict() for t in tasks], indent=2)

    @staticmethod
    def to_raw_lines(tasks: List[Task]) -> List[str]:
        """Convert task list to plain text lines."""
        lines = []
        for task in tasks:
            status_marker = "x" if task.column_id == "done" else " "
            lines.append(f"{task.id}: [{status_marker}] {task.title}")
        return lines


class ProjectFormatter:
    """Project display formatting."""

    @staticmethod
    def create_table(projects: List[Project], stats: Dict[str, ProjectStats]) -> Table:
        table = Table(title="Projects")
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Focus", style="magenta")
        table.add_column("Estimate", style="blue", justify="right")
        table.add_column("Actual", style="green", justify="right")

        for project in projects:
            project_stats = stats.get(project.id, ProjectStats())
            table.add_row(
                project.id,
                Text.assemble(("● ", _color_style(project.color)), project.name),
                project.primary_area or "",
                format_minutes(project_stats.total_estimate),
                format_minutes(project_stats.total_actual),
            )

        return table


def create_stats_table(title: str, breakdown: Dict[str, int]) -> Table:
    """Two-column table of a minutes breakdown, largest first."""
    table = Table(title=title, show_header=False)
    table.add_column("Name", style="white")
    table.add_column("Time", style="green", justify="right")
    for name, minutes in ranked(breakdown):
        table.add_row(name, format_minutes(minutes))
    return table


def _color_style(color: str) -> str:
    """Project color as a rich style, or plain if it isn't a usable color."""
    try:
        Style.parse(color)
    except StyleSyntaxError:
        return ""
    return color
