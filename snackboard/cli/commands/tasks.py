"""
FILE: snackboard/cli/commands/tasks.py
PURPOSE: Task commands (add, ls, show, edit, mv, rm, import)
"""

import sys
from pathlib import Path
from typing import List, Optional

import typer
from rich.panel import Panel

from ..common import fail, parse_column, resolve_project_id, resolve_task, run_board
from ..main import app, console, error_console
from ...core.constants import COLUMN_NAMES
from ...core.csv_import import import_tasks_from_csv
from ...core.models import PromptTask, TimedTask
from ...core.queries import filtered_tasks, tasks_by_column
from ...formatting import TaskFormatter, format_minutes


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    project_ref: Optional[str] = typer.Option(None, "--project", "-p", help="Project name or id"),
    column: str = typer.Option("later", "--column", "-c", help="Later, Next, Now or Done"),
    size: Optional[int] = typer.Option(None, "--size", "-s", help="Size in minutes: 1, 5, 15 or 30"),
    estimate: Optional[int] = typer.Option(None, "--estimate", "-e", help="Estimate in minutes (default: size)"),
    focus: Optional[List[str]] = typer.Option(None, "--focus", "-f", help="Focus area (repeatable)"),
    notes: str = typer.Option("", "--notes", "-n", help="Notes"),
    prompt: Optional[str] = typer.Option(None, "--prompt", help="Create a prompt-only task with this prompt"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    Create a new task.

    Example:
        snackboard add "Write documentation"
        snackboard add "Fix bug" --project Work --column now --size 15
        snackboard add "Summarise notes" --prompt "Summarise these notes: ..."
    """

    def apply(store, sync):
        project_id = resolve_project_id(store, project_ref)
        if focus:
            store.ensure_labels(focus)
        return store.create_task(
            title,
            project_id=project_id,
            column_id=parse_column(column),
            prompt_only=prompt is not None,
            size_id=size,
            estimate_minutes=estimate,
            labels=list(focus) if focus else None,
            notes=notes,
            ai_prompt=prompt or "",
        )

    task = run_board(apply)

    if json_output:
        console.print(task.to_json())
    elif raw:
        console.print(f"{task.id}: {task.title}")
    else:
        console.print(f"[green]✓ Created task [bold]{task.id}[/bold]:[/green] {task.title}")


@app.command()
def ls(
    project_ref: Optional[str] = typer.Option(None, "--project", "-p", help="Filter by project name or id"),
    focus: Optional[List[str]] = typer.Option(None, "--focus", "-f", help="Filter by focus area (repeatable)"),
    size: Optional[List[int]] = typer.Option(None, "--size", "-s", help="Filter by size (repeatable)"),
    active: bool = typer.Option(False, "--active", help="Hide tasks in Done"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
    raw: bool = typer.Option(False, "--raw", help="Plain text output (no colors)"),
):
    """
    List tasks, board order (Later, Next, Now, Done).

    Filters of different kinds combine with AND, values of one kind with OR.

    Example:
        snackboard ls
        snackboard ls --project Work --focus Coding --focus Admin
        snackboard ls --size 1 --size 5 --active
    """

    def apply(store, sync):
        project_id = resolve_project_id(store, project_ref)
        if project_id is not None:
            store.select_project(project_id)
        # Repeated values would toggle a filter back off
        for label in dict.fromkeys(focus or []):
            store.toggle_label_filter(label)
        for size_id in dict.fromkeys(size or []):
            store.toggle_size_filter(size_id)
        if active:
            store.set_active_only(True)

        board = tasks_by_column(filtered_tasks(store))
        tasks = [task for column in board.values() for task in column]
        project = store.get_project(project_id)
        projects = {p.id: p for p in store.projects}
        return tasks, projects, project, store.timer_state.task_id

    tasks, projects, project, active_task_id = run_board(apply)

    if json_output:
        console.print(TaskFormatter.to_json_array(tasks))
    elif raw:
        for line in TaskFormatter.to_raw_lines(tasks):
            console.print(line)
    elif not tasks:
        console.print("[dim]No tasks found.[/dim]")
    else:
        title = f"Tasks - {project.name}" if project else "Tasks"
        console.print(TaskFormatter.create_table(tasks, projects, title, active_task_id))


@app.command()
def show(
    task_ref: str = typer.Argument(..., help="Task id or unique id prefix"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Show task details.

    Example:
        snackboard show 3f2a
    """

    def apply(store, sync):
        task = resolve_task(store, task_ref)
        return task, store.get_project(task.project_id)

    task, project = run_board(apply)

    if json_output:
        console.print(task.to_json())
        return

    lines = [
        f"[bold]ID:[/bold] {task.id}",
        f"[bold]Column:[/bold] {COLUMN_NAMES.get(task.column_id, task.column_id)}",
        f"[bold]Project:[/bold] {project.name if project else '-'}",
        f"[bold]Focus:[/bold] {', '.join(task.labels) or '-'}",
    ]
    if isinstance(task, TimedTask):
        lines.append(f"[bold]Size:[/bold] {task.size_id}m")
        lines.append(f"[bold]Estimate:[/bold] {format_minutes(task.estimate_minutes)}")
        lines.append(f"[bold]Logged:[/bold] {format_minutes(task.actual_minutes)}")
        if task.time_entries:
            lines.append(f"[bold]Entries:[/bold] {len(task.time_entries)}")
    if isinstance(task, PromptTask):
        lines.append("[bold]Type:[/bold] prompt")
        if task.ai_prompt:
            lines.append(f"\n[bold]Prompt:[/bold]\n{task.ai_prompt}")
    if task.notes:
        lines.append(f"\n[bold]Notes:[/bold]\n{task.notes}")

    console.print(Panel("\n".join(lines), title=task.title, expand=False))


@app.command()
def edit(
    task_ref: str = typer.Argument(..., help="Task id or unique id prefix"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    project_ref: Optional[str] = typer.Option(None, "--project", "-p", help="Project name or id ('none' to unassign)"),
    column: Optional[str] = typer.Option(None, "--column", "-c", help="Later, Next, Now or Done"),
    size: Optional[int] = typer.Option(None, "--size", "-s", help="Size in minutes"),
    estimate: Optional[int] = typer.Option(None, "--estimate", "-e", help="Estimate in minutes"),
    focus: Optional[List[str]] = typer.Option(None, "--focus", "-f", help="Replace focus areas (repeatable)"),
    notes: Optional[str] = typer.Option(None, "--notes", "-n", help="Replace notes"),
    prompt_text: Optional[str] = typer.Option(None, "--prompt-text", help="Replace the prompt (prompt tasks)"),
    prompt_only: Optional[bool] = typer.Option(None, "--prompt/--timed", help="Convert to a prompt or timed task"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Edit a task's fields.

    Example:
        snackboard edit 3f2a --title "Write better docs" --size 15
        snackboard edit 3f2a --prompt --prompt-text "Draft the release notes"
    """
    fields = {}
    if title is not None:
        if not title.strip():
            error_console.print("[red]Error:[/red] Task title cannot be empty")
            raise typer.Exit(1)
        fields["title"] = title.strip()
    if size is not None:
        fields["size_id"] = size
    if estimate is not None:
        fields["estimate_minutes"] = estimate
    if focus is not None:
        fields["labels"] = list(focus)
    if notes is not None:
        fields["notes"] = notes
    if prompt_text is not None:
        fields["ai_prompt"] = prompt_text
    if prompt_only is not None:
        fields["is_prompt_only"] = prompt_only

    if not fields and project_ref is None and column is None:
        error_console.print("[yellow]Nothing to change.[/yellow]")
        raise typer.Exit(1)

    def apply(store, sync):
        task = resolve_task(store, task_ref)
        if project_ref is not None:
            fields["project_id"] = resolve_project_id(store, project_ref)
        if column is not None:
            fields["column_id"] = parse_column(column)
        if focus:
            store.ensure_labels(focus)
        return store.update_task(task.id, **fields)

    task = run_board(apply)

    if json_output:
        console.print(task.to_json())
    else:
        console.print(f"[green]✓ Updated task [bold]{task.id}[/bold]:[/green] {task.title}")


@app.command()
def mv(
    task_ref: str = typer.Argument(..., help="Task id or unique id prefix"),
    column: str = typer.Argument(..., help="Later, Next, Now or Done"),
):
    """
    Move a task to another column.

    Example:
        snackboard mv 3f2a now
        snackboard mv 3f2a done
    """

    def apply(store, sync):
        task = resolve_task(store, task_ref)
        return store.move_task(task.id, parse_column(column))

    task = run_board(apply)
    console.print(
        f"[green]✓ Moved [bold]{task.id}[/bold] to {COLUMN_NAMES[task.column_id]}:[/green] {task.title}"
    )


@app.command()
def rm(
    task_refs: str = typer.Argument(..., help="Task id(s), comma-separated"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
):
    """
    Delete task(s). A running timer on the task is stopped and credited first.

    Example:
        snackboard rm 3f2a
        snackboard rm 3f2a,9bc1 --yes
    """
    refs = [r.strip() for r in task_refs.split(",") if r.strip()]
    if not refs:
        error_console.print("[red]Error:[/red] No task ids given")
        raise typer.Exit(1)

    if len(refs) > 1 and not yes:
        typer.confirm(f"Delete {len(refs)} tasks?", abort=True)

    def apply(store, sync):
        tasks = [resolve_task(store, ref) for ref in refs]
        for task in tasks:
            store.delete_task(task.id)
        return tasks

    for task in run_board(apply):
        console.print(f"[green]✓ Deleted task [bold]{task.id}[/bold]:[/green] {task.title}")


@app.command("import")
def import_csv(
    source: str = typer.Argument(..., help="CSV file path, or - for stdin"),
    project_ref: Optional[str] = typer.Option(None, "--project", "-p", help="Project for imported tasks"),
):
    """
    Import tasks from CSV (Title,Focus,Size,Column[,Type]).

    Example:
        snackboard import tasks.csv --project Work
        cat tasks.csv | snackboard import -
    """
    try:
        if source == "-":
            text = sys.stdin.read()
        else:
            text = Path(source).read_text(encoding="utf-8")
    except OSError as e:
        fail(e)

    def apply(store, sync):
        project_id = resolve_project_id(store, project_ref)
        return import_tasks_from_csv(store, text, project_id=project_id)

    result = run_board(apply)
    console.print(f"[green]✓[/green] {result.message}")
