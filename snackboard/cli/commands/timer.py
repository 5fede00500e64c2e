"""
FILE: snackboard/cli/commands/timer.py
PURPOSE: Work timer commands (timer_start, timer_stop, timer_status, timer_watch)
NOTES:
  - The timer survives between invocations: its start timestamp is saved with the board
  - watch keeps ticking until Ctrl+C; --stop credits the task on exit
"""

import asyncio
import json

import typer
from rich.live import Live
from rich.markup import escape
from rich.text import Text

from ..common import resolve_task, run_board
from ..main import console, timer_app
from ...formatting import format_clock, format_minutes


def _stopped_message(task, entry) -> str:
    return (
        f"[green]✓ Logged {format_minutes(entry.minutes)}[/green] on {escape(task.title)} "
        f"[dim](total {format_minutes(task.actual_minutes)})[/dim]"
    )


@timer_app.command("start")
def timer_start(
    task_ref: str = typer.Argument(..., help="Task id or unique id prefix"),
):
    """
    Start the timer on a task (stops any running timer first).

    The task moves to Now.

    Example:
        snackboard timer start 3f2a
    """

    def apply(store, sync):
        task = resolve_task(store, task_ref)
        previous = store.timer.active_task()
        entry = store.timer.stop() if store.timer.running else None
        return previous, entry, store.timer.start(task.id)

    previous, entry, task = run_board(apply)

    if previous is not None and entry is not None:
        console.print(_stopped_message(previous, entry))
    console.print(f"[green]▶ Timer started:[/green] {escape(task.title)}")


@timer_app.command("stop")
def timer_stop():
    """
    Stop the timer and log the elapsed minutes (rounded) on its task.

    Example:
        snackboard timer stop
    """

    def apply(store, sync):
        task = store.timer.active_task()
        return task, store.timer.stop()

    task, entry = run_board(apply)

    if entry is None:
        console.print("[dim]No timer running.[/dim]")
    else:
        console.print(_stopped_message(task, entry))


@timer_app.command("status")
def timer_status(
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """Show the running timer, if any."""

    def apply(store, sync):
        return store.timer.active_task(), store.timer.tick()

    task, elapsed = run_board(apply, resume=False)

    if json_output:
        console.print(json.dumps({
            "running": task is not None,
            "taskId": task.id if task else None,
            "elapsedSeconds": elapsed if task else 0,
        }, indent=2))
    elif task is None:
        console.print("[dim]No timer running.[/dim]")
    else:
        console.print(f"[green]▶ {format_clock(elapsed)}[/green] {escape(task.title)} [dim]({task.id})[/dim]")


@timer_app.command("watch")
def timer_watch(
    stop: bool = typer.Option(False, "--stop", help="Stop and log the timer on Ctrl+C"),
):
    """
    Show a live MM:SS display of the running timer.

    Example:
        snackboard timer watch
        snackboard timer watch --stop
    """

    async def apply(store, sync):
        task = store.timer.active_task()
        if task is None:
            console.print("[dim]No timer running.[/dim]")
            return None

        def render(elapsed: int) -> Text:
            return Text.assemble(("▶ ", "green"), (format_clock(elapsed), "bold green"), f"  {task.title}")

        with Live(render(store.timer.tick()), console=console, refresh_per_second=4) as live:
            store.timer.on_tick(lambda elapsed: live.update(render(elapsed)))
            try:
                await store.timer.run()
            except asyncio.CancelledError:
                if stop:
                    entry = store.timer.stop()
                    if entry is not None:
                        console.print(_stopped_message(task, entry))
                raise

    try:
        run_board(apply)
    except KeyboardInterrupt:
        console.print()
