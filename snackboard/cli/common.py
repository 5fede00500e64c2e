"""
FILE: snackboard/cli/common.py
PURPOSE: Shared helpers for CLI commands (board session, lookups, output)
EXPORTS:
  - run_board(action, resume) -> result of action
  - build_backend(config) -> SupabaseBackend | None
  - resolve_task(store, ref) -> Task
  - resolve_project(store, ref) -> Project
  - parse_column(text) -> str
  - print_notice(message, level) -> None
  - fail(error) -> NoReturn
DEPENDENCIES:
  - asyncio, inspect (stdlib)
  - typer, rich
  - snackboard.core (store, repository, sync, remote)
NOTES:
  - Each command runs inside one event loop: load board, resume session, act, flush
  - Task and project references accept a full id, a unique id prefix, or (projects) a name
"""

import asyncio
import inspect
from typing import Any, Callable, NoReturn, Optional

import typer

from ..config import Config, load_config
from ..core.constants import ALL_PROJECTS, COLUMN_NAMES, COLUMNS, NOTICE_ERROR
from ..core.exceptions import (
    InvalidInputError,
    ProjectNotFoundError,
    SnackboardError,
    TaskNotFoundError,
)
from ..core.models import Project, Task
from ..core.remote import SupabaseBackend
from ..core.repository import load_board
from ..core.store import Store
from ..core.sync import SyncCoordinator
from .main import console, error_console

BoardAction = Callable[[Store, SyncCoordinator], Any]


def build_backend(config: Config) -> Optional[SupabaseBackend]:
    """Remote backend from config, or None when sync isn't configured."""
    if not config.remote_enabled:
        return None
    return SupabaseBackend(
        config.supabase_url,
        config.supabase_key,
        table=config.table,
        poll_seconds=config.poll_seconds,
    )


def print_notice(message: str, level: str) -> None:
    if level == NOTICE_ERROR:
        error_console.print(f"[red]✗[/red] {message}")
    else:
        console.print(f"[green]✓[/green] {message}")


def fail(error: Exception) -> NoReturn:
    """Print an error to stderr and exit 1."""
    if isinstance(error, SnackboardError):
        error_console.print(f"[red]Error:[/red] {error}")
    else:
        error_console.print(f"[red]Unexpected error:[/red] {error}")
    raise typer.Exit(1)


async def _run_board(action: BoardAction, resume: bool) -> Any:
    config = load_config()
    backend = build_backend(config)

    store = Store()
    load_board(store)

    coordinator = SyncCoordinator(store, backend, debounce_seconds=config.debounce_seconds)
    coordinator.on_notice(print_notice)
    coordinator.attach()

    try:
        if resume:
            await coordinator.resume(subscribe=False)

        result = action(store, coordinator)
        if inspect.isawaitable(result):
            result = await result
        return result
    finally:
        await coordinator.close()
        if backend is not None:
            await backend.aclose()


def run_board(action: BoardAction, resume: bool = True) -> Any:
    """
    Open the board, run action(store, coordinator), and flush sync.

    action may be a plain function or a coroutine function.
    SnackboardError from the action is printed and exits 1.
    """
    try:
        return asyncio.run(_run_board(action, resume))
    except SnackboardError as e:
        fail(e)


def resolve_task(store: Store, ref: str) -> Task:
    """
    Find a task by id or unique id prefix.

    Raises:
        TaskNotFoundError: If nothing matches
        InvalidInputError: If the prefix matches several tasks
    """
    ref = ref.strip()
    task = store.get_task(ref)
    if task is not None:
        return task

    matches = [t for t in store.tasks if t.id.startswith(ref)] if ref else []
    if not matches:
        raise TaskNotFoundError(ref)
    if len(matches) > 1:
        raise InvalidInputError(f"Task id '{ref}' is ambiguous ({len(matches)} matches)")
    return matches[0]


def resolve_project(store: Store, ref: str) -> Project:
    """
    Find a project by id, unique id prefix, or name (case-insensitive).

    Raises:
        ProjectNotFoundError: If nothing matches
    """
    ref = ref.strip()
    project = store.get_project(ref) or store.find_project_by_name(ref)
    if project is not None:
        return project

    matches = [p for p in store.projects if p.id.startswith(ref)] if ref else []
    if len(matches) == 1:
        return matches[0]
    raise ProjectNotFoundError(ref)


def resolve_project_id(store: Store, ref: Optional[str]) -> Optional[str]:
    """Project id for an optional reference; None/'all'/'none' mean no project."""
    if ref is None or ref.strip().lower() in (ALL_PROJECTS, "none", ""):
        return None
    return resolve_project(store, ref).id


def parse_column(text: str) -> str:
    """
    Column id from an id (backlog) or display name (Later), case-insensitive.

    Raises:
        InvalidInputError: If the text names no column
    """
    value = text.strip().lower()
    if value in COLUMNS:
        return value
    for column_id, name in COLUMN_NAMES.items():
        if name.lower() == value:
            return column_id

    available = ", ".join(COLUMN_NAMES.values())
    raise InvalidInputError(f"Column '{text}' not found. Available columns: {available}")
