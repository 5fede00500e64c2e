"""
FILE: snackboard/core/store.py
PURPOSE: The single mutable board state and its mutation API
EXPORTS:
  - Store (class)
DEPENDENCIES:
  - snackboard.core.models (Project, Task, TimedTask, PromptTask, TimerState)
  - snackboard.core.constants
  - snackboard.core.exceptions (InvalidInputError, ProjectNotFoundError)
  - snackboard.core.timer (Timer)
NOTES:
  - Every mutation is synchronous and ends with exactly one _commit(change)
  - Subscribers (local persistence, remote sync, rendering) are called with the change name
  - update_*/delete_*/move_task on an unknown id are silent no-ops
  - Title/name emptiness is checked on create only; updates merge as given
"""

import dataclasses
from typing import Any, Callable, Dict, Iterable, List, Optional

from .constants import (
    ALL_PROJECTS,
    COLUMNS,
    DEFAULT_COLUMN,
    DEFAULT_LABELS,
    DEFAULT_PROJECT_COLOR,
    DEFAULT_SIZE,
    FILTER_CHANGE,
    LABEL_ADD,
    LABEL_DELETE,
    LABEL_RENAME,
    PROJECT_CREATE,
    PROJECT_DELETE,
    PROJECT_UPDATE,
    REMOTE_REPLACE,
    SIDEBAR_CHANGE,
    SIDEBAR_LEFT,
    SIDEBAR_RIGHT,
    SIZE_OPTIONS,
    TASK_CREATE,
    TASK_DELETE,
    TASK_MOVE,
    TASK_UPDATE,
)
from .exceptions import InvalidInputError, ProjectNotFoundError
from .models import (
    Project,
    PromptTask,
    Task,
    TimedTask,
    TimerState,
    convert_task,
    generate_id,
    now_ms,
    task_from_dict,
)
from .timer import Timer


Subscriber = Callable[[str], None]

_PROJECT_FIELDS = {"name", "color", "notes", "primary_area"}
_TASK_FIELDS = {
    f.name for cls in (TimedTask, PromptTask) for f in dataclasses.fields(cls)
} - {"id", "created_at", "shelved_timing"}


class Store:
    """
    All projects, tasks, labels, selection and timer state in one place.

    Views and adapters get a Store injected and go through its methods;
    persistence is attached with subscribe().
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.clock = clock

        self.projects: List[Project] = []
        self.tasks: List[Task] = []
        self.all_labels: List[str] = list(DEFAULT_LABELS)

        # Selection / filters (UI state, never synced)
        self.selected_project_id: str = ALL_PROJECTS
        self.label_filters: List[str] = []
        self.size_filters: List[int] = []
        self.active_only: bool = False

        self.left_sidebar_collapsed: bool = False
        self.right_sidebar_collapsed: bool = False

        self.timer_state = TimerState()
        self.timer = Timer(self)

        self._subscribers: List[Subscriber] = []

    # --- Subscribers ---

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register callback(change) for every commit; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _commit(self, change: str) -> None:
        for callback in list(self._subscribers):
            callback(change)

    # --- Lookups ---

    def get_project(self, project_id: Optional[str]) -> Optional[Project]:
        return next((p for p in self.projects if p.id == project_id), None)

    def get_task(self, task_id: Optional[str]) -> Optional[Task]:
        return next((t for t in self.tasks if t.id == task_id), None)

    def find_project_by_name(self, name: str) -> Optional[Project]:
        """Find project by name (case-insensitive)."""
        return next((p for p in self.projects if p.name.lower() == name.lower()), None)

    # --- Projects ---

    def create_project(
        self,
        name: str,
        color: str = DEFAULT_PROJECT_COLOR,
        notes: str = "",
        primary_area: Optional[str] = None,
    ) -> Project:
        """
        Create a project.

        Raises:
            InvalidInputError: If name is empty or whitespace-only
        """
        name = name.strip()
        if not name:
            raise InvalidInputError("Project name cannot be empty")

        project = Project(
            id=generate_id(),
            name=name,
            color=color or DEFAULT_PROJECT_COLOR,
            notes=notes,
            primary_area=primary_area or None,
            created_at=self.clock(),
        )
        self.projects.append(project)
        self._commit(PROJECT_CREATE)
        return project

    def update_project(self, project_id: str, **fields: Any) -> Optional[Project]:
        """Shallow-merge fields into a project. Unknown id is a no-op."""
        unknown = set(fields) - _PROJECT_FIELDS
        if unknown:
            raise InvalidInputError(f"Unknown project field(s): {', '.join(sorted(unknown))}")

        project = self.get_project(project_id)
        if project is None:
            return None

        for key, value in fields.items():
            setattr(project, key, value)
        self._commit(PROJECT_UPDATE)
        return project

    def delete_project(self, project_id: str) -> None:
        """
        Delete a project.

        Tasks that referenced it are unlinked (project_id = None), never deleted.
        A selection pointing at it resets to 'all'.
        """
        if self.get_project(project_id) is None:
            return

        self.projects = [p for p in self.projects if p.id != project_id]
        for task in self.tasks:
            if task.project_id == project_id:
                task.project_id = None
        if self.selected_project_id == project_id:
            self.selected_project_id = ALL_PROJECTS
        self._commit(PROJECT_DELETE)

    # --- Tasks ---

    def create_task(
        self,
        title: str,
        project_id: Optional[str] = None,
        column_id: str = DEFAULT_COLUMN,
        prompt_only: bool = False,
        size_id: Optional[int] = None,
        estimate_minutes: Optional[int] = None,
        labels: Optional[Iterable[str]] = None,
        notes: str = "",
        ai_prompt: str = "",
    ) -> Task:
        """
        Create a task.

        Args:
            title: Task title (required, trimmed)
            project_id: Owning project, or None
            column_id: Workflow column (defaults to backlog)
            prompt_only: Create a PromptTask instead of a TimedTask
            size_id: Size bucket (defaults to 5)
            estimate_minutes: Estimate (defaults to the size)
            labels: Initial labels; when omitted the project's primary area is used
            notes: Free text
            ai_prompt: Prompt payload (prompt tasks only)

        Raises:
            InvalidInputError: If title is empty, or column/size is not in its vocabulary
        """
        title = title.strip()
        if not title:
            raise InvalidInputError("Task title cannot be empty")
        _check_column(column_id)

        if project_id == ALL_PROJECTS:
            project_id = None

        if labels is None:
            project = self.get_project(project_id)
            labels = [project.primary_area] if project and project.primary_area else []

        common = dict(
            id=generate_id(),
            title=title,
            project_id=project_id,
            labels=_unique(labels),
            notes=notes,
            column_id=column_id,
            created_at=self.clock(),
        )

        if prompt_only:
            task: Task = PromptTask(ai_prompt=ai_prompt, **common)
        else:
            size = DEFAULT_SIZE if size_id is None else size_id
            _check_size(size)
            estimate = size if estimate_minutes is None else estimate_minutes
            if estimate < 0:
                raise InvalidInputError("Estimate cannot be negative")
            task = TimedTask(size_id=size, estimate_minutes=estimate, **common)

        self.tasks.append(task)
        self._commit(TASK_CREATE)
        return task

    def update_task(self, task_id: str, **fields: Any) -> Optional[Task]:
        """
        Shallow-merge fields into a task. Unknown id is a no-op.

        Passing is_prompt_only converts the task to the other variant first;
        fields that do not exist on the resulting variant are ignored.
        """
        prompt_only = fields.pop("is_prompt_only", None)
        unknown = set(fields) - _TASK_FIELDS
        if unknown:
            raise InvalidInputError(f"Unknown task field(s): {', '.join(sorted(unknown))}")
        if "column_id" in fields:
            _check_column(fields["column_id"])
        if "size_id" in fields:
            _check_size(fields["size_id"])

        task = self.get_task(task_id)
        if task is None:
            return None

        if prompt_only is not None and bool(prompt_only) != task.is_prompt_only:
            if prompt_only and self.timer_state.task_id == task_id:
                self.timer.stop()
            converted = convert_task(task, bool(prompt_only))
            self.tasks[self.tasks.index(task)] = converted
            task = converted

        applicable = {f.name for f in dataclasses.fields(task)}
        for key, value in fields.items():
            if key not in applicable:
                continue
            if key == "labels":
                value = _unique(value)
            setattr(task, key, value)

        self._commit(TASK_UPDATE)
        return task

    def delete_task(self, task_id: str) -> None:
        """Delete a task, stopping (and crediting) its timer first if running."""
        if self.get_task(task_id) is None:
            return

        if self.timer_state.task_id == task_id:
            self.timer.stop()
        self.tasks = [t for t in self.tasks if t.id != task_id]
        self._commit(TASK_DELETE)

    def move_task(self, task_id: str, column_id: str) -> Optional[Task]:
        """Move a task to another workflow column."""
        _check_column(column_id)
        task = self.get_task(task_id)
        if task is None:
            return None

        task.column_id = column_id
        self._commit(TASK_MOVE)
        return task

    # --- Labels ---

    def add_label(self, name: str) -> str:
        """
        Add a focus area to the global set.

        Raises:
            InvalidInputError: If empty after trimming or already present
        """
        name = name.strip()
        if not name:
            raise InvalidInputError("Focus area name cannot be empty")
        if name in self.all_labels:
            raise InvalidInputError(f"Focus area '{name}' already exists")

        self.all_labels.append(name)
        self._commit(LABEL_ADD)
        return name

    def ensure_labels(self, names: Iterable[str]) -> List[str]:
        """Add any of names missing from the global set; returns the ones added."""
        added = []
        for name in names:
            name = name.strip()
            if name and name not in self.all_labels and name not in added:
                added.append(name)

        if added:
            self.all_labels.extend(added)
            self._commit(LABEL_ADD)
        return added

    def rename_label(self, old: str, new: str) -> str:
        """
        Rename a focus area everywhere it is referenced.

        The global list, every task's labels, every project's primary area and
        the active label filters are rewritten before a single commit.

        Raises:
            InvalidInputError: If new is empty, equal to old, or already taken
        """
        new = new.strip()
        if not new:
            raise InvalidInputError("Focus area name cannot be empty")
        if new == old:
            raise InvalidInputError("New name is the same as the old name")
        if new in self.all_labels:
            raise InvalidInputError(f"Focus area '{new}' already exists")

        self.all_labels = [new if label == old else label for label in self.all_labels]
        for task in self.tasks:
            if old in task.labels:
                task.labels = _unique(new if label == old else label for label in task.labels)
        for project in self.projects:
            if project.primary_area == old:
                project.primary_area = new
        self.label_filters = _unique(
            new if label == old else label for label in self.label_filters
        )

        self._commit(LABEL_RENAME)
        return new

    def delete_label(self, name: str) -> None:
        """Remove a focus area from the global set, tasks, projects and filters."""
        self.all_labels = [label for label in self.all_labels if label != name]
        for task in self.tasks:
            task.labels = [label for label in task.labels if label != name]
        for project in self.projects:
            if project.primary_area == name:
                project.primary_area = None
        self.label_filters = [label for label in self.label_filters if label != name]
        self._commit(LABEL_DELETE)

    # --- Selection / filters ---

    def select_project(self, project_id: str) -> None:
        """Select 'all' or an existing project."""
        if project_id != ALL_PROJECTS and self.get_project(project_id) is None:
            raise ProjectNotFoundError(project_id)
        self.selected_project_id = project_id
        self._commit(FILTER_CHANGE)

    def toggle_label_filter(self, label: str) -> bool:
        """Toggle a label filter; returns True if it is now active."""
        if label in self.label_filters:
            self.label_filters.remove(label)
            active = False
        else:
            self.label_filters.append(label)
            active = True
        self._commit(FILTER_CHANGE)
        return active

    def toggle_size_filter(self, size_id: int) -> bool:
        """Toggle a size filter; returns True if it is now active."""
        _check_size(size_id)
        if size_id in self.size_filters:
            self.size_filters.remove(size_id)
            active = False
        else:
            self.size_filters.append(size_id)
            active = True
        self._commit(FILTER_CHANGE)
        return active

    def set_active_only(self, active_only: bool) -> None:
        self.active_only = bool(active_only)
        self._commit(FILTER_CHANGE)

    def set_sidebar_collapsed(self, side: str, collapsed: bool) -> None:
        if side == SIDEBAR_LEFT:
            self.left_sidebar_collapsed = bool(collapsed)
        elif side == SIDEBAR_RIGHT:
            self.right_sidebar_collapsed = bool(collapsed)
        else:
            raise InvalidInputError(f"Unknown sidebar '{side}'. Must be one of: left, right")
        self._commit(SIDEBAR_CHANGE)

    # --- Records ---

    def local_record(self) -> Dict[str, Any]:
        """The subset written to local durable storage."""
        return {
            "projects": [p.to_dict() for p in self.projects],
            "tasks": [t.to_dict() for t in self.tasks],
            "allLabels": list(self.all_labels),
            "activeTimerTaskId": self.timer_state.task_id,
            "timerStartTime": self.timer_state.start_time,
            "timerElapsed": self.timer_state.elapsed,
            "leftSidebarCollapsed": self.left_sidebar_collapsed,
            "rightSidebarCollapsed": self.right_sidebar_collapsed,
        }

    def remote_record(self) -> Dict[str, Any]:
        """The subset synced to the remote row (timer state excluded)."""
        return {
            "projects": [p.to_dict() for p in self.projects],
            "tasks": [t.to_dict() for t in self.tasks],
            "allLabels": list(self.all_labels),
            "leftSidebarCollapsed": self.left_sidebar_collapsed,
            "rightSidebarCollapsed": self.right_sidebar_collapsed,
        }

    def has_content(self) -> bool:
        return bool(self.projects or self.tasks)

    def load_local_record(self, record: Dict[str, Any]) -> None:
        """Replace board and timer state from a local record. Not a mutation: no commit."""
        self._replace_board(record, include_layout=True)
        self.timer_state = TimerState(
            task_id=record.get("activeTimerTaskId") or None,
            start_time=record.get("timerStartTime") or None,
            elapsed=record.get("timerElapsed") or 0,
        )

    def apply_remote_record(self, record: Dict[str, Any], include_layout: bool = True) -> None:
        """
        Replace projects, tasks and labels wholesale from a remote record.

        The timer is local-only and left untouched. include_layout also
        replaces the sidebar flags (sign-in load does, the change feed doesn't).
        """
        self._replace_board(record, include_layout=include_layout)
        self._commit(REMOTE_REPLACE)

    def _replace_board(self, record: Dict[str, Any], include_layout: bool) -> None:
        self.projects = [Project.from_dict(p) for p in record.get("projects") or []]
        self.tasks = [task_from_dict(t) for t in record.get("tasks") or []]
        labels = record.get("allLabels")
        self.all_labels = list(labels) if labels is not None else list(DEFAULT_LABELS)
        if include_layout:
            self.left_sidebar_collapsed = bool(record.get("leftSidebarCollapsed", False))
            self.right_sidebar_collapsed = bool(record.get("rightSidebarCollapsed", False))


def _check_column(column_id: str) -> None:
    if column_id not in COLUMNS:
        raise InvalidInputError(
            f"Invalid column '{column_id}'. Must be one of: {', '.join(COLUMNS)}"
        )


def _check_size(size_id: int) -> None:
    if size_id not in SIZE_OPTIONS:
        raise InvalidInputError(
            f"Invalid size '{size_id}'. Must be one of: {', '.join(str(s) for s in SIZE_OPTIONS)}"
        )


def _unique(labels: Iterable[str]) -> List[str]:
    """Order-preserving de-duplication."""
    seen: List[str] = []
    for label in labels:
        if label not in seen:
            seen.append(label)
    return seen
