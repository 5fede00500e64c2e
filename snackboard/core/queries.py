"""
FILE: snackboard/core/queries.py
PURPOSE: Read-only views over a Store (filtering, board grouping, time statistics)
EXPORTS:
  - filtered_tasks(store) -> List[Task]
  - tasks_by_column(tasks) -> Dict[str, List[Task]]
  - today_stats(store, now) -> TodayStats
  - project_stats(store, project_id) -> ProjectStats
  - estimate_variance(stats) -> Optional[int]
  - ranked(breakdown) -> List[Tuple[str, int]]
DEPENDENCIES:
  - datetime (stdlib)
  - snackboard.core.models, snackboard.core.constants
NOTES:
  - Pure functions: nothing here mutates the store
  - Filters AND across kinds, OR within a kind
  - "Today" is the local calendar day of `now`
  - Prompt-only tasks never contribute to time statistics
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

from .constants import ALL_PROJECTS, COLUMN_DONE, COLUMNS
from .models import Task, TimedTask

if TYPE_CHECKING:
    from .store import Store


@dataclass
class TodayStats:
    """Time logged today, with breakdowns in discovery order."""

    total_minutes: int = 0
    estimate_minutes: int = 0
    by_label: Dict[str, int] = field(default_factory=dict)
    by_project: Dict[str, int] = field(default_factory=dict)


@dataclass
class ProjectStats:
    """Lifetime estimate and actual minutes for one project."""

    total_estimate: int = 0
    total_actual: int = 0


def filtered_tasks(store: "Store") -> List[Task]:
    """
    Tasks visible under the store's current selection and filters.

    Order: project -> labels -> sizes -> active-only. Relative task order is kept.
    """
    tasks = store.tasks

    if store.selected_project_id != ALL_PROJECTS:
        tasks = [t for t in tasks if t.project_id == store.selected_project_id]

    if store.label_filters:
        wanted = set(store.label_filters)
        tasks = [t for t in tasks if wanted.intersection(t.labels)]

    if store.size_filters:
        # Prompt tasks carry no size, so an active size filter excludes them
        tasks = [
            t for t in tasks
            if isinstance(t, TimedTask) and t.size_id in store.size_filters
        ]

    if store.active_only:
        tasks = [t for t in tasks if t.column_id != COLUMN_DONE]

    return list(tasks)


def tasks_by_column(tasks: List[Task]) -> Dict[str, List[Task]]:
    """Group tasks into the four board columns, in board order."""
    board: Dict[str, List[Task]] = {column_id: [] for column_id in COLUMNS}
    for task in tasks:
        board.setdefault(task.column_id, []).append(task)
    return board


def _local_day(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000).date()


def today_stats(store: "Store", now: Optional[int] = None) -> TodayStats:
    """
    Aggregate time entries logged on the local calendar day of `now`.

    estimate_minutes counts each task that logged time today once.
    by_project only includes tasks linked to an existing project.
    """
    today = _local_day(store.clock() if now is None else now)
    projects = {p.id: p.name for p in store.projects}
    stats = TodayStats()

    for task in store.tasks:
        if not isinstance(task, TimedTask):
            continue

        logged_today = False
        for entry in task.time_entries:
            if _local_day(entry.date) != today:
                continue

            logged_today = True
            stats.total_minutes += entry.minutes
            for label in task.labels:
                stats.by_label[label] = stats.by_label.get(label, 0) + entry.minutes

            project_name = projects.get(task.project_id)
            if project_name is not None:
                stats.by_project[project_name] = (
                    stats.by_project.get(project_name, 0) + entry.minutes
                )

        if logged_today:
            stats.estimate_minutes += task.estimate_minutes

    return stats


def project_stats(store: "Store", project_id: str) -> ProjectStats:
    """Sum estimate and actual minutes over a project's timed tasks (lifetime)."""
    stats = ProjectStats()
    for task in store.tasks:
        if isinstance(task, TimedTask) and task.project_id == project_id:
            stats.total_estimate += task.estimate_minutes
            stats.total_actual += task.actual_minutes
    return stats


def estimate_variance(stats: TodayStats) -> Optional[int]:
    """Percent by which today's logged time exceeds (+) or undercuts (-) the estimate."""
    if stats.estimate_minutes <= 0 or stats.total_minutes <= 0:
        return None
    return round((stats.total_minutes - stats.estimate_minutes) / stats.estimate_minutes * 100)


def ranked(breakdown: Dict[str, int]) -> List[Tuple[str, int]]:
    """Breakdown entries by descending minutes (ties keep discovery order)."""
    return sorted(breakdown.items(), key=lambda item: item[1], reverse=True)
