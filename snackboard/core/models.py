"""
FILE: snackboard/core/models.py
PURPOSE: Domain models for projects, tasks, time entries and the timer
EXPORTS:
  - Project (dataclass)
  - Task (dataclass, common task fields)
  - TimedTask (dataclass, worked and timed task)
  - PromptTask (dataclass, task carrying a prompt payload)
  - TimeEntry (dataclass)
  - TimerState (dataclass)
  - task_from_dict(data) -> Task
  - convert_task(task, prompt_only) -> Task
  - generate_id() -> str
  - now_ms() -> int
DEPENDENCIES:
  - dataclasses (stdlib)
  - json (stdlib)
  - uuid, time (stdlib)
  - snackboard.core.constants
NOTES:
  - All models have from_dict() and to_dict() for record conversion
  - Record keys are camelCase so boards written by the browser client load unchanged
  - Timestamps are epoch milliseconds
  - The task kind is the class; is_prompt_only is derived, never stored on the instance
  - A PromptTask shelves the timing fields of the task it was converted from,
    so switching back to a timed task restores size, estimate and logged time
"""

import json
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, asdict
from typing import Any, ClassVar, Dict, List, Optional

from .constants import DEFAULT_COLUMN, DEFAULT_PROJECT_COLOR, DEFAULT_SIZE


def generate_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex[:16]


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def _as_int(value: Any, default: int) -> int:
    """Best-effort integer coercion for fields written by other clients."""
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class TimeEntry:
    """Minutes logged against a task when a timer session ended."""

    date: int
    minutes: int

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TimeEntry":
        return cls(date=_as_int(data.get("date"), 0), minutes=_as_int(data.get("minutes"), 0))

    def to_dict(self) -> Dict[str, Any]:
        return {"date": self.date, "minutes": self.minutes}


@dataclass
class Project:
    """A project grouping related tasks, optionally tied to a primary focus area."""

    id: str
    name: str
    color: str = DEFAULT_PROJECT_COLOR
    notes: str = ""
    primary_area: Optional[str] = None
    created_at: int = 0

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """Convert a stored record entry to a Project."""
        return cls(
            id=str(data["id"]),
            name=data.get("name") or "",
            color=data.get("color") or DEFAULT_PROJECT_COLOR,
            notes=data.get("notes") or "",
            primary_area=data.get("primaryArea") or None,
            created_at=_as_int(data.get("createdAt"), 0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "notes": self.notes,
            "primaryArea": self.primary_area,
            "createdAt": self.created_at,
        }

    def to_json(self) -> str:
        """Serialize project to JSON string."""
        return json.dumps(asdict(self), indent=2)


_TIMING_KEYS = ("sizeId", "estimateMinutes", "actualMinutes", "timeEntries")


def _timing_from_dict(data: Dict[str, Any]) -> Dict[str, Any]:
    """TimedTask keyword arguments from the timing keys of a record entry."""
    return dict(
        size_id=_as_int(data.get("sizeId"), DEFAULT_SIZE),
        estimate_minutes=_as_int(data.get("estimateMinutes"), DEFAULT_SIZE),
        actual_minutes=_as_int(data.get("actualMinutes"), 0),
        time_entries=[TimeEntry.from_dict(e) for e in data.get("timeEntries") or []],
    )


@dataclass
class Task(ABC):
    """Fields shared by both task kinds."""

    id: str
    title: str
    project_id: Optional[str] = None
    labels: List[str] = field(default_factory=list)
    notes: str = ""
    column_id: str = DEFAULT_COLUMN
    created_at: int = 0

    is_prompt_only: ClassVar[bool] = False

    def _common_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "projectId": self.project_id,
            "labels": list(self.labels),
            "notes": self.notes,
            "columnId": self.column_id,
            "createdAt": self.created_at,
            "isPromptOnly": self.is_prompt_only,
        }

    @abstractmethod
    def to_dict(self) -> Dict[str, Any]:
        """Convert to a record entry."""

    def to_json(self) -> str:
        """Serialize task to JSON string."""
        data = asdict(self)
        data["is_prompt_only"] = self.is_prompt_only
        return json.dumps(data, indent=2)


@dataclass
class TimedTask(Task):
    """A task that is sized, estimated and worked against the timer."""

    size_id: int = DEFAULT_SIZE
    estimate_minutes: int = DEFAULT_SIZE
    actual_minutes: int = 0
    time_entries: List[TimeEntry] = field(default_factory=list)

    is_prompt_only: ClassVar[bool] = False

    def log_time(self, minutes: int, at: int) -> TimeEntry:
        """Credit minutes to the task and append the matching time entry."""
        entry = TimeEntry(date=at, minutes=minutes)
        self.actual_minutes += minutes
        self.time_entries.append(entry)
        return entry

    def timing_dict(self) -> Dict[str, Any]:
        return {
            "sizeId": self.size_id,
            "estimateMinutes": self.estimate_minutes,
            "actualMinutes": self.actual_minutes,
            "timeEntries": [entry.to_dict() for entry in self.time_entries],
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self._common_dict()
        data.update(self.timing_dict())
        data["aiPrompt"] = ""
        return data


@dataclass
class PromptTask(Task):
    """
    A task whose payload is prompt text to paste elsewhere; never timed.

    shelved_timing holds the record-form timing fields of the timed task it
    was converted from. They are not timed against and not counted in stats.
    """

    ai_prompt: str = ""
    shelved_timing: Optional[Dict[str, Any]] = None

    is_prompt_only: ClassVar[bool] = True

    def to_dict(self) -> Dict[str, Any]:
        data = self._common_dict()
        # Timing keys are kept so every record entry has the same shape
        data.update(
            {
                "sizeId": DEFAULT_SIZE,
                "estimateMinutes": DEFAULT_SIZE,
                "actualMinutes": 0,
                "timeEntries": [],
            }
        )
        if self.shelved_timing:
            data.update(self.shelved_timing)
        data["aiPrompt"] = self.ai_prompt
        return data


def task_from_dict(data: Dict[str, Any]) -> Task:
    """
    Convert a stored record entry to the matching task variant.

    Missing fields fall back to creation defaults (best-effort defaulting for
    records written by older clients).
    """
    common = dict(
        id=str(data["id"]),
        title=data.get("title") or "",
        project_id=data.get("projectId") or None,
        labels=list(data.get("labels") or []),
        notes=data.get("notes") or "",
        column_id=data.get("columnId") or DEFAULT_COLUMN,
        created_at=_as_int(data.get("createdAt"), 0),
    )

    if data.get("isPromptOnly"):
        shelved = None
        if any(key in data for key in _TIMING_KEYS):
            shelved = TimedTask(id=common["id"], title="", **_timing_from_dict(data)).timing_dict()
        return PromptTask(ai_prompt=data.get("aiPrompt") or "", shelved_timing=shelved, **common)

    return TimedTask(**_timing_from_dict(data), **common)


def convert_task(task: Task, prompt_only: bool) -> Task:
    """
    Return task as the requested variant, keeping the shared fields.

    Timed -> prompt shelves size, estimate and logged time on the PromptTask.
    Prompt -> timed restores the shelved timing, or starts from the creation
    defaults when there is none.
    """
    if task.is_prompt_only == prompt_only:
        return task

    common = dict(
        id=task.id,
        title=task.title,
        project_id=task.project_id,
        labels=list(task.labels),
        notes=task.notes,
        column_id=task.column_id,
        created_at=task.created_at,
    )
    if prompt_only:
        return PromptTask(shelved_timing=task.timing_dict(), **common)
    if task.shelved_timing:
        return TimedTask(**_timing_from_dict(task.shelved_timing), **common)
    return TimedTask(**common)


@dataclass
class TimerState:
    """The single running timer, if any."""

    task_id: Optional[str] = None
    start_time: Optional[int] = None
    elapsed: int = 0

    @property
    def running(self) -> bool:
        return self.task_id is not None and self.start_time is not None

    def reset(self) -> None:
        self.task_id = None
        self.start_time = None
        self.elapsed = 0
