"""Tests for record conversion of projects, tasks and time entries."""

import pytest

from snackboard.core.models import (
    Project,
    PromptTask,
    Task,
    TimeEntry,
    TimedTask,
    TimerState,
    convert_task,
    task_from_dict,
)


def test_task_from_dict_fills_defaults():
    """Records written by older clients only need an id."""
    task = task_from_dict({"id": "t1", "title": "Old task"})

    assert isinstance(task, TimedTask)
    assert task.column_id == "backlog"
    assert task.size_id == 5
    assert task.estimate_minutes == 5
    assert task.actual_minutes == 0
    assert task.time_entries == []
    assert task.labels == []
    assert task.project_id is None


def test_task_from_dict_picks_variant():
    task = task_from_dict({"id": "p1", "title": "Draft", "isPromptOnly": True, "aiPrompt": "Write it"})

    assert isinstance(task, PromptTask)
    assert task.is_prompt_only
    assert task.ai_prompt == "Write it"


def test_timed_task_record_shape():
    task = TimedTask(id="t1", title="Write docs", labels=["CRM"], size_id=15, estimate_minutes=15)
    task.log_time(12, at=1000)

    data = task.to_dict()
    assert data["columnId"] == "backlog"
    assert data["sizeId"] == 15
    assert data["actualMinutes"] == 12
    assert data["timeEntries"] == [{"date": 1000, "minutes": 12}]
    assert data["isPromptOnly"] is False

    restored = task_from_dict(data)
    assert restored == task


def test_prompt_task_record_keeps_timing_keys():
    task = PromptTask(id="p1", title="Draft", ai_prompt="Summarise")

    data = task.to_dict()
    assert data["isPromptOnly"] is True
    assert data["aiPrompt"] == "Summarise"
    assert data["sizeId"] == 5
    assert data["timeEntries"] == []


def test_project_record_uses_camel_case():
    project = Project.from_dict({"id": "p1", "name": "Acme", "primaryArea": "CRM", "createdAt": 5})

    assert project.primary_area == "CRM"
    assert project.created_at == 5
    assert project.color == "#6366f1"
    assert project.to_dict()["primaryArea"] == "CRM"


def test_convert_timed_to_prompt_and_back_keeps_timing():
    task = TimedTask(id="t1", title="Sized", labels=["Music"], column_id="ready", size_id=30, estimate_minutes=30)
    task.log_time(10, at=1)

    prompt = convert_task(task, prompt_only=True)

    assert isinstance(prompt, PromptTask)
    assert prompt.id == "t1"
    assert prompt.labels == ["Music"]
    assert prompt.column_id == "ready"
    assert not hasattr(prompt, "time_entries")

    restored = convert_task(prompt, prompt_only=False)

    assert isinstance(restored, TimedTask)
    assert restored.size_id == 30
    assert restored.estimate_minutes == 30
    assert restored.actual_minutes == 10
    assert restored.time_entries == [TimeEntry(date=1, minutes=10)]


def test_prompt_task_record_keeps_shelved_timing():
    task = TimedTask(id="t1", title="Sized", size_id=15, estimate_minutes=15)
    task.log_time(7, at=1000)

    data = convert_task(task, prompt_only=True).to_dict()
    assert data["isPromptOnly"] is True
    assert data["actualMinutes"] == 7
    assert data["timeEntries"] == [{"date": 1000, "minutes": 7}]

    restored = convert_task(task_from_dict(data), prompt_only=False)
    assert restored == task


def test_convert_prompt_to_timed_starts_from_defaults():
    task = PromptTask(id="p1", title="Prompt", ai_prompt="x")

    converted = convert_task(task, prompt_only=False)

    assert isinstance(converted, TimedTask)
    assert converted.size_id == 5
    assert converted.actual_minutes == 0


def test_time_entry_tolerates_bad_values():
    entry = TimeEntry.from_dict({"date": "oops", "minutes": "7"})

    assert entry.date == 0
    assert entry.minutes == 7


def test_timer_state_reset():
    state = TimerState(task_id="t1", start_time=100, elapsed=3)
    assert state.running

    state.reset()
    assert not state.running
    assert state.elapsed == 0


def test_task_base_is_abstract():
    with pytest.raises(TypeError):
        Task(id="t1", title="Neither kind")
