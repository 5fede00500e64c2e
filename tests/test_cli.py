"""End-to-end CLI tests using Typer's CliRunner against a temporary data directory."""

import json

from typer.testing import CliRunner

from snackboard import __version__
from snackboard.cli.main import app
from snackboard.core.repository import load_record

runner = CliRunner()


def invoke(*args, **kwargs):
    return runner.invoke(app, list(args), **kwargs)


def add_task(title, *args):
    result = invoke("add", title, "--json", *args)
    assert result.exit_code == 0, result.output
    return json.loads(result.stdout)


def test_version():
    result = invoke("version")

    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_add_and_list():
    task = add_task("Write docs", "--column", "next", "--size", "15", "--focus", "CRM")

    assert task["title"] == "Write docs"
    assert task["column_id"] == "ready"
    assert task["estimate_minutes"] == 15

    result = invoke("ls", "--raw")
    assert result.exit_code == 0
    assert f"{task['id']}: [ ] Write docs" in result.stdout


def test_add_is_persisted_locally():
    add_task("Persisted")

    record = load_record()
    assert [t["title"] for t in record["tasks"]] == ["Persisted"]


def test_add_rejects_unknown_column():
    result = invoke("add", "Task", "--column", "someday")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_add_prompt_task():
    task = add_task("Draft", "--prompt", "Write the release notes")

    assert task["is_prompt_only"] is True
    assert task["ai_prompt"] == "Write the release notes"


def test_ls_filters():
    add_task("Call client", "--focus", "CRM", "--size", "1")
    add_task("Mix track", "--focus", "Music", "--size", "30")

    result = invoke("ls", "--focus", "Music", "--json")

    assert result.exit_code == 0
    assert [t["title"] for t in json.loads(result.stdout)] == ["Mix track"]


def test_project_commands_and_task_assignment():
    result = invoke("project", "add", "Acme", "--focus", "Sales", "--json")
    assert result.exit_code == 0, result.output
    project = json.loads(result.stdout)

    task = add_task("Invoice", "--project", "acme")
    assert task["project_id"] == project["id"]
    assert task["labels"] == ["Sales"]

    result = invoke("project", "ls", "--raw")
    assert f"{project['id']}: Acme" in result.stdout

    result = invoke("project", "rm", "Acme", "--yes")
    assert result.exit_code == 0
    assert "1 task unassigned" in result.stdout

    result = invoke("show", task["id"], "--json")
    assert json.loads(result.stdout)["project_id"] is None


def test_unknown_project():
    result = invoke("add", "Task", "--project", "Nope")

    assert result.exit_code == 1
    assert "Project Nope not found" in result.output


def test_edit_mv_and_prefix_lookup():
    task = add_task("Original")
    prefix = task["id"][:6]

    result = invoke("edit", prefix, "--title", "Renamed", "--size", "30")
    assert result.exit_code == 0, result.output

    result = invoke("mv", prefix, "Now")
    assert result.exit_code == 0
    assert "Now" in result.stdout

    shown = json.loads(invoke("show", prefix, "--json").stdout)
    assert shown["title"] == "Renamed"
    assert shown["size_id"] == 30
    assert shown["column_id"] == "doing"


def test_edit_converts_to_prompt():
    task = add_task("Timed")

    result = invoke("edit", task["id"], "--prompt", "--prompt-text", "Paste this", "--json")

    assert result.exit_code == 0, result.output
    edited = json.loads(result.stdout)
    assert edited["is_prompt_only"] is True
    assert edited["ai_prompt"] == "Paste this"


def test_rm_multiple():
    first = add_task("One")
    second = add_task("Two")

    result = invoke("rm", f"{first['id']},{second['id']}", "--yes")

    assert result.exit_code == 0
    assert load_record()["tasks"] == []


def test_rm_unknown_task():
    result = invoke("rm", "doesnotexist")

    assert result.exit_code == 1
    assert "not found" in result.output


def test_timer_start_stop():
    task = add_task("Focus work")

    result = invoke("timer", "start", task["id"])
    assert result.exit_code == 0, result.output
    assert "Timer started" in result.stdout

    status = json.loads(invoke("timer", "status", "--json").stdout)
    assert status["running"] is True
    assert status["taskId"] == task["id"]

    result = invoke("timer", "stop")
    assert result.exit_code == 0
    assert "Logged 0m" in result.stdout

    saved = load_record()["tasks"][0]
    assert saved["columnId"] == "doing"
    assert len(saved["timeEntries"]) == 1
    assert load_record()["activeTimerTaskId"] is None


def test_timer_rejects_prompt_task():
    task = add_task("Prompt", "--prompt", "text")

    result = invoke("timer", "start", task["id"])

    assert result.exit_code == 1
    assert "prompt-only" in result.output


def test_timer_stop_when_idle():
    result = invoke("timer", "stop")

    assert result.exit_code == 0
    assert "No timer running" in result.stdout


def test_stats_today_without_time():
    result = invoke("stats", "today")

    assert result.exit_code == 0
    assert "No time logged today" in result.stdout


def test_label_commands():
    add_task("Call", "--focus", "CRM")

    result = invoke("label", "rename", "CRM", "Sales")
    assert result.exit_code == 0, result.output

    labels = json.loads(invoke("label", "ls", "--json").stdout)
    assert "Sales" in labels
    assert "CRM" not in labels
    assert load_record()["tasks"][0]["labels"] == ["Sales"]

    result = invoke("label", "add", "Sales")
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_import_from_file(tmp_path):
    csv_path = tmp_path / "tasks.csv"
    csv_path.write_text("Title,Focus,Size,Column\nWrite docs,CRM,15m,Next\n,CRM,5,Later\n", encoding="utf-8")

    result = invoke("import", str(csv_path))

    assert result.exit_code == 0, result.output
    assert "Imported 1 task, 1 skipped" in result.stdout


def test_import_from_stdin():
    result = invoke("import", "-", input="Title,Focus,Size,Column\nA,CRM,5,Later\nB,CRM,5,Done\n")

    assert result.exit_code == 0, result.output
    assert "Imported 2 tasks" in result.stdout


def test_import_bad_header():
    result = invoke("import", "-", input="Name,Focus\nA,CRM\n")

    assert result.exit_code == 1
    assert "CSV header must be" in result.output


def test_auth_requires_remote_config():
    result = invoke("auth", "signin", "me@example.com", "--password", "secret")

    assert result.exit_code == 1
    assert "Remote sync is not configured" in result.output


def test_whoami_signed_out():
    result = invoke("auth", "whoami")

    assert result.exit_code == 0
    assert "Not signed in" in result.stdout


def test_ls_repeated_filter_values_stay_active():
    add_task("Call client", "--focus", "CRM", "--size", "1")
    add_task("Mix track", "--focus", "Music", "--size", "30")

    result = invoke("ls", "--focus", "CRM", "--focus", "CRM", "--size", "1", "--size", "1", "--json")

    assert result.exit_code == 0, result.output
    assert [t["title"] for t in json.loads(result.stdout)] == ["Call client"]


def test_ls_lists_in_board_order():
    add_task("Finished", "--column", "done")
    add_task("Working", "--column", "now")
    add_task("Someday", "--column", "later")

    result = invoke("ls", "--json")

    assert [t["title"] for t in json.loads(result.stdout)] == ["Someday", "Working", "Finished"]


def test_config_set_and_show():
    result = invoke("config", "set", "supabase_url", "https://abc.supabase.co")
    assert result.exit_code == 0, result.output

    result = invoke("config", "set", "poll_seconds", "2.5")
    assert result.exit_code == 0, result.output

    shown = json.loads(invoke("config", "show", "--json").stdout)
    assert shown["supabase_url"] == "https://abc.supabase.co"
    assert shown["poll_seconds"] == 2.5


def test_config_set_rejects_bad_values():
    result = invoke("config", "set", "theme", "dark")
    assert result.exit_code == 1
    assert "Unknown config key" in result.output

    result = invoke("config", "set", "debounce_seconds", "soon")
    assert result.exit_code == 1
    assert "must be a number" in result.output
