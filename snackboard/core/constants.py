"""
FILE: snackboard/core/constants.py
PURPOSE: Constants used throughout the application
EXPORTS:
  - SIZE_OPTIONS, DEFAULT_SIZE: Task size buckets (minutes)
  - COLUMNS, COLUMN_NAMES: Workflow stages and their display names
  - DEFAULT_LABELS: Focus areas seeded into a fresh board
  - STORAGE_KEY, SESSION_KEY: Keys in the local record store
  - ALL_PROJECTS: Selection sentinel for "no project filter"
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - Single source of truth for the fixed vocabularies
  - Column ids are the stored values; names are what the user sees
"""

# Task sizes (minutes)
SIZE_OPTIONS = (1, 5, 15, 30)
DEFAULT_SIZE = 5

# Workflow columns, in board order
COLUMN_BACKLOG = "backlog"
COLUMN_READY = "ready"
COLUMN_DOING = "doing"
COLUMN_DONE = "done"
COLUMNS = (COLUMN_BACKLOG, COLUMN_READY, COLUMN_DOING, COLUMN_DONE)
COLUMN_NAMES = {
    COLUMN_BACKLOG: "Later",
    COLUMN_READY: "Next",
    COLUMN_DOING: "Now",
    COLUMN_DONE: "Done",
}
DEFAULT_COLUMN = COLUMN_BACKLOG

# CSV "Column" vocabulary -> column id
CSV_COLUMN_MAP = {name.lower(): column_id for column_id, name in COLUMN_NAMES.items()}
CSV_REQUIRED_FIELDS = ("title", "focus", "size", "column")
CSV_PROMPT_TYPE = "prompt"

# Labels (focus areas)
DEFAULT_LABELS = ("Studio", "CRM", "SBKZ", "Music", "Course")

# Projects
DEFAULT_PROJECT_COLOR = "#6366f1"
ALL_PROJECTS = "all"

# Sidebars
SIDEBAR_LEFT = "left"
SIDEBAR_RIGHT = "right"

# Local record store keys
STORAGE_KEY = "snackboard_v1"
SESSION_KEY = "snackboard_session"

# Timer
TICK_SECONDS = 1.0

# Remote sync
REMOTE_TABLE = "boards"
SYNC_DEBOUNCE_SECONDS = 0.5
SYNC_RETRY_LIMIT = 3
SYNC_RETRY_BACKOFF_SECONDS = 0.25
FEED_POLL_SECONDS = 5.0

# Notice levels
NOTICE_SUCCESS = "success"
NOTICE_ERROR = "error"

# Store change names passed to subscribers
PROJECT_CREATE = "project.create"
PROJECT_UPDATE = "project.update"
PROJECT_DELETE = "project.delete"
TASK_CREATE = "task.create"
TASK_UPDATE = "task.update"
TASK_DELETE = "task.delete"
TASK_MOVE = "task.move"
LABEL_ADD = "label.add"
LABEL_RENAME = "label.rename"
LABEL_DELETE = "label.delete"
FILTER_CHANGE = "filter.change"
SIDEBAR_CHANGE = "sidebar.change"
TIMER_START = "timer.start"
TIMER_STOP = "timer.stop"
REMOTE_REPLACE = "remote.replace"

# Changes that leave the remotely synced subset untouched
LOCAL_ONLY_CHANGES = frozenset({FILTER_CHANGE, REMOTE_REPLACE})
