"""
FILE: snackboard/cli/commands/__init__.py
PURPOSE: CLI command modules
"""

# Export all command handlers for easy importing
from .tasks import (
    add,
    ls,
    show,
    edit,
    mv,
    rm,
    import_csv,
)
from .projects import (
    project_add,
    project_ls,
    project_edit,
    project_rm,
)
from .labels import (
    label_add,
    label_ls,
    label_rename,
    label_rm,
)
from .timer import (
    timer_start,
    timer_stop,
    timer_status,
    timer_watch,
)
from .stats import (
    stats_today,
    stats_project,
)
from .account import (
    auth_signup,
    auth_signin,
    auth_signout,
    auth_whoami,
    sync_push,
    sync_pull,
)
from .system import (
    version,
    config_show,
    config_set,
)

__all__ = [
    "add",
    "ls",
    "show",
    "edit",
    "mv",
    "rm",
    "import_csv",
    "project_add",
    "project_ls",
    "project_edit",
    "project_rm",
    "label_add",
    "label_ls",
    "label_rename",
    "label_rm",
    "timer_start",
    "timer_stop",
    "timer_status",
    "timer_watch",
    "stats_today",
    "stats_project",
    "auth_signup",
    "auth_signin",
    "auth_signout",
    "auth_whoami",
    "sync_push",
    "sync_pull",
    "version",
    "config_show",
    "config_set",
]
