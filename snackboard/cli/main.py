"""
FILE: snackboard/cli/main.py
PURPOSE: Typer-based CLI for the kanban board
EXPORTS:
  - app (Typer application)
  - main() (entry point)
  - version() - Show version
  - add() / ls() / show() / edit() / mv() / rm() - Task commands
  - import_csv() - Import tasks from CSV
  - project add|ls|edit|rm - Project commands
  - label add|ls|rename|rm - Focus area commands
  - timer start|stop|status|watch - Work timer
  - stats today|project - Time statistics
  - auth signup|signin|signout|whoami - Account commands
  - sync push|pull - Manual cloud sync
  - config show|set - Remote sync settings
DEPENDENCIES:
  - typer (CLI framework)
  - rich (formatted output, log handler)
  - snackboard.cli.commands (command modules)
NOTES:
  - Most commands support --json and --raw flags
  - Error messages go to stderr
  - Exit codes: 0=success, 1=error
  - --verbose turns on DEBUG logging
"""

import logging
import sys

# Fix Windows console encoding for Unicode characters
if sys.platform == "win32":
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')
    sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8')

import typer
from rich.console import Console
from rich.logging import RichHandler

from .. import __version__

# Typer app setup
app = typer.Typer(
    name="snackboard",
    help="Personal kanban board with a work timer and optional cloud sync",
    add_completion=False,
)

# Sub-command groups
project_app = typer.Typer(name="project", help="Project management commands")
label_app = typer.Typer(name="label", help="Focus area commands")
timer_app = typer.Typer(name="timer", help="Work timer commands")
stats_app = typer.Typer(name="stats", help="Time statistics")
auth_app = typer.Typer(name="auth", help="Cloud account commands")
sync_app = typer.Typer(name="sync", help="Manual cloud sync")
config_app = typer.Typer(name="config", help="Remote sync settings")
app.add_typer(project_app, name="project")
app.add_typer(label_app, name="label")
app.add_typer(timer_app, name="timer")
app.add_typer(stats_app, name="stats")
app.add_typer(auth_app, name="auth")
app.add_typer(sync_app, name="sync")
app.add_typer(config_app, name="config")

# Rich console for formatted output
console = Console()
error_console = Console(stderr=True)


def configure_logging(verbose: bool = False) -> None:
    """Route log records through rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=error_console, show_path=False)],
        force=True,
    )


@app.callback()
def default_command(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Personal kanban board with a work timer and optional cloud sync."""
    configure_logging(verbose)


# Import command modules to register commands with app
from .commands import (  # noqa: E402
    # System commands
    version,
    config_show,
    config_set,
    # Task commands
    add,
    ls,
    show,
    edit,
    mv,
    rm,
    import_csv,
    # Project commands
    project_add,
    project_ls,
    project_edit,
    project_rm,
    # Label commands
    label_add,
    label_ls,
    label_rename,
    label_rm,
    # Timer commands
    timer_start,
    timer_stop,
    timer_status,
    timer_watch,
    # Stats commands
    stats_today,
    stats_project,
    # Account / sync commands
    auth_signup,
    auth_signin,
    auth_signout,
    auth_whoami,
    sync_push,
    sync_pull,
)


def main():
    """Main entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
