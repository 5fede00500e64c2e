"""
FILE: snackboard/core/exceptions.py
PURPOSE: Custom exception classes for error handling
EXPORTS:
  - SnackboardError (base exception)
  - TaskNotFoundError
  - ProjectNotFoundError
  - InvalidInputError
  - TimerRejectedError
  - CSVImportError
  - RemoteStoreError, RemoteConflictError
  - AuthError
DEPENDENCIES:
  - None (stdlib only)
NOTES:
  - All exceptions inherit from SnackboardError for easy catching
  - Core layer raises these, the CLI catches and displays
"""


class SnackboardError(Exception):
    """Base exception for all Snackboard errors."""
    pass


class TaskNotFoundError(SnackboardError):
    """Task with given ID doesn't exist."""

    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class ProjectNotFoundError(SnackboardError):
    """Project with given ID doesn't exist."""

    def __init__(self, project_id: str):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")


class InvalidInputError(SnackboardError):
    """Input validation failed."""

    def __init__(self, message: str):
        super().__init__(message)


class TimerRejectedError(SnackboardError):
    """Timer cannot run on the requested task."""

    def __init__(self, task_id: str, reason: str):
        self.task_id = task_id
        self.reason = reason
        super().__init__(reason)


class CSVImportError(SnackboardError):
    """CSV text is structurally unusable (missing header or rows)."""
    pass


class RemoteStoreError(SnackboardError):
    """Remote read or write failed."""

    def __init__(self, message: str, status_code: int = 0, code: str = ""):
        self.status_code = status_code
        self.code = code
        super().__init__(message)


class RemoteConflictError(RemoteStoreError):
    """Insert hit an existing row for the same user (unique violation)."""
    pass


class AuthError(SnackboardError):
    """Sign-up, sign-in or sign-out was refused by the auth provider."""
    pass
