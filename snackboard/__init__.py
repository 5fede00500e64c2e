"""Snackboard - personal kanban board with a work timer and optional cloud sync."""

__version__ = "0.1.0"
