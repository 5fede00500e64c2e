"""
FILE: snackboard/core/__init__.py
PURPOSE: Board state, timer, queries, CSV import and persistence
NOTES:
  - Import the submodules directly (store, sync, ...); nothing is re-exported here
"""
