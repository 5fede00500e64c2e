"""
FILE: snackboard/cli/__init__.py
PURPOSE: Typer command-line interface
"""
