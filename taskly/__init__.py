"""Taskly: a personal kanban board with sparse-rank drag-and-drop ordering."""

__version__ = "0.1.0"
