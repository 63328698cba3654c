"""Kanban board service: task ordering, optimistic moves and a versioned document store."""

__version__ = "1.0.0"
