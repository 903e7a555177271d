"""Sprint planning, backlog and metrics service for kanban boards."""

__version__ = "0.1.0"
