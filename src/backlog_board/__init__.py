"""
backlog-board - file-backed task index and pagination engine

Reads a backlog/ directory of markdown task files, indexes and pages through
them by status or directory, and applies optimistic status moves.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from backlog_board.core.config.models import BoardConfig
from backlog_board.core.tasks.models import Task, TaskPriority, TaskSource

__all__ = ["BoardConfig", "Task", "TaskPriority", "TaskSource", "__version__"]
