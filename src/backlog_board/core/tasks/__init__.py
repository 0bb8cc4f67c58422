"""
Task records, parsing, ordering, indexing and pagination.
"""

from backlog_board.core.tasks.index import IndexMode, SourceGroup, TaskIndex
from backlog_board.core.tasks.models import AcceptanceCriterion, Task, TaskPriority, TaskSource
from backlog_board.core.tasks.pagination import (
    ColumnState,
    GroupBy,
    PaginatedResult,
    PaginationEngine,
)
from backlog_board.core.tasks.parser import parse_task_file, update_task_status
from backlog_board.core.tasks.search import filter_tasks
from backlog_board.core.tasks.sorting import compare_tasks, sort_tasks

__all__ = [
    "AcceptanceCriterion",
    "ColumnState",
    "GroupBy",
    "IndexMode",
    "PaginatedResult",
    "PaginationEngine",
    "SourceGroup",
    "Task",
    "TaskIndex",
    "TaskPriority",
    "TaskSource",
    "compare_tasks",
    "filter_tasks",
    "parse_task_file",
    "sort_tasks",
    "update_task_status",
]
