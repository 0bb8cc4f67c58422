"""
Free-text task filtering.
"""

from collections.abc import Iterable

from backlog_board.core.tasks.models import Task


def _haystack(task: Task) -> list[str]:
    fields = [task.id, task.title, task.description or "", task.milestone or ""]
    fields.extend(task.labels)
    fields.extend(task.assignee)
    return [value.lower() for value in fields if value]


def matches(task: Task, query: str) -> bool:
    """
    Check whether every whitespace-separated term of ``query`` occurs in the task.

    Terms are matched case-insensitively against the id, title, description,
    milestone, labels and assignees. A leading ``@`` or ``#`` on a term is
    ignored so ``@alice`` and ``#bug`` read naturally.
    """
    haystack = _haystack(task)
    for term in query.lower().split():
        term = term.lstrip("@#")
        if term and not any(term in value for value in haystack):
            return False
    return True


def filter_tasks(tasks: Iterable[Task], query: str) -> list[Task]:
    """
    Filter tasks by a free-text query, preserving input order.

    A blank query returns every task.
    """
    if not query.strip():
        return list(tasks)
    return [task for task in tasks if matches(task, query)]
