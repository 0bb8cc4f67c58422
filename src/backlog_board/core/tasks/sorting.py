"""
Task ordering shared by the index, the pagination engine and the exporter.

Ordering rules, applied in turn:
    1. Both tasks have an ordinal -> ordinal ascending
    2. Priority high > medium > low (absent counts as medium)
    3. updated_date (else created_date), newest first
    4. Trailing numeric id, highest first; then the raw id string

The comparison never raises and only returns 0 for tasks with identical ids,
so repeated sorts of an unchanged dataset produce identical pages.

Rule 1 only applies when both tasks carry an ordinal, so the comparison is
not transitive over a mix of ordered and unordered tasks: with A(ordinal 1,
low), B(ordinal 2, high) and C(no ordinal, medium), A < B, B < C and C < A.
For such mixes the sorted order can depend on input order. Sets where every
task, or no task, has an ordinal sort the same regardless of input order.
"""

import re
from datetime import datetime
from functools import cmp_to_key

from backlog_board.core.tasks.models import Task, TaskPriority

_DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%dT%H:%M",
    "%Y-%m-%d",
)
_TRAILING_NUMBER = re.compile(r"(\d+(?:\.\d+)*)\s*$")


def parse_task_date(value: str | None) -> datetime | None:
    """
    Parse a task date string, returning None if it cannot be read.

    Timezone information is dropped so all values compare naively.
    """
    if not value:
        return None
    text = value.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).replace(tzinfo=None)
    except ValueError:
        return None


def trailing_id_number(task_id: str) -> tuple[int, ...]:
    """
    Numeric suffix of a task id, dotted components compared in order.

    Example:
        >>> trailing_id_number("task-24.1")
        (24, 1)
        >>> trailing_id_number("draft")
        ()
    """
    match = _TRAILING_NUMBER.search(task_id)
    if not match:
        return ()
    return tuple(int(part) for part in match.group(1).split("."))


def _priority_rank(task: Task) -> int:
    return (task.priority or TaskPriority.MEDIUM).rank


def _cmp(a: object, b: object) -> int:
    return (a > b) - (a < b)  # type: ignore[operator]


def compare_tasks(a: Task, b: Task) -> int:
    """
    Compare two tasks; negative means ``a`` sorts first.

    Args:
        a: First task
        b: Second task

    Returns:
        -1, 0 or 1
    """
    if a.ordinal is not None and b.ordinal is not None and a.ordinal != b.ordinal:
        return _cmp(a.ordinal, b.ordinal)

    priority = _cmp(_priority_rank(b), _priority_rank(a))
    if priority:
        return priority

    # Unparseable dates sort as oldest
    date_a = parse_task_date(a.effective_date) or datetime.min
    date_b = parse_task_date(b.effective_date) or datetime.min
    if date_a != date_b:
        return _cmp(date_b, date_a)

    id_number = _cmp(trailing_id_number(b.id), trailing_id_number(a.id))
    if id_number:
        return id_number
    return _cmp(a.id, b.id)


task_sort_key = cmp_to_key(compare_tasks)


def sort_tasks(tasks: list[Task]) -> list[Task]:
    """Return a new list sorted with compare_tasks."""
    return sorted(tasks, key=task_sort_key)
