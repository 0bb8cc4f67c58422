"""
Markdown snapshot export of the board.

Renders every task into one static markdown table, one column per status:

    # Kanban Board Export (powered by Backlog.md)
    Generated on: 2025-06-08 20:23:00
    Project: Demo

    | To Do | Done |
    | --- | --- |
    | **TASK-2** - Write docs [@alice]<br>*#docs* | **TASK-1** - Set up CI |
"""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from backlog_board.core.tasks.models import Task
from backlog_board.core.tasks.sorting import sort_tasks, trailing_id_number

logger = logging.getLogger(__name__)

EMPTY_COLUMN = "No tasks found"
SUBTASK_PREFIX = "└─ "


def build_status_groups(
    tasks: Iterable[Task], statuses: Iterable[str]
) -> tuple[list[str], dict[str, list[Task]]]:
    """
    Bucket tasks into status columns.

    Configured statuses are trimmed and deduplicated and come first; statuses
    only seen on tasks follow in first-seen order. Identity is
    case-insensitive and the configured (or first-seen) spelling is kept.
    Tasks with a blank status are left out.

    Returns:
        (ordered column names, tasks per column in input order)
    """
    canonical: dict[str, str] = {}
    grouped: dict[str, list[Task]] = {}

    for status in statuses:
        if not isinstance(status, str) or not status.strip():
            continue
        trimmed = status.strip()
        if trimmed.lower() not in canonical:
            canonical[trimmed.lower()] = trimmed
            grouped[trimmed] = []

    for task in tasks:
        raw = (task.status or "").strip()
        if not raw:
            continue
        column = canonical.setdefault(raw.lower(), raw)
        grouped.setdefault(column, []).append(task)

    return list(grouped), grouped


def _nest_subtasks(column_tasks: list[Task], by_id: dict[str, Task]) -> list[Task]:
    """
    Order a column with subtasks directly under their parent.

    A task is nested only when its parent has the identical status string;
    otherwise it stays top-level. Nested children are ordered by ascending
    trailing id number.
    """
    top: list[Task] = []
    children: dict[str, list[Task]] = {}
    for task in sort_tasks(column_tasks):
        parent = by_id.get(task.parent_task_id) if task.parent_task_id else None
        if parent is not None and parent.id != task.id and parent.status == task.status:
            children.setdefault(parent.id, []).append(task)
        else:
            top.append(task)

    ordered: list[Task] = []
    emitted: set[str] = set()

    def emit(task: Task) -> None:
        if task.id in emitted:
            return
        emitted.add(task.id)
        ordered.append(task)
        for child in sorted(children.get(task.id, []), key=lambda t: trailing_id_number(t.id)):
            emit(child)

    for task in top:
        emit(task)
    # Parent cycles leave children unreachable from any top-level task
    for task in column_tasks:
        if task.id not in emitted:
            emit(task)
    return ordered


def _escape(text: str) -> str:
    return text.replace("|", "\\|").replace("\n", " ")


def format_cell(task: Task) -> str:
    """
    Render one task as a table cell.

    Example:
        >>> format_cell(task)
        '**TASK-7** - Fix login [@alice, @bob]<br>*#bug #auth*'
    """
    prefix = SUBTASK_PREFIX if task.parent_task_id else ""
    assignees = ""
    if task.assignee:
        names = [a if a.startswith("@") else f"@{a}" for a in task.assignee]
        assignees = f" [{', '.join(names)}]"
    labels = ""
    if task.labels:
        labels = "<br>*" + " ".join(f"#{label}" for label in task.labels) + "*"
    return f"{prefix}**{task.id.upper()}** - {_escape(task.title)}{_escape(assignees)}{labels}"


def render_board(
    tasks: Iterable[Task],
    statuses: Iterable[str],
    project_name: str,
    generated_at: datetime | None = None,
) -> str:
    """
    Render the board as a markdown document.

    Deterministic for a given ``generated_at`` and never raises on odd task
    data.

    Args:
        tasks: Every task to include
        statuses: Configured statuses, in column order
        project_name: Shown in the header
        generated_at: Timestamp for the header (defaults to now, UTC)

    Returns:
        Markdown text
    """
    task_list = list(tasks)
    stamp = (generated_at or datetime.now(timezone.utc)).strftime("%Y-%m-%d %H:%M:%S")
    header = (
        "# Kanban Board Export (powered by Backlog.md)\n"
        f"Generated on: {stamp}\n"
        f"Project: {project_name}\n\n"
    )

    ordered_statuses, grouped = build_status_groups(task_list, statuses)
    if not ordered_statuses:
        return f"{header}No tasks found."

    by_id: dict[str, Task] = {}
    for task in task_list:
        by_id.setdefault(task.id, task)

    columns = [_nest_subtasks(grouped[status], by_id) for status in ordered_statuses]
    max_rows = max((len(column) for column in columns), default=0)

    rows = [
        "| " + " | ".join(_escape(status) for status in ordered_statuses) + " |",
        "| " + " | ".join("---" for _ in ordered_statuses) + " |",
    ]
    for row_index in range(max_rows):
        cells: list[str] = []
        for column in columns:
            if row_index < len(column):
                cells.append(format_cell(column[row_index]))
            elif row_index == 0:
                cells.append(EMPTY_COLUMN)
            else:
                cells.append("")
        rows.append("| " + " | ".join(cells) + " |")

    table = "\n".join(rows)
    if max_rows == 0:
        return f"{header}{table}\n\n{EMPTY_COLUMN}.\n"
    return f"{header}{table}\n"


def export_board_to_file(
    path: Path | str,
    tasks: Iterable[Task],
    statuses: Iterable[str],
    project_name: str,
    generated_at: datetime | None = None,
) -> Path:
    """
    Render the board and write it to ``path``, creating parent directories.

    Returns:
        The path written
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_board(tasks, statuses, project_name, generated_at), encoding="utf-8")
    logger.info(f"Exported board to {target}")
    return target
