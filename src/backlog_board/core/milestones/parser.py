"""
Milestone file parser.

    ---
    id: m-1
    title: Public beta
    tasks: [task-3, task-7]
    ---

    First release open to everyone.
"""

from typing import Any

from backlog_board.core.errors import MilestoneParseError, TaskParseError
from backlog_board.core.milestones.models import Milestone
from backlog_board.core.tasks.parser import extract_section, split_frontmatter


def _task_ids(value: Any) -> list[str]:
    if isinstance(value, str):
        value = value.strip().strip("[]").split(",")
    if not isinstance(value, list):
        return []
    ids = [str(item).strip().strip("\"'") for item in value if item is not None]
    return list(dict.fromkeys(task_id for task_id in ids if task_id))


def parse_milestone_file(text: str, file_path: str) -> Milestone:
    """
    Parse one milestone file.

    The description is the ``## Description`` section when present, otherwise
    the whole body.

    Raises:
        MilestoneParseError: If the frontmatter is missing or malformed, or
            ``id`` is absent
    """
    try:
        metadata, body = split_frontmatter(text, file_path, kind="milestone")
    except TaskParseError as e:
        raise MilestoneParseError(e.message, **e.context) from e

    milestone_id = metadata.get("id")
    if milestone_id is None or not str(milestone_id).strip():
        raise MilestoneParseError(
            f"Invalid milestone file: {file_path} - missing id", path=file_path
        )
    milestone_id = str(milestone_id).strip()
    title = str(metadata.get("title") or "").strip() or milestone_id

    description = extract_section(body, "Description")
    return Milestone(
        id=milestone_id,
        title=title,
        description=description if description is not None else body,
        tasks=_task_ids(metadata.get("tasks")),
        file_path=file_path,
    )
