"""
Task file parser.

A task file is markdown with a YAML frontmatter block:

    ---
    id: task-12
    title: Add pagination
    status: In Progress
    created_date: '2025-06-08 20:23'
    labels: [core]
    ---

    ## Description

    Page through large columns.

    ## Acceptance Criteria
    <!-- AC:BEGIN -->
    - [x] #1 First page loads
    - [ ] #2 Load more appends
    <!-- AC:END -->

Uses python-frontmatter for the metadata block; body sections are extracted
by heading.
"""

import logging
import re
from datetime import date, datetime
from typing import Any

import frontmatter  # type: ignore[import-untyped]
import yaml

from backlog_board.core.errors import TaskParseError
from backlog_board.core.layout import path_segments
from backlog_board.core.tasks.models import AcceptanceCriterion, Task, TaskPriority, TaskSource

logger = logging.getLogger(__name__)

FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
AC_BEGIN = "<!-- AC:BEGIN -->"
AC_END = "<!-- AC:END -->"
AC_REGION_PATTERN = re.compile(re.escape(AC_BEGIN) + r"(.*?)" + re.escape(AC_END), re.DOTALL)
AC_ITEM_PATTERN = re.compile(r"^- \[([ x])\] #(\d+) (.+)$")

REQUIRED_FIELDS = ("id", "title", "status", "created_date")


def split_frontmatter(
    text: str, file_path: str = "", kind: str = "task"
) -> tuple[dict[str, Any], str]:
    """
    Split a file into its frontmatter metadata and trimmed body.

    Raises:
        TaskParseError: If the delimiters are absent or the YAML is invalid
    """
    match = FRONTMATTER_PATTERN.match(text)
    if not match:
        raise TaskParseError(
            f"Invalid {kind} file: {file_path} - missing YAML frontmatter", path=file_path
        )

    try:
        metadata = dict(frontmatter.loads(text).metadata)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        raise TaskParseError(
            f"Invalid {kind} file: {file_path} - malformed frontmatter: {e}", path=file_path
        ) from e

    return metadata, text[match.end() :].strip()


def _date_to_str(value: Any) -> Any:
    """YAML turns unquoted dates into date objects; keep them as strings."""
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, date):
        return value.isoformat()
    return value


def _string_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return []


def _optional_str(value: Any) -> str | None:
    value = _date_to_str(value)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_priority(value: Any) -> TaskPriority | None:
    if not isinstance(value, str):
        return None
    try:
        return TaskPriority(value.strip().lower())
    except ValueError:
        return None


def _parse_ordinal(value: Any) -> int | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and re.fullmatch(r"[+-]?\d+", value.strip()):
        return int(value.strip())
    return None


def source_from_path(file_path: str) -> TaskSource:
    """A task is COMPLETED iff its path has a ``completed`` segment."""
    if "completed" in path_segments(file_path):
        return TaskSource.COMPLETED
    return TaskSource.LOCAL


def extract_section(body: str, heading: str) -> str | None:
    """
    Extract a ``## heading`` section from a markdown body.

    The section runs to the next ``## `` line or the end of the document and
    is returned trimmed. Heading matching is case-insensitive.

    Returns:
        Section text, or None if the heading is absent
    """
    wanted = f"## {heading}".lower()
    collected: list[str] | None = None

    for line in body.splitlines():
        if collected is None:
            if line.strip().lower() == wanted:
                collected = []
            continue
        if line.startswith("## "):
            break
        collected.append(line)

    if collected is None:
        return None
    return "\n".join(collected).strip()


def extract_acceptance_criteria(body: str) -> list[AcceptanceCriterion]:
    """
    Extract checklist items between the AC:BEGIN and AC:END markers.

    Lines not shaped like ``- [ ] #<n> <text>`` are skipped silently.
    """
    match = AC_REGION_PATTERN.search(body)
    if not match:
        return []

    criteria: list[AcceptanceCriterion] = []
    for line in match.group(1).splitlines():
        item = AC_ITEM_PATTERN.match(line.strip())
        if not item:
            continue
        checked, number, text = item.groups()
        index = int(number)
        if index < 1:
            continue
        criteria.append(AcceptanceCriterion(index=index, text=text.strip(), checked=checked == "x"))
    return criteria


def parse_task_file(text: str, file_path: str) -> Task:
    """
    Parse one task file into a Task.

    Args:
        text: Full file content
        file_path: Repository-relative path (determines ``source``)

    Returns:
        Parsed Task

    Raises:
        TaskParseError: If the frontmatter is absent or malformed, or a
            required field (id, title, status, created_date) is missing or
            not a string
    """
    metadata, body = split_frontmatter(text, file_path)

    for field in REQUIRED_FIELDS:
        value = metadata.get(field)
        if field == "created_date":
            value = _date_to_str(value)
        if not isinstance(value, str) or not value.strip():
            raise TaskParseError(
                f"Invalid task file: {file_path} - missing or invalid {field}",
                path=file_path,
                field=field,
            )

    return Task(
        id=metadata["id"].strip(),
        title=metadata["title"].strip(),
        status=metadata["status"].strip(),
        created_date=_date_to_str(metadata["created_date"]).strip(),
        updated_date=_optional_str(metadata.get("updated_date")),
        priority=_parse_priority(metadata.get("priority")),
        ordinal=_parse_ordinal(metadata.get("ordinal")),
        assignee=_string_list(metadata.get("assignee")),
        labels=_string_list(metadata.get("labels")),
        dependencies=_string_list(metadata.get("dependencies")),
        parent_task_id=_optional_str(metadata.get("parent") or metadata.get("parent_task_id")),
        milestone=_optional_str(metadata.get("milestone")),
        description=extract_section(body, "Description"),
        acceptance_criteria_items=extract_acceptance_criteria(body),
        implementation_plan=extract_section(body, "Implementation Plan"),
        implementation_notes=extract_section(body, "Implementation Notes"),
        body=body,
        source=source_from_path(file_path),
        file_path=file_path,
    )


def update_task_status(text: str, status: str, updated_date: str | None = None) -> str:
    """
    Rewrite a task file's frontmatter with a new status.

    The body is preserved; other frontmatter keys keep their order.

    Args:
        text: Current file content
        status: New status value
        updated_date: Optional new updated_date value

    Returns:
        Updated file content

    Raises:
        TaskParseError: If the file has no valid frontmatter
    """
    split_frontmatter(text)
    post = frontmatter.loads(text)
    post.metadata["status"] = status
    if updated_date is not None:
        post.metadata["updated_date"] = updated_date
    return frontmatter.dumps(post, sort_keys=False) + "\n"
