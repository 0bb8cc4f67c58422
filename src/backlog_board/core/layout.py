"""
Conventional backlog directory layout.

All paths are repository-relative, "/"-separated strings:

    backlog/config.yml
    backlog/tasks/task-1 - Title.md
    backlog/completed/task-7 - Title.md
    backlog/milestones/m-1 - Release.md
"""

import re

BACKLOG_DIR = "backlog"
CONFIG_PATH = f"{BACKLOG_DIR}/config.yml"
TASKS_DIR = f"{BACKLOG_DIR}/tasks"
COMPLETED_DIR = f"{BACKLOG_DIR}/completed"
MILESTONES_DIR = f"{BACKLOG_DIR}/milestones"

PROJECT_DIRS = (BACKLOG_DIR, TASKS_DIR, COMPLETED_DIR, MILESTONES_DIR)

# Supports dotted subtask ids like task-24.1
TASK_FILENAME_PATTERN = re.compile(r"^(task-\d+(?:\.\d+)*)", re.IGNORECASE)


def normalize_path(path: str) -> str:
    """Strip leading/trailing slashes and collapse repeated slashes."""
    return re.sub(r"/+", "/", path.replace("\\", "/")).strip("/")


def basename(path: str) -> str:
    return path.rsplit("/", 1)[-1]


def path_segments(path: str) -> list[str]:
    return [part for part in normalize_path(path).split("/") if part]


def is_task_file(path: str) -> bool:
    """
    Check whether a path names a task file.

    Task files end in .md and their filename starts with ``task-<id>``.
    """
    if not path.endswith(".md"):
        return False
    return TASK_FILENAME_PATTERN.match(basename(path)) is not None


def task_id_from_path(path: str) -> str | None:
    """
    Derive the task id from a task file name without reading it.

    Example:
        >>> task_id_from_path("backlog/tasks/task-24.1 - Fix parser.md")
        'task-24.1'
    """
    match = TASK_FILENAME_PATTERN.match(basename(path))
    return match.group(1).lower() if match else None


def is_milestone_file(path: str) -> bool:
    normalized = normalize_path(path)
    return normalized.startswith(f"{MILESTONES_DIR}/") and normalized.endswith(".md")
