"""
Pytest configuration and shared fixtures.

Provides builders for task files, whole in-memory backlog projects and Task
records, plus an on-disk sample project for CLI tests.
"""

from pathlib import Path
from typing import Any

import pytest
import yaml

from backlog_board.core.tasks.models import Task, TaskPriority, TaskSource

DEFAULT_CONFIG = (
    'project_name: "Demo"\n'
    'default_status: "To Do"\n'
    'statuses: ["To Do", "In Progress", "Done"]\n'
    "labels: []\n"
    "milestones: []\n"
    "date_format: yyyy-mm-dd\n"
)


# ==============================================================================
# Builders
# ==============================================================================


def task_path(task_id: str, title: str = "Task", completed: bool = False) -> str:
    directory = "backlog/completed" if completed else "backlog/tasks"
    return f"{directory}/{task_id} - {title}.md"


def build_task_file(
    task_id: str,
    title: str | None = None,
    status: str = "To Do",
    created_date: str = "2025-01-01 10:00",
    body: str = "",
    **fields: Any,
) -> str:
    """
    Build task file text with YAML frontmatter.

    Extra keyword arguments become frontmatter keys; None values are omitted.
    """
    metadata: dict[str, Any] = {
        "id": task_id,
        "title": title or f"Task {task_id}",
        "status": status,
        "created_date": created_date,
    }
    metadata.update({k: v for k, v in fields.items() if v is not None})
    frontmatter = yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True)
    return f"---\n{frontmatter}---\n\n{body}".rstrip() + "\n"


def build_project(
    tasks: list[dict[str, Any]] | None = None,
    config: str | None = DEFAULT_CONFIG,
    extra_files: dict[str, str] | None = None,
) -> dict[str, str]:
    """
    Build a path -> content mapping for an in-memory backlog.

    Each task dict holds build_task_file() arguments; ``completed=True`` puts
    the file under backlog/completed/.
    """
    files: dict[str, str] = {}
    if config is not None:
        files["backlog/config.yml"] = config
    for task_args in tasks or []:
        task_args = dict(task_args)
        completed = task_args.pop("completed", False)
        title = task_args.get("title") or "Task"
        files[task_path(task_args["task_id"], title, completed)] = build_task_file(**task_args)
    files.update(extra_files or {})
    return files


def _make_task(task_id: str = "task-1", **overrides: Any) -> Task:
    """Build a Task with sensible defaults."""
    values: dict[str, Any] = {
        "id": task_id,
        "title": f"Task {task_id}",
        "status": "To Do",
        "created_date": "2025-01-01 10:00",
        "file_path": task_path(task_id),
    }
    values.update(overrides)
    if values.get("source") == TaskSource.COMPLETED and "file_path" not in overrides:
        values["file_path"] = task_path(task_id, completed=True)
    return Task(**values)


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def task_file():
    """Provide the task file text builder."""
    return build_task_file


@pytest.fixture
def project_files():
    """Provide the in-memory project builder."""
    return build_project


@pytest.fixture
def make_task():
    """Provide the Task factory."""
    return _make_task


@pytest.fixture
def sample_tasks() -> list[Task]:
    """Provide Tasks with mixed priorities, statuses and parents."""
    return [
        _make_task("task-1", title="Set up CI", status="Done", priority=TaskPriority.HIGH),
        _make_task("task-2", title="Write parser", status="In Progress", labels=["core"]),
        _make_task(
            "task-3",
            title="Add pagination",
            status="To Do",
            assignee=["alice"],
            updated_date="2025-02-01 09:00",
        ),
        _make_task("task-3.1", title="Cursor bookkeeping", status="To Do", parent_task_id="task-3"),
        _make_task("task-4", title="Docs", status="To Do", priority=TaskPriority.LOW),
    ]


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """
    Provide an on-disk backlog project.

    Creates:
    - backlog/config.yml
    - backlog/tasks/ with three tasks (one In Progress)
    - backlog/completed/ with one task
    - backlog/milestones/ with one milestone
    """
    project = tmp_path / "project"
    files = build_project(
        [
            {"task_id": "task-1", "title": "Set up CI", "status": "Done", "completed": True},
            {"task_id": "task-2", "title": "Write parser", "status": "In Progress"},
            {"task_id": "task-3", "title": "Add pagination", "labels": ["core"]},
            {"task_id": "task-4", "title": "Docs", "priority": "low"},
        ],
        extra_files={
            "backlog/milestones/m-1 - Beta.md": (
                "---\nid: m-1\ntitle: Beta\ntasks: [task-2, task-3, task-99]\n---\n\nFirst release.\n"
            ),
        },
    )
    for relative, content in files.items():
        target = project / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    return project


@pytest.fixture(autouse=True)
def clean_board_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep BACKLOG_BOARD_* settings and user .env files out of tests."""
    for key in (
        "BACKLOG_BOARD_PAGE_SIZE",
        "BACKLOG_BOARD_COMPLETED_PAGE_SIZE",
        "BACKLOG_BOARD_LAZY",
        "BACKLOG_BOARD_STRICT_CONFIG",
        "BACKLOG_BOARD_REDIRECT_UNKNOWN",
        "BACKLOG_BOARD_INCLUDE_COMPLETED",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
