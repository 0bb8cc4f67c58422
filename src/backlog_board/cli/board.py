"""
Board CLI commands: view, export, move and search tasks.

Each command loads a fresh BoardSession against the project directory given
by --dir (default: current directory) and runs its async work with
asyncio.run().
"""

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from backlog_board.cli.errors import ExitCode, exit_code_for, print_error
from backlog_board.core.config.settings import BoardSettings, load_settings
from backlog_board.core.errors import BoardError
from backlog_board.core.export.markdown import export_board_to_file
from backlog_board.core.files.local import LocalFileAccess
from backlog_board.core.session import BoardSession
from backlog_board.core.tasks.index import SourceGroup
from backlog_board.core.tasks.models import Task, TaskPriority
from backlog_board.core.tasks.pagination import ColumnState, GroupBy

console = Console()
logger = logging.getLogger(__name__)

PRIORITY_STYLES = {
    TaskPriority.HIGH: "red",
    TaskPriority.MEDIUM: "yellow",
    TaskPriority.LOW: "dim",
}


def project_dir(ctx: typer.Context) -> Path:
    """Project directory chosen with the global --dir option."""
    obj = ctx.obj or {}
    return Path(obj.get("dir") or Path.cwd())


def build_session(ctx: typer.Context, **setting_overrides: object) -> BoardSession:
    """
    Create an unloaded session for the project directory.

    Explicit overrides (from command flags) win over environment settings.
    """
    settings = load_settings()
    updates = {k: v for k, v in setting_overrides.items() if v is not None}
    if updates:
        settings = BoardSettings(**{**settings.model_dump(), **updates})
    return BoardSession(LocalFileAccess(project_dir(ctx)), settings)


def _task_cell(task: Task) -> str:
    style = PRIORITY_STYLES.get(task.priority) if task.priority else None
    task_id = f"[{style}]{task.id}[/{style}]" if style else f"[bold]{task.id}[/bold]"
    cell = f"{task_id} {task.title}"
    if task.assignee:
        cell += f" [dim]@{', @'.join(a.lstrip('@') for a in task.assignee)}[/dim]"
    return cell


def render_columns(title: str, columns: dict[str, ColumnState], labels: dict[str, str]) -> Table:
    """Render loaded columns side by side, with a 'more' footer where truncated."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    for key, column in columns.items():
        table.add_column(f"{labels.get(key, key)} ({column.total})", overflow="fold")

    states = list(columns.values())
    depth = max((len(column.items) for column in states), default=0)
    for row in range(depth):
        table.add_row(
            *(_task_cell(c.items[row]) if row < len(c.items) else "" for c in states)
        )
    if any(column.has_more for column in states):
        table.add_row(
            *(
                f"[dim]… {column.total - column.cursor} more[/dim]" if column.has_more else ""
                for column in states
            )
        )
    return table


def board(
    ctx: typer.Context,
    limit: int | None = typer.Option(
        None,
        "--limit",
        "-n",
        min=1,
        help="Tasks to show per column (default: BACKLOG_BOARD_PAGE_SIZE or 20)",
    ),
    by_source: bool = typer.Option(
        False,
        "--by-source",
        help="Group by directory (active vs completed) instead of status",
    ),
    lazy: bool = typer.Option(
        False,
        "--lazy",
        help="Parse only the task files needed for the first page",
    ),
) -> None:
    """
    Show the board as a table of columns.

    Examples:
        backlog-board board
        backlog-board board --limit 5
        backlog-board --dir ../other-repo board --by-source --lazy
    """
    session = build_session(ctx, page_size=limit, lazy=lazy or None)

    async def _load() -> tuple[str, dict[str, ColumnState]]:
        await session.load()
        index = session.require_index()
        engine = session.source_engine if by_source else session.status_engine
        assert engine is not None
        return index.config.project_name, await engine.load_initial()

    try:
        project_name, columns = asyncio.run(_load())
    except BoardError as e:
        raise typer.Exit(exit_code_for(e))

    labels = {group.value: group.label for group in SourceGroup} if by_source else {}
    grouping = GroupBy.SOURCE if by_source else GroupBy.STATUS
    title = f"{project_name or 'Backlog'} [dim]by {grouping.value}[/dim]"
    console.print(render_columns(title, columns, labels))

    assert session.index is not None
    skipped = session.index.failed_paths
    if skipped:
        console.print(f"[yellow]Skipped {len(skipped)} unreadable task file(s)[/yellow]")
        for path, reason in skipped.items():
            logger.debug(f"{path}: {reason}")


def export(
    ctx: typer.Context,
    output: Path = typer.Argument(..., help="Markdown file to write"),
) -> None:
    """
    Export the whole board to a markdown table.

    Examples:
        backlog-board export board.md
        backlog-board export docs/board.md
    """
    session = build_session(ctx)

    async def _tasks() -> tuple[list[Task], list[str], str]:
        await session.load()
        tasks = await session.all_tasks()
        return tasks, session.config.statuses, session.config.project_name

    try:
        tasks, statuses, project_name = asyncio.run(_tasks())
    except BoardError as e:
        raise typer.Exit(exit_code_for(e))

    try:
        written = export_board_to_file(output, tasks, statuses, project_name)
    except OSError as e:
        print_error(f"Failed to write {output}", reason=str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]Exported[/green] {len(tasks)} tasks to {written}")


def move(
    ctx: typer.Context,
    task_id: str = typer.Argument(..., help="Task ID to move"),
    status: str = typer.Argument(..., help="New status"),
) -> None:
    """
    Move a task to another status column.

    Examples:
        backlog-board move task-12 "In Progress"
        backlog-board move task-12 done
    """
    session = build_session(ctx)
    failures: list[str] = []

    async def _move() -> Task:
        await session.load()
        config = session.config
        assert session.coordinator is not None
        session.coordinator.on_error = lambda tid, err: failures.append(f"{tid}: {err}")

        target = config.canonical_status(status)
        if target is None:
            console.print(
                f"[yellow]Warning:[/yellow] '{status}' is not a configured status "
                f"({', '.join(config.statuses)})"
            )
            target = status.strip()

        task = session.move_task(task_id, target)
        await session.coordinator.drain()
        return task

    try:
        task = asyncio.run(_move())
    except BoardError as e:
        raise typer.Exit(exit_code_for(e))
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted; the task file may not have been updated[/yellow]")
        raise typer.Exit(ExitCode.SIGINT)

    if failures:
        print_error(f"Failed to save {task.id}", reason="; ".join(failures))
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print(f"[green]Moved:[/green] {task.id} → {task.status}")


def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Words to match in id, title, description, labels"),
) -> None:
    """
    Search tasks by text.

    Examples:
        backlog-board search parser
        backlog-board search "@alice #bug"
    """
    session = build_session(ctx)

    async def _search() -> list[Task]:
        await session.load()
        return await session.search(query)

    try:
        tasks = asyncio.run(_search())
    except BoardError as e:
        raise typer.Exit(exit_code_for(e))

    if not tasks:
        console.print(f"[dim]No tasks match '{query}'[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Status", width=12)
    table.add_column("Title", overflow="fold")
    for task in tasks:
        table.add_row(task.id, task.status, task.title)

    console.print(table)
    console.print(f"\n[dim]Total: {len(tasks)} tasks[/dim]")
