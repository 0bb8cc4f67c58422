"""
Milestone CLI command.
"""

import asyncio

import typer
from rich.console import Console
from rich.table import Table

from backlog_board.cli.board import build_session
from backlog_board.cli.errors import exit_code_for
from backlog_board.core.errors import BoardError
from backlog_board.core.milestones.models import MilestoneState

console = Console()


def milestones(
    ctx: typer.Context,
    expand: list[str] | None = typer.Option(
        None,
        "--expand",
        "-e",
        help="Milestone ID whose tasks to show (can be repeated)",
    ),
) -> None:
    """
    List milestones, optionally with their member tasks.

    Examples:
        backlog-board milestones
        backlog-board milestones --expand m-1
    """
    session = build_session(ctx)

    async def _load() -> list[MilestoneState]:
        await session.load()
        session.require_index()
        assert session.milestones is not None
        await session.milestones.list()
        for milestone_id in expand or []:
            await session.milestones.expand(milestone_id)
        return session.milestones.states

    try:
        states = asyncio.run(_load())
    except BoardError as e:
        raise typer.Exit(exit_code_for(e))

    if not states:
        console.print("[dim]No milestones found in backlog/milestones/[/dim]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("ID", style="dim")
    table.add_column("Title", overflow="fold")
    table.add_column("Tasks", justify="right")
    for state in states:
        table.add_row(state.milestone.id, state.milestone.title, str(len(state.milestone.tasks)))
    console.print(table)

    for state in states:
        if not state.is_expanded:
            continue
        console.print(f"\n[bold]{state.milestone.id}[/bold] {state.milestone.title}")
        if not state.tasks:
            console.print("  [dim]No tasks found[/dim]")
        for task in state.tasks:
            console.print(f"  {task.id}  [cyan]{task.status}[/cyan]  {task.title}")
        missing = len(state.milestone.tasks) - len(state.tasks)
        if missing > 0:
            console.print(f"  [dim]{missing} member task(s) not found[/dim]")
