"""
Init command: create the backlog/ layout in a project directory.
"""

import asyncio

import typer
from rich.console import Console

from backlog_board.cli.board import project_dir
from backlog_board.cli.errors import ExitCode, exit_code_for, print_error
from backlog_board.core.errors import BoardError
from backlog_board.core.files.local import LocalFileAccess
from backlog_board.core.project.init import ProjectExistsError, init_project

console = Console()


def main(
    ctx: typer.Context,
    project_name: str = typer.Argument(..., help="Project name for backlog/config.yml"),
    statuses: list[str] | None = typer.Option(
        None,
        "--status",
        "-s",
        help="Status column, in order (can be repeated; default: To Do, In Progress, Done)",
    ),
) -> None:
    """
    Initialize a backlog project.

    Examples:
        backlog-board init "My Project"
        backlog-board init Demo -s Backlog -s Doing -s Done
    """
    directory = project_dir(ctx)
    access = LocalFileAccess(directory)

    try:
        config = asyncio.run(init_project(access, project_name, statuses))
    except ProjectExistsError as e:
        print_error("Backlog project already initialized", reason=e.message)
        raise typer.Exit(ExitCode.USER_ERROR)
    except BoardError as e:
        raise typer.Exit(exit_code_for(e))

    console.print(f"[green]Initialized[/green] {config.project_name} in {directory / 'backlog'}")
    console.print(f"[dim]Statuses: {', '.join(config.statuses)}[/dim]")
