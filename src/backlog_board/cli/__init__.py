"""
backlog-board CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys
from pathlib import Path

import typer

from backlog_board import __version__
from backlog_board.cli import board, init_cmd, milestones
from backlog_board.core.config.env import load_layered_env

PANEL_BOARD = "View the Board"
PANEL_TASKS = "Work with Tasks"
PANEL_PROJECT = "Set Up a Project"

app = typer.Typer(
    name="backlog-board",
    help="Browse, page through and update a file-backed task backlog",
    no_args_is_help=True,
    add_completion=False,
    context_settings={"help_option_names": ["--help", "-h"]},
)


def setup_logging(debug: bool = False) -> None:
    """
    Configure logging for CLI commands.

    Args:
        debug: If True, enable DEBUG level logging
    """
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"backlog-board {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    directory: Path | None = typer.Option(
        None,
        "--dir",
        "-C",
        help="Project directory (default: current directory)",
        file_okay=False,
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """
    backlog-board - a terminal view of a backlog/ directory.

    Quick Start:
        backlog-board init "My Project"     # Create backlog/ and config.yml
        backlog-board board                 # Show status columns
        backlog-board move task-3 Done      # Move a task

    Settings come from BACKLOG_BOARD_* environment variables, which may be
    placed in .env files. Precedence: OS env > project .env > user .env
    """
    setup_logging(debug)
    load_layered_env(project_dir=directory)

    ctx.obj = {"debug": debug, "dir": directory}


app.command(name="board", rich_help_panel=PANEL_BOARD)(board.board)
app.command(name="export", rich_help_panel=PANEL_BOARD)(board.export)
app.command(name="milestones", rich_help_panel=PANEL_BOARD)(milestones.milestones)
app.command(name="move", rich_help_panel=PANEL_TASKS)(board.move)
app.command(name="search", rich_help_panel=PANEL_TASKS)(board.search)
app.command(name="init", rich_help_panel=PANEL_PROJECT)(init_cmd.main)


def cli_main() -> None:
    """Console script entry point."""
    app()


__all__ = ["app", "cli_main", "main"]
