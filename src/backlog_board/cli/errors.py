"""
Standardized error handling and exit codes for the backlog-board CLI.

Every command reports failures through print_error() so messages share one
shape: the problem, optionally why it happened, and what to try next.
"""

from enum import IntEnum

from rich.console import Console

from backlog_board.core.errors import (
    BoardError,
    ConfigError,
    FetchError,
    MilestoneNotFoundError,
    NotAProjectError,
    TaskNotFoundError,
    WriteNotSupportedError,
)

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for backlog-board operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Generic error, including failed file writes."""

    USER_ERROR = 2
    """Configuration or input error (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Not a backlog project",
        ...     reason="backlog/config.yml was not found",
        ...     solution="backlog-board init 'My Project'",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_not_a_project_error() -> None:
    """Print error when the directory has no backlog/config.yml."""
    print_error(
        "Not a backlog project",
        reason="backlog/config.yml was not found in this directory",
        solution="backlog-board init 'Project Name'  # or pass --dir",
    )


def print_task_not_found_error(task_id: str) -> None:
    """Print error when a specific task is not found."""
    print_error(
        f"Task not found: {task_id}",
        reason="The task ID may be incorrect or its file may be malformed",
        solution="backlog-board board  # to see available tasks",
    )


def exit_code_for(error: BoardError) -> ExitCode:
    """
    Report a core error and choose the exit code for it.

    Returns:
        USER_ERROR for problems the user can fix, GENERAL_ERROR otherwise
    """
    if isinstance(error, NotAProjectError):
        print_not_a_project_error()
        return ExitCode.USER_ERROR
    if isinstance(error, TaskNotFoundError):
        print_task_not_found_error(error.task_id)
        return ExitCode.USER_ERROR
    if isinstance(error, MilestoneNotFoundError):
        print_error(
            f"Milestone not found: {error.milestone_id}",
            solution="backlog-board milestones  # to list milestones",
        )
        return ExitCode.USER_ERROR
    if isinstance(error, ConfigError):
        print_error(
            "Invalid backlog configuration",
            reason=error.message,
            solution="Check backlog/config.yml",
        )
        return ExitCode.USER_ERROR
    if isinstance(error, WriteNotSupportedError):
        print_error("Cannot modify the backlog", reason=error.message)
        return ExitCode.GENERAL_ERROR
    if isinstance(error, FetchError):
        print_error("Failed to read backlog files", reason=error.message)
        return ExitCode.GENERAL_ERROR
    print_error(error.message)
    return ExitCode.GENERAL_ERROR


__all__ = [
    "ExitCode",
    "exit_code_for",
    "print_error",
    "print_not_a_project_error",
    "print_task_not_found_error",
]
