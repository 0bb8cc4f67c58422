"""
Exceptions for the backlog board core.

Exception Hierarchy:
    BoardError (base)
    ├── ConfigError (invalid or missing configuration; fatal to an index build)
    ├── NotAProjectError (backlog/config.yml absent from the file list)
    ├── TaskParseError (one task file is malformed; isolated per file)
    ├── MilestoneParseError (one milestone file is malformed)
    ├── FetchError (opaque failure from the file collaborator)
    │   └── NotFoundError (the requested path does not exist)
    ├── TaskNotFoundError
    ├── MilestoneNotFoundError
    └── WriteNotSupportedError (collaborator is not write-enabled)

Example:
    >>> from backlog_board.core.errors import TaskParseError
    >>> try:
    ...     raise TaskParseError("missing created_date", path="backlog/tasks/task-1.md")
    ... except TaskParseError as e:
    ...     print(f"{e.context['path']}: {e}")
"""


class BoardError(Exception):
    """
    Base exception for all backlog board errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        """
        Initialize a board error with message and context.

        Args:
            message: Human-readable error message
            **context: Additional context as keyword arguments
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class ConfigError(BoardError):
    """Raised when the project configuration is invalid or cannot be loaded."""

    pass


class NotAProjectError(BoardError):
    """
    Raised when the file list does not contain backlog/config.yml.

    Not necessarily fatal: callers use it to offer project initialization.
    """

    pass


class TaskParseError(BoardError):
    """Raised when a task file's frontmatter or body is malformed."""

    pass


class MilestoneParseError(BoardError):
    """Raised when a milestone file is malformed."""

    pass


class FetchError(BoardError):
    """Raised by file collaborators when content cannot be fetched."""

    pass


class NotFoundError(FetchError):
    """Raised when a requested path does not exist."""

    pass


class TaskNotFoundError(BoardError):
    """Raised when a task id is not present in the index."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}", task_id=task_id)
        self.task_id = task_id


class MilestoneNotFoundError(BoardError):
    """Raised when a milestone id is not present in the milestone index."""

    def __init__(self, milestone_id: str) -> None:
        super().__init__(f"Milestone not found: {milestone_id}", milestone_id=milestone_id)
        self.milestone_id = milestone_id


class WriteNotSupportedError(BoardError):
    """Raised when a write is attempted through a read-only collaborator."""

    pass
