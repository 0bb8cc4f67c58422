"""
Task data models.

A Task is parsed from one markdown file with YAML frontmatter. Tasks are
frozen: the only way to change one is to build a replacement with
``model_copy(update=...)``, which is what the mutation coordinator does.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TaskPriority(str, Enum):
    """Task priority levels. An absent priority sorts as MEDIUM."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank for sorting (higher sorts first)."""
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class TaskSource(str, Enum):
    """Originating directory category of a task file."""

    LOCAL = "local"
    COMPLETED = "completed"
    REMOTE = "remote"


class AcceptanceCriterion(BaseModel):
    """One ``- [x] #<n> <text>`` acceptance criteria item."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=1, description="1-based criterion number")
    text: str
    checked: bool = False


class Task(BaseModel):
    """
    A task parsed from backlog/tasks/ or backlog/completed/.

    Example:
        >>> task = Task(
        ...     id="task-1",
        ...     title="Write parser",
        ...     status="To Do",
        ...     created_date="2025-01-02 10:00",
        ...     file_path="backlog/tasks/task-1 - Write parser.md",
        ... )
        >>> task.effective_date
        '2025-01-02 10:00'
    """

    model_config = ConfigDict(frozen=True)

    # Required frontmatter fields
    id: str = Field(..., min_length=1, description="Task id, unique within an index")
    title: str = Field(..., min_length=1)
    status: str = Field(..., min_length=1, description="Free-text status")
    created_date: str = Field(..., min_length=1)

    # Optional frontmatter fields
    updated_date: str | None = None
    priority: TaskPriority | None = None
    ordinal: int | None = Field(default=None, description="Explicit manual rank")
    assignee: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    parent_task_id: str | None = None
    milestone: str | None = None

    # Body sections
    description: str | None = None
    acceptance_criteria_items: list[AcceptanceCriterion] = Field(default_factory=list)
    implementation_plan: str | None = None
    implementation_notes: str | None = None
    body: str = Field(default="", description="Raw body text after the frontmatter")

    # Location
    source: TaskSource = TaskSource.LOCAL
    file_path: str = ""

    @property
    def effective_date(self) -> str:
        """updated_date if present, else created_date."""
        return self.updated_date or self.created_date

    def with_status(self, status: str, updated_date: str | None = None) -> "Task":
        """Return a replacement task with a new status."""
        update: dict[str, object] = {"status": status}
        if updated_date is not None:
            update["updated_date"] = updated_date
        return self.model_copy(update=update)
