"""
Configuration data models for backlog projects.

These models define the structure of backlog/config.yml with validation
and type safety via Pydantic.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_STATUSES: tuple[str, ...] = ("To Do", "In Progress", "Done")
DEFAULT_DATE_FORMAT = "yyyy-mm-dd hh:mm"


def status_key(status: str) -> str:
    """
    Identity key for a status name.

    Status names display with their configured casing but compare
    case-insensitively (and ignoring surrounding whitespace).

    Example:
        >>> status_key(" In Progress ")
        'in progress'
    """
    return status.strip().lower()


class BoardConfig(BaseModel):
    """
    Project configuration for a backlog.

    Invariant: ``statuses`` is never empty. When the source file has no
    usable statuses the built-in default (To Do, In Progress, Done) is used.

    Example:
        >>> config = BoardConfig(project_name="Demo", statuses=["todo", "TODO", "Done"])
        >>> config.statuses
        ['todo', 'Done']
    """

    project_name: str = Field(default="", description="Project display name")
    statuses: list[str] = Field(
        default_factory=lambda: list(DEFAULT_STATUSES),
        description="Ordered status columns",
    )
    default_status: str = Field(
        default=DEFAULT_STATUSES[0], description="Status given to new tasks"
    )
    labels: list[str] = Field(default_factory=list, description="Label vocabulary")
    milestones: list[str] = Field(default_factory=list, description="Milestone vocabulary")
    date_format: str = Field(default=DEFAULT_DATE_FORMAT, description="Display date format")

    # Preferences
    default_editor: str | None = Field(default=None, description="Preferred editor command")
    default_assignee: str | None = Field(default=None)
    default_reporter: str | None = Field(default=None)

    # Numeric flags
    max_column_width: int | None = Field(default=None)
    default_port: int | None = Field(default=None)
    zero_padded_ids: int | None = Field(default=None)
    active_branch_days: int | None = Field(default=None)

    # Boolean flags
    auto_open_browser: bool | None = Field(default=None)
    remote_operations: bool | None = Field(default=None)
    auto_commit: bool | None = Field(default=None)
    bypass_git_hooks: bool | None = Field(default=None)
    check_active_branches: bool | None = Field(default=None)

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("statuses", mode="after")
    @classmethod
    def dedupe_statuses(cls, v: list[str]) -> list[str]:
        """Drop blank and case-insensitive duplicate statuses; fall back to defaults."""
        seen: set[str] = set()
        result: list[str] = []
        for status in v:
            trimmed = status.strip()
            if not trimmed or status_key(trimmed) in seen:
                continue
            seen.add(status_key(trimmed))
            result.append(trimmed)
        return result or list(DEFAULT_STATUSES)

    def canonical_status(self, status: str) -> str | None:
        """
        Return the configured spelling of a status, or None if unconfigured.

        Args:
            status: Status text in any casing

        Returns:
            The configured status name matching case-insensitively
        """
        wanted = status_key(status)
        for configured in self.statuses:
            if status_key(configured) == wanted:
                return configured
        return None
