"""
Milestone models.
"""

from dataclasses import dataclass, field

from pydantic import BaseModel, ConfigDict, Field

from backlog_board.core.tasks.models import Task


class Milestone(BaseModel):
    """
    A release parsed from backlog/milestones/.

    ``tasks`` is the authoritative membership list; tasks do not need to
    name their milestone.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: str = ""
    tasks: list[str] = Field(default_factory=list, description="Member task ids, in order")
    file_path: str = ""


@dataclass
class MilestoneState:
    """Expansion state and resolved member tasks of one milestone."""

    milestone: Milestone
    tasks: list[Task] = field(default_factory=list)
    is_expanded: bool = False
    is_loading: bool = False
    loaded: bool = False
