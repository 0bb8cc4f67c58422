"""
Milestones: release groupings with authoritative member task lists.
"""

from backlog_board.core.milestones.index import MilestoneIndex
from backlog_board.core.milestones.models import Milestone, MilestoneState
from backlog_board.core.milestones.parser import parse_milestone_file

__all__ = ["Milestone", "MilestoneIndex", "MilestoneState", "parse_milestone_file"]
