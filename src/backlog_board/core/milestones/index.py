"""
Milestone index with on-demand member resolution.

Listing parses milestone files only. Member tasks are fetched when a
milestone is first expanded, in a single batch through the TaskIndex, and
cached on the milestone state for the rest of the load cycle.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from backlog_board.core.errors import FetchError, MilestoneNotFoundError, MilestoneParseError
from backlog_board.core.layout import is_milestone_file, normalize_path
from backlog_board.core.milestones.models import Milestone, MilestoneState
from backlog_board.core.milestones.parser import parse_milestone_file
from backlog_board.core.tasks.index import TaskIndex
from backlog_board.core.tasks.models import Task

logger = logging.getLogger(__name__)


class MilestoneIndex:
    """
    Milestones of one load cycle and their expansion state.

    Example:
        >>> milestones = MilestoneIndex(index, access.list_files())
        >>> for milestone in await milestones.list():
        ...     print(milestone.title)
        >>> tasks = await milestones.expand("m-1")
    """

    def __init__(self, index: TaskIndex, paths: Iterable[str]) -> None:
        """
        Args:
            index: TaskIndex that resolves member task ids
            paths: Project file paths; only backlog/milestones/*.md are used
        """
        self.index = index
        self.paths = [normalize_path(p) for p in paths if is_milestone_file(p)]
        self._states: dict[str, MilestoneState] | None = None

    async def list(self) -> list[Milestone]:
        """
        Parse every milestone file (once per load cycle).

        Malformed or unreadable milestone files are logged and skipped.
        """
        if self._states is None:
            states: dict[str, MilestoneState] = {}
            results = await self.index.fetcher.fetch_many(self.paths)
            for path, content in zip(self.paths, results):
                if isinstance(content, FetchError):
                    logger.warning(f"Failed to fetch milestone file {path}: {content}")
                    continue
                if isinstance(content, Exception):
                    logger.error(f"Unexpected error fetching milestone file {path}: {content}")
                    continue
                if isinstance(content, BaseException):
                    raise content
                try:
                    milestone = parse_milestone_file(content, path)
                except MilestoneParseError as e:
                    logger.warning(f"Skipping malformed milestone file {path}: {e}")
                    continue
                if milestone.id in states:
                    logger.warning(f"Duplicate milestone id {milestone.id} in {path}")
                    continue
                states[milestone.id] = MilestoneState(milestone=milestone)
            self._states = states
            logger.debug(f"Listed {len(states)} milestones")

        return [state.milestone for state in self._states.values()]

    @property
    def states(self) -> list[MilestoneState]:
        return list((self._states or {}).values())

    def state(self, milestone_id: str) -> MilestoneState:
        """
        Raises:
            MilestoneNotFoundError: If the id is not a listed milestone
        """
        if self._states is None or milestone_id not in self._states:
            raise MilestoneNotFoundError(milestone_id)
        return self._states[milestone_id]

    async def expand(self, milestone_id: str) -> list[Task]:
        """
        Expand a milestone, loading its member tasks the first time.

        Member ids whose task file no longer exists are dropped.

        Returns:
            Resolved member tasks in membership order
        """
        if self._states is None:
            await self.list()
        state = self.state(milestone_id)
        state.is_expanded = True
        if state.loaded:
            return list(state.tasks)

        state.is_loading = True
        try:
            task_ids = state.milestone.tasks
            logger.debug(f"Loading {len(task_ids)} tasks for milestone {milestone_id}")
            state.tasks = await self.index.load_tasks_by_ids(task_ids)
            state.loaded = True
            missing = len(task_ids) - len(state.tasks)
            if missing:
                logger.debug(f"Milestone {milestone_id}: {missing} member(s) not found")
        finally:
            state.is_loading = False
        return list(state.tasks)

    def collapse(self, milestone_id: str) -> None:
        self.state(milestone_id).is_expanded = False

    async def toggle(self, milestone_id: str) -> bool:
        """
        Collapse an expanded milestone or expand a collapsed one.

        Returns:
            The new expansion state
        """
        if self._states is None:
            await self.list()
        if self.state(milestone_id).is_expanded:
            self.collapse(milestone_id)
            return False
        await self.expand(milestone_id)
        return True

    def replace_task(self, old: Task, new: Task) -> None:
        """Swap a replaced task into every milestone that has it loaded."""
        for state in self.states:
            for i, task in enumerate(state.tasks):
                if task.id == old.id:
                    state.tasks[i] = new
