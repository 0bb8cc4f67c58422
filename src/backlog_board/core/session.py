"""
Board session: everything derived from one load of a backlog.

A session owns the task index, the status and source pagination engines, the
milestone index and the mutation coordinator for a single load cycle.
refresh() builds all of them again from scratch; nothing is patched in place,
so code still holding objects from the previous load sees a stale but
consistent snapshot.

Usage:
    >>> session = BoardSession(LocalFileAccess(project_dir), load_settings())
    >>> await session.load()
    >>> if session.is_project:
    ...     columns = await session.status_engine.load_initial()
"""

import logging
from datetime import datetime

from backlog_board.core.config.models import BoardConfig
from backlog_board.core.config.settings import BoardSettings
from backlog_board.core.errors import ConfigError, NotAProjectError
from backlog_board.core.export.markdown import render_board
from backlog_board.core.milestones.index import MilestoneIndex
from backlog_board.core.mutations.coordinator import ErrorCallback, OptimisticMutationCoordinator
from backlog_board.core.tasks.index import IndexMode, SourceGroup, TaskIndex
from backlog_board.core.tasks.models import Task
from backlog_board.core.tasks.pagination import GroupBy, PaginationEngine
from backlog_board.core.tasks.search import filter_tasks
from backlog_board.core.tasks.sorting import sort_tasks

logger = logging.getLogger(__name__)


class BoardSession:
    """
    Per-load-cycle owner of the board's indexes and engines.

    After load():
        - ``is_project`` is False when backlog/config.yml is absent
        - ``error`` holds the message when the config could not be parsed
        - otherwise ``index`` and the engines are ready
    """

    def __init__(
        self,
        access: object,
        settings: BoardSettings | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        """
        Args:
            access: File collaborator (list_files/fetch_file, optionally writes)
            settings: Runtime settings (defaults to BoardSettings())
            on_error: Passed to the mutation coordinator for failed writes
        """
        self.access = access
        self.settings = settings or BoardSettings()
        self.on_error = on_error
        self.generation = 0
        self._reset()

    def _reset(self) -> None:
        self.index: TaskIndex | None = None
        self.status_engine: PaginationEngine | None = None
        self.source_engine: PaginationEngine | None = None
        self.milestones: MilestoneIndex | None = None
        self.coordinator: OptimisticMutationCoordinator | None = None
        self.is_project: bool | None = None
        self.error: str | None = None

    async def load(self) -> "BoardSession":
        """
        Build a fresh index and engines from the collaborator.

        A missing config or a config parse failure is recorded on the session
        rather than raised. Fetch errors for the config propagate.

        Returns:
            self, for chaining
        """
        self._reset()
        self.generation += 1
        paths = self.access.list_files()  # type: ignore[attr-defined]
        mode = IndexMode.LAZY if self.settings.lazy else IndexMode.EAGER

        try:
            index = await TaskIndex.build(
                paths,
                self.access.fetch_file,  # type: ignore[attr-defined]
                mode=mode,
                strict_config=self.settings.strict_config,
                include_completed=self.settings.include_completed,
            )
        except NotAProjectError as e:
            logger.info(str(e))
            self.is_project = False
            return self
        except ConfigError as e:
            logger.error(f"Failed to load backlog config: {e}")
            self.is_project = True
            self.error = e.message
            return self

        self.is_project = True
        self.index = index
        self.status_engine = PaginationEngine(
            index,
            GroupBy.STATUS,
            page_size=self.settings.page_size,
            redirect_unknown=self.settings.redirect_unknown_statuses,
        )
        self.source_engine = PaginationEngine(
            index,
            GroupBy.SOURCE,
            page_size=self.settings.page_size,
            page_sizes={SourceGroup.COMPLETED.value: self.settings.completed_page_size},
        )
        self.milestones = MilestoneIndex(index, paths)
        self.coordinator = OptimisticMutationCoordinator(
            index,
            self.access,
            engines=[self.status_engine, self.source_engine],
            milestones=self.milestones,
            on_error=self.on_error,
        )
        logger.debug(f"Session generation {self.generation} loaded ({mode.value})")
        return self

    async def refresh(self) -> "BoardSession":
        """Discard everything and load again."""
        return await self.load()

    def require_index(self) -> TaskIndex:
        """
        Return the loaded index.

        Raises:
            NotAProjectError: If the directory is not a backlog project
            ConfigError: If the config failed to load
        """
        if self.is_project is False:
            raise NotAProjectError("Not a backlog project: backlog/config.yml not found")
        if self.error is not None:
            raise ConfigError(self.error)
        if self.index is None:
            raise ConfigError("Board session has not been loaded")
        return self.index

    @property
    def config(self) -> BoardConfig:
        return self.require_index().config

    async def all_tasks(self) -> list[Task]:
        """Every task, fully loaded and sorted."""
        index = self.require_index()
        await index.ensure_loaded()
        return sort_tasks(index.tasks)

    async def search(self, query: str) -> list[Task]:
        return filter_tasks(await self.all_tasks(), query)

    def move_task(self, task_id: str, new_status: str) -> Task:
        """Optimistically move a task; see OptimisticMutationCoordinator.move_task."""
        self.require_index()
        assert self.coordinator is not None
        return self.coordinator.move_task(task_id, new_status)

    async def export_markdown(self, generated_at: datetime | None = None) -> str:
        """Load every task and render the board as markdown."""
        index = self.require_index()
        await index.ensure_loaded()
        return render_board(
            index.tasks, index.config.statuses, index.config.project_name, generated_at
        )
