"""
In-memory task index for one load cycle.

The index is built from a list of candidate file paths plus a fetch
capability. It decides project-ness synchronously from the path list, reads
the config, and then either parses every task file immediately (EAGER) or
records only the paths and parses on demand (LAZY).

A reload never patches an existing index: it builds a new one, so readers
holding the old index keep a stale but internally consistent view.
"""

import logging
from collections.abc import Awaitable, Callable, Iterable
from enum import Enum

from backlog_board.core.config.models import BoardConfig, status_key
from backlog_board.core.config.parser import parse_config
from backlog_board.core.errors import (
    FetchError,
    NotAProjectError,
    TaskNotFoundError,
    TaskParseError,
)
from backlog_board.core.files.fetcher import FileFetcher
from backlog_board.core.layout import (
    BACKLOG_DIR,
    COMPLETED_DIR,
    CONFIG_PATH,
    TASKS_DIR,
    is_task_file,
    normalize_path,
    task_id_from_path,
)
from backlog_board.core.tasks.models import Task, TaskSource
from backlog_board.core.tasks.parser import parse_task_file
from backlog_board.core.tasks.sorting import sort_tasks

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], Awaitable[str]]


class IndexMode(str, Enum):
    """When task files are parsed."""

    EAGER = "eager"
    LAZY = "lazy"


class SourceGroup(str, Enum):
    """Directory-based grouping keys."""

    TASKS = "tasks"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        return {"tasks": "Active", "completed": "Completed"}[self.value]


def source_group_for(task: Task) -> SourceGroup:
    if task.source == TaskSource.COMPLETED:
        return SourceGroup.COMPLETED
    return SourceGroup.TASKS


class TaskIndex:
    """
    Owns the canonical Task records of one load cycle.

    Example:
        >>> index = await TaskIndex.build(access.list_files(), access.fetch_file)
        >>> columns = index.by_status()
        >>> list(columns)
        ['To Do', 'In Progress', 'Done']
    """

    def __init__(
        self,
        config: BoardConfig,
        task_paths: list[str],
        fetcher: FileFetcher,
        mode: IndexMode = IndexMode.EAGER,
    ) -> None:
        """
        Initialize an index. Use TaskIndex.build() rather than calling this directly.

        Args:
            config: Parsed project configuration
            task_paths: Candidate task file paths in listing order
            fetcher: De-duplicating fetcher for file contents
            mode: EAGER or LAZY parsing
        """
        self.config = config
        self.mode = mode
        self.fetcher = fetcher
        self._paths = list(task_paths)
        self._tasks_by_path: dict[str, Task] = {}
        self._failed: dict[str, str] = {}
        self._id_to_path: dict[str, str] = {}

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @staticmethod
    def is_backlog_project(paths: Iterable[str]) -> bool:
        """Check, without I/O, whether the path list contains backlog/config.yml."""
        return any(normalize_path(p) == CONFIG_PATH for p in paths)

    @staticmethod
    def find_task_files(paths: Iterable[str], include_completed: bool = True) -> list[str]:
        """
        Select task files under backlog/tasks/ and backlog/completed/.

        Args:
            paths: All file paths in the project tree
            include_completed: Whether to include backlog/completed/

        Returns:
            Task file paths in listing order
        """
        task_files: list[str] = []
        for path in paths:
            normalized = normalize_path(path)
            if not is_task_file(normalized):
                continue
            if normalized.startswith(f"{TASKS_DIR}/"):
                task_files.append(normalized)
            elif include_completed and normalized.startswith(f"{COMPLETED_DIR}/"):
                task_files.append(normalized)
        return task_files

    @classmethod
    async def build(
        cls,
        paths: list[str],
        fetch: FetchFn | FileFetcher,
        *,
        mode: IndexMode = IndexMode.EAGER,
        strict_config: bool = False,
        include_completed: bool = True,
    ) -> "TaskIndex":
        """
        Build an index from a file list and a fetch capability.

        Args:
            paths: Every file path in the project tree
            fetch: Async content fetcher (or a FileFetcher wrapping one)
            mode: EAGER parses all task files now; LAZY defers parsing
            strict_config: Require project_name and statuses in config.yml
            include_completed: Index backlog/completed/ as well

        Returns:
            A new TaskIndex

        Raises:
            NotAProjectError: If backlog/config.yml is not in ``paths``
            ConfigError: If the config fails to parse
            FetchError: If the config cannot be fetched (propagated unchanged)
        """
        if not cls.is_backlog_project(paths):
            backlog_files = [p for p in paths if normalize_path(p).startswith(f"{BACKLOG_DIR}/")]
            raise NotAProjectError(
                f"Not a backlog project: {CONFIG_PATH} not found. "
                f"Found {len(backlog_files)} files in {BACKLOG_DIR}/ directory.",
                backlog_files=len(backlog_files),
            )

        fetcher = fetch if isinstance(fetch, FileFetcher) else FileFetcher(fetch)

        content = await fetcher.fetch(CONFIG_PATH)
        config = parse_config(content, strict=strict_config)
        logger.debug(
            f"Parsed config: project={config.project_name!r} statuses={config.statuses}"
        )

        task_paths = cls.find_task_files(paths, include_completed)
        index = cls(config, task_paths, fetcher, mode)
        logger.debug(f"Found {len(task_paths)} task files ({mode.value} mode)")

        if mode == IndexMode.EAGER:
            await index.ensure_loaded()
            logger.info(f"Indexed {len(index.tasks)}/{len(task_paths)} task files")

        return index

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def _register(self, path: str, content: str | BaseException) -> None:
        if path in self._tasks_by_path or path in self._failed:
            return

        if isinstance(content, BaseException):
            if not isinstance(content, Exception):
                raise content
            reason = str(content)
            if isinstance(content, FetchError):
                logger.warning(f"Failed to fetch task file {path}: {content}")
            else:
                logger.error(f"Unexpected error fetching task file {path}: {content}")
            self._failed[path] = reason
            return

        try:
            task = parse_task_file(content, path)
        except TaskParseError as e:
            logger.warning(f"Skipping malformed task file {path}: {e}")
            self._failed[path] = str(e)
            return

        key = task.id.lower()
        if key in self._id_to_path:
            logger.warning(
                f"Duplicate task id {task.id} in {path}; keeping {self._id_to_path[key]}"
            )
            self._failed[path] = f"duplicate id {task.id}"
            return

        self._id_to_path[key] = path
        self._tasks_by_path[path] = task

    async def load_paths(self, paths: Iterable[str]) -> list[Task]:
        """
        Parse the given task files (one batch fetch) if not already parsed.

        Files that fail to fetch or parse are logged and excluded.

        Returns:
            Tasks for the requested paths that parsed, in request order
        """
        requested = [normalize_path(p) for p in paths]
        pending = [
            p for p in dict.fromkeys(requested)
            if p not in self._tasks_by_path and p not in self._failed
        ]
        if pending:
            results = await self.fetcher.fetch_many(pending)
            for path, content in zip(pending, results):
                self._register(path, content)

        return [self._tasks_by_path[p] for p in requested if p in self._tasks_by_path]

    async def ensure_loaded(self) -> None:
        """Parse every remaining task file."""
        await self.load_paths(self._paths)

    async def load_tasks_by_ids(self, task_ids: Iterable[str]) -> list[Task]:
        """
        Resolve task ids to tasks, fetching only the files that are needed.

        Unparsed files are matched by the id in their filename and fetched in
        a single batch. Ids with no matching file are dropped silently.

        Returns:
            Tasks in the order of ``task_ids``
        """
        wanted = [task_id.lower() for task_id in task_ids]
        missing = {task_id for task_id in wanted if task_id not in self._id_to_path}
        to_fetch = [
            path
            for path in self._paths
            if path not in self._tasks_by_path
            and path not in self._failed
            and task_id_from_path(path) in missing
        ]
        if to_fetch:
            await self.load_paths(to_fetch)

        tasks: list[Task] = []
        for task_id in dict.fromkeys(wanted):
            path = self._id_to_path.get(task_id)
            if path is not None:
                tasks.append(self._tasks_by_path[path])
        return tasks

    @property
    def is_fully_loaded(self) -> bool:
        return all(p in self._tasks_by_path or p in self._failed for p in self._paths)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def task_paths(self) -> list[str]:
        return list(self._paths)

    @property
    def failed_paths(self) -> dict[str, str]:
        """Paths excluded from the index, with the reason."""
        return dict(self._failed)

    @property
    def tasks(self) -> list[Task]:
        """Parsed tasks in file listing order."""
        return [self._tasks_by_path[p] for p in self._paths if p in self._tasks_by_path]

    def get_task(self, task_id: str) -> Task | None:
        path = self._id_to_path.get(task_id.lower())
        return self._tasks_by_path.get(path) if path else None

    def group_paths(self, group: SourceGroup) -> list[str]:
        """Candidate paths of a source group, excluding known failures."""
        prefix = f"{COMPLETED_DIR}/" if group == SourceGroup.COMPLETED else f"{TASKS_DIR}/"
        return [p for p in self._paths if p.startswith(prefix) and p not in self._failed]

    def status_group_key(self, status: str, redirect_unknown: bool = False) -> str:
        """
        Column key for a status value.

        Configured statuses map to their configured spelling. Unknown statuses
        map to the default status when ``redirect_unknown`` is set, otherwise
        to a bucket keyed by the first-seen spelling of that status.
        """
        configured = self.config.canonical_status(status)
        if configured is not None:
            return configured
        if redirect_unknown:
            default = self.config.default_status
            return self.config.canonical_status(default) or default
        for task in self.tasks:
            if status_key(task.status) == status_key(status):
                return task.status.strip()
        return status.strip()

    def by_status(self, redirect_unknown: bool = False) -> dict[str, list[Task]]:
        """
        Group parsed tasks by canonical status.

        Configured statuses come first in configured order (always present,
        possibly empty); unknown-status buckets follow in first-seen order.
        Each bucket is sorted with the shared sort order.

        Args:
            redirect_unknown: Put unconfigured statuses in the default column

        Returns:
            Ordered mapping of column key to tasks
        """
        grouped: dict[str, list[Task]] = {status: [] for status in self.config.statuses}
        unknown_keys: dict[str, str] = {}

        for task in self.tasks:
            configured = self.config.canonical_status(task.status)
            if configured is not None:
                key = configured
            elif redirect_unknown:
                key = self.status_group_key(task.status, redirect_unknown=True)
                logger.debug(
                    f"Task {task.id} has unknown status {task.status!r}; placing in {key!r}"
                )
            else:
                key = unknown_keys.setdefault(status_key(task.status), task.status.strip())
            grouped.setdefault(key, []).append(task)

        return {status: sort_tasks(tasks) for status, tasks in grouped.items()}

    def by_source(self) -> dict[str, list[Task]]:
        """Group parsed tasks into the ``tasks`` and ``completed`` buckets, sorted."""
        grouped: dict[str, list[Task]] = {group.value: [] for group in SourceGroup}
        for task in self.tasks:
            grouped[source_group_for(task).value].append(task)
        return {group: sort_tasks(tasks) for group, tasks in grouped.items()}

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def replace_task(self, task: Task) -> Task:
        """
        Replace a task record wholesale.

        Args:
            task: Replacement with the same id as an indexed task

        Returns:
            The task that was replaced

        Raises:
            TaskNotFoundError: If no task with that id is indexed
        """
        path = self._id_to_path.get(task.id.lower())
        if path is None:
            raise TaskNotFoundError(task.id)
        previous = self._tasks_by_path[path]
        self._tasks_by_path[path] = task
        return previous
