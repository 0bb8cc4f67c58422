"""
Paginated, load-more reads over TaskIndex groups.

Every page is a window over a freshly sorted view of the whole group, so late
arriving tasks interleave by sort key. Load-more never takes an offset from
the caller: each column keeps a cursor of window positions consumed, and the
next page starts there.

When a group grows between two load_more calls, already loaded items keep
their place. A task that newly sorts ahead of the loaded window is not shown
until the column is reloaded from offset 0.

Example:
    >>> engine = PaginationEngine(index, page_size=10)
    >>> first = await engine.load_more("To Do")
    >>> second = await engine.load_more("To Do")
    >>> engine.column("To Do").has_more
    True
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel

from backlog_board.core.layout import task_id_from_path
from backlog_board.core.tasks.index import IndexMode, SourceGroup, TaskIndex, source_group_for
from backlog_board.core.tasks.models import Task
from backlog_board.core.tasks.sorting import compare_tasks, trailing_id_number

logger = logging.getLogger(__name__)


class GroupBy(str, Enum):
    """How an engine buckets tasks into columns."""

    STATUS = "status"
    SOURCE = "source"


class PaginatedResult(BaseModel):
    """One window of a group."""

    items: list[Task]
    total: int
    has_more: bool


@dataclass
class ColumnState:
    """
    Load-more bookkeeping for one group.

    Attributes:
        key: Group key (status name or source group)
        items: Loaded tasks, in load order
        total: Count of every task in the group, loaded or not
        cursor: Window positions consumed so far
        is_loading_more: Set while a load_more call is in flight
        loaded: Set once the first window has been read
    """

    key: str
    items: list[Task] = field(default_factory=list)
    total: int = 0
    cursor: int = 0
    is_loading_more: bool = False
    loaded: bool = False

    @property
    def has_more(self) -> bool:
        return self.cursor < self.total

    def position(self, task_id: str) -> int | None:
        for i, task in enumerate(self.items):
            if task.id == task_id:
                return i
        return None


def _lazy_path_order(path: str) -> tuple[tuple[int, ...], str]:
    return trailing_id_number(task_id_from_path(path) or ""), path


class PaginationEngine:
    """
    Serves bounded reads over the groups of one TaskIndex.

    Status groups need every task's status, so in lazy mode they force a full
    load of the index. Source groups in lazy mode page over file paths
    (newest path-derived id first) and parse only the files in the window.
    """

    def __init__(
        self,
        index: TaskIndex,
        group_by: GroupBy = GroupBy.STATUS,
        page_size: int = 20,
        page_sizes: dict[str, int] | None = None,
        redirect_unknown: bool = False,
    ) -> None:
        """
        Initialize an engine.

        Args:
            index: Index to read from
            group_by: STATUS or SOURCE grouping
            page_size: Default window size
            page_sizes: Per-group window size overrides
            redirect_unknown: Put unconfigured statuses in the default column
        """
        if page_size < 1:
            raise ValueError(f"page_size must be >= 1, got {page_size}")
        self.index = index
        self.group_by = group_by
        self.page_size = page_size
        self.page_sizes = dict(page_sizes or {})
        self.redirect_unknown = redirect_unknown
        self.columns: dict[str, ColumnState] = {}

    def page_size_for(self, group_key: str) -> int:
        return self.page_sizes.get(group_key, self.page_size)

    def column(self, group_key: str) -> ColumnState:
        """Return the column state for a group, creating an empty one if needed."""
        if group_key not in self.columns:
            self.columns[group_key] = ColumnState(key=group_key)
        return self.columns[group_key]

    def group_key_for(self, task: Task) -> str:
        if self.group_by == GroupBy.SOURCE:
            return source_group_for(task).value
        return self.index.status_group_key(task.status, self.redirect_unknown)

    async def group_keys(self) -> list[str]:
        """
        Keys of every group, in display order.

        For status grouping this loads the whole index first.
        """
        if self.group_by == GroupBy.SOURCE:
            return [group.value for group in SourceGroup]
        await self.index.ensure_loaded()
        return list(self.index.by_status(self.redirect_unknown))

    @property
    def _pages_by_path(self) -> bool:
        return self.group_by == GroupBy.SOURCE and self.index.mode == IndexMode.LAZY

    async def _sorted_group(self, group_key: str) -> list[Task]:
        if self.group_by == GroupBy.SOURCE:
            return self.index.by_source().get(group_key, [])
        await self.index.ensure_loaded()
        return self.index.by_status(self.redirect_unknown).get(group_key, [])

    async def _window(self, group_key: str, offset: int, limit: int) -> tuple[PaginatedResult, int]:
        """Return a page plus the number of window positions it consumed."""
        offset = max(0, offset)

        if self._pages_by_path:
            try:
                group = SourceGroup(group_key)
            except ValueError:
                return PaginatedResult(items=[], total=0, has_more=False), 0
            paths = sorted(self.index.group_paths(group), key=_lazy_path_order, reverse=True)
            items = await self.index.load_paths(paths[offset : offset + limit])
            # Files that failed in this window drop out of the group
            total = len(self.index.group_paths(group))
            consumed = len(items)
            return (
                PaginatedResult(items=items, total=total, has_more=offset + consumed < total),
                consumed,
            )

        tasks = await self._sorted_group(group_key)
        window = tasks[offset : offset + limit]
        total = len(tasks)
        return (
            PaginatedResult(items=window, total=total, has_more=offset + len(window) < total),
            len(window),
        )

    async def get_page(
        self, group_key: str, offset: int = 0, limit: int | None = None
    ) -> PaginatedResult:
        """
        Read one window of a group without touching column state.

        Args:
            group_key: Status name or source group
            offset: Position of the first item in the sorted group
            limit: Window size (defaults to the group's page size)

        Returns:
            PaginatedResult with the window, the group total and has_more
        """
        size = limit if limit is not None else self.page_size_for(group_key)
        if size < 1:
            raise ValueError(f"limit must be >= 1, got {size}")
        result, _ = await self._window(group_key, offset, size)
        return result

    async def load_more(self, group_key: str) -> PaginatedResult:
        """
        Append the next page to a column.

        The offset comes from the column cursor. A call made while another
        load_more on the same group is in flight returns an empty result.

        Returns:
            PaginatedResult whose items are only the newly appended tasks
        """
        column = self.column(group_key)
        if column.is_loading_more:
            logger.debug(f"load_more already in progress for {group_key!r}")
            return PaginatedResult(items=[], total=column.total, has_more=column.has_more)

        column.is_loading_more = True
        try:
            result, consumed = await self._window(
                group_key, column.cursor, self.page_size_for(group_key)
            )
            loaded_ids = {task.id for task in column.items}
            fresh = [task for task in result.items if task.id not in loaded_ids]
            if len(fresh) < len(result.items):
                logger.debug(
                    f"Filtered {len(result.items) - len(fresh)} duplicate(s) in {group_key!r}"
                )
            column.items.extend(fresh)
            column.total = result.total
            column.cursor = min(column.cursor + consumed, column.total)
            column.loaded = True
            return PaginatedResult(items=fresh, total=column.total, has_more=column.has_more)
        finally:
            column.is_loading_more = False

    async def reload(self, group_key: str) -> PaginatedResult:
        """Discard a column's loaded items and load its first page again."""
        self.columns[group_key] = ColumnState(key=group_key)
        return await self.load_more(group_key)

    async def load_initial(self) -> dict[str, ColumnState]:
        """Load the first page of every group."""
        for group_key in await self.group_keys():
            await self.reload(group_key)
        return dict(self.columns)

    def apply_replacement(self, old: Task, new: Task) -> None:
        """
        Reflect a replaced task in the loaded columns.

        A task that stays in its group is replaced in place. A task that
        changes group is removed from its old column and inserted into the
        new one at its sorted position, unless it sorts past the end of a
        column that still has unloaded items (load_more will reach it). A
        column that was never loaded is left alone.
        """
        old_key = self.group_key_for(old)
        new_key = self.group_key_for(new)

        if old_key == new_key:
            column = self.columns.get(old_key)
            if column is not None:
                position = column.position(old.id)
                if position is not None:
                    column.items[position] = new
            return

        source = self.columns.get(old_key)
        if source is not None:
            position = source.position(old.id)
            if position is not None:
                source.items.pop(position)
                source.cursor = max(0, source.cursor - 1)
            source.total = max(0, source.total - 1)

        target = self.columns.get(new_key)
        if target is None or not target.loaded:
            # never paged in; its first load_more reads the re-sorted group
            return
        had_more = target.has_more
        target.total += 1
        insert_at = next(
            (i for i, task in enumerate(target.items) if compare_tasks(new, task) < 0),
            len(target.items),
        )
        if had_more and insert_at == len(target.items):
            return
        target.items.insert(insert_at, new)
        target.cursor += 1
