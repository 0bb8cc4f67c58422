"""
Optimistic status mutations.

move_task() changes a task's status in every in-memory view it can reach and
returns at once; the persisted write runs afterwards as a fire-and-forget
asyncio task. Writes are last-write-wins with no per-task queue.

A failed write is not rolled back. It is logged and passed to the optional
on_error callback. When it was the latest write for that task, the task id
is kept in ``conflicts`` so callers can show that the view and the files
disagree until the next reload.
"""

import asyncio
import logging
from collections.abc import Callable, Iterable
from datetime import datetime

from backlog_board.core.errors import TaskNotFoundError, WriteNotSupportedError
from backlog_board.core.files.access import is_write_enabled
from backlog_board.core.milestones.index import MilestoneIndex
from backlog_board.core.tasks.index import TaskIndex
from backlog_board.core.tasks.models import Task
from backlog_board.core.tasks.pagination import PaginationEngine
from backlog_board.core.tasks.parser import update_task_status

logger = logging.getLogger(__name__)

UPDATED_DATE_FORMAT = "%Y-%m-%d %H:%M"

ErrorCallback = Callable[[str, Exception], None]


class OptimisticMutationCoordinator:
    """
    Applies status changes ahead of their persisted writes.

    Example:
        >>> coordinator = OptimisticMutationCoordinator(index, access, engines=[engine])
        >>> task = coordinator.move_task("task-3", "Done")
        >>> index.get_task("task-3").status
        'Done'
        >>> await coordinator.drain()
    """

    def __init__(
        self,
        index: TaskIndex,
        access: object,
        *,
        engines: Iterable[PaginationEngine] = (),
        milestones: MilestoneIndex | None = None,
        on_error: ErrorCallback | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """
        Args:
            index: Index holding the canonical task records
            access: File collaborator; must be write enabled to move tasks
            engines: Pagination engines whose loaded columns follow mutations
            milestones: Milestone index whose loaded members follow mutations
            on_error: Called with (task_id, exception) when a write fails
            clock: Source of the updated_date stamp
        """
        self.index = index
        self.access = access
        self.engines = list(engines)
        self.milestones = milestones
        self.on_error = on_error
        self.clock = clock
        self.pending: dict[str, str] = {}
        self.conflicts: set[str] = set()
        self._writes: set[asyncio.Task[None]] = set()
        self._sequence: dict[str, int] = {}

    @property
    def write_enabled(self) -> bool:
        return is_write_enabled(self.access)

    @property
    def in_flight(self) -> int:
        return len(self._writes)

    def register_engine(self, engine: PaginationEngine) -> None:
        self.engines.append(engine)

    def move_task(self, task_id: str, new_status: str) -> Task:
        """
        Move a task to a new status.

        The index, registered engines and milestone index are updated before
        this returns. Must be called with an asyncio event loop running.

        Returns:
            The replacement task

        Raises:
            WriteNotSupportedError: If the collaborator is not write enabled
            TaskNotFoundError: If the task is not in the index
        """
        if not self.write_enabled:
            raise WriteNotSupportedError(
                "Cannot move tasks: file access is read-only", task_id=task_id
            )
        old = self.index.get_task(task_id)
        if old is None:
            raise TaskNotFoundError(task_id)
        loop = asyncio.get_running_loop()

        updated_date = self.clock().strftime(UPDATED_DATE_FORMAT)
        new = old.with_status(new_status, updated_date)
        self.index.replace_task(new)
        for engine in self.engines:
            engine.apply_replacement(old, new)
        if self.milestones is not None:
            self.milestones.replace_task(old, new)

        self.pending[new.id] = new_status
        sequence = self._sequence.get(new.id, 0) + 1
        self._sequence[new.id] = sequence
        logger.info(f"Moved {new.id}: {old.status!r} -> {new_status!r}")

        write = loop.create_task(self._persist(new, new_status, updated_date, sequence))
        self._writes.add(write)
        write.add_done_callback(self._writes.discard)
        return new

    async def _persist(self, task: Task, status: str, updated_date: str, sequence: int) -> None:
        try:
            content = await self.access.fetch_file(task.file_path)  # type: ignore[attr-defined]
            updated = update_task_status(content, status, updated_date)
            await self.access.write_file(task.file_path, updated)  # type: ignore[attr-defined]
        except Exception as e:
            logger.error(f"Failed to write status {status!r} for {task.id}: {e}")
            if self._sequence.get(task.id) == sequence:
                self.conflicts.add(task.id)
                self.pending.pop(task.id, None)
            if self.on_error is not None:
                self.on_error(task.id, e)
            return

        logger.debug(f"Persisted status {status!r} for {task.id}")
        if self._sequence.get(task.id) == sequence:
            self.pending.pop(task.id, None)
            self.conflicts.discard(task.id)

    async def drain(self) -> None:
        """Wait for every scheduled write to settle."""
        while self._writes:
            await asyncio.gather(*list(self._writes), return_exceptions=True)
