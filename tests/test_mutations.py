"""
Tests for optimistic status moves.
"""

import asyncio
from datetime import datetime

import pytest

from backlog_board.core.errors import FetchError, TaskNotFoundError, WriteNotSupportedError
from backlog_board.core.files import InMemoryFileAccess, WritableInMemoryFileAccess
from backlog_board.core.milestones import MilestoneIndex
from backlog_board.core.mutations import OptimisticMutationCoordinator
from backlog_board.core.tasks.index import TaskIndex
from backlog_board.core.tasks.pagination import PaginationEngine
from backlog_board.core.tasks.parser import parse_task_file

FIXED_NOW = datetime(2025, 7, 1, 12, 30)


class GatedAccess(WritableInMemoryFileAccess):
    """Writable access whose writes wait for a gate and can be made to fail."""

    def __init__(self, files: dict[str, str]) -> None:
        super().__init__(files)
        self.gate = asyncio.Event()
        self.fail_writes = False
        self.writes: list[str] = []

    async def write_file(self, path: str, content: str) -> None:
        await self.gate.wait()
        if self.fail_writes:
            raise FetchError("disk full", path=path)
        self.writes.append(path)
        await super().write_file(path, content)


async def build_board(files: dict[str, str], access_cls=GatedAccess):
    access = access_cls(files)
    index = await TaskIndex.build(access.list_files(), access.fetch_file)
    engine = PaginationEngine(index)
    await engine.load_initial()
    milestones = MilestoneIndex(index, access.list_files())
    coordinator = OptimisticMutationCoordinator(
        index, access, engines=[engine], milestones=milestones, clock=lambda: FIXED_NOW
    )
    return access, index, engine, milestones, coordinator


class TestMoveTask:
    """Tests for the synchronous part of a move."""

    @pytest.mark.asyncio
    async def test_visible_before_write_settles(self, project_files) -> None:
        """Test that every view changes before the write completes."""
        access, index, engine, _, coordinator = await build_board(
            project_files([{"task_id": "task-1"}, {"task_id": "task-2"}])
        )

        moved = coordinator.move_task("task-1", "Done")

        assert moved.status == "Done"
        assert moved.updated_date == "2025-07-01 12:30"
        assert index.get_task("task-1").status == "Done"  # type: ignore[union-attr]
        assert [t.id for t in engine.column("Done").items] == ["task-1"]
        assert [t.id for t in engine.column("To Do").items] == ["task-2"]
        assert coordinator.pending == {"task-1": "Done"}
        assert access.writes == []

        access.gate.set()
        await coordinator.drain()

        assert coordinator.pending == {}
        assert coordinator.in_flight == 0
        persisted = parse_task_file(
            access.contents["backlog/tasks/task-1 - Task.md"], "backlog/tasks/task-1 - Task.md"
        )
        assert persisted.status == "Done"
        assert persisted.updated_date == "2025-07-01 12:30"

    @pytest.mark.asyncio
    async def test_milestone_members_follow(self, project_files) -> None:
        """Test that expanded milestone members see the move."""
        files = project_files(
            [{"task_id": "task-1"}],
            extra_files={
                "backlog/milestones/m-1 - Beta.md": "---\nid: m-1\ntasks: [task-1]\n---\n",
            },
        )
        access, _, _, milestones, coordinator = await build_board(files)
        await milestones.expand("m-1")

        coordinator.move_task("task-1", "In Progress")

        assert milestones.state("m-1").tasks[0].status == "In Progress"
        access.gate.set()
        await coordinator.drain()

    @pytest.mark.asyncio
    async def test_read_only_access(self, project_files) -> None:
        """Test that a read-only collaborator cannot move tasks."""
        _, index, _, _, coordinator = await build_board(
            project_files([{"task_id": "task-1"}]), access_cls=InMemoryFileAccess
        )

        assert not coordinator.write_enabled
        with pytest.raises(WriteNotSupportedError):
            coordinator.move_task("task-1", "Done")
        assert index.get_task("task-1").status == "To Do"  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_unknown_task(self, project_files) -> None:
        """Test that moving a missing task raises."""
        _, _, _, _, coordinator = await build_board(project_files([]))
        with pytest.raises(TaskNotFoundError):
            coordinator.move_task("task-404", "Done")

    def test_requires_running_loop(self, make_task) -> None:
        """Test that move_task outside an event loop raises before changing anything."""
        task = make_task("task-1")

        class StubIndex:
            def get_task(self, task_id: str):
                return task

            def replace_task(self, new):
                raise AssertionError("index must not change")

        coordinator = OptimisticMutationCoordinator(
            StubIndex(), WritableInMemoryFileAccess({})  # type: ignore[arg-type]
        )
        with pytest.raises(RuntimeError):
            coordinator.move_task("task-1", "Done")


class TestWriteFailures:
    """Tests for failed and overlapping writes."""

    @pytest.mark.asyncio
    async def test_failure_is_reported_not_rolled_back(self, project_files) -> None:
        """Test conflicts, on_error and an unchanged optimistic view."""
        files = project_files([{"task_id": "task-1"}])
        access, index, _, _, coordinator = await build_board(files)
        errors: list[tuple[str, Exception]] = []
        coordinator.on_error = lambda task_id, e: errors.append((task_id, e))
        access.fail_writes = True

        coordinator.move_task("task-1", "Done")
        access.gate.set()
        await coordinator.drain()

        assert [task_id for task_id, _ in errors] == ["task-1"]
        assert isinstance(errors[0][1], FetchError)
        assert coordinator.conflicts == {"task-1"}
        assert coordinator.pending == {}
        assert index.get_task("task-1").status == "Done"  # type: ignore[union-attr]

    @pytest.mark.asyncio
    async def test_last_write_wins(self, project_files) -> None:
        """Test that the latest move determines pending state and file content."""
        files = project_files([{"task_id": "task-1"}])
        access, index, engine, _, coordinator = await build_board(files)

        coordinator.move_task("task-1", "In Progress")
        coordinator.move_task("task-1", "Done")

        assert coordinator.pending == {"task-1": "Done"}
        assert coordinator.in_flight == 2
        assert [t.id for t in engine.column("In Progress").items] == []
        assert [t.id for t in engine.column("Done").items] == ["task-1"]

        access.gate.set()
        await coordinator.drain()

        content = access.contents["backlog/tasks/task-1 - Task.md"]
        assert parse_task_file(content, "backlog/tasks/task-1 - Task.md").status == "Done"
        assert coordinator.pending == {}
        assert coordinator.conflicts == set()

    @pytest.mark.asyncio
    async def test_stale_failure_after_newer_success(self, project_files) -> None:
        """Test that an older write failing after a newer one saved leaves no conflict."""

        class StaleFailAccess(WritableInMemoryFileAccess):
            def __init__(self, files: dict[str, str]) -> None:
                super().__init__(files)
                self.release_stale = asyncio.Event()

            async def write_file(self, path: str, content: str) -> None:
                if "In Progress" in content:
                    await self.release_stale.wait()
                    raise FetchError("disk full", path=path)
                await super().write_file(path, content)

        files = project_files([{"task_id": "task-1"}])
        access, index, _, _, coordinator = await build_board(files, access_cls=StaleFailAccess)
        errors: list[str] = []
        coordinator.on_error = lambda task_id, e: errors.append(task_id)

        coordinator.move_task("task-1", "In Progress")
        coordinator.move_task("task-1", "Done")
        while coordinator.pending:
            await asyncio.sleep(0)

        access.release_stale.set()
        await coordinator.drain()

        assert errors == ["task-1"]
        assert coordinator.conflicts == set()
        assert index.get_task("task-1").status == "Done"  # type: ignore[union-attr]
        content = access.contents["backlog/tasks/task-1 - Task.md"]
        assert parse_task_file(content, "backlog/tasks/task-1 - Task.md").status == "Done"
