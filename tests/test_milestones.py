"""
Tests for milestone parsing and on-demand member expansion.
"""

import pytest

from backlog_board.core.errors import MilestoneNotFoundError, MilestoneParseError
from backlog_board.core.files import InMemoryFileAccess
from backlog_board.core.milestones import MilestoneIndex, parse_milestone_file
from backlog_board.core.tasks.index import IndexMode, TaskIndex

BETA = """---
id: m-1
title: Public beta
tasks: [task-3, task-1, task-99]
---

## Description

First release open to everyone.
"""


async def build_milestones(files: dict[str, str]) -> tuple[MilestoneIndex, InMemoryFileAccess]:
    access = InMemoryFileAccess(files)
    index = await TaskIndex.build(access.list_files(), access.fetch_file, mode=IndexMode.LAZY)
    return MilestoneIndex(index, access.list_files()), access


class TestParseMilestoneFile:
    """Tests for parse_milestone_file."""

    def test_full_file(self) -> None:
        """Test id, title, description and members."""
        milestone = parse_milestone_file(BETA, "backlog/milestones/m-1 - Public beta.md")

        assert milestone.id == "m-1"
        assert milestone.title == "Public beta"
        assert milestone.description == "First release open to everyone."
        assert milestone.tasks == ["task-3", "task-1", "task-99"]

    def test_title_defaults_to_id(self) -> None:
        """Test a missing title and a body without sections."""
        milestone = parse_milestone_file("---\nid: m-2\n---\nPlain body\n", "m.md")
        assert milestone.title == "m-2"
        assert milestone.description == "Plain body"
        assert milestone.tasks == []

    def test_string_task_list(self) -> None:
        """Test a bracketed string of ids with quotes and duplicates."""
        text = "---\nid: m-3\ntasks: \"['task-1', task-2, task-1]\"\n---\n"
        assert parse_milestone_file(text, "m.md").tasks == ["task-1", "task-2"]

    def test_missing_id(self) -> None:
        """Test that an id is required."""
        with pytest.raises(MilestoneParseError, match="missing id"):
            parse_milestone_file("---\ntitle: No id\n---\n", "backlog/milestones/x.md")

    def test_missing_frontmatter(self) -> None:
        """Test that frontmatter errors surface as MilestoneParseError."""
        with pytest.raises(MilestoneParseError, match="milestone file"):
            parse_milestone_file("just text", "backlog/milestones/x.md")


class TestMilestoneIndex:
    """Tests for listing and expansion."""

    @pytest.mark.asyncio
    async def test_list_skips_malformed(self, project_files) -> None:
        """Test that bad milestone files are skipped and tasks are not fetched."""
        files = project_files(
            [{"task_id": "task-1"}],
            extra_files={
                "backlog/milestones/m-1 - Beta.md": BETA,
                "backlog/milestones/m-2 - Broken.md": "no frontmatter",
                "backlog/milestones/readme.txt": "ignored",
            },
        )
        milestones, access = await build_milestones(files)

        listed = await milestones.list()

        assert [m.id for m in listed] == ["m-1"]
        assert access.fetch_counts["backlog/tasks/task-1 - Task.md"] == 0
        assert access.fetch_counts["backlog/milestones/readme.txt"] == 0

    @pytest.mark.asyncio
    async def test_expand_fetches_members_once(self, project_files) -> None:
        """Test single-batch member resolution cached for the load cycle."""
        files = project_files(
            [{"task_id": f"task-{n}"} for n in range(1, 6)],
            extra_files={"backlog/milestones/m-1 - Beta.md": BETA},
        )
        milestones, access = await build_milestones(files)

        tasks = await milestones.expand("m-1")
        again = await milestones.expand("m-1")

        assert [t.id for t in tasks] == ["task-3", "task-1"]
        assert [t.id for t in again] == ["task-3", "task-1"]
        assert access.fetch_counts["backlog/tasks/task-3 - Task.md"] == 1
        assert access.fetch_counts["backlog/tasks/task-2 - Task.md"] == 0

        state = milestones.state("m-1")
        assert state.is_expanded
        assert state.loaded
        assert not state.is_loading

    @pytest.mark.asyncio
    async def test_collapse_and_toggle(self, project_files) -> None:
        """Test that collapse keeps loaded members and toggle flips state."""
        files = project_files(
            [{"task_id": "task-1"}], extra_files={"backlog/milestones/m-1 - Beta.md": BETA}
        )
        milestones, access = await build_milestones(files)

        assert await milestones.toggle("m-1") is True
        assert await milestones.toggle("m-1") is False
        assert milestones.state("m-1").loaded
        assert await milestones.toggle("m-1") is True
        assert access.fetch_counts["backlog/tasks/task-1 - Task.md"] == 1

    @pytest.mark.asyncio
    async def test_unknown_milestone(self, project_files) -> None:
        """Test that expanding an unknown id raises."""
        milestones, _ = await build_milestones(project_files([]))
        with pytest.raises(MilestoneNotFoundError):
            await milestones.expand("m-404")

    @pytest.mark.asyncio
    async def test_replace_task_updates_loaded_members(self, project_files) -> None:
        """Test that a replaced task shows in expanded milestones."""
        files = project_files(
            [{"task_id": "task-1"}], extra_files={"backlog/milestones/m-1 - Beta.md": BETA}
        )
        milestones, _ = await build_milestones(files)
        old = (await milestones.expand("m-1"))[0]

        milestones.replace_task(old, old.with_status("Done"))

        assert milestones.state("m-1").tasks[0].status == "Done"
