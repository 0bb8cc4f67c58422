"""
Tests for file access collaborators and the de-duplicating fetcher.
"""

import asyncio
from pathlib import Path

import pytest

from backlog_board.core.errors import FetchError, NotFoundError
from backlog_board.core.files import (
    FileAccess,
    FileFetcher,
    InMemoryFileAccess,
    LocalFileAccess,
    WritableInMemoryFileAccess,
    is_write_enabled,
)


class TestInMemoryFileAccess:
    """Tests for the in-memory path-set adapter."""

    @pytest.mark.asyncio
    async def test_fetch_and_counts(self) -> None:
        """Test fetching content and counting requests."""
        access = InMemoryFileAccess({"backlog/config.yml": "project_name: Demo"})

        assert await access.fetch_file("backlog/config.yml") == "project_name: Demo"
        assert await access.fetch_file("/backlog//config.yml") == "project_name: Demo"
        assert access.fetch_counts["backlog/config.yml"] == 2

    @pytest.mark.asyncio
    async def test_missing_path(self) -> None:
        """Test that unknown paths raise NotFoundError."""
        access = InMemoryFileAccess({})
        with pytest.raises(NotFoundError):
            await access.fetch_file("backlog/config.yml")

    @pytest.mark.asyncio
    async def test_host_fetch_function(self) -> None:
        """Test content supplied by a host fetch function."""

        async def fetch(path: str) -> str:
            return f"content of {path}"

        access = InMemoryFileAccess(fetch=fetch, file_paths=["a/b.md"])
        assert access.list_files() == ["a/b.md"]
        assert await access.fetch_file("a/b.md") == "content of a/b.md"

    @pytest.mark.asyncio
    async def test_directories_derived_from_paths(self) -> None:
        """Test exists/is_directory/read_dir over the derived directory set."""
        access = InMemoryFileAccess(
            {"backlog/tasks/task-1.md": "", "backlog/config.yml": "", "README.md": ""}
        )

        assert await access.exists("backlog/tasks")
        assert await access.is_directory("backlog")
        assert not await access.is_directory("backlog/config.yml")
        assert await access.read_dir("backlog") == ["tasks", "config.yml"]
        assert await access.read_dir("") == ["backlog", "README.md"]

    def test_write_enabled_detection(self) -> None:
        """Test that only collaborators with all four write methods qualify."""
        assert isinstance(InMemoryFileAccess({}), FileAccess)
        assert not is_write_enabled(InMemoryFileAccess({}))
        assert is_write_enabled(WritableInMemoryFileAccess({}))

    @pytest.mark.asyncio
    async def test_writable_operations(self) -> None:
        """Test write, create_dir and delete on the writable variant."""
        access = WritableInMemoryFileAccess({})

        await access.create_dir("backlog")
        await access.write_file("backlog/config.yml", "x")
        assert access.list_files() == ["backlog/config.yml"]
        assert access.created_dirs == ["backlog"]

        await access.delete_file("backlog/config.yml")
        assert access.list_files() == []
        with pytest.raises(NotFoundError):
            await access.delete_file("backlog/config.yml")


class TestLocalFileAccess:
    """Tests for the local-disk adapter."""

    @pytest.mark.asyncio
    async def test_round_trip(self, tmp_path: Path) -> None:
        """Test writing, listing, reading and deleting."""
        access = LocalFileAccess(tmp_path)

        await access.write_file("backlog/tasks/task-1 - A.md", "hello")
        assert access.list_files() == ["backlog/tasks/task-1 - A.md"]
        assert await access.fetch_file("backlog/tasks/task-1 - A.md") == "hello"
        assert await access.exists("backlog/tasks")

        await access.delete_file("backlog/tasks/task-1 - A.md")
        assert not await access.exists("backlog/tasks/task-1 - A.md")

    def test_skips_vcs_directories(self, tmp_path: Path) -> None:
        """Test that .git and node_modules are not listed."""
        (tmp_path / ".git").mkdir()
        (tmp_path / ".git" / "config").write_text("")
        (tmp_path / "node_modules" / "pkg").mkdir(parents=True)
        (tmp_path / "node_modules" / "pkg" / "index.js").write_text("")
        (tmp_path / "README.md").write_text("")

        assert LocalFileAccess(tmp_path).list_files() == ["README.md"]

    def test_missing_root(self, tmp_path: Path) -> None:
        """Test that a missing root lists nothing."""
        assert LocalFileAccess(tmp_path / "missing").list_files() == []

    @pytest.mark.asyncio
    async def test_fetch_errors(self, tmp_path: Path) -> None:
        """Test NotFoundError for missing files and FetchError for unreadable ones."""
        access = LocalFileAccess(tmp_path)
        with pytest.raises(NotFoundError):
            await access.fetch_file("nope.md")

        (tmp_path / "binary.md").write_bytes(b"\xff\xfe\x00bad")
        with pytest.raises(FetchError):
            await access.fetch_file("binary.md")


class TestFileFetcher:
    """Tests for same-path fetch de-duplication."""

    @pytest.mark.asyncio
    async def test_concurrent_same_path_fetched_once(self) -> None:
        """Test that two concurrent fetches for one path hit the collaborator once."""
        calls: list[str] = []
        release = asyncio.Event()

        async def fetch(path: str) -> str:
            calls.append(path)
            await release.wait()
            return f"<{path}>"

        fetcher = FileFetcher(fetch)
        first = asyncio.ensure_future(fetcher.fetch("a.md"))
        second = asyncio.ensure_future(fetcher.fetch("a.md"))
        await asyncio.sleep(0)
        assert fetcher.in_flight == ["a.md"]

        release.set()
        assert await asyncio.gather(first, second) == ["<a.md>", "<a.md>"]
        assert calls == ["a.md"]
        assert fetcher.in_flight == []

    @pytest.mark.asyncio
    async def test_different_paths_not_coalesced(self) -> None:
        """Test that different paths are fetched independently."""
        calls: list[str] = []

        async def fetch(path: str) -> str:
            calls.append(path)
            await asyncio.sleep(0)
            return path

        fetcher = FileFetcher(fetch)
        assert await fetcher.fetch_many(["a.md", "b.md"]) == ["a.md", "b.md"]
        assert sorted(calls) == ["a.md", "b.md"]

    @pytest.mark.asyncio
    async def test_completed_fetch_not_cached(self) -> None:
        """Test that a later fetch after completion goes to the collaborator again."""
        access = InMemoryFileAccess({"a.md": "A"})
        fetcher = FileFetcher(access.fetch_file)

        await fetcher.fetch("a.md")
        await fetcher.fetch("a.md")
        assert access.fetch_counts["a.md"] == 2

    @pytest.mark.asyncio
    async def test_errors_shared_by_waiters(self) -> None:
        """Test that a failure reaches every waiter and fetch_many returns it."""
        access = InMemoryFileAccess({})
        fetcher = FileFetcher(access.fetch_file)

        results = await fetcher.fetch_many(["missing.md", "missing.md"])
        assert all(isinstance(r, NotFoundError) for r in results)
        assert access.fetch_counts["missing.md"] == 1
