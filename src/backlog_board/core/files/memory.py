"""
In-memory file access built from a path set.

Wraps a host's file list plus a fetch function (or a dict of contents) in
the FileAccess interface, deriving the directory set from the file paths.
"""

from collections import Counter
from collections.abc import Awaitable, Callable, Mapping

from backlog_board.core.errors import NotFoundError
from backlog_board.core.layout import normalize_path

FetchFn = Callable[[str], Awaitable[str]]


class InMemoryFileAccess:
    """
    Read-only FileAccess over an in-memory path set.

    Content either comes from ``files`` or from a host-supplied ``fetch``
    function. ``fetch_counts`` records how often each path was fetched.

    Example:
        >>> access = InMemoryFileAccess({"backlog/config.yml": "project_name: Demo"})
        >>> access.list_files()
        ['backlog/config.yml']
    """

    def __init__(
        self,
        files: Mapping[str, str] | None = None,
        fetch: FetchFn | None = None,
        file_paths: list[str] | None = None,
    ) -> None:
        self._contents: dict[str, str] = {
            normalize_path(path): content for path, content in (files or {}).items()
        }
        self._fetch = fetch
        paths = file_paths if file_paths is not None else list(self._contents)
        self._paths: list[str] = [normalize_path(p) for p in paths]
        self.fetch_counts: Counter[str] = Counter()

    def _directories(self) -> set[str]:
        directories = {""}
        for file_path in self._paths:
            parts = file_path.split("/")
            for i in range(1, len(parts)):
                directories.add("/".join(parts[:i]))
        return directories

    def list_files(self) -> list[str]:
        return list(self._paths)

    async def fetch_file(self, path: str) -> str:
        normalized = normalize_path(path)
        self.fetch_counts[normalized] += 1
        if normalized not in self._paths:
            raise NotFoundError(f"File not found: {path}", path=path)
        if self._fetch is not None:
            return await self._fetch(normalized)
        return self._contents[normalized]

    async def exists(self, path: str) -> bool:
        normalized = normalize_path(path)
        return normalized in self._paths or normalized in self._directories()

    async def is_directory(self, path: str) -> bool:
        normalized = normalize_path(path)
        return normalized in self._directories() and normalized not in self._paths

    async def read_dir(self, path: str) -> list[str]:
        """List the immediate children of a directory."""
        normalized = normalize_path(path)
        prefix = f"{normalized}/" if normalized else ""
        entries: list[str] = []
        for file_path in self._paths:
            if not file_path.startswith(prefix):
                continue
            entry = file_path[len(prefix) :].split("/", 1)[0]
            if entry and entry not in entries:
                entries.append(entry)
        return entries


class WritableInMemoryFileAccess(InMemoryFileAccess):
    """InMemoryFileAccess that is write enabled."""

    def __init__(self, files: Mapping[str, str] | None = None) -> None:
        super().__init__(files)
        self.created_dirs: list[str] = []

    @property
    def contents(self) -> dict[str, str]:
        return dict(self._contents)

    async def write_file(self, path: str, content: str) -> None:
        normalized = normalize_path(path)
        self._contents[normalized] = content
        if normalized not in self._paths:
            self._paths.append(normalized)

    async def create_dir(self, path: str) -> None:
        self.created_dirs.append(normalize_path(path))

    async def delete_file(self, path: str) -> None:
        normalized = normalize_path(path)
        if normalized not in self._paths:
            raise NotFoundError(f"File not found: {path}", path=path)
        self._paths.remove(normalized)
        self._contents.pop(normalized, None)
