"""
Local disk file access.

Serves a project directory through the FileAccess interface. Blocking reads
and writes run in a worker thread so callers stay cooperative.
"""

import asyncio
from pathlib import Path

from backlog_board.core.errors import FetchError, NotFoundError
from backlog_board.core.layout import normalize_path

SKIP_DIRS = frozenset({".git", "node_modules", ".venv", "__pycache__"})


class LocalFileAccess:
    """
    Write-enabled FileAccess rooted at a project directory.

    Example:
        >>> access = LocalFileAccess(Path("."))
        >>> "backlog/config.yml" in access.list_files()
        True
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _resolve(self, path: str) -> Path:
        return self.root / normalize_path(path)

    def list_files(self) -> list[str]:
        if not self.root.exists():
            return []
        paths: list[str] = []
        for file_path in sorted(self.root.rglob("*")):
            relative = file_path.relative_to(self.root)
            if any(part in SKIP_DIRS for part in relative.parts):
                continue
            if file_path.is_file():
                paths.append(relative.as_posix())
        return paths

    async def fetch_file(self, path: str) -> str:
        target = self._resolve(path)
        if not target.is_file():
            raise NotFoundError(f"File not found: {path}", path=path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FetchError(f"Failed to read {path}: {e}", path=path) from e

    async def write_file(self, path: str, content: str) -> None:
        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(target.write_text, content, encoding="utf-8")

    async def create_dir(self, path: str) -> None:
        self._resolve(path).mkdir(parents=True, exist_ok=True)

    async def delete_file(self, path: str) -> None:
        target = self._resolve(path)
        if not target.exists():
            raise NotFoundError(f"File not found: {path}", path=path)
        target.unlink()

    async def exists(self, path: str) -> bool:
        return self._resolve(path).exists()
