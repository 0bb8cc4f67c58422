"""
File access collaborator protocols.

The board core consumes these capabilities; it does not implement a file
system. A collaborator is *write enabled* only when it provides all of
write_file, create_dir, delete_file and exists.
"""

from typing import Protocol, runtime_checkable

WRITE_METHODS = ("write_file", "create_dir", "delete_file", "exists")


@runtime_checkable
class FileAccess(Protocol):
    """Read-only access to a project tree."""

    def list_files(self) -> list[str]:
        """
        Enumerate every file path in the project tree.

        Returns:
            Repository-relative, "/"-separated paths
        """
        ...

    async def fetch_file(self, path: str) -> str:
        """
        Fetch the full text content of a file.

        Raises:
            NotFoundError: If the path does not exist
            FetchError: For any other failure
        """
        ...


@runtime_checkable
class WritableFileAccess(FileAccess, Protocol):
    """File access that can also create, write and delete."""

    async def write_file(self, path: str, content: str) -> None: ...

    async def create_dir(self, path: str) -> None: ...

    async def delete_file(self, path: str) -> None: ...

    async def exists(self, path: str) -> bool: ...


def is_write_enabled(access: object) -> bool:
    """Return True if the collaborator provides every write method."""
    return all(callable(getattr(access, name, None)) for name in WRITE_METHODS)
