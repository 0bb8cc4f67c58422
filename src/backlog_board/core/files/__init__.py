"""
File access collaborators.

The core consumes list_files/fetch_file (and optionally the write methods);
these modules provide in-memory and local-disk implementations plus the
de-duplicating FileFetcher.
"""

from backlog_board.core.files.access import FileAccess, WritableFileAccess, is_write_enabled
from backlog_board.core.files.fetcher import FileFetcher
from backlog_board.core.files.local import LocalFileAccess
from backlog_board.core.files.memory import InMemoryFileAccess, WritableInMemoryFileAccess

__all__ = [
    "FileAccess",
    "FileFetcher",
    "InMemoryFileAccess",
    "LocalFileAccess",
    "WritableFileAccess",
    "WritableInMemoryFileAccess",
    "is_write_enabled",
]
