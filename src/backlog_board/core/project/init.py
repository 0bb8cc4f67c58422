"""
Backlog project initialization.
"""

import logging

from backlog_board.core.config.models import DEFAULT_STATUSES, BoardConfig
from backlog_board.core.config.parser import serialize_config
from backlog_board.core.errors import BoardError, ConfigError, WriteNotSupportedError
from backlog_board.core.files.access import is_write_enabled
from backlog_board.core.layout import CONFIG_PATH, PROJECT_DIRS

logger = logging.getLogger(__name__)


class ProjectExistsError(BoardError):
    """Raised when initializing a directory that already has a backlog."""

    pass


async def init_project(
    access: object,
    project_name: str,
    statuses: list[str] | None = None,
) -> BoardConfig:
    """
    Create the backlog directory layout and a default config.yml.

    Args:
        access: Write-enabled file collaborator
        project_name: Name written to the config
        statuses: Column statuses (defaults to To Do, In Progress, Done)

    Returns:
        The config that was written

    Raises:
        WriteNotSupportedError: If the collaborator is read-only
        ProjectExistsError: If backlog/config.yml already exists
        ConfigError: If the project name is blank
    """
    if not is_write_enabled(access):
        raise WriteNotSupportedError("Cannot initialize a project: file access is read-only")
    if not project_name.strip():
        raise ConfigError("Project name cannot be empty")
    if await access.exists(CONFIG_PATH):  # type: ignore[attr-defined]
        raise ProjectExistsError(
            f"Backlog project already initialized: {CONFIG_PATH} exists", path=CONFIG_PATH
        )

    config = BoardConfig(
        project_name=project_name.strip(),
        statuses=list(statuses) if statuses else list(DEFAULT_STATUSES),
    )
    config.default_status = config.statuses[0]

    for directory in PROJECT_DIRS:
        await access.create_dir(directory)  # type: ignore[attr-defined]
    await access.write_file(CONFIG_PATH, serialize_config(config))  # type: ignore[attr-defined]

    logger.info(f"Initialized backlog project {config.project_name!r}")
    return config
