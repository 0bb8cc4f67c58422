"""
Layered .env loading for BACKLOG_BOARD_* settings.

Precedence (highest to lowest):
    1. Variables already in the process environment
    2. Project files: <project>/.env, then <project>/.env.local
    3. User file: $XDG_CONFIG_HOME/backlog-board/.env
"""

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


def user_env_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "backlog-board" / ".env"


def _merge_env_files(paths: Iterable[Path]) -> dict[str, str]:
    """Read env files in order; later files replace earlier keys."""
    merged: dict[str, str] = {}
    for path in paths:
        path = Path(path)
        if not path.is_file():
            continue
        values = {k: v for k, v in dotenv_values(path).items() if v is not None}
        logger.debug(f"Loaded {len(values)} variables from {path}")
        merged.update(values)
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> None:
    """
    Populate os.environ from user and project .env files.

    Existing process variables are never replaced.

    Args:
        project_dir: Directory holding the project .env files (default: cwd)
        user_env_paths: Override the user-level file list
        project_env_paths: Override the project-level file list
    """
    base = project_dir if project_dir is not None else Path.cwd()
    if user_env_paths is None:
        user_env_paths = [user_env_path()]
    if project_env_paths is None:
        project_env_paths = [base / ".env", base / ".env.local"]

    layered = _merge_env_files([*user_env_paths, *project_env_paths])
    for key, value in layered.items():
        os.environ.setdefault(key, value)
