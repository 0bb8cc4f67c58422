"""
Application settings for the board engine.

Settings are distinct from the project's backlog/config.yml: they control how
this tool loads a backlog (page sizes, lazy vs eager parsing, strict config
validation) rather than what the backlog contains.

Precedence (highest to lowest):
    1. Environment variables (BACKLOG_BOARD_*)
    2. Explicit overrides passed to load_settings()
    3. Hardcoded defaults
"""

import logging
import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
DEFAULT_COMPLETED_PAGE_SIZE = 5


class BoardSettings(BaseModel):
    """Runtime settings for loading and paging a backlog."""

    page_size: int = Field(
        default=DEFAULT_PAGE_SIZE, ge=1, description="Tasks per page for active columns"
    )
    completed_page_size: int = Field(
        default=DEFAULT_COMPLETED_PAGE_SIZE,
        ge=1,
        description="Tasks per page for the completed source column",
    )
    lazy: bool = Field(
        default=False, description="Defer task file parsing until a page needs it"
    )
    strict_config: bool = Field(
        default=False, description="Reject configs without project_name or statuses"
    )
    redirect_unknown_statuses: bool = Field(
        default=True,
        description="Place tasks with unconfigured statuses in the default status column",
    )
    include_completed: bool = Field(
        default=True, description="Index files under backlog/completed/"
    )


def _parse_bool(value: str) -> bool:
    return value.strip().lower() not in ("false", "0", "no", "off", "")


_ENV_INT_KEYS = {
    "BACKLOG_BOARD_PAGE_SIZE": "page_size",
    "BACKLOG_BOARD_COMPLETED_PAGE_SIZE": "completed_page_size",
}
_ENV_BOOL_KEYS = {
    "BACKLOG_BOARD_LAZY": "lazy",
    "BACKLOG_BOARD_STRICT_CONFIG": "strict_config",
    "BACKLOG_BOARD_REDIRECT_UNKNOWN": "redirect_unknown_statuses",
    "BACKLOG_BOARD_INCLUDE_COMPLETED": "include_completed",
}


def apply_env_overrides(
    settings_dict: dict[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """
    Apply BACKLOG_BOARD_* environment variable overrides.

    Invalid values are logged and ignored.

    Args:
        settings_dict: Settings values to override
        environ: Environment mapping (defaults to os.environ)

    Returns:
        New dict with env var overrides applied
    """
    env = os.environ if environ is None else environ
    result = settings_dict.copy()

    for env_key, field in _ENV_INT_KEYS.items():
        if raw := env.get(env_key):
            try:
                value = int(raw)
            except ValueError:
                logger.warning(f"Invalid {env_key} value '{raw}', ignoring")
                continue
            if value < 1:
                logger.warning(f"{env_key} must be >= 1, got {value}, ignoring")
                continue
            result[field] = value

    for env_key, field in _ENV_BOOL_KEYS.items():
        if (raw := env.get(env_key)) is not None:
            result[field] = _parse_bool(raw)

    return result


def load_settings(
    environ: Mapping[str, str] | None = None, **overrides: Any
) -> BoardSettings:
    """
    Build BoardSettings from defaults, explicit overrides and the environment.

    Args:
        environ: Environment mapping (defaults to os.environ)
        **overrides: Field values that take precedence over defaults

    Returns:
        Validated BoardSettings

    Example:
        >>> load_settings({"BACKLOG_BOARD_PAGE_SIZE": "10"}).page_size
        10
    """
    merged = apply_env_overrides(dict(overrides), environ)
    return BoardSettings(**merged)
