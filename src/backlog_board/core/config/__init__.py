"""
Configuration models, parsing and settings.

Project configuration lives in backlog/config.yml and is read with a tolerant
line parser. Runtime settings come from BACKLOG_BOARD_* environment variables.
"""

from .models import DEFAULT_STATUSES, BoardConfig, status_key
from .parser import parse_config, serialize_config, validate_config
from .settings import BoardSettings, load_settings

__all__ = [
    "DEFAULT_STATUSES",
    "BoardConfig",
    "BoardSettings",
    "load_settings",
    "parse_config",
    "serialize_config",
    "status_key",
    "validate_config",
]
