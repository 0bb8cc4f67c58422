"""
Line-oriented parser for backlog/config.yml.

The config file is read with a tolerant ``key: value`` line scanner rather
than a YAML library. Only a pragmatic subset is understood:

    # comments and blank lines are skipped
    project_name: "My Project"
    statuses: ["To Do", "In Progress", "Done"]
    auto_commit: false

Array-valued keys (statuses, labels, milestones) accept only the inline
bracketed form. A block list under such a key is not understood and yields
an empty array. Unknown keys are ignored.

Strict validation (non-empty project_name and statuses) is a separate,
explicit step selected with ``strict=True``.
"""

import logging
import re
from typing import Any

from pydantic import ValidationError

from backlog_board.core.config.models import DEFAULT_DATE_FORMAT, BoardConfig
from backlog_board.core.errors import ConfigError

logger = logging.getLogger(__name__)

STRING_KEYS = frozenset(
    {
        "project_name",
        "default_assignee",
        "default_reporter",
        "default_status",
        "date_format",
        "default_editor",
    }
)
LIST_KEYS = frozenset({"statuses", "labels", "milestones"})
INT_KEYS = frozenset({"max_column_width", "default_port", "zero_padded_ids", "active_branch_days"})
BOOL_KEYS = frozenset(
    {
        "auto_open_browser",
        "remote_operations",
        "auto_commit",
        "bypass_git_hooks",
        "check_active_branches",
    }
)
RECOGNIZED_KEYS = STRING_KEYS | LIST_KEYS | INT_KEYS | BOOL_KEYS

_LEADING_INT = re.compile(r"^[+-]?\d+")
_LIST_ITEM = re.compile(r"""\s*("[^"]*"|'[^']*'|[^,]*?)\s*(?:,|$)""")


def _unquote(value: str) -> str:
    """Strip whitespace and one matching pair of surrounding quotes."""
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        value = value[1:-1].strip()
    return value


def _parse_inline_list(value: str) -> list[str]:
    """Parse ``[a, "b, c", 'd']``; anything else yields an empty list."""
    if not (value.startswith("[") and value.endswith("]")):
        return []
    body = value[1:-1]
    items: list[str] = []
    pos = 0
    while pos < len(body):
        match = _LIST_ITEM.match(body, pos)
        assert match is not None
        items.append(_unquote(match.group(1)))
        pos = match.end()
    return [item for item in items if item]


def _parse_int(value: str) -> int | None:
    match = _LEADING_INT.match(_unquote(value))
    return int(match.group(0)) if match else None


def scan_config_lines(text: str) -> dict[str, Any]:
    """
    Scan config text into a dict of recognized raw values.

    Args:
        text: Raw config file content

    Returns:
        Dict containing only the keys present in the text, with typed values
    """
    raw: dict[str, Any] = {}

    for line in text.splitlines():
        trimmed = line.strip()
        if not trimmed or trimmed.startswith("#"):
            continue

        key, sep, value = trimmed.partition(":")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()

        if key not in RECOGNIZED_KEYS:
            continue

        if key in STRING_KEYS:
            raw[key] = _unquote(value)
        elif key in LIST_KEYS:
            raw[key] = _parse_inline_list(value)
        elif key in INT_KEYS:
            parsed = _parse_int(value)
            if parsed is None:
                logger.debug(f"Ignoring non-numeric value for {key}: {value!r}")
                continue
            raw[key] = parsed
        elif key in BOOL_KEYS:
            raw[key] = _unquote(value).lower() == "true"

    return raw


def _validate_raw(raw: dict[str, Any]) -> None:
    if not raw.get("project_name"):
        raise ConfigError("Invalid config.yml: missing or invalid project_name")
    if not raw.get("statuses"):
        raise ConfigError("Invalid config.yml: missing or invalid statuses array")


def validate_config(config: BoardConfig) -> BoardConfig:
    """
    Apply strict validation to a parsed configuration.

    Args:
        config: Parsed configuration

    Returns:
        The same configuration if valid

    Raises:
        ConfigError: If project_name or statuses is empty
    """
    _validate_raw(config.model_dump())
    return config


def parse_config(text: str, strict: bool = False) -> BoardConfig:
    """
    Parse backlog/config.yml content into a BoardConfig.

    Lenient by default: a missing project_name yields "" and missing statuses
    fall back to the built-in defaults. With ``strict=True`` both must be
    present in the text itself.

    Args:
        text: Raw config file content
        strict: Reject configs without project_name or statuses

    Returns:
        Validated BoardConfig

    Raises:
        ConfigError: In strict mode when required keys are missing, or when
            the scanned values fail model validation

    Example:
        >>> config = parse_config('project_name: Demo\\nstatuses: [Todo, Done]')
        >>> config.statuses
        ['Todo', 'Done']
    """
    raw = scan_config_lines(text)
    if strict:
        _validate_raw(raw)

    if not raw.get("statuses"):
        raw.pop("statuses", None)
    for key in ("default_status", "date_format"):
        if not raw.get(key):
            raw.pop(key, None)

    try:
        return BoardConfig(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config.yml: {e}") from e


def serialize_config(config: BoardConfig) -> str:
    """
    Serialize a BoardConfig back to the config.yml line format.

    Re-parsing the output yields the same project_name, statuses and
    default_status.

    Args:
        config: Configuration to serialize

    Returns:
        Config file text ending with a newline

    Raises:
        ConfigError: If a value holds both quote characters or a line break
    """

    def quoted(value: str) -> str:
        if "\n" in value or "\r" in value:
            raise ConfigError("Config values cannot span lines", value=value)
        if '"' not in value:
            return f'"{value}"'
        if "'" not in value:
            return f"'{value}'"
        raise ConfigError("Config values cannot contain both quote characters", value=value)

    def quoted_list(values: list[str]) -> str:
        return "[" + ", ".join(quoted(v) for v in values) + "]"

    lines = [f"project_name: {quoted(config.project_name)}"]
    if config.default_status:
        lines.append(f"default_status: {quoted(config.default_status)}")
    lines.append(f"statuses: {quoted_list(config.statuses)}")
    lines.append(f"labels: {quoted_list(config.labels)}")
    lines.append(f"milestones: {quoted_list(config.milestones)}")
    lines.append(f"date_format: {config.date_format or DEFAULT_DATE_FORMAT}")
    if config.default_editor:
        lines.append(f"default_editor: {quoted(config.default_editor)}")
    if config.auto_commit is not None:
        lines.append(f"auto_commit: {str(config.auto_commit).lower()}")
    if config.zero_padded_ids is not None:
        lines.append(f"zero_padded_ids: {config.zero_padded_ids}")

    return "\n".join(lines) + "\n"
