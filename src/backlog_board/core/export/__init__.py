"""
Board export.
"""

from backlog_board.core.export.markdown import (
    build_status_groups,
    export_board_to_file,
    format_cell,
    render_board,
)

__all__ = ["build_status_groups", "export_board_to_file", "format_cell", "render_board"]
