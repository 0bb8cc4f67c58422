"""
Project setup.
"""

from backlog_board.core.project.init import ProjectExistsError, init_project

__all__ = ["ProjectExistsError", "init_project"]
