"""
Optimistic task mutations.
"""

from backlog_board.core.mutations.coordinator import OptimisticMutationCoordinator

__all__ = ["OptimisticMutationCoordinator"]
