"""
Action Path Enumeration

Given an ordered list of candidate financial actions, produce every
order-preserving subsequence of it: for n actions, 2^n paths, from the
full list down to the empty path.

Each path corresponds to an n-bit mask where bit (n - 1 - i) selects
action i. Walking the masks from all-ones down to zero yields the same
order as an include-first depth-first search:

    [A, B]  ->  [A, B], [A], [B], []

The walk is iterative, so list length is bounded only by the explicit
ceiling, never by recursion depth.
"""

from typing import Iterator, Optional, Sequence, TypeVar

from trackwise.models.expense import FinancialAction

T = TypeVar("T")

# Hard ceiling when no limit is configured: 2^20 paths is about a million lists
DEFAULT_MAX_ACTIONS = 20


class PathLimitExceededError(ValueError):
    """Too many actions to enumerate every path."""

    def __init__(self, action_count: int, limit: int):
        self.action_count = action_count
        self.limit = limit
        super().__init__(
            f"Cannot explore {action_count} actions: at most {limit} are allowed "
            f"({count_action_paths(action_count):,} paths requested)"
        )


def count_action_paths(action_count: int) -> int:
    """Number of paths produced for ``action_count`` actions."""
    if action_count < 0:
        raise ValueError("action_count cannot be negative")
    return 1 << action_count


def check_action_limit(action_count: int, max_actions: Optional[int]) -> None:
    """Raise PathLimitExceededError if the list is longer than the ceiling."""
    if max_actions is not None and action_count > max_actions:
        raise PathLimitExceededError(action_count, max_actions)


def iter_action_paths(
    actions: Sequence[T],
    max_actions: Optional[int] = DEFAULT_MAX_ACTIONS,
) -> Iterator[list[T]]:
    """
    Lazily yield every order-preserving subsequence of ``actions``.

    Each yielded path is a fresh list. The limit is checked before the
    first path is produced.
    """
    n = len(actions)
    check_action_limit(n, max_actions)

    for mask in range((1 << n) - 1, -1, -1):
        yield [
            actions[i]
            for i in range(n)
            if mask & (1 << (n - 1 - i))
        ]


def explore_action_paths(
    actions: Sequence[FinancialAction],
    max_actions: Optional[int] = DEFAULT_MAX_ACTIONS,
) -> list[list[FinancialAction]]:
    """
    Return all 2^n order-preserving paths through ``actions``.

    Args:
        actions: Candidate actions in the order they would be taken
        max_actions: Largest accepted list, or None for no limit

    Returns:
        List of paths, the full list first and the empty path last

    Raises:
        PathLimitExceededError: If len(actions) > max_actions
    """
    return list(iter_action_paths(actions, max_actions=max_actions))
