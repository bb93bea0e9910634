"""Action path planning package."""

from trackwise.planning.paths import (
    DEFAULT_MAX_ACTIONS,
    PathLimitExceededError,
    check_action_limit,
    count_action_paths,
    explore_action_paths,
    iter_action_paths,
)

__all__ = [
    "DEFAULT_MAX_ACTIONS",
    "PathLimitExceededError",
    "check_action_limit",
    "count_action_paths",
    "explore_action_paths",
    "iter_action_paths",
]
