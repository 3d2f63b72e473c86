from .engine import TransitionError, apply_transition
from .registry import BADGE_COMPLETED, BADGE_ONGOING, BADGE_UNCOMPLETED, WORKFLOWS

__all__ = [
    "BADGE_COMPLETED",
    "BADGE_ONGOING",
    "BADGE_UNCOMPLETED",
    "TransitionError",
    "WORKFLOWS",
    "apply_transition",
]
