from __future__ import annotations

from .guards import guard_badge_completion

BADGE_ONGOING = "ongoing"
BADGE_COMPLETED = "completed"
BADGE_UNCOMPLETED = "uncompleted"

WORKFLOWS = {
    # Status of one training entry inside a member's badge ledger.
    # `uncompleted` is an administrative override; re-applying it is a no-op.
    "badge_entry": {
        "transitions": {
            BADGE_ONGOING: {
                BADGE_COMPLETED: [guard_badge_completion],
                BADGE_UNCOMPLETED: [],
            },
            BADGE_COMPLETED: {
                BADGE_UNCOMPLETED: [],
            },
            BADGE_UNCOMPLETED: {
                BADGE_UNCOMPLETED: [],
            },
        }
    },
}
