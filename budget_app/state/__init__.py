"""Local state package."""

from budget_app.state.store import (
    Action,
    ActionType,
    StateListener,
    StateStore,
    reduce,
)

__all__ = [
    "Action",
    "ActionType",
    "StateListener",
    "StateStore",
    "reduce",
]
