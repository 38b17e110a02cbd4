"""
Local State Store

DESIGN DECISION: The AppState snapshot is owned by exactly one StateStore,
created at session start and passed to whoever needs it. There is no
module-level state.

Every command is an Action run through a pure reducer that returns a new
snapshot. Collections the action does not touch are shared with the
previous snapshot, and an action that changes nothing (update or delete
of an unknown id) returns the previous snapshot itself.
"""

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from budget_app.log import get_logger
from budget_app.models import (
    AppState,
    Expense,
    Goal,
    Income,
    Investment,
    UserSettings,
)


StateListener = Callable[[AppState], None]


class ActionType(str, Enum):
    """Every way the snapshot can change."""
    SET_STATE = "set_state"

    ADD_EXPENSE = "add_expense"
    UPDATE_EXPENSE = "update_expense"
    DELETE_EXPENSE = "delete_expense"

    ADD_INCOME = "add_income"
    UPDATE_INCOME = "update_income"
    DELETE_INCOME = "delete_income"

    ADD_GOAL = "add_goal"
    UPDATE_GOAL = "update_goal"
    DELETE_GOAL = "delete_goal"

    ADD_INVESTMENT = "add_investment"
    UPDATE_INVESTMENT = "update_investment"
    DELETE_INVESTMENT = "delete_investment"

    UPDATE_SETTINGS = "update_settings"
    CLEAR_DATA = "clear_data"


class Action(BaseModel):
    """A command against the snapshot."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type: ActionType
    payload: Any = None


# Which AppState collection each record action works on
_COLLECTIONS = {
    ActionType.ADD_EXPENSE: "expenses",
    ActionType.UPDATE_EXPENSE: "expenses",
    ActionType.DELETE_EXPENSE: "expenses",
    ActionType.ADD_INCOME: "incomes",
    ActionType.UPDATE_INCOME: "incomes",
    ActionType.DELETE_INCOME: "incomes",
    ActionType.ADD_GOAL: "goals",
    ActionType.UPDATE_GOAL: "goals",
    ActionType.DELETE_GOAL: "goals",
    ActionType.ADD_INVESTMENT: "investments",
    ActionType.UPDATE_INVESTMENT: "investments",
    ActionType.DELETE_INVESTMENT: "investments",
}

_ADDS = {
    ActionType.ADD_EXPENSE,
    ActionType.ADD_INCOME,
    ActionType.ADD_GOAL,
    ActionType.ADD_INVESTMENT,
}

_UPDATES = {
    ActionType.UPDATE_EXPENSE,
    ActionType.UPDATE_INCOME,
    ActionType.UPDATE_GOAL,
    ActionType.UPDATE_INVESTMENT,
}


def _add(records: tuple, record) -> tuple:
    return records + (record,)


def _update(records: tuple, record) -> tuple:
    if not any(existing.id == record.id for existing in records):
        return records
    return tuple(record if existing.id == record.id else existing for existing in records)


def _delete(records: tuple, record_id: str) -> tuple:
    remaining = tuple(existing for existing in records if existing.id != record_id)
    if len(remaining) == len(records):
        return records
    return remaining


def reduce(state: AppState, action: Action) -> AppState:
    """
    Apply an action to a snapshot.

    Pure: the same snapshot and action always give the same result, and
    the input snapshot is never modified.
    """
    if action.type is ActionType.SET_STATE:
        return action.payload
    if action.type is ActionType.CLEAR_DATA:
        return AppState.default()
    if action.type is ActionType.UPDATE_SETTINGS:
        return state.model_copy(update={"settings": action.payload})

    field = _COLLECTIONS[action.type]
    records = getattr(state, field)
    if action.type in _ADDS:
        updated = _add(records, action.payload)
    elif action.type in _UPDATES:
        updated = _update(records, action.payload)
    else:
        updated = _delete(records, action.payload)

    if updated is records:
        return state
    return state.model_copy(update={field: updated})


class StateStore:
    """
    Holds the AppState snapshot for one user session.

    Commands are synchronous and apply in the order they are issued.
    Listeners run after each command that produced a new snapshot.
    Input is not re-validated here; callers build valid records first.
    """

    def __init__(self, initial_state: AppState | None = None):
        self._state = initial_state or AppState.default()
        self._listeners: list[StateListener] = []
        self._logger = get_logger(__name__)

    @property
    def state(self) -> AppState:
        """The current snapshot."""
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Register a listener for snapshot changes.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def dispatch(self, action: Action) -> AppState:
        """Run an action and notify listeners if the snapshot changed."""
        previous = self._state
        self._state = reduce(previous, action)
        if self._state is not previous:
            self._logger.debug("state_changed", action=action.type.value)
            for listener in list(self._listeners):
                listener(self._state)
        return self._state

    # -------------------------------------------------------------------------
    # Commands
    # -------------------------------------------------------------------------

    def set_state(self, new_state: AppState) -> AppState:
        """Replace the whole snapshot (used when remote data arrives)."""
        return self.dispatch(Action(type=ActionType.SET_STATE, payload=new_state))

    def add_expense(self, expense: Expense) -> AppState:
        return self.dispatch(Action(type=ActionType.ADD_EXPENSE, payload=expense))

    def update_expense(self, expense: Expense) -> AppState:
        """Replace the expense with the same id. No-op if none matches."""
        return self.dispatch(Action(type=ActionType.UPDATE_EXPENSE, payload=expense))

    def delete_expense(self, expense_id: str) -> AppState:
        """Remove the expense with this id. No-op if none matches."""
        return self.dispatch(Action(type=ActionType.DELETE_EXPENSE, payload=expense_id))

    def add_income(self, income: Income) -> AppState:
        return self.dispatch(Action(type=ActionType.ADD_INCOME, payload=income))

    def update_income(self, income: Income) -> AppState:
        return self.dispatch(Action(type=ActionType.UPDATE_INCOME, payload=income))

    def delete_income(self, income_id: str) -> AppState:
        return self.dispatch(Action(type=ActionType.DELETE_INCOME, payload=income_id))

    def add_goal(self, goal: Goal) -> AppState:
        return self.dispatch(Action(type=ActionType.ADD_GOAL, payload=goal))

    def update_goal(self, goal: Goal) -> AppState:
        """
        Replace the goal with the same id.

        Contributions are not appended here: pass the full new goal,
        e.g. from Goal.with_contribution().
        """
        return self.dispatch(Action(type=ActionType.UPDATE_GOAL, payload=goal))

    def delete_goal(self, goal_id: str) -> AppState:
        return self.dispatch(Action(type=ActionType.DELETE_GOAL, payload=goal_id))

    def add_investment(self, investment: Investment) -> AppState:
        return self.dispatch(Action(type=ActionType.ADD_INVESTMENT, payload=investment))

    def update_investment(self, investment: Investment) -> AppState:
        return self.dispatch(
            Action(type=ActionType.UPDATE_INVESTMENT, payload=investment)
        )

    def delete_investment(self, investment_id: str) -> AppState:
        return self.dispatch(
            Action(type=ActionType.DELETE_INVESTMENT, payload=investment_id)
        )

    def update_settings(self, settings: UserSettings) -> AppState:
        """Replace the settings wholesale."""
        return self.dispatch(Action(type=ActionType.UPDATE_SETTINGS, payload=settings))

    def clear_data(self) -> AppState:
        """Reset to the empty default state."""
        return self.dispatch(Action(type=ActionType.CLEAR_DATA))
