"""Tests for the reducer and StateStore."""

from datetime import date
from decimal import Decimal

import pytest

from budget_app.models import (
    AppState,
    Contribution,
    Expense,
    Goal,
    Income,
    IncomeFrequency,
    Investment,
    UserSettings,
)
from budget_app.state import Action, ActionType, StateStore, reduce


def expense(expense_id: str, amount: str = "10") -> Expense:
    return Expense(id=expense_id, amount=Decimal(amount), category="Other", date=date(2024, 3, 1))


class TestReducer:
    """Tests for the pure reducer."""

    def test_add_does_not_modify_input(self):
        """Test the previous snapshot is left untouched."""
        state = AppState.default()
        new_state = reduce(state, Action(type=ActionType.ADD_EXPENSE, payload=expense("a")))
        assert state.expenses == ()
        assert len(new_state.expenses) == 1

    def test_untouched_collections_are_shared(self, full_state):
        """Test only the changed collection is replaced."""
        new_state = reduce(full_state, Action(type=ActionType.ADD_EXPENSE, payload=expense("new")))
        assert new_state.incomes is full_state.incomes
        assert new_state.goals is full_state.goals
        assert new_state.investments is full_state.investments
        assert new_state.settings is full_state.settings
        assert new_state.expenses is not full_state.expenses

    def test_unknown_id_returns_same_snapshot(self, full_state):
        """Test update and delete of a missing id are no-ops."""
        assert reduce(full_state, Action(type=ActionType.DELETE_EXPENSE, payload="missing")) is full_state
        assert reduce(full_state, Action(type=ActionType.UPDATE_EXPENSE, payload=expense("missing"))) is full_state

    def test_clear_data(self, full_state):
        """Test clearing returns the default state."""
        assert reduce(full_state, Action(type=ActionType.CLEAR_DATA)) == AppState.default()


class TestStateStore:
    """Tests for StateStore commands and listeners."""

    def test_expense_lifecycle(self):
        """Test add, update and delete keep one entry per surviving id."""
        store = StateStore()
        store.add_expense(expense("a"))
        store.add_expense(expense("b"))
        store.add_expense(expense("c"))
        store.update_expense(expense("b", "99"))
        store.delete_expense("a")
        store.update_expense(expense("zzz"))
        store.delete_expense("zzz")

        ids = [e.id for e in store.state.expenses]
        assert ids == ["b", "c"]
        assert len(ids) == len(set(ids))
        assert store.state.expenses[0].amount == Decimal("99")

    def test_update_preserves_order(self):
        """Test an updated record keeps its position."""
        store = StateStore()
        for expense_id in ("a", "b", "c"):
            store.add_expense(expense(expense_id))
        store.update_expense(expense("a", "5"))
        assert [e.id for e in store.state.expenses] == ["a", "b", "c"]

    def test_income_goal_investment_commands(self):
        """Test the remaining record collections."""
        store = StateStore()
        income = Income(id="i", name="Pay", amount=Decimal("10"), frequency=IncomeFrequency.MONTHLY, date=date(2024, 1, 1))
        goal = Goal(id="g", name="Fund", target_amount=Decimal("100"))
        investment = Investment(id="v", name="Fund", amount=Decimal("10"), date=date(2024, 1, 1))

        store.add_income(income)
        store.add_goal(goal)
        store.add_investment(investment)
        store.update_goal(goal.with_contribution(Contribution(amount=Decimal("5"), date=date(2024, 1, 2))))
        store.update_investment(investment.model_copy(update={"current_value": Decimal("12")}))

        assert store.state.goals[0].current_amount == Decimal("5")
        assert store.state.investments[0].gain == Decimal("2")

        store.delete_income("i")
        store.delete_goal("g")
        store.delete_investment("v")
        assert store.state.incomes == ()
        assert store.state.goals == ()
        assert store.state.investments == ()

    def test_update_settings(self):
        """Test settings are replaced wholesale."""
        store = StateStore()
        store.update_settings(UserSettings(currency="USD", dark_mode=False))
        assert store.state.settings.currency == "USD"
        assert store.state.settings.dark_mode is False

    def test_set_state(self, full_state):
        """Test replacing the whole snapshot."""
        store = StateStore()
        assert store.set_state(full_state) is full_state
        assert store.state is full_state

    def test_listeners_receive_new_snapshots(self):
        """Test listeners run after each change with the new snapshot."""
        store = StateStore()
        seen = []
        store.subscribe(seen.append)

        store.add_expense(expense("a"))
        store.delete_expense("a")

        assert len(seen) == 2
        assert seen[-1] is store.state

    def test_listeners_skip_no_ops(self):
        """Test a no-op command does not notify."""
        store = StateStore()
        seen = []
        store.subscribe(seen.append)
        store.delete_expense("missing")
        assert seen == []

    def test_unsubscribe(self):
        """Test an unsubscribed listener is no longer called."""
        store = StateStore()
        seen = []
        unsubscribe = store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()
        store.add_expense(expense("a"))
        assert seen == []

    def test_listener_errors_propagate(self):
        """Test a failing listener surfaces to the caller."""
        store = StateStore()

        def broken(_state):
            raise RuntimeError("boom")

        store.subscribe(broken)
        with pytest.raises(RuntimeError, match="boom"):
            store.add_expense(expense("a"))
        assert len(store.state.expenses) == 1
