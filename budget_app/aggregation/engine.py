"""
Aggregation Engine

DESIGN DECISION: Aggregation is PURE and DETERMINISTIC.
Every figure shown to the user is computed on demand from an AppState
snapshot and a Window. Nothing here is stored, cached or mutated.

Recurring incomes are converted to a monthly run-rate with fixed
approximations: weekly x4 and yearly /12. These are business rules,
not calendar-accurate conversions.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from budget_app.models import (
    AppState,
    Contribution,
    Expense,
    Goal,
    Income,
    IncomeFrequency,
    Investment,
    Window,
)


WEEKS_PER_MONTH = Decimal("4")
MONTHS_PER_YEAR = Decimal("12")

ZERO = Decimal("0")


class CategoryShare(BaseModel):
    """Total spent in one category and its share of the window total."""
    model_config = ConfigDict(frozen=True)

    category: str
    amount: Decimal
    percentage: float = Field(
        ...,
        ge=0.0,
        description="Share of the window's expense total, 0-100"
    )


class PeriodSummary(BaseModel):
    """Headline figures for one window."""
    model_config = ConfigDict(frozen=True)

    window: Window
    income: Decimal
    expenses: Decimal
    contributions: Decimal
    savings: Decimal
    remaining_budget: Decimal = Field(
        ...,
        description="Income minus expenses"
    )
    budget_used_percentage: float = Field(
        ...,
        description="Expenses as a percentage of income, 0 when there is no income"
    )


def _percentage(part: Decimal, whole: Decimal) -> float:
    if whole == 0:
        return 0.0
    return float(part / whole * 100)


# =============================================================================
# INCOME
# =============================================================================

def monthly_recurring_income(incomes: Iterable[Income]) -> Decimal:
    """
    Current monthly run-rate from recurring Monthly incomes.

    Independent of any date filter.
    """
    return sum(
        (
            income.amount
            for income in incomes
            if income.is_recurring and income.frequency is IncomeFrequency.MONTHLY
        ),
        ZERO,
    )


def income_for_window(income: Income, window: Window) -> Decimal:
    """What a single income contributes to a window's income."""
    if income.is_recurring and income.frequency is IncomeFrequency.MONTHLY:
        return income.amount
    if income.frequency is IncomeFrequency.ONE_TIME and window.contains(income.date):
        return income.amount
    if income.is_recurring and income.frequency is IncomeFrequency.WEEKLY:
        return income.amount * WEEKS_PER_MONTH
    if income.is_recurring and income.frequency is IncomeFrequency.YEARLY:
        return income.amount / MONTHS_PER_YEAR
    return ZERO


def current_window_income(incomes: Iterable[Income], window: Window) -> Decimal:
    """
    Income for a window.

    Recurring incomes count at their monthly rate whatever their date;
    one-time incomes count only when dated inside the window.
    """
    return sum((income_for_window(income, window) for income in incomes), ZERO)


# =============================================================================
# EXPENSES, CONTRIBUTIONS, SAVINGS
# =============================================================================

def window_expenses(expenses: Iterable[Expense], window: Window) -> Decimal:
    """Sum of expenses dated inside the window."""
    return sum(
        (expense.amount for expense in expenses if window.contains(expense.date)),
        ZERO,
    )


def window_contributions(
    contributions: Iterable[Contribution],
    window: Window,
) -> Decimal:
    """Sum of goal contributions dated inside the window."""
    return sum(
        (c.amount for c in contributions if window.contains(c.date)),
        ZERO,
    )


def window_savings(
    incomes: Iterable[Income],
    expenses: Iterable[Expense],
    contributions: Iterable[Contribution],
    window: Window,
) -> Decimal:
    """Income minus expenses minus goal contributions. May be negative."""
    return (
        current_window_income(incomes, window)
        - window_expenses(expenses, window)
        - window_contributions(contributions, window)
    )


def category_breakdown(
    expenses: Iterable[Expense],
    window: Window,
) -> dict[str, CategoryShare]:
    """
    Expense totals per category inside the window.

    Entries are ordered by amount, largest first. Empty when no expense
    falls in the window.
    """
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        if not window.contains(expense.date):
            continue
        totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount

    total = sum(totals.values(), ZERO)
    ordered = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    return {
        category: CategoryShare(
            category=category,
            amount=amount,
            percentage=_percentage(amount, total),
        )
        for category, amount in ordered
    }


def top_expense_category(
    expenses: Iterable[Expense],
    window: Window,
) -> Optional[CategoryShare]:
    """The category with the most spending in the window, if any."""
    breakdown = category_breakdown(expenses, window)
    return next(iter(breakdown.values()), None)


# =============================================================================
# GOALS & INVESTMENTS
# =============================================================================

def goal_progress(goal: Goal) -> float:
    """
    Percentage of the target reached.

    A non-positive target yields 0.0 instead of raising or returning NaN.
    Progress is not capped: over-funded goals report more than 100.
    """
    if goal.target_amount <= 0:
        return 0.0
    return float(goal.current_amount / goal.target_amount * 100)


def most_progressed_goal(goals: Iterable[Goal]) -> Optional[Goal]:
    """The goal closest to (or furthest past) its target."""
    return max(goals, key=goal_progress, default=None)


def total_goal_savings(goals: Iterable[Goal]) -> Decimal:
    return sum((goal.current_amount for goal in goals), ZERO)


def total_investment_value(investments: Iterable[Investment]) -> Decimal:
    """Current value of every investment, principal where unknown."""
    return sum((investment.value for investment in investments), ZERO)


def total_investment_growth(investments: Iterable[Investment]) -> Decimal:
    """Sum of gains over investments that have a current value."""
    return sum(
        (
            investment.gain
            for investment in investments
            if investment.gain is not None
        ),
        ZERO,
    )


# =============================================================================
# SUMMARY
# =============================================================================

def summarize_window(state: AppState, window: Window) -> PeriodSummary:
    """Compute the headline figures of a window from a snapshot."""
    income = current_window_income(state.incomes, window)
    expenses = window_expenses(state.expenses, window)
    contributions = window_contributions(state.goal_contributions(), window)
    return PeriodSummary(
        window=window,
        income=income,
        expenses=expenses,
        contributions=contributions,
        savings=income - expenses - contributions,
        remaining_budget=income - expenses,
        budget_used_percentage=_percentage(expenses, income),
    )
