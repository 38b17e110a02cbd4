"""
Savings series for trend charts.

Each point is computed with the same rules as window_savings, applied
to a single month or a single year.
"""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict

from budget_app.aggregation.engine import (
    current_window_income,
    window_contributions,
    window_expenses,
)
from budget_app.models import AppState, Window


class MonthlyFigure(BaseModel):
    """Savings figures for one calendar month."""
    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    income: Decimal
    expenses: Decimal
    contributions: Decimal
    savings: Decimal

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


class YearlyFigure(BaseModel):
    """Savings figures for one calendar year."""
    model_config = ConfigDict(frozen=True)

    year: int
    income: Decimal
    expenses: Decimal
    contributions: Decimal
    savings: Decimal


def _figures(state: AppState, window: Window) -> tuple[Decimal, Decimal, Decimal]:
    return (
        current_window_income(state.incomes, window),
        window_expenses(state.expenses, window),
        window_contributions(state.goal_contributions(), window),
    )


def monthly_savings_series(state: AppState, window: Window) -> list[MonthlyFigure]:
    """One point per month of the window, oldest first."""
    series = []
    for year, month in window.months():
        income, expenses, contributions = _figures(state, Window.month(year, month))
        series.append(
            MonthlyFigure(
                year=year,
                month=month,
                income=income,
                expenses=expenses,
                contributions=contributions,
                savings=income - expenses - contributions,
            )
        )
    return series


def years_with_data(state: AppState) -> list[int]:
    """Every year that appears on an income, expense or contribution."""
    years = {income.date.year for income in state.incomes}
    years.update(expense.date.year for expense in state.expenses)
    years.update(c.date.year for c in state.goal_contributions())
    return sorted(years)


def yearly_savings_series(state: AppState) -> list[YearlyFigure]:
    """
    One point per year with data, oldest first.

    Recurring incomes enter each year at their monthly rate, the same
    figure current_window_income gives for any other window.
    """
    series = []
    for year in years_with_data(state):
        income, expenses, contributions = _figures(state, Window.year(year))
        series.append(
            YearlyFigure(
                year=year,
                income=income,
                expenses=expenses,
                contributions=contributions,
                savings=income - expenses - contributions,
            )
        )
    return series
