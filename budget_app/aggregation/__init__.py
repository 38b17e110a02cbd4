"""Aggregation package: derived figures computed from AppState snapshots."""

from budget_app.aggregation.engine import (
    MONTHS_PER_YEAR,
    WEEKS_PER_MONTH,
    CategoryShare,
    PeriodSummary,
    category_breakdown,
    current_window_income,
    goal_progress,
    income_for_window,
    monthly_recurring_income,
    most_progressed_goal,
    summarize_window,
    top_expense_category,
    total_goal_savings,
    total_investment_growth,
    total_investment_value,
    window_contributions,
    window_expenses,
    window_savings,
)
from budget_app.aggregation.series import (
    MonthlyFigure,
    YearlyFigure,
    monthly_savings_series,
    yearly_savings_series,
    years_with_data,
)

__all__ = [
    "MONTHS_PER_YEAR",
    "WEEKS_PER_MONTH",
    "CategoryShare",
    "MonthlyFigure",
    "PeriodSummary",
    "YearlyFigure",
    "category_breakdown",
    "current_window_income",
    "goal_progress",
    "income_for_window",
    "monthly_recurring_income",
    "monthly_savings_series",
    "most_progressed_goal",
    "summarize_window",
    "top_expense_category",
    "total_goal_savings",
    "total_investment_growth",
    "total_investment_value",
    "window_contributions",
    "window_expenses",
    "window_savings",
    "yearly_savings_series",
    "years_with_data",
]
