"""
Data Models Package

This package contains all Pydantic models used in the Budget App core.
Every record in the AppState snapshot must conform to these schemas.
"""

from budget_app.models.records import (
    DEFAULT_CATEGORIES,
    DEFAULT_CURRENCY,
    AccountType,
    AppState,
    Category,
    Contribution,
    Expense,
    Goal,
    Income,
    IncomeFrequency,
    IncomeType,
    Investment,
    UserSettings,
    new_record_id,
)
from budget_app.models.window import Window, last_day_of_month

__all__ = [
    # Records
    "DEFAULT_CATEGORIES",
    "DEFAULT_CURRENCY",
    "AccountType",
    "AppState",
    "Category",
    "Contribution",
    "Expense",
    "Goal",
    "Income",
    "IncomeFrequency",
    "IncomeType",
    "Investment",
    "UserSettings",
    "new_record_id",
    # Windows
    "Window",
    "last_day_of_month",
]
