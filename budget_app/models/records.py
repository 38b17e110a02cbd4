"""
Core Data Models for Budget App

These models define the schemas for every financial record a user keeps.
They are designed to:
1. Be immutable - a change always produces a new value
2. Serialize to the camelCase JSON shape stored in the remote document
3. Reject malformed records at construction time

DESIGN DECISION: Amounts are Decimal, never float. They leave the process
as JSON numbers so other clients of the document read the same shape.
Percentages computed from them are floats because they are only ever
displayed.
"""

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    model_validator,
)
from pydantic.alias_generators import to_camel


DEFAULT_CURRENCY = "SAR"

DEFAULT_CATEGORIES = (
    "Food & Dining",
    "Shopping",
    "Transportation",
    "Bills & Utilities",
    "Entertainment",
    "Health & Wellness",
    "Housing",
    "Education",
    "Travel",
    "Personal Care",
    "Gifts & Donations",
    "Insurance",
    "Remittances",
    "Investments",
    "Other",
)

RECORD_CONFIG = ConfigDict(
    frozen=True,
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
)


def new_record_id() -> str:
    """Generate an opaque unique record id."""
    return str(uuid4())


def _date_part(value):
    """Keep only the calendar date of timestamps like 2024-03-05T10:23:45.123Z."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


def _json_number(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


# Dates written as full ISO timestamps are read back as their date
RecordDate = Annotated[dt.date, BeforeValidator(_date_part)]

# Decimal in Python, a plain JSON number in the stored document
Money = Annotated[Decimal, PlainSerializer(_json_number, when_used="json")]


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """Which kind of account an expense was paid from."""
    CREDIT = "credit"
    DEBIT = "debit"


class IncomeType(str, Enum):
    """Source of an income record."""
    SALARY = "Salary"
    FREELANCE = "Freelance"
    INVESTMENT = "Investment"
    BUSINESS = "Business"
    OTHER = "Other"


class IncomeFrequency(str, Enum):
    """
    How often an income is received.

    Everything except ONE_TIME is a recurring income.
    """
    MONTHLY = "Monthly"
    WEEKLY = "Weekly"
    YEARLY = "Yearly"
    ONE_TIME = "One-time"


# =============================================================================
# RECORDS
# =============================================================================

class Category(BaseModel):
    """A user-defined expense category."""
    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_record_id, min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    is_custom: bool = True


class Expense(BaseModel):
    """A single expense."""
    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_record_id, min_length=1)
    amount: Money = Field(
        ...,
        ge=0,
        description="Amount spent"
    )
    category: str = Field(
        ...,
        min_length=1,
        description="Name of the category this expense belongs to"
    )
    date: RecordDate = Field(
        ...,
        description="Calendar date of the expense"
    )
    note: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    account_type: AccountType = AccountType.DEBIT


class Income(BaseModel):
    """
    An income record.

    `is_recurring` is derived from `frequency` when omitted. An explicit
    value that contradicts the frequency is rejected rather than corrected.
    """
    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_record_id, min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(..., ge=0)
    type: IncomeType = IncomeType.OTHER
    frequency: IncomeFrequency
    is_recurring: bool
    date: RecordDate
    note: Optional[str] = Field(default=None, max_length=1000)

    @model_validator(mode='before')
    @classmethod
    def derive_recurrence(cls, data):
        """Fill in is_recurring from frequency when the caller left it out."""
        if not isinstance(data, dict):
            return data
        if "isRecurring" in data or "is_recurring" in data:
            return data
        frequency = data.get("frequency")
        if frequency is None:
            return data
        return {
            **data,
            "is_recurring": IncomeFrequency(frequency) is not IncomeFrequency.ONE_TIME,
        }

    @model_validator(mode='after')
    def validate_recurrence(self) -> 'Income':
        """Recurring exactly when the frequency is not One-time."""
        expected = self.frequency is not IncomeFrequency.ONE_TIME
        if self.is_recurring != expected:
            raise ValueError(
                "isRecurring must be false exactly when frequency is One-time"
            )
        return self


class Contribution(BaseModel):
    """Money put towards a savings goal."""
    model_config = RECORD_CONFIG

    amount: Money = Field(..., gt=0)
    date: RecordDate
    note: Optional[str] = Field(default=None, max_length=1000)


class Goal(BaseModel):
    """
    A savings goal.

    current_amount is the initial amount plus every contribution. The
    store never recomputes it: callers build the new goal with
    with_contribution() and pass it to update_goal.
    """
    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_record_id, min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: Money = Field(..., gt=0)
    current_amount: Money = Field(
        default=Decimal("0"),
        ge=0,
        description="May exceed target_amount"
    )
    date: RecordDate = Field(
        default_factory=dt.date.today,
        description="Creation date"
    )
    contributions: tuple[Contribution, ...] = ()

    def with_contribution(self, contribution: Contribution) -> 'Goal':
        """Return a copy of this goal with the contribution applied."""
        return self.model_copy(
            update={
                "current_amount": self.current_amount + contribution.amount,
                "contributions": self.contributions + (contribution,),
            }
        )


class Investment(BaseModel):
    """An investment position."""
    model_config = RECORD_CONFIG

    id: str = Field(default_factory=new_record_id, min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    amount: Money = Field(
        ...,
        ge=0,
        description="Initial principal"
    )
    current_value: Optional[Money] = Field(default=None, ge=0)
    notes: Optional[str] = Field(default=None, max_length=1000)
    date: RecordDate

    @property
    def value(self) -> Decimal:
        """Current value when known, otherwise the principal."""
        if self.current_value is None:
            return self.amount
        return self.current_value

    @property
    def gain(self) -> Optional[Decimal]:
        """Current value minus principal, None without a current value."""
        if self.current_value is None:
            return None
        return self.current_value - self.amount

    @property
    def return_percentage(self) -> Optional[float]:
        """Gain as a percentage of principal."""
        gain = self.gain
        if gain is None or self.amount == 0:
            return None
        return float(gain / self.amount * 100)


class UserSettings(BaseModel):
    """Per-user preferences stored alongside the records."""
    model_config = RECORD_CONFIG

    currency: str = Field(default=DEFAULT_CURRENCY, min_length=1, max_length=10)
    dark_mode: bool = True
    custom_categories: tuple[Category, ...] = ()
    disabled_default_categories: tuple[str, ...] = ()

    # Legacy overrides kept for older documents
    monthly_income: Optional[Money] = None
    monthly_spending_limit: Optional[Money] = None

    def available_categories(self) -> list[str]:
        """Enabled default categories followed by custom ones."""
        disabled = set(self.disabled_default_categories)
        names = [name for name in DEFAULT_CATEGORIES if name not in disabled]
        names.extend(category.name for category in self.custom_categories)
        return names


# =============================================================================
# AGGREGATE ROOT
# =============================================================================

class AppState(BaseModel):
    """
    Everything one user has recorded.

    This is the unit of persistence and of remote sync.
    """
    model_config = RECORD_CONFIG

    expenses: tuple[Expense, ...] = ()
    incomes: tuple[Income, ...] = ()
    goals: tuple[Goal, ...] = ()
    investments: tuple[Investment, ...] = ()
    settings: UserSettings = Field(default_factory=UserSettings)

    @classmethod
    def default(cls) -> 'AppState':
        """The empty state a new user starts with."""
        return cls()

    def goal_contributions(self) -> tuple[Contribution, ...]:
        """All contributions across all goals."""
        return tuple(
            contribution
            for goal in self.goals
            for contribution in goal.contributions
        )
