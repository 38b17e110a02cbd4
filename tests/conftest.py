"""
Shared fixtures for Budget App tests.

No test talks to a real remote service: remote documents live in
RecordingDocumentStore, an in-memory store that records every write.
"""

import asyncio
import datetime as dt
from decimal import Decimal

import pytest

from budget_app.models import (
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
)
from budget_app.services.storage import (
    DocumentEvent,
    InMemoryDocumentStore,
    RemoteUnavailableError,
)


class RecordingDocumentStore(InMemoryDocumentStore):
    """In-memory document store that records writes and can be made to fail."""

    def __init__(self, documents=None):
        super().__init__(documents)
        self.writes: list[tuple[str, dict]] = []
        self.fail_writes = False
        self.write_delay = 0.0

    async def set(self, key, document):
        if self.fail_writes:
            raise RemoteUnavailableError("Remote service unavailable")
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        self.writes.append((key, document))
        return await super().set(key, document)

    async def push_remote(self, key, document):
        """Change a document as another device would, without recording it."""
        return await super().set(key, document)

    def push_error(self, key, message):
        """Deliver an error event to every subscriber of key."""
        for subscription in list(self._subscriptions.get(key, [])):
            subscription.push(DocumentEvent(key=key, error=message))


async def wait_for(predicate, timeout: float = 1.0) -> None:
    """Yield to the event loop until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(0.005)


@pytest.fixture
def recording_store():
    return RecordingDocumentStore()


@pytest.fixture
def march_expenses():
    """Expenses spread over March 2024 plus one in April."""
    return [
        Expense(id="e1", amount=Decimal("300"), category="Food & Dining", date=dt.date(2024, 3, 1)),
        Expense(id="e2", amount=Decimal("100"), category="Transportation", date=dt.date(2024, 3, 15)),
        Expense(id="e3", amount=Decimal("100"), category="Food & Dining", date=dt.date(2024, 3, 31)),
        Expense(id="e4", amount=Decimal("999"), category="Shopping", date=dt.date(2024, 4, 1)),
    ]


@pytest.fixture
def recurring_incomes():
    """Monthly 1000, weekly 100 and yearly 1200: 1500 per month."""
    return [
        Income(
            id="i1",
            name="Salary",
            amount=Decimal("1000"),
            type=IncomeType.SALARY,
            frequency=IncomeFrequency.MONTHLY,
            is_recurring=True,
            date=dt.date(2023, 1, 1),
        ),
        Income(
            id="i2",
            name="Tutoring",
            amount=Decimal("100"),
            type=IncomeType.FREELANCE,
            frequency=IncomeFrequency.WEEKLY,
            is_recurring=True,
            date=dt.date(2023, 6, 1),
        ),
        Income(
            id="i3",
            name="Bonus",
            amount=Decimal("1200"),
            type=IncomeType.BUSINESS,
            frequency=IncomeFrequency.YEARLY,
            is_recurring=True,
            date=dt.date(2022, 12, 1),
        ),
    ]


@pytest.fixture
def full_state(march_expenses, recurring_incomes):
    """A state with something in every collection and non-default settings."""
    goal = Goal(
        id="g1",
        name="Emergency fund",
        target_amount=Decimal("1000"),
        current_amount=Decimal("200"),
        date=dt.date(2024, 1, 1),
        contributions=(
            Contribution(amount=Decimal("200"), date=dt.date(2024, 3, 10), note="Kickoff"),
        ),
    )
    investment = Investment(
        id="v1",
        name="Index fund",
        amount=Decimal("5000"),
        current_value=Decimal("5500"),
        date=dt.date(2023, 5, 1),
    )
    settings = UserSettings(
        currency="USD",
        dark_mode=False,
        custom_categories=(Category(id="c1", name="Pets"),),
        disabled_default_categories=("Travel",),
    )
    return AppState(
        expenses=tuple(march_expenses),
        incomes=tuple(recurring_incomes),
        goals=(goal,),
        investments=(investment,),
        settings=settings,
    )
