"""
Tests for RemoteSyncAdapter.

The remote is an in-memory document store and the debounce delay is
shortened so the flows run in milliseconds.
"""

import asyncio
from datetime import date
from decimal import Decimal

import pytest

from budget_app.models import AppState, Expense
from budget_app.state import StateStore
from budget_app.sync import RemoteSyncAdapter, SyncStatus, encode_state, serialize_state

from conftest import wait_for


USER = "user-1"
DEBOUNCE = 0.05


def expense(expense_id: str, amount: str = "10") -> Expense:
    return Expense(id=expense_id, amount=Decimal(amount), category="Other", date=date(2024, 3, 1))


async def started_adapter(recording_store, store=None):
    store = store or StateStore()
    adapter = RemoteSyncAdapter(store, recording_store, USER, debounce_seconds=DEBOUNCE)
    await adapter.start()
    await wait_for(lambda: adapter.status is SyncStatus.SYNCED)
    return store, adapter


class TestSubscription:
    """Tests for remote to local updates."""

    @pytest.mark.asyncio
    async def test_missing_document_is_initialized(self, recording_store):
        """Test a new user gets the default document written and applied."""
        store, adapter = await started_adapter(recording_store)

        assert recording_store.writes == [(USER, encode_state(AppState.default()))]
        assert store.state == AppState.default()
        await adapter.stop()

    @pytest.mark.asyncio
    async def test_existing_document_is_applied(self, recording_store, full_state):
        """Test the stored document replaces the local state."""
        await recording_store.push_remote(USER, encode_state(full_state))

        store, adapter = await started_adapter(recording_store)

        assert store.state == full_state
        assert recording_store.writes == []
        await adapter.stop()

    @pytest.mark.asyncio
    async def test_remote_change_is_applied_without_echo(self, recording_store, full_state):
        """Test a change from another device is applied and not written back."""
        store, adapter = await started_adapter(recording_store)
        writes_before = len(recording_store.writes)

        await recording_store.push_remote(USER, encode_state(full_state))
        await wait_for(lambda: store.state == full_state)
        await asyncio.sleep(DEBOUNCE * 3)

        assert len(recording_store.writes) == writes_before
        assert adapter.status is SyncStatus.SYNCED
        await adapter.stop()

    @pytest.mark.asyncio
    async def test_invalid_document_is_reported_and_kept(self, recording_store, full_state):
        """Test an unreadable remote document is reported and never overwritten."""
        store, adapter = await started_adapter(recording_store, StateStore(full_state))
        state_before = store.state
        writes_before = len(recording_store.writes)
        invalid = {"expenses": "not a list"}

        await recording_store.push_remote(USER, invalid)
        await wait_for(lambda: adapter.status is SyncStatus.ERROR)
        assert store.state is state_before
        assert "could not be read" in adapter.last_error

        store.add_expense(expense("e1"))
        await asyncio.sleep(DEBOUNCE * 3)

        assert len(recording_store.writes) == writes_before
        assert not adapter.has_pending_write
        assert await recording_store.get(USER) == invalid
        await adapter.stop()

    @pytest.mark.asyncio
    async def test_timestamp_dates_are_read(self, recording_store):
        """Test documents with full ISO timestamps as dates load and survive edits."""
        document = {
            "expenses": [],
            "incomes": [],
            "goals": [{
                "id": "g1",
                "name": "Car",
                "targetAmount": 20000,
                "currentAmount": 1500.5,
                "date": "2024-03-05T10:23:45.123Z",
                "contributions": [],
            }],
            "investments": [{
                "id": "v1",
                "name": "Gold",
                "amount": 3000,
                "date": "2023-11-20T08:00:00.000Z",
            }],
            "settings": {"currency": "SAR", "darkMode": True},
        }
        await recording_store.push_remote(USER, document)

        store, adapter = await started_adapter(recording_store)
        assert store.state.goals[0].date == date(2024, 3, 5)
        assert store.state.investments[0].date == date(2023, 11, 20)

        store.add_expense(expense("e1"))
        await wait_for(lambda: len(recording_store.writes) == 1)

        written = recording_store.writes[0][1]
        assert written["goals"][0]["name"] == "Car"
        assert written["goals"][0]["date"] == "2024-03-05"
        assert written["goals"][0]["currentAmount"] == 1500.5
        assert written["investments"][0]["id"] == "v1"
        assert len(written["expenses"]) == 1
        await adapter.stop()

    @pytest.mark.asyncio
    async def test_change_during_initialization_is_kept(self, recording_store):
        """Test an edit made while the default document is being created is written."""
        recording_store.write_delay = 0.05
        store = StateStore()
        adapter = RemoteSyncAdapter(store, recording_store, USER, debounce_seconds=DEBOUNCE)
        await adapter.start()
        await asyncio.sleep(0.02)

        store.add_expense(expense("e1"))
        await wait_for(
            lambda: not adapter.has_pending_write and adapter.status is SyncStatus.SYNCED
        )

        assert [e.id for e in store.state.expenses] == ["e1"]
        remote = await recording_store.get(USER)
        assert [e["id"] for e in remote["expenses"]] == ["e1"]
        await adapter.stop()

    @pytest.mark.asyncio
    async def test_error_event_sets_error_status(self, recording_store, full_state):
        """Test a failed read is surfaced and recovered from."""
        store, adapter = await started_adapter(recording_store)

        recording_store.push_error(USER, "network down")
        await wait_for(lambda: adapter.status is SyncStatus.ERROR)
        assert "network down" in adapter.last_error

        await recording_store.push_remote(USER, encode_state(full_state))
        await wait_for(lambda: adapter.status is SyncStatus.SYNCED)
        assert adapter.last_error is None
        assert store.state == full_state
        await adapter.stop()


class TestWrites:
    """Tests for local to remote writes."""

    @pytest.mark.asyncio
    async def test_rapid_changes_collapse_into_one_write(self, recording_store):
        """Test N quick changes give one write holding the final state."""
        store, adapter = await started_adapter(recording_store)
        writes_before = len(recording_store.writes)

        for index in range(5):
            store.add_expense(expense(f"e{index}"))
        assert adapter.status is SyncStatus.PENDING_WRITE

        await wait_for(lambda: len(recording_store.writes) == writes_before + 1)
        await asyncio.sleep(DEBOUNCE * 3)

        assert len(recording_store.writes) == writes_before + 1
        assert recording_store.writes[-1] == (USER, encode_state(store.state))
        assert len(store.state.expenses) == 5
        assert adapter.status is SyncStatus.SYNCED
        await adapter.stop()

    @pytest.mark.asyncio
    async def test_identical_state_written_at_most_once(self, recording_store):
        """Test writing the same serialized state twice writes once."""
        store, adapter = await started_adapter(recording_store)
        writes_before = len(recording_store.writes)
        store.add_expense(expense("a"))

        assert await adapter.flush() is True
        adapter.schedule_write(store.state)
        assert await adapter.flush() is True

        assert len(recording_store.writes) == writes_before + 1
        assert not adapter.has_pending_write
        await adapter.stop()

    @pytest.mark.asyncio
    async def test_reverting_to_remote_state_cancels_write(self, recording_store):
        """Test undoing a change before the flush writes nothing."""
        store, adapter = await started_adapter(recording_store)
        writes_before = len(recording_store.writes)

        store.add_expense(expense("a"))
        store.delete_expense("a")
        await asyncio.sleep(DEBOUNCE * 3)

        assert len(recording_store.writes) == writes_before
        assert adapter.status is SyncStatus.SYNCED
        await adapter.stop()

    @pytest.mark.asyncio
    async def test_write_failure_sets_error_and_retries(self, recording_store):
        """Test a failed write keeps the state pending until a later flush."""
        store, adapter = await started_adapter(recording_store)
        recording_store.fail_writes = True

        store.add_expense(expense("a"))
        await wait_for(lambda: adapter.status is SyncStatus.ERROR)
        assert "Could not save your changes" in adapter.last_error
        assert adapter.has_pending_write

        recording_store.fail_writes = False
        assert await adapter.flush() is True
        assert adapter.status is SyncStatus.SYNCED
        assert adapter.last_error is None
        assert recording_store.writes[-1] == (USER, encode_state(store.state))
        await adapter.stop()

    @pytest.mark.asyncio
    async def test_pending_local_change_wins_over_remote(self, recording_store, full_state):
        """Test a remote update inside the debounce window is overwritten."""
        store, adapter = await started_adapter(recording_store)

        store.add_expense(expense("local"))
        local_state = store.state
        await recording_store.push_remote(USER, encode_state(full_state))
        await asyncio.sleep(0.01)
        assert store.state is local_state

        await wait_for(lambda: not adapter.has_pending_write)
        await asyncio.sleep(0.02)

        remote_document = await recording_store.get(USER)
        assert remote_document == encode_state(local_state)
        assert serialize_state(store.state) == serialize_state(local_state)
        await adapter.stop()


class TestTeardown:
    """Tests for stopping the adapter."""

    @pytest.mark.asyncio
    async def test_no_write_after_stop(self, recording_store):
        """Test a pending write is dropped on teardown."""
        store, adapter = await started_adapter(recording_store)
        writes_before = len(recording_store.writes)

        store.add_expense(expense("a"))
        await adapter.stop()
        await asyncio.sleep(DEBOUNCE * 3)

        assert len(recording_store.writes) == writes_before
        assert adapter.status is SyncStatus.UNSUBSCRIBED
        assert recording_store.subscriber_count(USER) == 0

    @pytest.mark.asyncio
    async def test_changes_after_stop_are_ignored(self, recording_store):
        """Test the store is no longer watched after stop."""
        store, adapter = await started_adapter(recording_store)
        await adapter.stop()

        store.add_expense(expense("a"))
        assert not adapter.has_pending_write
        assert adapter.status is SyncStatus.UNSUBSCRIBED

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, recording_store):
        """Test stopping twice is harmless."""
        _, adapter = await started_adapter(recording_store)
        await adapter.stop()
        await adapter.stop()
        assert adapter.status is SyncStatus.UNSUBSCRIBED
