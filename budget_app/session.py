"""
Session Composition

This module ties the components together for one user session:
StateStore + (RemoteSyncAdapter | local fallback).

DESIGN DECISION: The session is built once and handed to the view layer.
- Signed in with a remote store: the remote document is the source of
  truth and the adapter keeps the store in sync with it
- Otherwise: the store is seeded from the local save slot and every change
  is written back to it

The view layer only ever talks to session.store and the summary helpers.
"""

from typing import Optional

from pydantic import ValidationError

from budget_app.aggregation import PeriodSummary, summarize_window
from budget_app.config import get_settings
from budget_app.log import bind_log_context, get_logger, set_log_level
from budget_app.models import AppState, Window
from budget_app.services.storage import (
    DocumentStoreInterface,
    FileKeyValueStore,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    LocalStateRepository,
    StorageError,
)
from budget_app.state import StateStore
from budget_app.sync import RemoteSyncAdapter, SyncStatus


class BudgetSession:
    """
    One user's session.

    Flow:
    1. start(user_id) → remote sync, or start() → local fallback
    2. Commands go through session.store
    3. end() → cancel pending writes and subscriptions
    """

    def __init__(
        self,
        store: Optional[StateStore] = None,
        remote: Optional[DocumentStoreInterface] = None,
        local: Optional[LocalStateRepository] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self._store = store or StateStore()
        self._remote = remote
        self._local = local
        self._debounce_seconds = debounce_seconds
        self._adapter: Optional[RemoteSyncAdapter] = None
        self._unsubscribe_local = None
        self._user_id: Optional[str] = None
        self._logger = get_logger(__name__)

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def state(self) -> AppState:
        return self._store.state

    @property
    def user_id(self) -> Optional[str]:
        return self._user_id

    @property
    def is_remote(self) -> bool:
        return self._adapter is not None

    @property
    def sync_status(self) -> SyncStatus:
        if self._adapter is None:
            return SyncStatus.UNSUBSCRIBED
        return self._adapter.status

    @property
    def sync_error(self) -> Optional[str]:
        """Inline, non-fatal error message for the view layer."""
        if self._adapter is None:
            return None
        return self._adapter.last_error

    async def start(self, user_id: Optional[str] = None) -> None:
        """
        Begin a session.

        A previous session on this object is ended first.
        """
        await self.end()

        if user_id and self._remote is not None:
            self._adapter = RemoteSyncAdapter(
                self._store,
                self._remote,
                user_id,
                debounce_seconds=self._debounce_seconds,
            )
            await self._adapter.start()
        elif self._local is not None:
            self._store.set_state(self._local.load_state())
            self._unsubscribe_local = self._store.subscribe(self._local.save_state)

        self._user_id = user_id
        self._logger.info(
            "session_started",
            user_id=user_id,
            remote=self.is_remote,
        )

    async def end(self) -> None:
        """End the session. Safe to call when nothing is running."""
        if self._adapter is not None:
            await self._adapter.stop()
            self._adapter = None
        if self._unsubscribe_local is not None:
            self._unsubscribe_local()
            self._unsubscribe_local = None
        if self._user_id is not None:
            self._logger.info("session_ended", user_id=self._user_id)
        self._user_id = None

    async def flush(self) -> bool:
        """Write any pending change to the remote now."""
        if self._adapter is None:
            return True
        return await self._adapter.flush()

    def clear_all_data(self) -> AppState:
        """
        Reset everything to the default state.

        The reset reaches the remote document through the normal write path.
        """
        state = self._store.clear_data()
        if self._local is not None:
            self._local.clear()
        self._logger.info("data_cleared", user_id=self._user_id)
        return state

    def summary(self, window: Optional[Window] = None) -> PeriodSummary:
        """Headline figures for a window (the current month by default)."""
        return summarize_window(self._store.state, window or Window.current_month())


def create_session(use_remote: bool = True) -> BudgetSession:
    """
    Factory function to create a session from settings.

    Args:
        use_remote: Whether to set up Google Sheets as the remote store.
                    Set to False to run on the local save slot only.

    Returns:
        A session that has not been started yet
    """
    settings = get_settings()
    app_settings = settings.app
    set_log_level("DEBUG" if app_settings.debug_mode else app_settings.log_level)
    bind_log_context(environment=app_settings.app_environment)
    logger = get_logger(__name__)

    local_settings = settings.local_storage
    local = LocalStateRepository(
        FileKeyValueStore(local_settings.path),
        key=local_settings.storage_key,
    )

    sync_settings = settings.sync
    remote = None
    if use_remote:
        try:
            remote = GoogleSheetsDocumentStore(
                GoogleSheetsClient(),
                poll_interval_seconds=sync_settings.poll_interval_seconds,
            )
        except (ValidationError, StorageError) as e:
            # Remote not configured - continue on the local save slot
            logger.warning("remote_storage_not_configured", error=str(e))

    return BudgetSession(
        remote=remote,
        local=local,
        debounce_seconds=sync_settings.debounce_seconds,
    )
