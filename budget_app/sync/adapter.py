"""
Remote Sync Adapter

Keeps a StateStore eventually consistent with the user's remote document.

Protocol:
1. Subscribe to the document. Remote content is applied with set_state
   only when its canonical JSON differs from what this adapter last wrote
   or received. A missing document is created from the default state.
   A document that cannot be decoded is reported and never overwritten.
2. Once the remote has been read, every local change is compared with the
   last known remote value and, if different, written after a quiet
   period (debounce). Only the most recent state is written.
3. Failures set an error status with a readable message. The adapter
   keeps working and retries on the next change or flush().

DESIGN DECISION: There is no version counter. A remote update that
arrives while a local write is pending is not applied; the pending write
overwrites it (last-write-wins, local changes favoured inside the
debounce window). Store and remote end up holding the same state.
"""

import asyncio
import contextlib
from enum import Enum
from typing import Optional

from budget_app.config import get_settings
from budget_app.log import get_logger
from budget_app.models import AppState
from budget_app.services.storage.interface import (
    DocumentEvent,
    DocumentStoreInterface,
    DocumentSubscription,
    StorageError,
)
from budget_app.state import StateStore
from budget_app.sync.serialization import (
    SerializationError,
    decode_state,
    encode_state,
    serialize_state,
)
from budget_app.sync.timer import DebounceTimer


class SyncStatus(str, Enum):
    """
    Where the adapter is in its lifecycle.

    UNSUBSCRIBED -> SUBSCRIBING -> SYNCED <-> PENDING_WRITE
    SYNCED / PENDING_WRITE -> ERROR -> SYNCED on the next success
    any -> UNSUBSCRIBED on stop()
    """
    UNSUBSCRIBED = "unsubscribed"
    SUBSCRIBING = "subscribing"
    SYNCED = "synced"
    PENDING_WRITE = "pending_write"
    ERROR = "error"


class RemoteSyncAdapter:
    """
    Bridges one StateStore and one user's remote document.

    The adapter never mutates a snapshot. It reads the snapshots the store
    hands to its listener and changes the store only through set_state.
    """

    def __init__(
        self,
        store: StateStore,
        remote: DocumentStoreInterface,
        user_id: str,
        debounce_seconds: Optional[float] = None,
    ):
        if debounce_seconds is None:
            debounce_seconds = get_settings().sync.debounce_seconds
        self._store = store
        self._remote = remote
        self._user_id = user_id
        self._timer = DebounceTimer(debounce_seconds, self.flush)
        self._write_lock = asyncio.Lock()

        self._status = SyncStatus.UNSUBSCRIBED
        self._last_error: Optional[str] = None
        self._last_remote: Optional[str] = None
        self._pending: Optional[AppState] = None
        self._pending_serialized: Optional[str] = None
        self._applying_remote = False
        # Writes are allowed only once the remote has been read successfully
        self._remote_loaded = False

        self._subscription: Optional[DocumentSubscription] = None
        self._listen_task: Optional[asyncio.Task] = None
        self._unsubscribe_store = None
        self._logger = get_logger(__name__).bind(user_id=user_id)

    @property
    def user_id(self) -> str:
        return self._user_id

    @property
    def status(self) -> SyncStatus:
        return self._status

    @property
    def last_error(self) -> Optional[str]:
        """Message of the most recent failure, cleared on the next success."""
        return self._last_error

    @property
    def has_pending_write(self) -> bool:
        return self._pending is not None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to the remote document and to local changes."""
        if self._status is not SyncStatus.UNSUBSCRIBED:
            return
        self._status = SyncStatus.SUBSCRIBING
        self._subscription = self._remote.subscribe(self._user_id)
        self._unsubscribe_store = self._store.subscribe(self.schedule_write)
        self._listen_task = asyncio.get_running_loop().create_task(
            self._listen(self._subscription)
        )
        self._logger.info("remote_sync_started")

    async def stop(self) -> None:
        """
        Tear down the session.

        Cancels the pending write and both subscriptions. Nothing is
        written after this returns.
        """
        self._timer.cancel()
        self._pending = None
        self._pending_serialized = None
        self._remote_loaded = False

        if self._unsubscribe_store is not None:
            self._unsubscribe_store()
            self._unsubscribe_store = None
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None
        if self._listen_task is not None:
            self._listen_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._listen_task
            self._listen_task = None

        self._status = SyncStatus.UNSUBSCRIBED
        self._logger.info("remote_sync_stopped")

    # -------------------------------------------------------------------------
    # Remote -> local
    # -------------------------------------------------------------------------

    async def _listen(self, subscription: DocumentSubscription) -> None:
        async for event in subscription:
            await self.handle_event(event)

    async def handle_event(self, event: DocumentEvent) -> None:
        """Apply one notification from the remote subscription."""
        if event.failed:
            self._fail(f"Could not load your data: {event.error}")
            return

        if event.document is None:
            self._remote_loaded = True
            await self._initialize_remote()
            return

        try:
            state = decode_state(event.document)
        except SerializationError as e:
            # Writing now would replace a document this version cannot read
            self._remote_loaded = False
            self._drop_pending()
            self._logger.warning("remote_document_invalid", error=str(e))
            self._fail(f"Your saved data could not be read: {e}")
            return

        self._remote_loaded = True
        serialized = serialize_state(state)
        if serialized == self._last_remote:
            self._logger.debug("remote_update_suppressed")
            self._settle()
            return

        self._last_remote = serialized
        if self._pending is not None:
            # The pending local write will overwrite this remote content
            self._settle()
            self._logger.info("remote_update_superseded")
            return

        self._apply_remote(state)
        self._settle()
        self._logger.info("remote_update_applied")

    async def _initialize_remote(self) -> None:
        """Create the missing document from the default state and adopt it."""
        if self._pending is not None:
            # The pending write creates the document instead
            self._settle()
            return

        default_state = AppState.default()
        try:
            await self._remote.set(self._user_id, encode_state(default_state))
        except StorageError as e:
            self._fail(f"Could not create your data: {e}")
            return

        self._last_remote = serialize_state(default_state)
        self._logger.info("remote_document_initialized")
        if self._pending is not None:
            # A local change made during the write goes out next; keep it
            self._settle()
            return

        self._apply_remote(default_state)
        self._settle()

    def _apply_remote(self, state: AppState) -> None:
        # Changes coming from the remote must not schedule a write back
        self._applying_remote = True
        try:
            self._store.set_state(state)
        finally:
            self._applying_remote = False

    # -------------------------------------------------------------------------
    # Local -> remote
    # -------------------------------------------------------------------------

    def schedule_write(self, state: AppState) -> None:
        """
        Queue a local snapshot for writing.

        Registered as the store listener. Nothing is queued until the remote
        document has been read. A state equal to the last known remote value
        drops any pending write; anything else becomes the pending state and
        restarts the debounce timer.
        """
        if self._applying_remote or not self._remote_loaded:
            return
        if self._status is SyncStatus.UNSUBSCRIBED:
            return

        serialized = serialize_state(state)
        if serialized == self._last_remote:
            if self._pending is not None:
                self._drop_pending()
                self._settle()
            return

        self._pending = state
        self._pending_serialized = serialized
        self._status = SyncStatus.PENDING_WRITE
        self._timer.arm()

    async def flush(self) -> bool:
        """
        Write the pending state now.

        Returns True when there is nothing left to write. On failure the
        state stays pending so the next change or flush retries it.
        """
        self._timer.disarm()
        async with self._write_lock:
            if self._pending is None:
                return True
            state, serialized = self._pending, self._pending_serialized

            if serialized == self._last_remote:
                self._clear_pending(serialized)
                self._settle()
                return True

            try:
                await self._remote.set(self._user_id, encode_state(state))
            except StorageError as e:
                self._fail(f"Could not save your changes: {e}")
                return False

            self._last_remote = serialized
            self._clear_pending(serialized)
            self._settle()
            self._logger.info("remote_write_succeeded")
            return self._pending is None

    def _drop_pending(self) -> None:
        self._timer.disarm()
        self._pending = None
        self._pending_serialized = None

    def _clear_pending(self, written: str) -> None:
        # A newer change may have arrived while writing; keep that one
        if self._pending_serialized == written:
            self._pending = None
            self._pending_serialized = None

    # -------------------------------------------------------------------------
    # Status
    # -------------------------------------------------------------------------

    def _settle(self) -> None:
        """Record a successful operation."""
        if self._status is SyncStatus.UNSUBSCRIBED:
            return
        self._last_error = None
        if self._pending is not None:
            self._status = SyncStatus.PENDING_WRITE
        else:
            self._status = SyncStatus.SYNCED

    def _fail(self, message: str) -> None:
        self._last_error = message
        if self._status is not SyncStatus.UNSUBSCRIBED:
            self._status = SyncStatus.ERROR
        self._logger.warning("remote_sync_failed", error=message)
