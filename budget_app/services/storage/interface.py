"""
Abstract Storage Interfaces

DESIGN DECISION: The remote document service and the local fallback store
are both hidden behind small abstract interfaces. This allows us to:
1. Swap Google Sheets for another document service later
2. Use in-memory storage for testing
3. Keep the sync logic decoupled from any storage implementation

The document interface is intentionally tiny: get, set and subscribe on
one JSON document per user. Nothing else is needed for state sync.
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class DocumentEvent(BaseModel):
    """
    One notification from a document subscription.

    Exactly one of these holds:
    - error is set: the remote could not be read this time
    - document is None: the document does not exist
    - document is a dict: the current document content
    """
    model_config = ConfigDict(frozen=True)

    key: str
    document: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def exists(self) -> bool:
        return self.error is None and self.document is not None

    @property
    def failed(self) -> bool:
        return self.error is not None


_CLOSED = object()


class DocumentSubscription:
    """
    A cancellable stream of DocumentEvents for one key.

    Iterate with `async for`. The stream ends once cancel() is called;
    events still queued at that point are dropped.
    """

    def __init__(self, key: str, on_cancel: Optional[Callable[[], None]] = None):
        self.key = key
        self._queue: asyncio.Queue = asyncio.Queue()
        self._cancelled = False
        self._on_cancel = on_cancel

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def push(self, event: DocumentEvent) -> None:
        """Deliver an event to the subscriber. Ignored after cancel()."""
        if not self._cancelled:
            self._queue.put_nowait(event)

    def cancel(self) -> None:
        """Stop the stream and release whatever feeds it."""
        if self._cancelled:
            return
        self._cancelled = True
        self._queue.put_nowait(_CLOSED)
        if self._on_cancel is not None:
            self._on_cancel()

    def __aiter__(self) -> "DocumentSubscription":
        return self

    async def __anext__(self) -> DocumentEvent:
        if self._cancelled:
            raise StopAsyncIteration
        event = await self._queue.get()
        if event is _CLOSED or self._cancelled:
            raise StopAsyncIteration
        return event


class DocumentStoreInterface(ABC):
    """
    Abstract interface for the remote per-user document service.

    Any implementation (Google Sheets, in-memory, ...) must implement
    these methods. Documents are JSON-compatible dicts.
    """

    @abstractmethod
    async def get(self, key: str) -> Optional[dict[str, Any]]:
        """
        Read a document.

        Args:
            key: Opaque user identifier

        Returns:
            The document, or None if it does not exist

        Raises:
            RemoteUnavailableError: If the service cannot be reached
        """
        pass

    @abstractmethod
    async def set(self, key: str, document: dict[str, Any]) -> bool:
        """
        Create or overwrite a document.

        Args:
            key: Opaque user identifier
            document: JSON-compatible document

        Returns:
            True if written successfully

        Raises:
            RemoteUnavailableError: If the service cannot be reached
            StorageError: If the write fails for another reason
        """
        pass

    @abstractmethod
    def subscribe(self, key: str) -> DocumentSubscription:
        """
        Watch a document for changes.

        The first event describes the document as it is now; later events
        follow every change. Failures arrive as error events and do not
        end the stream. Must be called from a running event loop.

        Args:
            key: Opaque user identifier

        Returns:
            A subscription to iterate and eventually cancel
        """
        pass


class KeyValueStoreInterface(ABC):
    """
    Abstract interface for the local string key-value store.

    Used as an offline save slot when no remote session exists.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent."""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a string under key, replacing any previous value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key. Missing keys are ignored."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class RemoteUnavailableError(StorageError):
    """Could not reach the remote document service."""
    pass
