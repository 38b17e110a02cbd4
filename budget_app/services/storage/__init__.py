"""
Storage Services Package

Provides abstract interfaces and concrete implementations for the remote
per-user document store and the local fallback key-value store.
"""

from budget_app.services.storage.interface import (
    DocumentEvent,
    DocumentStoreInterface,
    DocumentSubscription,
    KeyValueStoreInterface,
    NotFoundError,
    RemoteUnavailableError,
    StorageError,
)
from budget_app.services.storage.memory import (
    InMemoryDocumentStore,
    InMemoryKeyValueStore,
)
from budget_app.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
)
from budget_app.services.storage.local import (
    DEFAULT_STORAGE_KEY,
    FileKeyValueStore,
    LocalStateRepository,
)

__all__ = [
    # Interfaces
    "DocumentEvent",
    "DocumentStoreInterface",
    "DocumentSubscription",
    "KeyValueStoreInterface",
    # Exceptions
    "NotFoundError",
    "RemoteUnavailableError",
    "StorageError",
    # In-memory implementation
    "InMemoryDocumentStore",
    "InMemoryKeyValueStore",
    # Google Sheets implementation
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    # Local fallback
    "DEFAULT_STORAGE_KEY",
    "FileKeyValueStore",
    "LocalStateRepository",
]
