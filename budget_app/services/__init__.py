"""Services package."""

from budget_app.services.storage import (
    DocumentStoreInterface,
    FileKeyValueStore,
    GoogleSheetsClient,
    GoogleSheetsDocumentStore,
    InMemoryDocumentStore,
    InMemoryKeyValueStore,
    KeyValueStoreInterface,
    LocalStateRepository,
    NotFoundError,
    RemoteUnavailableError,
    StorageError,
)

__all__ = [
    "DocumentStoreInterface",
    "FileKeyValueStore",
    "GoogleSheetsClient",
    "GoogleSheetsDocumentStore",
    "InMemoryDocumentStore",
    "InMemoryKeyValueStore",
    "KeyValueStoreInterface",
    "LocalStateRepository",
    "NotFoundError",
    "RemoteUnavailableError",
    "StorageError",
]
