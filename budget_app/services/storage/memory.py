"""
In-Memory Storage

Process-local implementations of the storage interfaces. Used for tests,
demos and as the local fallback when nothing is persisted to disk.
"""

import copy
import json
from typing import Any, Optional

from budget_app.services.storage.interface import (
    DocumentEvent,
    DocumentStoreInterface,
    DocumentSubscription,
    KeyValueStoreInterface,
    StorageError,
)


class InMemoryDocumentStore(DocumentStoreInterface):
    """
    Document store held in a dict.

    Documents are deep-copied on the way in and out so callers can never
    share structure with the stored value. Every set() notifies each
    subscriber of that key.
    """

    def __init__(self, documents: Optional[dict[str, dict[str, Any]]] = None):
        self._documents: dict[str, dict[str, Any]] = copy.deepcopy(documents or {})
        self._subscriptions: dict[str, list[DocumentSubscription]] = {}

    async def get(self, key: str) -> Optional[dict[str, Any]]:
        document = self._documents.get(key)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, key: str, document: dict[str, Any]) -> bool:
        try:
            # Round-trip through JSON so only JSON-compatible documents are kept
            stored = json.loads(json.dumps(document))
        except (TypeError, ValueError) as e:
            raise StorageError(f"Document is not JSON-serializable: {e}")
        self._documents[key] = stored
        self._notify(key)
        return True

    def subscribe(self, key: str) -> DocumentSubscription:
        subscription = DocumentSubscription(
            key,
            on_cancel=lambda: self._remove_subscription(key, subscription),
        )
        self._subscriptions.setdefault(key, []).append(subscription)
        subscription.push(self._event(key))
        return subscription

    def subscriber_count(self, key: str) -> int:
        return len(self._subscriptions.get(key, []))

    def _event(self, key: str) -> DocumentEvent:
        document = self._documents.get(key)
        return DocumentEvent(
            key=key,
            document=copy.deepcopy(document) if document is not None else None,
        )

    def _notify(self, key: str) -> None:
        for subscription in list(self._subscriptions.get(key, [])):
            subscription.push(self._event(key))

    def _remove_subscription(self, key: str, subscription: DocumentSubscription) -> None:
        subscriptions = self._subscriptions.get(key, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)


class InMemoryKeyValueStore(KeyValueStoreInterface):
    """Key-value store held in a dict."""

    def __init__(self, values: Optional[dict[str, str]] = None):
        self._values = dict(values or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)
