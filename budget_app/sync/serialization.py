"""
AppState Serialization

The remote document is the camelCase JSON form of AppState. Before it is
written it is sanitized: no key may hold None and no list may contain
None, at any depth. The canonical string form (sorted keys, no
whitespace) is what the sync adapter compares to detect real changes.
"""

import json
from typing import Any

from pydantic import ValidationError

from budget_app.models import AppState


class SerializationError(ValueError):
    """A document could not be turned into an AppState."""
    pass


def sanitize(value: Any) -> Any:
    """
    Recursively drop None from dicts and lists.

    Dicts lose keys whose value is None, lists lose None elements.
    Everything else is returned unchanged. Idempotent.
    """
    if isinstance(value, dict):
        return {
            key: sanitize(item)
            for key, item in value.items()
            if item is not None
        }
    if isinstance(value, (list, tuple)):
        return [sanitize(item) for item in value if item is not None]
    return value


def encode_state(state: AppState) -> dict[str, Any]:
    """The sanitized JSON document for a state."""
    return sanitize(state.model_dump(mode="json", by_alias=True))


def serialize_state(state: AppState) -> str:
    """Canonical JSON text of a state, used for equality checks and storage."""
    return json.dumps(encode_state(state), sort_keys=True, separators=(",", ":"))


def decode_state(document: Any) -> AppState:
    """
    Build an AppState from a stored document.

    Raises:
        SerializationError: If the document does not describe a valid state
    """
    if not isinstance(document, dict):
        raise SerializationError(
            f"Expected a JSON object, got {type(document).__name__}"
        )
    try:
        return AppState.model_validate(document)
    except ValidationError as e:
        raise SerializationError(f"Invalid AppState document: {e}")
