"""Remote sync package."""

from budget_app.sync.serialization import (
    SerializationError,
    decode_state,
    encode_state,
    sanitize,
    serialize_state,
)
from budget_app.sync.timer import DebounceTimer
from budget_app.sync.adapter import RemoteSyncAdapter, SyncStatus

__all__ = [
    "DebounceTimer",
    "RemoteSyncAdapter",
    "SerializationError",
    "SyncStatus",
    "decode_state",
    "encode_state",
    "sanitize",
    "serialize_state",
]
