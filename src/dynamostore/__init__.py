"""
DynamoDB session store.

Persists opaque session tokens and their byte payloads in a DynamoDB table
with TTL-based expiry, enforced again on every read.
"""

from .codec import RecordCodec
from .config import StoreConfig, build_client
from .errors import (
    BackendError,
    CreateTimedOutError,
    DecodeError,
    DeleteInProgressError,
    SessionStoreError,
    UnrecognizedTableStatusError,
)
from .models import DEFAULT_TABLE_NAME, SessionRecord
from .provisioner import TableProvisioner
from .store import SessionStore

__all__ = [
    "DEFAULT_TABLE_NAME",
    "SessionRecord",
    "RecordCodec",
    "TableProvisioner",
    "SessionStore",
    "StoreConfig",
    "build_client",
    "BackendError",
    "SessionStoreError",
    "DeleteInProgressError",
    "CreateTimedOutError",
    "UnrecognizedTableStatusError",
    "DecodeError",
]
