"""
dotkv - Embeddable key-value store persisted to a JSON file.

Features:
    - Dotted keys address inside nested values ("user.settings.theme")
    - Per-key TTL in milliseconds, with lazy and background eviction
    - Debounced snapshot writes, a recovery copy, named backups
    - Typed change events (set, delete, push, pull, expired, clear, rename)
    - Full-scan queries by predicate or by attribute match
    - Collections: key-prefixed views over the shared store

Quick Start:
    from dotkv import connect

    with connect("json:///data/app.json") as db:
        db.set("user.name", "Ada")
        db.set("session", "abc123", ttl=60_000)
        db.add("stats.visits", 1)

        db.on("expired", lambda event: print("gone:", event.key))

        users = db.collection("users")
        users.set("u1", {"role": "admin"})
        users.find({"role": "admin"})

Supported backends:
    - memory://              In-memory storage (testing)
    - json:///path.json      JSON file storage
"""

from .core import Store, StoreStats, connect
from .config import StoreConfig
from .namespace import Collection
from .entries import Entry, EntryStore
from .events import (
    EventBus,
    SetEvent,
    DeleteEvent,
    PushEvent,
    PullEvent,
    ExpiredEvent,
    ClearEvent,
    RenameEvent,
)
from .query import QueryResult
from .backends import StorageBackend, MemoryBackend, JsonFileBackend
from .serialization import Serializer
from .exceptions import (
    StoreError,
    InvalidKeyError,
    InvalidOperandError,
    InvalidNameError,
    InvalidEventError,
    NotFoundError,
    ConflictError,
    SerializationError,
    PersistenceError,
)

__all__ = [
    # Main API
    "Store",
    "StoreStats",
    "StoreConfig",
    "Collection",
    "connect",
    # Entries
    "Entry",
    "EntryStore",
    "QueryResult",
    # Events
    "EventBus",
    "SetEvent",
    "DeleteEvent",
    "PushEvent",
    "PullEvent",
    "ExpiredEvent",
    "ClearEvent",
    "RenameEvent",
    # Backends
    "StorageBackend",
    "MemoryBackend",
    "JsonFileBackend",
    # Serialization
    "Serializer",
    # Exceptions
    "StoreError",
    "InvalidKeyError",
    "InvalidOperandError",
    "InvalidNameError",
    "InvalidEventError",
    "NotFoundError",
    "ConflictError",
    "SerializationError",
    "PersistenceError",
]

__version__ = "0.1.0"
