"""Core Store class: the public face of dotkv."""

import copy
import dataclasses
import threading
import time
from typing import Any, Callable, Dict, Iterator, List, Optional
from urllib.parse import urlparse

from .backends.base import StorageBackend
from .backends.json_file import JsonFileBackend
from .backends.memory import MemoryBackend
from .config import StoreConfig
from .entries import Entry, EntryStore
from .events import (
    ClearEvent,
    DeleteEvent,
    EventBus,
    ExpiredEvent,
    PullEvent,
    PushEvent,
    RenameEvent,
    SetEvent,
)
from .exceptions import NotFoundError
from .namespace import Collection
from .paths import to_json_value
from .persistence import PersistencePipeline
from .query import QueryResult, find, find_one, scan
from .reaper import Reaper
from .serialization import Serializer


@dataclasses.dataclass(frozen=True)
class StoreStats:
    """Point-in-time statistics for a Store."""

    total_keys: int
    keys_with_ttl: int
    expired_count: int
    file_size: int
    mem_size: int
    auto_save: bool
    uptime_ms: float

    def as_dict(self) -> Dict[str, Any]:
        return {
            "totalKeys": self.total_keys,
            "keysWithTTL": self.keys_with_ttl,
            "expiredCount": self.expired_count,
            "fileSize": self.file_size,
            "memSize": self.mem_size,
            "autoSave": self.auto_save,
            "uptimeMs": self.uptime_ms,
        }


class Store:
    """Embeddable key-value store persisted to a JSON file.

    Keys may be dotted to address inside nested dict values, entries may
    carry a TTL in milliseconds, and every change is written to disk after
    a short debounce and announced on the event bus.

    Example:
        from dotkv import connect

        db = connect("json:///data/app.json")

        db.set("user.name", "Ada")
        db.set("session", "abc123", ttl=60_000)
        db.add("stats.visits", 1)

        db.get("user")           # {"name": "Ada"}
        db.find({"name": "Ada"}) # [QueryResult(key="user", ...)]

        users = db.collection("users")
        users.set("u1", {"role": "admin"})

        db.close()
    """

    def __init__(
        self,
        backend: Optional[StorageBackend] = None,
        config: Optional[StoreConfig] = None,
        *,
        clock: Optional[Callable[[], float]] = None,
        rng=None,
        **options,
    ):
        """Create a Store and load its contents.

        Use connect() for convenient URL-based construction.

        Args:
            backend: Storage backend (default: JsonFileBackend at config.file_path)
            config: Store options; built from **options when omitted
            clock: Returns the current time in epoch milliseconds
            rng: random.Random used by random()
            **options: StoreConfig fields, used when config is None
        """
        self.config = config if config is not None else StoreConfig(**options)
        if backend is None:
            backend = JsonFileBackend(self.config.file_path, self.config.backups_dir)
        self._backend = backend
        self._backend.connect()

        self._lock = threading.RLock()
        self._bus = EventBus()
        self._serializer = Serializer()
        self._entries = EntryStore(clock=clock, on_expire=self._on_lazy_expire, rng=rng)
        self._pipeline = PersistencePipeline(
            backend,
            source=lambda: dict(self._entries.items()),
            lock=self._lock,
            enabled=self.config.auto_save,
            write_delay=self.config.write_delay,
            serializer=self._serializer,
        )
        self._reaper = Reaper(self.clean_expired, self.config.auto_clean_interval)
        self._started = time.monotonic()
        self._closed = False

        self._entries.replace(self._pipeline.load())
        self._reaper.start()

    def __repr__(self) -> str:
        return f"Store({self._backend.location!r}, keys={len(self._entries)})"

    # Internal plumbing

    def _changed(self, event=None) -> None:
        self._pipeline.schedule()
        if event is not None:
            self._bus.emit(event)

    def _on_lazy_expire(self, key: str) -> None:
        self._changed(ExpiredEvent(key))

    # Core API

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        """Store value at key.

        Args:
            key: Root key or dotted path ("user.settings.theme")
            value: Any JSON-representable value
            ttl: Optional time-to-live in milliseconds. Writing a root key
                without ttl clears any previous expiry; writing a dotted path
                keeps the root's expiry unless ttl is given.

        Raises:
            InvalidKeyError: If key is malformed
            InvalidOperandError: If ttl is not a number
            SerializationError: If value is not JSON-representable (sets,
                objects, dicts with non-string keys); nothing is stored
        """
        with self._lock:
            entry = self._entries.write(key, value, ttl)
            self._changed(SetEvent(key, to_json_value(value), entry.expires_at))
        return True

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value at key, or default if missing or expired."""
        with self._lock:
            return self._entries.read(key, default)

    def has(self, key: str) -> bool:
        with self._lock:
            return self._entries.contains(key)

    def delete(self, key: str) -> bool:
        """Remove key or dotted path.

        Returns:
            True if something was removed, False if it was not there
        """
        with self._lock:
            removed, old_value = self._entries.remove(key)
            if removed:
                self._changed(DeleteEvent(key, old_value))
        return removed

    def push(self, key: str, value: Any) -> List[Any]:
        """Append value to the list at key and return the new list.

        A missing key starts a new list; a non-list value becomes the
        list's first element.
        """
        with self._lock:
            result = self._entries.push(key, value)
            self._changed(PushEvent(key, to_json_value(value)))
        return result

    def pull(self, key: str, value: Any) -> bool:
        """Remove every occurrence of value from the list at key."""
        with self._lock:
            pulled = self._entries.pull(key, value)
            if pulled:
                self._changed(PullEvent(key, copy.deepcopy(value)))
        return pulled

    def _arithmetic(self, key: str, amount: Any, op: str) -> Any:
        with self._lock:
            result = self._entries.arithmetic(key, amount, op)
            self._changed(SetEvent(key, result, self._entries.expiry_of(key)))
        return result

    def add(self, key: str, amount: float) -> float:
        """Add amount to the number at key (missing counts as 0)."""
        return self._arithmetic(key, amount, "add")

    def subtract(self, key: str, amount: float) -> float:
        return self._arithmetic(key, amount, "subtract")

    def multiply(self, key: str, amount: float) -> float:
        return self._arithmetic(key, amount, "multiply")

    def divide(self, key: str, amount: float) -> float:
        """Divide the number at key by amount.

        Raises:
            InvalidOperandError: If amount is not a number or is zero
        """
        return self._arithmetic(key, amount, "divide")

    def toggle(self, key: str) -> bool:
        """Flip the boolean at key; a missing key becomes True."""
        with self._lock:
            result = self._entries.toggle(key)
            self._changed(SetEvent(key, result, self._entries.expiry_of(key)))
        return result

    def rename(self, old_key: str, new_key: str) -> bool:
        """Move a root entry to a new key, keeping its value and TTL.

        Raises:
            NotFoundError: If old_key does not exist
            ConflictError: If new_key already holds a live value
            InvalidKeyError: If either key is a dotted path
        """
        with self._lock:
            self._entries.rename(old_key, new_key)
            self._changed(RenameEvent(old_key, new_key))
        return True

    def random(self, count: Optional[int] = None, *, prefix: Optional[str] = None) -> Any:
        """Return random live values.

        Args:
            count: None for one value (None if the store is empty); an int
                for a list of up to count distinct entries
            prefix: Only sample root keys starting with prefix
        """
        with self._lock:
            return self._entries.random_sample(count, prefix)

    # Queries

    def _items(self, prefix: Optional[str] = None):
        items = self._entries.live_items()
        if prefix is None:
            return items
        return [(key, entry) for key, entry in items if key.startswith(prefix)]

    def scan(
        self,
        predicate: Callable[[Any, str], Any],
        *,
        prefix: Optional[str] = None,
    ) -> List[QueryResult]:
        """Return live entries for which predicate(value, key) is truthy."""
        with self._lock:
            return scan(self._items(prefix), predicate)

    def find(self, query: Any, *, prefix: Optional[str] = None) -> List[QueryResult]:
        """Return live entries whose value matches query.

        Example:
            db.find({"role": "admin"})  # dict values with role == "admin"
            db.find(42)                 # values equal to 42
        """
        with self._lock:
            return find(self._items(prefix), query)

    def find_one(self, query: Any, *, prefix: Optional[str] = None) -> Optional[QueryResult]:
        with self._lock:
            return find_one(self._items(prefix), query)

    def keys(self, prefix: Optional[str] = None) -> List[str]:
        """Live root keys, optionally only those starting with prefix."""
        with self._lock:
            return self._entries.keys(prefix)

    def all(self, include_meta: bool = False, *, prefix: Optional[str] = None) -> Dict[str, Any]:
        """Copy of every live entry.

        Args:
            include_meta: If True, map keys to Entry objects instead of values
            prefix: Only include root keys starting with prefix
        """
        with self._lock:
            items = self._items(prefix)
            if include_meta:
                return {key: Entry(copy.deepcopy(e.value), e.expires_at) for key, e in items}
            return {key: copy.deepcopy(entry.value) for key, entry in items}

    # Bulk operations

    def clear(self) -> bool:
        """Remove everything."""
        with self._lock:
            self._entries.clear()
            self._changed(ClearEvent())
        return True

    def _remove_keys(self, keys: List[str]) -> List[str]:
        removed = []
        with self._lock:
            for key in keys:
                found, old_value = self._entries.remove(key)
                if found:
                    removed.append(key)
                    self._bus.emit(DeleteEvent(key, old_value))
            if removed:
                self._pipeline.schedule()
        return removed

    def clean_expired(self) -> List[str]:
        """Evict every expired entry now.

        Returns:
            The evicted keys; an "expired" event fires for each
        """
        with self._lock:
            removed = self._entries.sweep()
            if removed:
                self._pipeline.schedule()
                for key in removed:
                    self._bus.emit(ExpiredEvent(key))
        return removed

    # Persistence

    def flush(self) -> bool:
        """Write pending changes now instead of after the debounce delay.

        Raises:
            PersistenceError: If the backend fails to write
        """
        return self._pipeline.flush()

    @property
    def pending(self) -> bool:
        """True while a debounced write is waiting to fire."""
        return self._pipeline.pending

    def backup(self, name: str) -> str:
        """Save a named snapshot of the current contents.

        Returns:
            Location of the snapshot

        Raises:
            InvalidNameError: If name is empty
            PersistenceError: If saving is disabled or the write fails
        """
        return self._pipeline.backup(name)

    def restore(self, name: str) -> bool:
        """Replace all contents with a named snapshot.

        The result is written immediately and a single "clear" event fires.

        Raises:
            NotFoundError: If no snapshot has that name
            SerializationError: If the snapshot is corrupt
        """
        entries = self._pipeline.restore(name)
        with self._lock:
            self._entries.replace(entries)
            try:
                self._pipeline.flush()
            finally:
                self._bus.emit(ClearEvent())
        return True

    def list_backups(self) -> List[str]:
        return self._pipeline.list_backups()

    def stats(self) -> StoreStats:
        with self._lock:
            total, with_ttl, expired = self._entries.counts()
            mem_size = self._serializer.size(dict(self._entries.items()))
        return StoreStats(
            total_keys=total,
            keys_with_ttl=with_ttl,
            expired_count=expired,
            file_size=self._backend.size(),
            mem_size=mem_size,
            auto_save=self.config.auto_save,
            uptime_ms=(time.monotonic() - self._started) * 1000,
        )

    # Events

    def on(self, event_name: str, callback: Callable[[Any], None]) -> Callable[[], None]:
        """Subscribe to an event; returns a handle that unsubscribes.

        Event names: set, delete, push, pull, expired, clear, rename.

        Raises:
            InvalidEventError: If event_name is unknown
        """
        return self._bus.subscribe(event_name, callback)

    def off(self, event_name: str, callback: Callable[[Any], None]) -> None:
        self._bus.unsubscribe(event_name, callback)

    # Namespaces

    def collection(self, name: str) -> Collection:
        """Return a view of the keys prefixed with "<name>:".

        Raises:
            InvalidNameError: If name is empty or contains "." or ":"
        """
        return Collection(self, name)

    # Dict-like interface

    def __getitem__(self, key: str) -> Any:
        """Return the value at key.

        Raises:
            NotFoundError: If key is missing or expired
        """
        with self._lock:
            if not self._entries.contains(key):
                raise NotFoundError(key)
            return self._entries.read(key)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if not self.delete(key):
            raise NotFoundError(key)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries.live_items())

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    # Lifecycle

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Stop the sweeper, write pending changes and release the backend."""
        if self._closed:
            return
        self._closed = True
        self._reaper.stop()
        self._pipeline.close()
        self._backend.close()

    def __enter__(self) -> "Store":
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.close()


def connect(url: str, **options) -> Store:
    """Open a store using a URL.

    Supported URLs:
        - memory://              In-memory storage (testing)
        - json:///data/app.json  JSON file, relative path "data/app.json"
        - json:////var/app.json  JSON file, absolute path "/var/app.json"
        - data/app.json          A bare path is a JSON file

    Args:
        url: Connection URL
        **options: StoreConfig fields (autoSave, writeDelay, ...)

    Returns:
        Opened Store

    Example:
        db = connect("json:///data/app.json", writeDelay=100)
        db = connect("memory://")
    """
    parsed = urlparse(url)
    scheme = parsed.scheme
    config = StoreConfig(**options)

    if scheme == "memory":
        return Store(MemoryBackend(), config)

    elif scheme in ("json", "file"):
        path = parsed.netloc + parsed.path
        if path.startswith("/"):
            path = path[1:]  # Remove leading slash from file path
        if not path:
            raise ValueError(f"No file path in URL: {url}")
        return Store(config=config.model_copy(update={"file_path": path}))

    elif scheme == "":
        return Store(config=config.model_copy(update={"file_path": url}))

    else:
        raise ValueError(f"Unknown storage scheme: {scheme}")
