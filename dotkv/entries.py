"""Entry model and the in-memory entry store.

The EntryStore owns every root entry and all TTL evaluation. It does not
lock, persist or notify; the Store facade wraps each call with those
concerns. The one exception is lazy expiry: when a read discovers an expired
root it removes it and calls the on_expire hook so the facade can schedule
a flush and emit "expired".
"""

import copy
import operator
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import paths
from .exceptions import (
    ConflictError,
    InvalidKeyError,
    InvalidOperandError,
    NotFoundError,
)

_MISSING = object()

OPERATIONS: Dict[str, Callable[[Any, Any], Any]] = {
    "add": operator.add,
    "subtract": operator.sub,
    "multiply": operator.mul,
    "divide": operator.truediv,
}


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def is_number(value: Any) -> bool:
    """True for ints and floats, False for bools and everything else."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class Entry:
    """A stored value with an optional absolute expiry (epoch ms)."""

    value: Any
    expires_at: Optional[float] = None

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and now >= self.expires_at

    def remaining(self, now: float) -> Optional[float]:
        """Milliseconds left before expiry, or None if the entry never expires."""
        if self.expires_at is None:
            return None
        return max(0, self.expires_at - now)


class EntryStore:
    """In-memory mapping of root key to Entry.

    Values are copied into plain JSON types on the way in and deep-copied on
    the way out, so callers never hold references into stored trees.

    Example:
        entries = EntryStore()
        entries.write("user.settings.theme", "dark")
        entries.read("user")  # {"settings": {"theme": "dark"}}
        entries.arithmetic("visits", 1, "add")  # 1
    """

    def __init__(
        self,
        clock: Optional[Callable[[], float]] = None,
        on_expire: Optional[Callable[[str], None]] = None,
        rng: Optional[random.Random] = None,
    ):
        """Create an empty entry store.

        Args:
            clock: Returns the current time in epoch milliseconds
            on_expire: Called with the root key when a read evicts an entry
            rng: Random source for random_sample()
        """
        self._entries: Dict[str, Entry] = {}
        self._clock = clock or now_ms
        self._on_expire = on_expire
        self._rng = rng or random.Random()

    def now(self) -> float:
        return self._clock()

    def __len__(self) -> int:
        return len(self._entries)

    # Entry lookup

    def _live(self, root: str) -> Optional[Entry]:
        entry = self._entries.get(root)
        if entry is None:
            return None
        if entry.is_expired(self.now()):
            del self._entries[root]
            if self._on_expire is not None:
                self._on_expire(root)
            return None
        return entry

    def _expiry(self, ttl: Any) -> Optional[float]:
        if ttl is None:
            return None
        if not is_number(ttl):
            raise InvalidOperandError(f"TTL must be a number of milliseconds, got {ttl!r}")
        if ttl <= 0:
            return None
        return self.now() + ttl

    def expiry_of(self, key: str) -> Optional[float]:
        """Absolute expiry of the root entry behind key, if any."""
        root, _ = paths.split_key(key)
        entry = self._entries.get(root)
        return entry.expires_at if entry is not None else None

    def remaining_ttl(self, key: str) -> Optional[float]:
        """Milliseconds left on the root entry behind key, or None."""
        root, _ = paths.split_key(key)
        entry = self._live(root)
        if entry is None:
            return None
        return entry.remaining(self.now()) or None

    # Reads

    def read(self, key: str, default: Any = None) -> Any:
        """Return a copy of the value at key, or default if absent or expired."""
        root, residual = paths.split_key(key)
        entry = self._live(root)
        if entry is None:
            return default
        if residual is None:
            return copy.deepcopy(entry.value)
        value = paths.get_path(entry.value, residual, _MISSING)
        if value is _MISSING:
            return default
        return copy.deepcopy(value)

    def contains(self, key: str) -> bool:
        root, residual = paths.split_key(key)
        entry = self._live(root)
        if entry is None:
            return False
        return residual is None or paths.has_path(entry.value, residual)

    def live_items(self) -> List[Tuple[str, Entry]]:
        """Snapshot of (root key, entry) pairs that have not expired.

        Expired entries are skipped, not evicted.
        """
        now = self.now()
        return [(key, entry) for key, entry in self._entries.items() if not entry.is_expired(now)]

    def keys(self, prefix: Optional[str] = None) -> List[str]:
        return [key for key, _ in self.live_items() if prefix is None or key.startswith(prefix)]

    def items(self) -> List[Tuple[str, Entry]]:
        """Every stored entry, expired or not, in insertion order."""
        return list(self._entries.items())

    def counts(self) -> Tuple[int, int, int]:
        """(total keys, keys with a TTL, keys expired but not yet evicted)."""
        now = self.now()
        with_ttl = sum(1 for entry in self._entries.values() if entry.expires_at is not None)
        expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
        return len(self._entries), with_ttl, expired

    # Writes

    def write(self, key: str, value: Any, ttl: Any = None) -> Entry:
        """Store value at key.

        A root key replaces the whole entry, which also resets its TTL. A
        dotted key writes inside the root's value (coercing it to a dict if
        needed) and leaves the root TTL alone unless ttl is given.

        Raises:
            InvalidKeyError: If key is malformed
            InvalidOperandError: If ttl is not a number
            SerializationError: If value is not JSON-representable
        """
        root, residual = paths.split_key(key)
        expires_at = self._expiry(ttl)
        value = paths.to_json_value(value)

        if residual is None:
            entry = Entry(value=value, expires_at=expires_at)
            self._entries[root] = entry
            return entry

        entry = self._live(root)
        if entry is None:
            entry = Entry(value={})
            self._entries[root] = entry
        entry.value = paths.ensure_mapping(entry.value)
        paths.set_path(entry.value, residual, value)
        if expires_at is not None:
            entry.expires_at = expires_at
        return entry

    def _read_for_update(self, key: str) -> Tuple[Any, Optional[float]]:
        """(copy of the value at key, absolute expiry of its root), read together."""
        root, residual = paths.split_key(key)
        entry = self._live(root)
        if entry is None:
            return None, None
        value = entry.value if residual is None else paths.get_path(entry.value, residual)
        return copy.deepcopy(value), entry.expires_at

    def _write_back(self, key: str, value: Any, expires_at: Optional[float]) -> Entry:
        """Store the result of a read-modify-write under the expiry it was read with.

        Liveness is not evaluated again, so the clock moving between the read
        and the write can never turn an expiring entry into a permanent one.
        """
        root, residual = paths.split_key(key)
        value = paths.to_json_value(value)
        if residual is None:
            entry = Entry(value=value, expires_at=expires_at)
            self._entries[root] = entry
            return entry
        entry = self._entries.get(root)
        if entry is None:
            entry = Entry(value={})
            self._entries[root] = entry
        entry.value = paths.ensure_mapping(entry.value)
        paths.set_path(entry.value, residual, value)
        entry.expires_at = expires_at
        return entry

    def remove(self, key: str) -> Tuple[bool, Any]:
        """Delete the value at key.

        Returns:
            (True, old value) if something was removed, else (False, None)
        """
        root, residual = paths.split_key(key)
        entry = self._live(root)
        if entry is None:
            return False, None
        if residual is None:
            del self._entries[root]
            return True, entry.value
        if not isinstance(entry.value, dict):
            return False, None
        old_value = paths.get_path(entry.value, residual)
        if not paths.delete_path(entry.value, residual):
            return False, None
        return True, old_value

    def arithmetic(self, key: str, amount: Any, op: str) -> Any:
        """Apply op to the number at key and store the result.

        A missing or non-numeric current value counts as 0. The entry keeps
        the expiry it had when the current value was read.

        Raises:
            InvalidOperandError: If amount is not a number, op is unknown, or
                a division by zero is requested
        """
        operation = OPERATIONS.get(op)
        if operation is None:
            raise InvalidOperandError(f"Unknown arithmetic operation: {op!r}")
        if not is_number(amount):
            raise InvalidOperandError(f"{op}() expects a number, got {amount!r}")
        if op == "divide" and amount == 0:
            raise InvalidOperandError("Cannot divide by zero")

        current, expires_at = self._read_for_update(key)
        if not is_number(current):
            current = 0
        result = operation(current, amount)
        self._write_back(key, result, expires_at)
        return result

    def toggle(self, key: str) -> bool:
        """Store the negation of the truthiness of the value at key."""
        current, expires_at = self._read_for_update(key)
        result = not bool(current)
        self._write_back(key, result, expires_at)
        return result

    def push(self, key: str, value: Any) -> List[Any]:
        """Append value to the list at key, wrapping a non-list value first."""
        current, expires_at = self._read_for_update(key)
        if current is None:
            current = []
        elif not isinstance(current, list):
            current = [current]
        current.append(value)
        current = paths.to_json_value(current)
        self._write_back(key, current, expires_at)
        return copy.deepcopy(current)

    def pull(self, key: str, value: Any) -> bool:
        """Remove every element equal to value from the list at key."""
        current, expires_at = self._read_for_update(key)
        if not isinstance(current, list):
            return False
        kept = [item for item in current if not paths.same_value(item, value)]
        if len(kept) == len(current):
            return False
        self._write_back(key, kept, expires_at)
        return True

    def rename(self, old_key: str, new_key: str) -> Entry:
        """Move a root entry to a new key, keeping its TTL.

        Raises:
            InvalidKeyError: If either key is dotted or malformed
            NotFoundError: If old_key is absent or expired
            ConflictError: If new_key holds a live value
        """
        for key in (old_key, new_key):
            _, residual = paths.split_key(key)
            if residual is not None:
                raise InvalidKeyError(key, "rename only supports root keys")

        entry = self._live(old_key)
        if entry is None:
            raise NotFoundError(old_key)
        if self._live(new_key) is not None:
            raise ConflictError(new_key)

        del self._entries[old_key]
        self._entries[new_key] = entry
        return entry

    def random_sample(self, count: Optional[int] = None, prefix: Optional[str] = None) -> Any:
        """Pick live values uniformly at random, without replacement.

        Args:
            count: None for a single value (or None when empty); an int for
                a list of up to count values
            prefix: Only sample root keys starting with this prefix

        Raises:
            InvalidOperandError: If count is not a positive integer
        """
        if count is not None and (
            not isinstance(count, int) or isinstance(count, bool) or count < 1
        ):
            raise InvalidOperandError(f"count must be a positive integer, got {count!r}")

        keys = self.keys(prefix)
        if count is None:
            if not keys:
                return None
            return copy.deepcopy(self._entries[self._rng.choice(keys)].value)
        chosen = self._rng.sample(keys, min(count, len(keys)))
        return [copy.deepcopy(self._entries[key].value) for key in chosen]

    # Bulk operations

    def sweep(self) -> List[str]:
        """Evict every expired entry and return the evicted keys."""
        now = self.now()
        removed = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in removed:
            del self._entries[key]
        return removed

    def replace(self, entries: Dict[str, Entry]) -> None:
        """Swap in a whole new set of entries."""
        self._entries = dict(entries)

    def clear(self) -> None:
        self._entries = {}
