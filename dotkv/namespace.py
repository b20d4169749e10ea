"""Namespaced views over a Store.

A collection named "users" stores key "alice" as root key "users:alice" in
the shared store. Collections are not declared anywhere; any valid name can
be used at any time, and two views with the same name see the same data.

Not every string is a valid name: this is a deliberate restriction, not an
oversight. Names may not contain "." (it would split the prefix into a
nested path) or ":" (otherwise collection "a" with key "b:c" and collection
"a:b" with key "c" would share the root key "a:b:c"). Keys written directly
to the store as "users:..." are still visible through the "users"
collection.
"""

import dataclasses
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional

from .exceptions import InvalidNameError, NotFoundError
from .paths import SEPARATOR, split_key
from .query import QueryResult

if TYPE_CHECKING:
    from .core import Store

NAMESPACE_DELIMITER = ":"


class Collection:
    """Store operations scoped to one key prefix.

    Example:
        users = db.collection("users")
        users.set("u1", {"name": "Ada", "role": "admin"})
        users.add("u1.logins", 1)
        users.find({"role": "admin"})  # [QueryResult(key="u1", ...)]
        users.keys()                    # ["u1"]
    """

    def __init__(self, store: "Store", name: str):
        if not isinstance(name, str) or not name:
            raise InvalidNameError(name)
        if SEPARATOR in name or NAMESPACE_DELIMITER in name:
            raise InvalidNameError(
                name, f"collection names may not contain {SEPARATOR!r} or {NAMESPACE_DELIMITER!r}"
            )
        self._store = store
        self.name = name
        self.prefix = f"{name}{NAMESPACE_DELIMITER}"

    def __repr__(self) -> str:
        return f"Collection({self.name!r})"

    def _key(self, key: str) -> str:
        split_key(key)
        return self.prefix + key

    def _strip(self, key: str) -> str:
        return key[len(self.prefix):] if key.startswith(self.prefix) else key

    def _result(self, result: QueryResult) -> QueryResult:
        return dataclasses.replace(result, key=self._strip(result.key))

    # Core API

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        return self._store.set(self._key(key), value, ttl)

    def get(self, key: str, default: Any = None) -> Any:
        return self._store.get(self._key(key), default)

    def has(self, key: str) -> bool:
        return self._store.has(self._key(key))

    def delete(self, key: str) -> bool:
        return self._store.delete(self._key(key))

    def push(self, key: str, value: Any) -> List[Any]:
        return self._store.push(self._key(key), value)

    def pull(self, key: str, value: Any) -> bool:
        return self._store.pull(self._key(key), value)

    def add(self, key: str, amount: float) -> float:
        return self._store.add(self._key(key), amount)

    def subtract(self, key: str, amount: float) -> float:
        return self._store.subtract(self._key(key), amount)

    def multiply(self, key: str, amount: float) -> float:
        return self._store.multiply(self._key(key), amount)

    def divide(self, key: str, amount: float) -> float:
        return self._store.divide(self._key(key), amount)

    def toggle(self, key: str) -> bool:
        return self._store.toggle(self._key(key))

    def rename(self, old_key: str, new_key: str) -> bool:
        return self._store.rename(self._key(old_key), self._key(new_key))

    def random(self, count: Optional[int] = None) -> Any:
        return self._store.random(count, prefix=self.prefix)

    # Queries

    def scan(self, predicate: Callable[[Any, str], Any]) -> List[QueryResult]:
        """Like Store.scan; predicate sees keys without the prefix."""
        results = self._store.scan(
            lambda value, key: predicate(value, self._strip(key)),
            prefix=self.prefix,
        )
        return [self._result(result) for result in results]

    def find(self, query: Any) -> List[QueryResult]:
        return [self._result(result) for result in self._store.find(query, prefix=self.prefix)]

    def find_one(self, query: Any) -> Optional[QueryResult]:
        result = self._store.find_one(query, prefix=self.prefix)
        return self._result(result) if result is not None else None

    def keys(self) -> List[str]:
        return [self._strip(key) for key in self._store.keys(self.prefix)]

    def all(self, include_meta: bool = False) -> Dict[str, Any]:
        items = self._store.all(include_meta, prefix=self.prefix)
        return {self._strip(key): value for key, value in items.items()}

    def clear(self) -> bool:
        """Remove every key in this collection; other keys are untouched."""
        self._store._remove_keys(self._store.keys(self.prefix))
        return True

    # Dict-like interface

    def __getitem__(self, key: str) -> Any:
        try:
            return self._store[self._key(key)]
        except NotFoundError:
            raise NotFoundError(key) from None

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        if not self.delete(key):
            raise NotFoundError(key)

    def __contains__(self, key: str) -> bool:
        return self.has(key)

    def __len__(self) -> int:
        return len(self.keys())

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())
