"""Full-scan queries over live entries.

There are no indexes: every query walks every live entry.
"""

import copy
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Tuple

from .entries import Entry
from .paths import same_value


@dataclass(frozen=True)
class QueryResult:
    """A matching entry."""

    key: str
    value: Any
    expires_at: Optional[float] = None


def scan(
    items: Iterable[Tuple[str, Entry]],
    predicate: Callable[[Any, str], Any],
) -> List[QueryResult]:
    """Return entries for which predicate(value, key) is truthy.

    A predicate that raises counts as a non-match.
    """
    results = []
    for key, entry in items:
        try:
            matched = predicate(entry.value, key)
        except Exception:
            continue
        if matched:
            results.append(QueryResult(key, copy.deepcopy(entry.value), entry.expires_at))
    return results


def matches(value: Any, query: Any) -> bool:
    """Shallow attribute match.

    If both sides are dicts, every attribute in query must be present in
    value with an identical value; nested dicts are compared whole, not
    matched recursively. Otherwise value must equal query.
    """
    if isinstance(value, dict) and isinstance(query, dict):
        return all(
            attr in value and same_value(value[attr], expected)
            for attr, expected in query.items()
        )
    if isinstance(value, dict) or isinstance(query, dict):
        return False
    return same_value(value, query)


def find(items: Iterable[Tuple[str, Entry]], query: Any) -> List[QueryResult]:
    """Return every entry whose value matches query."""
    return scan(items, lambda value, key: matches(value, query))


def find_one(items: Iterable[Tuple[str, Entry]], query: Any) -> Optional[QueryResult]:
    """Return the first entry whose value matches query, or None."""
    for key, entry in items:
        if matches(entry.value, query):
            return QueryResult(key, copy.deepcopy(entry.value), entry.expires_at)
    return None
