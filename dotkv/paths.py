"""Dotted-path addressing into nested values.

A dotted key such as "user.settings.theme" names a root key ("user") and a
residual path ("settings.theme") that addresses inside the root's value.
The helpers here only ever walk and build dicts, so the trees they create
are strictly tree-shaped.

Example:
    tree = {}
    set_path(tree, "settings.theme", "dark")
    get_path(tree, "settings.theme")   # "dark"
    get_path(tree, "settings.font")    # None
    delete_path(tree, "settings.theme")  # True
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from .exceptions import InvalidKeyError, SerializationError

logger = logging.getLogger(__name__)

SEPARATOR = "."

_MISSING = object()


class ValueKind(Enum):
    """Shape of a stored JSON value."""

    SCALAR = "scalar"
    LIST = "list"
    MAP = "map"


def value_kind(value: Any) -> ValueKind:
    """Classify a value as a scalar, list or map."""
    if isinstance(value, dict):
        return ValueKind.MAP
    if isinstance(value, (list, tuple)):
        return ValueKind.LIST
    return ValueKind.SCALAR


def same_value(left: Any, right: Any) -> bool:
    """Strict JSON equality: booleans only ever equal booleans."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    return left == right


def to_json_value(value: Any) -> Any:
    """Return a detached copy of value built only from JSON types.

    Tuples become lists. Anything the snapshot file cannot hold exactly
    (sets, arbitrary objects, dict keys that are not strings) is rejected.

    Raises:
        SerializationError: If value is not JSON-representable
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (list, tuple)):
        return [to_json_value(item) for item in value]
    if isinstance(value, dict):
        result = {}
        for key, item in value.items():
            if not isinstance(key, str):
                raise SerializationError(f"Dict keys must be strings, got {key!r}")
            result[key] = to_json_value(item)
        return result
    raise SerializationError(f"Cannot store value of type {type(value).__name__}")


def ensure_mapping(value: Any) -> Dict[str, Any]:
    """Return value if it is a map, otherwise a fresh empty dict.

    This is the coercion applied when a nested write lands on a root whose
    value is a scalar or a list: the old value is discarded.
    """
    if isinstance(value, dict):
        return value
    if value is not None:
        logger.debug("Discarding %s value to make room for nested write", value_kind(value).value)
    return {}


def _segments(path: Any) -> Optional[List[str]]:
    if not path or not isinstance(path, str):
        return None
    return path.split(SEPARATOR)


def split_key(key: Any) -> Tuple[str, Optional[str]]:
    """Split a dotted key into (root, residual path).

    Raises:
        InvalidKeyError: If key is not a non-empty string or the root is empty
    """
    if not isinstance(key, str) or not key:
        raise InvalidKeyError(key)
    root, sep, residual = key.partition(SEPARATOR)
    if not root:
        raise InvalidKeyError(key, "root segment is empty")
    return root, (residual if sep and residual else None)


def join_key(root: str, residual: Optional[str]) -> str:
    """Inverse of split_key."""
    return f"{root}{SEPARATOR}{residual}" if residual else root


def get_path(tree: Any, path: Any, default: Any = None) -> Any:
    """Read the value at path, or default if any step does not resolve."""
    segments = _segments(path)
    if segments is None:
        return default
    current = tree
    for segment in segments:
        if not isinstance(current, dict) or segment not in current:
            return default
        current = current[segment]
    return current


def set_path(tree: Dict[str, Any], path: Any, value: Any) -> bool:
    """Assign value at path, creating intermediate dicts as needed.

    Intermediate nodes that are missing or not dicts are replaced by empty
    dicts. Returns False (and does nothing) for an empty or non-string path.
    """
    segments = _segments(path)
    if segments is None or not isinstance(tree, dict):
        return False
    current = tree
    for segment in segments[:-1]:
        child = current.get(segment)
        if not isinstance(child, dict):
            child = {}
            current[segment] = child
        current = child
    current[segments[-1]] = value
    return True


def has_path(tree: Any, path: Any) -> bool:
    """True if path resolves. A stored None counts as present."""
    return get_path(tree, path, _MISSING) is not _MISSING


def delete_path(tree: Any, path: Any) -> bool:
    """Remove the value at path without creating anything.

    Returns:
        True only if the final segment existed and was removed
    """
    segments = _segments(path)
    if segments is None:
        return False
    current = tree
    for segment in segments[:-1]:
        if not isinstance(current, dict) or segment not in current:
            return False
        current = current[segment]
    if isinstance(current, dict) and segments[-1] in current:
        del current[segments[-1]]
        return True
    return False
