"""Serialization of store contents to and from JSON.

On disk every root key maps to a two-field record:

    {"user": {"v": {"name": "Ada"}, "e": null},
     "session": {"v": "abc", "e": 1767225600000}}

where "v" is the value and "e" the expiry in epoch milliseconds (or null).
Files written by older versions hold bare values; they are wrapped as
{"v": <value>, "e": null} when loaded.
"""

import json
from typing import Any, Dict

from .entries import Entry
from .exceptions import SerializationError

VALUE_FIELD = "v"
EXPIRY_FIELD = "e"


class Serializer:
    """Convert between Entry mappings and their JSON form.

    Example:
        serializer = Serializer()

        text = serializer.dumps({"a": Entry(1)})
        # '{\\n  "a": {\\n    "v": 1,\\n    "e": null\\n  }\\n}'

        entries = serializer.loads(text)
        # {'a': Entry(value=1, expires_at=None)}
    """

    def __init__(self, indent: int = 2):
        """Initialize the serializer.

        Args:
            indent: JSON indentation used by dumps(); None for compact output
        """
        self.indent = indent

    def encode(self, entries: Dict[str, Entry]) -> Dict[str, Dict[str, Any]]:
        """Convert entries to the plain on-disk mapping."""
        return {
            key: {VALUE_FIELD: entry.value, EXPIRY_FIELD: entry.expires_at}
            for key, entry in entries.items()
        }

    def decode(self, data: Any) -> Dict[str, Entry]:
        """Convert a parsed on-disk mapping to entries.

        Records with exactly the "v"/"e" shape are taken as-is; anything else
        is treated as a bare legacy value with no expiry.

        Raises:
            SerializationError: If data is not a JSON object
        """
        if not isinstance(data, dict):
            raise SerializationError(
                f"Expected a JSON object at top level, got {type(data).__name__}"
            )
        return {key: self._decode_entry(item) for key, item in data.items()}

    def _decode_entry(self, item: Any) -> Entry:
        if isinstance(item, dict) and VALUE_FIELD in item and EXPIRY_FIELD in item:
            expires_at = item[EXPIRY_FIELD]
            if expires_at is not None and (
                not isinstance(expires_at, (int, float)) or isinstance(expires_at, bool)
            ):
                expires_at = None
            return Entry(value=item[VALUE_FIELD], expires_at=expires_at)
        return Entry(value=item, expires_at=None)

    def dumps(self, entries: Dict[str, Entry]) -> str:
        """Serialize entries to a JSON string.

        Raises:
            SerializationError: If a value is not JSON-representable
        """
        try:
            return json.dumps(self.encode(entries), indent=self.indent, ensure_ascii=False)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize store: {e}")

    def loads(self, text: str) -> Dict[str, Entry]:
        """Deserialize a JSON string to entries.

        Raises:
            SerializationError: If text is not valid JSON or not an object
        """
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to parse store data: {e}")
        return self.decode(data)

    def size(self, entries: Dict[str, Entry]) -> int:
        """Byte length of the compact UTF-8 serialization of entries."""
        try:
            text = json.dumps(self.encode(entries), ensure_ascii=False, default=str)
        except ValueError:
            return 0
        return len(text.encode("utf-8"))
