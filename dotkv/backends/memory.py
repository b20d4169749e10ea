"""In-memory storage backend for testing."""

from typing import Dict, Iterator, Optional

from .base import StorageBackend


class MemoryBackend(StorageBackend):
    """In-memory storage backend.

    Useful for testing and temporary stores. Data is lost when the backend
    is closed or the process ends.

    Example:
        backend = MemoryBackend()
        backend.connect()

        backend.write('{"a": {"v": 1, "e": null}}')
        backend.read()  # '{"a": {"v": 1, "e": null}}'
    """

    def __init__(self, text: Optional[str] = None):
        """Create a memory backend.

        Args:
            text: Optional initial live snapshot
        """
        self._text = text
        self._recovery: Optional[str] = None
        self._backups: Dict[str, str] = {}
        self._connected = False
        self.writes = 0

    def connect(self, **kwargs) -> None:
        """Initialize the in-memory store."""
        self._connected = True

    def close(self) -> None:
        """Drop all held data."""
        self._text = None
        self._recovery = None
        self._backups.clear()
        self._connected = False

    @property
    def location(self) -> str:
        return "memory://"

    def read(self) -> Optional[str]:
        return self._text

    def read_recovery(self) -> Optional[str]:
        return self._recovery

    def write(self, text: str, keep_recovery: bool = True) -> None:
        if keep_recovery and self._text is not None:
            self._recovery = self._text
        self._text = text
        self.writes += 1

    def size(self) -> int:
        return len(self._text.encode("utf-8")) if self._text is not None else 0

    def write_backup(self, name: str, text: str) -> str:
        self._backups[name] = text
        return f"memory://backups/{name}"

    def read_backup(self, name: str) -> Optional[str]:
        return self._backups.get(name)

    def list_backups(self) -> Iterator[str]:
        yield from sorted(self._backups)
