"""Abstract base class for storage backends."""

from abc import ABC, abstractmethod
from typing import Iterator, Optional


class StorageBackend(ABC):
    """Abstract base class for storage backends.

    Backends move serialized store text to and from a storage medium (a JSON
    file, memory, ...). The Store and PersistencePipeline handle
    serialization, debouncing and recovery policy.

    A backend keeps three kinds of data:
        - the live snapshot, read at startup and rewritten on every flush
        - a recovery copy, the previous live snapshot kept on each write
        - named backups, created and consumed only on request
    """

    @abstractmethod
    def connect(self, **kwargs) -> None:
        """Prepare the backend for use.

        Args:
            **kwargs: Backend-specific connection parameters
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release resources."""
        pass

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable location of the live snapshot."""
        pass

    @abstractmethod
    def read(self) -> Optional[str]:
        """Return the live snapshot text, or None if none exists."""
        pass

    @abstractmethod
    def read_recovery(self) -> Optional[str]:
        """Return the recovery copy text, or None if none exists."""
        pass

    @abstractmethod
    def write(self, text: str, keep_recovery: bool = True) -> None:
        """Replace the live snapshot.

        Args:
            text: Serialized store contents
            keep_recovery: If True, the previous snapshot becomes the
                recovery copy before being replaced
        """
        pass

    @abstractmethod
    def size(self) -> int:
        """Size in bytes of the live snapshot (0 if none)."""
        pass

    @abstractmethod
    def write_backup(self, name: str, text: str) -> str:
        """Store a named backup, overwriting any previous one.

        Args:
            name: Already-sanitized backup name
            text: Serialized store contents

        Returns:
            Location of the backup
        """
        pass

    @abstractmethod
    def read_backup(self, name: str) -> Optional[str]:
        """Return a named backup's text, or None if it does not exist."""
        pass

    @abstractmethod
    def list_backups(self) -> Iterator[str]:
        """Yield the names of existing backups."""
        pass
