"""Debounced persistence of store contents.

Every mutation asks the pipeline to schedule() a write. Requests that arrive
within write_delay milliseconds of each other collapse into a single write
that fires write_delay after the last request. flush() skips the wait and
writes immediately, which is what tests and shutdown use.
"""

import logging
import re
import threading
from typing import Callable, Dict, List, Optional

from .backends.base import StorageBackend
from .entries import Entry
from .exceptions import (
    InvalidNameError,
    NotFoundError,
    PersistenceError,
    SerializationError,
    StoreError,
)
from .serialization import Serializer

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def sanitize_name(name: str) -> str:
    """Restrict a backup name to letters, digits, hyphen and underscore.

    Raises:
        InvalidNameError: If name is empty or not a string
    """
    if not isinstance(name, str) or not name:
        raise InvalidNameError(name)
    return _UNSAFE_NAME_CHARS.sub("_", name)


class PersistencePipeline:
    """Writes store snapshots through a backend with trailing-edge debounce.

    At most one write runs at a time, and a snapshot older than the one
    already written is dropped rather than written over it.

    Example:
        pipeline = PersistencePipeline(backend, source=lambda: entries, lock=lock)
        pipeline.schedule()   # write in write_delay ms
        pipeline.schedule()   # restarts the delay; still one write
        pipeline.flush()      # write now
    """

    def __init__(
        self,
        backend: StorageBackend,
        source: Callable[[], Dict[str, Entry]],
        lock: Optional[threading.RLock] = None,
        enabled: bool = True,
        write_delay: float = 50,
        serializer: Optional[Serializer] = None,
    ):
        """Create a pipeline.

        Args:
            backend: Where snapshots go
            source: Returns the current entries; called with lock held
            lock: Lock guarding the entries returned by source
            enabled: If False, schedule() and flush() never write
            write_delay: Debounce window in milliseconds
            serializer: Serializer for snapshots (default: Serializer())
        """
        self._backend = backend
        self._source = source
        self._lock = lock or threading.RLock()
        self._serializer = serializer or Serializer()
        self.enabled = enabled
        self.write_delay = write_delay

        self._timer: Optional[threading.Timer] = None
        self._timer_lock = threading.Lock()
        self._writer_lock = threading.Lock()
        self._sequence = 0
        self._written = 0

    @property
    def backend(self) -> StorageBackend:
        return self._backend

    @property
    def serializer(self) -> Serializer:
        return self._serializer

    @property
    def pending(self) -> bool:
        """True while a debounced write is waiting to fire."""
        with self._timer_lock:
            return self._timer is not None

    # Writing

    def schedule(self) -> None:
        """Request a write after the debounce window.

        Write failures on this path are logged, never raised.
        """
        if not self.enabled:
            return
        if self.write_delay <= 0:
            self._write_logged()
            return
        with self._timer_lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self.write_delay / 1000.0, self._on_timer)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def _on_timer(self) -> None:
        with self._timer_lock:
            if self._timer is not threading.current_thread():
                return
            self._timer = None
        self._write_logged()

    def _cancel(self) -> bool:
        with self._timer_lock:
            timer, self._timer = self._timer, None
        if timer is None:
            return False
        timer.cancel()
        return True

    def _write(self) -> bool:
        with self._lock:
            text = self._serializer.dumps(self._source())
            self._sequence += 1
            sequence = self._sequence
        with self._writer_lock:
            if sequence < self._written:
                return False
            self._backend.write(text)
            self._written = sequence
        return True

    def _write_logged(self) -> None:
        try:
            self._write()
        except (OSError, StoreError):
            logger.exception("Failed to persist store to %s", self._backend.location)

    def flush(self) -> bool:
        """Cancel any pending debounce and write now.

        Returns:
            True if a snapshot was written, False if saving is disabled

        Raises:
            PersistenceError: If the backend fails to write
            SerializationError: If a stored value is not JSON-representable
        """
        self._cancel()
        if not self.enabled:
            return False
        try:
            return self._write()
        except OSError as e:
            raise PersistenceError(f"Failed to write {self._backend.location}: {e}") from e

    def close(self) -> None:
        """Write any pending snapshot and stop the timer."""
        if self._cancel():
            self._write_logged()

    # Loading

    def load(self) -> Dict[str, Entry]:
        """Read the live snapshot, falling back to the recovery copy, then empty.

        Corruption is logged and recovered from; it never raises.
        """
        try:
            text = self._backend.read()
        except OSError:
            logger.exception("Failed to read %s; starting empty", self._backend.location)
            return {}
        if text is None:
            return {}

        try:
            return self._serializer.loads(text)
        except SerializationError as e:
            logger.warning(
                "Store data at %s is corrupt (%s); trying recovery copy",
                self._backend.location,
                e,
            )

        try:
            recovery = self._backend.read_recovery()
        except OSError:
            logger.exception("Failed to read recovery copy of %s", self._backend.location)
            recovery = None

        if recovery is not None:
            try:
                entries = self._serializer.loads(recovery)
            except SerializationError as e:
                logger.warning("Recovery copy is corrupt too (%s); starting empty", e)
            else:
                if self.enabled:
                    try:
                        self._backend.write(recovery, keep_recovery=False)
                    except OSError:
                        logger.exception("Failed to restore %s from recovery copy", self._backend.location)
                logger.info("Loaded store from recovery copy of %s", self._backend.location)
                return entries
        return {}

    # Named backups

    def backup(self, name: str) -> str:
        """Write the current entries as a named backup.

        Returns:
            Location of the backup

        Raises:
            InvalidNameError: If name is empty
            PersistenceError: If saving is disabled or the backend fails to write
        """
        safe_name = sanitize_name(name)
        if not self.enabled:
            raise PersistenceError(f"Saving is disabled; backup {safe_name!r} not written")
        with self._lock:
            text = self._serializer.dumps(self._source())
        try:
            location = self._backend.write_backup(safe_name, text)
        except OSError as e:
            raise PersistenceError(f"Failed to write backup {safe_name!r}: {e}") from e
        logger.info("Wrote backup %r to %s", safe_name, location)
        return location

    def restore(self, name: str) -> Dict[str, Entry]:
        """Read a named backup.

        Raises:
            InvalidNameError: If name is empty
            NotFoundError: If no backup with that name exists
            SerializationError: If the backup is corrupt
        """
        safe_name = sanitize_name(name)
        try:
            text = self._backend.read_backup(safe_name)
        except OSError as e:
            raise PersistenceError(f"Failed to read backup {safe_name!r}: {e}") from e
        if text is None:
            raise NotFoundError(safe_name, what="backup")
        return self._serializer.loads(text)

    def list_backups(self) -> List[str]:
        return list(self._backend.list_backups())
