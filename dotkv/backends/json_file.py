"""JSON file storage backend."""

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterator, Optional, Union

from .base import StorageBackend

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".json"
RECOVERY_SUFFIX = ".bak"


class JsonFileBackend(StorageBackend):
    """Stores the snapshot in a single UTF-8 JSON file.

    Each write first copies the current file to "<file>.bak" (the recovery
    copy), then writes the new contents to a temporary file in the same
    directory and moves it into place. Named backups live in a separate
    directory as "<name>.json".

    Example:
        backend = JsonFileBackend("data/store.json")
        backend.connect()

        # Or with a custom backups directory
        backend = JsonFileBackend("data/store.json", backup_dir="snapshots")
    """

    def __init__(
        self,
        path: Union[str, Path],
        backup_dir: Optional[Union[str, Path]] = None,
    ):
        """Create a JSON file backend.

        Args:
            path: Location of the live snapshot file
            backup_dir: Directory for named backups (default: "backups"
                next to the snapshot file)
        """
        self._path = Path(path)
        self._recovery_path = self._path.with_name(self._path.name + RECOVERY_SUFFIX)
        self._backup_dir = Path(backup_dir) if backup_dir else self._path.parent / "backups"

    @property
    def path(self) -> Path:
        return self._path

    @property
    def backup_dir(self) -> Path:
        return self._backup_dir

    @property
    def location(self) -> str:
        return str(self._path)

    def connect(self, **kwargs) -> None:
        """Nothing to open; directories are created on first write."""
        pass

    def close(self) -> None:
        pass

    @staticmethod
    def _read_text(path: Path) -> Optional[str]:
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    @staticmethod
    def _write_text(path: Path, text: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

    def read(self) -> Optional[str]:
        return self._read_text(self._path)

    def read_recovery(self) -> Optional[str]:
        return self._read_text(self._recovery_path)

    def write(self, text: str, keep_recovery: bool = True) -> None:
        if keep_recovery and self._path.exists():
            shutil.copyfile(self._path, self._recovery_path)
        self._write_text(self._path, text)
        logger.debug("Wrote %d characters to %s", len(text), self._path)

    def size(self) -> int:
        try:
            return self._path.stat().st_size
        except FileNotFoundError:
            return 0

    def _backup_path(self, name: str) -> Path:
        return self._backup_dir / f"{name}{BACKUP_SUFFIX}"

    def write_backup(self, name: str, text: str) -> str:
        path = self._backup_path(name)
        self._write_text(path, text)
        return str(path)

    def read_backup(self, name: str) -> Optional[str]:
        return self._read_text(self._backup_path(name))

    def list_backups(self) -> Iterator[str]:
        if not self._backup_dir.is_dir():
            return
        for path in sorted(self._backup_dir.glob(f"*{BACKUP_SUFFIX}")):
            yield path.name[: -len(BACKUP_SUFFIX)]
