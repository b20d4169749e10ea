"""Store configuration using Pydantic.

Options may be given in snake_case or in the camelCase names used by the
on-disk tooling (filePath, backupPath, autoSave, autoCleanInterval,
writeDelay).
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_FILE_PATH = "data/dotkv.json"


class StoreConfig(BaseModel):
    """Validated store options."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    file_path: str = Field(
        default=DEFAULT_FILE_PATH,
        alias="filePath",
        description="Live snapshot file",
    )
    backup_path: Optional[str] = Field(
        default=None,
        alias="backupPath",
        description="Directory for named backups (default: 'backups' next to file_path)",
    )
    auto_save: bool = Field(
        default=True,
        alias="autoSave",
        description="Write snapshots after mutations",
    )
    auto_clean_interval: float = Field(
        default=60_000,
        ge=0,
        alias="autoCleanInterval",
        description="Milliseconds between expired entry sweeps; 0 disables the sweeper",
    )
    write_delay: float = Field(
        default=50,
        ge=0,
        alias="writeDelay",
        description="Debounce window for snapshot writes in milliseconds",
    )

    @field_validator("file_path")
    @classmethod
    def _file_path_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("file_path must not be blank")
        return value

    @property
    def backups_dir(self) -> Path:
        if self.backup_path:
            return Path(self.backup_path)
        return Path(self.file_path).parent / "backups"
