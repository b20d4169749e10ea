"""Storage backends for dotkv."""

from .base import StorageBackend
from .memory import MemoryBackend
from .json_file import JsonFileBackend

__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "JsonFileBackend",
]
