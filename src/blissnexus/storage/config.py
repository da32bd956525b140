"""Storage configuration for BlissNexus.

This module provides configuration for storage backends and a factory
function to create the appropriate repository based on configuration.
"""

import os
from enum import Enum

from .file_repo import FileWorldRepository
from .memory_repo import MemoryWorldRepository
from .repository import WorldRepository
from .sqlite_repo import SQLiteWorldRepository


class StorageBackend(Enum):
    """Available storage backends."""

    FILE = "file"
    SQLITE = "sqlite"
    NONE = "none"


# Default configuration (can be overridden via environment variables)
DEFAULT_STORAGE_BACKEND = StorageBackend.FILE
DEFAULT_WORLDS_PATH = "worlds"
DEFAULT_DATABASE_URI = "instance/blissnexus.db"


def get_storage_backend() -> StorageBackend:
    """Get configured storage backend from environment.

    Returns:
        StorageBackend enum value

    Raises:
        ValueError: If the configured backend name is unknown
    """
    backend_str = os.environ.get("BLISSNEXUS_STORAGE_BACKEND", DEFAULT_STORAGE_BACKEND.value).lower()
    try:
        return StorageBackend(backend_str)
    except ValueError:
        raise ValueError(f"Unknown storage backend: {backend_str}") from None


def get_worlds_path() -> str:
    """Get configured worlds path from environment."""
    return os.environ.get("BLISSNEXUS_WORLDS_PATH", DEFAULT_WORLDS_PATH)


def get_database_uri() -> str:
    """Get configured database URI from environment."""
    return os.environ.get("BLISSNEXUS_DATABASE_URI", DEFAULT_DATABASE_URI)


def get_world_repository(
    backend: StorageBackend | None = None,
    worlds_path: str | None = None,
    database_uri: str | None = None,
) -> WorldRepository:
    """Factory function to create a world repository.

    Args:
        backend: Storage backend to use. If None, uses environment config.
        worlds_path: Directory for the file backend. If None, uses environment config.
        database_uri: Database file for the SQLite backend. If None, uses environment config.

    Returns:
        WorldRepository instance
    """
    if backend is None:
        backend = get_storage_backend()

    if backend == StorageBackend.SQLITE:
        return SQLiteWorldRepository(database_uri or get_database_uri())
    if backend == StorageBackend.NONE:
        return MemoryWorldRepository()
    return FileWorldRepository(worlds_path or get_worlds_path())
