"""Storage module for BlissNexus.

This module provides the repository interface and implementations for
persisting world snapshots.

Usage:
    from blissnexus.storage import get_world_repository

    # Get repository using configured backend (from environment)
    worlds = get_world_repository()

    # Or specify backend explicitly
    from blissnexus.storage import StorageBackend
    worlds = get_world_repository(StorageBackend.SQLITE)

Configuration via environment variables:
    BLISSNEXUS_STORAGE_BACKEND: "file", "sqlite" or "none" (default: "file")
    BLISSNEXUS_WORLDS_PATH: Path to worlds directory (default: "worlds")
    BLISSNEXUS_DATABASE_URI: SQLite database path (default: "instance/blissnexus.db")
"""

from .config import (
    StorageBackend,
    get_database_uri,
    get_storage_backend,
    get_world_repository,
    get_worlds_path,
)
from .file_repo import FileWorldRepository
from .memory_repo import MemoryWorldRepository
from .repository import WorldRepository
from .sqlite_repo import SQLiteWorldRepository

__all__ = [
    # Abstract interface
    "WorldRepository",
    # Implementations
    "FileWorldRepository",
    "MemoryWorldRepository",
    "SQLiteWorldRepository",
    # Configuration
    "StorageBackend",
    "get_storage_backend",
    "get_worlds_path",
    "get_database_uri",
    # Factory function
    "get_world_repository",
]
