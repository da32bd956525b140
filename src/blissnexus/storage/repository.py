"""Abstract repository interface for BlissNexus world snapshots.

A world snapshot is the JSON blob produced by ``World.to_blob``. Backends
store and return it verbatim; validation and backfilling of missing fields
happen in ``World.from_blob`` when a session loads it.

Persistence is best effort: sessions catch and log repository errors and keep
running on the in-memory world.
"""

from abc import ABC, abstractmethod
from typing import Optional


class WorldRepository(ABC):
    """Abstract base class for world snapshot storage."""

    @abstractmethod
    def save_world(self, world_id: str, blob: dict) -> None:
        """Persist a world snapshot, replacing any previous one.

        Args:
            world_id: Session/world identifier
            blob: JSON-compatible world snapshot
        """
        pass

    @abstractmethod
    def load_world(self, world_id: str) -> Optional[dict]:
        """Load the latest snapshot of a world.

        Args:
            world_id: Session/world identifier

        Returns:
            Snapshot dict, or None if the world was never saved
        """
        pass

    @abstractmethod
    def list_worlds(self) -> list[dict]:
        """Return metadata for all stored worlds.

        Returns:
            List of dicts containing: {id, year, updated_at}
        """
        pass

    @abstractmethod
    def delete_world(self, world_id: str) -> bool:
        """Delete a stored world.

        Returns:
            True if deleted, False if not found
        """
        pass
