"""In-process repository used when persistence is disabled."""

import copy
from datetime import datetime, timezone
from typing import Optional

from .repository import WorldRepository


class MemoryWorldRepository(WorldRepository):
    """Keeps snapshots in a dict; everything is lost with the process."""

    def __init__(self):
        self._worlds: dict[str, dict] = {}

    def save_world(self, world_id: str, blob: dict) -> None:
        self._worlds[world_id] = {
            **copy.deepcopy(blob),
            "world_id": world_id,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }

    def load_world(self, world_id: str) -> Optional[dict]:
        blob = self._worlds.get(world_id)
        return copy.deepcopy(blob) if blob is not None else None

    def list_worlds(self) -> list[dict]:
        return [
            {"id": world_id, "year": blob.get("year", 1), "updated_at": blob.get("updated_at", "")}
            for world_id, blob in sorted(self._worlds.items())
        ]

    def delete_world(self, world_id: str) -> bool:
        return self._worlds.pop(world_id, None) is not None
