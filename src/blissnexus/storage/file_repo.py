"""File-based repository implementation using JSON files.

Each world is stored as ``<worlds_path>/<slug>.json``. Writes go to a
temporary file first and are renamed into place, so a crash mid-save never
leaves a truncated snapshot behind.
"""

import json
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .repository import WorldRepository


def slugify(text: str) -> str:
    """Convert a world id to a filesystem-safe slug.

    Examples:
        >>> slugify("Main World")
        'main-world'
        >>> slugify("../etc/passwd")
        'etc-passwd'
    """
    text = text.lower()
    text = re.sub(r"[\s_/\\.]+", "-", text)
    text = re.sub(r"[^a-z0-9-]", "", text)
    text = re.sub(r"-+", "-", text)
    text = text.strip("-")
    return text or "world"


class FileWorldRepository(WorldRepository):
    """JSON file-based world repository."""

    def __init__(self, worlds_path: str | Path = "worlds"):
        """Initialize repository.

        Args:
            worlds_path: Path to worlds directory
        """
        self.worlds_path = Path(worlds_path)
        self.worlds_path.mkdir(parents=True, exist_ok=True)

    def _get_world_path(self, world_id: str) -> Path:
        """Get path to world file."""
        return self.worlds_path / f"{slugify(world_id)}.json"

    def save_world(self, world_id: str, blob: dict) -> None:
        """Persist a world snapshot."""
        path = self._get_world_path(world_id)
        blob_with_meta = {
            **blob,
            "world_id": world_id,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        tmp_path = path.with_suffix(".json.tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(blob_with_meta, f, ensure_ascii=False)
        tmp_path.replace(path)

    def load_world(self, world_id: str) -> Optional[dict]:
        """Load a world snapshot by ID."""
        path = self._get_world_path(world_id)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def list_worlds(self) -> list[dict]:
        """List stored worlds, most recently saved first."""
        worlds = []
        for path in self.worlds_path.glob("*.json"):
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            worlds.append({
                "id": data.get("world_id", path.stem),
                "year": data.get("year", 1),
                "updated_at": data.get("updated_at", ""),
            })
        return sorted(worlds, key=lambda x: x.get("updated_at", ""), reverse=True)

    def delete_world(self, world_id: str) -> bool:
        """Delete a stored world."""
        path = self._get_world_path(world_id)
        if path.exists():
            path.unlink()
            return True
        return False
