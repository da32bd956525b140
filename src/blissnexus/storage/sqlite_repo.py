"""SQLite-based repository implementation.

Stores one row per world with the snapshot serialized as JSON. Uses the
standard library sqlite3 module.
"""

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .repository import WorldRepository


def dict_factory(cursor: sqlite3.Cursor, row: tuple) -> dict:
    """Convert sqlite3 row to dict."""
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


class SQLiteWorldRepository(WorldRepository):
    """SQLite-based world repository."""

    def __init__(self, database_uri: str = "instance/blissnexus.db"):
        """Initialize repository.

        Args:
            database_uri: Path to SQLite database file
        """
        self.database_path = Path(database_uri)
        self.database_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get database connection."""
        conn = sqlite3.connect(self.database_path)
        conn.row_factory = dict_factory
        return conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS worlds (
                id TEXT PRIMARY KEY,
                year INTEGER,
                data TEXT NOT NULL,
                created_at TEXT,
                updated_at TEXT
            )
        """)
        conn.commit()
        conn.close()

    def save_world(self, world_id: str, blob: dict) -> None:
        """Persist a world snapshot (upsert)."""
        now = datetime.now(timezone.utc).isoformat()
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("""
            INSERT INTO worlds (id, year, data, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                year = excluded.year,
                data = excluded.data,
                updated_at = excluded.updated_at
        """, (
            world_id,
            blob.get("year", 1),
            json.dumps(blob, ensure_ascii=False),
            now,
            now,
        ))
        conn.commit()
        conn.close()

    def load_world(self, world_id: str) -> Optional[dict]:
        """Load a world snapshot by ID."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT data FROM worlds WHERE id = ?", (world_id,))
        row = cursor.fetchone()
        conn.close()

        if row is None:
            return None
        return json.loads(row["data"])

    def list_worlds(self) -> list[dict]:
        """Return metadata for all stored worlds."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("SELECT id, year, updated_at FROM worlds ORDER BY updated_at DESC")
        rows = cursor.fetchall()
        conn.close()
        return rows

    def delete_world(self, world_id: str) -> bool:
        """Delete a stored world."""
        conn = self._get_connection()
        cursor = conn.cursor()
        cursor.execute("DELETE FROM worlds WHERE id = ?", (world_id,))
        deleted = cursor.rowcount > 0
        conn.commit()
        conn.close()
        return deleted
