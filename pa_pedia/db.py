"""
PA-Pedia - Local Faction Store
===============================
SQLite persistence for user-uploaded ("local") factions: the raw
metadata.json / units.json payloads plus their asset blobs.

All public methods are coroutines; the sqlite work runs in a worker thread
so the event loop never blocks on disk I/O.
"""

import asyncio
import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from pa_pedia.config import DB_PATH

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS factions (
    id          TEXT PRIMARY KEY,
    metadata    TEXT NOT NULL,
    unit_index  TEXT NOT NULL,
    uploaded_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS assets (
    faction_id  TEXT NOT NULL,
    path        TEXT NOT NULL,
    data        BLOB NOT NULL,
    PRIMARY KEY (faction_id, path)
);

CREATE TABLE IF NOT EXISTS metadata (
    key   TEXT PRIMARY KEY,
    value TEXT
);
"""

SCHEMA_VERSION = "1"


class LocalFactionStore:
    def __init__(self, db_path=DB_PATH):
        self.db_path = Path(db_path)
        self._initialized = False

    # -- sync helpers (run in a worker thread) -------------------------------

    def _connect(self) -> sqlite3.Connection:
        if not self._initialized:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        if not self._initialized:
            conn.executescript(_SCHEMA)
            conn.execute("INSERT OR REPLACE INTO metadata VALUES (?, ?)",
                         ("schema_version", SCHEMA_VERSION))
            conn.commit()
            self._initialized = True
        return conn

    def _save(self, faction_id: str, metadata: dict, index: dict,
              assets: Dict[str, bytes]):
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM assets WHERE faction_id = ?", (faction_id,))
                conn.execute(
                    "INSERT OR REPLACE INTO factions (id, metadata, unit_index, uploaded_at) "
                    "VALUES (?, ?, ?, ?)",
                    (faction_id, json.dumps(metadata), json.dumps(index),
                     datetime.now().isoformat()),
                )
                conn.executemany(
                    "INSERT INTO assets (faction_id, path, data) VALUES (?, ?, ?)",
                    [(faction_id, path, data) for path, data in assets.items()],
                )
        finally:
            conn.close()
        logger.info("Saved local faction %s (%d assets)", faction_id, len(assets))

    def _delete(self, faction_id: str):
        conn = self._connect()
        try:
            with conn:
                conn.execute("DELETE FROM assets WHERE faction_id = ?", (faction_id,))
                conn.execute("DELETE FROM factions WHERE id = ?", (faction_id,))
        finally:
            conn.close()
        logger.info("Deleted local faction %s", faction_id)

    def _fetch_column(self, faction_id: str, column: str) -> Optional[dict]:
        conn = self._connect()
        try:
            row = conn.execute(f"SELECT {column} FROM factions WHERE id = ?",
                               (faction_id,)).fetchone()
        finally:
            conn.close()
        return json.loads(row[0]) if row else None

    def _list_ids(self) -> List[str]:
        conn = self._connect()
        try:
            return [r[0] for r in conn.execute("SELECT id FROM factions ORDER BY id")]
        finally:
            conn.close()

    def _get_asset(self, faction_id: str, path: str) -> Optional[bytes]:
        conn = self._connect()
        try:
            row = conn.execute(
                "SELECT data FROM assets WHERE faction_id = ? AND path = ?",
                (faction_id, path),
            ).fetchone()
        finally:
            conn.close()
        return bytes(row[0]) if row else None

    # -- async API -----------------------------------------------------------

    async def save(self, faction_id: str, metadata: dict, index: dict,
                   assets: Optional[Dict[str, bytes]] = None):
        """Insert or replace a faction. Previous assets are dropped."""
        await asyncio.to_thread(self._save, faction_id, metadata, index, assets or {})

    async def delete(self, faction_id: str):
        await asyncio.to_thread(self._delete, faction_id)

    async def has(self, faction_id: str) -> bool:
        return (await self.get_metadata(faction_id)) is not None

    async def list_ids(self) -> List[str]:
        return await asyncio.to_thread(self._list_ids)

    async def get_metadata(self, faction_id: str) -> Optional[dict]:
        return await asyncio.to_thread(self._fetch_column, faction_id, "metadata")

    async def get_index(self, faction_id: str) -> Optional[dict]:
        return await asyncio.to_thread(self._fetch_column, faction_id, "unit_index")

    async def get_asset(self, faction_id: str, path: str) -> Optional[bytes]:
        return await asyncio.to_thread(self._get_asset, faction_id, path)
