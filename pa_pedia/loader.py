"""
PA-Pedia - Faction Data Source
===============================
Reads faction metadata and unit indexes. Static (bundled) factions come
from a directory tree:

    <static_dir>/<folder>/metadata.json
    <static_dir>/<folder>/units.json
    <static_dir>/<folder>@<version>/units.json     (pinned versions)

Local (uploaded) factions are routed to the LocalFactionStore.
"""

import asyncio
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from pa_pedia.config import FACTIONS_DIR
from pa_pedia.errors import FactionNotFoundError
from pa_pedia.io import faction_index_from_dict, metadata_from_dict, read_json
from pa_pedia.models import FactionIndex, FactionMetadata
from pa_pedia.refs import build_faction_ref

logger = logging.getLogger(__name__)


def _version_key(version: str):
    """Numeric parts compare as numbers, so 1.10.0 sorts after 1.9.0."""
    return [(int(p), "") if p.isdigit() else (-1, p) for p in re.split(r"[.\-+]", version)]


class FactionDataSource:
    def __init__(self, static_dir=FACTIONS_DIR, local_store=None):
        self.static_dir = Path(static_dir)
        self.local_store = local_store

    def _discover_static(self) -> List[str]:
        if not self.static_dir.exists():
            return []
        return sorted(
            p.name for p in self.static_dir.iterdir()
            if p.is_dir() and "@" not in p.name and (p / "metadata.json").exists()
        )

    def _faction_dir(self, faction_id: str, version: Optional[str]) -> Path:
        folder = self.static_dir / build_faction_ref(faction_id, version)
        if folder.is_dir():
            return folder
        # Tolerate URL casing differences
        target = folder.name.lower()
        if self.static_dir.exists():
            for p in self.static_dir.iterdir():
                if p.is_dir() and p.name.lower() == target:
                    return p
        raise FactionNotFoundError(faction_id, version)

    def _read_static(self, faction_id: str, version: Optional[str], filename: str) -> dict:
        path = self._faction_dir(faction_id, version) / filename
        if not path.exists():
            raise FactionNotFoundError(faction_id, version)
        return read_json(path)

    def _discover_versions(self, faction_id: str) -> List[str]:
        try:
            metadata = self._read_static(faction_id, None, "metadata.json")
        except FactionNotFoundError:
            metadata = {}
        latest = metadata.get("version") or None

        prefix = faction_id.lower() + "@"
        pinned = []
        if self.static_dir.exists():
            pinned = [
                p.name.split("@", 1)[1] for p in self.static_dir.iterdir()
                if p.is_dir() and p.name.lower().startswith(prefix)
            ]
        if latest is None and not pinned:
            raise FactionNotFoundError(faction_id)

        pinned = sorted(set(pinned) - {latest}, key=_version_key, reverse=True)
        return ([latest] if latest else []) + pinned


    async def list_factions(self) -> List[Tuple[str, bool]]:
        """All known factions as (folder_name, is_local)."""
        static = await asyncio.to_thread(self._discover_static)
        result = [(name, False) for name in static]
        if self.local_store is not None:
            result.extend((fid, True) for fid in await self.local_store.list_ids())
        return result

    async def fetch_faction_metadata(self, faction_id: str,
                                     is_local: bool = False) -> FactionMetadata:
        if is_local:
            data = await self._local_payload(faction_id, None, "metadata")
        else:
            data = await asyncio.to_thread(self._read_static, faction_id, None, "metadata.json")
        return metadata_from_dict(data, folder_name=faction_id, is_local=is_local)

    async def list_versions(self, faction_id: str, is_local: bool = False) -> List[str]:
        """
        Versions a faction can be loaded at, the latest first. Pinned
        versions come from `<folder>@<version>` directories; local factions
        only ever have the version they were uploaded with.
        """
        if is_local:
            data = await self._local_payload(faction_id, None, "metadata")
            version = data.get("version")
            return [version] if version else []
        return await asyncio.to_thread(self._discover_versions, faction_id)


    async def fetch_faction_index(self, faction_id: str, version: Optional[str] = None,
                                  is_local: bool = False) -> FactionIndex:
        if is_local:
            data = await self._local_payload(faction_id, version, "index")
        else:
            data = await asyncio.to_thread(self._read_static, faction_id, version, "units.json")
        index = faction_index_from_dict(data)
        logger.debug("Loaded %d units for %s", len(index.units),
                     build_faction_ref(faction_id, version))
        return index

    async def _local_payload(self, faction_id: str, version: Optional[str], kind: str) -> dict:
        if self.local_store is None:
            raise FactionNotFoundError(faction_id, version)
        if kind == "metadata":
            data = await self.local_store.get_metadata(faction_id)
        else:
            data = await self.local_store.get_index(faction_id)
        if data is None:
            raise FactionNotFoundError(faction_id, version)
        return data
