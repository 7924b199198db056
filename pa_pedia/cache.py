"""
PA-Pedia - Faction Data Cache
==============================
Single source of truth for faction metadata, faction indexes and units for
one application session.

Metadata is loaded once at startup; indexes (and the units embedded in
them) are loaded lazily per faction. At most one fetch per faction cache
key is ever in flight: a second load_faction for a key that is already
loading returns immediately instead of issuing a duplicate fetch, and
wait_for_faction lets callers that need the index wait for that load.

Collaborators are injected:
  source       list_factions(), fetch_faction_metadata(id, is_local),
               fetch_faction_index(id, version, is_local),
               list_versions(id, is_local)
  local_store  save(), delete(), has() for uploaded factions
  parser       parse(file) -> ParsedFaction
  assets       resolve(id, path, is_local), clear_faction(id)

There is no timeout: a fetch that never resolves leaves its key pending
for the rest of the session.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional

from pa_pedia.catalog import find_best_matching_unit
from pa_pedia.errors import (
    FactionDataError, InvalidOperationError, MetadataLoadError, UnitNotFoundError,
)
from pa_pedia.models import (
    FactionIndex, FactionMetadata, GroupMember, Unit, UploadResult,
)
from pa_pedia.refs import (
    faction_cache_key, is_local_faction_id, parse_faction_ref, unit_cache_key,
)

logger = logging.getLogger(__name__)


def _belongs_to(faction_key: str, base: str) -> bool:
    """True if a cache key (with or without @version) is for faction `base`."""
    return faction_key == base or faction_key.startswith(base + "@")


class FactionDataCache:
    def __init__(self, source, local_store=None, parser=None, assets=None):
        self.source = source
        self.local_store = local_store
        self.parser = parser
        self.assets = assets

        self.factions: Dict[str, FactionMetadata] = {}
        self.factions_loading = False
        self.metadata_error: Optional[Exception] = None

        self.faction_indexes: Dict[str, FactionIndex] = {}
        self.units: Dict[str, Unit] = {}
        self.faction_errors: Dict[str, Exception] = {}
        self.unit_errors: Dict[str, Exception] = {}
        self.faction_versions: Dict[str, List[str]] = {}

        self._in_flight: Dict[str, asyncio.Event] = {}
        # Bumped on invalidation so a load that started earlier can't write back stale data
        self._generations: Dict[str, int] = {}

    # -----------------------------------------------------------------------
    # Metadata
    # -----------------------------------------------------------------------

    async def load_faction_metadata_all(self) -> Dict[str, FactionMetadata]:
        """
        Fetch metadata for every known faction, keyed by folder name.

        A faction whose fetch fails is left out. Only when every fetch fails
        is the map emptied and MetadataLoadError raised.
        """
        self.factions_loading = True
        try:
            try:
                listing = await self.source.list_factions()
            except Exception as e:
                logger.error("Failed to list factions: %s", e)
                self.metadata_error = e
                raise

            results = await asyncio.gather(
                *(self.source.fetch_faction_metadata(fid, is_local) for fid, is_local in listing),
                return_exceptions=True,
            )

            metadata: Dict[str, FactionMetadata] = {}
            errors: List[Exception] = []
            for (fid, _), result in zip(listing, results):
                if isinstance(result, Exception):
                    logger.error("Failed to load metadata for %s: %s", fid, result)
                    errors.append(result)
                elif isinstance(result, BaseException):
                    raise result
                else:
                    metadata[fid] = result

            if not metadata and errors:
                self.factions = {}
                self.metadata_error = MetadataLoadError(errors)
                raise self.metadata_error

            self.factions = metadata
            self.metadata_error = None
            logger.info("Loaded metadata for %d factions", len(metadata))
            return metadata
        finally:
            self.factions_loading = False

    async def refresh_factions(self) -> Dict[str, FactionMetadata]:
        return await self.load_faction_metadata_all()

    # -----------------------------------------------------------------------
    # Faction indexes & units
    # -----------------------------------------------------------------------

    async def load_faction(self, faction_id: str, version: Optional[str] = None):
        """
        Load a faction index and its embedded units.

        No-op when the key is cached or already loading. Errors are stored
        under the cache key and re-raised.
        """
        key = faction_cache_key(faction_id, version)
        if key in self.faction_indexes or key in self._in_flight:
            return

        done = asyncio.Event()
        self._in_flight[key] = done
        base = faction_id.lower()
        generation = self._generations.get(base, 0)
        try:
            # Metadata may not be loaded yet on a deep link; fall back to the id suffix
            meta = self.get_faction(faction_id)
            if meta is not None:
                is_local, source_id = meta.is_local, meta.folder_name
            else:
                is_local, source_id = is_local_faction_id(faction_id), faction_id

            index = await self.source.fetch_faction_index(source_id, version, is_local)

            if self._generations.get(base, 0) != generation:
                logger.info("Discarding load of %s: faction was replaced meanwhile", key)
                return

            # Index and units become visible together (no await in between)
            self.faction_indexes[key] = index
            for entry in index.units:
                self.units[unit_cache_key(key, entry.identifier)] = entry.unit
            self.faction_errors.pop(key, None)
            logger.info("Loaded faction %s (%d units)", key, len(index.units))
        except Exception as e:
            logger.error("Failed to load faction index for %s: %s", key, e)
            self.faction_errors[key] = e
            raise
        finally:
            self._in_flight.pop(key, None)
            done.set()

    async def wait_for_faction(self, faction_id: str,
                               version: Optional[str] = None) -> FactionIndex:
        """
        Load a faction, or wait for the load already in flight for the same
        key, and return its index. A failed load re-raises its stored error.
        """
        key = faction_cache_key(faction_id, version)
        while True:
            index = self.faction_indexes.get(key)
            if index is not None:
                return index
            pending = self._in_flight.get(key)
            if pending is None:
                # Raises on failure; loops again if the result was discarded as stale
                await self.load_faction(faction_id, version)
                continue
            await pending.wait()
            if key not in self.faction_indexes and key in self.faction_errors:
                raise self.faction_errors[key]

    async def load_unit(self, faction_id: str, unit_id: str,
                        version: Optional[str] = None) -> Unit:
        key = faction_cache_key(faction_id, version)
        ukey = unit_cache_key(key, unit_id)

        cached = self.units.get(ukey)
        if cached is not None:
            return cached

        await self.wait_for_faction(faction_id, version)

        unit = self.units.get(ukey)
        if unit is not None:
            self.unit_errors.pop(ukey, None)
            return unit

        err = UnitNotFoundError(faction_id, unit_id)
        logger.warning("%s", err)
        self.unit_errors[ukey] = err
        raise err

    async def load_members(self, members: List[GroupMember]) -> Dict[str, Exception]:
        """
        Make sure every member's unit is cached. Returns errors keyed by
        "faction/unit" instead of raising, so one bad member does not hide
        the rest of the group.
        """
        errors: Dict[str, Exception] = {}
        for member in members:
            ref = parse_faction_ref(member.faction_id)
            try:
                await self.load_unit(ref.faction_id, member.unit_id, ref.version)
            except FactionDataError as e:
                errors[f"{member.faction_id}/{member.unit_id}"] = e
        return errors

    async def list_versions(self, faction_id: str) -> List[str]:
        """Loadable versions of a faction, newest first. Cached per faction."""
        base = faction_id.lower()
        cached = self.faction_versions.get(base)
        if cached is not None:
            return cached
        meta = self.get_faction(faction_id)
        if meta is not None:
            is_local, source_id = meta.is_local, meta.folder_name
        else:
            is_local, source_id = is_local_faction_id(faction_id), faction_id
        versions = await self.source.list_versions(source_id, is_local)
        self.faction_versions[base] = versions
        return versions

    async def find_equivalent_unit(self, unit: Unit, faction_id: str,
                                   version: Optional[str] = None) -> Optional[Unit]:
        """Closest unit to `unit` in another faction, by shared unit types."""
        index = await self.wait_for_faction(faction_id, version)
        entry = find_best_matching_unit(unit.unit_types, index.units)
        return entry.unit if entry is not None else None

    # -----------------------------------------------------------------------
    # Local factions
    # -----------------------------------------------------------------------

    async def upload_faction(self, file) -> UploadResult:
        if self.parser is None or self.local_store is None:
            raise InvalidOperationError("Local faction uploads are not configured")

        parsed = await self.parser.parse(file)
        was_overwrite = await self.local_store.has(parsed.faction_id)
        await self.local_store.save(parsed.faction_id, parsed.metadata,
                                    parsed.index, parsed.assets)
        self.invalidate_faction(parsed.faction_id)
        logger.info("Uploaded local faction %s (overwrite=%s)", parsed.faction_id, was_overwrite)

        await self.refresh_factions()
        return UploadResult(faction_id=parsed.faction_id, was_overwrite=was_overwrite)

    async def delete_faction(self, faction_id: str):
        meta = self.get_faction(faction_id)
        if meta is None or not meta.is_local:
            raise InvalidOperationError(f"Cannot delete non-local faction '{faction_id}'")
        if self.local_store is None:
            raise InvalidOperationError("Local faction storage is not configured")

        await self.local_store.delete(meta.folder_name)
        self.invalidate_faction(meta.folder_name)
        logger.info("Deleted local faction %s", meta.folder_name)
        await self.refresh_factions()

    def invalidate_faction(self, faction_id: str):
        """Drop cached indexes, units and errors for every version of a faction."""
        base = faction_id.lower()
        self._generations[base] = self._generations.get(base, 0) + 1
        self.faction_versions.pop(base, None)

        for table in (self.faction_indexes, self.faction_errors):
            for key in [k for k in table if _belongs_to(k, base)]:
                del table[key]
        for table in (self.units, self.unit_errors):
            for key in [k for k in table if _belongs_to(k.split(":", 1)[0], base)]:
                del table[key]
        if self.assets is not None:
            self.assets.clear_faction(faction_id)

    # -----------------------------------------------------------------------
    # Read accessors (no side effects)
    # -----------------------------------------------------------------------

    def get_faction(self, faction_id: str) -> Optional[FactionMetadata]:
        meta = self.factions.get(faction_id)
        if meta is not None:
            return meta
        lowered = faction_id.lower()
        for name, candidate in self.factions.items():
            if name.lower() == lowered:
                return candidate
        return None

    def get_faction_index(self, faction_id: str,
                          version: Optional[str] = None) -> Optional[FactionIndex]:
        return self.faction_indexes.get(faction_cache_key(faction_id, version))

    def get_unit(self, faction_id: str, unit_id: str,
                 version: Optional[str] = None) -> Optional[Unit]:
        key = faction_cache_key(faction_id, version)
        return self.units.get(unit_cache_key(key, unit_id))

    def get_faction_error(self, faction_id: str,
                          version: Optional[str] = None) -> Optional[Exception]:
        return self.faction_errors.get(faction_cache_key(faction_id, version))

    def get_unit_error(self, faction_id: str, unit_id: str,
                       version: Optional[str] = None) -> Optional[Exception]:
        key = faction_cache_key(faction_id, version)
        return self.unit_errors.get(unit_cache_key(key, unit_id))

    def is_local_faction(self, faction_id: str) -> bool:
        meta = self.get_faction(faction_id)
        return meta.is_local if meta is not None else False

    def is_loading(self, faction_id: str, version: Optional[str] = None) -> bool:
        return faction_cache_key(faction_id, version) in self._in_flight

    def unit_lookup(self) -> Callable[[str, str], Optional[Unit]]:
        """get_unit-shaped callable for aggregate_group_stats; accepts "id@version"."""
        def lookup(faction_ref: str, unit_id: str) -> Optional[Unit]:
            ref = parse_faction_ref(faction_ref)
            return self.get_unit(ref.faction_id, unit_id, ref.version)
        return lookup

    async def resolve_asset_url(self, faction_id: str, relative_path: str) -> Optional[str]:
        if self.assets is None or not relative_path:
            return None
        meta = self.get_faction(faction_id)
        if meta is not None:
            is_local, folder = meta.is_local, meta.folder_name
        else:
            is_local, folder = is_local_faction_id(faction_id), faction_id
        return await self.assets.resolve(folder, relative_path, is_local)
