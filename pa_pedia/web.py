"""
PA-Pedia - Web API
===================
FastAPI server exposing the faction cache and the comparison tools as JSON.

Usage:
    python -m pa_pedia.web
    python cli.py web [--port 8080]
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field
import uvicorn

from pa_pedia.cache import FactionDataCache
from pa_pedia.catalog import get_unit_category, sort_factions
from pa_pedia.commanders import group_variants, hidden_variant_count
from pa_pedia.errors import (
    FactionDataError, FactionNotFoundError, InvalidOperationError,
    UnitNotFoundError,
)
from pa_pedia.groups import aggregate_group_stats, match_aggregated_weapons
from pa_pedia.models import GroupMember
from pa_pedia.refs import parse_comparison_ref, parse_faction_ref
from pa_pedia.weapons import combat_weapons, match_weapons_by_target_layers

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Pydantic models for requests
# ---------------------------------------------------------------------------

class CompareUnitsRequest(BaseModel):
    a: str  # "faction[@version]/unit"
    b: str


class GroupMemberIn(BaseModel):
    faction: str
    unit: str
    quantity: int = Field(1, ge=1)


class CompareGroupsRequest(BaseModel):
    a: list[GroupMemberIn] = []
    b: list[GroupMemberIn] = []


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, (FactionNotFoundError, UnitNotFoundError)):
        return HTTPException(404, str(e))
    if isinstance(e, InvalidOperationError):
        return HTTPException(400, str(e))
    return HTTPException(502, f"Error loading data: {e}")


def _pair_dicts(pairs):
    return [[asdict(a) if a else None, asdict(b) if b else None] for a, b in pairs]


def _members(items: list[GroupMemberIn]) -> list[GroupMember]:
    return [GroupMember(faction_id=m.faction, unit_id=m.unit, quantity=m.quantity)
            for m in items]


def create_app(cache: FactionDataCache, load_metadata: bool = True) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if load_metadata:
            try:
                await cache.load_faction_metadata_all()
            except (FactionDataError, OSError) as e:
                # Served as an error from /api/factions; the server stays up
                logger.error("Initial metadata load failed: %s", e)
        yield

    app = FastAPI(title="PA-Pedia", lifespan=lifespan)
    app.state.cache = cache

    @app.get("/api/factions")
    async def api_factions():
        if not cache.factions and cache.metadata_error is not None:
            raise _http_error(cache.metadata_error)
        return {"factions": [asdict(f) for f in sort_factions(list(cache.factions.values()))]}

    @app.get("/api/factions/{faction_ref}")
    async def api_faction(faction_ref: str):
        ref = parse_faction_ref(faction_ref)
        try:
            index = await cache.wait_for_faction(ref.faction_id, ref.version)
            versions = await cache.list_versions(ref.faction_id)
        except (FactionDataError, OSError) as e:
            raise _http_error(e)

        grouping = group_variants(index.units)
        meta = cache.get_faction(ref.faction_id)
        background = None
        if meta is not None and meta.background_image:
            background = await cache.resolve_asset_url(meta.folder_name, meta.background_image)
        return {
            "faction": asdict(meta) if meta else {"folder_name": ref.faction_id},
            "version": ref.version,
            "versions": versions,
            "background_image_url": background,
            "units": [
                {
                    "identifier": e.identifier,
                    "display_name": e.display_name,
                    "unit_types": e.unit_types,
                    "category": get_unit_category(e.unit_types),
                }
                for e in index.units
            ],
            "commanders": [
                {
                    "representative": g.representative.identifier,
                    "variants": [v.identifier for v in g.variants],
                    "stats_hash": g.stats_hash,
                }
                for g in grouping.commanders
            ],
            "hidden_variants": hidden_variant_count(grouping),
        }

    @app.get("/api/factions/{faction_ref}/units/{unit_id}")
    async def api_unit(faction_ref: str, unit_id: str):
        ref = parse_faction_ref(faction_ref)
        try:
            unit = await cache.load_unit(ref.faction_id, unit_id, ref.version)
        except (FactionDataError, OSError) as e:
            raise _http_error(e)
        return asdict(unit)

    @app.delete("/api/factions/{faction_id}")
    async def api_delete_faction(faction_id: str):
        try:
            await cache.delete_faction(faction_id)
        except (FactionDataError, OSError) as e:
            raise _http_error(e)
        return {"deleted": faction_id}

    @app.post("/api/compare/units")
    async def api_compare_units(req: CompareUnitsRequest):
        ref_a, ref_b = parse_comparison_ref(req.a), parse_comparison_ref(req.b)
        if not ref_a.unit_id:
            raise HTTPException(400, f"Missing unit id in '{req.a}'")
        try:
            unit_a = await cache.load_unit(ref_a.faction_id, ref_a.unit_id, ref_a.version)
            if ref_b.unit_id:
                unit_b = await cache.load_unit(ref_b.faction_id, ref_b.unit_id, ref_b.version)
            else:
                # Faction only: compare against its closest unit
                unit_b = await cache.find_equivalent_unit(unit_a, ref_b.faction_id, ref_b.version)
        except (FactionDataError, OSError) as e:
            raise _http_error(e)
        if unit_b is None:
            raise HTTPException(404, f"No unit in {ref_b.faction_id} resembles {unit_a.display_name}")
        pairs = match_weapons_by_target_layers(combat_weapons(unit_a), combat_weapons(unit_b))
        return {"a": asdict(unit_a), "b": asdict(unit_b), "weapons": _pair_dicts(pairs)}

    @app.post("/api/compare/groups")
    async def api_compare_groups(req: CompareGroupsRequest):
        members_a, members_b = _members(req.a), _members(req.b)
        errors = await cache.load_members(members_a + members_b)
        lookup = cache.unit_lookup()
        stats_a = aggregate_group_stats(members_a, lookup)
        stats_b = aggregate_group_stats(members_b, lookup)
        pairs = match_aggregated_weapons(stats_a.weapons if stats_a else [],
                                         stats_b.weapons if stats_b else [])
        return {
            "a": asdict(stats_a) if stats_a else None,
            "b": asdict(stats_b) if stats_b else None,
            "weapons": _pair_dicts(pairs),
            "errors": {key: str(e) for key, e in errors.items()},
        }

    return app


def build_default_cache() -> FactionDataCache:
    from pa_pedia.assets import AssetUrlResolver
    from pa_pedia.db import LocalFactionStore
    from pa_pedia.loader import FactionDataSource

    store = LocalFactionStore()
    return FactionDataCache(
        source=FactionDataSource(local_store=store),
        local_store=store,
        assets=AssetUrlResolver(local_store=store),
    )


def start_server(port: int = 8080, cache: Optional[FactionDataCache] = None):
    """Start the uvicorn server."""
    app = create_app(cache or build_default_cache())
    print(f"Starting PA-Pedia at http://localhost:{port}")
    uvicorn.run(app, host="0.0.0.0", port=port, log_level="info")


if __name__ == "__main__":
    start_server()
