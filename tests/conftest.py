"""Shared test fixtures for the PA-Pedia test suite."""

import json
import sys
from pathlib import Path

import pytest

# Ensure the project root is on the path so `pa_pedia` imports work
PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pa_pedia.errors import FactionNotFoundError
from pa_pedia.models import (
    CombatSpecs, EconomySpecs, FactionIndex, FactionMetadata, MobilitySpecs,
    ReconSpecs, SpecialSpecs, Unit, UnitIndexEntry, UnitSpecs, Weapon,
)
from pa_pedia.refs import build_faction_ref


# ---------------------------------------------------------------------------
# Model builders
# ---------------------------------------------------------------------------

def make_weapon(safe_name="light_laser", layers=("WL_LandHorizontal",), **kwargs):
    return Weapon(safe_name=safe_name,
                  target_layers=list(layers) if layers is not None else None,
                  **kwargs)


def make_unit(identifier="unit", display_name=None, unit_types=("Tank", "Land", "Mobile"),
              health=100.0, build_cost=50.0, dps=None, weapons=None,
              move_speed=None, vision=None, amphibious=None, hover=None, **economy):
    special = None
    if amphibious is not None or hover is not None:
        special = SpecialSpecs(amphibious=amphibious, hover=hover)
    return Unit(
        identifier=identifier,
        display_name=display_name or identifier,
        unit_types=list(unit_types),
        specs=UnitSpecs(
            combat=CombatSpecs(health=health, dps=dps, weapons=list(weapons or [])),
            economy=EconomySpecs(build_cost=build_cost, **economy),
            mobility=MobilitySpecs(move_speed=move_speed) if move_speed is not None else None,
            recon=ReconSpecs(vision_radius=vision) if vision is not None else None,
            special=special,
        ),
    )


def make_entry(unit: Unit) -> UnitIndexEntry:
    return UnitIndexEntry(
        identifier=unit.identifier,
        display_name=unit.display_name,
        unit_types=list(unit.unit_types),
        unit=unit,
    )


def make_commander(identifier, display_name=None, hover=False, health=12500.0):
    return make_entry(make_unit(
        identifier, display_name, unit_types=("Commander", "Land", "Mobile"),
        health=health, build_cost=50000.0, dps=450.0, move_speed=10.0,
        weapons=[make_weapon("uber_cannon", damage=3000.0, dps=3000.0, max_range=150.0)],
        hover=hover,
    ))


def make_index(*units: Unit) -> FactionIndex:
    return FactionIndex(units=[make_entry(u) for u in units])


# ---------------------------------------------------------------------------
# JSON payload builders (camelCase, as the data files ship)
# ---------------------------------------------------------------------------

def unit_payload(identifier, display_name=None, unit_types=("Tank", "Land", "Mobile"),
                 health=100, build_cost=50, dps=10, weapons=None):
    unit = {
        "identifier": identifier,
        "displayName": display_name or identifier,
        "unitTypes": list(unit_types),
        "specs": {
            "combat": {"health": health, "dps": dps, "weapons": weapons or []},
            "economy": {"buildCost": build_cost},
        },
    }
    return {
        "identifier": identifier,
        "displayName": unit["displayName"],
        "unitTypes": list(unit_types),
        "source": "test",
        "files": [],
        "unit": unit,
    }


def metadata_payload(identifier, display_name=None, version="1.0.0", faction_type="mod",
                     background_image=None):
    payload = {
        "identifier": identifier,
        "displayName": display_name or identifier,
        "version": version,
        "type": faction_type,
    }
    if background_image:
        payload["backgroundImage"] = background_image
    return payload


def write_faction(root: Path, folder: str, metadata: dict, units: list):
    path = root / folder
    path.mkdir(parents=True, exist_ok=True)
    (path / "metadata.json").write_text(json.dumps(metadata))
    (path / "units.json").write_text(json.dumps({"units": units}))
    return path


# ---------------------------------------------------------------------------
# Collaborator fakes
# ---------------------------------------------------------------------------

class FakeSource:
    """
    In-memory data source. Indexes are keyed by "folder" or "folder@version".
    Set `gate` (an asyncio.Event created inside the running loop) to hold
    index fetches until the test releases them.
    """

    def __init__(self, metadata=None, indexes=None, metadata_failures=()):
        self.metadata = dict(metadata or {})
        self.indexes = dict(indexes or {})
        self.metadata_failures = set(metadata_failures)
        self.gate = None
        self.index_calls = []
        self.metadata_calls = []
        self.version_calls = []

    async def list_factions(self):
        return [(fid, meta.is_local) for fid, meta in self.metadata.items()]

    async def fetch_faction_metadata(self, faction_id, is_local=False):
        self.metadata_calls.append(faction_id)
        if faction_id in self.metadata_failures:
            raise OSError(f"network down for {faction_id}")
        return self.metadata[faction_id]

    async def fetch_faction_index(self, faction_id, version=None, is_local=False):
        self.index_calls.append((faction_id, version, is_local))
        if self.gate is not None:
            await self.gate.wait()
        index = self.indexes.get(build_faction_ref(faction_id, version))
        if index is None:
            raise FactionNotFoundError(faction_id, version)
        return index

    async def list_versions(self, faction_id, is_local=False):
        self.version_calls.append(faction_id)
        latest = self.metadata.get(faction_id)
        pinned = sorted((key.split("@", 1)[1] for key in self.indexes
                         if key.startswith(faction_id + "@")), reverse=True)
        return ([latest.version] if latest else []) + pinned



class FakeStore:
    def __init__(self):
        self.calls = []
        self.saved = {}

    async def save(self, faction_id, metadata, index, assets=None):
        self.calls.append(("save", faction_id))
        self.saved[faction_id] = (metadata, index)

    async def delete(self, faction_id):
        self.calls.append(("delete", faction_id))
        self.saved.pop(faction_id, None)

    async def has(self, faction_id):
        self.calls.append(("has", faction_id))
        return faction_id in self.saved


def meta(folder, is_local=False, version="1.0.0"):
    return FactionMetadata(identifier=folder.lower(), display_name=folder,
                           version=version, folder_name=folder, is_local=is_local)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def ant():
    return make_unit(
        "tank_light_laser", "Ant", health=50.0, build_cost=75.0, dps=20.0,
        move_speed=15.0, vision=100.0,
        weapons=[make_weapon("light_laser", dps=20.0, damage=20.0, max_range=100.0)],
    )


@pytest.fixture
def dox():
    return make_unit(
        "bot_grenadier", "Dox", unit_types=("Bot", "Land", "Mobile"),
        health=40.0, build_cost=60.0, dps=15.0, move_speed=12.0, vision=120.0,
        weapons=[make_weapon("light_laser", dps=15.0, damage=15.0, max_range=90.0)],
    )


@pytest.fixture
def factions_dir(tmp_path):
    """Static faction tree with MLA (plus a pinned 0.9.0) and Legion."""
    root = tmp_path / "factions"
    write_faction(root, "MLA", metadata_payload("mla", "MLA", faction_type="base-game",
                                                 background_image="assets/background.png"), [
        unit_payload("tank_light_laser", "Ant", health=200, build_cost=90, dps=36,
                     weapons=[{"safeName": "light_laser", "dps": 36, "damage": 36,
                               "targetLayers": ["WL_LandHorizontal"]}]),
        unit_payload("imperial_alpha", "Alpha", unit_types=("Commander", "Land"),
                     health=12500, build_cost=50000),
        unit_payload("imperial_delta", "Delta", unit_types=("Commander", "Land"),
                     health=12500, build_cost=50000),
    ])
    write_faction(root, "MLA@0.9.0", metadata_payload("mla", "MLA", version="0.9.0"), [
        unit_payload("tank_light_laser", "Ant", health=150, build_cost=90, dps=30),
    ])
    write_faction(root, "Legion", metadata_payload("legion", "Legion Expansion"), [
        unit_payload("l_tank_light_laser", "Drifter", health=240, build_cost=95, dps=30),
    ])
    return root
